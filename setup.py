"""
Setup script for ESI (Entropy-based Super-resolution Imaging) package.
"""

from setuptools import setup, find_packages
import os

# Read version from __init__.py
def get_version():
    version_file = os.path.join(os.path.dirname(__file__), 'esi', '__init__.py')
    with open(version_file, 'r') as f:
        for line in f:
            if line.startswith('__version__'):
                return line.split('=')[1].strip().strip('"\'')
    return '0.1.0'

# Read README for long description
def get_long_description():
    readme_file = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_file):
        with open(readme_file, 'r', encoding='utf-8') as f:
            return f.read()
    return ''

setup(
    name='esi-analysis',
    version=get_version(),
    author='ESI Contributors',
    author_email='info@example.com',
    description='ESI - Entropy-based Super-resolution Imaging',
    long_description=get_long_description(),
    long_description_content_type='text/markdown',
    url='https://github.com/example/esi',
    packages=find_packages(exclude=['tests', 'tests.*', 'examples']),
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Image Processing',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
    ],
    python_requires='>=3.9',
    install_requires=[
        'numpy>=1.20.0',
        'h5py>=3.0.0',
        'scipy>=1.6.0',
    ],
    extras_require={
        'dev': [
            'pytest>=6.0',
            'pytest-cov>=2.0',
        ],
        'examples': [
            'matplotlib>=3.0',
        ],
    },
    project_urls={
        'Bug Reports': 'https://github.com/example/esi/issues',
        'Source': 'https://github.com/example/esi',
    },
)
