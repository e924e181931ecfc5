"""
ESI - Entropy-based Super-resolution Imaging

A Python package that reconstructs a 2x upsampled image from a temporal stack
of noisy frames, using the cross-entropy between time traces of neighboring pixels.
Provides the processing chain: frames -> TraceStack -> reconstruction -> result series
"""

from .errors import ESIError, StateError, NumericError
from .trace import PixelTrace
from .tracestack import TraceStack, frame_min_max
from .reconstruction import reconstruct_rows, smooth, normalize
from .scheduler import partition_rows, reconstruct, reconstruct_single
from .analysis import ESIConfig, AnalysisResult, run_analysis
from .results import ReconstructionSeries

__version__ = "1.0.0"
__author__ = "ESI Contributors"
__email__ = "info@example.com"

__all__ = [
    'PixelTrace', 'TraceStack', 'frame_min_max',
    'reconstruct_rows', 'smooth', 'normalize',
    'partition_rows', 'reconstruct', 'reconstruct_single',
    'ESIConfig', 'AnalysisResult', 'run_analysis',
    'ReconstructionSeries',
    'ESIError', 'StateError', 'NumericError',
]
