"""
Entropy-based reconstruction kernel and the post-filters applied to its output.

The kernel turns a normalized and binned TraceStack of size width x height into
an image of size (2*width) x (2*height). Each interior source pixel (x, y) fills
the 2x2 output block at (2x, 2y):

    (0, 0)  mean cross-entropy of the two diagonal neighbor pairs around (x, y)
    (1, 0)  cross-entropy of (x, y) and (x+1, y)
    (0, 1)  cross-entropy of (x, y) and (x, y+1)
    (1, 1)  mean cross-entropy of (x, y)/(x+1, y+1) and (x+1, y)/(x, y+1)

Row 0, row height-1 and the first and last columns are border pixels; their
output blocks are left untouched.
"""

import warnings
import numpy as np
from scipy.ndimage import gaussian_filter

from .errors import StateError
from .trace import PixelTrace


def output_shape(stack):
    """Shape (rows, cols) of the reconstruction of a stack."""
    return 2 * stack.height, 2 * stack.width


def reconstruct_rows(stack, order, row_start, row_end, out=None):
    """
    Run the reconstruction kernel on source rows [row_start, row_end).

    Args:
        stack: TraceStack, already normalized and binned
        order: Order of the joint moment
        row_start: First source row; row 0 is a border row and is skipped
        row_end: End of the row range (exclusive), clamped to height-1
        out: Output buffer of shape (2*height, 2*width). Allocated as zeros if None.

    Returns:
        The output buffer. Only output rows [2*row_start, 2*row_end) are written.
    """
    if stack.depth < 1:
        raise ValueError("Cannot reconstruct a TraceStack without frames")
    if not stack.is_binned:
        raise StateError("TraceStack has no probability binning, call create_binning() first")

    if out is None:
        out = np.zeros(output_shape(stack), dtype=np.float32)
    elif out.shape != output_shape(stack):
        raise ValueError(f"Output buffer has shape {out.shape}, expected {output_shape(stack)}")

    h_cross2 = PixelTrace.h_cross2
    get = stack.get

    row_start = max(row_start, 1)
    row_end = min(row_end, stack.height - 1)

    for y in range(row_start, row_end):
        for x in range(1, stack.width - 1):
            center = get(x, y)
            right = get(x + 1, y)
            below = get(x, y + 1)

            out[2 * y, 2 * x] = (h_cross2(get(x - 1, y - 1), get(x + 1, y + 1), order) +
                                 h_cross2(get(x + 1, y - 1), get(x - 1, y + 1), order)) / 2.0
            out[2 * y, 2 * x + 1] = h_cross2(center, right, order)
            out[2 * y + 1, 2 * x] = h_cross2(center, below, order)
            out[2 * y + 1, 2 * x + 1] = (h_cross2(center, get(x + 1, y + 1), order) +
                                         h_cross2(right, below, order)) / 2.0
    return out


def smooth(image, sigma=0.8, accuracy=0.01):
    """
    Gaussian post-filter that suppresses the 2x2 block structure of the kernel output.

    The kernel is cut off where it drops below ``accuracy`` times its peak value.
    Returns a new float32 image.
    """
    if not 0 < accuracy < 1:
        raise ValueError(f"accuracy must be in (0, 1), got {accuracy}")
    truncate = np.sqrt(-2.0 * np.log(accuracy))
    return gaussian_filter(np.asarray(image, dtype=np.float32), sigma=sigma,
                           mode='nearest', truncate=truncate)


def normalize(image, low=0.0, high=1.0):
    """Rescale ``image`` in place so that its values span [low, high].

    A constant image cannot be stretched; it is filled with ``low``.
    """
    vmin = float(np.min(image))
    vmax = float(np.max(image))

    if vmin == vmax:
        warnings.warn(f"Cannot normalize constant image (value {vmin}), filling with {low}", RuntimeWarning)
        image[...] = low
        return image

    image[...] = (image - vmin) / (vmax - vmin) * (high - low) + low
    return image
