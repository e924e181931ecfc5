"""
Full ESI analysis of a frame stack.

The stack is cut into ``nr_res_images`` consecutive sub-stacks. Each sub-stack is
turned into a TraceStack, normalized with one global pixel range, binned and
reconstructed. The reconstructions are smoothed, optionally normalized, and
summed up into one overall image.

Example:
    config = ESIConfig(nr_res_images=10, nr_bins=100, order=4)
    result = run_analysis(frames, config=config)
    image = result.summed
"""

from dataclasses import dataclass
import logging
import time

import numpy as np

from .tracestack import TraceStack, frame_min_max
from .reconstruction import smooth, normalize
from .scheduler import reconstruct, reconstruct_single

logger = logging.getLogger(__name__)


@dataclass
class ESIConfig:
    """Parameters of an ESI analysis."""
    nr_res_images: int = 100      # images in the result stack
    nr_bins: int = 100            # bins/states in the entropy calculation
    order: int = 4                # order of the joint moment
    multi_core: bool = True
    nr_threads: int = None        # None: one thread per CPU
    norm_output: bool = True      # normalize each reconstruction to 0..1
    blur_sigma: float = 0.8
    blur_accuracy: float = 0.01

    def validate(self):
        if self.nr_res_images < 1:
            raise ValueError(f"nr_res_images must be >= 1, got {self.nr_res_images}")
        if self.nr_bins < 1:
            raise ValueError(f"nr_bins must be >= 1, got {self.nr_bins}")
        if self.nr_threads is not None and self.nr_threads < 1:
            raise ValueError(f"nr_threads must be >= 1, got {self.nr_threads}")
        if self.blur_sigma < 0:
            raise ValueError(f"blur_sigma must be >= 0, got {self.blur_sigma}")
        return self

    def as_metadata(self):
        return {
            'nr_res_images': self.nr_res_images,
            'nr_bins': self.nr_bins,
            'order': self.order,
            'norm_output': self.norm_output,
            'blur_sigma': self.blur_sigma,
        }


@dataclass
class AnalysisResult:
    reconstructions: np.ndarray   # (nr_res_images, 2*height, 2*width)
    summed: np.ndarray            # (2*height, 2*width)
    frames_per_result: int


def reconstruct_chunk(stack, px_min, px_max, config):
    """Normalize, bin and reconstruct one TraceStack, then apply the post-filters."""
    stack.normalize_from(px_min, px_max)
    stack.create_norm_binning(config.nr_bins)

    if config.multi_core:
        image = reconstruct(stack, config.order, nr_threads=config.nr_threads)
    else:
        image = reconstruct_single(stack, config.order)

    image = smooth(image, sigma=config.blur_sigma, accuracy=config.blur_accuracy)
    if config.norm_output:
        normalize(image)
    return image


def run_analysis(frames, px_min=None, px_max=None, config=None, store=None,
                 progress=None, clock=time.perf_counter):
    """
    Run the ESI analysis over a whole frame stack.

    Args:
        frames: Frame sequence, (n, height, width) array, list of 2D arrays or h5py dataset
        px_min, px_max: Global pixel range used for normalization. Taken from
            all frames if not given.
        config: ESIConfig, defaults are used if None
        store: Optional ReconstructionSeries; every reconstruction is added to it
        progress: Optional callable(index, total, image), called after each chunk
        clock: Time source used for the timing log

    Returns:
        AnalysisResult with the reconstruction stack and their sum
    """
    config = (config or ESIConfig()).validate()

    if px_min is None or px_max is None:
        frame_min, frame_max = frame_min_max(frames)
        px_min = frame_min if px_min is None else px_min
        px_max = frame_max if px_max is None else px_max

    frames_per_result = len(frames) // config.nr_res_images
    if frames_per_result == 0:
        raise ValueError(f"Cannot build {config.nr_res_images} results from {len(frames)} frames")

    logger.info("ESI: normalizing from %s to %s", px_min, px_max)
    logger.info("ESI: input images per resulting image: %d", frames_per_result)

    t_full = clock()
    reconstructions = []
    summed = None

    for k in range(config.nr_res_images):
        t_start = clock()

        stack = TraceStack.from_frames(frames, k * frames_per_result, (k + 1) * frames_per_result)
        image = reconstruct_chunk(stack, px_min, px_max, config)

        reconstructions.append(image)
        summed = image.copy() if summed is None else summed + image
        if store is not None:
            store.add_image(image)
        if progress is not None:
            progress(k, config.nr_res_images, image)

        logger.info("ESI: SubImg %d/%d took %.1f ms", k, config.nr_res_images, (clock() - t_start) * 1000)

    logger.info("ESI: FINISHED in %.1f ms", (clock() - t_full) * 1000)

    return AnalysisResult(
        reconstructions=np.array(reconstructions, dtype=np.float32),
        summed=summed,
        frames_per_result=frames_per_result,
    )
