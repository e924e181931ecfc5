#!/usr/bin/env python3
"""
Basic usage example for ESI (Entropy-based Super-resolution Imaging).

Demonstrates:
- Simulating a stack of frames with blinking emitters
- Running the chunked ESI analysis
- Streaming the reconstructions to HDF5
- Loading them back for display
"""

import logging
import numpy as np
from esi import ESIConfig, ReconstructionSeries, run_analysis


def simulate_blinking_stack(nr_frames=400, size=32, nr_emitters=12, seed=0):
    """Emitters that switch on and off at random, blurred and with shot noise."""
    rng = np.random.default_rng(seed)
    yy, xx = np.mgrid[0:size, 0:size]
    positions = rng.uniform(4, size - 4, size=(nr_emitters, 2))

    frames = np.empty((nr_frames, size, size), dtype=np.float32)
    for z in range(nr_frames):
        on = rng.random(nr_emitters) < 0.3
        image = np.full((size, size), 5.0)
        for (py, px), active in zip(positions, on):
            if active:
                image += 60 * np.exp(-((yy - py) ** 2 + (xx - px) ** 2) / (2 * 1.5 ** 2))
        frames[z] = rng.poisson(image)
    return frames


def main():
    logging.basicConfig(level=logging.INFO)

    frames = simulate_blinking_stack()
    config = ESIConfig(nr_res_images=4, nr_bins=50, order=4)

    series = ReconstructionSeries("esi_result", metadata=config.as_metadata())
    series.open_for_writing("esi_result.h5")
    result = run_analysis(frames, config=config, store=series)
    series.close_writing()

    print(f"Reconstructed {len(result.reconstructions)} images of size {result.summed.shape}")

    loaded = ReconstructionSeries("esi_result").open_for_reading("esi_result.h5")
    summed = loaded.summed()
    loaded.close_reading()

    try:
        import matplotlib.pyplot as plt
    except ImportError:
        print("matplotlib not installed, skipping display")
        return

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(10, 5))
    ax1.imshow(frames.mean(axis=0), cmap='gray')
    ax1.set_title("Mean of input frames")
    ax2.imshow(summed, cmap='hot')
    ax2.set_title("Summed ESI reconstruction")
    plt.show()


if __name__ == "__main__":
    main()
