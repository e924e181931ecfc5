from dataclasses import dataclass
import warnings
import numpy as np

from .errors import StateError, NumericError


@dataclass
class PixelTrace:
    """Intensity time series of one pixel, plus its probability binning.

    Traces are normally created by a TraceStack. ``data`` has a fixed length
    of ``depth`` samples and is modified in place by ``scale``; ``probs`` stays
    None until ``create_binning`` has run.
    """
    depth: int
    data: np.ndarray = None
    probs: np.ndarray = None

    def __post_init__(self):
        if self.depth < 0:
            raise ValueError(f"Trace depth must be >= 0, got {self.depth}")
        if self.data is None:
            self.data = np.zeros(self.depth, dtype=np.float32)
        else:
            self.data = np.asarray(self.data)
            if self.data.dtype.kind != "f":
                self.data = self.data.astype(np.float32)
            if len(self.data) != self.depth:
                raise ValueError(f"Trace data has length {len(self.data)}, expected {self.depth}")

    def __len__(self):
        return self.depth

    def __getitem__(self, n):
        return self.get(n)

    def __setitem__(self, n, value):
        self.set(n, value)

    def get(self, n):
        """Return the n'th sample."""
        self._check_index(n)
        return float(self.data[n])

    def set(self, n, value):
        """Set the n'th sample."""
        self._check_index(n)
        self.data[n] = value

    def _check_index(self, n):
        if not 0 <= n < self.depth:
            raise IndexError(f"Index {n} out of range for trace of depth {self.depth}")

    def _check_not_empty(self, name):
        if self.depth == 0:
            raise ValueError(f"{name}() of an empty trace")

    # ============ Normalization and Binning ============

    def scale(self, vmin, vmax):
        """Map every sample linearly so that vmin -> 0 and vmax -> 1.

        Values outside [vmin, vmax] are not clamped. A degenerate range
        (vmin == vmax) turns every sample into NaN.
        """
        if vmin == vmax:
            warnings.warn(f"Degenerate scaling range [{vmin}, {vmax}], samples become NaN", RuntimeWarning)
            self.data[:] = np.nan
            return
        self.data[:] = (self.data - vmin) / (vmax - vmin)

    def create_binning(self, nr_bins, vmin, vmax):
        """Build the relative-frequency histogram used by ``h_cross2``.

        Samples outside [vmin, vmax] land in the first or last bin, NaN
        samples land in the first bin.
        """
        if nr_bins < 1:
            raise ValueError(f"nr_bins must be >= 1, got {nr_bins}")

        with np.errstate(divide='ignore', invalid='ignore'):
            pos = (self.data.astype(np.float64) - vmin) / (vmax - vmin) * nr_bins
        pos = np.nan_to_num(pos, nan=0.0)
        idx = np.floor(np.clip(pos, 0, nr_bins - 1)).astype(np.intp)

        counts = np.bincount(idx, minlength=nr_bins).astype(np.float64)
        self.probs = counts / self.depth if self.depth else counts

    def create_norm_binning(self, nr_bins):
        """Same as ``create_binning(nr_bins, 0, 1)``."""
        self.create_binning(nr_bins, 0.0, 1.0)

    @property
    def is_binned(self):
        return self.probs is not None

    # ============ Statistics ============

    def mean(self, order=1):
        """Mean of sample**order (not centered)."""
        self._check_not_empty("mean")
        samples = self.data.astype(np.float64)
        if order != 1:
            samples = np.power(samples, order)
        return float(samples.sum() / self.depth)

    def weighted_mean(self, weight=1.0):
        """Time-weighted mean.

        The weight starts at ``weight`` and grows by ``weight / depth`` before
        every sample, so later samples count more. The weighted sum is divided
        by ``depth``, not by the sum of weights.
        """
        self._check_not_empty("weighted_mean")
        factor = weight / self.depth
        weights = weight + factor * np.arange(1, self.depth + 1)
        return float(np.dot(weights, self.data.astype(np.float64)) / self.depth)

    def min(self):
        self._check_not_empty("min")
        return float(np.min(self.data))

    def max(self):
        self._check_not_empty("max")
        return float(np.max(self.data))

    # ============ Pairwise Measures ============

    @staticmethod
    def joint_moment(x, y, order):
        """Joint moment of two traces about their time-weighted means.

        Raises NumericError when the result is NaN, e.g. for a negative base
        raised to a non-integer order.
        """
        if x.depth != y.depth:
            raise ValueError(f"Trace depths differ: {x.depth} vs {y.depth}")

        mean_x = x.weighted_mean(1)
        mean_y = y.weighted_mean(1)

        with np.errstate(invalid='ignore', over='ignore'):
            product = (np.power(x.data.astype(np.float64) - mean_x, order) *
                       np.power(y.data.astype(np.float64) - mean_y, order))
        jmom = PixelTrace(x.depth, data=product).weighted_mean(1)

        if np.isnan(jmom):
            raise NumericError(f"Joint moment of order {order} is NaN")
        return jmom

    @staticmethod
    def h_cross2(x, y, order):
        """Symmetric binned cross-entropy of two traces, scaled by their joint moment.

        Both traces need a probability binning. Empty bins are skipped
        term by term, so log(0) is never evaluated.
        """
        if x.probs is None or y.probs is None:
            raise StateError("Binning not initialized, call create_binning() first")
        if len(x.probs) != len(y.probs):
            raise ValueError(f"Bin counts differ: {len(x.probs)} vs {len(y.probs)}")

        log_x = np.log2(x.probs, out=np.zeros_like(x.probs), where=x.probs > 0)
        log_y = np.log2(y.probs, out=np.zeros_like(y.probs), where=y.probs > 0)

        # pairing per bin keeps the sum bitwise symmetric in x and y
        h_sum = float(np.sum(x.probs * log_y + y.probs * log_x))

        return -h_sum * PixelTrace.joint_moment(x, y, order) / 2.0
