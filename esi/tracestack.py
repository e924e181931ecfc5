from dataclasses import dataclass, field
import numpy as np

from .trace import PixelTrace


def _frame_shape(frames):
    """Return (height, width) of a frame sequence."""
    shape = getattr(frames, 'shape', None)
    if shape is not None and len(shape) == 3:
        return tuple(shape[1:])
    if len(frames) == 0:
        raise ValueError("Cannot determine frame size of an empty frame sequence")
    shape = np.shape(frames[0])
    if len(shape) != 2:
        raise ValueError(f"Frames must be 2D, got shape {shape}")
    return shape


def frame_min_max(frames, start=0, end=None):
    """Return (min, max) of all pixel values in frames [start, end)."""
    start, end = _clamp_range(len(frames), start, end)
    if end <= start:
        raise ValueError("min/max of an empty frame range")

    vmin, vmax = np.inf, -np.inf
    for z in range(start, end):
        frame = np.asarray(frames[z])
        vmin = min(vmin, float(frame.min()))
        vmax = max(vmax, float(frame.max()))
    return vmin, vmax


def _clamp_range(total, start, end):
    if end is None or end > total:
        end = total
    return max(start, 0), end


@dataclass
class TraceStack:
    """One PixelTrace per pixel of a frame, indexed row-major (n = y*width + x).

    The traces are views into a single (nr_traces, depth) block owned by the stack.
    """
    width: int
    height: int
    depth: int
    traces: list[PixelTrace] = field(default=None, repr=False)

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Invalid stack size {self.width}x{self.height}")
        if self.depth < 0:
            raise ValueError(f"Invalid stack depth {self.depth}")
        if self.traces is None:
            self._block = np.zeros((self.nr_traces, self.depth), dtype=np.float32)
            self.traces = [PixelTrace(self.depth, data=self._block[n]) for n in range(self.nr_traces)]
        else:
            if len(self.traces) != self.nr_traces:
                raise ValueError(f"Got {len(self.traces)} traces, expected {self.nr_traces}")
            for n, trace in enumerate(self.traces):
                if trace.depth != self.depth:
                    raise ValueError(f"Trace {n} has depth {trace.depth}, expected {self.depth}")

    @classmethod
    def from_frames(cls, frames, start=0, end=None):
        """Build a stack from frames [start, end) of a frame sequence.

        ``frames`` is anything indexable by frame number that yields 2D arrays:
        a (n, height, width) array, a list of frames or an h5py dataset.
        The range is clamped to [0, len(frames)].
        """
        height, width = _frame_shape(frames)
        start, end = _clamp_range(len(frames), start, end)
        if end < start:
            raise ValueError(f"Invalid frame range [{start}, {end})")

        stack = cls(width=width, height=height, depth=end - start)
        for z in range(stack.depth):
            frame = np.asarray(frames[start + z], dtype=np.float32)
            if frame.shape != (height, width):
                raise ValueError(f"Frame {start + z} has shape {frame.shape}, expected {(height, width)}")
            stack._block[:, z] = frame.reshape(-1)
        return stack

    @property
    def nr_traces(self):
        return self.width * self.height

    def __len__(self):
        return self.nr_traces

    def __iter__(self):
        return iter(self.traces)

    def __getitem__(self, index):
        if isinstance(index, tuple):
            return self.get(*index)
        return self.get(index)

    def get(self, x, y=None):
        """Return the trace at (x, y), or at linear index x if y is omitted."""
        if y is None:
            if not 0 <= x < self.nr_traces:
                raise IndexError(f"Trace index {x} outside stack of {self.nr_traces} traces")
            return self.traces[x]
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} stack")
        return self.traces[y * self.width + x]

    def normalize_from(self, vmin, vmax):
        """Scale every trace with the same global range [vmin, vmax] to 0..1."""
        for trace in self.traces:
            trace.scale(vmin, vmax)

    def create_binning(self, nr_bins, vmin, vmax):
        """Probability binning for all traces. Data outside [vmin, vmax] maps to the lowest/highest bin."""
        for trace in self.traces:
            trace.create_binning(nr_bins, vmin, vmax)

    def create_norm_binning(self, nr_bins):
        self.create_binning(nr_bins, 0.0, 1.0)

    @property
    def is_binned(self):
        return all(trace.is_binned for trace in self.traces)

    def min_max(self):
        """Return (min, max) over all samples of the stack."""
        if self.nr_traces == 0 or self.depth == 0:
            raise ValueError("min/max of an empty stack")
        return min(t.min() for t in self.traces), max(t.max() for t in self.traces)

    def to_array(self, dtype=np.float32):
        """Return the samples as a (height, width, depth) array."""
        return np.array([t.data for t in self.traces], dtype=dtype).reshape(self.height, self.width, self.depth)
