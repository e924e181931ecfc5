from dataclasses import dataclass, field
from enum import Enum
import h5py
import numpy as np


class SeriesMode(Enum):
    MEMORY = "memory"      # In-memory only
    WRITING = "writing"    # Streaming to HDF5
    READING = "reading"    # Lazy reading from HDF5


@dataclass
class ReconstructionSeries:
    """Ordered series of reconstructed images, one per sub-stack chunk."""
    name: str
    images: list[np.ndarray] = field(default_factory=list)
    metadata: dict[str, any] = field(default_factory=dict)

    # Internal state
    _mode: SeriesMode = field(default=SeriesMode.MEMORY, init=False)
    _h5file: any = field(default=None, init=False)
    _h5group: any = field(default=None, init=False)
    _source: tuple = field(default=None, init=False)  # (filename, group path)
    _image_shape: tuple = field(default=None, init=False)
    _chunk_size: int = field(default=16, init=False)

    def __post_init__(self):
        """Validate initial images if provided."""
        if self.images:
            expected_shape = self.images[0].shape
            for i, image in enumerate(self.images[1:], 1):
                if image.shape != expected_shape:
                    raise ValueError(f"Image {i} has shape {image.shape}, expected {expected_shape}")
            self._image_shape = expected_shape

    @property
    def mode(self):
        return self._mode

    # ============ WRITE Mode (Always Streaming) ============

    def open_for_writing(self, filename, mode='w', chunk_size=16):
        """
        Open series for writing - every added image is streamed to HDF5.

        Args:
            filename: HDF5 file to write to
            mode: 'w' for a new file, 'a' to add the series to an existing file
            chunk_size: Number of images per HDF5 chunk
        """
        if self._mode != SeriesMode.MEMORY:
            raise RuntimeError(f"Cannot open for writing in {self._mode} mode")

        self._h5file = h5py.File(filename, mode)
        if self.name in self._h5file:
            self._h5file.close()
            self._h5file = None
            raise ValueError(f"Series '{self.name}' already exists in '{filename}'")
        self._h5group = self._h5file.create_group(self.name)
        self._chunk_size = chunk_size

        for key, value in self.metadata.items():
            if isinstance(value, (str, int, float, bool)):
                self._h5group.attrs[key] = value
        self._h5group.attrs['image_count'] = 0

        if self._image_shape:
            self._create_datasets()

        # Persist existing images if any
        for i, image in enumerate(self.images):
            self._write_image(image, i)
        self._h5group.attrs['image_count'] = len(self.images)

        self._mode = SeriesMode.WRITING
        self._source = (filename, self.name)
        return self

    def add_image(self, image):
        """Add image to series. Auto-persists in WRITING mode."""
        if self._mode == SeriesMode.READING:
            raise RuntimeError("Cannot add images in READING mode")

        image = np.asarray(image, dtype=np.float32)
        if self._image_shape and image.shape != self._image_shape:
            raise ValueError(f"Shape mismatch: {image.shape} vs {self._image_shape}")

        if not self._image_shape:
            self._image_shape = image.shape

        self.images.append(image)

        if self._mode == SeriesMode.WRITING:
            if 'images' not in self._h5group:
                self._create_datasets()

            index = self._h5group.attrs['image_count']
            self._write_image(image, index)
            self._h5group.attrs['image_count'] = index + 1
            self._h5file.flush()

    def close_writing(self):
        """Close write mode and trim datasets to the number of images written."""
        if self._mode == SeriesMode.WRITING:
            count = self._h5group.attrs['image_count']
            if 'images' in self._h5group:
                self._h5group['images'].resize((count,) + self._image_shape)

            self._h5file.close()
            self._h5file = None
            self._h5group = None
            self._mode = SeriesMode.MEMORY
        return self

    # ============ READ Mode (Always Lazy) ============

    def open_for_reading(self, filename=None):
        """Open series for lazy reading from HDF5."""
        if self._mode != SeriesMode.MEMORY:
            raise RuntimeError(f"Cannot open for reading in {self._mode} mode")

        if filename is None and self._source:
            filename = self._source[0]
        elif filename is None:
            raise ValueError("No source available")

        self._h5file = h5py.File(filename, 'r')
        if self.name not in self._h5file:
            self._h5file.close()
            self._h5file = None
            raise KeyError(f"Series '{self.name}' not found in '{filename}'")
        self._h5group = self._h5file[self.name]
        self._mode = SeriesMode.READING
        self._source = (filename, self.name)

        # Clear memory images for lazy-only access
        self.images = []
        for key, value in self._h5group.attrs.items():
            if key != 'image_count':
                self.metadata[key] = value

        if 'images' in self._h5group:
            self._image_shape = self._h5group['images'].shape[1:]
        return self

    def close_reading(self):
        """Close read mode."""
        if self._mode == SeriesMode.READING:
            self._h5file.close()
            self._h5file = None
            self._h5group = None
            self._mode = SeriesMode.MEMORY
        return self

    # ============ Unified Interface ============

    def __iter__(self):
        """Iterate over images - lazy in READ mode."""
        if self._mode == SeriesMode.READING:
            for i in range(len(self)):
                yield self._h5group['images'][i]
        else:
            yield from self.images

    def __len__(self):
        if self._mode == SeriesMode.READING:
            return int(self._h5group.attrs.get('image_count', 0))
        return len(self.images)

    def __getitem__(self, index):
        """Get image by index - lazy in READ mode."""
        if self._mode == SeriesMode.READING:
            if isinstance(index, slice):
                start, stop, step = index.indices(len(self))
                return [self._h5group['images'][i] for i in range(start, stop, step)]
            if not -len(self) <= index < len(self):
                raise IndexError(f"Index {index} out of range")
            return self._h5group['images'][index % len(self)]
        return self.images[index]

    def to_stack(self, dtype=np.float32):
        """Return all images as a (count, rows, cols) array."""
        if self._mode == SeriesMode.READING:
            if len(self) == 0:
                return np.array([])
            return self._h5group['images'][:len(self)].astype(dtype)
        if not self.images:
            return np.array([])
        return np.array(self.images, dtype=dtype)

    def summed(self):
        """Sum of all images of the series."""
        if self._mode == SeriesMode.READING:
            if 'summed' not in self._h5group:
                return None
            return self._h5group['summed'][()]
        if not self.images:
            return None
        return np.sum(self.images, axis=0, dtype=np.float32)

    # ============ Internal Helpers ============

    def _create_datasets(self):
        """Create HDF5 datasets for streaming."""
        initial_size = 16

        self._h5group.create_dataset(
            'images',
            shape=(initial_size,) + self._image_shape,
            maxshape=(None,) + self._image_shape,
            chunks=(self._chunk_size,) + self._image_shape,
            dtype=np.float32
        )
        self._h5group.create_dataset('summed', data=np.zeros(self._image_shape, dtype=np.float32))

    def _write_image(self, image, index):
        """Write single image to HDF5 and add it to the running sum."""
        if index >= self._h5group['images'].shape[0]:
            new_size = index + 16
            self._h5group['images'].resize((new_size,) + self._image_shape)

        self._h5group['images'][index] = image
        self._h5group['summed'][...] = self._h5group['summed'][()] + image
