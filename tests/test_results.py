#!/usr/bin/env python3
"""
Tests for streaming reconstruction series to HDF5 and reading them back lazily.
"""

import unittest
import tempfile
import os
import numpy as np
import h5py
from esi import ReconstructionSeries
from esi.results import SeriesMode


class TestReconstructionSeries(unittest.TestCase):
    """Test suite for ReconstructionSeries."""

    def setUp(self):
        """Create temporary directory for test files."""
        self.test_dir = tempfile.mkdtemp()
        self.test_file = os.path.join(self.test_dir, "test.h5")

    def tearDown(self):
        """Clean up test files."""
        import shutil
        if os.path.exists(self.test_dir):
            shutil.rmtree(self.test_dir)

    def write_series(self, count=5, name="esi", shape=(4, 6)):
        series = ReconstructionSeries(name, metadata={"order": 4, "source": "test"})
        series.open_for_writing(self.test_file, mode='a')
        for i in range(count):
            series.add_image(np.full(shape, i, dtype=np.float32))
        series.close_writing()
        return series

    def test_memory_mode(self):
        series = ReconstructionSeries("mem")
        series.add_image(np.ones((2, 2)))
        series.add_image(np.zeros((2, 2)))
        self.assertEqual(series.mode, SeriesMode.MEMORY)
        self.assertEqual(len(series), 2)
        np.testing.assert_array_equal(series[0], np.ones((2, 2)))
        np.testing.assert_array_equal(series.summed(), np.ones((2, 2)))

    def test_shape_validation(self):
        series = ReconstructionSeries("mem")
        series.add_image(np.ones((2, 2)))
        with self.assertRaises(ValueError):
            series.add_image(np.ones((3, 2)))
        with self.assertRaises(ValueError):
            ReconstructionSeries("bad", images=[np.ones((2, 2)), np.ones((2, 3))])

    def test_streaming_write(self):
        self.write_series(count=20)

        with h5py.File(self.test_file, 'r') as f:
            group = f["esi"]
            self.assertEqual(group.attrs['image_count'], 20)
            self.assertEqual(group['images'].shape, (20, 4, 6))
            self.assertEqual(group.attrs['source'], "test")
            np.testing.assert_array_equal(group['summed'][()], np.full((4, 6), sum(range(20))))

    def test_lazy_reading(self):
        self.write_series(count=5)

        series = ReconstructionSeries("esi").open_for_reading(self.test_file)
        try:
            self.assertEqual(series.mode, SeriesMode.READING)
            self.assertEqual(len(series.images), 0)
            self.assertEqual(len(series), 5)
            self.assertEqual(series.metadata['order'], 4)

            for i, image in enumerate(series):
                np.testing.assert_array_equal(image, np.full((4, 6), i))

            np.testing.assert_array_equal(series[-1], np.full((4, 6), 4))
            self.assertEqual(len(series[1:4]), 3)
            self.assertEqual(series.to_stack().shape, (5, 4, 6))
            with self.assertRaises(IndexError):
                series[5]
        finally:
            series.close_reading()

    def test_reopen_from_source(self):
        series = self.write_series(count=3)
        series.open_for_reading()
        try:
            self.assertEqual(len(series), 3)
        finally:
            series.close_reading()

    def test_existing_images_are_persisted(self):
        series = ReconstructionSeries("pre", images=[np.ones((2, 2), dtype=np.float32)])
        series.open_for_writing(self.test_file)
        series.add_image(np.ones((2, 2)))
        series.close_writing()

        loaded = ReconstructionSeries("pre").open_for_reading(self.test_file)
        try:
            self.assertEqual(len(loaded), 2)
            np.testing.assert_array_equal(loaded.summed(), np.full((2, 2), 2.0))
        finally:
            loaded.close_reading()

    def test_multiple_series_in_one_file(self):
        self.write_series(count=2, name="chunk_a")
        self.write_series(count=3, name="chunk_b")

        with h5py.File(self.test_file, 'r') as f:
            self.assertEqual(set(f.keys()), {"chunk_a", "chunk_b"})

    def test_duplicate_series_rejected(self):
        self.write_series(count=1)
        series = ReconstructionSeries("esi")
        with self.assertRaises(ValueError):
            series.open_for_writing(self.test_file, mode='a')
        self.assertEqual(series.mode, SeriesMode.MEMORY)

    def test_mode_errors(self):
        self.write_series(count=1)
        series = ReconstructionSeries("esi").open_for_reading(self.test_file)
        try:
            with self.assertRaises(RuntimeError):
                series.add_image(np.zeros((4, 6)))
            with self.assertRaises(RuntimeError):
                series.open_for_writing(self.test_file)
        finally:
            series.close_reading()

    def test_missing_series(self):
        self.write_series(count=1)
        with self.assertRaises(KeyError):
            ReconstructionSeries("missing").open_for_reading(self.test_file)

    def test_no_source(self):
        with self.assertRaises(ValueError):
            ReconstructionSeries("esi").open_for_reading()


if __name__ == '__main__':
    unittest.main()
