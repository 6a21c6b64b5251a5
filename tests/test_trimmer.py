"""
Unit tests for the border trimmer (compute_bounding_box, crop, trim).
Focus on pure function testing with synthetic pixel buffers.
"""

import unittest

import numpy as np

from helpers.buffers import make_buffer, set_pixel
from image_trimmer.errors import EmptyImage, InvalidBuffer, InvalidRegion
from image_trimmer.trim import BorderTrimmer, BoundingBox, PixelBuffer, Threshold, compute_bounding_box, crop, trim


class TestComputeBoundingBox(unittest.TestCase):
    def test_single_dark_pixel(self):
        """4x4 white RGBA with (10,10,10,255) at row 1, col 2 gives a one-pixel box."""
        buf = make_buffer(4, 4)
        set_pixel(buf, 2, 1, (10, 10, 10, 255))

        box = compute_bounding_box(buf)

        self.assertEqual(box, BoundingBox(2, 1, 2, 1))
        self.assertEqual((box.width, box.height), (1, 1))

    def test_all_white_is_empty(self):
        box = compute_bounding_box(make_buffer(5, 3))
        self.assertTrue(box.is_empty)
        self.assertGreater(box.min_x, box.max_x)

    def test_rectangle_region(self):
        buf = make_buffer(10, 8)
        for y in range(2, 6):
            for x in range(3, 8):
                set_pixel(buf, x, y, (0, 0, 0, 255))

        self.assertEqual(compute_bounding_box(buf).as_crop(), (3, 2, 5, 4))

    def test_scattered_pixels_span_box(self):
        buf = make_buffer(20, 15)
        set_pixel(buf, 4, 12, (0, 0, 0, 255))
        set_pixel(buf, 17, 3, (100, 200, 50, 255))
        self.assertEqual(compute_bounding_box(buf), BoundingBox(4, 3, 17, 12))

    def test_threshold_value_itself_is_foreground(self):
        """Background needs every channel strictly above its limit."""
        buf = make_buffer(3, 3)
        set_pixel(buf, 1, 1, (250, 250, 250, 255))
        self.assertEqual(compute_bounding_box(buf), BoundingBox(1, 1, 1, 1))

    def test_just_above_threshold_is_background(self):
        buf = make_buffer(3, 3, fill=(251, 251, 251, 255))
        self.assertTrue(compute_bounding_box(buf).is_empty)

    def test_one_channel_at_limit_keeps_pixel(self):
        buf = make_buffer(3, 3)
        # BGRA storage: red channel sits exactly at the limit
        set_pixel(buf, 0, 2, (255, 255, 250, 255))
        self.assertEqual(compute_bounding_box(buf), BoundingBox(0, 2, 0, 2))

    def test_alpha_is_ignored(self):
        buf = make_buffer(3, 3, fill=(255, 255, 255, 0))
        set_pixel(buf, 2, 0, (0, 0, 0, 0))
        self.assertEqual(compute_bounding_box(buf), BoundingBox(2, 0, 2, 0))

    def test_channels_are_read_by_name(self):
        """Same bytes classify differently under BGRA and RGBA when limits differ per channel."""
        threshold = Threshold(r=250, g=250, b=40)
        pixel = (255, 255, 50, 255)

        bgra = make_buffer(2, 2, order="BGRA")
        set_pixel(bgra, 1, 1, pixel)
        rgba = make_buffer(2, 2, order="RGBA")
        set_pixel(rgba, 1, 1, pixel)

        # BGRA: red=50 -> foreground; RGBA: blue=50 > 40 and red/green=255 -> background
        self.assertEqual(compute_bounding_box(bgra, threshold), BoundingBox(1, 1, 1, 1))
        self.assertTrue(compute_bounding_box(rgba, threshold).is_empty)

    def test_three_byte_pixels(self):
        buf = make_buffer(5, 4, fill=(255, 255, 255), order="BGR")
        set_pixel(buf, 3, 2, (0, 0, 0))
        self.assertEqual(compute_bounding_box(buf), BoundingBox(3, 2, 3, 2))

    def test_row_padding_is_not_scanned(self):
        buf = make_buffer(4, 3, padding=3)
        self.assertEqual(buf.stride, 4 * 4 + 3)
        set_pixel(buf, 1, 2, (0, 0, 0, 255))
        self.assertEqual(compute_bounding_box(buf), BoundingBox(1, 2, 1, 2))

    def test_last_row_may_omit_padding(self):
        buf = make_buffer(4, 3, padding=4)
        buf.data = buf.data[:-4]
        set_pixel(buf, 3, 2, (0, 0, 0, 255))
        self.assertEqual(compute_bounding_box(buf), BoundingBox(3, 2, 3, 2))

    def test_invalid_buffers_raise(self):
        good = make_buffer(2, 2)
        cases = [
            PixelBuffer(0, 2, 8, good.pixel_format, good.data),
            PixelBuffer(2, -1, 8, good.pixel_format, good.data),
            PixelBuffer(2, 2, 7, good.pixel_format, good.data),
            PixelBuffer(2, 2, 8, good.pixel_format, good.data[:10]),
        ]
        for buf in cases:
            with self.subTest(buf=buf):
                with self.assertRaises(InvalidBuffer):
                    compute_bounding_box(buf)

    def test_custom_threshold(self):
        buf = make_buffer(4, 4, fill=(200, 200, 200, 255))
        set_pixel(buf, 0, 0, (100, 100, 100, 255))
        # Default limits keep the gray fill; lowered limits turn it into background
        self.assertEqual(compute_bounding_box(buf), BoundingBox(0, 0, 3, 3))
        self.assertEqual(compute_bounding_box(buf, Threshold(150, 150, 150)), BoundingBox(0, 0, 0, 0))


class TestCrop(unittest.TestCase):
    def test_crop_copies_region_exactly(self):
        arr = np.arange(5 * 6 * 4, dtype=np.uint8).reshape(5, 6, 4)
        buf = PixelBuffer.from_array(arr, "BGRA")

        out = crop(buf, BoundingBox(1, 2, 3, 4))

        self.assertEqual((out.width, out.height), (3, 3))
        self.assertEqual(out.stride, 3 * 4)
        np.testing.assert_array_equal(out.as_array(), arr[2:5, 1:4])

    def test_crop_does_not_touch_source(self):
        buf = make_buffer(4, 4)
        set_pixel(buf, 1, 1, (1, 2, 3, 4))
        before = bytes(buf.data)
        crop(buf, BoundingBox(1, 1, 2, 2))
        self.assertEqual(bytes(buf.data), before)

    def test_crop_full_buffer(self):
        buf = make_buffer(3, 2, padding=2)
        out = crop(buf, BoundingBox(0, 0, 2, 1))
        self.assertEqual((out.width, out.height, out.stride), (3, 2, 12))

    def test_empty_box_raises(self):
        with self.assertRaises(InvalidRegion):
            crop(make_buffer(3, 3), BoundingBox.empty())

    def test_inverted_box_raises(self):
        with self.assertRaises(InvalidRegion):
            crop(make_buffer(3, 3), BoundingBox(2, 0, 1, 2))

    def test_out_of_bounds_box_raises(self):
        buf = make_buffer(3, 3)
        for box in (BoundingBox(0, 0, 3, 2), BoundingBox(-1, 0, 1, 1), BoundingBox(0, 1, 2, 5)):
            with self.subTest(box=box):
                with self.assertRaises(InvalidRegion):
                    crop(buf, box)


class TestTrim(unittest.TestCase):
    def test_single_pixel_trims_to_one_by_one(self):
        buf = make_buffer(4, 4)
        set_pixel(buf, 2, 1, (10, 10, 10, 255))

        out = trim(buf)

        self.assertEqual((out.width, out.height), (1, 1))
        self.assertEqual(out.pixel(0, 0), (10, 10, 10, 255))

    def test_all_white_raises_empty_image(self):
        with self.assertRaises(EmptyImage):
            trim(make_buffer(6, 6, fill=(255, 255, 255, 255)))

    def test_result_never_grows(self):
        rng = np.random.default_rng(7)
        for _ in range(20):
            h, w = rng.integers(1, 12, size=2)
            arr = np.full((h, w, 4), 255, dtype=np.uint8)
            ys = rng.integers(0, h, size=3)
            xs = rng.integers(0, w, size=3)
            arr[ys, xs, :3] = rng.integers(0, 250, size=(3, 3))
            out = trim(PixelBuffer.from_array(arr, "BGRA"))
            self.assertLessEqual(out.width, w)
            self.assertLessEqual(out.height, h)

    def test_trim_is_idempotent(self):
        buf = make_buffer(12, 9)
        set_pixel(buf, 2, 3, (0, 0, 0, 255))
        set_pixel(buf, 9, 7, (0, 0, 0, 255))

        once = trim(buf)
        box = compute_bounding_box(once)

        self.assertEqual(box, BoundingBox(0, 0, once.width - 1, once.height - 1))
        twice = trim(once)
        self.assertEqual((twice.width, twice.height), (once.width, once.height))
        self.assertEqual(bytes(twice.data), bytes(once.data))

    def test_border_trimmer_uses_its_threshold(self):
        buf = make_buffer(5, 5, fill=(200, 200, 200, 255))
        set_pixel(buf, 4, 4, (0, 0, 0, 255))
        trimmer = BorderTrimmer(Threshold(199, 199, 199))
        self.assertEqual(trimmer.compute_bounding_box(buf), BoundingBox(4, 4, 4, 4))
        out = trimmer.trim(buf)
        self.assertEqual((out.width, out.height), (1, 1))
        self.assertEqual(BorderTrimmer().trim(buf).width, 5)


if __name__ == "__main__":
    unittest.main()
