import base64
import unittest

from appium_snapshot.png import PNG, is_png


class TestPNG(unittest.TestCase):
    def test_parse_png(self):
        buffer = (
            "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAIAAACQd1PeAAAAD0lEQVR4nGNgYAAAAAMAAWgmWQ0AAAAASUVORK5CYII="
        )
        png = PNG(base64.b64decode(buffer))
        dims = png.get_dimensions()
        self.assertEqual(dims.width, 1)
        self.assertEqual(dims.height, 1)

    def test_invalid_png(self):
        self.assertFalse(is_png(b"IAMADUCK"))
        with self.assertRaises(ValueError):
            PNG(b"IAMADUCK").get_dimensions()

    def test_truncated_png(self):
        self.assertFalse(is_png(bytes([137, 80, 78, 71, 13, 10, 26, 10])))


if __name__ == "__main__":
    unittest.main()
