import io
import struct

import pytest
from PIL import Image


def png_bytes(img):
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def make_ico(entries, reserved=0, kind=1, tail=b""):
    """
    Hand-assembles a container from (width_byte, height_byte, size, offset) tuples
    without going through the library writer.
    """
    out = struct.pack("<HHH", reserved, kind, len(entries))
    for w, h, size, offset in entries:
        out += struct.pack("<BBBBHHII", w, h, 0, 0, 1, 32, size, offset)
    return out + tail


@pytest.fixture
def source_image():
    img = Image.new("RGBA", (100, 100), (255, 0, 0, 255))
    for x in range(50):
        for y in range(50):
            img.putpixel((x, y), (0, 0, 255, 128))
    return img


@pytest.fixture
def source_png(source_image):
    return png_bytes(source_image)


@pytest.fixture
def bmp_icon():
    """A 32x32 icon whose payload is a legacy DIB, written by Pillow's own ICO writer."""
    img = Image.new("RGBA", (32, 32), (255, 0, 0, 255))
    buf = io.BytesIO()
    img.save(buf, format="ICO", sizes=[(32, 32)], bitmap_format="bmp")
    return buf.getvalue()
