import io
import struct

import pytest
from PIL import Image

from icotools import decode, encode, image_to_ico
from icotools.errors import EncodingFailure, InvalidInput
from icotools.icofile import IconSize, read_entries


def test_round_trip_sizes_in_order(source_image):
    images = decode(encode(source_image, [16, 32, 48]))

    assert [(i.width, i.height) for i in images] == [(16, 16), (32, 32), (48, 48)]
    assert all(i.format == "png" for i in images)
    for i in images:
        with Image.open(io.BytesIO(i.data)) as im:
            assert im.size == (i.width, i.height)


def test_header_bytes(source_image):
    data = encode(source_image, [IconSize(16, 16), IconSize(24, 24)])
    assert data[0:2] == b"\x00\x00"
    assert data[2:4] == b"\x01\x00"
    assert data[4:6] == struct.pack("<H", 2)


def test_256_quirk(source_image):
    data = encode(source_image, [256])
    assert data[6] == 0 and data[7] == 0

    (image,) = decode(data)
    assert (image.width, image.height) == (256, 256)


def test_payloads_are_contiguous(source_image):
    data = encode(source_image, [16, 24, 32, 48])
    entries = read_entries(data)

    expected = 6 + len(entries) * 16
    for entry in entries:
        assert entry.offset == expected
        expected += entry.size
    assert expected == len(data)


def test_constant_planes_and_depth(source_image):
    for entry in read_entries(encode(source_image, [16, 64])):
        assert entry.planes == 1
        assert entry.bit_count == 32
        assert entry.color_count == 0
        assert entry.reserved == 0


def test_duplicate_sizes_are_kept(source_image):
    data = encode(source_image, [32, 32])
    entries = read_entries(data)
    assert len(entries) == 2
    assert entries[0].offset != entries[1].offset

    for image in decode(data):
        assert image.format == "png"
        with Image.open(io.BytesIO(image.data)) as im:
            assert im.size == (32, 32)


def test_single_size_byte_length(source_image):
    # a 100x100 source rendered at 16x16
    data = encode(source_image, [(16, 16)])
    entry = read_entries(data)[0]
    assert len(data) == 6 + 16 + entry.size

    (image,) = decode(data)
    assert (image.width, image.height, image.format) == (16, 16, "png")


def test_non_square_is_stretched(source_image):
    (image,) = decode(encode(source_image, [(48, 16)]))
    with Image.open(io.BytesIO(image.data)) as im:
        assert im.size == (48, 16)
        assert im.mode == "RGBA"


def test_accepts_encoded_bytes(source_png):
    images = decode(image_to_ico(source_png, [16, 32]))
    assert [i.width for i in images] == [16, 32]


def test_converts_non_rgba_source():
    src = Image.new("RGB", (40, 20), (10, 200, 30))
    (image,) = decode(encode(src, [20]))
    with Image.open(io.BytesIO(image.data)) as im:
        assert im.mode == "RGBA"
        assert im.getpixel((10, 10))[:3] == (10, 200, 30)


def test_concurrent_render_is_deterministic(source_image):
    sizes = [64, 16, 256, 32, 16, 48]
    assert encode(source_image, sizes, workers=4) == encode(source_image, sizes)


def test_concurrent_render_from_lazily_opened_image(source_png):
    sizes = [16, 32, 48, 64, 128, 256]
    expected = encode(Image.open(io.BytesIO(source_png)), sizes)
    for _ in range(20):
        # Image.open defers reading pixels until first use
        lazy = Image.open(io.BytesIO(source_png))
        assert encode(lazy, sizes, workers=6) == expected


def test_truncated_lazy_source_is_invalid_input(source_png):
    lazy = Image.open(io.BytesIO(source_png[: len(source_png) // 2]))
    with pytest.raises(InvalidInput):
        encode(lazy, [16, 32], workers=2)


@pytest.mark.parametrize("sizes", [[], [0], [16, -1], [(16, 0)], [257], [(16, 300)], ["16"]])
def test_rejects_bad_sizes(source_image, sizes):
    with pytest.raises(InvalidInput):
        encode(source_image, sizes)


def test_rejects_unreadable_source():
    with pytest.raises(InvalidInput):
        encode(b"definitely not an image", [16])
    with pytest.raises(InvalidInput):
        image_to_ico(b"", [16])
    with pytest.raises(InvalidInput):
        encode(12345, [16])


def test_png_encoder_failure_propagates(source_image, monkeypatch):
    def broken_save(self, fp, format=None, **params):
        raise OSError("encoder exploded")

    monkeypatch.setattr(Image.Image, "save", broken_save)
    with pytest.raises(EncodingFailure) as exc:
        encode(source_image, [16])
    assert isinstance(exc.value.__cause__, OSError)
