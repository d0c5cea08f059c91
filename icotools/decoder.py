# icotools/decoder.py
import io
from typing import List

from PIL import Image

from .errors import DecodingFailure, EmptyResult, EncodingFailure, InvalidInput
from .icofile import EmbeddedImage, IcoDirectoryEntry, build_container, read_entries, sniff_format


def read_directory(data: bytes) -> List[IcoDirectoryEntry]:
    return read_entries(bytes(data))


def decode(data: bytes) -> List[EmbeddedImage]:
    """
    Extracts every embedded image in directory order.

    A zero-image icon yields an empty list. The payload format is sniffed from
    its leading bytes since the directory carries no type field.
    """
    buf = bytes(data)
    images = []
    for entry in read_entries(buf):
        payload = buf[entry.offset:entry.end]
        images.append(EmbeddedImage(entry.width, entry.height, payload, sniff_format(payload)))
    return images


def _open_bitmap(entry: IcoDirectoryEntry, payload: bytes) -> Image.Image:
    if payload[:2] == b"BM":
        # a complete BMP file, file header included
        return Image.open(io.BytesIO(payload))
    # A DIB payload has no file header and stores an XOR image plus AND mask at
    # double height. Pillow's icon reader knows that layout, so hand it a
    # one-entry container with the original directory fields.
    return Image.open(io.BytesIO(build_container([(entry, payload)])))


def _bmp_entry_to_png(entry: IcoDirectoryEntry, payload: bytes) -> bytes:
    try:
        with _open_bitmap(entry, payload) as im:
            im.load()
            surface = im.convert("RGBA")
    except Exception as e:
        raise DecodingFailure(f"Failed to decode bitmap image: {e}") from e

    if surface.size != (entry.width, entry.height):
        surface = surface.resize((entry.width, entry.height), Image.Resampling.LANCZOS)

    buf = io.BytesIO()
    try:
        surface.save(buf, format="PNG")
    except (OSError, ValueError) as e:
        raise EncodingFailure(f"PNG encoding failed: {e}") from e
    return buf.getvalue()


def decode_first_as_png(data: bytes, index: int = 0) -> bytes:
    """
    Returns one embedded image as PNG bytes.

    An index past the end falls back to the first image. PNG payloads are
    returned unchanged; bitmaps are decoded and re-encoded.
    """
    if index < 0:
        raise InvalidInput(f"Image index must not be negative, got {index}")

    buf = bytes(data)
    entries = read_entries(buf)
    if not entries:
        raise EmptyResult("No images found in ICO file")

    entry = entries[index] if index < len(entries) else entries[0]
    payload = buf[entry.offset:entry.end]
    if sniff_format(payload) == "png":
        return payload
    return _bmp_entry_to_png(entry, payload)
