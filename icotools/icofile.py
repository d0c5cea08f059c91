# icotools/icofile.py
"""
Byte layout of the Windows ICO container.

    header     6 bytes   <HHH   reserved (0), type (1 = icon), count
    directory 16 bytes each, <BBBBHHII
               width, height, color count, reserved, planes, bits per pixel,
               payload length, payload offset
    payloads   PNG or headerless BMP blobs

Width and height are single bytes; 256 is stored as 0.
"""
import re
import struct
from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Sequence, Tuple, Union

from .errors import InvalidFormat, InvalidInput

HEADER_FMT = "<HHH"
ENTRY_FMT = "<BBBBHHII"
HEADER_SIZE = struct.calcsize(HEADER_FMT)  # 6
ENTRY_SIZE = struct.calcsize(ENTRY_FMT)  # 16

ICON_TYPE = 1
MAX_DIMENSION = 256
MAX_IMAGES = 0xFFFF

PNG_SIGNATURE = b"\x89PNG"


class IconSize(NamedTuple):
    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


COMMON_ICO_SIZES: List[IconSize] = [IconSize(s, s) for s in (16, 24, 32, 48, 64, 128, 256)]
DEFAULT_ICO_SIZES: List[IconSize] = [IconSize(s, s) for s in (16, 32, 48)]

SizeLike = Union[IconSize, Tuple[int, int], int]


def as_icon_size(value: SizeLike) -> IconSize:
    """Accepts an IconSize, a (w, h) pair, or a single int meaning a square."""
    if isinstance(value, bool):
        raise InvalidInput(f"Invalid icon size: {value!r}")
    if isinstance(value, int):
        w = h = value
    else:
        try:
            w, h = value
        except (TypeError, ValueError):
            raise InvalidInput(f"Invalid icon size: {value!r}")
    if not isinstance(w, int) or not isinstance(h, int) or isinstance(w, bool) or isinstance(h, bool):
        raise InvalidInput(f"Icon dimensions must be integers: {value!r}")
    if w <= 0 or h <= 0:
        raise InvalidInput(f"Icon dimensions must be positive, got {w}x{h}")
    if w > MAX_DIMENSION or h > MAX_DIMENSION:
        raise InvalidInput(f"Icon dimensions cannot exceed {MAX_DIMENSION}, got {w}x{h}")
    return IconSize(w, h)


def normalize_sizes(sizes: Iterable[SizeLike]) -> List[IconSize]:
    out = [as_icon_size(s) for s in sizes]
    if not out:
        raise InvalidInput("At least one icon size is required")
    if len(out) > MAX_IMAGES:
        raise InvalidInput(f"Too many icon sizes (max {MAX_IMAGES})")
    return out


_SIZE_TOKEN = re.compile(r"^(\d+)(?:[xX×](\d+))?$")


def parse_sizes(text: str) -> List[IconSize]:
    """
    Parses "16,32,48" or "16x16, 256x256" into sizes, order and duplicates preserved.
    """
    text = (text or "").replace(" ", "")
    if not text:
        raise InvalidInput("Sizes are empty")

    sizes = []
    for part in text.split(","):
        if not part:
            continue
        m = _SIZE_TOKEN.match(part)
        if not m:
            raise InvalidInput(f"Invalid size: {part!r}")
        w = int(m.group(1))
        h = int(m.group(2)) if m.group(2) else w
        sizes.append((w, h))
    return normalize_sizes(sizes)


def _dim_to_byte(value: int) -> int:
    return 0 if value == MAX_DIMENSION else value


def _byte_to_dim(value: int) -> int:
    return value or MAX_DIMENSION


@dataclass(frozen=True)
class IcoDirectoryEntry:
    width: int
    height: int
    size: int
    offset: int
    color_count: int = 0
    reserved: int = 0
    planes: int = 1
    bit_count: int = 32

    def pack(self) -> bytes:
        return struct.pack(
            ENTRY_FMT,
            _dim_to_byte(self.width),
            _dim_to_byte(self.height),
            self.color_count,
            self.reserved,
            self.planes,
            self.bit_count,
            self.size,
            self.offset,
        )

    @classmethod
    def unpack(cls, buf: bytes, pos: int) -> "IcoDirectoryEntry":
        w, h, colors, reserved, planes, bpp, size, offset = struct.unpack_from(ENTRY_FMT, buf, pos)
        return cls(
            width=_byte_to_dim(w),
            height=_byte_to_dim(h),
            size=size,
            offset=offset,
            color_count=colors,
            reserved=reserved,
            planes=planes,
            bit_count=bpp,
        )

    @property
    def end(self) -> int:
        return self.offset + self.size


def sniff_format(payload: bytes) -> str:
    # Only the first four bytes are checked; everything else is treated as a DIB.
    return "png" if payload[:4] == PNG_SIGNATURE else "bmp"


@dataclass(frozen=True)
class EmbeddedImage:
    width: int
    height: int
    data: bytes
    format: str

    @property
    def mime_type(self) -> str:
        return f"image/{self.format}"

    @property
    def extension(self) -> str:
        return f".{self.format}"


# ----------------------------
# Writing
# ----------------------------
def pack_header(count: int) -> bytes:
    return struct.pack(HEADER_FMT, 0, ICON_TYPE, count)


def build_container(images: Sequence[Tuple[Union[IconSize, IcoDirectoryEntry], bytes]]) -> bytes:
    """
    Assembles header + directory + payloads.

    Each item pairs a payload with either an IconSize or an IcoDirectoryEntry
    whose color/planes/bit-count fields should be carried over. Size and offset
    are always recomputed: payloads are packed back to back in the given order,
    starting right after the directory.
    """
    if len(images) > MAX_IMAGES:
        raise InvalidInput(f"Too many images (max {MAX_IMAGES})")

    offset = HEADER_SIZE + ENTRY_SIZE * len(images)
    directory = []
    for template, payload in images:
        if isinstance(template, IcoDirectoryEntry):
            entry = IcoDirectoryEntry(
                width=template.width,
                height=template.height,
                size=len(payload),
                offset=offset,
                color_count=template.color_count,
                planes=template.planes,
                bit_count=template.bit_count,
            )
        else:
            size = as_icon_size(template)
            entry = IcoDirectoryEntry(width=size.width, height=size.height, size=len(payload), offset=offset)
        directory.append(entry.pack())
        offset += len(payload)

    return b"".join([pack_header(len(images))] + directory + [bytes(p) for _, p in images])


# ----------------------------
# Reading
# ----------------------------
def read_header(buf: bytes) -> int:
    """Validates the header and returns the image count."""
    if len(buf) < HEADER_SIZE:
        raise InvalidFormat("Invalid ICO file format: file too short")
    reserved, kind, count = struct.unpack_from(HEADER_FMT, buf, 0)
    if reserved != 0 or kind != ICON_TYPE:
        raise InvalidFormat("Invalid ICO file format")
    return count


def read_entries(buf: bytes) -> List[IcoDirectoryEntry]:
    count = read_header(buf)
    dir_end = HEADER_SIZE + ENTRY_SIZE * count
    if dir_end > len(buf):
        raise InvalidFormat(f"Invalid ICO file format: directory of {count} entries is truncated")

    entries = []
    for i in range(count):
        entry = IcoDirectoryEntry.unpack(buf, HEADER_SIZE + i * ENTRY_SIZE)
        if entry.end > len(buf):
            raise InvalidFormat(
                f"Invalid ICO file format: image {i} spans bytes {entry.offset}-{entry.end}, "
                f"file is {len(buf)} bytes"
            )
        entries.append(entry)
    return entries
