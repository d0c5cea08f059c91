# icotools/__init__.py
from .decoder import decode, decode_first_as_png, read_directory
from .encoder import encode, image_to_ico
from .errors import (
    DecodingFailure,
    EmptyResult,
    EncodingFailure,
    IcoError,
    InvalidFormat,
    InvalidInput,
)
from .icofile import COMMON_ICO_SIZES, DEFAULT_ICO_SIZES, EmbeddedImage, IconSize, parse_sizes

__all__ = [
    "COMMON_ICO_SIZES",
    "DEFAULT_ICO_SIZES",
    "DecodingFailure",
    "EmbeddedImage",
    "EmptyResult",
    "EncodingFailure",
    "IcoError",
    "IconSize",
    "InvalidFormat",
    "InvalidInput",
    "decode",
    "decode_first_as_png",
    "encode",
    "image_to_ico",
    "parse_sizes",
    "read_directory",
]
