# icotools/encoder.py
import io
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Union

from PIL import Image

from .errors import EncodingFailure, InvalidInput
from .icofile import IconSize, SizeLike, build_container, normalize_sizes

ImageSource = Union[Image.Image, bytes, bytearray, memoryview]


def load_image(source: ImageSource) -> Image.Image:
    """
    Returns a fully loaded RGBA image from a Pillow image or encoded bytes.
    Pixel data is read here, before any render is scheduled, so concurrent
    renders only ever read from the returned image.
    """
    if isinstance(source, Image.Image):
        img = source
    elif isinstance(source, (bytes, bytearray, memoryview)):
        if not source:
            raise InvalidInput("Source image is empty")
        try:
            img = Image.open(io.BytesIO(bytes(source)))
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
            raise InvalidInput(f"Failed to load image: {e}") from e
    else:
        raise InvalidInput(f"Unsupported image source: {type(source).__name__}")

    try:
        img.load()
        if img.mode != "RGBA":
            img = img.convert("RGBA")
    except Exception as e:
        raise InvalidInput(f"Failed to load image: {e}") from e
    return img


def render_png(img: Image.Image, size: IconSize) -> bytes:
    """
    Stretches `img` to exactly size.width x size.height and returns PNG bytes.
    Aspect ratio is not preserved; letterbox before calling if needed.
    """
    surface = img.resize((size.width, size.height), Image.Resampling.LANCZOS)
    buf = io.BytesIO()
    try:
        surface.save(buf, format="PNG")
    except (OSError, ValueError) as e:
        raise EncodingFailure(f"PNG encoding failed for {size}: {e}") from e
    data = buf.getvalue()
    if not data:
        raise EncodingFailure(f"PNG encoder produced no data for {size}")
    return data


def render_all(img: Image.Image, sizes: List[IconSize], workers: int = 1) -> List[bytes]:
    if workers <= 1 or len(sizes) <= 1:
        return [render_png(img, s) for s in sizes]
    # map() yields in submission order, so layout never depends on which render finishes first
    with ThreadPoolExecutor(max_workers=min(workers, len(sizes))) as pool:
        return list(pool.map(lambda s: render_png(img, s), sizes))


def encode(source: ImageSource, sizes: Iterable[SizeLike], workers: int = 1) -> bytes:
    """
    Renders `source` at every requested size (in order, duplicates kept),
    PNG-encodes each render, and packs them into an icon container.
    """
    icon_sizes = normalize_sizes(sizes)
    img = load_image(source)
    payloads = render_all(img, icon_sizes, workers=workers)
    return build_container(list(zip(icon_sizes, payloads)))


def image_to_ico(data: bytes, sizes: Iterable[SizeLike], workers: int = 1) -> bytes:
    if not data:
        raise InvalidInput("No image data provided")
    return encode(bytes(data), sizes, workers=workers)
