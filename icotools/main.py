# icotools/main.py
import io
import logging
import zipfile
from pathlib import Path
from typing import Set

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse, Response

from . import config
from .decoder import decode, decode_first_as_png, read_directory
from .encoder import image_to_ico
from .errors import DecodingFailure, EmptyResult, EncodingFailure, IcoError, InvalidFormat, InvalidInput
from .icofile import COMMON_ICO_SIZES, parse_sizes, sniff_format

logging.basicConfig(level=config.LOG_LEVEL, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


# ----------------------------
# App
# ----------------------------
app = FastAPI(title="ICO Tools")

ALLOWED_IMAGE_EXT = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".gif"}
ALLOWED_ICO_EXT = {".ico"}

ICO_MEDIA_TYPE = "image/x-icon"


# ----------------------------
# Upload limit helpers
# ----------------------------
def _http_413(msg: str):
    raise HTTPException(status_code=413, detail=msg)


async def read_upload_limited(file: UploadFile, max_bytes: int) -> bytes:
    """
    Reads UploadFile into memory in 1MB chunks, enforcing max size while reading.
    """
    data = bytearray()
    try:
        while True:
            chunk = await file.read(1024 * 1024)
            if not chunk:
                break
            if len(data) + len(chunk) > max_bytes:
                _http_413(f"File too large. Max allowed is {config.MAX_UPLOAD_MB}MB.")
            data.extend(chunk)
    finally:
        await file.close()
    return bytes(data)


def _check_upload(file: UploadFile, allowed: Set[str]) -> str:
    if not file.filename:
        raise HTTPException(400, "No filename provided")
    ext = Path(file.filename).suffix.lower()
    if ext not in allowed:
        raise HTTPException(400, f"Unsupported file type: {ext or 'none'}")
    return ext


def _safe_name(name: str) -> str:
    return "".join(c for c in name if c.isalnum() or c in ("-", "_", " ")).strip() or "output"


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


def _raise_for(e: IcoError, action: str):
    """Maps core errors onto HTTP status codes."""
    if isinstance(e, (InvalidInput, InvalidFormat)):
        raise HTTPException(400, str(e)) from e
    if isinstance(e, EmptyResult):
        raise HTTPException(422, str(e)) from e
    if isinstance(e, (EncodingFailure, DecodingFailure)):
        logger.exception("%s failed", action)
        raise HTTPException(500, f"Conversion failed: {e}") from e
    raise HTTPException(500, f"{action} failed: {e}") from e


# ----------------------------
# Health
# ----------------------------
@app.get("/health")
def health():
    return {"ok": True, "max_upload_mb": config.MAX_UPLOAD_MB}


@app.get("/sizes")
def sizes():
    return {
        "common": [{"width": s.width, "height": s.height} for s in COMMON_ICO_SIZES],
        "default": [{"width": s.width, "height": s.height} for s in parse_sizes(config.DEFAULT_SIZES)],
    }


# ----------------------------
# Conversion APIs
# ----------------------------
@app.post("/convert/image-to-ico")
async def image_to_ico_route(file: UploadFile = File(...), sizes: str = Form(None)):
    _check_upload(file, ALLOWED_IMAGE_EXT)
    base = _safe_name(Path(file.filename).stem)

    try:
        icon_sizes = parse_sizes(sizes if sizes is not None else config.DEFAULT_SIZES)
    except InvalidInput as e:
        raise HTTPException(400, str(e))

    data = await read_upload_limited(file, config.MAX_UPLOAD_BYTES)
    if not data:
        raise HTTPException(400, "Uploaded file is empty")

    try:
        ico = image_to_ico(data, icon_sizes, workers=config.RENDER_WORKERS)
    except IcoError as e:
        _raise_for(e, "Image to ICO")

    logger.info(
        "Built %s.ico with sizes %s (%d bytes)", base, ", ".join(str(s) for s in icon_sizes), len(ico)
    )
    return Response(content=ico, media_type=ICO_MEDIA_TYPE, headers=_attachment(f"{base}.ico"))


@app.post("/convert/ico-to-image")
async def ico_to_image(file: UploadFile = File(...)):
    _check_upload(file, ALLOWED_ICO_EXT)
    base = _safe_name(Path(file.filename).stem)
    data = await read_upload_limited(file, config.MAX_UPLOAD_BYTES)

    try:
        images = decode(data)
    except IcoError as e:
        _raise_for(e, "ICO extraction")

    if not images:
        raise HTTPException(422, "No images found in ICO file")

    logger.info("Extracted %d image(s) from %s.ico", len(images), base)

    if len(images) == 1:
        img = images[0]
        return Response(
            content=img.data,
            media_type=img.mime_type,
            headers=_attachment(f"{base}-{img.width}x{img.height}{img.extension}"),
        )

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as z:
        for i, img in enumerate(images):
            z.writestr(f"{base}-{img.width}x{img.height}-{i + 1}{img.extension}", img.data)

    return Response(
        content=buf.getvalue(),
        media_type="application/zip",
        headers=_attachment(f"{base}-images.zip"),
    )


@app.post("/convert/ico-to-png")
async def ico_to_png(file: UploadFile = File(...), index: int = Form(0)):
    _check_upload(file, ALLOWED_ICO_EXT)
    base = _safe_name(Path(file.filename).stem)
    data = await read_upload_limited(file, config.MAX_UPLOAD_BYTES)

    try:
        png = decode_first_as_png(data, index=index)
    except IcoError as e:
        _raise_for(e, "ICO to PNG")

    return Response(content=png, media_type="image/png", headers=_attachment(f"{base}.png"))


@app.post("/inspect/ico")
async def inspect_ico(file: UploadFile = File(...)):
    _check_upload(file, ALLOWED_ICO_EXT)
    data = await read_upload_limited(file, config.MAX_UPLOAD_BYTES)

    try:
        entries = read_directory(data)
    except IcoError as e:
        _raise_for(e, "ICO inspection")

    return JSONResponse(
        {
            "count": len(entries),
            "bytes": len(data),
            "images": [
                {
                    "width": ent.width,
                    "height": ent.height,
                    "format": sniff_format(data[ent.offset:ent.end]),
                    "size": ent.size,
                    "offset": ent.offset,
                    "planes": ent.planes,
                    "bit_count": ent.bit_count,
                }
                for ent in entries
            ],
        }
    )
