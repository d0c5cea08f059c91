"""
Runtime options for the ICO tools service.
Values come from environment variables; `python -m icotools` flags override host/port.
"""
import os

# Upload limit
MAX_UPLOAD_MB = int(os.environ.get("MAX_UPLOAD_MB", "25"))
MAX_UPLOAD_BYTES = MAX_UPLOAD_MB * 1024 * 1024

# Thread pool size for per-size renders; 1 renders sequentially
RENDER_WORKERS = max(1, int(os.environ.get("ICO_RENDER_WORKERS", "1")))

# Preselected sizes for image-to-ico when the form omits `sizes`
DEFAULT_SIZES = os.environ.get("ICO_DEFAULT_SIZES", "16,32,48")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

HOST = os.environ.get("HOST", "127.0.0.1")
PORT = int(os.environ.get("PORT", "8000"))
RELOAD = os.environ.get("RELOAD", "false").lower() in ("1", "true", "yes")
