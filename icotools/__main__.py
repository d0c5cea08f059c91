"""
Run the ICO tools API server.
By default the server listens on 127.0.0.1. Pass `--allow-remote` to bind to 0.0.0.0.
"""
import argparse

import uvicorn

from . import config


def main(argv=None):
    parser = argparse.ArgumentParser(prog="icotools", description="Start the ICO tools API server")
    parser.add_argument("--host", type=str, default=None, help=f"Host to bind; default {config.HOST}")
    parser.add_argument("--allow-remote", action="store_true", help="If set, bind to 0.0.0.0")
    parser.add_argument("--port", type=int, default=config.PORT, help="Port to bind")
    parser.add_argument("--reload", action="store_true", default=config.RELOAD, help="Enable uvicorn reload")
    args = parser.parse_args(argv)

    if args.allow_remote:
        host = "0.0.0.0"
    elif args.host:
        host = args.host
    else:
        host = config.HOST

    uvicorn.run("icotools.main:app", host=host, port=args.port, reload=args.reload,
                log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
