"""Entry point for the PDF layout server."""

import argparse
import os

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="PDF layout server")
    parser.add_argument(
        "--signatures-dir",
        default=None,
        help="Directory holding the signature index.json. Overrides SIGNATURES_DIR env var.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: INFO). Overrides LOG_LEVEL env var.",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    args = parser.parse_args()

    if args.signatures_dir:
        os.environ["SIGNATURES_DIR"] = args.signatures_dir

    from pdf_layout_server.logger import logger
    from pdf_layout_server.server import app

    if args.log_level:
        logger.set_level(args.log_level)

    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
