"""Executable entry point for launching the xsdscan FastAPI application.

Process managers can import the stable `app` object from `xsdscan.app`, or
run `python -m xsdscan.run_server` directly for local development.

Environment Variables:
    PORT (int): Override listening port (default 8000).

Example:
    $ python -m xsdscan.run_server
    $ PORT=9000 python -m xsdscan.run_server
"""

from __future__ import annotations

import os

import uvicorn

from .app import app


def main() -> None:
    """Launch the ASGI server with development-friendly defaults."""
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    main()
