#!/usr/bin/env python3
"""Start the API with uvicorn, honouring the PORT environment variable."""

import logging
import os
import sys

import uvicorn


def main() -> None:
    port = os.environ.get("PORT", "8000")
    try:
        port_int = int(port)
    except ValueError:
        print(f"Warning: Invalid PORT value '{port}', using default 8000", file=sys.stderr)
        port_int = 8000

    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
    uvicorn.run(
        "pharmagarde.main:app",
        app_dir="src",
        host="0.0.0.0",
        port=port_int,
        # client IPs for anonymous ratings come from the proxy's forwarded headers
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()
