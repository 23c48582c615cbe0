from __future__ import annotations

import argparse
import logging
import os
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

from interface.api import app
from interface.cli import main as cli_main


def run() -> None:
    parser = argparse.ArgumentParser(prog="rideledger")
    parser.add_argument("mode", nargs="?", choices=("cli", "serve"), default="cli")
    parser.add_argument("--host", default=os.getenv("LEDGER_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("LEDGER_PORT", "8000")))
    args = parser.parse_args()

    if args.mode == "serve":
        import uvicorn

        uvicorn.run(app, host=args.host, port=args.port)
        return
    cli_main()


if __name__ == "__main__":
    run()
