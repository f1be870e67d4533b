from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from lottery.errors import LotteryError

from .config import load_settings, load_web3_settings
from .services.blockchain import LotteryContractClient

logger = logging.getLogger("lottery.cli")


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )


def build_client(args: argparse.Namespace) -> LotteryContractClient:
    return LotteryContractClient.from_settings(load_web3_settings(args.env_file))


def serve(args: argparse.Namespace) -> int:
    settings = load_settings(args.env_file)
    # db.py builds its engine at import time, after the env file is loaded
    from .app import create_app

    app = create_app()
    app.run(host=args.host, port=args.port, debug=settings.flask.debug)
    return 0


async def status(args: argparse.Namespace) -> int:
    client = build_client(args)
    snapshot = await client.get_snapshot()
    print(json.dumps({"contract": client.address, **snapshot.to_dict()}, indent=2))
    return 0


async def enter(args: argparse.Namespace) -> int:
    client = build_client(args)
    tx_hash = await client.enter_lottery(args.value)
    logger.info("enterLottery broadcast from %s: %s", client.signer_address, tx_hash)
    return 0


async def draw(args: argparse.Namespace) -> int:
    client = build_client(args)
    tx_hash = await client.decide_winner()
    logger.info("decideWinner broadcast from %s: %s", client.signer_address, tx_hash)
    return 0


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Single-round lottery service")
    parser.add_argument("--env-file", type=str, default=None, help="Path to .env file with settings")
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging (default INFO)."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    serve_parser = commands.add_parser("serve", help="Run the HTTP service.")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=5000)

    commands.add_parser("status", help="Print the deployed contract's round state.")

    enter_parser = commands.add_parser("enter", help="Buy a ticket on the deployed contract.")
    enter_parser.add_argument(
        "--value", type=int, default=None, help="Amount to attach in wei (default: ticket price)."
    )

    commands.add_parser("draw", help="Call decideWinner on the deployed contract.")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    if args.command == "serve":
        return serve(args)
    handlers = {"status": status, "enter": enter, "draw": draw}
    try:
        return asyncio.run(handlers[args.command](args))
    except LotteryError as exc:
        logger.error("Contract rejected the call: %s", exc.message)
        return 1


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        sys.exit(run(args))
    except KeyboardInterrupt:
        print("Stopped by user.")


if __name__ == "__main__":
    main()
