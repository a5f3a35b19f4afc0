import argparse
import json
import sys
from typing import Optional

from .config import load_config
from .logging_setup import configure_logging
from .service import CollectionService


def _add_chain_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--chain-id",
        required=False,
        default="1",
        help="Chain id (1, 8453, 137) or alias (eth, base, polygon). Defaults to 1.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Read NFT collections directly from EVM JSON-RPC nodes.",
        allow_abbrev=False,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    info_parser = subparsers.add_parser("info", help="Read collection name, symbol and supply")
    info_parser.add_argument(
        "--address",
        required=True,
        help="Contract address (0x-prefixed).",
    )
    _add_chain_argument(info_parser)

    tokens_parser = subparsers.add_parser("tokens", help="List tokens with metadata")
    tokens_parser.add_argument(
        "--address",
        required=True,
        help="Contract address (0x-prefixed).",
    )
    _add_chain_argument(tokens_parser)
    tokens_parser.add_argument(
        "--start",
        required=False,
        type=int,
        default=0,
        help="First token index. Defaults to 0.",
    )
    tokens_parser.add_argument(
        "--limit",
        required=False,
        type=int,
        default=24,
        help="Tokens per page (1-50). Defaults to 24.",
    )
    tokens_parser.add_argument(
        "--scan",
        action="store_true",
        help="Scan mint logs when tokenByIndex yields nothing, even if it did not fail.",
    )
    tokens_parser.add_argument(
        "--window",
        required=False,
        type=int,
        help="Blocks per eth_getLogs window (max 5000).",
    )
    tokens_parser.add_argument(
        "--max-back",
        required=False,
        type=int,
        help="How many blocks back from head to scan (max 200000).",
    )

    owner_parser = subparsers.add_parser("owner", help="Read ownerOf for a token id")
    owner_parser.add_argument(
        "--address",
        required=True,
        help="Contract address (0x-prefixed).",
    )
    owner_parser.add_argument(
        "--token-id",
        required=True,
        help="Token id (decimal).",
    )
    _add_chain_argument(owner_parser)

    subparsers.add_parser("chains", help="List supported chains")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument(
        "--host",
        required=False,
        help="Bind host. Defaults to HOST env or 127.0.0.1.",
    )
    serve_parser.add_argument(
        "--port",
        required=False,
        type=int,
        help="Bind port. Defaults to PORT env or 3000.",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config()
        configure_logging(config.log_level)

        if args.command == "serve":
            import uvicorn

            from .http_api import create_app

            app = create_app(CollectionService(config))
            uvicorn.run(app, host=args.host or config.host, port=args.port or config.port)
            return

        service = CollectionService(config)

        if args.command == "info":
            result = service.collection_info(args.address, args.chain_id)
        elif args.command == "tokens":
            result = service.collection_tokens(
                args.address,
                args.chain_id,
                start=args.start,
                limit=args.limit,
                scan=args.scan,
                window=args.window,
                max_back=args.max_back,
            )
        elif args.command == "owner":
            result = service.token_owner(args.address, args.token_id, args.chain_id)
        else:
            result = {"chains": service.list_chains()}
        print(json.dumps(result, indent=2))
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
