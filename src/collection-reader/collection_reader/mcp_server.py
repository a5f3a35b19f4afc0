"""
MCP server exposing on-chain NFT collection reads.
"""

import argparse
from typing import Optional, Union

from mcp.server.fastmcp import FastMCP

from .config import load_config
from .logging_setup import configure_logging
from .service import CollectionService

server = FastMCP(
    name="collection-reader",
    instructions="Read ERC-721 collection info and list tokens with metadata directly from EVM JSON-RPC nodes.",
)

_service: Optional[CollectionService] = None


def _get_service() -> CollectionService:
    global _service
    if _service is None:
        cfg = load_config()
        _service = CollectionService(cfg)
    return _service


@server.tool(
    name="collection_info",
    title="Collection Info",
    description="Read name, symbol, totalSupply and whether tokenByIndex works for an NFT contract.",
)
def collection_info(address: str, chain_id: Union[int, str] = 1) -> dict:
    svc = _get_service()
    return svc.collection_info(address, chain_id)


@server.tool(
    name="collection_tokens",
    title="List Collection Tokens",
    description=(
        "List tokens with resolved metadata. Walks tokenByIndex from `start`; falls back to scanning "
        "mint Transfer logs backward when indexing fails or `scan` is true. `limit` is clamped to 1..50."
    ),
)
def collection_tokens(
    address: str,
    chain_id: Union[int, str] = 1,
    start: int = 0,
    limit: int = 24,
    scan: bool = False,
    window: Optional[int] = None,
    max_back: Optional[int] = None,
) -> dict:
    svc = _get_service()
    return svc.collection_tokens(address, chain_id, start, limit, scan, window, max_back)


@server.tool(
    name="token_owner",
    title="Token Owner",
    description="Read ownerOf(tokenId) for an NFT contract.",
)
def token_owner(address: str, token_id: Union[int, str], chain_id: Union[int, str] = 1) -> dict:
    svc = _get_service()
    return svc.token_owner(address, token_id, chain_id)


@server.tool(
    name="list_chains",
    title="List Supported Chains",
    description="List chain ids this server has RPC endpoints for.",
)
def list_chains() -> dict:
    svc = _get_service()
    return {"chains": svc.list_chains()}


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the collection-reader MCP server.")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport protocol for MCP.",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--mount-path",
        default="/",
        help="Mount path for SSE transport (only when transport=sse).",
    )
    args = parser.parse_args()

    configure_logging(load_config().log_level)

    # FastMCP uses host/port only for SSE/HTTP transports; stdio ignores them.
    server.settings.host = args.host
    server.settings.port = args.port

    if args.transport == "sse":
        server.run(transport="sse", mount_path=args.mount_path)
    else:
        server.run(transport=args.transport)


if __name__ == "__main__":
    main()
