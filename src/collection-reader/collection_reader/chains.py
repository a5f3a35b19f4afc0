from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping

from .config import Config
from .errors import UnsupportedChain

CHAIN_ID_ETH = 1
CHAIN_ID_BASE = 8453
CHAIN_ID_POLYGON = 137

CHAIN_LABELS: Mapping[int, str] = MappingProxyType(
    {
        CHAIN_ID_ETH: "ETH",
        CHAIN_ID_BASE: "BASE",
        CHAIN_ID_POLYGON: "POLYGON",
    }
)

_ALIASES: Mapping[str, int] = MappingProxyType(
    {
        "eth": CHAIN_ID_ETH,
        "ethereum": CHAIN_ID_ETH,
        "mainnet": CHAIN_ID_ETH,
        "base": CHAIN_ID_BASE,
        "polygon": CHAIN_ID_POLYGON,
        "matic": CHAIN_ID_POLYGON,
    }
)


@dataclass(frozen=True)
class ChainEndpoint:
    chain_id: int
    rpc_url: str
    label: str


class ChainRegistry:
    """
    Immutable chain id -> RPC endpoint mapping.
    - Built once at startup and shared by reference.
    - Lookups fail closed: unknown ids raise UnsupportedChain.
    """

    def __init__(self, endpoints: Iterable[ChainEndpoint]) -> None:
        table: Dict[int, ChainEndpoint] = {}
        for endpoint in endpoints:
            url = (endpoint.rpc_url or "").strip()
            if not url:
                raise ValueError(f"RPC url for chain {endpoint.chain_id} must be a non-empty string.")
            table[endpoint.chain_id] = endpoint
        self._endpoints: Mapping[int, ChainEndpoint] = MappingProxyType(table)

    @classmethod
    def from_config(cls, config: Config) -> "ChainRegistry":
        return cls(
            [
                ChainEndpoint(CHAIN_ID_ETH, config.rpc_eth, CHAIN_LABELS[CHAIN_ID_ETH]),
                ChainEndpoint(CHAIN_ID_BASE, config.rpc_base, CHAIN_LABELS[CHAIN_ID_BASE]),
                ChainEndpoint(CHAIN_ID_POLYGON, config.rpc_polygon, CHAIN_LABELS[CHAIN_ID_POLYGON]),
            ]
        )

    def parse_chain_id(self, chain_id: Any) -> int:
        """Accepts an int, a decimal string, or a known alias; anything else is unsupported."""
        if isinstance(chain_id, bool):
            raise UnsupportedChain(chain_id)
        if isinstance(chain_id, int):
            return chain_id

        raw = str(chain_id if chain_id is not None else "").strip().lower()
        if raw.isdigit():
            return int(raw)
        if raw in _ALIASES:
            return _ALIASES[raw]
        raise UnsupportedChain(chain_id)

    def resolve(self, chain_id: Any) -> ChainEndpoint:
        parsed = self.parse_chain_id(chain_id)
        endpoint = self._endpoints.get(parsed)
        if endpoint is None:
            raise UnsupportedChain(chain_id)
        return endpoint

    def label(self, chain_id: Any) -> str:
        return self.resolve(chain_id).label

    def list_chains(self) -> List[Dict[str, Any]]:
        return [
            {"chainId": endpoint.chain_id, "label": endpoint.label}
            for _, endpoint in sorted(self._endpoints.items())
        ]

    def __contains__(self, chain_id: Any) -> bool:
        try:
            self.resolve(chain_id)
        except UnsupportedChain:
            return False
        return True
