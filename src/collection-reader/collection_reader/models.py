from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Union

DEFAULT_LIMIT = 24
MAX_LIMIT = 50

DEFAULT_SCAN_WINDOW = 5000
MAX_SCAN_WINDOW = 5000
DEFAULT_MAX_BACK = 100_000
MAX_MAX_BACK = 200_000


@dataclass(frozen=True)
class ContractCall:
    to: str
    data: str

    def to_param(self) -> Dict[str, str]:
        return {"to": self.to, "data": self.data}


@dataclass(frozen=True)
class LogFilter:
    from_block: int
    to_block: int
    address: str
    topics: Tuple[Optional[str], ...]

    def to_param(self) -> Dict[str, Any]:
        return {
            "fromBlock": hex(self.from_block),
            "toBlock": hex(self.to_block),
            "address": self.address,
            "topics": list(self.topics),
        }


@dataclass(frozen=True)
class CollectionInfo:
    address: str
    name: str
    symbol: str
    total_supply: int
    enumerable: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "symbol": self.symbol,
            "totalSupply": str(self.total_supply),
            "enumerable": self.enumerable,
        }


@dataclass(frozen=True)
class TokenRecord:
    token_id: int
    name: str
    image: Optional[str]
    chain: str
    collection: str
    attributes: Tuple[Any, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "token",
            "id": str(self.token_id),
            "name": self.name,
            "image": self.image,
            "chain": self.chain,
            "verified": True,
            "priceEth": None,
            "collection": self.collection,
            "attributes": list(self.attributes),
        }


@dataclass(frozen=True)
class PageRequest:
    start: int = 0
    limit: int = DEFAULT_LIMIT

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError("start must be non-negative.")
        if not 1 <= self.limit <= MAX_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_LIMIT}.")


@dataclass(frozen=True)
class ScanOptions:
    window: int = DEFAULT_SCAN_WINDOW
    max_back: int = DEFAULT_MAX_BACK
    force: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.window <= MAX_SCAN_WINDOW:
            raise ValueError(f"window must be between 1 and {MAX_SCAN_WINDOW}.")
        if not 1 <= self.max_back <= MAX_MAX_BACK:
            raise ValueError(f"max_back must be between 1 and {MAX_MAX_BACK}.")


@dataclass(frozen=True)
class IndexedPage:
    """Tokens listed through tokenByIndex."""

    items: Sequence[TokenRecord]
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return {"items": [item.to_dict() for item in self.items], "total": self.total}


@dataclass(frozen=True)
class ScanPage:
    """Tokens discovered from mint Transfer logs."""

    items: Sequence[TokenRecord]
    windows_scanned: int = 0
    exhausted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "total": len(self.items),
            "fallback": "scan",
        }


TokenPage = Union[IndexedPage, ScanPage]
