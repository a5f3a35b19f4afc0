from typing import Any, Dict, List, Optional

from .chains import ChainRegistry
from .config import Config
from .enumerator import TokenEnumerator
from .inspector import CollectionInspector, normalize_address
from .metadata import MetadataResolver
from .models import (
    DEFAULT_LIMIT,
    DEFAULT_MAX_BACK,
    DEFAULT_SCAN_WINDOW,
    MAX_LIMIT,
    MAX_MAX_BACK,
    MAX_SCAN_WINDOW,
    PageRequest,
    ScanOptions,
)
from .rpc_client import RpcClient

DEFAULT_CHAIN_ID = 1


def _parse_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    candidate = str(value).strip()
    if not candidate:
        return None
    try:
        return int(candidate)
    except ValueError:
        try:
            as_float = float(candidate)
        except ValueError:
            return None
        if as_float != as_float or as_float in (float("inf"), float("-inf")):
            return None
        return int(as_float)


def _is_truthy_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"1", "true", "yes"}


class CollectionService:
    """Combine configuration, registry, RPC client and metadata resolver to serve collection reads."""

    def __init__(
        self,
        config: Config,
        registry: Optional[ChainRegistry] = None,
        rpc: Optional[RpcClient] = None,
        resolver: Optional[MetadataResolver] = None,
    ) -> None:
        self.config = config
        self.registry = registry or ChainRegistry.from_config(config)
        self.rpc = rpc or RpcClient(
            self.registry,
            timeout=config.request_timeout,
            max_retries=config.max_retries,
            backoff_seconds=config.backoff_seconds,
        )
        self.resolver = resolver or MetadataResolver(
            gateway=config.ipfs_gateway,
            timeout=config.metadata_timeout,
        )
        self.inspector = CollectionInspector(self.rpc)
        self.enumerator = TokenEnumerator(
            self.rpc,
            self.resolver,
            self.registry,
            inspector=self.inspector,
            time_budget=config.scan_time_budget_seconds,
        )

    def collection_info(self, address: Any, chain_id: Any = None) -> Dict[str, Any]:
        chain = self._resolve_chain(chain_id)
        normalized = normalize_address(address)
        return self.inspector.get_info(chain, normalized).to_dict()

    def collection_tokens(
        self,
        address: Any,
        chain_id: Any = None,
        start: Any = None,
        limit: Any = None,
        scan: Any = None,
        window: Any = None,
        max_back: Any = None,
    ) -> Dict[str, Any]:
        chain = self._resolve_chain(chain_id)
        normalized = normalize_address(address)
        page = self.normalize_page(start, limit)
        options = self.normalize_scan_options(scan, window, max_back)
        return self.enumerator.list_tokens(chain, normalized, page, options).to_dict()

    def token_owner(self, address: Any, token_id: Any, chain_id: Any = None) -> Dict[str, Any]:
        chain = self._resolve_chain(chain_id)
        normalized = normalize_address(address)
        parsed_id = _parse_int(token_id)
        if parsed_id is None or parsed_id < 0:
            raise ValueError("token_id must be a non-negative integer.")
        owner = self.inspector.owner_of(chain, normalized, parsed_id)
        return {
            "address": normalized,
            "chainId": chain,
            "tokenId": str(parsed_id),
            "owner": owner,
        }

    def list_chains(self) -> List[Dict[str, Any]]:
        return self.registry.list_chains()

    def normalize_page(self, start: Any, limit: Any) -> PageRequest:
        parsed_start = _parse_int(start)
        parsed_limit = _parse_int(limit)
        if parsed_limit is None:
            parsed_limit = DEFAULT_LIMIT
        return PageRequest(
            start=max(0, parsed_start or 0),
            limit=min(MAX_LIMIT, max(1, parsed_limit)),
        )

    def normalize_scan_options(self, scan: Any, window: Any, max_back: Any) -> ScanOptions:
        parsed_window = _parse_int(window)
        parsed_max_back = _parse_int(max_back)
        if parsed_window is None or parsed_window <= 0:
            parsed_window = DEFAULT_SCAN_WINDOW
        if parsed_max_back is None or parsed_max_back <= 0:
            parsed_max_back = DEFAULT_MAX_BACK
        return ScanOptions(
            window=min(MAX_SCAN_WINDOW, parsed_window),
            max_back=min(MAX_MAX_BACK, parsed_max_back),
            force=_is_truthy_flag(scan),
        )

    def _resolve_chain(self, chain_id: Any) -> int:
        if chain_id is None or (isinstance(chain_id, str) and not chain_id.strip()):
            chain_id = DEFAULT_CHAIN_ID
        return self.registry.resolve(chain_id).chain_id
