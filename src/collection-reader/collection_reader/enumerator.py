"""
Token listing for ERC-721 style collections.

Two strategies:

- indexed: walk tokenByIndex(start..start+limit) and stop at the first failure,
  keeping what was gathered so far;
- scan: when the indexed walk produced nothing (and failed, or a scan was
  requested), read mint Transfer logs (from == 0x0) in fixed block windows going
  backward from the chain head until `limit` tokens are found or the lookback is
  used up.

Everything runs sequentially inside one request; results keep index order or
log-discovery order.
"""

import time
from typing import Any, Callable, List, Optional, Set, Tuple

from loguru import logger

from . import abi
from .chains import ChainRegistry
from .errors import AbiDecodingError
from .inspector import READ_FAILURES, CollectionInspector, normalize_address
from .metadata import MetadataResolver
from .models import (
    IndexedPage,
    LogFilter,
    PageRequest,
    ScanOptions,
    ScanPage,
    TokenPage,
    TokenRecord,
)
from .rpc_client import RpcClient

MINT_TOPICS = (abi.TRANSFER_TOPIC, abi.ZERO_TOPIC)


class TokenEnumerator:
    def __init__(
        self,
        rpc: RpcClient,
        resolver: MetadataResolver,
        registry: ChainRegistry,
        inspector: Optional[CollectionInspector] = None,
        time_budget: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.rpc = rpc
        self.resolver = resolver
        self.registry = registry
        self.inspector = inspector or CollectionInspector(rpc)
        self.time_budget = time_budget
        self.clock = clock

    def list_tokens(
        self,
        chain_id: Any,
        address: str,
        page: PageRequest,
        options: Optional[ScanOptions] = None,
    ) -> TokenPage:
        """
        List one page of tokens.

        Only the totalSupply read may fail the call (ContractReadError); every
        later failure degrades the result instead.
        """
        options = options or ScanOptions()
        normalized = normalize_address(address)
        deadline = self._deadline()
        total = self.inspector.get_total_supply(chain_id, normalized)

        items, failed = self.enumerate_indexed(chain_id, normalized, total, page, deadline)
        if not items and (failed or options.force):
            logger.info(
                "falling back to mint log scan for {} on chain {} (indexed failed={})",
                normalized,
                chain_id,
                failed,
            )
            return self.scan_mints(chain_id, normalized, page.limit, options, deadline)
        return IndexedPage(items=items, total=total)

    def enumerate_indexed(
        self,
        chain_id: Any,
        address: str,
        total: int,
        page: PageRequest,
        deadline: Optional[float] = None,
    ) -> Tuple[List[TokenRecord], bool]:
        """
        Returns (records, failed). A failing index ends the walk; earlier records are kept.
        Running past `deadline` also ends it, without counting as a failure.
        """
        end = min(total, page.start + page.limit)
        items: List[TokenRecord] = []
        for index in range(page.start, end):
            if self._expired(deadline):
                logger.warning(
                    "indexed listing for {} stopped at index {}: time budget exhausted", address, index
                )
                break
            try:
                result = self.rpc.eth_call(
                    chain_id, address, abi.encode_call(abi.SELECTOR_TOKEN_BY_INDEX, index)
                )
                token_id = abi.decode_uint(result)
                items.append(self._build_record(chain_id, address, token_id))
            except READ_FAILURES as exc:
                logger.debug("tokenByIndex({}) failed for {}: {}", index, address, exc)
                return items, True
        return items, False

    def scan_mints(
        self,
        chain_id: Any,
        address: str,
        limit: int,
        options: ScanOptions,
        deadline: Optional[float] = None,
    ) -> ScanPage:
        """Only whole windows are scanned: a lookback shorter than one window scans nothing."""
        if deadline is None:
            deadline = self._deadline()
        try:
            latest = self.rpc.get_block_number(chain_id)
        except READ_FAILURES as exc:
            logger.warning("eth_blockNumber failed on chain {}: {}", chain_id, exc)
            return ScanPage(items=[], windows_scanned=0)

        span = (options.max_back // options.window) * options.window
        lowest = max(0, latest - span + 1)
        seen: Set[int] = set()
        items: List[TokenRecord] = []
        windows = 0
        to_block = latest

        while to_block >= lowest and len(items) < limit:
            if self._expired(deadline):
                logger.warning("mint scan for {} stopped: time budget exhausted", address)
                break
            from_block = max(lowest, to_block - options.window + 1)
            windows += 1
            log_filter = LogFilter(
                from_block=from_block,
                to_block=to_block,
                address=address,
                topics=MINT_TOPICS,
            )
            to_block = from_block - 1

            try:
                logs = self.rpc.get_logs(chain_id, log_filter)
            except READ_FAILURES as exc:
                logger.debug("eth_getLogs {}-{} failed: {}", log_filter.from_block, log_filter.to_block, exc)
                continue
            logger.debug(
                "window {}-{}: {} mint logs", log_filter.from_block, log_filter.to_block, len(logs)
            )

            for entry in logs:
                token_id = self._token_id_from_log(entry)
                if token_id is None or token_id in seen:
                    continue
                seen.add(token_id)
                try:
                    items.append(self._build_record(chain_id, address, token_id))
                except READ_FAILURES as exc:
                    logger.debug("tokenURI({}) failed for {}: {}", token_id, address, exc)
                    continue
                if len(items) >= limit or self._expired(deadline):
                    break

        return ScanPage(items=items, windows_scanned=windows, exhausted=to_block < lowest)

    def _build_record(self, chain_id: Any, address: str, token_id: int) -> TokenRecord:
        data = abi.encode_call(abi.SELECTOR_TOKEN_URI, token_id)
        token_uri = abi.decode_dynamic_string(self.rpc.eth_call(chain_id, address, data))
        meta = self.resolver.token_metadata(token_id, token_uri)
        return TokenRecord(
            token_id=token_id,
            name=meta.name,
            image=meta.image,
            chain=self.registry.label(chain_id),
            collection=address,
            attributes=meta.attributes,
        )

    def _token_id_from_log(self, entry: Any) -> Optional[int]:
        topics = entry.get("topics") if isinstance(entry, dict) else None
        if not isinstance(topics, list) or len(topics) < 4 or not topics[3]:
            return None
        try:
            return abi.topic_to_int(topics[3])
        except AbiDecodingError:
            return None

    def _deadline(self) -> Optional[float]:
        if self.time_budget is None:
            return None
        return self.clock() + self.time_budget

    def _expired(self, deadline: Optional[float]) -> bool:
        return deadline is not None and self.clock() >= deadline
