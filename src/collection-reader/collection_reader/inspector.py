import re
from typing import Any

from loguru import logger

from . import abi
from .errors import (
    AbiDecodingError,
    ContractReadError,
    InvalidAddress,
    RpcError,
    TransportError,
)
from .models import CollectionInfo
from .rpc_client import RpcClient

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")

# Failures that mean "this read did not work" rather than a programming error.
READ_FAILURES = (RpcError, TransportError, AbiDecodingError)


def normalize_address(address: Any) -> str:
    if not isinstance(address, str):
        raise InvalidAddress(address)
    candidate = address.strip().lower()
    if not ADDRESS_PATTERN.match(candidate):
        raise InvalidAddress(address)
    return candidate


class CollectionInspector:
    """Read collection-level facts (name, symbol, supply, enumerability) straight from the contract."""

    def __init__(self, rpc: RpcClient) -> None:
        self.rpc = rpc

    def get_info(self, chain_id: Any, address: str) -> CollectionInfo:
        normalized = normalize_address(address)
        try:
            name = abi.decode_dynamic_string(
                self.rpc.eth_call(chain_id, normalized, abi.encode_call(abi.SELECTOR_NAME))
            )
            symbol = abi.decode_dynamic_string(
                self.rpc.eth_call(chain_id, normalized, abi.encode_call(abi.SELECTOR_SYMBOL))
            )
            total_supply = abi.decode_uint(
                self.rpc.eth_call(chain_id, normalized, abi.encode_call(abi.SELECTOR_TOTAL_SUPPLY))
            )
        except READ_FAILURES as exc:
            logger.warning("collection info read failed for {} on chain {}: {}", normalized, chain_id, exc)
            raise ContractReadError() from exc

        return CollectionInfo(
            address=normalized,
            name=name,
            symbol=symbol,
            total_supply=total_supply,
            enumerable=self.probe_enumerable(chain_id, normalized),
        )

    def get_total_supply(self, chain_id: Any, address: str) -> int:
        normalized = normalize_address(address)
        try:
            result = self.rpc.eth_call(chain_id, normalized, abi.encode_call(abi.SELECTOR_TOTAL_SUPPLY))
            return abi.decode_uint(result)
        except READ_FAILURES as exc:
            logger.warning("totalSupply read failed for {} on chain {}: {}", normalized, chain_id, exc)
            raise ContractReadError("Failed to read totalSupply") from exc

    def probe_enumerable(self, chain_id: Any, address: str) -> bool:
        """
        Heuristic: a contract is enumerable if tokenByIndex(0) answers.

        Empty collections revert here too, so False can be a false negative.
        """
        try:
            result = self.rpc.eth_call(chain_id, address, abi.encode_call(abi.SELECTOR_TOKEN_BY_INDEX, 0))
            abi.decode_uint(result)
        except READ_FAILURES as exc:
            logger.debug("tokenByIndex(0) probe failed for {}: {}", address, exc)
            return False
        return True

    def owner_of(self, chain_id: Any, address: str, token_id: int) -> str:
        normalized = normalize_address(address)
        try:
            result = self.rpc.eth_call(
                chain_id, normalized, abi.encode_call(abi.SELECTOR_OWNER_OF, token_id)
            )
            return abi.decode_address(result)
        except READ_FAILURES as exc:
            raise ContractReadError(f"Failed to read owner of token {token_id}") from exc
