"""In-memory stand-ins for the RPC client and metadata resolver."""

from typing import Any, Callable, Dict, List, Optional

from collection_reader import abi
from collection_reader.errors import MetadataUnavailable, RpcError, TransportError
from collection_reader.metadata import MetadataResolver
from collection_reader.models import LogFilter

ADDRESS = "0x" + "ab" * 20
LATEST_BLOCK = 1_000_000


def word(value: int) -> str:
    return "0x" + abi.encode_uint(value)


def string_result(text: str) -> str:
    data = text.encode("utf-8")
    padded = data.hex().ljust(((len(data) + 31) // 32) * 64, "0")
    return "0x" + abi.encode_uint(32) + abi.encode_uint(len(data)) + padded


def mint_log(token_id: int) -> Dict[str, Any]:
    return {
        "address": ADDRESS,
        "topics": [abi.TRANSFER_TOPIC, abi.ZERO_TOPIC, "0x" + "11" * 32, word(token_id)],
        "data": "0x",
    }


class FakeChain:
    """Answers eth_call by selector from a scripted collection."""

    def __init__(
        self,
        name: str = "Test Apes",
        symbol: str = "TAPE",
        token_ids: Optional[List[int]] = None,
        total_supply: Optional[int] = None,
        enumerable: bool = True,
        failing_index: Optional[int] = None,
        uris: Optional[Dict[int, str]] = None,
        logs: Optional[Callable[[LogFilter], List[Dict[str, Any]]]] = None,
        latest_block: int = LATEST_BLOCK,
        fail_reads: bool = False,
    ) -> None:
        self.name = name
        self.symbol = symbol
        self.token_ids = list(token_ids if token_ids is not None else [])
        self.total_supply = len(self.token_ids) if total_supply is None else total_supply
        self.enumerable = enumerable
        self.failing_index = failing_index
        self.uris = dict(uris or {})
        self.logs = logs or (lambda log_filter: [])
        self.latest_block = latest_block
        self.fail_reads = fail_reads
        self.calls: List[str] = []
        self.log_filters: List[LogFilter] = []

    def eth_call(self, chain_id: Any, to: str, data: str) -> str:
        self.calls.append(data)
        if self.fail_reads:
            raise TransportError("connection refused")
        selector = data[2:10]
        arg = int(data[10:74], 16) if len(data) > 10 else None

        if selector == abi.SELECTOR_NAME:
            return string_result(self.name)
        if selector == abi.SELECTOR_SYMBOL:
            return string_result(self.symbol)
        if selector == abi.SELECTOR_TOTAL_SUPPLY:
            return word(self.total_supply)
        if selector == abi.SELECTOR_TOKEN_BY_INDEX:
            if not self.enumerable or arg == self.failing_index or arg >= len(self.token_ids):
                raise RpcError("execution reverted")
            return word(self.token_ids[arg])
        if selector == abi.SELECTOR_TOKEN_URI:
            if arg not in self.uris:
                raise RpcError("execution reverted: URI query for nonexistent token")
            return string_result(self.uris[arg])
        if selector == abi.SELECTOR_OWNER_OF:
            return "0x" + "00" * 12 + "cd" * 20
        raise RpcError("execution reverted")

    def get_block_number(self, chain_id: Any) -> int:
        return self.latest_block

    def get_logs(self, chain_id: Any, log_filter: LogFilter) -> List[Dict[str, Any]]:
        self.log_filters.append(log_filter)
        return self.logs(log_filter)


class StubResolver(MetadataResolver):
    """Serves metadata documents from a dict instead of the network."""

    def __init__(self, documents: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(gateway="https://ipfs.io")
        self.documents = dict(documents or {})
        self.fetched: List[Optional[str]] = []

    def fetch(self, uri: Optional[str]) -> Dict[str, Any]:
        url = self.normalize_uri(uri)
        self.fetched.append(url)
        if url not in self.documents:
            raise MetadataUnavailable(f"no document for {url}")
        return self.documents[url]
