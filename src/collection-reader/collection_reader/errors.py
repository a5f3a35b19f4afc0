from typing import Any, Optional


class CollectionReaderError(Exception):
    """Base class for every error raised by the collection reader."""


class InvalidAddress(CollectionReaderError, ValueError):
    def __init__(self, address: Any) -> None:
        self.address = address
        super().__init__("Invalid address")


class UnsupportedChain(CollectionReaderError, ValueError):
    def __init__(self, chain_id: Any) -> None:
        self.chain_id = chain_id
        super().__init__("Unsupported chainId")


class RpcError(CollectionReaderError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None) -> None:
        self.message = message
        self.code = code
        self.data = data
        super().__init__(message)


class TransportError(CollectionReaderError):
    """Connection, timeout, HTTP status or malformed JSON while talking to a node."""


class ContractReadError(CollectionReaderError):
    def __init__(self, message: str = "Failed to read contract") -> None:
        super().__init__(message)


class MetadataUnavailable(CollectionReaderError):
    """Token metadata could not be fetched or parsed."""


class AbiEncodingError(CollectionReaderError, ValueError):
    pass


class AbiDecodingError(CollectionReaderError, ValueError):
    pass
