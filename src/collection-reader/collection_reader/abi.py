"""
Minimal ABI codec for the handful of ERC-721 reads the reader performs.

Only fixed-width unsigned integers (arguments and results) and a single dynamic
string return value are supported; selectors are precomputed so no keccak
implementation is needed at runtime.
"""

import re
from typing import Any

from .errors import AbiDecodingError, AbiEncodingError

WORD_SIZE = 32
UINT256_MAX = 2**256 - 1

SELECTOR_NAME = "06fdde03"  # name()
SELECTOR_SYMBOL = "95d89b41"  # symbol()
SELECTOR_TOTAL_SUPPLY = "18160ddd"  # totalSupply()
SELECTOR_TOKEN_BY_INDEX = "4f6ccce7"  # tokenByIndex(uint256)
SELECTOR_TOKEN_URI = "c87b56dd"  # tokenURI(uint256)
SELECTOR_OWNER_OF = "6352211e"  # ownerOf(uint256)

# keccak256("Transfer(address,address,uint256)")
TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
ZERO_TOPIC = "0x" + "0" * 64

_HEX_RE = re.compile(r"[0-9a-fA-F]*")
_SELECTOR_RE = re.compile(r"[0-9a-f]{8}")


def strip_hex_prefix(value: str) -> str:
    return value[2:] if value[:2] in ("0x", "0X") else value


def hex_to_bytes(value: Any) -> bytes:
    if not isinstance(value, str):
        raise AbiDecodingError("Result must be a hex string.")
    v = strip_hex_prefix(value.strip())
    if not _HEX_RE.fullmatch(v):
        raise AbiDecodingError("Result must be a hex string.")
    if len(v) % 2 != 0:
        v = "0" + v
    return bytes.fromhex(v)


def encode_uint(value: Any) -> str:
    """Encode a uint256 as one 32-byte big-endian word (64 hex chars, no prefix)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise AbiEncodingError("uint value must be an integer.")
    if value < 0 or value > UINT256_MAX:
        raise AbiEncodingError("uint value out of range.")
    return value.to_bytes(WORD_SIZE, "big").hex()


def encode_call(selector: str, *args: int) -> str:
    """Selector followed by each uint256 argument, 0x-prefixed."""
    normalized = strip_hex_prefix(selector).lower()
    if not _SELECTOR_RE.fullmatch(normalized):
        raise AbiEncodingError("selector must be 4 bytes of hex.")
    return "0x" + normalized + "".join(encode_uint(arg) for arg in args)


def decode_uint(value: Any) -> int:
    """Read the first word of the return data as a big-endian unsigned integer."""
    if not isinstance(value, str):
        raise AbiDecodingError("Result must be a hex string.")
    body = strip_hex_prefix(value.strip())[: WORD_SIZE * 2]
    if not body:
        raise AbiDecodingError("Empty result, nothing to decode.")
    if not _HEX_RE.fullmatch(body):
        raise AbiDecodingError("Result must be a hex string.")
    return int(body, 16)


def decode_address(value: Any) -> str:
    word = decode_uint(value)
    if word >> 160:
        raise AbiDecodingError("Address word has dirty high bits.")
    return "0x" + word.to_bytes(20, "big").hex()


def decode_dynamic_string(value: Any) -> str:
    """
    Decode an ABI-encoded single `string` return value.

    Lenient on purpose: a zero offset is read as the conventional 32, and
    truncated buffers yield whatever bytes are present (possibly "").
    """
    data = hex_to_bytes(value)
    if len(data) < WORD_SIZE:
        return ""

    offset = int.from_bytes(data[:WORD_SIZE], "big")
    if offset == 0:
        offset = WORD_SIZE

    length_end = offset + WORD_SIZE
    if length_end > len(data):
        return ""
    length = int.from_bytes(data[offset:length_end], "big")

    return data[length_end : length_end + length].decode("utf-8", errors="replace")


def topic_to_int(topic: Any) -> int:
    """Indexed uint256 log topic -> int (full width)."""
    if not isinstance(topic, str):
        raise AbiDecodingError("Topic must be a hex string.")
    body = strip_hex_prefix(topic.strip())
    if not body or len(body) > WORD_SIZE * 2 or not _HEX_RE.fullmatch(body):
        raise AbiDecodingError(f"Malformed topic '{topic}'.")
    return int(body, 16)
