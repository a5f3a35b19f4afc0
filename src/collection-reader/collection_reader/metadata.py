import base64
import binascii
import json
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import unquote

import requests
from loguru import logger

from .config import DEFAULT_IPFS_GATEWAY
from .errors import MetadataUnavailable

IMAGE_FIELDS = ("image", "image_url", "image_url_png")
ARWEAVE_GATEWAY = "https://arweave.net"
MAX_METADATA_BYTES = 1024 * 1024
CHUNK_SIZE = 16 * 1024

_DATA_JSON_PREFIXES = ("data:application/json;base64,", "data:application/json;utf8,", "data:application/json,")


def normalize_uri(uri: Optional[str], gateway: str = DEFAULT_IPFS_GATEWAY) -> Optional[str]:
    """Rewrite ipfs:// and ar:// URIs to HTTPS gateway URLs; everything else passes through."""
    if not uri:
        return None
    candidate = uri.strip()
    if not candidate:
        return None
    gateway = gateway.rstrip("/")
    if candidate.startswith("ipfs://ipfs/"):
        return f"{gateway}/{candidate[len('ipfs://'):]}"
    if candidate.startswith("ipfs://"):
        return f"{gateway}/ipfs/{candidate[len('ipfs://'):]}"
    if candidate.startswith("ar://"):
        return f"{ARWEAVE_GATEWAY}/{candidate[len('ar://'):]}"
    return candidate


def _decode_data_uri(uri: str) -> bytes:
    lowered = uri[:40].lower()
    for prefix in _DATA_JSON_PREFIXES:
        if lowered.startswith(prefix):
            payload = uri[len(prefix):]
            if prefix.endswith("base64,"):
                try:
                    return base64.b64decode(payload, validate=False)
                except (binascii.Error, ValueError) as exc:
                    raise MetadataUnavailable("Invalid base64 metadata payload.") from exc
            return unquote(payload).encode("utf-8")
    raise MetadataUnavailable("Unsupported data URI.")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant {name}")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"Number out of range: {text}")
    return value


@dataclass(frozen=True)
class TokenMetadata:
    name: str
    image: Optional[str]
    attributes: Tuple[Any, ...]

    @classmethod
    def from_document(
        cls,
        token_id: int,
        document: Optional[Dict[str, Any]],
        gateway: str = DEFAULT_IPFS_GATEWAY,
    ) -> "TokenMetadata":
        """Absent metadata is normal: the name falls back to #<id> and the image is omitted."""
        if document is None:
            return cls(name=f"#{token_id}", image=None, attributes=())

        name = document.get("name")
        if not isinstance(name, str) or not name:
            name = f"#{token_id}"

        image = None
        for key in IMAGE_FIELDS:
            value = document.get(key)
            if isinstance(value, str) and value.strip():
                image = normalize_uri(value, gateway)
                break

        raw_attributes = document.get("attributes")
        attributes: Tuple[Any, ...] = ()
        if isinstance(raw_attributes, list):
            attributes = tuple(raw_attributes)

        return cls(name=name, image=image, attributes=attributes)


class MetadataResolver:
    """
    Fetch token metadata JSON from tokenURI locations.

    Bodies are streamed: a document larger than `max_bytes`, or one that takes
    longer than `timeout` seconds in total to arrive, counts as unavailable.
    """

    def __init__(
        self,
        gateway: str = DEFAULT_IPFS_GATEWAY,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
        max_bytes: int = MAX_METADATA_BYTES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.gateway = gateway.rstrip("/")
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.clock = clock
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json", "User-Agent": "collection-reader/0.1"})

    def normalize_uri(self, uri: Optional[str]) -> Optional[str]:
        return normalize_uri(uri, self.gateway)

    def fetch(self, uri: Optional[str]) -> Dict[str, Any]:
        url = self.normalize_uri(uri)
        if not url:
            raise MetadataUnavailable("Token has no metadata URI.")

        if url.startswith("data:"):
            raw = _decode_data_uri(url)
            if len(raw) > self.max_bytes:
                raise MetadataUnavailable(f"Inline metadata exceeds {self.max_bytes} bytes.")
        else:
            raw = self._download(url)

        try:
            document = json.loads(
                raw.decode("utf-8", errors="replace"),
                parse_constant=_reject_constant,
                parse_float=_parse_finite_float,
            )
        except ValueError as exc:
            raise MetadataUnavailable(f"Metadata at {url} is not JSON.") from exc
        if not isinstance(document, dict):
            raise MetadataUnavailable(f"Metadata at {url} is not a JSON object.")
        return document

    def _download(self, url: str) -> bytes:
        deadline = self.clock() + self.timeout
        try:
            response = self.session.get(url, timeout=self.timeout, stream=True)
        except requests.RequestException as exc:
            raise MetadataUnavailable(f"Failed to fetch {url}: {exc}") from exc
        try:
            response.raise_for_status()
            chunks = []
            size = 0
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                size += len(chunk)
                if size > self.max_bytes:
                    raise MetadataUnavailable(f"Metadata at {url} exceeds {self.max_bytes} bytes.")
                if self.clock() > deadline:
                    raise MetadataUnavailable(f"Metadata at {url} took longer than {self.timeout}s.")
                chunks.append(chunk)
        except requests.RequestException as exc:
            raise MetadataUnavailable(f"Failed to fetch {url}: {exc}") from exc
        finally:
            response.close()
        return b"".join(chunks)

    def resolve(self, uri: Optional[str]) -> Optional[Dict[str, Any]]:
        """Return the metadata document, or None when it cannot be obtained."""
        try:
            return self.fetch(uri)
        except MetadataUnavailable as exc:
            logger.debug("metadata unavailable: {}", exc)
            return None

    def token_metadata(self, token_id: int, uri: Optional[str]) -> TokenMetadata:
        return TokenMetadata.from_document(token_id, self.resolve(uri), self.gateway)
