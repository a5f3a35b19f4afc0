import itertools
import time
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from .chains import ChainRegistry
from .errors import RpcError, TransportError
from .models import ContractCall, LogFilter

_RETRY_STATUS = {429, 502, 503, 504}


class RpcClient:
    """Minimal JSON-RPC 2.0 client for EVM nodes (HTTP POST), one endpoint per chain."""

    def __init__(
        self,
        registry: ChainRegistry,
        timeout: float = 10,
        max_retries: int = 1,
        backoff_seconds: float = 0.5,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.registry = registry
        self.timeout = timeout
        self.max_retries = max(1, int(max_retries))
        self.backoff_seconds = float(backoff_seconds)
        self.session = session or requests.Session()
        self.session.headers.update(
            {"Content-Type": "application/json", "User-Agent": "collection-reader/0.1"}
        )
        if headers:
            self.session.headers.update(dict(headers))
        self._ids = itertools.count(1)

    def call(self, chain_id: Any, method: str, params: Optional[List[Any]] = None) -> Any:
        endpoint = self.registry.resolve(chain_id)
        if not isinstance(method, str) or not method.strip():
            raise ValueError("method must be a non-empty string.")
        if params is None:
            params = []
        if not isinstance(params, list):
            raise ValueError("params must be a list.")

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        logger.debug("rpc {} on chain {}", method, endpoint.chain_id)

        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.post(
                    endpoint.rpc_url,
                    json=payload,
                    timeout=self.timeout,
                )
                if response.status_code in _RETRY_STATUS and attempt < self.max_retries:
                    time.sleep(self.backoff_seconds * attempt)
                    continue
                response.raise_for_status()
                data = response.json()
            except requests.RequestException as exc:
                if attempt < self.max_retries:
                    logger.debug("rpc {} attempt {} failed: {}", method, attempt, exc)
                    time.sleep(self.backoff_seconds * attempt)
                    continue
                raise TransportError(f"{method} request failed: {exc}") from exc
            except ValueError as exc:
                raise TransportError(f"{method} returned malformed JSON.") from exc
            return self._unwrap(method, data)

        raise TransportError(f"{method} request failed without a response.")

    def _unwrap(self, method: str, data: Any) -> Any:
        if not isinstance(data, dict):
            raise TransportError("Unexpected JSON-RPC response (non-object).")

        error_obj = data.get("error")
        if error_obj:
            if isinstance(error_obj, dict):
                message = error_obj.get("message") or "RPC Error"
                raise RpcError(str(message), code=error_obj.get("code"), data=error_obj.get("data"))
            raise RpcError(str(error_obj))

        if "result" not in data:
            raise TransportError(f"Unexpected JSON-RPC response to {method} (missing result).")
        return data.get("result")

    def eth_call(self, chain_id: Any, to: str, data: str) -> Any:
        call = ContractCall(to=to, data=data)
        return self.call(chain_id, "eth_call", [call.to_param(), "latest"])

    def get_block_number(self, chain_id: Any) -> int:
        result = self.call(chain_id, "eth_blockNumber", [])
        if not isinstance(result, str) or not result.startswith("0x"):
            raise TransportError("eth_blockNumber returned unexpected result.")
        try:
            return int(result, 16)
        except ValueError as exc:
            raise TransportError("eth_blockNumber returned unexpected result.") from exc

    def get_logs(self, chain_id: Any, log_filter: LogFilter) -> List[Dict[str, Any]]:
        result = self.call(chain_id, "eth_getLogs", [log_filter.to_param()])
        if result is None:
            return []
        if not isinstance(result, list):
            raise TransportError("eth_getLogs returned unexpected result.")
        return [entry for entry in result if isinstance(entry, dict)]
