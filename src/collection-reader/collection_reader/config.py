import os
from dataclasses import dataclass
from typing import List

DEFAULT_RPC_ETH = "https://cloudflare-eth.com"
DEFAULT_RPC_BASE = "https://mainnet.base.org"
DEFAULT_RPC_POLYGON = "https://polygon-rpc.com"
DEFAULT_IPFS_GATEWAY = "https://ipfs.io"


@dataclass(frozen=True)
class Config:
    rpc_eth: str = DEFAULT_RPC_ETH
    rpc_base: str = DEFAULT_RPC_BASE
    rpc_polygon: str = DEFAULT_RPC_POLYGON
    ipfs_gateway: str = DEFAULT_IPFS_GATEWAY
    request_timeout: float = 10.0
    metadata_timeout: float = 10.0
    max_retries: int = 1
    backoff_seconds: float = 0.5
    scan_time_budget_seconds: float = 60.0
    cors_allow_origins: str = "*"
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()] or ["*"]


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got '{raw}'.") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive.")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got '{raw}'.") from exc


def load_config() -> Config:
    """Load configuration from environment variables."""
    max_retries = _env_int("REQUEST_RETRIES", 1)
    if max_retries < 1:
        raise ValueError("REQUEST_RETRIES must be at least 1.")

    return Config(
        rpc_eth=os.getenv("RPC_ETH", DEFAULT_RPC_ETH).strip(),
        rpc_base=os.getenv("RPC_BASE", DEFAULT_RPC_BASE).strip(),
        rpc_polygon=os.getenv("RPC_POLYGON", DEFAULT_RPC_POLYGON).strip(),
        ipfs_gateway=os.getenv("IPFS_GATEWAY", DEFAULT_IPFS_GATEWAY).strip().rstrip("/"),
        request_timeout=_env_float("REQUEST_TIMEOUT", 10.0),
        metadata_timeout=_env_float("METADATA_TIMEOUT", 10.0),
        max_retries=max_retries,
        backoff_seconds=_env_float("REQUEST_BACKOFF_SECONDS", 0.5),
        scan_time_budget_seconds=_env_float("SCAN_TIME_BUDGET_SECONDS", 60.0),
        cors_allow_origins=os.getenv("CORS_ALLOW_ORIGINS", "*"),
        host=os.getenv("HOST", "127.0.0.1").strip(),
        port=_env_int("PORT", 3000),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )
