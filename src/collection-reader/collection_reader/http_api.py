"""
HTTP JSON API for on-chain collection reads.

Query parameters are accepted as raw strings and normalized by the service, so
malformed numbers fall back to defaults instead of producing framework 422s.
"""

from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .config import Config, load_config
from .errors import ContractReadError, InvalidAddress, UnsupportedChain
from .service import CollectionService


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(service: Optional[CollectionService] = None, config: Optional[Config] = None) -> FastAPI:
    if service is None:
        service = CollectionService(config or load_config())
    config = service.config

    app = FastAPI(title="collection-reader API")
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "HEAD", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def _json_headers(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-cache"
            response.headers["X-Content-Type-Options"] = "nosniff"
        return response

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/api/evm/chains")
    def chains() -> dict:
        return {"chains": service.list_chains()}

    @app.get("/api/evm/collection/info")
    def collection_info(
        address: Optional[str] = Query(None),
        chainId: Optional[str] = Query(None),
    ):
        try:
            return service.collection_info(address, chainId)
        except UnsupportedChain:
            return _error(400, "Unsupported chainId")
        except InvalidAddress:
            return _error(400, "Invalid address")
        except ContractReadError:
            return _error(500, "Failed to read contract")

    @app.get("/api/evm/collection/tokens")
    def collection_tokens(
        address: Optional[str] = Query(None),
        chainId: Optional[str] = Query(None),
        start: Optional[str] = Query(None),
        limit: Optional[str] = Query(None),
        scan: Optional[str] = Query(None),
        window: Optional[str] = Query(None),
        maxBack: Optional[str] = Query(None),
    ):
        try:
            return service.collection_tokens(
                address,
                chainId,
                start=start,
                limit=limit,
                scan=scan,
                window=window,
                max_back=maxBack,
            )
        except UnsupportedChain:
            return _error(400, "Unsupported chainId")
        except InvalidAddress:
            return _error(400, "Invalid address")
        except ContractReadError:
            logger.exception("token listing failed for {} on chain {}", address, chainId)
            return _error(500, "Failed to enumerate tokens")

    return app
