from __future__ import annotations

import argparse
import os
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import mint
from backend.app.core.config import Settings, get_settings
from backend.app.core.container import AppContainer
from backend.app.core.logging import configure_logging
from backend.app.services.asset_upload_service import AssetUploadService
from backend.app.services.mint_rpc_service import MintRpcService
from backend.app.services.mint_service import MintService
from backend.app.services.storage_node import StorageNodeClient
from backend.app.services.storage_service import StorageUploadService


def _build_container(settings: Settings, http_transport: httpx.AsyncBaseTransport | None = None) -> AppContainer:
    settings.public_dir.mkdir(parents=True, exist_ok=True)

    http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds, transport=http_transport)
    storage_node = StorageNodeClient(
        http_client=http_client,
        node_url=settings.storage_node_url,
        gateway_url=settings.storage_gateway_url,
        solana_rpc_url=settings.solana_rpc_url,
        token=settings.storage_token,
        operator_key=settings.storage_private_key.get_secret_value(),
        token_decimals=settings.storage_token_decimals,
        currency_symbol=settings.storage_currency_symbol,
    )
    storage_upload_service = StorageUploadService(node=storage_node)
    asset_upload_service = AssetUploadService(uploader=storage_upload_service, public_dir=settings.public_dir)
    mint_rpc_service = MintRpcService(
        http_client=http_client,
        rpc_url=settings.mint_rpc_url,
        explorer_tx_url=settings.explorer_tx_url,
        explorer_network=settings.explorer_network,
    )
    mint_service = MintService(asset_upload_service=asset_upload_service, mint_rpc_service=mint_rpc_service)

    return AppContainer(
        settings=settings,
        http_client=http_client,
        storage_node=storage_node,
        storage_upload_service=storage_upload_service,
        asset_upload_service=asset_upload_service,
        mint_rpc_service=mint_rpc_service,
        mint_service=mint_service,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.debug)

    container = _build_container(settings, http_transport=app.state.http_transport)
    app.state.container = container
    try:
        yield
    finally:
        await container.http_client.aclose()


def create_app(http_transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.http_transport = http_transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(mint.router, prefix=settings.api_prefix)

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {
            "status": "ok",
            "storage_node": settings.storage_node_url,
            "storage_token": settings.storage_token,
            "explorer_network": settings.explorer_network,
        }

    return app


app = create_app()


def run() -> None:
    parser = argparse.ArgumentParser(description="Run the JerseyFM mint backend")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="info")
    parser.add_argument("--reload", action=argparse.BooleanOptionalAction, default=True)
    parser.add_argument("--access-log", action=argparse.BooleanOptionalAction, default=True)
    parser.add_argument("--debug", action=argparse.BooleanOptionalAction, default=None)
    args = parser.parse_args()

    if args.debug is True:
        os.environ["JERSEYFM_DEBUG"] = "1"
    elif args.debug is False:
        os.environ["JERSEYFM_DEBUG"] = "0"

    get_settings.cache_clear()
    globals()["app"] = create_app()

    uvicorn.run(
        "backend.app.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        access_log=args.access_log,
    )


if __name__ == "__main__":
    run()
