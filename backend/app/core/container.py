from __future__ import annotations

from dataclasses import dataclass

import httpx

from backend.app.core.config import Settings
from backend.app.services.asset_upload_service import AssetUploadService
from backend.app.services.mint_rpc_service import MintRpcService
from backend.app.services.mint_service import MintService
from backend.app.services.storage_node import StorageNodeClient
from backend.app.services.storage_service import StorageUploadService


@dataclass(slots=True)
class AppContainer:
    settings: Settings
    http_client: httpx.AsyncClient
    storage_node: StorageNodeClient
    storage_upload_service: StorageUploadService
    asset_upload_service: AssetUploadService
    mint_rpc_service: MintRpcService
    mint_service: MintService
