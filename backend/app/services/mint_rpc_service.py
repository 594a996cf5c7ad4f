from __future__ import annotations

import logging
from typing import Any

import httpx

from backend.app.models.mint import MintOutcome, MintPayload

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
MINT_RPC_REQUEST_ID = "mint-jerseyfm"
MINT_RPC_METHOD = "mintCompressedNft"


class MintRpcError(Exception):
    """Raised when the mint RPC cannot be reached or its response carries no usable result."""


class MintRpcService:
    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        rpc_url: str,
        explorer_tx_url: str,
        explorer_network: str,
    ) -> None:
        self._http = http_client
        self._rpc_url = rpc_url
        self._explorer_tx_url = explorer_tx_url.rstrip("/")
        self._explorer_network = explorer_network

    def explorer_link(self, signature: str) -> str:
        return f"{self._explorer_tx_url}/{signature}?network={self._explorer_network}"

    async def submit_mint(self, payload: MintPayload) -> MintOutcome:
        envelope = {
            "jsonrpc": JSONRPC_VERSION,
            "id": MINT_RPC_REQUEST_ID,
            "method": MINT_RPC_METHOD,
            "params": payload.to_rpc_params(),
        }

        try:
            response = await self._http.post(self._rpc_url, json=envelope)
            response.raise_for_status()
        except httpx.HTTPStatusError as err:
            raise MintRpcError(
                f"Mint RPC failed with HTTP {err.response.status_code}: {err.response.text[:200]}"
            ) from err
        except httpx.HTTPError as err:
            raise MintRpcError(f"Mint RPC request failed: {err}") from err

        result = self._extract_result(response)
        asset_id = result.get("assetId")
        signature = result.get("signature")
        if not isinstance(signature, str) or not signature:
            raise MintRpcError(f"Mint RPC result missing signature: {result!r}")
        if not isinstance(asset_id, str) or not asset_id:
            raise MintRpcError(f"Mint RPC result missing assetId: {result!r}")

        explorer_link = self.explorer_link(signature)
        logger.info("View transaction: %s", explorer_link)
        return MintOutcome(asset_id=asset_id, signature=signature, explorer_link=explorer_link)

    @staticmethod
    def _extract_result(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as err:
            raise MintRpcError("Mint RPC returned a non-JSON body.") from err
        if not isinstance(body, dict):
            raise MintRpcError(f"Mint RPC returned an unexpected body: {body!r}")

        error = body.get("error")
        if error is not None:
            message = error.get("message") if isinstance(error, dict) else error
            raise MintRpcError(f"Mint RPC returned an error: {message}")

        result = body.get("result")
        if not isinstance(result, dict):
            raise MintRpcError("Mint RPC response has no result object.")
        return result
