from __future__ import annotations

import asyncio
import base64
from decimal import Decimal
import json
import logging
import mimetypes
from pathlib import Path
from typing import Any

import base58
import httpx
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from backend.app.services.data_item import build_signed_data_item

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when pricing, funding or uploading against the storage network fails."""


def load_keypair(secret: str) -> Keypair:
    """Parse a base58 secret key or a solana-keygen JSON byte array."""
    raw = secret.strip()
    try:
        if raw.startswith("["):
            secret_bytes = bytes(json.loads(raw))
        else:
            secret_bytes = base58.b58decode(raw)
        if len(secret_bytes) != 64:
            raise ValueError(f"expected 64 secret key bytes, got {len(secret_bytes)}")
        return Keypair.from_bytes(secret_bytes)
    except (TypeError, ValueError) as err:
        raise StorageError("Storage operator key is missing or not a Solana keypair.") from err


class StorageNodeClient:
    """Client for an Irys bundler node paid in SOL.

    The operator keypair never leaves the process: funding transfers and
    upload data items are signed locally and only the signed bytes are sent.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        node_url: str,
        gateway_url: str,
        solana_rpc_url: str,
        token: str,
        operator_key: str,
        token_decimals: int = 9,
        currency_symbol: str = "SOL",
    ) -> None:
        self._http = http_client
        self._node_url = node_url.rstrip("/")
        self._gateway_url = gateway_url.rstrip("/")
        self._solana_rpc_url = solana_rpc_url
        self._token = token
        self._operator_key = operator_key
        self._keypair: Keypair | None = None
        self._token_decimals = token_decimals
        self._currency_symbol = currency_symbol

    @property
    def token(self) -> str:
        return self._token

    @property
    def keypair(self) -> Keypair:
        if self._keypair is None:
            self._keypair = load_keypair(self._operator_key)
        return self._keypair

    @property
    def operator_address(self) -> str:
        return str(self.keypair.pubkey())

    def gateway_url(self, content_id: str) -> str:
        return f"{self._gateway_url}/{content_id}"

    def from_atomic(self, amount: int) -> Decimal:
        return Decimal(amount).scaleb(-self._token_decimals)

    def format_amount(self, amount: int) -> str:
        return f"{self.from_atomic(amount):f} {self._currency_symbol}"

    async def get_price(self, byte_size: int) -> int:
        if byte_size < 0:
            raise StorageError(f"Cannot price a negative byte size ({byte_size}).")
        response = await self._request("GET", f"/price/{self._token}/{byte_size}", step="price query")
        raw = response.text.strip()
        try:
            return self._parse_atomic(raw)
        except ValueError as err:
            raise StorageError(f"Storage price query returned an invalid amount: {raw!r}") from err

    async def get_balance(self) -> int:
        response = await self._request(
            "GET",
            f"/account/balance/{self._token}",
            step="balance query",
            params={"address": self.operator_address},
        )
        body = self._json_object(response, step="balance query")
        try:
            return self._parse_atomic(body.get("balance"))
        except ValueError as err:
            raise StorageError(f"Storage balance query returned an invalid balance: {body!r}") from err

    async def fund(self, amount: int) -> str:
        """Transfer ``amount`` lamports to the node's deposit address and register the transfer."""
        if amount <= 0:
            raise StorageError(f"Funding amount must be positive (got {amount}).")
        keypair = self.keypair
        deposit_address = await self._deposit_address()

        blockhash_result = await self._solana_rpc("getLatestBlockhash", [{"commitment": "confirmed"}])
        try:
            blockhash = Hash.from_string(blockhash_result["value"]["blockhash"])
        except (KeyError, TypeError, ValueError) as err:
            raise StorageError(f"Solana RPC returned an invalid blockhash: {blockhash_result!r}") from err

        instruction = transfer(
            TransferParams(from_pubkey=keypair.pubkey(), to_pubkey=deposit_address, lamports=amount)
        )
        signed = Transaction([keypair], Message([instruction], keypair.pubkey()), blockhash)
        encoded = base64.b64encode(bytes(signed)).decode("ascii")
        tx_id = await self._solana_rpc("sendTransaction", [encoded, {"encoding": "base64"}])
        if not isinstance(tx_id, str) or not tx_id:
            raise StorageError(f"Solana RPC returned no transaction signature: {tx_id!r}")

        await self._request(
            "POST",
            f"/account/balance/{self._token}",
            step="funding",
            json={"tx_id": tx_id},
        )
        logger.debug("Funded storage account %s with %s (tx %s)", keypair.pubkey(), self.format_amount(amount), tx_id)
        return tx_id

    async def upload_file(self, file_path: Path) -> str:
        path = Path(file_path)
        try:
            payload = await asyncio.to_thread(path.read_bytes)
        except OSError as err:
            raise StorageError(f"Unable to read '{path.name}' for upload: {err}") from err

        content_type, _ = mimetypes.guess_type(path.name)
        item = build_signed_data_item(
            self.keypair,
            payload,
            tags=[("Content-Type", content_type or "application/octet-stream")],
        )
        response = await self._request(
            "POST",
            f"/tx/{self._token}",
            step="upload",
            content=item.raw,
            headers={"Content-Type": "application/octet-stream"},
        )
        body = self._json_object(response, step="upload")
        content_id = body.get("id") or item.id
        return str(content_id)

    async def _deposit_address(self) -> Pubkey:
        response = await self._request("GET", "/info", step="node info query")
        body = self._json_object(response, step="node info query")
        addresses = body.get("addresses")
        address = addresses.get(self._token) if isinstance(addresses, dict) else None
        try:
            return Pubkey.from_string(str(address))
        except ValueError as err:
            raise StorageError(f"Storage node has no {self._token} deposit address: {body!r}") from err

    async def _solana_rpc(self, method: str, params: list[Any]) -> Any:
        envelope = {"jsonrpc": "2.0", "id": f"storage-{method}", "method": method, "params": params}
        try:
            response = await self._http.post(self._solana_rpc_url, json=envelope)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as err:
            raise StorageError(f"Solana RPC {method} failed with HTTP {err.response.status_code}") from err
        except httpx.HTTPError as err:
            raise StorageError(f"Solana RPC {method} failed: {err}") from err
        except ValueError as err:
            raise StorageError(f"Solana RPC {method} returned a non-JSON body.") from err

        if not isinstance(body, dict):
            raise StorageError(f"Solana RPC {method} returned an unexpected body: {body!r}")
        if body.get("error") is not None:
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise StorageError(f"Solana RPC {method} returned an error: {message}")
        return body.get("result")

    async def _request(self, method: str, path: str, *, step: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._http.request(method, f"{self._node_url}{path}", **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as err:
            raise StorageError(
                f"Storage {step} failed with HTTP {err.response.status_code}: {err.response.text[:200]}"
            ) from err
        except httpx.HTTPError as err:
            raise StorageError(f"Storage {step} failed: {err}") from err
        return response

    @staticmethod
    def _json_object(response: httpx.Response, *, step: str) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as err:
            raise StorageError(f"Storage {step} returned a non-JSON body.") from err
        if not isinstance(body, dict):
            raise StorageError(f"Storage {step} returned an unexpected body: {body!r}")
        return body

    @staticmethod
    def _parse_atomic(value: Any) -> int:
        if isinstance(value, bool) or value is None:
            raise ValueError("missing amount")
        amount = int(str(value).strip())
        if amount < 0:
            raise ValueError("negative amount")
        return amount
