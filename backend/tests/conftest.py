from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Any, Callable

import base58
import httpx
import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.transaction import Transaction

from backend.app.core.config import get_settings
from backend.app.services.asset_upload_service import AssetUploadService
from backend.app.services.mint_rpc_service import MintRpcService
from backend.app.services.mint_service import MintService
from backend.app.services.storage_node import StorageNodeClient
from backend.app.services.storage_service import StorageUploadService

NODE_URL = "https://node.test"
GATEWAY_URL = "https://gateway.test"
RPC_URL = "https://rpc.test/?api-key=test-key"
SOLANA_RPC_URL = "https://solana.test"
OPERATOR_KEYPAIR = Keypair()
OPERATOR_KEY = base58.b58encode(bytes(OPERATOR_KEYPAIR)).decode("ascii")
OPERATOR_ADDRESS = str(OPERATOR_KEYPAIR.pubkey())
DEPOSIT_ADDRESS = str(Keypair().pubkey())

COVER_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 56
AUDIO_BYTES = b"RIFF" + b"\x00" * 124


class FakeNetwork:
    """Storage node, gateway and mint RPC behind one httpx.MockTransport."""

    def __init__(
        self,
        *,
        price: int = 5_000,
        balance: int = 0,
        failing_uploads: set[int] | None = None,
        rpc_status: int = 200,
        rpc_body: Any = None,
    ) -> None:
        self.price = price
        self.balance = balance
        self.failing_uploads = failing_uploads or set()
        self.rpc_status = rpc_status
        self.rpc_body = (
            rpc_body
            if rpc_body is not None
            else {"jsonrpc": "2.0", "id": "mint-jerseyfm", "result": {"assetId": "A1", "signature": "S1", "minted": True}}
        )
        self.requests: list[httpx.Request] = []
        self.upload_count = 0
        self.uploaded_items: list[bytes] = []
        self.transfers: list[Transaction] = []
        self.pending_transfers: dict[str, int] = {}
        self.funded: list[int] = []

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @property
    def calls(self) -> list[str]:
        return [f"{request.method} {request.url.host}{request.url.path}" for request in self.requests]

    @property
    def rpc_requests(self) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.host == "rpc.test"]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        path = request.url.path

        if host == "node.test":
            if request.method == "GET" and path.startswith("/price/solana/"):
                return httpx.Response(200, text=str(self.price))
            if request.method == "GET" and path == "/account/balance/solana":
                return httpx.Response(200, json={"balance": str(self.balance)})
            if request.method == "GET" and path == "/info":
                return httpx.Response(200, json={"version": "1.0.0", "addresses": {"solana": DEPOSIT_ADDRESS}})
            if request.method == "POST" and path == "/account/balance/solana":
                tx_id = json.loads(request.content)["tx_id"]
                amount = self.pending_transfers.pop(tx_id, None)
                if amount is None:
                    return httpx.Response(400, text="unknown transaction")
                self.funded.append(amount)
                self.balance += amount
                return httpx.Response(200, json={"confirmed": True})
            if request.method == "POST" and path == "/tx/solana":
                self.upload_count += 1
                self.uploaded_items.append(request.content)
                if self.upload_count in self.failing_uploads:
                    return httpx.Response(500, text="bundler unavailable")
                return httpx.Response(200, json={"id": f"U{self.upload_count}"})

        if host == "solana.test" and request.method == "POST":
            return self._handle_solana_rpc(json.loads(request.content))

        if host == "rpc.test" and request.method == "POST":
            if isinstance(self.rpc_body, (dict, list)):
                return httpx.Response(self.rpc_status, json=self.rpc_body)
            return httpx.Response(self.rpc_status, text=str(self.rpc_body))

        return httpx.Response(404, text="not found")

    def _handle_solana_rpc(self, envelope: dict[str, Any]) -> httpx.Response:
        method = envelope["method"]
        if method == "getLatestBlockhash":
            result: Any = {"context": {"slot": 1}, "value": {"blockhash": str(Hash.new_unique()), "lastValidBlockHeight": 10}}
        elif method == "sendTransaction":
            transaction = Transaction.from_bytes(base64.b64decode(envelope["params"][0]))
            transaction.verify()
            self.transfers.append(transaction)
            # System program transfer data: u32 instruction index, then u64 lamports.
            lamports = int.from_bytes(bytes(transaction.message.instructions[0].data)[4:12], "little")
            result = str(transaction.signatures[0])
            self.pending_transfers[result] = lamports
        else:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": envelope["id"], "error": {"message": "unknown method"}})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": envelope["id"], "result": result})


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "public"
    directory.mkdir()
    (directory / "cover-1.png").write_bytes(COVER_BYTES)
    (directory / "audio-1.wav").write_bytes(AUDIO_BYTES)
    return directory


@pytest.fixture
def mint_env(public_dir: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("JERSEYFM_PUBLIC_DIR", str(public_dir))
    monkeypatch.setenv("JERSEYFM_STORAGE_NODE_URL", NODE_URL)
    monkeypatch.setenv("JERSEYFM_STORAGE_GATEWAY_URL", GATEWAY_URL)
    monkeypatch.setenv("JERSEYFM_SOLANA_RPC_URL", SOLANA_RPC_URL)
    monkeypatch.setenv("JERSEYFM_STORAGE_PRIVATE_KEY", OPERATOR_KEY)
    monkeypatch.setenv("JERSEYFM_MINT_RPC_URL", RPC_URL)
    get_settings.cache_clear()
    yield public_dir
    get_settings.cache_clear()


def build_storage_node(http_client: httpx.AsyncClient) -> StorageNodeClient:
    return StorageNodeClient(
        http_client=http_client,
        node_url=NODE_URL,
        gateway_url=GATEWAY_URL,
        token="solana",
        solana_rpc_url=SOLANA_RPC_URL,
        operator_key=OPERATOR_KEY,
    )


def build_mint_rpc_service(http_client: httpx.AsyncClient) -> MintRpcService:
    return MintRpcService(
        http_client=http_client,
        rpc_url=RPC_URL,
        explorer_tx_url="https://xray.helius.xyz/tx",
        explorer_network="mainnet",
    )


@pytest.fixture
def make_mint_service(public_dir: Path) -> Callable[[httpx.AsyncClient], MintService]:
    def factory(http_client: httpx.AsyncClient) -> MintService:
        uploader = StorageUploadService(node=build_storage_node(http_client))
        return MintService(
            asset_upload_service=AssetUploadService(uploader=uploader, public_dir=public_dir),
            mint_rpc_service=build_mint_rpc_service(http_client),
        )

    return factory


@pytest.fixture
def make_network() -> Callable[..., FakeNetwork]:
    return FakeNetwork


@pytest.fixture
def make_storage_node() -> Callable[[httpx.AsyncClient], StorageNodeClient]:
    return build_storage_node


@pytest.fixture
def make_mint_rpc_service() -> Callable[[httpx.AsyncClient], MintRpcService]:
    return build_mint_rpc_service


@pytest.fixture
def operator_secret() -> dict[str, Any]:
    return {"key": OPERATOR_KEY, "secret_bytes": bytes(OPERATOR_KEYPAIR)[:32], "address": OPERATOR_ADDRESS}
