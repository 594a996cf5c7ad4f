from __future__ import annotations

import logging
from pathlib import Path

from backend.app.models.mint import FundingQuote, UploadResult
from backend.app.services.storage_node import StorageError, StorageNodeClient

logger = logging.getLogger(__name__)


class StorageUploadService:
    """Uploads single files, topping up the prepaid storage balance when the quote exceeds it."""

    def __init__(self, node: StorageNodeClient) -> None:
        self._node = node

    async def upload(self, file_path: Path, label: str) -> UploadResult:
        path = Path(file_path)
        try:
            byte_size = path.stat().st_size
        except OSError as err:
            raise StorageError(f"{label} '{path.name}' cannot be read: {err.strerror or err}") from err
        if not path.is_file():
            raise StorageError(f"{label} '{path.name}' is not a regular file.")

        quote = FundingQuote(cost_atomic_units=await self._node.get_price(byte_size))
        logger.info(
            "Uploading %s (%d bytes) costs %s",
            label,
            byte_size,
            self._node.format_amount(quote.cost_atomic_units),
        )

        await self._ensure_funded(quote)

        content_id = await self._node.upload_file(path)
        url = self._node.gateway_url(content_id)
        logger.info("%s uploaded: %s", label, url)
        return UploadResult(url=url, byte_size=byte_size)

    async def _ensure_funded(self, quote: FundingQuote) -> None:
        if quote.cost_atomic_units == 0:
            return
        balance = await self._node.get_balance()
        if balance >= quote.cost_atomic_units:
            logger.debug("Storage balance %d covers quote %d; skipping funding", balance, quote.cost_atomic_units)
            return
        logger.info(
            "Storage balance %s is below quote %s; funding account",
            self._node.format_amount(balance),
            self._node.format_amount(quote.cost_atomic_units),
        )
        await self._node.fund(quote.cost_atomic_units)
