from __future__ import annotations

import logging
from pathlib import Path
import re
from typing import Callable

from backend.app.models.mint import MintPipelineState, UploadedAssets
from backend.app.services.storage_service import StorageUploadService

logger = logging.getLogger(__name__)


class AssetUploadService:
    def __init__(self, uploader: StorageUploadService, public_dir: Path) -> None:
        self._uploader = uploader
        self._public_dir = Path(public_dir)

    @property
    def public_dir(self) -> Path:
        return self._public_dir

    def resolve_public_path(self, file_name: str) -> Path:
        candidate = file_name.strip()
        if not candidate:
            raise ValueError("Missing asset file name.")
        if "/" in candidate or "\\" in candidate:
            raise ValueError("Invalid asset file name.")
        if not re.fullmatch(r"[A-Za-z0-9._-]{1,255}", candidate) or candidate in {".", ".."}:
            raise ValueError("Invalid asset file name.")

        resolved = (self._public_dir / candidate).resolve()
        try:
            resolved.relative_to(self._public_dir.resolve())
        except ValueError as err:
            raise ValueError("Asset path escapes configured public directory.") from err
        return resolved

    async def upload_assets(
        self,
        cover_path: Path,
        audio_path: Path,
        on_step: Callable[[MintPipelineState], None] | None = None,
    ) -> UploadedAssets:
        # Cover first so progress logs read in a fixed order.
        if on_step is not None:
            on_step(MintPipelineState.UPLOADING_COVER)
        logger.info("Uploading cover image...")
        cover = await self._uploader.upload(cover_path, "Cover Image")

        if on_step is not None:
            on_step(MintPipelineState.UPLOADING_AUDIO)
        logger.info("Uploading audio file...")
        audio = await self._uploader.upload(audio_path, "Audio File")

        return UploadedAssets(cover=cover, audio=audio)
