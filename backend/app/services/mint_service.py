from __future__ import annotations

import logging
from typing import Callable

from backend.app.models.mint import (
    MintOutcome,
    MintPipelineState,
    MintPipelineTrace,
    MintRequest,
    MintRequestBody,
)
from backend.app.services.asset_upload_service import AssetUploadService
from backend.app.services.mint_payload_builder import build_mint_payload
from backend.app.services.mint_rpc_service import MintRpcService

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields"
INVALID_FILE_NAME_MESSAGE = "Invalid asset file name"

REQUIRED_FIELDS = ("cover_file_name", "audio_file_name", "owner_address", "song_title", "artist_name")

StateListener = Callable[[MintPipelineState], None]


class MintValidationError(Exception):
    pass


class MintService:
    """Runs one upload-then-mint pipeline per request.

    Steps are strictly sequential and any failure leaves the run in
    ``FAILED`` without touching the remaining steps. Nothing is rolled back:
    a cover that was already paid for and stored stays stored.
    """

    def __init__(self, asset_upload_service: AssetUploadService, mint_rpc_service: MintRpcService) -> None:
        self._assets = asset_upload_service
        self._mint_rpc = mint_rpc_service

    def validate(self, body: MintRequestBody) -> MintRequest:
        if any(not getattr(body, name) for name in REQUIRED_FIELDS):
            raise MintValidationError(MISSING_FIELDS_MESSAGE)
        return MintRequest(
            cover_file_name=body.cover_file_name,
            audio_file_name=body.audio_file_name,
            owner_address=body.owner_address,
            song_title=body.song_title,
            artist_name=body.artist_name,
            genre=body.genre or None,
        )

    async def mint(self, body: MintRequestBody, on_state: StateListener | None = None) -> MintOutcome:
        trace = MintPipelineTrace()

        def advance(state: MintPipelineState) -> None:
            logger.debug("Mint pipeline %s -> %s", trace.current, state)
            trace.states.append(state)
            if on_state is not None:
                on_state(state)

        try:
            advance(MintPipelineState.VALIDATING)
            request = self.validate(body)
            try:
                cover_path = self._assets.resolve_public_path(request.cover_file_name)
                audio_path = self._assets.resolve_public_path(request.audio_file_name)
            except ValueError as err:
                raise MintValidationError(INVALID_FILE_NAME_MESSAGE) from err
            logger.info("Starting mint process for: %s by %s", request.song_title, request.artist_name)

            assets = await self._assets.upload_assets(cover_path, audio_path, on_step=advance)

            advance(MintPipelineState.BUILDING_PAYLOAD)
            payload = build_mint_payload(request, assets.cover_url, assets.audio_url)

            advance(MintPipelineState.SUBMITTING)
            logger.info("Minting compressed NFT...")
            outcome = await self._mint_rpc.submit_mint(payload)
        except Exception:
            advance(MintPipelineState.FAILED)
            raise

        advance(MintPipelineState.SUCCESS)
        return outcome
