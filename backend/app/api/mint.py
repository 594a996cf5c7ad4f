from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from backend.app.api.deps import get_mint_service
from backend.app.models.mint import (
    MintErrorResponse,
    MintRequestBody,
    MintRequestErrorResponse,
    MintSuccessResponse,
)
from backend.app.services.mint_service import MintService, MintValidationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["mint"])


@router.post(
    "/mint",
    response_model=MintSuccessResponse,
    responses={
        400: {"model": MintRequestErrorResponse},
        405: {"model": MintRequestErrorResponse},
        500: {"model": MintErrorResponse},
    },
)
async def mint(
    body: MintRequestBody | None = None,
    mint_service: MintService = Depends(get_mint_service),
) -> JSONResponse:
    try:
        outcome = await mint_service.mint(body or MintRequestBody())
    except MintValidationError as err:
        return JSONResponse(
            status_code=400,
            content=MintRequestErrorResponse(error=str(err)).model_dump(),
        )
    except Exception as exc:
        logger.exception("Minting error")
        return JSONResponse(
            status_code=500,
            content=MintErrorResponse(message=str(exc)).model_dump(),
        )

    response = MintSuccessResponse(
        asset_id=outcome.asset_id,
        signature=outcome.signature,
        explorer_link=outcome.explorer_link,
    )
    return JSONResponse(status_code=200, content=response.model_dump(by_alias=True))


@router.api_route("/mint", methods=["GET", "HEAD", "OPTIONS", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def mint_method_not_allowed() -> JSONResponse:
    return JSONResponse(
        status_code=405,
        content=MintRequestErrorResponse(error="Method not allowed").model_dump(),
        headers={"Allow": "POST"},
    )
