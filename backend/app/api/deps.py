from __future__ import annotations

from fastapi import Depends, Request

from backend.app.core.container import AppContainer
from backend.app.services.mint_service import MintService


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_mint_service(container: AppContainer = Depends(get_container)) -> MintService:
    return container.mint_service
