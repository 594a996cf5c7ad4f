from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class MintPipelineState(StrEnum):
    IDLE = "idle"
    VALIDATING = "validating"
    UPLOADING_COVER = "uploading_cover"
    UPLOADING_AUDIO = "uploading_audio"
    BUILDING_PAYLOAD = "building_payload"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


class MintRequestBody(BaseModel):
    """Inbound JSON object; presence of required fields is checked by the mint service."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    cover_file_name: str | None = None
    audio_file_name: str | None = None
    owner_address: str | None = None
    song_title: str | None = None
    artist_name: str | None = None
    genre: str | None = None


@dataclass(slots=True, frozen=True)
class MintRequest:
    cover_file_name: str
    audio_file_name: str
    owner_address: str
    song_title: str
    artist_name: str
    genre: str | None = None


@dataclass(slots=True, frozen=True)
class FundingQuote:
    cost_atomic_units: int


@dataclass(slots=True, frozen=True)
class UploadResult:
    url: str
    byte_size: int


@dataclass(slots=True, frozen=True)
class UploadedAssets:
    cover: UploadResult
    audio: UploadResult

    @property
    def cover_url(self) -> str:
        return self.cover.url

    @property
    def audio_url(self) -> str:
        return self.audio.url


class MintAttribute(BaseModel):
    trait_type: str
    value: str


class MintCreator(BaseModel):
    address: str = Field(min_length=1)
    share: int = Field(ge=0, le=100)


class MintPayload(BaseModel):
    name: str
    symbol: str
    owner: str
    description: str
    attributes: list[MintAttribute] = Field(default_factory=list)
    image_url: str
    external_url: str
    royalty_basis_points: int = Field(ge=0, le=10_000)
    creators: list[MintCreator] = Field(min_length=1)

    @model_validator(mode="after")
    def validate_creator_shares(self) -> "MintPayload":
        total = sum(creator.share for creator in self.creators)
        if total != 100:
            raise ValueError(f"Creator shares must sum to 100 (got {total}).")
        return self

    def attribute(self, trait_type: str) -> str | None:
        for item in self.attributes:
            if item.trait_type == trait_type:
                return item.value
        return None

    def to_rpc_params(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "owner": self.owner,
            "description": self.description,
            "attributes": [item.model_dump() for item in self.attributes],
            "imageUrl": self.image_url,
            "externalUrl": self.external_url,
            "sellerFeeBasisPoints": self.royalty_basis_points,
            "creators": [creator.model_dump() for creator in self.creators],
        }


@dataclass(slots=True, frozen=True)
class MintOutcome:
    asset_id: str
    signature: str
    explorer_link: str


class MintSuccessResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: Literal["success"] = "success"
    asset_id: str
    signature: str
    explorer_link: str


class MintErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    message: str


class MintRequestErrorResponse(BaseModel):
    error: str


@dataclass(slots=True)
class MintPipelineTrace:
    """States visited by one pipeline run, in order."""

    states: list[MintPipelineState] = field(default_factory=lambda: [MintPipelineState.IDLE])

    @property
    def current(self) -> MintPipelineState:
        return self.states[-1]
