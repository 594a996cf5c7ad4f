from __future__ import annotations

from backend.app.models.mint import MintAttribute, MintCreator, MintPayload, MintRequest

MINT_SYMBOL = "JFM"
MINT_EXTERNAL_URL = "https://jersey.fm"
DEFAULT_GENRE = "Jersey Club"
ROYALTY_BASIS_POINTS = 1_000
CREATOR_SHARE = 100


def build_mint_payload(request: MintRequest, cover_url: str, audio_url: str) -> MintPayload:
    """Map a validated request and its uploaded asset URLs onto the compressed NFT mint params.

    The cover image is the primary image; the audio URL is carried as the
    ``Audio File`` attribute. The owner is the sole creator.
    """
    return MintPayload(
        name=f"{request.song_title} - {request.artist_name}",
        symbol=MINT_SYMBOL,
        owner=request.owner_address,
        description=f"Jersey Club: {request.song_title} by {request.artist_name}",
        attributes=[
            MintAttribute(trait_type="Artist", value=request.artist_name),
            MintAttribute(trait_type="Song Title", value=request.song_title),
            MintAttribute(trait_type="Genre", value=request.genre or DEFAULT_GENRE),
            MintAttribute(trait_type="Audio File", value=audio_url),
        ],
        image_url=cover_url,
        external_url=MINT_EXTERNAL_URL,
        royalty_basis_points=ROYALTY_BASIS_POINTS,
        creators=[MintCreator(address=request.owner_address, share=CREATOR_SHARE)],
    )
