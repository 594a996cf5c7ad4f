from __future__ import annotations

import base64
from dataclasses import dataclass
import hashlib
import struct

from solders.keypair import Keypair

# ANS-104 signature type for ed25519 keys (Solana wallets).
ED25519_SIGNATURE_TYPE = 2
ED25519_SIGNATURE_LENGTH = 64
ED25519_OWNER_LENGTH = 32


@dataclass(slots=True, frozen=True)
class SignedDataItem:
    id: str
    raw: bytes
    signature: bytes
    owner: bytes


def deep_hash(data: bytes | list) -> bytes:
    """Arweave deep hash (SHA-384) over a blob or a nested list of blobs."""
    if isinstance(data, list):
        accumulator = hashlib.sha384(b"list" + str(len(data)).encode()).digest()
        for chunk in data:
            accumulator = hashlib.sha384(accumulator + deep_hash(chunk)).digest()
        return accumulator

    tag = hashlib.sha384(b"blob" + str(len(data)).encode()).digest()
    return hashlib.sha384(tag + hashlib.sha384(data).digest()).digest()


def _zigzag_varint(value: int) -> bytes:
    encoded = (value << 1) ^ (value >> 63)
    out = bytearray()
    while True:
        byte = encoded & 0x7F
        encoded >>= 7
        if encoded:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _avro_bytes(value: bytes) -> bytes:
    return _zigzag_varint(len(value)) + value


def encode_tags(tags: list[tuple[str, str]]) -> bytes:
    """Avro-encode ``[{name, value}]`` tags as a single array block."""
    if not tags:
        return b""
    body = bytearray(_zigzag_varint(len(tags)))
    for name, value in tags:
        body += _avro_bytes(name.encode("utf-8"))
        body += _avro_bytes(value.encode("utf-8"))
    body += _zigzag_varint(0)
    return bytes(body)


def signature_data(owner: bytes, tags_bytes: bytes, data: bytes) -> bytes:
    return deep_hash(
        [
            b"dataitem",
            b"1",
            str(ED25519_SIGNATURE_TYPE).encode(),
            owner,
            b"",
            b"",
            tags_bytes,
            data,
        ]
    )


def build_signed_data_item(keypair: Keypair, data: bytes, tags: list[tuple[str, str]]) -> SignedDataItem:
    owner = bytes(keypair.pubkey())
    tags_bytes = encode_tags(tags)
    signature = bytes(keypair.sign_message(signature_data(owner, tags_bytes, data)))

    raw = b"".join(
        [
            struct.pack("<H", ED25519_SIGNATURE_TYPE),
            signature,
            owner,
            b"\x00",  # no target
            b"\x00",  # no anchor
            struct.pack("<Q", len(tags)),
            struct.pack("<Q", len(tags_bytes)),
            tags_bytes,
            data,
        ]
    )
    item_id = base64.urlsafe_b64encode(hashlib.sha256(signature).digest()).rstrip(b"=").decode("ascii")
    return SignedDataItem(id=item_id, raw=raw, signature=signature, owner=owner)
