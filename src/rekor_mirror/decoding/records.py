"""Pydantic models for the Rekor wire formats this package reads.

Only the fields the mirror needs are declared; everything else in the
payloads is ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, TypeAdapter


class RekorLogEntry(BaseModel):
    """Value side of a `GET /api/v1/log/entries/{uuid}` response."""

    body: str
    integratedTime: int | None = None
    logID: str
    logIndex: int | None = None


# `{uuid: entry}`; Rekor keys the object by the full entry UUID.
LogEntryResponse = TypeAdapter(dict[str, RekorLogEntry])

# `POST /api/v1/index/retrieve` returns a bare JSON array of UUIDs.
IndexResponse = TypeAdapter(list[str])


class PublicKey(BaseModel):
    content: str  # base64 of the PEM text


class Signature(BaseModel):
    publicKey: PublicKey


class HashedRekordSpec(BaseModel):
    signature: Signature


class HashedRekord(BaseModel):
    """Decoded body of a `hashedrekord` entry."""

    apiVersion: str | None = None
    kind: str | None = None
    spec: HashedRekordSpec
