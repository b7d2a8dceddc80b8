"""Blob transfer authorized by signed URL parameters.

``uid``, ``blobid`` and ``exp`` are signed together (in that order) with the
gateway secret; ``signature`` carries the hex HMAC. Writes are conditional on
the blob's generation: the client sends the generation it last saw in
``x-goog-if-generation-match`` and receives the new one in
``x-goog-generation``.
"""

from __future__ import annotations

import logging
import re
from typing import Annotated, Optional

from fastapi import APIRouter, Header, HTTPException, Query, Request, Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from blobgate.api.fastapi.deps import GatewayDep, StorageDep
from blobgate.exceptions import (
    BlobGateError,
    BlobNotFoundError,
    GenerationMismatchError,
    SignatureError,
)
from blobgate.gateway import StorageGateway
from blobgate.security.signing import verify_url_params

logger = logging.getLogger(__name__)

GENERATION_HEADER = "x-goog-generation"
GENERATION_MATCH_HEADER = "x-goog-if-generation-match"

ROUTER_TAG = "Blob storage"

router = APIRouter(prefix="/blobstorage")

_GENERATION_RE = re.compile(r"[+-]?[0-9]+")

Uid = Annotated[str, Query()]
BlobId = Annotated[str, Query(alias="blobid")]
Exp = Annotated[str, Query()]
Signature = Annotated[str, Query()]


def _authorize(uid: str, blob_id: str, exp: str, signature: str, gateway: StorageGateway) -> None:
    if not blob_id:
        raise HTTPException(status_code=400, detail="missing blobid")
    try:
        verify_url_params([uid, blob_id, exp], exp, signature, gateway.secret)
    except SignatureError as exc:
        logger.warning("Rejected blob URL for %s/%s: %s", uid, blob_id, exc)
        raise HTTPException(status_code=403) from exc


def _expected_generation(raw: Optional[str], gateway: StorageGateway) -> int:
    if raw is None or raw == "":
        return 0
    logger.info("Client sent generation: %s", raw)
    if _GENERATION_RE.fullmatch(raw.strip()):
        return int(raw)
    if gateway.strict_generation_match:
        logger.warning("Rejecting malformed %s header: %r", GENERATION_MATCH_HEADER, raw)
        raise HTTPException(status_code=400, detail=f"malformed {GENERATION_MATCH_HEADER}")
    logger.warning("Malformed %s header %r, assuming generation 0", GENERATION_MATCH_HEADER, raw)
    return 0


@router.get("")
async def download_blob(
    gateway: GatewayDep,
    storage: StorageDep,
    uid: Uid = "",
    blob_id: BlobId = "",
    exp: Exp = "",
    signature: Signature = "",
) -> StreamingResponse:
    _authorize(uid, blob_id, exp, signature, gateway)
    logger.info("Requesting blob %s", blob_id)

    try:
        reader, generation = await storage.load_blob(uid, blob_id)
    except BlobNotFoundError as exc:
        raise HTTPException(status_code=404) from exc
    except (BlobGateError, OSError) as exc:
        logger.error("Blob download failed for %s/%s", uid, blob_id, exc_info=exc)
        raise HTTPException(status_code=500) from exc

    logger.debug("Sending generation %d for %s/%s", generation, uid, blob_id)
    return StreamingResponse(
        reader,
        media_type="application/octet-stream",
        headers={GENERATION_HEADER: str(generation)},
        background=BackgroundTask(reader.aclose),
    )


@router.put("")
async def upload_blob(
    request: Request,
    response: Response,
    gateway: GatewayDep,
    storage: StorageDep,
    uid: Uid = "",
    blob_id: BlobId = "",
    exp: Exp = "",
    signature: Signature = "",
    if_generation_match: Annotated[Optional[str], Header(alias=GENERATION_MATCH_HEADER)] = None,
) -> dict:
    _authorize(uid, blob_id, exp, signature, gateway)
    expected = _expected_generation(if_generation_match, gateway)

    try:
        new_generation = await storage.store_blob(uid, blob_id, request.stream(), expected)
    except GenerationMismatchError as exc:
        logger.info("Generation mismatch for %s/%s: %s", uid, blob_id, exc)
        raise HTTPException(status_code=412) from exc
    except (BlobGateError, OSError) as exc:
        logger.error("Blob upload failed for %s/%s", uid, blob_id, exc_info=exc)
        raise HTTPException(status_code=500) from exc

    logger.info(
        "Stored blob %s/%s",
        uid,
        blob_id,
        extra={"user_id": uid, "object_id": blob_id, "generation": new_generation},
    )
    response.headers[GENERATION_HEADER] = str(new_generation)
    return {}
