"""Whole-document transfer authorized by a storage token.

The token in the path is a JWT whose audience must be ``storage``; its
``UserID``/``DocumentID`` claims address the document. Any token problem is a
client error (400) and never reaches the backend.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from blobgate.api.fastapi.deps import GatewayDep, StorageDep
from blobgate.auth.claims import StorageClaim, extract_storage_claim
from blobgate.exceptions import BlobGateError, ClaimError, DocumentNotFoundError
from blobgate.gateway import StorageGateway

logger = logging.getLogger(__name__)

ROUTER_TAG = "Storage"

router = APIRouter(prefix="/storage")


def _claim_or_400(token: str, gateway: StorageGateway) -> StorageClaim:
    try:
        return extract_storage_claim(token, gateway.claims)
    except ClaimError as exc:
        logger.warning("Rejected storage token: %s", exc)
        raise HTTPException(status_code=400, detail="invalid storage token") from exc


@router.put("/{token}")
async def upload_document(
    token: str,
    request: Request,
    gateway: GatewayDep,
    storage: StorageDep,
) -> dict:
    claim = _claim_or_400(token, gateway)
    logger.debug("Uploading document %s for user %s", claim.document_id, claim.user_id)

    try:
        await storage.store_document(claim.user_id, claim.document_id, request.stream())
    except (BlobGateError, OSError) as exc:
        logger.error("Document upload failed for %s/%s", claim.user_id, claim.document_id, exc_info=exc)
        raise HTTPException(status_code=500) from exc

    return {}


@router.get("/{token}")
async def download_document(
    token: str,
    gateway: GatewayDep,
    storage: StorageDep,
) -> StreamingResponse:
    claim = _claim_or_400(token, gateway)
    logger.info("Requesting document %s", claim.document_id)

    try:
        reader = await storage.get_document(claim.user_id, claim.document_id)
    except DocumentNotFoundError as exc:
        if gateway.uniform_not_found:
            logger.info("Document %s not found for user %s", claim.document_id, claim.user_id)
            raise HTTPException(status_code=404) from exc
        logger.error("Document %s not found for user %s", claim.document_id, claim.user_id)
        raise HTTPException(status_code=500) from exc
    except (BlobGateError, OSError) as exc:
        logger.error("Document download failed for %s/%s", claim.user_id, claim.document_id, exc_info=exc)
        raise HTTPException(status_code=500) from exc

    return StreamingResponse(
        reader,
        media_type="application/octet-stream",
        background=BackgroundTask(reader.aclose),
    )
