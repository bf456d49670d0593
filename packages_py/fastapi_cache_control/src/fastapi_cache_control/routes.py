"""Invalidation endpoint for hosts that report content saves over HTTP."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from cache_control_policy import (
    ContentMutationEvent,
    InvalidationTrigger,
    TokenStoreUnavailable,
)

logger = logging.getLogger(__name__)


class InvalidationRequest(BaseModel):
    """Optional description of the save that triggered the call."""

    is_draft: bool = False
    is_revision: bool = False
    propagating: bool = False
    resaving: bool = False
    source: Optional[str] = None


class InvalidationResponse(BaseModel):
    invalidated: bool


def create_invalidation_router(
    trigger: InvalidationTrigger,
    prefix: str = "/cache-control",
) -> APIRouter:
    """Create a router exposing POST {prefix}/invalidate."""
    router = APIRouter(prefix=prefix, tags=["cache-control"])

    @router.post("/invalidate", response_model=InvalidationResponse)
    async def invalidate(body: Optional[InvalidationRequest] = None) -> InvalidationResponse:
        """Rotate the revalidation token so every cached entity tag goes stale."""
        event = ContentMutationEvent(**body.model_dump()) if body else ContentMutationEvent()
        try:
            token = await trigger.handle(event)
        except TokenStoreUnavailable as e:
            logger.error(f"invalidate: token store unavailable: {e}")
            raise HTTPException(status_code=503, detail="Token store unavailable") from e
        return InvalidationResponse(invalidated=token is not None)

    return router
