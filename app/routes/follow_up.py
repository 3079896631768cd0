"""Follow-up question answers posted from the thank-you page."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_response_store
from app.logging_config import get_logger
from app.schemas.api import FollowUpCreated, FollowUpRequest
from app.services.response_store import ResponseStore, ResponseStoreError

logger = get_logger(__name__)

router = APIRouter()


@router.post("/api/follow-up-responses", response_model=FollowUpCreated)
def create_follow_up_response(
    body: FollowUpRequest,
    store: Annotated[ResponseStore, Depends(get_response_store)],
) -> FollowUpCreated:
    """Store a free-text follow-up answer.

    Raises:
        HTTPException(400): Missing survey id or blank response
        HTTPException(500): Storage failure
    """
    text = body.response.strip()
    if not body.survey_id or not text:
        raise HTTPException(status_code=400, detail="Survey ID and response are required")

    try:
        follow_up_id = store.add_follow_up_response(
            body.survey_id, text, body.original_response or None
        )
    except ResponseStoreError as e:
        logger.error(f"Follow-up response error: {e}", extra={"survey_id": body.survey_id})
        raise HTTPException(status_code=500, detail="Failed to save follow-up response")

    logger.info("Stored follow-up response", extra={"survey_id": body.survey_id})
    return FollowUpCreated(id=follow_up_id)
