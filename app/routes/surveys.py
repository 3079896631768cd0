"""Survey endpoints: link issuance and public thank-you page data."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_link_builder, get_response_store
from app.logging_config import get_logger
from app.middleware.api_key import verify_api_key
from app.schemas.api import (
    IssuedLinksOut,
    LinkIssueRequest,
    PublicSurveyOut,
    ResponseLinkOut,
)
from app.schemas.survey import SurveyDefinition
from app.services.link_builder import LinkBuilder
from app.services.response_store import ResponseStore, ResponseStoreError

logger = get_logger(__name__)

router = APIRouter()


def load_survey_or_404(store: ResponseStore, survey_id: str) -> SurveyDefinition:
    try:
        survey = store.get_survey(survey_id)
    except ResponseStoreError as e:
        logger.error(f"Survey lookup failed: {e}", extra={"survey_id": survey_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    if survey is None:
        raise HTTPException(status_code=404, detail="Survey not found")
    return survey


@router.post(
    "/api/surveys/{survey_id}/links",
    response_model=IssuedLinksOut,
    dependencies=[Depends(verify_api_key)],
)
def issue_links(
    survey_id: str,
    body: LinkIssueRequest,
    store: Annotated[ResponseStore, Depends(get_response_store)],
    builder: Annotated[LinkBuilder, Depends(get_link_builder)],
) -> IssuedLinksOut:
    """Issue one signed response link per survey option for a recipient.

    Returns:
        IssuedLinksOut: recipient id and the per-option links

    Raises:
        HTTPException(404): Unknown survey
    """
    survey = load_survey_or_404(store, survey_id)
    issued = builder.build(survey, email=body.email, expiration_days=body.expiration_days)
    return IssuedLinksOut(
        survey_id=issued.survey_id,
        recipient_id=issued.recipient_id,
        links=[
            ResponseLinkOut(option_id=link.option_id, label=link.label, emoji=link.emoji, url=link.url)
            for link in issued.links
        ],
    )


@router.get("/api/surveys/{survey_id}/public", response_model=PublicSurveyOut)
def public_survey(
    survey_id: str,
    store: Annotated[ResponseStore, Depends(get_response_store)],
) -> PublicSurveyOut:
    """Only the data the thank-you page needs; no owner or option analytics."""
    survey = load_survey_or_404(store, survey_id)
    return PublicSurveyOut(id=survey.id, title=survey.title, settings=survey.settings)
