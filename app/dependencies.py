"""FastAPI dependency providers.

The application is wired here once: a single SQL-backed store, token codec
and risk scorer are built from settings and handed to the response intake.
Tests replace any of these through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends

from app.config import get_settings
from app.models.database import get_session_factory
from app.services.link_builder import LinkBuilder
from app.services.response_intake import ResponseIntake
from app.services.response_store import ResponseStore, SqlResponseStore
from app.services.risk_scorer import RiskScorer
from app.services.token_codec import TokenCodec


@lru_cache
def get_response_store() -> ResponseStore:
    return SqlResponseStore(get_session_factory())


@lru_cache
def get_token_codec() -> TokenCodec:
    return TokenCodec()


@lru_cache
def get_risk_scorer() -> RiskScorer:
    return RiskScorer()


def get_response_intake(
    store: ResponseStore = Depends(get_response_store),
    codec: TokenCodec = Depends(get_token_codec),
    scorer: RiskScorer = Depends(get_risk_scorer),
) -> ResponseIntake:
    return ResponseIntake(store, codec, scorer)


def get_link_builder(codec: TokenCodec = Depends(get_token_codec)) -> LinkBuilder:
    return LinkBuilder(codec, get_settings().base_url)
