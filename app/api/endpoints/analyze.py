from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
from loguru import logger

from app.core.config import settings
from app.core.exceptions import BatchValidationError, PaymentRequiredError, PersistenceError
from app.core.security import bearer_token, redact_token
from app.models.payment import PaymentTier
from app.models.response import AnalysisOptions, AnalysisResponse, HistoryEntry
from app.services.container import get_recommendation_service
from app.services.recommendation_service import MultiImageRecommendationService
from app.services.tier_gate import PRICING_TIERS

router = APIRouter(prefix="/analyze", tags=["analyze"])


def resolve_identity(authorization: str | None, user_id: str | None) -> str | None:
    """Bearer token wins over the form field; blank values mean anonymous."""
    return bearer_token(authorization) or (user_id or "").strip() or None


@router.post("", response_model=AnalysisResponse)
async def analyze_images(
    images: list[UploadFile] | None = File(default=None),
    user_id: str | None = Form(default=None),
    limit: int = Form(default=settings.DEFAULT_RECOMMENDATION_LIMIT, ge=1, le=100),
    include_korean: bool = Form(default=True),
    include_student_art: bool = Form(default=False),
    include_international: bool = Form(default=True),
    authorization: str | None = Header(default=None),
    service: MultiImageRecommendationService = Depends(get_recommendation_service),
):
    identity = resolve_identity(authorization, user_id)
    options = AnalysisOptions(
        limit=limit,
        include_korean=include_korean,
        include_student_art=include_student_art,
        include_international=include_international,
    )

    try:
        payloads = [await image.read() for image in images or []]
        return await service.analyze(identity, payloads, options)
    except BatchValidationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except PaymentRequiredError as e:
        tier: PaymentTier = e.tier
        return JSONResponse(
            status_code=402,
            content={
                "detail": e.message,
                "tier": tier.model_dump(),
                "payment_url": e.payment_url,
            },
        )
    except Exception as e:
        logger.exception(f"[{redact_token(identity)}] Analysis failed: {e}")
        raise HTTPException(status_code=500, detail="Analysis failed") from e


@router.get("/history", response_model=list[HistoryEntry])
async def analysis_history(
    user_id: str | None = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
    authorization: str | None = Header(default=None),
    service: MultiImageRecommendationService = Depends(get_recommendation_service),
):
    identity = resolve_identity(authorization, user_id)
    if not identity:
        raise HTTPException(status_code=401, detail="Identity required to read history")
    try:
        return await service.history(identity, limit)
    except PersistenceError as e:
        logger.error(f"[{redact_token(identity)}] History lookup failed: {e}")
        raise HTTPException(status_code=503, detail="History temporarily unavailable") from e


@router.get("/tiers", response_model=list[PaymentTier])
async def pricing_tiers():
    return list(PRICING_TIERS)
