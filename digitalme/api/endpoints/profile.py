from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import Field, ValidationError

from digitalme.core.constants import ANALYSIS_ERROR_CODE, RATE_LIMITED_CODE, VALIDATION_ERROR_CODE
from digitalme.core.security import redact_identifier
from digitalme.models.base import CamelModel
from digitalme.models.profile import StyleProfile, migrate_profile
from digitalme.models.style import SourceReading
from digitalme.services.profile.builder import ProfileBuilder
from digitalme.services.profile_store import profile_store
from digitalme.services.rate_limiter import RateLimiter
from digitalme.services.refinement.service import refiner_service
from digitalme.services.refinement.validation import validate_refine_request

router = APIRouter(prefix="/api/profile", tags=["profile"])

rate_limiter = RateLimiter()
profile_builder = ProfileBuilder()


class BuildProfileRequest(CamelModel):
    user_id: str = Field(min_length=1, description="Owner of the profile")
    readings: list[SourceReading] = Field(default_factory=list, description="One reading per connected source")


class RecalculateProfileRequest(CamelModel):
    current_profile: StyleProfile
    readings: list[SourceReading] = Field(default_factory=list)


class LearningToggleRequest(CamelModel):
    enabled: bool


def _error(
    status_code: int, error: str, message: str, code: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "message": message, "code": code},
        headers=headers,
    )


def _rate_limit_key(body: Any, request: Request) -> str:
    if isinstance(body, dict) and isinstance(body.get("currentProfile"), dict):
        user_id = body["currentProfile"].get("userId")
        if isinstance(user_id, str) and user_id:
            return user_id
    return request.client.host if request.client else "anonymous"


@router.post("/refine")
async def refine_profile(request: Request) -> JSONResponse:
    """Fold a batch of conversation messages into the submitted profile."""
    try:
        body = await request.json()
    except ValueError:
        body = None

    key = _rate_limit_key(body, request)
    allowed = rate_limiter.hit(key)
    limit_headers = {
        "X-RateLimit-Limit": str(rate_limiter.max_requests),
        "X-RateLimit-Remaining": str(rate_limiter.remaining(key)),
    }
    if not allowed:
        return _error(
            429,
            "rate_limit_exceeded",
            f"Too many refinement requests. Limit is {rate_limiter.max_requests} per hour.",
            RATE_LIMITED_CODE,
            limit_headers,
        )

    problem = validate_refine_request(body)
    if problem is None:
        try:
            profile = migrate_profile(StyleProfile.model_validate(body["currentProfile"]))
        except ValidationError as e:
            problem = f"currentProfile is malformed: {e.error_count()} error(s)"
    if problem is not None:
        logger.warning(f"Rejected refinement request: {problem}")
        return _error(400, "validation_error", problem, VALIDATION_ERROR_CODE, limit_headers)

    try:
        updated, delta = await refiner_service.refine_profile(profile, body["newMessages"])
    except Exception as e:
        logger.exception(f"[{redact_identifier(profile.user_id)}] Profile refinement failed: {e}")
        return _error(500, "analysis_error", "Failed to refine profile", ANALYSIS_ERROR_CODE, limit_headers)

    return JSONResponse(
        content={"success": True, "updatedProfile": updated.to_wire(), "deltaReport": delta.to_wire()},
        headers=limit_headers,
    )


@router.post("/build", response_model=StyleProfile, response_model_by_alias=True)
async def build_profile(payload: BuildProfileRequest) -> StyleProfile:
    profile = profile_builder.build_profile(payload.readings, payload.user_id)
    if not await profile_store.save_profile(payload.user_id, profile):
        raise HTTPException(status_code=503, detail="Profile built but could not be stored.")
    return profile


@router.post("/recalculate", response_model=StyleProfile, response_model_by_alias=True)
async def recalculate_profile(payload: RecalculateProfileRequest) -> StyleProfile:
    current = migrate_profile(payload.current_profile)
    profile = profile_builder.recalculate_profile(current, payload.readings)
    if not await profile_store.save_profile(current.user_id, profile):
        raise HTTPException(status_code=503, detail="Profile rebuilt but could not be stored.")
    return profile


@router.get("/{user_id}", response_model=StyleProfile, response_model_by_alias=True)
async def get_profile(user_id: str) -> StyleProfile:
    profile = await profile_store.get_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found.")
    return profile


@router.put("/{user_id}/learning")
async def set_learning(user_id: str, payload: LearningToggleRequest) -> dict[str, bool]:
    if not await profile_store.set_learning_enabled(user_id, payload.enabled):
        raise HTTPException(status_code=503, detail="Could not update learning preference.")
    logger.info(f"[{redact_identifier(user_id)}] Learning {'enabled' if payload.enabled else 'disabled'}")
    return {"enabled": payload.enabled}
