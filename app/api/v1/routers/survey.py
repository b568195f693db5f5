"""
API router for survey endpoints.

Thin handlers: every operation delegates to SurveyService and only maps
results and errors to HTTP.
"""
from fastapi import APIRouter, HTTPException, Path, status
from typing import Annotated
import logging

from app.api.dependencies import CurrentUserDep, SurveyServiceDep
from app.api.v1.models.requests import (
    DetectionCreateRequest,
    DetectionUpdateRequest,
    SatelliteDetectionRequest,
    SummarySaveRequest,
)
from app.api.v1.models.responses import (
    ConglomerateResponse,
    DetectionResponse,
    DetectionsResponse,
    MessageResponse,
    ProgressResponse,
    SatelliteDetectionResponse,
    SavedSummaryResponse,
    SubparcelSummaryResponse,
    SubparcelsResponse,
    SummaryResponse,
    ValidationResponse,
)
from app.domain.errors import InvalidArgumentError, MissingFieldsError, NotFoundError
from app.domain.models import Summary
from app.infrastructure.external_api_client import ExternalAPIError
from app.middleware.rate_limit import RATE_LIMITED_RESPONSE

logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/survey",
    tags=["survey"],
    responses={
        **RATE_LIMITED_RESPONSE,
        502: {"description": "Upstream service failure"},
    },
)

ConglomerateId = Annotated[int, Path(description="Unique identifier for the conglomerate")]
SubparcelId = Annotated[int, Path(description="Unique identifier for the subparcel")]
DetectionId = Annotated[int, Path(description="Unique identifier for the detection")]


def _to_http_error(error: Exception) -> HTTPException:
    """Map a service-layer exception to an HTTP error."""
    if isinstance(error, MissingFieldsError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Missing fields",
                "required": error.required,
                "missing": error.missing,
            },
        )
    if isinstance(error, InvalidArgumentError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, ExternalAPIError):
        logger.error(f"Upstream failure ({error.status_code}): {error.message}")
        # Upstream credential rejections are a server misconfiguration
        if error.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
            return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=error.message)
        if 400 <= error.status_code < 500:
            return HTTPException(status_code=error.status_code, detail=error.message)
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=error.message)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Internal server error: {str(error)}",
    )


# ============================================================
# Conglomerates and subparcels
# ============================================================

@router.get(
    "/conglomerates/{conglomerate_id}",
    response_model=ConglomerateResponse,
    summary="Get a conglomerate",
    responses={404: {"description": "Conglomerate not found"}},
)
async def get_conglomerate(
    conglomerate_id: ConglomerateId,
    survey_service: SurveyServiceDep,
    user: CurrentUserDep,
) -> ConglomerateResponse:
    try:
        conglomerate = await survey_service.get_conglomerate(conglomerate_id)
    except (NotFoundError, ExternalAPIError) as e:
        raise _to_http_error(e)
    return ConglomerateResponse(data=conglomerate)


@router.get(
    "/conglomerates/{conglomerate_id}/subparcels",
    response_model=SubparcelsResponse,
    summary="List the subparcels of a conglomerate",
)
async def list_subparcels(
    conglomerate_id: ConglomerateId,
    survey_service: SurveyServiceDep,
    user: CurrentUserDep,
) -> SubparcelsResponse:
    try:
        subparcels = await survey_service.list_subparcels(conglomerate_id)
    except ExternalAPIError as e:
        raise _to_http_error(e)
    return SubparcelsResponse(total=len(subparcels), data=subparcels)


# ============================================================
# Detections
# ============================================================

@router.post(
    "/detections",
    response_model=DetectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a detected tree",
    responses={400: {"description": "Missing required fields"}},
)
async def create_detection(
    body: DetectionCreateRequest,
    survey_service: SurveyServiceDep,
    user: CurrentUserDep,
) -> DetectionResponse:
    """
    Register a tree detected in the field.

    Requires subparcel_id, conglomerate_id, tree_number, species and
    diameter. Condition defaults to ``alive``.
    """
    try:
        record = await survey_service.register_detection(
            body.model_dump(),
            user_id=user.id if user else None,
        )
    except (InvalidArgumentError, ExternalAPIError) as e:
        raise _to_http_error(e)
    return DetectionResponse(message="Tree registered", data=record)


@router.get(
    "/subparcels/{subparcel_id}/detections",
    response_model=DetectionsResponse,
    summary="List the detections of a subparcel",
)
async def list_detections(
    subparcel_id: SubparcelId,
    survey_service: SurveyServiceDep,
    user: CurrentUserDep,
) -> DetectionsResponse:
    try:
        records = await survey_service.list_detections(subparcel_id)
    except ExternalAPIError as e:
        raise _to_http_error(e)
    return DetectionsResponse(total=len(records), data=records)


@router.put(
    "/detections/{detection_id}",
    response_model=DetectionResponse,
    summary="Update a detection",
    responses={404: {"description": "Detection not found"}},
)
async def update_detection(
    detection_id: DetectionId,
    body: DetectionUpdateRequest,
    survey_service: SurveyServiceDep,
    user: CurrentUserDep,
) -> DetectionResponse:
    try:
        record = await survey_service.update_detection(detection_id, body.model_dump())
    except (InvalidArgumentError, NotFoundError, ExternalAPIError) as e:
        raise _to_http_error(e)
    return DetectionResponse(message="Updated", data=record)


@router.delete(
    "/detections/{detection_id}",
    response_model=MessageResponse,
    summary="Delete a detection",
)
async def delete_detection(
    detection_id: DetectionId,
    survey_service: SurveyServiceDep,
    user: CurrentUserDep,
) -> MessageResponse:
    try:
        await survey_service.delete_detection(detection_id)
    except ExternalAPIError as e:
        raise _to_http_error(e)
    return MessageResponse(message="Deleted")


# ============================================================
# Reports
# ============================================================

@router.get(
    "/conglomerates/{conglomerate_id}/progress",
    response_model=ProgressResponse,
    summary="Fieldwork progress of a conglomerate",
)
async def get_conglomerate_progress(
    conglomerate_id: ConglomerateId,
    survey_service: SurveyServiceDep,
    user: CurrentUserDep,
) -> ProgressResponse:
    try:
        progress = await survey_service.conglomerate_progress(conglomerate_id)
    except ExternalAPIError as e:
        raise _to_http_error(e)
    return ProgressResponse(progress=progress)


@router.get(
    "/conglomerates/{conglomerate_id}/summary",
    response_model=SummaryResponse,
    summary="Aggregate summary of a conglomerate",
    description="""
    Counts by condition, diameter and height averages, species count and
    the diameter size-class histogram over every detection of the
    conglomerate.

    Size classes: small (< 5), medium (5 to < 10), large (10 to < 50),
    very_large (>= 50).
    """,
)
async def get_conglomerate_summary(
    conglomerate_id: ConglomerateId,
    survey_service: SurveyServiceDep,
    user: CurrentUserDep,
) -> SummaryResponse:
    try:
        summary = await survey_service.conglomerate_summary(conglomerate_id)
    except ExternalAPIError as e:
        raise _to_http_error(e)
    return SummaryResponse(summary=summary)


@router.get(
    "/subparcels/{subparcel_id}/summary",
    response_model=SubparcelSummaryResponse,
    summary="Aggregate summary of a subparcel",
)
async def get_subparcel_summary(
    subparcel_id: SubparcelId,
    survey_service: SurveyServiceDep,
    user: CurrentUserDep,
) -> SubparcelSummaryResponse:
    try:
        summary, records = await survey_service.subparcel_summary(subparcel_id)
    except ExternalAPIError as e:
        raise _to_http_error(e)
    return SubparcelSummaryResponse(summary=summary, records=records)


@router.get(
    "/conglomerates/{conglomerate_id}/validation",
    response_model=ValidationResponse,
    summary="Data-quality report of a conglomerate",
)
async def get_conglomerate_validation(
    conglomerate_id: ConglomerateId,
    survey_service: SurveyServiceDep,
    user: CurrentUserDep,
) -> ValidationResponse:
    try:
        report = await survey_service.conglomerate_validation(conglomerate_id)
    except ExternalAPIError as e:
        raise _to_http_error(e)
    return ValidationResponse(report=report)


@router.post(
    "/summaries",
    response_model=SavedSummaryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Store a summary computed by the client",
)
async def save_summary(
    body: SummarySaveRequest,
    survey_service: SurveyServiceDep,
    user: CurrentUserDep,
) -> SavedSummaryResponse:
    summary = Summary(
        total=body.total,
        alive_count=body.alive_count,
        dead_count=body.dead_count,
        sick_count=body.sick_count,
        diameter_average=body.diameter_average,
        height_average=body.height_average,
        species_count=body.species_count,
    )
    try:
        stored = await survey_service.save_summary(
            summary,
            conglomerate_id=body.conglomerate_id,
            subparcel_id=body.subparcel_id,
        )
    except ExternalAPIError as e:
        raise _to_http_error(e)
    return SavedSummaryResponse(data=stored)


# ============================================================
# Satellite detections
# ============================================================

@router.post(
    "/satellite-detections",
    response_model=SatelliteDetectionResponse,
    summary="Detect trees from satellite imagery (simulated)",
    description="""
    Generates synthetic detections around the conglomerate centre reported
    by the brigade registry, computes the distance and azimuth of each one
    from the centre, and stores them in the subparcel.
    """,
    responses={404: {"description": "Conglomerate not found in the brigade registry"}},
)
async def detect_from_satellite(
    body: SatelliteDetectionRequest,
    survey_service: SurveyServiceDep,
    user: CurrentUserDep,
) -> SatelliteDetectionResponse:
    try:
        records = await survey_service.detect_from_satellite(
            conglomerate_id=body.conglomerate_id,
            subparcel_id=body.subparcel_id,
            count=body.count,
        )
    except (InvalidArgumentError, NotFoundError, ExternalAPIError) as e:
        raise _to_http_error(e)

    return SatelliteDetectionResponse(
        total_detected=len(records),
        detections=records,
        message=f"{len(records)} trees detected",
    )
