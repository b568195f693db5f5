"""
Dependency injection for FastAPI.

Outbound clients are created once in the application lifespan and kept on
``app.state``; everything else is built per request.
"""
from typing import Annotated, Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import settings
from app.domain.models import AuthenticatedUser
from app.infrastructure.brigade_client import BrigadeClient
from app.infrastructure.data_store_client import DataStoreClient
from app.infrastructure.identity_client import IdentityClient, IdentityServiceError
from app.services.application.survey_service import SurveyService
from app.services.domain.detection_simulator import DetectionSimulator
from app.services.domain.detection_summarizer import DetectionSummarizer


bearer_scheme = HTTPBearer(auto_error=False)


def get_data_store(request: Request) -> DataStoreClient:
    """Data store client created at startup."""
    return request.app.state.data_store


def get_brigade_client(request: Request) -> BrigadeClient:
    """Brigade registry client created at startup."""
    return request.app.state.brigade_client


def get_identity_client(request: Request) -> IdentityClient:
    """Identity service client created at startup."""
    return request.app.state.identity_client


def get_detection_summarizer() -> DetectionSummarizer:
    """
    Dependency factory for DetectionSummarizer.

    Returns:
        DetectionSummarizer configured from settings
    """
    return DetectionSummarizer()


def get_detection_simulator() -> DetectionSimulator:
    return DetectionSimulator()


def get_survey_service(
    data_store: Annotated[DataStoreClient, Depends(get_data_store)],
    summarizer: Annotated[DetectionSummarizer, Depends(get_detection_summarizer)],
    simulator: Annotated[DetectionSimulator, Depends(get_detection_simulator)],
    brigade_client: Annotated[BrigadeClient, Depends(get_brigade_client)],
) -> SurveyService:
    """
    Dependency factory for SurveyService.

    Args:
        data_store: Data store client (injected)
        summarizer: Aggregate summarizer (injected)
        simulator: Detection simulator (injected)
        brigade_client: Brigade registry client (injected)

    Returns:
        SurveyService instance
    """
    return SurveyService(
        data_store=data_store,
        summarizer=summarizer,
        simulator=simulator,
        brigade_client=brigade_client,
    )


async def get_current_user(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> Optional[AuthenticatedUser]:
    """
    Resolve the caller through the identity service.

    Returns None when authentication is disabled.

    Raises:
        HTTPException: 401 without a token or when the token is rejected,
            503 when the identity service cannot be reached
    """
    if not settings.auth_enabled:
        return None

    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Bearer token required. Use: Authorization: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    identity_client: IdentityClient = get_identity_client(request)
    try:
        user = await identity_client.verify(credentials.credentials)
    except IdentityServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Identity service unavailable: {e.message}",
        )

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


# Type aliases for cleaner route signatures
SurveyServiceDep = Annotated[SurveyService, Depends(get_survey_service)]
CurrentUserDep = Annotated[Optional[AuthenticatedUser], Depends(get_current_user)]
