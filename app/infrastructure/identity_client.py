"""
Infrastructure layer: client for the external identity service.

Token verification is delegated entirely to the identity service. Tokens
are never decoded locally.
"""
from typing import Optional
import logging

from app.config import settings
from app.domain.models import AuthenticatedUser
from app.infrastructure.api_constants import APIConstants
from app.infrastructure.external_api_client import ExternalAPIClient, ExternalAPIError

logger = logging.getLogger(__name__)


class IdentityServiceError(ExternalAPIError):
    """Raised when the identity service cannot give a decision."""
    pass


class IdentityClient(ExternalAPIClient):
    """Client that asks the identity service to verify bearer tokens."""

    service_name = "Identity service"

    def __init__(
        self,
        base_url: Optional[str] = None,
        verify_path: Optional[str] = None,
    ):
        super().__init__(
            base_url=base_url or settings.identity_api_base_url,
            timeout=APIConstants.SHORT_TIMEOUT,
        )
        self.verify_path = verify_path or settings.identity_verify_path

    async def verify(self, token: str) -> Optional[AuthenticatedUser]:
        """
        Verify a bearer token.

        Args:
            token: Raw bearer token

        Returns:
            The authenticated user, or None if the service rejected the token

        Raises:
            IdentityServiceError: If the service could not be reached
        """
        try:
            payload = await self._make_request(
                "GET",
                self.verify_path,
                headers={"Authorization": f"Bearer {token}"},
            )
        except ExternalAPIError as e:
            if e.status_code in (401, 403):
                logger.info(f"Identity service rejected token ({e.status_code})")
                return None
            raise IdentityServiceError(e.message, status_code=503) from e

        payload = payload or {}
        claims = payload.get("user") or payload
        user_id = claims.get("id") or claims.get("sub")
        if not user_id:
            logger.warning("Identity service accepted token without a subject")
            return None

        return AuthenticatedUser(
            id=str(user_id),
            email=claims.get("email"),
            claims=claims,
        )
