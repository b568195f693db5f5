"""
Infrastructure layer: client for the field brigade registry.

The registry owns conglomerate metadata, including the plot centre
coordinates used to anchor satellite detections.
"""
from typing import Any, Dict, Optional, Tuple

from app.config import settings
from app.domain.errors import InvalidArgumentError, NotFoundError
from app.infrastructure.api_constants import APIConstants, BrigadeEndpoints
from app.infrastructure.external_api_client import ExternalAPIClient, ExternalAPIError


class BrigadeNotFoundError(NotFoundError):
    """Raised when the registry does not know a conglomerate."""
    pass


def extract_coordinates(payload: Dict[str, Any]) -> Tuple[float, float]:
    """
    Read plot centre coordinates from a registry response.

    Accepts both layouts the registry serves: a nested ``coordenadas``
    object, or flat ``latitud``/``longitud`` fields.

    Raises:
        InvalidArgumentError: If no coordinates are present
    """
    data = payload.get("data") or {}
    source = data.get("coordenadas") or data

    latitude = source.get("latitud")
    longitude = source.get("longitud")
    if latitude is None or longitude is None:
        raise InvalidArgumentError("Conglomerate has no coordinates")

    try:
        return float(latitude), float(longitude)
    except (TypeError, ValueError):
        raise InvalidArgumentError(
            f"Conglomerate coordinates are not numeric: {latitude!r}, {longitude!r}"
        )


class BrigadeClient(ExternalAPIClient):
    """Client for the field brigade registry service."""

    service_name = "Brigade registry"

    def __init__(self, base_url: Optional[str] = None):
        super().__init__(
            base_url=base_url or settings.brigade_api_base_url,
            timeout=APIConstants.SHORT_TIMEOUT,
        )

    async def get_conglomerate_coordinates(self, conglomerate_id: int) -> Tuple[float, float]:
        """
        Fetch the plot centre of a conglomerate.

        Args:
            conglomerate_id: Conglomerate identifier

        Returns:
            (latitude, longitude) in degrees

        Raises:
            BrigadeNotFoundError: If the registry has no such conglomerate
            ExternalAPIError: If the registry call fails
        """
        try:
            payload = await self._make_request(
                "GET", BrigadeEndpoints.conglomerate(conglomerate_id)
            )
        except ExternalAPIError as e:
            if e.status_code == 404:
                raise BrigadeNotFoundError(f"Conglomerate {conglomerate_id} not found")
            raise

        return extract_coordinates(payload or {})
