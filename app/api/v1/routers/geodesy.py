"""
API router for geodesic calculations.
"""
from fastapi import APIRouter, HTTPException, Query
from typing import Annotated

from app.api.v1.models.responses import DistanceBearingResponse
from app.domain.errors import InvalidArgumentError
from app.middleware.rate_limit import RATE_LIMITED_RESPONSE
from app.utils.geodesy import distance_and_bearing


router = APIRouter(
    prefix="/geodesy",
    tags=["geodesy"],
    responses=RATE_LIMITED_RESPONSE,
)


@router.get(
    "/distance-bearing",
    response_model=DistanceBearingResponse,
    summary="Distance and azimuth between two coordinates",
    description="""
    Great-circle distance (haversine, spherical Earth of radius 6,371 km)
    in whole meters and the initial compass bearing in whole degrees.
    """,
    responses={400: {"description": "Non-finite coordinate"}},
)
async def get_distance_bearing(
    origin_lat: Annotated[float, Query(description="Origin latitude in degrees")],
    origin_lon: Annotated[float, Query(description="Origin longitude in degrees")],
    dest_lat: Annotated[float, Query(description="Destination latitude in degrees")],
    dest_lon: Annotated[float, Query(description="Destination longitude in degrees")],
) -> DistanceBearingResponse:
    try:
        result = distance_and_bearing(origin_lat, origin_lon, dest_lat, dest_lon)
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return DistanceBearingResponse(distance=result.distance, bearing=result.bearing)
