"""
API request models using Pydantic.
"""
from typing import Optional, Union
from pydantic import BaseModel, Field


class DetectionCreateRequest(BaseModel):
    """
    Payload for registering a detected tree.

    Required fields are checked by the service so that a single 400
    response can list every missing one.
    """
    subparcel_id: Optional[int] = None
    conglomerate_id: Optional[int] = None
    tree_number: Optional[int] = Field(default=None, description="Sequence number inside the subparcel")
    species: Optional[str] = None
    diameter: Optional[float] = Field(default=None, description="Diameter at breast height in cm")
    height: Optional[float] = Field(default=None, description="Total height in m")
    condition: Optional[str] = Field(default=None, description="alive, dead or sick (defaults to alive)")
    notes: Optional[str] = None
    user_id: Optional[Union[str, int]] = None
    brigade_id: Optional[Union[str, int]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "subparcel_id": 12,
                "conglomerate_id": 3,
                "tree_number": 7,
                "species": "Quercus humboldtii",
                "diameter": 23.4,
                "height": 14.0,
                "condition": "alive",
            }
        }


class DetectionUpdateRequest(BaseModel):
    """Partial update of a detection. Empty values are ignored."""
    species: Optional[str] = None
    diameter: Optional[float] = None
    height: Optional[float] = None
    condition: Optional[str] = None
    notes: Optional[str] = None


class SummarySaveRequest(BaseModel):
    """A summary computed by the client, to be stored as-is."""
    conglomerate_id: int
    subparcel_id: Optional[int] = None
    total: int = Field(ge=0)
    alive_count: int = Field(default=0, ge=0)
    dead_count: int = Field(default=0, ge=0)
    sick_count: int = Field(default=0, ge=0)
    diameter_average: float = 0
    height_average: float = 0
    species_count: int = Field(default=0, ge=0)


class SatelliteDetectionRequest(BaseModel):
    """Parameters for a simulated satellite detection run."""
    conglomerate_id: int
    subparcel_id: int
    count: Optional[int] = Field(
        default=None,
        ge=1,
        le=500,
        description="Number of detections to simulate (server default when omitted)"
    )
