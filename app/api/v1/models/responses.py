"""
API response models using Pydantic.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from app.domain.models import (
    DetectionRecord,
    ProgressReport,
    Summary,
    ValidationReport,
)


class ConglomerateResponse(BaseModel):
    """Conglomerate row as stored."""
    success: bool = True
    data: Dict[str, Any]


class SubparcelsResponse(BaseModel):
    """Subparcels of a conglomerate ordered by number."""
    success: bool = True
    total: int
    data: List[Dict[str, Any]]


class DetectionResponse(BaseModel):
    """A single detection."""
    success: bool = True
    message: Optional[str] = None
    data: DetectionRecord


class DetectionsResponse(BaseModel):
    """Detections of a subparcel ordered by tree number."""
    success: bool = True
    total: int
    data: List[DetectionRecord]


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ProgressResponse(BaseModel):
    success: bool = True
    progress: ProgressReport


class SummaryResponse(BaseModel):
    """Aggregate summary of a conglomerate."""
    success: bool = True
    summary: Summary

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "summary": {
                    "total": 6,
                    "alive_count": 4,
                    "dead_count": 1,
                    "sick_count": 1,
                    "diameter_average": 21.3,
                    "height_average": 12.75,
                    "species_count": 3,
                    "histogram": {"small": 1, "medium": 2, "large": 2, "very_large": 1},
                },
            }
        }


class SubparcelSummaryResponse(BaseModel):
    """Aggregate summary of a subparcel with its records."""
    success: bool = True
    summary: Summary
    records: List[DetectionRecord]


class ValidationResponse(BaseModel):
    success: bool = True
    report: ValidationReport


class SavedSummaryResponse(BaseModel):
    success: bool = True
    data: Optional[Dict[str, Any]] = None


class SatelliteDetectionResponse(BaseModel):
    """Result of a simulated satellite detection run."""
    success: bool = True
    total_detected: int = Field(description="Number of detections stored")
    detections: List[DetectionRecord]
    message: str


class DistanceBearingResponse(BaseModel):
    """Great-circle distance and initial bearing."""
    distance: int = Field(description="Distance in meters", examples=[111195])
    bearing: int = Field(description="Initial bearing in degrees [0, 360)", examples=[90])
