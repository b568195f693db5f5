"""
Domain models for survey and tree detection data.

These models represent the core domain entities and should be independent
of any infrastructure concerns (API clients, databases, etc.).
"""
from typing import Any, Dict, Optional, Union
from pydantic import BaseModel, Field


class Condition:
    """Health condition values recognized by the aggregations."""
    ALIVE = "alive"
    DEAD = "dead"
    SICK = "sick"


class SizeClass:
    """Diameter-based size class labels."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    VERY_LARGE = "very_large"


def size_class_for_diameter(diameter: float) -> str:
    """
    Map a diameter to its size class.

    Boundaries: small < 5 <= medium < 10 <= large < 50 <= very_large.
    """
    if diameter < 5:
        return SizeClass.SMALL
    if diameter < 10:
        return SizeClass.MEDIUM
    if diameter < 50:
        return SizeClass.LARGE
    return SizeClass.VERY_LARGE


class DetectionRecord(BaseModel):
    """A single tree detection registered during fieldwork."""
    id: Optional[int] = None
    subparcel_id: Optional[int] = None
    conglomerate_id: Optional[int] = None
    tree_number: Optional[int] = None
    species: Optional[str] = None
    diameter: Optional[float] = Field(
        default=None,
        description="Diameter at breast height in cm"
    )
    height: Optional[float] = Field(
        default=None,
        description="Total height in m"
    )
    condition: Optional[str] = None
    size_class: Optional[str] = None
    notes: Optional[str] = None
    user_id: Optional[Union[str, int]] = None
    brigade_id: Optional[Union[str, int]] = None
    timestamp: Optional[str] = None
    azimuth: Optional[int] = None
    distance: Optional[int] = None
    confidence: Optional[float] = None

    class Config:
        extra = "allow"

    @property
    def derived_size_class(self) -> Optional[str]:
        """Stored size class, or the one implied by the diameter."""
        if self.size_class:
            return self.size_class
        if self.diameter is None:
            return None
        return size_class_for_diameter(self.diameter)

    def with_size_class(self) -> "DetectionRecord":
        """Copy of the record with size_class filled in from the diameter."""
        return self.model_copy(update={"size_class": self.derived_size_class})


class SizeClassHistogram(BaseModel):
    """Counts of records per size class."""
    small: int = 0
    medium: int = 0
    large: int = 0
    very_large: int = 0


class Summary(BaseModel):
    """Aggregate summary over a set of detection records."""
    total: int = 0
    alive_count: int = 0
    dead_count: int = 0
    sick_count: int = 0
    diameter_average: float = 0
    height_average: float = 0
    species_count: int = 0
    histogram: SizeClassHistogram = Field(default_factory=SizeClassHistogram)


class ValidationErrors(BaseModel):
    """Data-quality error counts."""
    missing_species: int = 0
    missing_diameter: int = 0
    diameter_out_of_range: int = 0
    missing_condition: int = 0
    inconsistent_height: int = 0


class ValidationReport(BaseModel):
    """Data-quality report over a set of detection records."""
    total: int = 0
    total_errors: int = 0
    errors: ValidationErrors = Field(default_factory=ValidationErrors)
    validation_percentage: float = 100


class ProgressReport(BaseModel):
    """Lightweight fieldwork progress report."""
    total: int = 0
    alive_count: int = 0
    dead_count: int = 0
    completeness: int = 0


class DistanceBearing(BaseModel):
    """Great-circle distance and initial bearing between two coordinates."""
    distance: int = Field(description="Distance in meters")
    bearing: int = Field(description="Initial compass bearing in degrees [0, 360)")


class SimulatedDetection(BaseModel):
    """A synthetic detection produced by the satellite simulator."""
    id: str
    latitude: float
    longitude: float
    ndvi: float
    size_class: str
    confidence: float


class AuthenticatedUser(BaseModel):
    """Identity accepted by the external identity service."""
    id: str
    email: Optional[str] = None
    claims: Dict[str, Any] = Field(default_factory=dict)
