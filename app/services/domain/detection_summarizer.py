"""
Domain service: aggregate summaries and data-quality reports over detections.

Every operation is a pure fold over an in-memory snapshot of records:
- Counts by health condition
- Diameter and height averages
- Species cardinality
- Diameter size-class histogram
- Data-quality validation report
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Optional, Sequence, Union
import logging
import math

import numpy as np

from app.domain.models import (
    Condition,
    DetectionRecord,
    ProgressReport,
    SizeClassHistogram,
    Summary,
    ValidationErrors,
    ValidationReport,
    size_class_for_diameter,
)
from app.config import settings

logger = logging.getLogger(__name__)

RecordLike = Union[DetectionRecord, Mapping[str, Any]]

EXCLUDE_NON_POSITIVE = "exclude"
BUCKET_NON_POSITIVE_AS_SMALL = "bucket_small"

MIN_VALID_DIAMETER = 0.1
MAX_VALID_DIAMETER = 300.0


@dataclass
class SummaryConfig:
    """Configuration for the aggregate summarizer."""

    non_positive_diameter_policy: str = EXCLUDE_NON_POSITIVE
    """Histogram treatment of diameters <= 0: 'exclude' or 'bucket_small'"""


def round2(value: float) -> float:
    """Round to 2 decimals, half away from zero, on the decimal representation."""
    quantized = Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(quantized)


def _field(record: RecordLike, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _numeric(value: Any) -> Optional[float]:
    """Return value as a float if it is a finite real number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


def _present(value: Any) -> bool:
    """A value counts as present when it is neither null, empty nor zero."""
    return bool(value)


def _positive_average(values: Iterable[Optional[float]]) -> float:
    positives = [v for v in values if v is not None and v > 0]
    if not positives:
        return 0
    return round2(float(np.mean(positives)))


class DetectionSummarizer:
    """
    Domain service computing summaries over tree detection records.

    Accepts DetectionRecord instances or plain mappings (rows as returned
    by the data store). Never mutates its input.
    """

    def __init__(self, config: Optional[SummaryConfig] = None):
        if config:
            self.config = config
        else:
            self.config = SummaryConfig(
                non_positive_diameter_policy=settings.non_positive_diameter_policy
            )

        if self.config.non_positive_diameter_policy not in (
            EXCLUDE_NON_POSITIVE,
            BUCKET_NON_POSITIVE_AS_SMALL,
        ):
            raise ValueError(
                f"Unknown non-positive diameter policy: {self.config.non_positive_diameter_policy}"
            )

    def summarize(self, records: Sequence[RecordLike]) -> Summary:
        """
        Compute the aggregate summary of a set of records.

        Args:
            records: Detection records (any sequence, possibly empty)

        Returns:
            Summary with counts, averages, species count and histogram
        """
        total = len(records)
        if total == 0:
            return Summary()

        conditions = [_field(r, "condition") for r in records]
        diameters = [_numeric(_field(r, "diameter")) for r in records]
        heights = [_numeric(_field(r, "height")) for r in records]
        species = {s for s in (_field(r, "species") for r in records) if s}

        summary = Summary(
            total=total,
            alive_count=conditions.count(Condition.ALIVE),
            dead_count=conditions.count(Condition.DEAD),
            sick_count=conditions.count(Condition.SICK),
            diameter_average=_positive_average(diameters),
            height_average=_positive_average(heights),
            species_count=len(species),
            histogram=self.histogram(diameters),
        )

        logger.debug(f"Summarized {total} records: {summary.histogram}")
        return summary

    def histogram(self, diameters: Iterable[Optional[float]]) -> SizeClassHistogram:
        """
        Count diameters per size class.

        Missing or non-numeric diameters are never bucketed. Diameters <= 0
        follow the configured policy.
        """
        counts = {"small": 0, "medium": 0, "large": 0, "very_large": 0}
        skip_non_positive = self.config.non_positive_diameter_policy == EXCLUDE_NON_POSITIVE

        for diameter in diameters:
            if diameter is None:
                continue
            if diameter <= 0 and skip_non_positive:
                continue
            counts[size_class_for_diameter(diameter)] += 1

        return SizeClassHistogram(**counts)

    def validate(self, records: Sequence[RecordLike]) -> ValidationReport:
        """
        Compute data-quality error counts.

        Args:
            records: Detection records

        Returns:
            ValidationReport; 100% valid when there are no records
        """
        errors = ValidationErrors()

        for record in records:
            species = _field(record, "species")
            condition = _field(record, "condition")
            diameter = _numeric(_field(record, "diameter"))
            height = _numeric(_field(record, "height"))

            if not _present(species):
                errors.missing_species += 1
            if not diameter or diameter <= 0:
                errors.missing_diameter += 1
            if diameter and (diameter < MIN_VALID_DIAMETER or diameter > MAX_VALID_DIAMETER):
                errors.diameter_out_of_range += 1
            if not _present(condition):
                errors.missing_condition += 1
            if height and diameter and height < diameter / 100:
                errors.inconsistent_height += 1

        total = len(records)
        total_errors = sum(errors.model_dump().values())

        if total == 0:
            percentage = 100
        else:
            percentage = round2(((total - total_errors) / total) * 100)

        if total_errors:
            logger.info(f"Validation found {total_errors} issues over {total} records")

        return ValidationReport(
            total=total,
            total_errors=total_errors,
            errors=errors,
            validation_percentage=percentage,
        )

    def progress(self, records: Sequence[RecordLike]) -> ProgressReport:
        """
        Compute the share of surveyed trees recorded alive.

        Completeness is rounded half-up to a whole percentage.
        """
        total = len(records)
        conditions = [_field(r, "condition") for r in records]
        alive = conditions.count(Condition.ALIVE)
        completeness = int(math.floor(alive / total * 100 + 0.5)) if total else 0

        return ProgressReport(
            total=total,
            alive_count=alive,
            dead_count=conditions.count(Condition.DEAD),
            completeness=completeness,
        )
