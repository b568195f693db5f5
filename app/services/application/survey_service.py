"""
Application service: Orchestration layer for survey operations.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
import logging

from app.config import settings
from app.domain.errors import MissingFieldsError, NotFoundError, InvalidArgumentError
from app.domain.models import (
    Condition,
    DetectionRecord,
    ProgressReport,
    Summary,
    ValidationReport,
)
from app.infrastructure.brigade_client import BrigadeClient
from app.infrastructure.data_store_client import DataStoreClient
from app.services.domain.detection_simulator import DetectionSimulator
from app.services.domain.detection_summarizer import DetectionSummarizer
from app.utils.geodesy import distance_and_bearing

logger = logging.getLogger(__name__)

REQUIRED_DETECTION_FIELDS = (
    "subparcel_id",
    "conglomerate_id",
    "tree_number",
    "species",
    "diameter",
)
UPDATABLE_DETECTION_FIELDS = ("species", "diameter", "height", "condition", "notes")

SATELLITE_SPECIES_LABEL = "Detected (satellite)"


@dataclass
class SurveyOptions:
    """Optional behaviours of the survey endpoints."""
    record_timestamps: bool = True
    persist_conglomerate_summaries: bool = False
    simulated_detection_count: int = 20

    @classmethod
    def from_settings(cls) -> "SurveyOptions":
        return cls(
            record_timestamps=settings.record_timestamps,
            persist_conglomerate_summaries=settings.persist_conglomerate_summaries,
            simulated_detection_count=settings.simulated_detection_count,
        )


class SurveyService:
    """
    Application service for survey-related operations.

    Orchestrates data fetching and business logic execution.
    No aggregation or geodesy happens here, only coordination
    between infrastructure and domain layers.
    """

    def __init__(
        self,
        data_store: DataStoreClient,
        summarizer: DetectionSummarizer,
        simulator: Optional[DetectionSimulator] = None,
        brigade_client: Optional[BrigadeClient] = None,
        options: Optional[SurveyOptions] = None,
    ):
        """
        Initialize the service with dependencies.

        Args:
            data_store: Hosted database client
            summarizer: Aggregate summarizer
            simulator: Satellite detection simulator
            brigade_client: Brigade registry client (coordinates source)
            options: Optional behaviour flags
        """
        self.data_store = data_store
        self.summarizer = summarizer
        self.simulator = simulator or DetectionSimulator()
        self.brigade_client = brigade_client
        self.options = options or SurveyOptions.from_settings()

    # ------------------------------------------------------------
    # Conglomerates and subparcels
    # ------------------------------------------------------------

    async def get_conglomerate(self, conglomerate_id: int) -> Dict[str, Any]:
        """
        Fetch a conglomerate.

        Raises:
            NotFoundError: If the conglomerate does not exist
        """
        conglomerate = await self.data_store.get_conglomerate(conglomerate_id)
        if conglomerate is None:
            raise NotFoundError(f"Conglomerate {conglomerate_id} not found")
        return conglomerate

    async def list_subparcels(self, conglomerate_id: int) -> List[Dict[str, Any]]:
        return await self.data_store.list_subparcels(conglomerate_id)

    # ------------------------------------------------------------
    # Detections
    # ------------------------------------------------------------

    async def register_detection(
        self,
        payload: Dict[str, Any],
        user_id: Optional[str] = None,
    ) -> DetectionRecord:
        """
        Register a tree detected in the field.

        Args:
            payload: Detection fields submitted by the client
            user_id: Authenticated user, used when the payload has none

        Returns:
            The stored DetectionRecord

        Raises:
            MissingFieldsError: If a required field is absent or empty
        """
        missing = [name for name in REQUIRED_DETECTION_FIELDS if not payload.get(name)]
        if missing:
            raise MissingFieldsError(REQUIRED_DETECTION_FIELDS, missing)

        try:
            tree_number = int(payload["tree_number"])
            diameter = float(payload["diameter"])
            height = float(payload["height"]) if payload.get("height") else None
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f"Non-numeric measurement: {e}") from e

        row = {
            "subparcel_id": payload["subparcel_id"],
            "conglomerate_id": payload["conglomerate_id"],
            "tree_number": tree_number,
            "species": payload["species"],
            "diameter": diameter,
            "height": height,
            "condition": payload.get("condition") or Condition.ALIVE,
            "notes": payload.get("notes") or "",
            "user_id": payload.get("user_id") or user_id,
            "brigade_id": payload.get("brigade_id"),
        }
        if self.options.record_timestamps:
            row["timestamp"] = datetime.now(timezone.utc).isoformat()

        logger.info(f"Registering tree #{row['tree_number']} - species: {row['species']}")
        inserted = await self.data_store.insert_detections([row])
        return inserted[0]

    async def list_detections(self, subparcel_id: int) -> List[DetectionRecord]:
        """Detections of a subparcel ordered by tree number."""
        records = await self.data_store.list_detections_by_subparcel(subparcel_id)
        return [record.with_size_class() for record in records]

    async def update_detection(
        self,
        detection_id: int,
        payload: Dict[str, Any],
    ) -> DetectionRecord:
        """
        Apply a partial update to a detection.

        Only non-empty values of the updatable fields are applied.

        Raises:
            InvalidArgumentError: If nothing would change
            NotFoundError: If the detection does not exist
        """
        fields = {
            name: payload[name]
            for name in UPDATABLE_DETECTION_FIELDS
            if payload.get(name)
        }
        try:
            for name in ("diameter", "height"):
                if name in fields:
                    fields[name] = float(fields[name])
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f"Non-numeric measurement: {e}") from e

        if not fields:
            raise InvalidArgumentError(
                f"No updatable fields supplied (expected one of: {', '.join(UPDATABLE_DETECTION_FIELDS)})"
            )

        updated = await self.data_store.update_detection(detection_id, fields)
        if updated is None:
            raise NotFoundError(f"Detection {detection_id} not found")
        return updated

    async def delete_detection(self, detection_id: int) -> None:
        await self.data_store.delete_detection(detection_id)
        logger.info(f"Deleted detection {detection_id}")

    # ------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------

    async def conglomerate_progress(self, conglomerate_id: int) -> ProgressReport:
        records = await self.data_store.list_detections_by_conglomerate(conglomerate_id)
        return self.summarizer.progress(records)

    async def conglomerate_summary(self, conglomerate_id: int) -> Summary:
        """
        Summarize every detection of a conglomerate.

        Stores a count summary row as well when persistence is enabled
        and the conglomerate has detections.
        """
        records = await self.data_store.list_detections_by_conglomerate(conglomerate_id)
        summary = self.summarizer.summarize(records)
        logger.info(f"Conglomerate {conglomerate_id}: {summary.total} detections summarized")

        if self.options.persist_conglomerate_summaries and summary.total:
            await self.data_store.insert_summary(
                self._summary_row(summary, conglomerate_id=conglomerate_id)
            )

        return summary

    async def subparcel_summary(
        self,
        subparcel_id: int,
    ) -> Tuple[Summary, List[DetectionRecord]]:
        """Summary of a subparcel along with its records ordered by tree number."""
        records = await self.data_store.list_detections_by_subparcel(subparcel_id)
        return self.summarizer.summarize(records), [record.with_size_class() for record in records]

    async def conglomerate_validation(self, conglomerate_id: int) -> ValidationReport:
        records = await self.data_store.list_detections_by_conglomerate(conglomerate_id)
        return self.summarizer.validate(records)

    async def save_summary(
        self,
        summary: Summary,
        conglomerate_id: int,
        subparcel_id: Optional[int] = None,
    ) -> Optional[Dict[str, Any]]:
        """Persist a summary computed by the client."""
        return await self.data_store.insert_summary(
            self._summary_row(summary, conglomerate_id=conglomerate_id, subparcel_id=subparcel_id)
        )

    @staticmethod
    def _summary_row(
        summary: Summary,
        conglomerate_id: int,
        subparcel_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        row = {
            "conglomerate_id": conglomerate_id,
            "total_trees_counted": summary.total,
            "alive_count": summary.alive_count,
            "dead_count": summary.dead_count,
            "sick_count": summary.sick_count,
            "diameter_average": summary.diameter_average,
            "height_average": summary.height_average,
            "species_count": summary.species_count,
        }
        if subparcel_id is not None:
            row["subparcel_id"] = subparcel_id
        return row

    # ------------------------------------------------------------
    # Satellite detections
    # ------------------------------------------------------------

    async def detect_from_satellite(
        self,
        conglomerate_id: int,
        subparcel_id: int,
        count: Optional[int] = None,
    ) -> List[DetectionRecord]:
        """
        Simulate satellite detections around a conglomerate and store them.

        This method orchestrates:
        1. Fetching the plot centre from the brigade registry
        2. Simulating detections around it
        3. Computing distance and azimuth from the centre to each detection
        4. Inserting the enriched detections

        Raises:
            BrigadeNotFoundError: If the registry has no such conglomerate
            ExternalAPIError: If a remote call fails
        """
        if self.brigade_client is None:
            raise RuntimeError("Satellite detection requires a brigade registry client")

        latitude, longitude = await self.brigade_client.get_conglomerate_coordinates(conglomerate_id)
        detections = self.simulator.simulate(
            latitude,
            longitude,
            count if count is not None else self.options.simulated_detection_count,
        )

        rows = []
        for index, detection in enumerate(detections, start=1):
            offset = distance_and_bearing(
                latitude, longitude, detection.latitude, detection.longitude
            )
            rows.append({
                "subparcel_id": subparcel_id,
                "conglomerate_id": conglomerate_id,
                "tree_number": index,
                "species": SATELLITE_SPECIES_LABEL,
                "diameter": None,
                "height": None,
                "size_class": detection.size_class,
                "azimuth": offset.bearing,
                "distance": offset.distance,
                "confidence": round(detection.confidence, 4),
                "condition": Condition.ALIVE,
                "notes": f"Auto-detected - NDVI: {detection.ndvi:.2f}",
            })

        if not rows:
            return []
        return await self.data_store.insert_detections(rows)
