"""
Infrastructure layer: client for the hosted survey database.

Talks to the database's PostgREST interface. Rows are exchanged as plain
dictionaries and mapped to domain models at the edges.
"""
from typing import Any, Dict, List, Optional
import logging

from pydantic import ValidationError

from app.config import settings
from app.domain.models import DetectionRecord
from app.infrastructure.api_constants import (
    APIConstants,
    DataStoreTables,
    PostgRESTFilters,
)
from app.infrastructure.external_api_client import ExternalAPIClient, ExternalAPIError

logger = logging.getLogger(__name__)


class DataStoreError(ExternalAPIError):
    """Raised when the hosted database rejects or fails a request."""
    pass


class DataStoreClient(ExternalAPIClient):
    """
    Client for the hosted survey database.

    Constructed explicitly and handed to the services that need it;
    there is no process-wide instance.
    """

    service_name = "Data store"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        api_key = api_key if api_key is not None else settings.data_store_key
        super().__init__(
            base_url=base_url or settings.data_store_url,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": APIConstants.CONTENT_TYPE_JSON,
            },
            timeout=timeout or settings.data_store_timeout,
        )

    async def _make_request(self, method: str, endpoint: str, **kwargs) -> Any:
        try:
            return await super()._make_request(method, endpoint, **kwargs)
        except DataStoreError:
            raise
        except ExternalAPIError as e:
            raise DataStoreError(e.message, status_code=e.status_code) from e

    async def _select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params = {"select": "*"}
        for column, value in (filters or {}).items():
            params[column] = PostgRESTFilters.eq(value)
        if order:
            params["order"] = PostgRESTFilters.asc(order)

        rows = await self._make_request("GET", DataStoreTables.path(table), params=params)
        return rows or []

    def _to_records(self, rows: Optional[List[Dict[str, Any]]]) -> List[DetectionRecord]:
        """Map detection rows to records; a row that does not fit is an upstream fault."""
        try:
            return [DetectionRecord(**row) for row in rows or []]
        except ValidationError as e:
            logger.error(f"Unexpected detection row shape: {e}")
            raise DataStoreError(
                "Data store returned a malformed detection row",
                status_code=502,
            ) from e

    async def get_conglomerate(self, conglomerate_id: int) -> Optional[Dict[str, Any]]:
        """
        Fetch a conglomerate row.

        Args:
            conglomerate_id: Conglomerate identifier

        Returns:
            Row dictionary, or None if it does not exist
        """
        rows = await self._select(DataStoreTables.CONGLOMERATES, {"id": conglomerate_id})
        return rows[0] if rows else None

    async def list_subparcels(self, conglomerate_id: int) -> List[Dict[str, Any]]:
        """Fetch the subparcels of a conglomerate ordered by number."""
        return await self._select(
            DataStoreTables.SUBPARCELS,
            {"conglomerate_id": conglomerate_id},
            order="number",
        )

    async def list_detections_by_subparcel(self, subparcel_id: int) -> List[DetectionRecord]:
        """Fetch the detections of a subparcel ordered by tree number."""
        rows = await self._select(
            DataStoreTables.TREE_DETECTIONS,
            {"subparcel_id": subparcel_id},
            order="tree_number",
        )
        return self._to_records(rows)

    async def list_detections_by_conglomerate(self, conglomerate_id: int) -> List[DetectionRecord]:
        """Fetch every detection registered under a conglomerate."""
        rows = await self._select(
            DataStoreTables.TREE_DETECTIONS,
            {"conglomerate_id": conglomerate_id},
        )
        return self._to_records(rows)

    async def insert_detections(self, rows: List[Dict[str, Any]]) -> List[DetectionRecord]:
        """
        Insert detection rows.

        Args:
            rows: Column dictionaries to insert

        Returns:
            Inserted records as stored (with identifiers)
        """
        inserted = await self._make_request(
            "POST",
            DataStoreTables.path(DataStoreTables.TREE_DETECTIONS),
            json=rows,
            headers={"Prefer": APIConstants.PREFER_RETURN_REPRESENTATION},
        )
        logger.info(f"Inserted {len(inserted or [])} detection rows")
        return self._to_records(inserted)

    async def update_detection(
        self,
        detection_id: int,
        fields: Dict[str, Any],
    ) -> Optional[DetectionRecord]:
        """
        Update a detection row.

        Returns:
            The updated record, or None if no row matched
        """
        updated = await self._make_request(
            "PATCH",
            DataStoreTables.path(DataStoreTables.TREE_DETECTIONS),
            params={"id": PostgRESTFilters.eq(detection_id)},
            json=fields,
            headers={"Prefer": APIConstants.PREFER_RETURN_REPRESENTATION},
        )
        if not updated:
            return None
        return self._to_records(updated[:1])[0]

    async def delete_detection(self, detection_id: int) -> None:
        """Delete a detection row. Deleting a missing row is not an error."""
        await self._make_request(
            "DELETE",
            DataStoreTables.path(DataStoreTables.TREE_DETECTIONS),
            params={"id": PostgRESTFilters.eq(detection_id)},
            headers={"Prefer": APIConstants.PREFER_RETURN_MINIMAL},
        )

    async def insert_summary(self, row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Store a count summary row and return it as stored."""
        inserted = await self._make_request(
            "POST",
            DataStoreTables.path(DataStoreTables.COUNT_SUMMARIES),
            json=row,
            headers={"Prefer": APIConstants.PREFER_RETURN_REPRESENTATION},
        )
        return inserted[0] if inserted else None
