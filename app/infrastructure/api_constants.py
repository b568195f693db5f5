"""
API endpoint constants and configuration.

This module contains all external endpoint paths, table names and related constants.
Centralizing these values makes it easy to swap out endpoints or rename tables.
"""


# Hosted database REST interface
class DataStoreTables:
    """Table names exposed by the hosted database."""

    REST_BASE = "/rest/v1"

    CONGLOMERATES = "conglomerates"
    SUBPARCELS = "subparcels"
    TREE_DETECTIONS = "tree_detections"
    COUNT_SUMMARIES = "count_summaries"

    @classmethod
    def path(cls, table: str) -> str:
        """
        Get the REST path for a table.

        Args:
            table: Table name

        Returns:
            Endpoint path
        """
        return f"{cls.REST_BASE}/{table}"


class PostgRESTFilters:
    """Helpers for PostgREST query-string filters."""

    @staticmethod
    def eq(value) -> str:
        return f"eq.{value}"

    @staticmethod
    def asc(column: str) -> str:
        return f"{column}.asc"


# Brigade registry endpoints
class BrigadeEndpoints:
    """Field brigade registry endpoint paths."""

    CONGLOMERATE_BY_ID = "/api/conglomerados/{conglomerate_id}"

    @classmethod
    def conglomerate(cls, conglomerate_id: int) -> str:
        return cls.CONGLOMERATE_BY_ID.format(conglomerate_id=conglomerate_id)


# API Configuration Constants
class APIConstants:
    """General API configuration constants."""

    # HTTP Headers
    CONTENT_TYPE_JSON = "application/json"
    PREFER_RETURN_REPRESENTATION = "return=representation"
    PREFER_RETURN_MINIMAL = "return=minimal"

    # Timeouts (in seconds)
    DEFAULT_TIMEOUT = 30.0
    SHORT_TIMEOUT = 10.0
