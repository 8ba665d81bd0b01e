"""
Harvest bridge engine.

Implements the three host-facing operations. Each call resolves the
qualification, builds the query map, resolves the endpoint, issues one
blocking GET and normalizes the result. Nothing is cached or retried.
"""

import json
from typing import Any, Dict, List, Optional

import httpx
import structlog

from .config import HarvestSettings
from .core import (
    OperationMode,
    RecordList,
    build_query_map,
    build_url,
    parse_structure,
    resolve_endpoint,
)
from .errors import (
    AuthenticationError,
    MalformedEnvelopeError,
    ResourceNotFoundError,
    ServiceConnectionError,
)
from .parsers import project_record, project_records
from .qualification import BridgeQualificationParser, QualificationParser

logger = structlog.get_logger(__name__)


def build_client(
    settings: HarvestSettings,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create an `httpx.Client` carrying Harvest credentials and headers."""
    return httpx.Client(
        auth=httpx.BasicAuth(settings.username, settings.password.get_secret_value()),
        headers={"Accept": "application/json"},
        timeout=httpx.Timeout(settings.request_timeout),
        transport=transport,
    )


class HarvestEngine:
    """
    Translates bridge requests into Harvest API calls.

    The engine holds read-only settings and one HTTP client. Independent
    engines share no mutable state.
    """

    def __init__(
        self,
        settings: HarvestSettings,
        client: Optional[httpx.Client] = None,
        parser: Optional[QualificationParser] = None,
    ):
        self.settings = settings
        self.base_url = settings.base_url
        self._owns_client = client is None
        self._client = client or build_client(settings)
        self._parser = parser or BridgeQualificationParser()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HarvestEngine":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def count(
        self,
        structure: str,
        query: Optional[str] = "",
        parameters: Optional[Dict[str, str]] = None,
    ) -> int:
        """Number of records a search for the same request would return."""
        logger.debug("counting_records", structure=structure, query=query)
        url = self._build_request_url(structure, query, parameters, OperationMode.SEARCH)
        payload = self._get_json(url)
        if not isinstance(payload, list):
            raise MalformedEnvelopeError(
                f"Expected a JSON array of records, got {type(payload).__name__}",
                details={"url": url},
            )
        return len(payload)

    def retrieve(
        self,
        structure: str,
        query: Optional[str] = "",
        parameters: Optional[Dict[str, str]] = None,
        fields: Optional[List[str]] = None,
    ) -> Dict[str, str]:
        """Fetch one record, narrowed to `fields` (all fields when empty)."""
        logger.debug("retrieving_record", structure=structure, query=query, fields=fields)
        url = self._build_request_url(structure, query, parameters, OperationMode.RETRIEVE)
        payload = self._get_json(url)
        return project_record(payload, fields)

    def search(
        self,
        structure: str,
        query: Optional[str] = "",
        parameters: Optional[Dict[str, str]] = None,
        fields: Optional[List[str]] = None,
    ) -> RecordList:
        """Fetch every record matching the request, in upstream order."""
        logger.debug("searching_records", structure=structure, query=query, fields=fields)
        url = self._build_request_url(structure, query, parameters, OperationMode.SEARCH)
        payload = self._get_json(url)
        field_names, records = project_records(payload, fields)
        return RecordList(fields=field_names, records=records)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_request_url(
        self,
        structure: str,
        query: Optional[str],
        parameters: Optional[Dict[str, str]],
        mode: OperationMode,
    ) -> str:
        resolved_structure = parse_structure(structure)
        flat = self._parser.resolve(query or "", parameters or {})
        query_map = build_query_map(flat)
        path, remaining = resolve_endpoint(resolved_structure, query_map, mode)
        url = build_url(self.base_url, path, remaining)
        logger.debug("request_url_built", mode=mode.value, url=url)
        return url

    def _get_json(self, url: str) -> Any:
        try:
            response = self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("harvest_request_failed", url=url, error=str(e))
            raise ServiceConnectionError(url, str(e)) from e

        status = response.status_code
        logger.debug("harvest_response", url=url, status_code=status)
        if status == 404:
            raise ResourceNotFoundError(url)
        if status == 401:
            raise AuthenticationError(url)
        if not response.is_success:
            logger.warning("harvest_unexpected_status", url=url, status_code=status)
            raise ServiceConnectionError(url, f"HTTP {status}", status_code=status)

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedEnvelopeError(
                f"Response body from {url} is not valid JSON: {e}",
                details={"url": url},
            ) from e
