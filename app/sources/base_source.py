"""
Abstract base source with common HTTP client functionality
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

import httpx
from pydantic import ValidationError

from app.config import settings
from app.exceptions import DataUnavailableError
from app.logging_config import logger

T = TypeVar("T")


class BaseSource(ABC, Generic[T]):
    """Reads one whole collection from the document API. No server-side
    filtering and no retries: a failed read is reported and the next
    scheduled refresh tries again."""

    def __init__(
        self,
        collection: str,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize base source

        Args:
            collection: Collection name (e.g. 'complaints', 'notifications')
            base_url: Document API base URL (uses settings if not provided)
            api_key: Document API key (uses settings if not provided)
            client: Optional shared HTTP client, mainly for tests
        """
        self.collection = collection
        self.base_url = (base_url or settings.DATA_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.DATA_API_KEY
        self.timeout = settings.REQUEST_TIMEOUT
        self._client = client
        self.skipped_rows: List[Dict[str, Any]] = []
        logger.info(f"{collection} source initialized")

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.collection}"

    @abstractmethod
    def _parse_row(self, row: Dict[str, Any]) -> T:
        """
        Convert one raw document into a model

        Args:
            row: Raw document

        Returns:
            Parsed model instance
        """

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _request(self) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(self.url, headers=self._headers())
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(self.url, headers=self._headers())

    async def fetch_rows(self) -> List[Dict[str, Any]]:
        """
        Fetch every raw document in the collection

        Raises:
            DataUnavailableError: If the request fails or the payload is not a list of documents
        """
        try:
            response = await self._request()
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise DataUnavailableError(
                self.collection,
                f"HTTP {e.response.status_code} from {self.url}",
                {"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise DataUnavailableError(self.collection, f"{type(e).__name__}: {str(e)}") from e
        except ValueError as e:
            raise DataUnavailableError(self.collection, f"Invalid JSON payload: {str(e)}") from e

        if isinstance(payload, dict):
            # Accept {"documents": [...]} / {"data": [...]} envelopes
            for key in ("documents", "data", "items"):
                if isinstance(payload.get(key), list):
                    payload = payload[key]
                    break

        if not isinstance(payload, list):
            raise DataUnavailableError(self.collection, "Unexpected payload structure")

        logger.debug(f"Fetched {len(payload)} rows from {self.url}")
        return payload

    async def fetch_all(self) -> List[T]:
        """
        Fetch and parse the whole collection, skipping malformed rows

        Returns:
            Parsed models in source order

        Raises:
            DataUnavailableError: If the collection cannot be read
        """
        rows = await self.fetch_rows()
        self.skipped_rows = []
        items: List[T] = []

        for row in rows:
            try:
                items.append(self._parse_row(row))
            except (ValidationError, TypeError, ValueError) as e:
                row_id = row.get("id") if isinstance(row, dict) else None
                logger.warning(f"Skipping malformed {self.collection} row {row_id}: {str(e)}")
                self.skipped_rows.append({
                    "id": row_id,
                    "error_message": str(e),
                    "occurred_at": datetime.now(timezone.utc),
                })

        logger.info(f"Loaded {len(items)}/{len(rows)} {self.collection} rows")
        return items
