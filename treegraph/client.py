"""
Collection API client.

Fetches visited records and their similar records from the collection
service:
- GET /search-object?query=...      -> list of records, first one is used
- GET /similar-objects/{identity}   -> list of records (or a single one)

Requires: requests
"""

from typing import Any, Dict, List, Optional
import logging
import time

import requests

from .errors import DataSourceError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://british-museum-branching.onrender.com"


class CollectionClient:
    """HTTP client for the collection search and similarity endpoints."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        start_time = time.time()
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise DataSourceError(f"Timeout after {self.timeout}s: {url}") from e
        except requests.exceptions.RequestException as e:
            raise DataSourceError(f"Request error for {url}: {e}") from e

        elapsed = time.time() - start_time
        if response.status_code != 200:
            logger.warning("GET %s -> HTTP %d: %s", url, response.status_code, response.text[:200])
            raise DataSourceError(f"HTTP {response.status_code} for {url}",
                                  status_code=response.status_code)
        try:
            data = response.json()
        except ValueError as e:
            raise DataSourceError(f"Invalid JSON from {url}") from e

        logger.debug("GET %s answered in %.2fs", url, elapsed)
        return data

    def search_object(self, query: str) -> Optional[Dict[str, Any]]:
        """
        Find the best matching record for a free-text query.

        Returns:
            The first record, or None when nothing matched
        """
        data = self._get('/search-object', params={'query': query})
        if isinstance(data, list):
            return data[0] if data else None
        if isinstance(data, dict):
            return data
        raise DataSourceError(f"Unexpected search payload: {type(data).__name__}")

    def similar_objects(self, identity: Any) -> List[Dict[str, Any]]:
        """Similar records for a visited record, in service order."""
        if identity is None:
            return []
        data = self._get(f'/similar-objects/{identity}')
        if isinstance(data, dict):
            return [data]
        if isinstance(data, list):
            return [item for item in data if isinstance(item, dict)]
        raise DataSourceError(f"Unexpected similar-objects payload: {type(data).__name__}")

    def close(self) -> None:
        self.session.close()
