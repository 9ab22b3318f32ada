# ratecaster/subgraph.py
"""
Client for the GraphQL rating index.

No caching and no retries: every call is a fresh POST. Transport problems
raise TransportError, an ``errors`` payload raises RemoteError. Deciding
whether a failure degrades to an empty result is up to the caller.
"""
from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

import requests

from . import config
from .errors import ConfigurationError, RemoteError, TransportError

logger = logging.getLogger(__name__)


def _tail(endpoint: str) -> str:
    return "/".join(endpoint.rstrip("/").split("/")[-2:])


class SubgraphClient:
    def __init__(
        self,
        endpoint: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        page_size: Optional[int] = None,
    ):
        if not endpoint:
            raise ConfigurationError("GraphQL URL not configured for this chain")
        self.endpoint = endpoint
        self.session = session or requests.Session()
        self.timeout = timeout or config.HTTP_TIMEOUT
        self.page_size = page_size or config.PAGE_SIZE

    async def query(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run one query and return its ``data`` object."""
        return await asyncio.to_thread(self._post, query, dict(variables or {}))

    async def fetch_all(
        self,
        query: str,
        collection: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Page through ``collection`` with first/skip until a short page comes back."""
        rows: List[Dict[str, Any]] = []
        skip = 0
        while True:
            data = await self.query(
                query, {**(variables or {}), "first": self.page_size, "skip": skip}
            )
            page = data.get(collection) or []
            rows.extend(page)
            if len(page) < self.page_size:
                return rows
            skip += self.page_size

    def _post(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        request_id = uuid.uuid4().hex[:8]
        started = time.perf_counter()
        logger.debug("GraphQL request [%s] to %s", request_id, _tail(self.endpoint))
        logger.debug("Query [%s]: %s", request_id, " ".join(query.split())[:100])

        try:
            r = self.session.post(
                self.endpoint,
                json={"query": query, "variables": variables},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("GraphQL request [%s] failed: %s", request_id, e)
            raise TransportError(f"Failed to reach index: {e}", step="query") from e

        if not 200 <= r.status_code < 300:
            logger.error("GraphQL request [%s] failed with status: %s", request_id, r.status_code)
            raise TransportError(f"HTTP error! status: {r.status_code}", step="query")

        try:
            payload = r.json()
        except ValueError as e:
            raise RemoteError("Index returned a non-JSON body", step="query") from e
        if not isinstance(payload, dict):
            raise RemoteError("Index returned an unexpected body", step="query")

        errors = payload.get("errors")
        if errors:
            messages = [
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            ]
            logger.error("GraphQL request [%s] returned errors: %s", request_id, messages)
            raise RemoteError("GraphQL errors: " + "; ".join(messages), step="query")

        data = payload.get("data")
        if not isinstance(data, dict):
            raise RemoteError("GraphQL response has no data", step="query")

        logger.debug(
            "GraphQL request [%s] completed in %.2fms",
            request_id, (time.perf_counter() - started) * 1000,
        )
        return data
