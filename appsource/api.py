"""Client for the Partner Center Ingestion API.

Each operation renews the caller's auth context, issues one request (or, for
collections, one request per page) and reports the outcome to telemetry.
Failures are reported and then re-raised unchanged; nothing is retried.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
from urllib.parse import urlencode, urlsplit

import requests

from .config import IngestionApiConfig
from .errors import PaginationError
from .interfaces import AuthContextProvider, Telemetry
from .models import AuthContext, Page
from .telemetry import LoggingTelemetry

logger = logging.getLogger(__name__)

Query = Union[str, Mapping[str, Any], None]

NEXT_LINK_KEYS = ("nextlink", "@nextlink", "@odata.nextlink")
ETAG_KEY = "@odata.etag"


def build_query_string(query: Query) -> str:
    """Render ``query`` as ``?a=b&c=d``; strings are taken as already encoded."""
    if not query:
        return ""
    if isinstance(query, str):
        return query if query.startswith("?") else f"?{query}"
    return f"?{urlencode(query, doseq=True, safe='$')}"


def parse_page(payload: Any) -> Page:
    """Split a collection response into its items and continuation link."""
    if isinstance(payload, list):
        return Page(items=payload)
    if not isinstance(payload, dict):
        return Page(items=[])

    next_link = None
    for key, value in payload.items():
        if key.lower() in NEXT_LINK_KEYS and value:
            next_link = value
            break
    return Page(items=list(payload.get("value") or []), next_link=next_link)


def resolve_next_link(base_url: str, next_link: str, current_url: Optional[str] = None) -> str:
    """Turn a ``nextlink`` value into a request URL.

    Absolute links are used as-is. A query-only link (``?$skipToken=...``)
    replaces the query of ``current_url``. Relative links that already carry
    the base URL's path (``v1.0/ingestion/...``) are joined to the host, all
    others to the base URL.
    """
    if next_link.startswith(("https://", "http://")):
        return next_link
    if next_link.startswith("?"):
        resource_url = (current_url or base_url).split("?", 1)[0]
        return f"{resource_url}{next_link}"

    parts = urlsplit(base_url)
    base_path = parts.path.strip("/")
    link = next_link.lstrip("/")
    if base_path and (link == base_path or link.startswith(f"{base_path}/")):
        return f"{parts.scheme}://{parts.netloc}/{link}"
    return f"{base_url.rstrip('/')}/{link}"


class IngestionApiClient:
    """GET/POST/PUT/DELETE wrappers around the Ingestion API."""

    def __init__(
        self,
        auth_provider: AuthContextProvider,
        telemetry: Optional[Telemetry] = None,
        session: Optional[requests.Session] = None,
        config: Optional[IngestionApiConfig] = None,
    ) -> None:
        self._auth_provider = auth_provider
        self._telemetry = telemetry or LoggingTelemetry()
        self._session = session or requests.Session()
        self._config = config or IngestionApiConfig()

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def get_collection(
        self,
        auth_context: Optional[AuthContext],
        path: str,
        query: Query = None,
        headers: Optional[Dict[str, str]] = None,
        silent: Optional[bool] = None,
    ) -> List[Dict[str, Any]]:
        """GET every page of a collection and return the items in page order."""

        def collect(context: AuthContext) -> List[Dict[str, Any]]:
            request_headers = self._headers(context, headers)
            items: List[Dict[str, Any]] = []
            requested = set()
            url: Optional[str] = self._build_url(path, query)

            while url:
                if url in requested:
                    raise PaginationError(f"nextlink repeats an already requested page: {url}")
                if self._config.max_pages is not None and len(requested) >= self._config.max_pages:
                    raise PaginationError(
                        f"Collection {path} exceeded max_pages={self._config.max_pages}"
                    )
                requested.add(url)

                page = parse_page(self._request("GET", url, request_headers, silent=silent))
                items.extend(page.items)
                url = (
                    resolve_next_link(self.base_url, page.next_link, url) if page.next_link else None
                )

            logger.debug(f"Collected {len(items)} items from {len(requested)} pages of {path}")
            return items

        return self._invoke("ingestion_api.get_collection", "GET", auth_context, path, silent, collect)

    def get(
        self,
        auth_context: Optional[AuthContext],
        path: str,
        query: Query = None,
        headers: Optional[Dict[str, str]] = None,
        silent: Optional[bool] = None,
    ) -> Any:
        return self._invoke(
            "ingestion_api.get",
            "GET",
            auth_context,
            path,
            silent,
            lambda context: self._request(
                "GET", self._build_url(path, query), self._headers(context, headers), silent=silent
            ),
        )

    def post(
        self,
        auth_context: Optional[AuthContext],
        path: str,
        body: Dict[str, Any],
        query: Query = None,
        headers: Optional[Dict[str, str]] = None,
        silent: Optional[bool] = None,
    ) -> Any:
        return self._invoke(
            "ingestion_api.post",
            "POST",
            auth_context,
            path,
            silent,
            lambda context: self._request(
                "POST",
                self._build_url(path, query),
                self._headers(context, headers),
                body=body,
                silent=silent,
            ),
        )

    def put(
        self,
        auth_context: Optional[AuthContext],
        path: str,
        body: Dict[str, Any],
        query: Query = None,
        headers: Optional[Dict[str, str]] = None,
        silent: Optional[bool] = None,
    ) -> Any:
        """PUT ``body`` guarded by its ``@odata.etag`` (sent as ``If-Match``)."""
        etag = body.get(ETAG_KEY)
        if not etag:
            raise ValueError(f"PUT {path} requires a body carrying {ETAG_KEY}")

        def send(context: AuthContext) -> Any:
            request_headers = self._headers(context, headers)
            request_headers["If-Match"] = etag
            return self._request(
                "PUT", self._build_url(path, query), request_headers, body=body, silent=silent
            )

        return self._invoke("ingestion_api.put", "PUT", auth_context, path, silent, send)

    def delete(
        self,
        auth_context: Optional[AuthContext],
        path: str,
        query: Query = None,
        headers: Optional[Dict[str, str]] = None,
        silent: Optional[bool] = None,
    ) -> Any:
        return self._invoke(
            "ingestion_api.delete",
            "DELETE",
            auth_context,
            path,
            silent,
            lambda context: self._request(
                "DELETE", self._build_url(path, query), self._headers(context, headers), silent=silent
            ),
        )

    def _invoke(
        self,
        operation: str,
        method: str,
        auth_context: Optional[AuthContext],
        path: str,
        silent: Optional[bool],
        send: Callable[[AuthContext], Any],
    ) -> Any:
        parameters = {"method": method, "path": path, "silent": self._is_silent(silent)}
        with self._telemetry.scope(operation, parameters) as scope:
            try:
                context = self._auth_provider.renew(auth_context)
                result = send(context)
            except Exception as exc:
                scope.track_exception(exc)
                raise
            scope.track_trace(f"{method} {path} succeeded")
            return result

    def _build_url(self, path: str, query: Query) -> str:
        url = f"{self.base_url}{path}"
        query_string = build_query_string(query)
        if query_string and "?" in url:
            query_string = f"&{query_string[1:]}"
        return f"{url}{query_string}"

    def _headers(self, context: AuthContext, extra: Optional[Dict[str, str]]) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {context.access_token}",
            "Content-Type": "application/json",
        }
        headers.update(extra or {})
        return headers

    def _is_silent(self, silent: Optional[bool]) -> bool:
        return self._config.silent if silent is None else silent

    def _request(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[Dict[str, Any]] = None,
        silent: Optional[bool] = None,
    ) -> Any:
        payload = None if body is None else json.dumps(body).encode("utf-8")
        if not self._is_silent(silent):
            logger.info(f"{method} {url}")
            if payload is not None:
                logger.debug(f"Request body: {payload.decode('utf-8')}")

        response = self._session.request(
            method,
            url,
            headers=headers,
            data=payload,
            timeout=self._config.timeout,
        )
        response.raise_for_status()

        if not response.content:
            return None
        return response.json()
