"""Read helpers for AppSource products built on the Ingestion API client."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .api import IngestionApiClient
from .models import AuthContext

logger = logging.getLogger(__name__)


class AppSourceProducts:
    """Products, branches and submissions of the signed-in publisher."""

    def __init__(
        self,
        client: IngestionApiClient,
        auth_context: Optional[AuthContext] = None,
        silent: bool = True,
    ) -> None:
        self._client = client
        self._auth_context = auth_context
        self._silent = silent

    def list_products(
        self,
        product_id: Optional[str] = None,
        product_name: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """List products, optionally narrowed to one id or a case-insensitive name."""
        products = self._client.get_collection(self._auth_context, "/products", silent=self._silent)
        if product_id:
            products = [p for p in products if p.get("id") == product_id]
        if product_name:
            products = [
                p for p in products if (p.get("name") or "").lower() == product_name.lower()
            ]
        logger.info(f"Found {len(products)} products")
        return products

    def get_product(self, product_id: str) -> Dict[str, Any]:
        return self._client.get(
            self._auth_context, f"/products/{quote(product_id)}", silent=self._silent
        )

    def list_branches(self, product_id: str, module: str = "Package") -> List[Dict[str, Any]]:
        return self._client.get_collection(
            self._auth_context,
            f"/products/{quote(product_id)}/branches/getByModule(module={module})",
            silent=self._silent,
        )

    def list_submissions(self, product_id: str) -> List[Dict[str, Any]]:
        return self._client.get_collection(
            self._auth_context, f"/products/{quote(product_id)}/submissions", silent=self._silent
        )

    def get_submission(self, product_id: str, submission_id: str) -> Dict[str, Any]:
        return self._client.get(
            self._auth_context,
            f"/products/{quote(product_id)}/submissions/{quote(submission_id)}",
            silent=self._silent,
        )
