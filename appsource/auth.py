"""Access token providers for the Partner Center Ingestion API."""

from __future__ import annotations

import logging
import time
from typing import Dict, Optional, Type

import msal

from .config import INGESTION_API_SCOPE, AuthConfig, unresolved_variables
from .errors import AuthenticationError
from .interfaces import AuthContextProvider
from .models import AuthContext

logger = logging.getLogger(__name__)


class MsalAuthProvider(AuthContextProvider):
    """Client credentials flow against Azure AD using MSAL."""

    AUTHORITY_TEMPLATE = "https://login.microsoftonline.com/{tenant_id}"

    def __init__(self, config: AuthConfig) -> None:
        """Initialize the provider.

        Required config params:
            tenant_id: Azure AD tenant ID
            client_id: Azure AD application (client) ID
            client_secret: Azure AD client secret

        Optional config params:
            scopes: Token scopes (default: the Ingestion API scope)
            refresh_buffer_seconds: Renew tokens this long before expiry (default: 300)
        """
        self._tenant_id = config.params.get("tenant_id")
        self._client_id = config.params.get("client_id")
        self._client_secret = config.params.get("client_secret")
        self._scopes = list(config.params.get("scopes", [INGESTION_API_SCOPE]))
        self._refresh_buffer = float(config.params.get("refresh_buffer_seconds", 300))

        if not all([self._tenant_id, self._client_id, self._client_secret]):
            raise ValueError(
                "MSAL auth requires: tenant_id, client_id, and client_secret"
            )
        for name in ("tenant_id", "client_id", "client_secret"):
            missing = unresolved_variables(config.params[name])
            if missing:
                raise ValueError(
                    f"MSAL auth {name} references unset environment variables: {', '.join(missing)}"
                )

        authority = self.AUTHORITY_TEMPLATE.format(tenant_id=self._tenant_id)
        self._msal_app = msal.ConfidentialClientApplication(
            client_id=self._client_id,
            client_credential=self._client_secret,
            authority=authority,
        )

    def renew(self, context: Optional[AuthContext] = None) -> AuthContext:
        if context and not context.expires_within(self._refresh_buffer):
            return context

        logger.info("Acquiring new access token from Azure AD...")
        result = self._msal_app.acquire_token_for_client(scopes=self._scopes)

        if "access_token" not in result:
            error_msg = result.get("error_description", result.get("error", "Unknown error"))
            raise AuthenticationError(f"Failed to acquire access token: {error_msg}")

        logger.info("Successfully acquired access token")
        return AuthContext(
            access_token=result["access_token"],
            expires_at=time.time() + result.get("expires_in", 3600),
            scopes=list(self._scopes),
            extra={"tenant_id": self._tenant_id, "client_id": self._client_id},
        )


class StaticTokenProvider(AuthContextProvider):
    """Hands out a fixed, pre-issued token. Useful for scripts and tests."""

    def __init__(self, config: AuthConfig) -> None:
        token = config.params.get("access_token")
        if not token:
            raise ValueError("Static auth requires: access_token")
        self._context = AuthContext(access_token=token)

    def renew(self, context: Optional[AuthContext] = None) -> AuthContext:
        return context or self._context


AUTH_PROVIDERS: Dict[str, Type[AuthContextProvider]] = {
    "msal": MsalAuthProvider,
    "static": StaticTokenProvider,
}


def build_auth_provider(config: AuthConfig) -> AuthContextProvider:
    try:
        provider_cls = AUTH_PROVIDERS[config.type]
    except KeyError as exc:
        raise ValueError(f"Unknown auth type: {config.type}") from exc
    return provider_cls(config)
