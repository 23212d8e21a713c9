"""Client-credentials token acquisition for Microsoft Graph."""

from __future__ import annotations

import logging
import threading
from datetime import timedelta
from typing import Dict, Optional, Protocol

import msal
import requests

from .errors import AuthError
from .models import AccessToken, ClientIdentity
from .utils import expiry_from_seconds, path_segment

logger = logging.getLogger(__name__)

AUTHORITY_HOST = "https://login.microsoftonline.com"
GRAPH_HOST = "https://graph.microsoft.com"


def default_scope(resource_host: str) -> str:
    return f"{resource_host.rstrip('/')}/.default"


class CredentialProvider(Protocol):
    def acquire_token(self, identity: ClientIdentity) -> AccessToken: ...


class TokenCache:
    """In-memory tokens keyed by identity, handed out only while unexpired."""

    def __init__(self, skew: timedelta = timedelta(seconds=60)) -> None:
        self.skew = skew
        self._tokens: Dict[ClientIdentity, AccessToken] = {}
        self._lock = threading.Lock()

    def get(self, identity: ClientIdentity) -> Optional[AccessToken]:
        with self._lock:
            token = self._tokens.get(identity)
            if token is None:
                return None
            if token.is_expired(skew=self.skew):
                del self._tokens[identity]
                return None
            return token

    def put(self, identity: ClientIdentity, token: AccessToken) -> None:
        # Without an expiry there is no way to tell when reuse stops being safe.
        if token.expires_at is None:
            return
        with self._lock:
            self._tokens[identity] = token

    def invalidate(self, identity: ClientIdentity) -> None:
        with self._lock:
            self._tokens.pop(identity, None)

    def clear(self) -> None:
        with self._lock:
            self._tokens.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)


class ClientCredentialsProvider:
    """Exchange client id + secret for a bearer token via the v2.0 token endpoint."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        authority_host: str = AUTHORITY_HOST,
        resource_host: str = GRAPH_HOST,
        cache: TokenCache | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.session = session or requests.Session()
        self.authority_host = authority_host.rstrip("/")
        self.scope = default_scope(resource_host)
        self.cache = cache
        self.timeout = timeout

    def token_url(self, identity: ClientIdentity) -> str:
        return f"{self.authority_host}/{path_segment(identity.tenant_id)}/oauth2/v2.0/token"

    def acquire_token(self, identity: ClientIdentity) -> AccessToken:
        if self.cache is not None:
            cached = self.cache.get(identity)
            if cached is not None:
                logger.debug("Reusing cached Graph token for client %s", identity.client_id)
                return cached

        token = self._request_token(identity)
        if self.cache is not None:
            self.cache.put(identity, token)
        return token

    def _request_token(self, identity: ClientIdentity) -> AccessToken:
        url = self.token_url(identity)
        data = {
            "client_id": identity.client_id,
            "client_secret": identity.client_secret,
            "scope": self.scope,
            "grant_type": "client_credentials",
        }
        headers = {"Content-Type": "application/x-www-form-urlencoded"}

        logger.debug("Requesting Graph token from %s", url)
        try:
            resp = self.session.post(url, data=data, headers=headers, timeout=self.timeout)
        except requests.RequestException:
            logger.exception("Token request to %s failed", url)
            raise

        if not 200 <= resp.status_code < 300:
            logger.error("Token request failed (%s): %s", resp.status_code, resp.text)
            raise AuthError(
                f"Failed to obtain access token: {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            logger.error("Token response is not JSON: %s", resp.text)
            raise AuthError(
                f"Token response is not valid JSON: {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            ) from exc

        if not isinstance(payload, dict) or not payload.get("access_token"):
            logger.error("Token response carries no access_token")
            raise AuthError(
                "Token response did not include an access_token",
                status_code=resp.status_code,
                body=resp.text,
            )

        return AccessToken(
            value=payload["access_token"],
            expires_at=expiry_from_seconds(payload.get("expires_in")),
        )


class MsalCredentialProvider:
    """Same contract as :class:`ClientCredentialsProvider`, backed by MSAL's own cache."""

    def __init__(
        self,
        *,
        authority_host: str = AUTHORITY_HOST,
        resource_host: str = GRAPH_HOST,
        timeout: float = 30.0,
    ) -> None:
        self.authority_host = authority_host.rstrip("/")
        self.scopes = [default_scope(resource_host)]
        self.timeout = timeout
        self._apps: Dict[ClientIdentity, msal.ConfidentialClientApplication] = {}
        self._lock = threading.Lock()

    def _app_for(self, identity: ClientIdentity) -> msal.ConfidentialClientApplication:
        with self._lock:
            app = self._apps.get(identity)
            if app is None:
                app = msal.ConfidentialClientApplication(
                    client_id=identity.client_id,
                    client_credential=identity.client_secret,
                    authority=f"{self.authority_host}/{identity.tenant_id}",
                    timeout=self.timeout,
                )
                self._apps[identity] = app
            return app

    def acquire_token(self, identity: ClientIdentity) -> AccessToken:
        app = self._app_for(identity)
        result = app.acquire_token_silent(self.scopes, account=None)
        if not result:
            result = app.acquire_token_for_client(scopes=self.scopes)
        if not result or "access_token" not in result:
            description = (result or {}).get("error_description", "")
            logger.error("MSAL token request failed: %s", description)
            raise AuthError(f"Unable to obtain Graph token: {description}", body=str(description))
        return AccessToken(
            value=result["access_token"],
            expires_at=expiry_from_seconds(result.get("expires_in")),
        )
