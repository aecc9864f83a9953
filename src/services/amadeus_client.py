# src/services/amadeus_client.py

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
import requests

logger = logging.getLogger(__name__)

# Refresh this many seconds before the provider-reported expiry
TOKEN_REFRESH_MARGIN_S = 60


class AmadeusApiError(RuntimeError):
    """Non-2xx answer from the Amadeus REST API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class TokenCache:
    """
    OAuth2 access token plus its expiry (epoch seconds).

    Owned by the caller and handed to AmadeusClient, so several clients can
    share one token and tests can pre-seed or inspect it.
    """

    access_token: Optional[str] = None
    expires_at: float = 0.0

    def is_valid(self, now: float, margin_s: float = TOKEN_REFRESH_MARGIN_S) -> bool:
        return bool(self.access_token) and now < (self.expires_at - margin_s)

    def store(self, access_token: str, expires_in: int, now: float) -> None:
        self.access_token = access_token
        self.expires_at = now + expires_in

    def clear(self) -> None:
        self.access_token = None
        self.expires_at = 0.0


def _error_message(resp: requests.Response) -> str:
    """Best human-readable message out of an Amadeus error body."""
    try:
        payload = resp.json()
    except ValueError:
        return resp.text or resp.reason or str(resp.status_code)

    if isinstance(payload, dict):
        errors = payload.get("errors") or []
        if errors and isinstance(errors[0], dict):
            first = errors[0]
            return str(first.get("detail") or first.get("title") or resp.reason)
        for key in ("error_description", "detail"):
            if payload.get(key):
                return str(payload[key])
    return resp.text or resp.reason or str(resp.status_code)


class AmadeusClient:
    """
    Minimal Amadeus REST client with OAuth2 client-credentials auth.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        env: Optional[str] = None,
        timeout_seconds: int = 20,
        token_cache: Optional[TokenCache] = None,
        clock: Callable[[], float] = time.time,
        session: Optional[requests.Session] = None,
    ):
        self.client_id = (client_id or os.getenv(
            "AMADEUS_CLIENT_ID", "")).strip()
        self.client_secret = (client_secret or os.getenv(
            "AMADEUS_CLIENT_SECRET", "")).strip()
        self.env = (env or os.getenv("AMADEUS_ENV", "test")).strip().lower()
        self.timeout_seconds = timeout_seconds

        if not self.client_id or not self.client_secret:
            raise ValueError(
                "Missing Amadeus credentials. Set AMADEUS_CLIENT_ID and AMADEUS_CLIENT_SECRET."
            )

        # Base URLs for Self-Service APIs
        self.base_url = (
            "https://test.api.amadeus.com"
            if self.env == "test"
            else "https://api.amadeus.com"
        )

        self.token_cache = token_cache if token_cache is not None else TokenCache()
        self._clock = clock
        self._http = session or requests.Session()

    def _fetch_token(self) -> None:
        url = f"{self.base_url}/v1/security/oauth2/token"
        data = {"grant_type": "client_credentials"}
        headers = {"Content-Type": "application/x-www-form-urlencoded"}

        resp = self._http.post(
            url,
            data=data,
            headers=headers,
            auth=(self.client_id, self.client_secret),
            timeout=self.timeout_seconds,
        )

        # Helpful error detail without leaking secrets
        if resp.status_code != 200:
            raise AmadeusApiError(
                f"Authentication failed: {_error_message(resp)}",
                status_code=resp.status_code,
            )

        payload = resp.json()
        expires_in = int(payload.get("expires_in", 1799))
        self.token_cache.store(payload["access_token"], expires_in, self._clock())
        logger.debug("Fetched Amadeus token, valid for %ss", expires_in)

    def _get_auth_header(self) -> Dict[str, str]:
        if not self.token_cache.is_valid(self._clock()):
            self._fetch_token()
        return {"Authorization": f"Bearer {self.token_cache.access_token}"}

    def get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        query = {k: v for k, v in params.items() if v is not None and v != ""}

        resp = self._http.get(url, params=query,
                              headers=self._get_auth_header(), timeout=self.timeout_seconds)

        # If token expired unexpectedly, refresh once and retry
        if resp.status_code == 401:
            logger.info("Amadeus returned 401, refreshing token and retrying once")
            self.token_cache.clear()
            resp = self._http.get(url, params=query,
                                  headers=self._get_auth_header(), timeout=self.timeout_seconds)

        if not resp.ok:
            raise AmadeusApiError(
                f"API Error: {resp.status_code} - {_error_message(resp)}",
                status_code=resp.status_code,
            )
        return resp.json()
