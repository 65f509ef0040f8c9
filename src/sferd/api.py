from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from .env_loader import load_env_files
from .exceptions import MissingCredentialsError

_logger = logging.getLogger(__name__)

# Library callers (not only the CLI) should see .env values too
load_env_files(quiet=True)

_RETRY_STATUSES = (429, 500, 502, 503, 504)


# ----------------------------------------------------------------------
# Configuration dataclass
# ----------------------------------------------------------------------
@dataclass
class SFConfig:
    """Connection settings for the Salesforce REST API."""

    # Only client_credentials is supported when no token is supplied
    auth_flow: str = "client_credentials"

    # Base login URL (not the instance URL)
    login_url: str = "https://login.salesforce.com"

    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    # Pre-issued token + instance URL skip the OAuth round trip
    access_token: Optional[str] = None
    instance_url: Optional[str] = None

    # e.g. "v60.0"; discovered from /services/data/ when unset
    api_version: Optional[str] = None

    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> SFConfig:
        """Load configuration from environment variables."""
        return cls(
            auth_flow=os.getenv("SF_AUTH_FLOW", "client_credentials"),
            login_url=os.getenv("SF_LOGIN_URL", "https://login.salesforce.com"),
            client_id=os.getenv("SF_CLIENT_ID"),
            client_secret=os.getenv("SF_CLIENT_SECRET"),
            access_token=os.getenv("SF_ACCESS_TOKEN"),
            instance_url=os.getenv("SF_INSTANCE_URL"),
            api_version=os.getenv("SF_API_VERSION"),
            timeout=float(os.getenv("SF_TIMEOUT", "30")),
        )


# ----------------------------------------------------------------------
# REST client
# ----------------------------------------------------------------------
class SalesforceAPI:
    """Small Salesforce REST client covering the describe endpoints."""

    def __init__(self, cfg: Optional[SFConfig] = None) -> None:
        self.cfg = cfg or SFConfig.from_env()
        self.session = requests.Session()
        self.access_token: Optional[str] = None
        self.instance_url: Optional[str] = None
        self.api_version: Optional[str] = None

    # --------------------------- Public methods -----------------------

    def connect(self) -> None:
        """Authenticate using either an existing token or the configured auth flow."""
        if self.cfg.access_token and self.cfg.instance_url:
            _logger.debug("Using existing access token from configuration.")
            self.access_token = self.cfg.access_token
            self.instance_url = self.cfg.instance_url.rstrip("/")
        else:
            _logger.info("Performing OAuth login using auth flow: %s", self.cfg.auth_flow)
            self._login_via_auth_flow()

        if not self.access_token or not self.instance_url:
            raise RuntimeError("Authentication did not yield access_token and instance_url.")

        self.session.headers.update({"Authorization": f"Bearer {self.access_token}"})
        self.api_version = self.cfg.api_version or self._discover_latest_api_version()
        _logger.info(
            "Connected to Salesforce instance=%s api=%s",
            self.instance_url,
            self.api_version,
        )

    def describe_global(self) -> Dict[str, Any]:
        """Return /sobjects (global describe)."""
        return self._get(self._data_url("sobjects")).json()

    def list_sobjects(self, *, queryable_only: bool = True) -> List[Dict[str, Any]]:
        """Return global-describe entries sorted by API name."""
        sobjs = self.describe_global().get("sobjects", []) or []
        if queryable_only:
            sobjs = [s for s in sobjs if s.get("queryable")]
        return sorted(sobjs, key=lambda s: s.get("name", ""))

    def describe_object(self, name: str) -> Dict[str, Any]:
        """Return /sobjects/{name}/describe."""
        return self._get(self._data_url(f"sobjects/{quote(name)}/describe")).json()

    # --------------------------- Internal helpers --------------------

    def _data_url(self, path: str) -> str:
        if not self.instance_url or not self.api_version:
            raise RuntimeError("Not connected; call connect() first.")
        return f"{self.instance_url}/services/data/{self.api_version}/{path}"

    def _login_via_auth_flow(self) -> None:
        if self.cfg.auth_flow == "client_credentials":
            self._client_credentials_login()
        else:
            raise RuntimeError(f"Unsupported SF_AUTH_FLOW: {self.cfg.auth_flow!r}")

    def _client_credentials_login(self) -> None:
        """Perform OAuth2 client credentials flow."""
        missing = [
            k
            for k, v in {
                "SF_CLIENT_ID": self.cfg.client_id,
                "SF_CLIENT_SECRET": self.cfg.client_secret,
                "SF_LOGIN_URL": self.cfg.login_url,
            }.items()
            if not v
        ]
        if missing:
            raise MissingCredentialsError(missing)

        token_url = f"{self.cfg.login_url.rstrip('/')}/services/oauth2/token"
        data = {
            "grant_type": "client_credentials",
            "client_id": self.cfg.client_id,
            "client_secret": self.cfg.client_secret,
        }

        _logger.debug("Requesting access token from %s", token_url)
        payload = self._post(token_url, data=data, auth_required=False).json()

        self.access_token = payload["access_token"]
        self.instance_url = payload["instance_url"].rstrip("/")

    def _discover_latest_api_version(self) -> str:
        """Find the latest available API version."""
        versions = self._get(f"{self.instance_url}/services/data/").json()
        best = sorted(versions, key=lambda v: float(v.get("version", "0")), reverse=True)[0]
        version_str = best.get("url", "").split("/")[-1]
        _logger.debug("Latest API version discovered: %s", version_str)
        return version_str

    # --------------------------- HTTP wrappers -----------------------

    def _get(self, url: str, *, auth_required: bool = True) -> requests.Response:
        return self._request("GET", url, auth_required=auth_required)

    def _post(
        self,
        url: str,
        *,
        data: Optional[Dict[str, Any]] = None,
        auth_required: bool = True,
    ) -> requests.Response:
        return self._request("POST", url, data=data, auth_required=auth_required)

    def _request(
        self,
        method: str,
        url: str,
        *,
        data: Optional[Dict[str, Any]] = None,
        auth_required: bool = True,
        retries: int = 3,
        backoff: float = 0.8,
    ) -> requests.Response:
        """Send one request, retrying transport errors and transient statuses."""
        headers: Dict[str, str] = {}
        if auth_required and self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        for attempt in range(1, retries + 1):
            try:
                r = self.session.request(
                    method,
                    url,
                    data=data,
                    headers=headers,
                    timeout=self.cfg.timeout,
                )
            except requests.RequestException as e:
                _logger.warning("Request error (attempt %d/%d): %s", attempt, retries, e)
                if attempt == retries:
                    raise
                time.sleep(backoff * attempt)
                continue

            if r.status_code < 400:
                return r

            if r.status_code in _RETRY_STATUSES and attempt < retries:
                _logger.warning("HTTP %s -> retrying %d/%d", r.status_code, attempt, retries)
                time.sleep(backoff * attempt)
                continue

            try:
                detail = r.json()
            except ValueError:
                detail = r.text
            _logger.error("HTTP %s error for %s: %s", r.status_code, url, detail)
            r.raise_for_status()
        raise RuntimeError("Exceeded maximum retries.")
