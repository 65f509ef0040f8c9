"""Tests for sferd.api module."""

import os
from unittest.mock import MagicMock, patch

import pytest
import requests

from sferd.api import SalesforceAPI, SFConfig
from sferd.exceptions import MissingCredentialsError


def _response(payload, status=200):
    r = MagicMock()
    r.json.return_value = payload
    r.status_code = status
    return r


class TestSFConfig:
    """Tests for SFConfig dataclass."""

    def test_default_values(self):
        cfg = SFConfig()

        assert cfg.auth_flow == "client_credentials"
        assert cfg.login_url == "https://login.salesforce.com"
        assert cfg.client_id is None
        assert cfg.timeout == 30.0

    def test_from_env(self):
        env = {
            "SF_LOGIN_URL": "https://test.salesforce.com",
            "SF_CLIENT_ID": "test_client_id",
            "SF_CLIENT_SECRET": "test_secret",
            "SF_ACCESS_TOKEN": "existing_token",
            "SF_INSTANCE_URL": "https://myorg.my.salesforce.com",
            "SF_API_VERSION": "v60.0",
            "SF_TIMEOUT": "12.5",
        }

        with patch.dict(os.environ, env, clear=False):
            cfg = SFConfig.from_env()

        assert cfg.login_url == "https://test.salesforce.com"
        assert cfg.client_id == "test_client_id"
        assert cfg.access_token == "existing_token"
        assert cfg.api_version == "v60.0"
        assert cfg.timeout == 12.5

    def test_from_env_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            cfg = SFConfig.from_env()

        assert cfg.auth_flow == "client_credentials"
        assert cfg.login_url == "https://login.salesforce.com"


class TestConnect:
    """Tests for SalesforceAPI.connect."""

    def test_connect_with_existing_token(self):
        cfg = SFConfig(
            access_token="existing_token",
            instance_url="https://myorg.my.salesforce.com/",
            api_version="v60.0",
        )
        api = SalesforceAPI(cfg)

        api.connect()

        assert api.access_token == "existing_token"
        assert api.instance_url == "https://myorg.my.salesforce.com"
        assert api.session.headers["Authorization"] == "Bearer existing_token"

    def test_connect_discovers_api_version(self):
        api = SalesforceAPI(
            SFConfig(access_token="token", instance_url="https://myorg.my.salesforce.com")
        )
        versions = _response(
            [
                {"version": "58.0", "url": "/services/data/v58.0"},
                {"version": "60.0", "url": "/services/data/v60.0"},
                {"version": "59.0", "url": "/services/data/v59.0"},
            ]
        )

        with patch.object(api.session, "request", return_value=versions):
            api.connect()

        assert api.api_version == "v60.0"

    def test_connect_without_credentials_raises(self):
        with pytest.raises(MissingCredentialsError) as exc_info:
            SalesforceAPI(SFConfig()).connect()

        assert "SF_CLIENT_ID" in exc_info.value.missing
        assert "SF_CLIENT_SECRET" in exc_info.value.missing

    def test_client_credentials_login(self):
        cfg = SFConfig(client_id="id", client_secret="secret", api_version="v60.0")
        api = SalesforceAPI(cfg)
        token = _response(
            {"access_token": "new_token", "instance_url": "https://myorg.my.salesforce.com/"}
        )

        with patch.object(api.session, "request", return_value=token) as req:
            api.connect()

        assert api.access_token == "new_token"
        assert api.instance_url == "https://myorg.my.salesforce.com"
        args, kwargs = req.call_args
        assert args == ("POST", "https://login.salesforce.com/services/oauth2/token")
        assert kwargs["data"]["grant_type"] == "client_credentials"

    def test_unsupported_auth_flow(self):
        with pytest.raises(RuntimeError, match="Unsupported SF_AUTH_FLOW"):
            SalesforceAPI(SFConfig(auth_flow="password")).connect()


class TestDescribe:
    """Tests for the describe endpoints."""

    @pytest.fixture
    def connected_api(self):
        api = SalesforceAPI(SFConfig(access_token="token"))
        api.access_token = "token"
        api.instance_url = "https://myorg.my.salesforce.com"
        api.api_version = "v60.0"
        return api

    def test_describe_object_url(self, connected_api):
        with patch.object(
            connected_api.session, "request", return_value=_response({"name": "Account"})
        ) as req:
            desc = connected_api.describe_object("Account")

        assert desc == {"name": "Account"}
        assert req.call_args[0] == (
            "GET",
            "https://myorg.my.salesforce.com/services/data/v60.0/sobjects/Account/describe",
        )
        assert req.call_args[1]["headers"]["Authorization"] == "Bearer token"

    def test_list_sobjects_filters_queryable(self, connected_api):
        payload = {
            "sobjects": [
                {"name": "Contact", "queryable": True},
                {"name": "AuditTrail", "queryable": False},
                {"name": "Account", "queryable": True},
            ]
        }
        with patch.object(connected_api.session, "request", return_value=_response(payload)):
            names = [s["name"] for s in connected_api.list_sobjects()]

        assert names == ["Account", "Contact"]

    def test_list_sobjects_all(self, connected_api):
        payload = {"sobjects": [{"name": "B", "queryable": False}, {"name": "A"}]}
        with patch.object(connected_api.session, "request", return_value=_response(payload)):
            names = [s["name"] for s in connected_api.list_sobjects(queryable_only=False)]

        assert names == ["A", "B"]

    def test_not_connected(self):
        with pytest.raises(RuntimeError, match="Not connected"):
            SalesforceAPI(SFConfig()).describe_object("Account")


class TestRetries:
    """Tests for transient error handling in _request."""

    @pytest.fixture(autouse=True)
    def _no_sleep(self, monkeypatch):
        monkeypatch.setattr("sferd.api.time.sleep", lambda _s: None)

    def test_retries_transient_status(self):
        api = SalesforceAPI(SFConfig())
        busy = _response({}, status=503)
        ok = _response({"ok": True})

        with patch.object(api.session, "request", side_effect=[busy, ok]) as req:
            r = api._request("GET", "https://example.invalid/x")

        assert r is ok
        assert req.call_count == 2

    def test_retries_connection_errors_then_raises(self):
        api = SalesforceAPI(SFConfig())
        err = requests.ConnectionError("reset")

        with patch.object(api.session, "request", side_effect=[err, err, err]):
            with pytest.raises(requests.ConnectionError):
                api._request("GET", "https://example.invalid/x")

    def test_client_error_is_not_retried(self):
        api = SalesforceAPI(SFConfig())
        missing = _response({"message": "not found"}, status=404)
        missing.raise_for_status.side_effect = requests.HTTPError("404 Client Error")

        with patch.object(api.session, "request", return_value=missing) as req:
            with pytest.raises(requests.HTTPError):
                api._request("GET", "https://example.invalid/x")

        assert req.call_count == 1
