from __future__ import annotations

import click

from .api import SalesforceAPI, SFConfig
from .exceptions import MissingCredentialsError

_CREDENTIALS_HELP = (
    "Set these environment variables (or create a .env file), e.g. for "
    "client-credentials auth:\n"
    "  SF_AUTH_FLOW=client_credentials\n"
    "  SF_CLIENT_ID=...             # Connected App Consumer Key\n"
    "  SF_CLIENT_SECRET=...         # Connected App Client Secret\n"
    "  SF_LOGIN_URL=https://login.salesforce.com  # or your custom domain URL\n"
    "  SF_API_VERSION=v60.0         # optional; will auto-discover if omitted\n\n"
    "Alternatively set SF_ACCESS_TOKEN and SF_INSTANCE_URL to reuse an existing session."
)


def connect_api() -> SalesforceAPI:
    """Connect using env configuration, turning missing credentials into a CLI error."""
    api = SalesforceAPI(SFConfig.from_env())
    try:
        api.connect()
    except MissingCredentialsError as e:
        needed = ", ".join(e.missing)
        raise click.ClickException(
            f"Missing Salesforce credentials: {needed}\n\n{_CREDENTIALS_HELP}"
        ) from e
    return api
