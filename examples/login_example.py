# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Example: drive a Google login from a command line.

Configure with GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REDIRECT_URI
and, for groups, GOOGLE_DOMAIN_TO_ADMIN_EMAIL plus a service account key.
Open the printed URL, then paste the query string of the redirect.
"""

import secrets
from urllib.parse import parse_qsl

from google_connector import ConnectorError, Scopes, create_connector, load_config_from_env


def main() -> None:
    config = load_config_from_env()
    scopes = Scopes(offline_access=True, groups="groups" in config.effective_scopes)

    with create_connector(config) as connector:
        state = secrets.token_urlsafe(16)
        print(connector.login_url(scopes, config.redirect_uri, state))

        query = dict(parse_qsl(input("Redirect query string: ").lstrip("?")))
        if query.get("state") != state:
            raise SystemExit("state mismatch")

        try:
            identity = connector.handle_callback(scopes, query)
        except ConnectorError as e:
            raise SystemExit(f"login failed: {e}") from e

        print(identity.to_dict())


if __name__ == "__main__":
    main()
