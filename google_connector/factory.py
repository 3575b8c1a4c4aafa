# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Factory for building a GoogleConnector from configuration."""

from typing import Optional

import httpx

from connector_logging import Logger, create_logger

from .config import WILDCARD_DOMAIN, ConnectorConfig
from .connector import GoogleConnector
from .credentials import create_directory_client
from .directory import DirectoryClient, DirectoryClientFactory, DirectoryRoutingTable
from .errors import CredentialsError
from .groups import GroupResolver
from .oidc import OIDCProvider


def create_connector(
    config: ConnectorConfig,
    logger: Optional[Logger] = None,
    oidc_provider: Optional[OIDCProvider] = None,
    directory_client_factory: Optional[DirectoryClientFactory] = None,
    http_client: Optional[httpx.Client] = None,
) -> GoogleConnector:
    """Create a connector, performing OIDC discovery and directory setup.

    Directory clients are created when a service account file is configured
    together with a domain mapping, or when the "groups" scope is requested
    (in which case ambient default credentials may be used).

    Args:
        config: Validated connector configuration
        logger: Logger, defaults to a stdout logger
        oidc_provider: Provider peer to use instead of discovering one
        directory_client_factory: Callable mapping an admin email to a
            DirectoryClient, defaults to a service account backed client
        http_client: Shared HTTP client; the connector closes it only if
            it created it

    Returns:
        GoogleConnector instance

    Raises:
        ValueError: If the directory configuration is incomplete
        DiscoveryFailed: If OIDC discovery fails
        CredentialsError: If a directory client cannot be created
    """
    logger = logger or create_logger(name="google_connector")

    if config.admin_email:
        logger.warning(
            f'google: use "domainToAdminEmail.{WILDCARD_DOMAIN}: {config.admin_email}" option '
            f'instead of "adminEmail: {config.admin_email}".'
        )

    if not config.domain_to_admin_email and config.service_account_file_path:
        raise ValueError("directory service requires the domainToAdminEmail option to be configured")

    scopes = config.effective_scopes
    owns_http = http_client is None
    http = http_client or httpx.Client(timeout=10.0)

    def release() -> None:
        if owns_http:
            http.close()

    try:
        provider = oidc_provider
        if provider is None:
            provider = OIDCProvider(
                issuer_url=config.issuer_url,
                client_id=config.client_id,
                client_secret=config.client_secret,
                redirect_uri=config.redirect_uri,
                scopes=scopes,
                http_client=http,
                logger=logger,
            )
            provider.discover()

        routing_table = DirectoryRoutingTable(logger=logger)
        wants_directory = (
            (config.service_account_file_path and config.domain_to_admin_email)
            or "groups" in scopes
        )
        if wants_directory:
            factory = directory_client_factory or _service_account_factory(config, http, logger)
            try:
                routing_table = DirectoryRoutingTable.from_admin_emails(
                    config.domain_to_admin_email, factory, logger=logger
                )
            except CredentialsError as e:
                raise CredentialsError(f"could not create directory service: {e}") from e
    except Exception:
        release()
        raise

    logger.info("Google connector created", scopes=scopes, domains=routing_table.domains)

    return GoogleConnector(
        redirect_uri=config.redirect_uri,
        token_exchanger=provider,
        verifier=provider,
        group_resolver=GroupResolver(routing_table, logger=logger),
        hosted_domains=config.hosted_domains,
        groups=config.groups,
        fetch_transitive_group_membership=config.fetch_transitive_group_membership,
        logger=logger,
        on_close=release,
    )


def _service_account_factory(
    config: ConnectorConfig,
    http: httpx.Client,
    logger: Logger,
) -> DirectoryClientFactory:
    def factory(admin_email: str) -> DirectoryClient:
        return create_directory_client(
            config.service_account_file_path, admin_email, http_client=http, logger=logger
        )
    return factory
