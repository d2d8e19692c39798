"""Process wiring for the account service."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from psycopg_pool import ConnectionPool

from .adapters.wallet_daemon import HttpWalletDaemon
from .adapters.wallet_factory import ProcessWalletFactory
from .config import Settings, get_settings
from .domain.authentication import AuthenticationGate, LockoutPolicy
from .domain.provisioning import WalletProvisioner
from .domain.service import AccountService
from .repository import AccountRepository
from .security.passwords import PasswordHasher

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@contextmanager
def build_account_service(settings: Settings | None = None) -> Iterator[AccountService]:
    """Initialise shared resources (Postgres pool, daemon client) for the service lifetime."""
    settings = settings or get_settings()
    configure_logging(settings)
    pool = ConnectionPool(settings.database_url, open=False)
    pool.open()
    daemon = HttpWalletDaemon(
        host=settings.wallet_daemon_host,
        api_version=settings.wallet_daemon_api_version,
        scheme=settings.wallet_daemon_scheme,
        timeout=settings.wallet_daemon_timeout_seconds,
    )
    repository = AccountRepository(pool)
    hasher = PasswordHasher(rounds=settings.password_hash_rounds)
    provisioner = WalletProvisioner(
        ProcessWalletFactory(
            settings.wallet_factory_path,
            timeout=settings.wallet_factory_timeout_seconds,
        ),
        daemon,
        repository,
        hasher,
    )
    gate = AuthenticationGate(repository, hasher, LockoutPolicy.from_settings(settings))
    logger.info("%s %s ready", settings.app_name, settings.version)
    try:
        yield AccountService(repository, provisioner, gate, settings)
    finally:
        daemon.close()
        pool.close()
