"""HTTP client for the long-running wallet daemon."""

from __future__ import annotations

import logging

import httpx

from monetas_schemas import WalletInfo

from ..domain.errors import ExternalServiceError
from ..domain.ports import OK_STATUS, DaemonResponse

logger = logging.getLogger(__name__)

STAGE = "wallet-daemon"


class HttpWalletDaemon:
    """Issues action requests to the daemon instance serving a wallet.

    Each wallet is served on its own port of ``host``; the request body names
    the action and repeats the wallet's connection parameters.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        api_version: str = "v3.0",
        scheme: str = "http",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.host = host
        self.api_version = api_version
        self.scheme = scheme
        self.timeout = timeout
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def url_for(self, wallet: WalletInfo) -> str:
        return f"{self.scheme}://{self.host}:{wallet.port}/{self.api_version}/"

    def call(self, wallet: WalletInfo, action: str) -> DaemonResponse:
        payload = {
            "action": action,
            "service": wallet.service_address,
            "ident": wallet.identity,
            "db_schema": wallet.db_schema,
        }
        try:
            response = self._client.post(self.url_for(wallet), json=payload)
        except httpx.HTTPError as exc:
            logger.error("wallet daemon call %s failed: %s", action, exc)
            raise ExternalServiceError(STAGE, f"{action} request failed") from exc

        if response.status_code != OK_STATUS:
            logger.warning("wallet daemon returned %s for %s", response.status_code, action)
        return DaemonResponse(status_code=response.status_code, body=response.text)

    def close(self) -> None:
        """Close the HTTP client"""
        self._client.close()
