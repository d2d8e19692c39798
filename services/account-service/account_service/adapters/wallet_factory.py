"""Wallet allocation through the external ``newwallet`` executable."""

from __future__ import annotations

import logging
import re
import subprocess
from typing import Sequence

from pydantic import ValidationError as SchemaValidationError

from monetas_schemas import WalletInfo

from ..domain.errors import ExternalServiceError

logger = logging.getLogger(__name__)

STAGE = "allocate-wallet"
DEFAULT_TIMEOUT = 30.0

_FIELD_PATTERNS = {
    "db_schema": re.compile(r"DB schema:(.*)"),
    "service_address": re.compile(r"Wallet service:(.*)"),
    "identity": re.compile(r"Wallet ident:(.*)"),
    "port": re.compile(r"Wallet port:(.*)"),
}


def parse_wallet_output(stdout: str) -> WalletInfo:
    """Extract wallet connection parameters from the factory's stdout."""
    values: dict[str, str] = {}
    for name, pattern in _FIELD_PATTERNS.items():
        match = pattern.search(stdout)
        value = match.group(1).strip() if match else ""
        if not value:
            raise ExternalServiceError(STAGE, f"factory output is missing {name}")
        values[name] = value
    try:
        return WalletInfo(**values)
    except SchemaValidationError as exc:
        raise ExternalServiceError(STAGE, "factory output is malformed") from exc


class ProcessWalletFactory:
    """Spawn the wallet factory executable and parse what it reports."""

    def __init__(
        self,
        executable: str = "newwallet",
        args: Sequence[str] = (),
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.executable = executable
        self.args = list(args)
        self.timeout = timeout

    def allocate(self) -> WalletInfo:
        cmd = [self.executable, *self.args]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExternalServiceError(STAGE, f"factory timed out after {self.timeout}s") from exc
        except OSError as exc:
            raise ExternalServiceError(STAGE, f"factory could not be started: {exc}") from exc

        if result.returncode != 0:
            logger.warning("wallet factory exited with %d: %s", result.returncode, result.stderr.strip())
            raise ExternalServiceError(STAGE, f"factory exited with status {result.returncode}")

        wallet = parse_wallet_output(result.stdout)
        logger.info("allocated wallet %s on port %d", wallet.identity, wallet.port)
        return wallet
