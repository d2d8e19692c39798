"""Collaborator interfaces the domain depends on; adapters live outside it."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from monetas_schemas import WalletInfo

from .account import Account, NewAccount

OK_STATUS = 200


@dataclass(frozen=True, slots=True)
class DaemonResponse:
    """Status code and raw body returned by a wallet daemon call."""

    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return self.status_code == OK_STATUS


class WalletFactory(Protocol):
    def allocate(self) -> WalletInfo:
        """Allocate a new wallet or raise ``ExternalServiceError``."""
        ...


class WalletDaemon(Protocol):
    def call(self, wallet: WalletInfo, action: str) -> DaemonResponse:
        """Send ``action`` to the daemon serving ``wallet``; transport errors raise."""
        ...


class AccountStore(Protocol):
    """Durable account persistence with atomic attempt/lock updates.

    Every attempt or lock change must be applied as one atomic
    update evaluated against the stored row, never as read-then-write.
    """

    def find_by_login_id(self, login_id: str) -> Account | None: ...

    def create_account(self, account: NewAccount) -> Account:
        """Insert the account; raise ``AccountExistsError`` on a duplicate login id."""
        ...

    def reset_login_attempts(self, login_id: str) -> None:
        """Set attempts to zero and clear any lock."""
        ...

    def record_failed_attempt(
        self,
        login_id: str,
        *,
        max_attempts: int,
        lock_until: datetime,
        now: datetime,
    ) -> None:
        """Count one failed attempt against the stored row.

        A lock that expired by ``now`` is cleared and the count restarts at one.
        Otherwise the count grows by one, and an unlocked row whose new count
        reaches ``max_attempts`` is locked until ``lock_until``.
        """
        ...

    def write_audit_event(
        self,
        *,
        account_id: str | None,
        event_type: str,
        actor: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> None: ...
