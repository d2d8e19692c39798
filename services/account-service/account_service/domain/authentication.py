"""Credential verification with per-account attempt counting and lockout."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Callable

from ..config import Settings
from ..security.passwords import PasswordHasher
from .account import Account
from .contracts import require_login_id
from .ports import AccountStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FailedLogin(IntEnum):
    """Reason codes reported for a rejected login."""

    NOT_FOUND = 0
    PASSWORD_INCORRECT = 1
    MAX_ATTEMPTS = 2
    LOCKED_OUT = 2


@dataclass(frozen=True, slots=True)
class LockoutPolicy:
    """How many consecutive failures lock an account, and for how long."""

    max_attempts: int = 5
    lock_duration: timedelta = timedelta(hours=2)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LockoutPolicy":
        return cls(
            max_attempts=settings.max_login_attempts,
            lock_duration=timedelta(seconds=settings.lock_duration_seconds),
        )


@dataclass(frozen=True, slots=True)
class AuthOutcome:
    """Either the verified account or the reason the login was refused."""

    account: Account | None = None
    reason: FailedLogin | None = None

    @property
    def authenticated(self) -> bool:
        return self.account is not None

    @classmethod
    def success(cls, account: Account) -> "AuthOutcome":
        return cls(account=account)

    @classmethod
    def rejected(cls, reason: FailedLogin) -> "AuthOutcome":
        return cls(reason=reason)


class AuthenticationGate:
    """Authenticate login attempts and maintain the attempt/lock state machine.

    An account is either unlocked with ``n`` recorded failures or locked until
    ``lock_until``. Lock expiry is only noticed at the next attempt; there is no
    background sweep.
    """

    def __init__(
        self,
        store: AccountStore,
        hasher: PasswordHasher,
        policy: LockoutPolicy | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._policy = policy or LockoutPolicy()
        self._clock = clock

    def authenticate(self, login_id: str, candidate: str) -> AuthOutcome:
        """Verify ``candidate`` for ``login_id`` and return the tagged outcome."""
        require_login_id(login_id)

        account = self._store.find_by_login_id(login_id)
        if account is None:
            return AuthOutcome.rejected(FailedLogin.NOT_FOUND)

        now = self._clock()
        if account.is_locked(now):
            # the attempt is still counted, but the lock is never extended
            self._record_failure(account, now)
            logger.info("login refused for locked account %s", account.account_id)
            return AuthOutcome.rejected(FailedLogin.MAX_ATTEMPTS)

        if self._hasher.verify(candidate, account.credential_hash):
            if account.login_attempts == 0 and account.lock_until is None:
                return AuthOutcome.success(account)
            self._store.reset_login_attempts(account.login_id)
            return AuthOutcome.success(replace(account, login_attempts=0, lock_until=None))

        self._record_failure(account, now)
        return AuthOutcome.rejected(FailedLogin.PASSWORD_INCORRECT)

    def _record_failure(self, account: Account, now: datetime) -> None:
        # restart, increment and lock are decided by the store against the current row
        self._store.record_failed_attempt(
            account.login_id,
            max_attempts=self._policy.max_attempts,
            lock_until=now + self._policy.lock_duration,
            now=now,
        )
        if account.has_expired_lock(now):
            logger.info("stale lock on account %s reclaimed", account.account_id)
        elif account.login_attempts + 1 >= self._policy.max_attempts and not account.is_locked(now):
            logger.warning(
                "account %s locked after %d failed attempts",
                account.account_id,
                account.login_attempts + 1,
            )
