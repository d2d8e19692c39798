"""Shared fixtures and in-memory collaborators for the account-service tests."""

from __future__ import annotations

import json
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from monetas_schemas import WalletInfo

from account_service.config import Settings
from account_service.domain.account import Account, NewAccount
from account_service.domain.authentication import AuthenticationGate, LockoutPolicy
from account_service.domain.errors import AccountExistsError, ExternalServiceError
from account_service.domain.ports import DaemonResponse
from account_service.domain.provisioning import WalletProvisioner
from account_service.domain.service import AccountService
from account_service.security.passwords import PasswordHasher

START = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeAccountStore:
    """In-memory store mimicking the repository's atomic update semantics."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._lock = threading.Lock()
        self.calls: list[str] = []
        self.audit_log: list[dict[str, Any]] = []

    def find_by_login_id(self, login_id: str) -> Account | None:
        self.calls.append("find_by_login_id")
        with self._lock:
            account = self._accounts.get(login_id)
            return replace(account) if account else None

    def create_account(self, account: NewAccount) -> Account:
        self.calls.append("create_account")
        with self._lock:
            if account.login_id in self._accounts:
                raise AccountExistsError(account.login_id)
            now = datetime.now(timezone.utc)
            stored = Account(
                account_id=str(uuid.uuid4()),
                login_id=account.login_id,
                credential_hash=account.credential_hash,
                wallet=account.wallet,
                units=list(account.units),
                created_at=now,
                updated_at=now,
                origin=account.origin,
                device_id=account.device_id,
                info=dict(account.info),
            )
            self._accounts[account.login_id] = stored
            return replace(stored)

    def reset_login_attempts(self, login_id: str) -> None:
        self.calls.append("reset_login_attempts")
        with self._lock:
            account = self._accounts[login_id]
            account.login_attempts = 0
            account.lock_until = None

    def record_failed_attempt(
        self,
        login_id: str,
        *,
        max_attempts: int,
        lock_until: datetime,
        now: datetime,
    ) -> None:
        self.calls.append("record_failed_attempt")
        with self._lock:
            account = self._accounts[login_id]
            if account.has_expired_lock(now):
                account.login_attempts = 1
                account.lock_until = None
                return
            if account.lock_until is None and account.login_attempts + 1 >= max_attempts:
                account.lock_until = lock_until
            account.login_attempts += 1

    def write_audit_event(
        self,
        *,
        account_id: str | None,
        event_type: str,
        actor: str | None,
        metadata: dict | None = None,
    ) -> None:
        self.audit_log.append(
            {
                "account_id": account_id,
                "event_type": event_type,
                "actor": actor,
                "metadata": metadata or {},
            }
        )

    def stored(self, login_id: str) -> Account:
        return self._accounts[login_id]

    @property
    def mutations(self) -> list[str]:
        return [call for call in self.calls if call != "find_by_login_id"]


class FakeWalletFactory:
    def __init__(self, wallet: WalletInfo | None = None, error: Exception | None = None) -> None:
        self.wallet = wallet or WalletInfo(
            db_schema="wallet_0042",
            service_address="svc-0042",
            identity="ident-0042",
            port=9042,
        )
        self.error = error
        self.calls = 0

    def allocate(self) -> WalletInfo:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.wallet


class FakeWalletDaemon:
    """Scripted daemon: each action maps to a response or an exception."""

    def __init__(self, responses: dict[str, DaemonResponse | Exception] | None = None) -> None:
        self.responses: dict[str, DaemonResponse | Exception] = responses or {
            "nym-id": DaemonResponse(200, '"nym-7f3a"\n'),
            "units": DaemonResponse(
                200,
                json.dumps(
                    {
                        "u-usd": {"code": "USD", "name": "US Dollar"},
                        "u-btc": {"code": "BTC", "name": "Bitcoin"},
                        "u-eur": {"code": "EUR", "name": "Euro"},
                    }
                ),
            ),
        }
        self.calls: list[tuple[WalletInfo, str]] = []

    def call(self, wallet: WalletInfo, action: str) -> DaemonResponse:
        self.calls.append((wallet, action))
        response = self.responses[action]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def actions(self) -> list[str]:
        return [action for _, action in self.calls]


class FrozenClock:
    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def store() -> FakeAccountStore:
    return FakeAccountStore()


@pytest.fixture
def factory() -> FakeWalletFactory:
    return FakeWalletFactory()


@pytest.fixture
def daemon() -> FakeWalletDaemon:
    return FakeWalletDaemon()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def policy() -> LockoutPolicy:
    return LockoutPolicy(max_attempts=5, lock_duration=timedelta(hours=2))


@pytest.fixture
def provisioner(factory, daemon, store, hasher) -> WalletProvisioner:
    return WalletProvisioner(factory, daemon, store, hasher)


@pytest.fixture
def gate(store, hasher, policy, clock) -> AuthenticationGate:
    return AuthenticationGate(store, hasher, policy, clock=clock)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret="test-only-secret-0123456789abcdef0123456789",
        jwt_issuer="test.accounts",
        jwt_ttl_seconds=600,
    )


@pytest.fixture
def service(store, provisioner, gate, settings) -> AccountService:
    return AccountService(store, provisioner, gate, settings)


@pytest.fixture
def make_account(store, hasher):
    """Insert a provisioned account directly into the fake store."""

    def _make(login_id: str = "alice", password: str = "correct horse") -> Account:
        return store.create_account(
            NewAccount(
                login_id=login_id,
                credential_hash=hasher.hash(password),
                wallet=FakeWalletFactory().wallet.model_copy(update={"nym_id": "nym-7f3a"}),
                units=[],
            )
        )

    return _make


@pytest.fixture
def daemon_failure() -> ExternalServiceError:
    return ExternalServiceError("wallet-daemon", "connection refused")
