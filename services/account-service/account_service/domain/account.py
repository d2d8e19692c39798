from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from monetas_schemas import AccountProfile, UnitInfo, WalletInfo


@dataclass(slots=True)
class Account:
    """Aggregate root for a user's credentials, lockout state, and wallet."""

    account_id: str
    login_id: str
    credential_hash: str
    wallet: WalletInfo
    units: list[UnitInfo]
    created_at: datetime
    updated_at: datetime
    login_attempts: int = 0
    lock_until: datetime | None = None
    origin: str | None = None
    device_id: str | None = None
    info: dict[str, Any] = field(default_factory=dict)

    def is_locked(self, now: datetime) -> bool:
        """Return ``True`` while ``lock_until`` lies in the future."""
        return self.lock_until is not None and self.lock_until > now

    def has_expired_lock(self, now: datetime) -> bool:
        return self.lock_until is not None and self.lock_until <= now

    def to_profile(self) -> AccountProfile:
        return AccountProfile(
            account_id=self.account_id,
            login_id=self.login_id,
            wallet=self.wallet,
            units=list(self.units),
            origin=self.origin,
            device_id=self.device_id,
            created_at=self.created_at,
        )


@dataclass(slots=True)
class NewAccount:
    """Fully provisioned account handed to the store in a single create call."""

    login_id: str
    credential_hash: str
    wallet: WalletInfo
    units: list[UnitInfo]
    origin: str | None = None
    device_id: str | None = None
    info: dict[str, Any] = field(default_factory=dict)
