"""Account-related DTOs shared across services."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, Field

from .wallet import UnitInfo, WalletInfo


class AccountProfile(BaseModel):
    """Public projection of an account; never carries credential or lockout state."""

    account_id: str
    login_id: str
    wallet: WalletInfo
    units: list[UnitInfo] = Field(default_factory=list)
    origin: str | None = None
    device_id: str | None = None
    created_at: datetime
