"""Wallet and unit contracts shared by services that talk to the wallet daemon."""

from __future__ import annotations

from pydantic import BaseModel, Field


class WalletInfo(BaseModel):
    """Connection parameters of an allocated wallet plus its daemon-reported nym."""

    db_schema: str = Field(..., min_length=1)
    service_address: str = Field(..., min_length=1)
    identity: str = Field(..., min_length=1)
    port: int = Field(..., gt=0, lt=65536)
    nym_id: str | None = None


class UnitInfo(BaseModel):
    """A unit type (asset or currency) the wallet may operate on."""

    id: str
    code: str
    name: str
