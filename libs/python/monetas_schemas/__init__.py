"""Shared schema exports."""

from .account import AccountProfile
from .wallet import UnitInfo, WalletInfo

__all__ = [
    "AccountProfile",
    "UnitInfo",
    "WalletInfo",
]
