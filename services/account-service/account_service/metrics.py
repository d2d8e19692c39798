"""Prometheus counters for login and provisioning outcomes."""

from __future__ import annotations

from prometheus_client import Counter

LOGIN_OUTCOMES = Counter(
    "account_login_outcomes_total",
    "Login attempts by outcome.",
    ["outcome"],
)

WALLET_PROVISIONING = Counter(
    "wallet_provisioning_total",
    "Wallet provisioning runs by result.",
    ["result"],
)
