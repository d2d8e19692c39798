"""Database repository for account credentials, lockout state, and wallets."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import tuple_row
from psycopg.types.json import Json
from psycopg_pool import ConnectionPool

from monetas_schemas import UnitInfo, WalletInfo

from .domain.account import Account, NewAccount
from .domain.errors import AccountExistsError, PersistenceError

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = """
    account_id, login_id, credential_hash, wallet, units, created_at, updated_at,
    login_attempts, lock_until, origin, device_id, info
"""


class AccountRepository:
    """Postgres-backed account persistence.

    Attempt and lock changes are single ``UPDATE`` statements whose conditions
    read the row being updated, so concurrent logins never lose an increment.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def find_by_login_id(self, login_id: str) -> Account | None:
        """Fetch the account registered under ``login_id`` or return ``None``."""
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE login_id = %s",
                        (login_id,),
                    )
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise PersistenceError("account lookup failed") from exc
        if not row:
            return None
        return self._map_record(row)

    def create_account(self, account: NewAccount) -> Account:
        """Insert a fully provisioned account in one statement."""
        account_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO accounts (
                            account_id, login_id, credential_hash, wallet, units,
                            created_at, updated_at, login_attempts, origin, device_id, info
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, %s, 0, %s, %s, %s)
                        RETURNING {_ACCOUNT_COLUMNS}
                        """,
                        (
                            account_id,
                            account.login_id,
                            account.credential_hash,
                            Json(account.wallet.model_dump()),
                            Json([unit.model_dump() for unit in account.units]),
                            now,
                            now,
                            account.origin,
                            account.device_id,
                            Json(account.info),
                        ),
                    )
                    record = cur.fetchone()
                conn.commit()
        except pg_errors.UniqueViolation as exc:
            raise AccountExistsError(account.login_id) from exc
        except psycopg.Error as exc:
            raise PersistenceError("account insert failed") from exc
        return self._map_record(record)

    def reset_login_attempts(self, login_id: str) -> None:
        self._update(
            """
            UPDATE accounts
            SET login_attempts = 0, lock_until = NULL, updated_at = NOW()
            WHERE login_id = %(login_id)s
            """,
            {"login_id": login_id},
        )

    def record_failed_attempt(
        self,
        login_id: str,
        *,
        max_attempts: int,
        lock_until: datetime,
        now: datetime,
    ) -> None:
        """Count one failure: reclaim an expired lock, or increment and maybe lock."""
        self._update(
            """
            UPDATE accounts
            SET login_attempts = CASE
                    WHEN lock_until IS NOT NULL AND lock_until <= %(now)s THEN 1
                    ELSE login_attempts + 1
                END,
                lock_until = CASE
                    WHEN lock_until IS NOT NULL AND lock_until <= %(now)s THEN NULL
                    WHEN lock_until IS NULL AND login_attempts + 1 >= %(max_attempts)s
                    THEN %(lock_until)s
                    ELSE lock_until
                END,
                updated_at = NOW()
            WHERE login_id = %(login_id)s
            """,
            {
                "login_id": login_id,
                "max_attempts": max_attempts,
                "lock_until": lock_until,
                "now": now,
            },
        )

    def write_audit_event(
        self,
        *,
        account_id: str | None,
        event_type: str,
        actor: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Record an audit trail entry capturing account workflow activity."""
        self._update(
            """
            INSERT INTO account_audit_log (account_id, event_type, actor, metadata)
            VALUES (%(account_id)s, %(event_type)s, %(actor)s, %(metadata)s)
            """,
            {
                "account_id": account_id,
                "event_type": event_type,
                "actor": actor,
                "metadata": Json(metadata or {}),
            },
        )

    def _update(self, query: str, params: dict[str, Any]) -> None:
        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                conn.commit()
        except psycopg.Error as exc:
            logger.error("account store update failed: %s", exc)
            raise PersistenceError("account update failed") from exc

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            account_id=str(row[0]),
            login_id=row[1],
            credential_hash=row[2],
            wallet=WalletInfo.model_validate(row[3]),
            units=[UnitInfo.model_validate(unit) for unit in row[4] or []],
            created_at=row[5],
            updated_at=row[6],
            login_attempts=row[7],
            lock_until=row[8],
            origin=row[9],
            device_id=row[10],
            info=row[11] or {},
        )
