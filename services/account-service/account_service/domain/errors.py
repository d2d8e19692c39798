"""Exception types raised across the account domain and its adapters."""

from __future__ import annotations


class AccountServiceError(Exception):
    """Base class for account-service failures."""


class ValidationError(AccountServiceError, ValueError):
    """Input rejected before any collaborator was contacted."""


class ExternalServiceError(AccountServiceError):
    """The wallet factory or the wallet daemon failed at a named stage."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage}: {message}")
        self.stage = stage

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__


class PersistenceError(AccountServiceError):
    """The account store could not complete an operation."""


class AccountExistsError(PersistenceError):
    """An account with the same login id is already stored."""

    def __init__(self, login_id: str) -> None:
        super().__init__(f"account already exists: {login_id}")
        self.login_id = login_id
