"""Wallet provisioning: allocate, identify, enumerate units, then persist once."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Sequence

from pydantic import ValidationError as SchemaValidationError

from monetas_schemas import UnitInfo, WalletInfo

from ..security.passwords import PasswordHasher
from .account import Account, NewAccount
from .contracts import AccountDraft
from .errors import AccountExistsError, ExternalServiceError, PersistenceError
from .ports import AccountStore, DaemonResponse, WalletDaemon, WalletFactory

logger = logging.getLogger(__name__)

NYM_ID_ACTION = "nym-id"
UNITS_ACTION = "units"


class ProvisionFailure(str, Enum):
    WALLET_ALLOCATION_FAILED = "WALLET_ALLOCATION_FAILED"
    IDENTITY_FETCH_FAILED = "IDENTITY_FETCH_FAILED"
    UNITS_FETCH_FAILED = "UNITS_FETCH_FAILED"
    ACCOUNT_EXISTS = "ACCOUNT_EXISTS"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"


@dataclass(frozen=True, slots=True)
class ProvisioningContext:
    """State threaded through the stages; each stage returns an updated copy."""

    draft: AccountDraft
    wallet: WalletInfo | None = None
    units: tuple[UnitInfo, ...] = ()
    account: Account | None = None


@dataclass(frozen=True, slots=True)
class Stage:
    name: str
    failure: ProvisionFailure
    run: Callable[[ProvisioningContext], ProvisioningContext]


@dataclass(frozen=True, slots=True)
class ProvisionResult:
    """Outcome of a provisioning run: the stored account or the first failure."""

    account: Account | None = None
    failure: ProvisionFailure | None = None
    stage: str | None = None
    error: Exception | None = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.account is not None


def run_stages(stages: Sequence[Stage], context: ProvisioningContext) -> ProvisionResult:
    """Run ``stages`` in order, stopping at the first one that raises a domain error."""
    for stage in stages:
        try:
            context = stage.run(context)
        except AccountExistsError as exc:
            return ProvisionResult(failure=ProvisionFailure.ACCOUNT_EXISTS, stage=stage.name, error=exc)
        except (ExternalServiceError, PersistenceError) as exc:
            return ProvisionResult(failure=stage.failure, stage=stage.name, error=exc)
    return ProvisionResult(account=context.account)


def parse_nym_id(body: str) -> str:
    """Strip whitespace and surrounding quotes from a ``nym-id`` response body."""
    return body.strip().strip('"').strip()


def parse_units(body: str) -> tuple[UnitInfo, ...]:
    """Decode a ``units`` response into unit records, keeping the daemon's order."""
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise ExternalServiceError("fetch-units", "units response is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ExternalServiceError("fetch-units", "units response is not a mapping")
    try:
        return tuple(
            UnitInfo(id=str(unit_id), code=entry["code"], name=entry["name"])
            for unit_id, entry in payload.items()
        )
    except (KeyError, TypeError, SchemaValidationError) as exc:
        raise ExternalServiceError("fetch-units", "malformed unit entry") from exc


class WalletProvisioner:
    """Create fully provisioned accounts or nothing at all.

    A wallet allocated before a later stage fails is abandoned; no cleanup or
    retry is attempted here.
    """

    def __init__(
        self,
        factory: WalletFactory,
        daemon: WalletDaemon,
        store: AccountStore,
        hasher: PasswordHasher,
    ) -> None:
        self._factory = factory
        self._daemon = daemon
        self._store = store
        self._hasher = hasher
        self._stages = (
            Stage("allocate-wallet", ProvisionFailure.WALLET_ALLOCATION_FAILED, self._allocate_wallet),
            Stage("fetch-identity", ProvisionFailure.IDENTITY_FETCH_FAILED, self._fetch_identity),
            Stage("fetch-units", ProvisionFailure.UNITS_FETCH_FAILED, self._fetch_units),
            Stage("persist", ProvisionFailure.PERSISTENCE_FAILED, self._persist),
        )

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    def provision(self, draft: AccountDraft) -> ProvisionResult:
        """Run every stage for ``draft``; raises ``ValidationError`` for bad input."""
        draft.validate()
        result = run_stages(self._stages, ProvisioningContext(draft=draft))
        if result.ok:
            logger.info("provisioned account %s", result.account.account_id)
        else:
            logger.warning(
                "provisioning aborted at %s (%s): %s",
                result.stage,
                result.failure.value,
                result.error,
            )
        return result

    def _allocate_wallet(self, context: ProvisioningContext) -> ProvisioningContext:
        wallet = self._factory.allocate()
        return replace(context, wallet=wallet)

    def _call_daemon(self, stage: str, wallet: WalletInfo, action: str) -> DaemonResponse:
        # transport errors are re-tagged with the stage that issued the call
        try:
            return self._daemon.call(wallet, action)
        except ExternalServiceError as exc:
            raise ExternalServiceError(stage, f"{action} call failed: {exc}") from exc

    def _fetch_identity(self, context: ProvisioningContext) -> ProvisioningContext:
        response = self._call_daemon("fetch-identity", context.wallet, NYM_ID_ACTION)
        if not response.ok:
            raise ExternalServiceError("fetch-identity", f"daemon returned status {response.status_code}")
        nym_id = parse_nym_id(response.body)
        if not nym_id:
            raise ExternalServiceError("fetch-identity", "daemon returned an empty nym id")
        return replace(context, wallet=context.wallet.model_copy(update={"nym_id": nym_id}))

    def _fetch_units(self, context: ProvisioningContext) -> ProvisioningContext:
        response = self._call_daemon("fetch-units", context.wallet, UNITS_ACTION)
        if not response.ok:
            raise ExternalServiceError("fetch-units", f"daemon returned status {response.status_code}")
        return replace(context, units=parse_units(response.body))

    def _persist(self, context: ProvisioningContext) -> ProvisioningContext:
        draft = context.draft
        account = self._store.create_account(
            NewAccount(
                login_id=draft.login_id,
                credential_hash=self._hasher.hash(draft.password),
                wallet=context.wallet,
                units=list(context.units),
                origin=draft.origin,
                device_id=draft.device_id,
                info=dict(draft.info),
            )
        )
        return replace(context, account=account)
