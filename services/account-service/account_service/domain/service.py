"""Account service orchestrating registration, login, token issuance, and auditing."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from monetas_schemas import AccountProfile

from ..config import Settings
from ..metrics import LOGIN_OUTCOMES, WALLET_PROVISIONING
from ..security.tokens import issue_access_token
from .authentication import AuthenticationGate, FailedLogin
from .contracts import AccountDraft
from .errors import PersistenceError
from .ports import AccountStore
from .provisioning import ProvisionResult, WalletProvisioner

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TokenBundle:
    """Access token returned to API consumers after a successful login."""

    access_token: str
    expires_in: int
    token_type: str = "bearer"


@dataclass(slots=True)
class LoginResult:
    """A profile and token on success, otherwise only the numeric reason code."""

    profile: AccountProfile | None = None
    token: TokenBundle | None = None
    reason: FailedLogin | None = None

    @property
    def authenticated(self) -> bool:
        return self.profile is not None


class AccountService:
    """Account workflows backed by the account store and the wallet services.

    Audit events are written after the outcome is already committed. A failed
    audit write is logged and dropped so it never changes the returned result.
    """

    def __init__(
        self,
        store: AccountStore,
        provisioner: WalletProvisioner,
        gate: AuthenticationGate,
        settings: Settings,
    ) -> None:
        """Store dependencies used to orchestrate registration and login."""
        self._store = store
        self._provisioner = provisioner
        self._gate = gate
        self._settings = settings

    def register(self, draft: AccountDraft) -> ProvisionResult:
        """Provision a wallet for ``draft`` and persist the account in one step."""
        result = self._provisioner.provision(draft)
        if result.ok:
            WALLET_PROVISIONING.labels(result="created").inc()
            self._audit(
                account_id=result.account.account_id,
                event_type="account.created",
                actor=result.account.account_id,
                metadata={"origin": draft.origin, "units": len(result.account.units)},
            )
        else:
            WALLET_PROVISIONING.labels(result=result.failure.value.lower()).inc()
            self._audit(
                account_id=None,
                event_type="account.provisioning_failed",
                actor=None,
                metadata={"stage": result.stage, "failure": result.failure.value},
            )
        return result

    def login(self, login_id: str, password: str) -> LoginResult:
        """Authenticate the credentials and issue an access token on success.

        Rejections carry only the reason code; callers decide how much of it to
        reveal.
        """
        outcome = self._gate.authenticate(login_id, password)
        if not outcome.authenticated:
            LOGIN_OUTCOMES.labels(outcome=outcome.reason.name.lower()).inc()
            logger.info("login rejected with reason %d", int(outcome.reason))
            self._audit(
                account_id=None,
                event_type="login.rejected",
                actor=None,
                metadata={"login_id": login_id, "reason": int(outcome.reason)},
            )
            return LoginResult(reason=outcome.reason)

        account = outcome.account
        access_token, expires_in = issue_access_token(
            self._settings,
            subject=account.account_id,
            login_id=account.login_id,
        )
        LOGIN_OUTCOMES.labels(outcome="authenticated").inc()
        self._audit(
            account_id=account.account_id,
            event_type="login.succeeded",
            actor=account.account_id,
            metadata={},
        )
        return LoginResult(
            profile=account.to_profile(),
            token=TokenBundle(access_token=access_token, expires_in=expires_in),
        )

    def get_account(self, login_id: str) -> AccountProfile | None:
        """Return the public profile registered under ``login_id``."""
        account = self._store.find_by_login_id(login_id)
        if account is None:
            return None
        return account.to_profile()

    def _audit(self, *, account_id: str | None, event_type: str, actor: str | None, metadata: dict) -> None:
        try:
            self._store.write_audit_event(
                account_id=account_id,
                event_type=event_type,
                actor=actor,
                metadata=metadata,
            )
        except PersistenceError:
            logger.exception("audit event %s could not be written", event_type)
