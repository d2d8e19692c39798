"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import ValidationError

# bcrypt only reads the first 72 bytes of a secret
MAX_SECRET_BYTES = 72


@dataclass(slots=True)
class AccountDraft:
    """Registration input: who the user is and the secret they chose."""

    login_id: str
    password: str
    origin: str | None = None
    device_id: str | None = None
    info: dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        """Raise ``ValidationError`` when the draft cannot be provisioned."""
        require_login_id(self.login_id)
        if not isinstance(self.password, str) or not self.password:
            raise ValidationError("password must be a non-empty string")
        if len(self.password.encode("utf-8")) > MAX_SECRET_BYTES:
            raise ValidationError(f"password must be at most {MAX_SECRET_BYTES} bytes")


def require_login_id(login_id: str) -> None:
    if not isinstance(login_id, str) or not login_id.strip():
        raise ValidationError("login id must be a non-empty string")
