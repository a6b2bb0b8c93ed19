"""Value objects and view-models for the consent flow."""

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlencode

from consent.errors import ValidationError

SUPPORTED_RESPONSE_TYPE = "code"

# Demo scopes shown on the index page
DEMO_SCOPES = "email,phone,address"


def split_scopes(scopes: str) -> list[str]:
    """Split a comma-separated scope string, dropping blanks and duplicates."""
    parts = (s.strip() for s in scopes.split(","))
    return list(dict.fromkeys(p for p in parts if p))


@dataclass(frozen=True)
class ConsentRequest:
    """A client application's request for the user's consent."""

    client_id: str
    response_type: str
    scopes: tuple[str, ...]

    @classmethod
    def from_params(
        cls,
        client_id: Optional[str],
        response_type: Optional[str],
        scopes: Optional[str],
    ) -> "ConsentRequest":
        """Build a request from raw query/form values.

        Raises:
            ValidationError: if a field is missing or response_type is not "code".
        """
        missing = [
            name for name, value in (
                ("client_id", client_id),
                ("response_type", response_type),
                ("scopes", scopes),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise ValidationError(f"Missing required parameter(s): {', '.join(missing)}")

        if response_type != SUPPORTED_RESPONSE_TYPE:
            raise ValidationError(
                f"Unsupported response_type '{response_type}', expected '{SUPPORTED_RESPONSE_TYPE}'"
            )

        scope_list = split_scopes(scopes)
        if not scope_list:
            raise ValidationError("scopes must contain at least one scope")

        return cls(client_id=client_id.strip(), response_type=response_type, scopes=tuple(scope_list))

    @property
    def scope_param(self) -> str:
        """Scopes as sent by clients and kept in the session (comma-separated)."""
        return ",".join(self.scopes)

    @property
    def provider_scope(self) -> str:
        """Scopes as Kong's authorize endpoint expects them (space-separated)."""
        return " ".join(self.scopes)

    def consent_uri(self) -> str:
        return "/consent?" + urlencode({
            "client_id": self.client_id,
            "response_type": self.response_type,
            "scopes": self.scope_param,
        })


@dataclass(frozen=True)
class ClientApplication:
    """Display projection of a Kong OAuth 2.0 credential."""

    application_name: str


# ============== View-models ==============

@dataclass(frozen=True)
class IndexView:
    consent_uri: str


@dataclass(frozen=True)
class LoginView:
    error: str = ""


@dataclass(frozen=True)
class ConsentView:
    application_name: str
    client_id: str
    response_type: str
    scopes: list[str] = field(default_factory=list)

    @property
    def scope_param(self) -> str:
        return ",".join(self.scopes)
