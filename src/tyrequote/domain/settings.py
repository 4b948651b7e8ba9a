"""Persisted shop settings and the shared-passcode session gate."""

from __future__ import annotations

import hmac
import json
import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Final

from tyrequote.domain.model import DEFAULT_PASSCODE, CompanyDetails

if TYPE_CHECKING:
    from tyrequote.domain.ports.storage import KeyValueStore

SETTINGS_KEY: Final[str] = "companyDetails"
SESSION_AUTH_KEY: Final[str] = "isAuthenticated"

DEFAULT_NOTES = (
    "1. All prices are inclusive of taxes.\n"
    "2. Warranty as per manufacturer terms.\n"
    "3. This quotation is valid for 7 days."
)

log = logging.getLogger(__name__)


def enforce_policy(details: CompanyDetails, *, defaults: CompanyDetails) -> CompanyDetails:
    """Force remote sync on, fill a missing endpoint and never allow a blank passcode."""

    return replace(
        details,
        use_remote_sync=True,
        web_app_url=details.web_app_url.strip() or defaults.web_app_url,
        passcode=details.passcode if details.passcode.strip() else DEFAULT_PASSCODE,
    )


class SettingsStore:
    def __init__(
        self,
        storage: KeyValueStore | None,
        *,
        defaults: CompanyDetails | None = None,
    ) -> None:
        self._storage = storage
        self.defaults = defaults or CompanyDetails(default_notes=DEFAULT_NOTES)

    def load(self) -> CompanyDetails:
        details = self.defaults
        raw = self._storage.get(SETTINGS_KEY) if self._storage is not None else None
        if raw:
            try:
                record = json.loads(raw)
            except json.JSONDecodeError:
                log.warning("Stored company details are corrupt; using defaults")
            else:
                if isinstance(record, dict):
                    details = CompanyDetails.from_record(record, base=self.defaults)
        return enforce_policy(details, defaults=self.defaults)

    def save(self, details: CompanyDetails) -> CompanyDetails:
        enforced = enforce_policy(details, defaults=self.defaults)
        if enforced.passcode != details.passcode:
            log.warning("Passcode cannot be empty; it has been reset to the default")
        if self._storage is not None:
            self._storage.set(SETTINGS_KEY, json.dumps(enforced.to_record()))
        return enforced


class PasscodeGate:
    """Session flag guarded by the static passcode from the settings."""

    def __init__(self, session: KeyValueStore, *, passcode: str) -> None:
        self._session = session
        self._passcode = passcode

    @property
    def is_authenticated(self) -> bool:
        return self._session.get(SESSION_AUTH_KEY) == "true"

    def login(self, passcode: str) -> bool:
        if not hmac.compare_digest(passcode.encode(), self._passcode.encode()):
            log.info("Rejected login attempt")
            return False
        self._session.set(SESSION_AUTH_KEY, "true")
        return True

    def logout(self) -> None:
        self._session.delete(SESSION_AUTH_KEY)
