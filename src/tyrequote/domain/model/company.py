"""Shop details printed on quotations and the settings they carry."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import TYPE_CHECKING, Any

from .quotation import DEFAULT_TAX_RATE

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_PASSCODE = "12345"

_FIELD_ALIASES = {
    "bankName": "bank_name",
    "accountHolder": "account_holder",
    "accountNumber": "account_number",
    "ifscCode": "ifsc_code",
    "upiId": "upi_id",
    "upiQrCode": "upi_qr_code",
    "defaultNotes": "default_notes",
    "defaultTaxRate": "default_tax_rate",
    "password": "passcode",
    "useGoogleSheets": "use_remote_sync",
    "googleWebAppUrl": "web_app_url",
}


@dataclass(slots=True, kw_only=True)
class CompanyDetails:
    name: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    bank_name: str = ""
    account_holder: str = ""
    account_number: str = ""
    ifsc_code: str = ""
    upi_id: str = ""
    upi_qr_code: str = ""
    default_notes: str = ""
    default_tax_rate: float = DEFAULT_TAX_RATE
    passcode: str = DEFAULT_PASSCODE
    use_remote_sync: bool = True
    web_app_url: str = ""

    def to_record(self) -> dict[str, Any]:
        reverse = {value: key for key, value in _FIELD_ALIASES.items()}
        return {reverse.get(key, key): value for key, value in asdict(self).items()}

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        *,
        base: CompanyDetails | None = None,
    ) -> CompanyDetails:
        """Overlay a stored record on ``base`` (or the defaults), ignoring unknown keys."""

        known = {item.name for item in fields(cls)}
        values = asdict(base) if base is not None else {}
        for key, value in record.items():
            name = _FIELD_ALIASES.get(key, key)
            if name in known and value is not None:
                values[name] = value
        return cls(**values)
