"""Pydantic model of the backup file."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CompanyDetailsPayload(BaseModel):
    """Shop settings as stored in a backup; absent keys stay ``None``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)

    name: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    bank_name: str | None = None
    account_holder: str | None = None
    account_number: str | None = None
    ifsc_code: str | None = None
    upi_id: str | None = None
    upi_qr_code: str | None = None
    default_notes: str | None = None
    default_tax_rate: float | None = None
    passcode: str | None = Field(default=None, alias="password")
    use_remote_sync: bool | None = Field(default=None, alias="useGoogleSheets")
    web_app_url: str | None = Field(default=None, alias="googleWebAppUrl")

    @field_validator(
        "name",
        "address",
        "phone",
        "email",
        "bank_name",
        "account_holder",
        "account_number",
        "ifsc_code",
        "upi_id",
        "upi_qr_code",
        "default_notes",
        "passcode",
        "web_app_url",
        mode="before",
    )
    @classmethod
    def _numbers_as_text(cls, value: object) -> object:
        # phone numbers and passcodes are often typed as bare numbers
        if isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, int | float):
            return str(value)
        return value


class BackupDocument(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    version: str = "1.4"
    timestamp: str | None = None
    company_details: CompanyDetailsPayload | None = Field(default=None, alias="companyDetails")
    quotes: list[dict[str, Any]]
    blacklisted_ids: list[str] = Field(default_factory=list, alias="blacklistedIds")
    blacklisted_numbers: list[str] = Field(default_factory=list, alias="blacklistedNumbers")

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_text(cls, value: object) -> object:
        return str(value) if isinstance(value, int | float) else value

    @field_validator("blacklisted_ids", "blacklisted_numbers", mode="before")
    @classmethod
    def _stringify_markers(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item) for item in value if item is not None]
        return value
