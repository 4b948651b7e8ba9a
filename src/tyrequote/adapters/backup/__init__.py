"""Read and write backup files."""

from __future__ import annotations

import json
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING

import pydantic

from tyrequote.domain.backup import BackupSnapshot, backup_filename
from tyrequote.domain.errors import ValidationError
from tyrequote.domain.model import CompanyDetails, Quotation

from .schema import BackupDocument

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)


def dump_backup(snapshot: BackupSnapshot) -> str:
    document = BackupDocument(
        version=snapshot.version,
        timestamp=snapshot.timestamp.isoformat() if snapshot.timestamp else None,
        company_details=(
            snapshot.company_details.to_record() if snapshot.company_details else None
        ),
        quotes=[quote.to_record() for quote in snapshot.quotes],
        blacklisted_ids=snapshot.blacklisted_ids,
        blacklisted_numbers=snapshot.blacklisted_numbers,
    )
    return json.dumps(document.model_dump(by_alias=True), indent=2)


def write_backup(snapshot: BackupSnapshot, directory: Path) -> Path:
    when = snapshot.timestamp or datetime.now().astimezone()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / backup_filename(when)
    path.write_text(dump_backup(snapshot), encoding="utf-8")
    log.info("Wrote backup with %s quotation(s) to %s", len(snapshot.quotes), path)
    return path


def parse_backup(text: str) -> BackupSnapshot:
    """Validate a backup document; anything without a ``quotes`` list is rejected."""

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Backup file is not valid JSON: {exc.msg}") from exc
    try:
        document = BackupDocument.model_validate(raw)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid backup: {exc.error_count()} problem(s)") from exc

    timestamp: datetime | None = None
    if document.timestamp:
        try:
            timestamp = datetime.fromisoformat(document.timestamp.replace("Z", "+00:00"))
        except ValueError:
            log.warning("Ignoring unreadable backup timestamp %r", document.timestamp)

    return BackupSnapshot(
        quotes=[Quotation.from_record(record) for record in document.quotes],
        version=document.version,
        timestamp=timestamp,
        company_details=(
            CompanyDetails.from_record(document.company_details.model_dump(exclude_none=True))
            if document.company_details is not None
            else None
        ),
        blacklisted_ids=document.blacklisted_ids,
        blacklisted_numbers=document.blacklisted_numbers,
    )


def read_backup(path: Path) -> BackupSnapshot:
    return parse_backup(path.read_text(encoding="utf-8"))


__all__ = ["BackupDocument", "dump_backup", "parse_backup", "read_backup", "write_backup"]
