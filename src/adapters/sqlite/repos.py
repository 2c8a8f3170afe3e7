import json
import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

from src.domain.entities import (
    REGISTRATION_FLAG_FIELDS,
    REGISTRATION_NUMBER_FIELDS,
    EntityDetails,
    OnboardingRecord,
    OnboardingStatus,
    Organization,
)

logger = logging.getLogger(__name__)

_ALL_REGISTRATION_COLUMNS = (
    *REGISTRATION_NUMBER_FIELDS["IE"],
    REGISTRATION_FLAG_FIELDS["IE"],
    *REGISTRATION_NUMBER_FIELDS["GB"],
    REGISTRATION_FLAG_FIELDS["GB"],
)

_DETAILS_COLUMNS = (
    "id",
    "org_id",
    "legal_name",
    "trading_names",
    "description",
    "founded_year",
    "address_line1",
    "address_line2",
    "city",
    "county_state",
    "postal_code",
    "country",
    "legal_structure",
    *_ALL_REGISTRATION_COLUMNS,
    "registration_verified",
    "verification_notes",
    "verified_at",
    "verified_by",
    "created_at",
    "updated_at",
)


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _row_to_organization(row: dict[str, Any]) -> Organization:
    return Organization(
        id=UUID(row["id"]),
        name=row["name"],
        category=row["category"],
        status=row["status"],
        onboarding_completed_at=(
            datetime.fromisoformat(row["onboarding_completed_at"])
            if row["onboarding_completed_at"]
            else None
        ),
        suspended_reason=row["suspended_reason"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _row_to_details(row: dict[str, Any]) -> EntityDetails:
    country = row["country"]
    # Only the columns of the stored country make up the registration variant
    registration: dict[str, Any] = {"jurisdiction": country}
    for name in REGISTRATION_NUMBER_FIELDS[country]:
        registration[name] = row[name]
    flag = REGISTRATION_FLAG_FIELDS[country]
    registration[flag] = bool(row[flag])

    return EntityDetails(
        id=UUID(row["id"]),
        org_id=UUID(row["org_id"]),
        legal_name=row["legal_name"],
        trading_names=json.loads(row["trading_names"] or "[]"),
        description=row["description"],
        founded_year=row["founded_year"],
        address_line1=row["address_line1"],
        address_line2=row["address_line2"],
        city=row["city"],
        county_state=row["county_state"],
        postal_code=row["postal_code"],
        country=country,
        legal_structure=row["legal_structure"],
        registration=registration,
        registration_verified=bool(row["registration_verified"]),
        verification_notes=row["verification_notes"],
        verified_at=datetime.fromisoformat(row["verified_at"]) if row["verified_at"] else None,
        verified_by=UUID(row["verified_by"]) if row["verified_by"] else None,
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _details_params(details: EntityDetails) -> tuple[Any, ...]:
    registration = details.registration.model_dump()
    reg_values: list[Any] = []
    for name in _ALL_REGISTRATION_COLUMNS:
        value = registration.get(name)
        if isinstance(value, bool):
            value = int(value)
        elif name in REGISTRATION_FLAG_FIELDS.values():
            value = 0
        reg_values.append(value)

    return (
        str(details.id),
        str(details.org_id),
        details.legal_name,
        json.dumps(details.trading_names),
        details.description,
        details.founded_year,
        details.address_line1,
        details.address_line2,
        details.city,
        details.county_state,
        details.postal_code,
        details.country,
        details.legal_structure,
        *reg_values,
        int(details.registration_verified),
        details.verification_notes,
        _iso(details.verified_at),
        str(details.verified_by) if details.verified_by else None,
        details.created_at.isoformat(),
        details.updated_at.isoformat(),
    )


class SQLiteEntityStore:
    """Organizations and entity details in SQLite."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        # Autocommit mode so transactions are opened explicitly with BEGIN IMMEDIATE
        conn = sqlite3.connect(self.db_path, isolation_level=None, timeout=30)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _read(self, conn: sqlite3.Connection, org_id: UUID) -> OnboardingRecord | None:
        org_row = conn.execute(
            "SELECT * FROM organizations WHERE id = ?", (str(org_id),)
        ).fetchone()
        if not org_row:
            return None

        details_row = conn.execute(
            "SELECT * FROM entity_details WHERE org_id = ?", (str(org_id),)
        ).fetchone()
        return OnboardingRecord(
            organization=_row_to_organization(org_row),
            details=_row_to_details(details_row) if details_row else None,
        )

    def _write(self, conn: sqlite3.Connection, record: OnboardingRecord) -> None:
        org = record.organization
        conn.execute(
            """
            UPDATE organizations SET
                name = ?, category = ?, status = ?, onboarding_completed_at = ?,
                suspended_reason = ?, updated_at = ?
            WHERE id = ?
        """,
            (
                org.name,
                org.category,
                org.status,
                _iso(org.onboarding_completed_at),
                org.suspended_reason,
                org.updated_at.isoformat(),
                str(org.id),
            ),
        )

        if record.details is None:
            conn.execute("DELETE FROM entity_details WHERE org_id = ?", (str(org.id),))
            return

        columns = ", ".join(_DETAILS_COLUMNS)
        placeholders = ", ".join("?" for _ in _DETAILS_COLUMNS)
        updates = ", ".join(
            f"{col}=excluded.{col}" for col in _DETAILS_COLUMNS if col not in ("id", "org_id")
        )
        conn.execute(
            f"""
            INSERT INTO entity_details ({columns}) VALUES ({placeholders})
            ON CONFLICT(org_id) DO UPDATE SET {updates}
        """,
            _details_params(record.details),
        )

    def get(self, org_id: UUID) -> OnboardingRecord | None:
        conn = self._get_conn()
        try:
            return self._read(conn, org_id)
        finally:
            conn.close()

    def mutate(
        self,
        org_id: UUID,
        change: Callable[[OnboardingRecord], OnboardingRecord],
    ) -> OnboardingRecord | None:
        conn = self._get_conn()
        try:
            # Takes the write lock before reading so concurrent mutations serialize
            conn.execute("BEGIN IMMEDIATE")
            current = self._read(conn, org_id)
            if current is None:
                conn.execute("ROLLBACK")
                return None

            updated = change(current)
            if updated.organization.id != org_id:
                raise ValueError("Mutation must not change the organization id")
            self._write(conn, updated)
            conn.execute("COMMIT")
            return updated
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def list_by_status(
        self,
        status: OnboardingStatus,
        limit: int,
        offset: int,
    ) -> list[OnboardingRecord]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT id FROM organizations WHERE status = ?
                ORDER BY updated_at DESC LIMIT ? OFFSET ?
            """,
                (status, limit, offset),
            ).fetchall()
            records = []
            for row in rows:
                record = self._read(conn, UUID(row["id"]))
                if record:
                    records.append(record)
            return records
        finally:
            conn.close()

    def add_organization(self, org: Organization) -> Organization:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO organizations (
                    id, name, category, status, onboarding_completed_at,
                    suspended_reason, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    str(org.id),
                    org.name,
                    org.category,
                    org.status,
                    _iso(org.onboarding_completed_at),
                    org.suspended_reason,
                    org.created_at.isoformat(),
                    org.updated_at.isoformat(),
                ),
            )
            logger.info(f"Registered organization {org.id} ({org.name})")
            return org
        finally:
            conn.close()
