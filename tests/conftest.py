import threading
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from uuid import UUID, uuid4

import pytest

from src.adapters.clock import FixedClock
from src.components.onboarding import OnboardingService
from src.domain.entities import Identity, OnboardingRecord, OnboardingStatus, Organization
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules

ROOT = Path(__file__).parent.parent


class InMemoryEntityStore:
    """EntityStorePort backed by a dict. Writes happen only if `change` returns."""

    def __init__(self) -> None:
        self._records: dict[UUID, OnboardingRecord] = {}
        self._lock = threading.Lock()
        self.mutations = 0

    def get(self, org_id: UUID) -> OnboardingRecord | None:
        record = self._records.get(org_id)
        return record.model_copy(deep=True) if record else None

    def mutate(
        self,
        org_id: UUID,
        change: Callable[[OnboardingRecord], OnboardingRecord],
    ) -> OnboardingRecord | None:
        with self._lock:
            current = self._records.get(org_id)
            if current is None:
                return None
            updated = change(current.model_copy(deep=True))
            self._records[org_id] = updated
            self.mutations += 1
            return updated.model_copy(deep=True)

    def list_by_status(
        self, status: OnboardingStatus, limit: int, offset: int
    ) -> list[OnboardingRecord]:
        matching = [r for r in self._records.values() if r.organization.status == status]
        matching.sort(key=lambda r: r.organization.updated_at, reverse=True)
        return [r.model_copy(deep=True) for r in matching[offset : offset + limit]]

    def add_organization(self, org: Organization) -> Organization:
        self._records[org.id] = OnboardingRecord(organization=org)
        return org


@pytest.fixture
def rules():
    # The real rules file doubles as a smoke test of its schema
    return load_rules(ROOT / "rules.yaml")


@pytest.fixture
def policy(rules):
    return PolicyEngine(rules)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 2, 9, 30, tzinfo=UTC))


@pytest.fixture
def store():
    return InMemoryEntityStore()


@pytest.fixture
def service(store, policy, clock, rules):
    return OnboardingService(store=store, policy=policy, clock=clock, rules=rules.onboarding)


@pytest.fixture
def org(store, clock):
    """A freshly registered organization in draft."""
    return store.add_organization(
        Organization(name="Ballybrack Rowing Club", created_at=clock.now(), updated_at=clock.now())
    )


@pytest.fixture
def admin():
    return Identity(user_id=uuid4(), role="admin")


@pytest.fixture
def host(org):
    return Identity(user_id=uuid4(), org_id=org.id, role="host")


@pytest.fixture
def ie_payload():
    return {
        "legal_name": "Ballybrack Rowing Club CLG",
        "trading_names": ["Ballybrack RC"],
        "description": "Coastal rowing for all ages",
        "founded_year": 1974,
        "address_line1": "The Harbour",
        "city": "Dún Laoghaire",
        "county_state": "Dublin",
        "postal_code": "A96 X2Y3",
        "country": "IE",
        "legal_structure": "company_limited_by_guarantee",
        "ie_cro_number": "123456",
        "ie_charity_chy": "CHY12345",
        "ie_charity_rcn": "20123456",
        "ie_revenue_sports_body": True,
    }


@pytest.fixture
def gb_payload():
    return {
        "legal_name": "Leith Amateur Swimming Club",
        "address_line1": "12 Links Place",
        "city": "Edinburgh",
        "postal_code": "EH6 7EZ",
        "country": "GB",
        "legal_structure": "unincorporated_association",
        "uk_charity_scotland": "SC012345",
        "uk_casc_registered": True,
    }


@pytest.fixture
def submitted_org(service, org, ie_payload):
    """Organization with valid details, awaiting review."""
    service.set_entity_category(org.id, "club")
    service.create_entity_details(org.id, ie_payload)
    return org
