from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from src.api.auth_utils import create_access_token
from src.api.deps import get_onboarding_service, get_policy
from src.api.main import app


@pytest.fixture
def client(service, policy):
    app.dependency_overrides[get_onboarding_service] = lambda: service
    app.dependency_overrides[get_policy] = lambda: policy
    yield TestClient(app)
    app.dependency_overrides.clear()


def _bearer(role="host", org_id=None, user_id=None):
    claims = {"sub": str(user_id or uuid4()), "role": role}
    if org_id is not None:
        claims["org_id"] = str(org_id)
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


@pytest.fixture
def bearer():
    """Factory for Authorization headers carrying a signed token."""
    return _bearer


@pytest.fixture
def host_headers(org):
    return _bearer("host", org.id)


@pytest.fixture
def admin_headers(admin):
    return _bearer("admin", user_id=admin.user_id)
