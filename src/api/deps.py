import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from src.adapters.clock import SystemClock
from src.adapters.sqlite.repos import SQLiteEntityStore
from src.api.auth_utils import decode_access_token
from src.components.onboarding import OnboardingService
from src.domain.entities import Identity
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules
from src.rules.models import Rules

logger = logging.getLogger(__name__)


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("ONBOARDING_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "onboarding.db")
        self.rules_path = Path(
            os.environ.get("ONBOARDING_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.migrations_dir = self.base_dir / "migrations"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Repos ---
def get_store(settings: Settings = Depends(get_settings)) -> SQLiteEntityStore:
    return SQLiteEntityStore(settings.db_path)


# --- Services ---
def get_policy(rules: Rules = Depends(get_rules)) -> PolicyEngine:
    return PolicyEngine(rules)


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


def get_onboarding_service(
    store: SQLiteEntityStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> OnboardingService:
    """Get onboarding component service."""
    return OnboardingService(store=store, policy=policy, clock=clock, rules=rules.onboarding)


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_identity(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
) -> Identity:
    # Cookie wins over the Authorization header
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        token = cookie_token.split(" ")[1]

    if not token:
        raise _unauthorized("Not authenticated")

    payload = decode_access_token(token)
    if not payload:
        raise _unauthorized("Invalid token")

    user_id = payload.get("sub")
    if user_id is None or not isinstance(user_id, str):
        raise _unauthorized("Invalid token payload")

    try:
        return Identity(
            user_id=UUID(user_id),
            org_id=payload.get("org_id"),
            role=payload.get("role", "host"),
        )
    except ValueError:
        logger.warning("Rejected token with malformed identity claims")
        raise _unauthorized("Invalid token payload") from None


def require_org_access(
    identity: Identity,
    org_id: UUID,
    action: str,
    policy: PolicyEngine,
) -> None:
    """Raise 403 unless the caller may perform `action` on this organization."""
    if not policy.check_permission(identity, action) or not policy.can_access_org(
        identity, org_id
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to access this organization",
        )
