from uuid import UUID

from src.domain.entities import Identity
from src.rules.models import Rules


class PolicyEngine:
    def __init__(self, rules: Rules):
        self.rules = rules

    def check_permission(self, identity: Identity | None, action: str) -> bool:
        """
        Check if the caller is allowed to perform the action.

        Order of precedence:
        1. Public Permissions (Global)
        2. Role-Based Access Control (RBAC)
        """
        if action in self.rules.rbac.public_permissions:
            return True

        if not identity:
            return False

        allowed_actions = self.rules.rbac.roles.get(identity.role, [])
        if "*" in allowed_actions:
            return True
        if action in allowed_actions:
            return True

        # Scoped wildcards (e.g. "entity:*" matches "entity:verify")
        if ":" in action:
            scope = action.split(":")[0]
            if f"{scope}:*" in allowed_actions:
                return True

        return False

    def can_access_org(self, identity: Identity, org_id: UUID) -> bool:
        """Hosts only see their own organization; admins see all."""
        if identity.role == "admin":
            return True
        return identity.org_id is not None and str(identity.org_id) == str(org_id)
