import argparse
import logging
import sys
from pathlib import Path
from uuid import UUID

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteEntityStore
from src.api.auth_utils import create_access_token
from src.api.deps import Settings
from src.app_shell.config import configure_logging, validate_ops_rules
from src.domain.entities import Organization
from src.rules.loader import load_rules

logger = logging.getLogger("cli")


def handle_migrate(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    applied = SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
    print(f"Applied {len(applied)} migration(s) to {settings.db_path}.")


def handle_register_org(settings: Settings, args: argparse.Namespace) -> None:
    name = args.name.strip()
    if not name:
        logger.error("Organization name must not be blank.")
        sys.exit(1)

    org = SQLiteEntityStore(settings.db_path).add_organization(Organization(name=name))
    print(f"Organization created: {org.id} (status: {org.status})")


def handle_issue_token(args: argparse.Namespace) -> None:
    if args.role == "host" and not args.org_id:
        logger.error("--org-id is required for host tokens.")
        sys.exit(1)

    claims = {"sub": str(args.user_id or UUID(int=0)), "role": args.role}
    if args.org_id:
        claims["org_id"] = str(args.org_id)
    print(create_access_token(claims))


def main() -> None:
    parser = argparse.ArgumentParser(description="Club Onboarding CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply pending database migrations")

    # register-org
    register_parser = subparsers.add_parser(
        "register-org", help="Create an organization in draft status"
    )
    register_parser.add_argument("name", help="Display name of the organization")

    # issue-token
    token_parser = subparsers.add_parser("issue-token", help="Issue a development access token")
    token_parser.add_argument("--org-id", type=UUID, help="Organization the token is bound to")
    token_parser.add_argument("--role", choices=["host", "admin"], default="host")
    token_parser.add_argument("--user-id", type=UUID, help="Subject of the token")

    args = parser.parse_args()

    configure_logging()
    settings = Settings()

    if not Path(settings.rules_path).exists():
        logger.error(f"Rules file {settings.rules_path} not found.")
        sys.exit(1)
    try:
        validate_ops_rules(load_rules(settings.rules_path), settings.data_dir)
    except (ValueError, RuntimeError) as e:
        logger.error(str(e))
        sys.exit(1)

    if args.command == "migrate":
        handle_migrate(settings)
    elif args.command == "register-org":
        handle_register_org(settings, args)
    elif args.command == "issue-token":
        handle_issue_token(args)


if __name__ == "__main__":
    main()
