import logging
import os
from pathlib import Path

from src.rules.models import Rules

logger = logging.getLogger(__name__)


def validate_ops_rules(rules: Rules, data_dir: Path) -> None:
    """
    Validate operational requirements before startup.

    Raises RuntimeError listing every missing environment variable, or if the
    data directory cannot be created.
    """
    missing = [env_var for env_var in rules.ops.required_env if env_var not in os.environ]
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

    try:
        data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RuntimeError(f"Data directory {data_dir} is not usable: {e}") from e

    logger.info("Configuration validated.")


def configure_logging() -> None:
    level = os.environ.get("ONBOARDING_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
