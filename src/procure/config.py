"""Configuration settings for procure."""

import logging
import os

from procure.models import ParsePolicy

logger = logging.getLogger(__name__)


def _policy_from_env(value: str) -> ParsePolicy:
    try:
        return ParsePolicy(value.strip().lower())
    except ValueError:
        logger.warning(
            "Unknown PROCURE_PARSE_POLICY %r, falling back to %s",
            value,
            ParsePolicy.STRICT.value,
        )
        return ParsePolicy.STRICT


class Config:
    """Library configuration."""

    # Root of the proc filesystem (e.g. /host/proc when mounted into a container)
    PROC_ROOT = os.environ.get("PROCURE_PROC_ROOT", "/proc")

    # Handling of counter tokens that are not integers
    PARSE_POLICY = _policy_from_env(os.environ.get("PROCURE_PARSE_POLICY", "strict"))

    # Label that starts every cpu line in the stat file
    CPU_LINE_PREFIX = "cpu"

    @classmethod
    def stat_path(cls) -> str:
        """Return the path of the CPU accounting file."""
        return os.path.join(cls.PROC_ROOT, "stat")
