"""Data models for procure."""

from dataclasses import asdict, dataclass
from enum import Enum


class ParsePolicy(Enum):
    """How counter tokens that are not integers are handled."""

    STRICT = "strict"
    LENIENT = "lenient"


# Column order of a cpu line in /proc/stat, after the label.
CPU_TIMES_FIELDS = (
    "user",
    "nice",
    "system",
    "idle",
    "iowait",
    "irq",
    "softirq",
    "steal",
    "guest",
    "guest_nice",
)
MANDATORY_FIELD_COUNT = 7


@dataclass(slots=True, frozen=True)
class CpuTimes:
    """Immutable snapshot of cumulative CPU time counters, in clock ticks."""

    user: int
    nice: int
    system: int
    idle: int
    iowait: int
    irq: int
    softirq: int
    steal: int = 0  # Linux >= 2.6.11
    guest: int = 0  # Linux >= 2.6.24
    guest_nice: int = 0  # Linux >= 2.6.33

    def as_dict(self) -> dict[str, int]:
        """Return the counters keyed by field name."""
        return asdict(self)
