"""CPU time accounting reader for /proc/stat."""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO

import psutil

from procure.config import Config
from procure.errors import ProcureIoError, ProcureParseError, ProcureRuntimeError
from procure.models import CPU_TIMES_FIELDS, MANDATORY_FIELD_COUNT, CpuTimes, ParsePolicy

logger = logging.getLogger(__name__)

# Counters are unsigned 64-bit in the kernel
MAX_COUNTER = 2**64 - 1

Source = str | os.PathLike | IO


def _parse_counter(token: str) -> int:
    """Parse a single counter token, rejecting signs, separators and overflow."""
    if not (token.isascii() and token.isdigit()):
        raise ValueError(f"invalid literal for counter: {token!r}")
    value = int(token)
    if value > MAX_COUNTER:
        raise ValueError(f"counter out of range: {token!r}")
    return value


def parse_line(line: str, policy: ParsePolicy | None = None) -> CpuTimes:
    """
    Parse one cpu line of /proc/stat into a CpuTimes.

    The leading label ("cpu", "cpu3", ...) is skipped without being checked.
    The first seven counters are mandatory; steal, guest and guest_nice
    default to 0 when an older kernel omits them. Columns past guest_nice
    are ignored.

    Args:
        line: Raw line, with or without its trailing newline.
        policy: STRICT raises on a bad counter, LENIENT reads it as 0.
            Defaults to Config.PARSE_POLICY.

    Raises:
        ProcureParseError: A mandatory counter is missing, or a counter is
            malformed under the strict policy.
    """
    if policy is None:
        policy = Config.PARSE_POLICY

    tokens = line.split()[1 : len(CPU_TIMES_FIELDS) + 1]
    if len(tokens) < MANDATORY_FIELD_COUNT:
        raise ProcureParseError(
            ValueError(
                f"expected at least {MANDATORY_FIELD_COUNT} counters, found {len(tokens)}"
            ),
            line,
        )

    values: list[int] = []
    for name, token in zip(CPU_TIMES_FIELDS, tokens):
        try:
            values.append(_parse_counter(token))
        except ValueError as exc:
            if policy is ParsePolicy.STRICT:
                raise ProcureParseError(exc, line) from exc
            logger.debug("Coercing %s counter %r to 0", name, token)
            values.append(0)

    return CpuTimes(*values)


@contextmanager
def _open_source(source: Source | None) -> Iterator[IO]:
    """Yield a readable handle, closing it only if it was opened here."""
    if source is None:
        source = Config.stat_path()

    # Handles owned by the caller are left open
    if hasattr(source, "readline"):
        yield source
        return

    try:
        # Binary, so each line is decoded on its own
        fh = open(source, "rb")
    except OSError as exc:
        raise ProcureIoError(exc) from exc

    with fh:
        yield fh


def _read_line(fh: IO) -> str:
    """Read and decode the next line, returning "" at end of file."""
    try:
        line = fh.readline()
    except UnicodeDecodeError as exc:
        raise ProcureRuntimeError(f"Failed to read line: {exc}") from exc
    except OSError as exc:
        raise ProcureIoError(exc) from exc

    if isinstance(line, str):
        return line
    if not isinstance(line, (bytes, bytearray)):
        raise ProcureRuntimeError(
            f"Expected text or bytes from source, got {type(line).__name__}"
        )
    try:
        return line.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ProcureRuntimeError(f"Failed to read line: {exc}") from exc


def total_times(source: Source | None = None, policy: ParsePolicy | None = None) -> CpuTimes:
    """
    Read the aggregate CPU times, summed over all cores.

    Args:
        source: Path or open text or binary handle. Defaults to Config.stat_path().
        policy: Numeric parse policy, see parse_line.

    Raises:
        ProcureIoError: The source could not be opened or read.
        ProcureRuntimeError: The source has no usable first line.
        ProcureParseError: The first line has malformed counters.
    """
    with _open_source(source) as fh:
        line = _read_line(fh)

    if not line.strip():
        raise ProcureRuntimeError("Expected cpu line but none found.")

    return parse_line(line, policy)


def per_core_times(
    source: Source | None = None, policy: ParsePolicy | None = None
) -> list[CpuTimes]:
    """
    Read CPU times for each core, in the order the kernel lists them.

    The aggregate line is skipped, then every following line starting with
    the cpu label is parsed until the first line that does not (or end of
    file). A source holding only the aggregate line gives an empty list.

    Args:
        source: Path or open text or binary handle. Defaults to Config.stat_path().
        policy: Numeric parse policy, see parse_line.

    Raises:
        ProcureIoError: The source could not be opened or read.
        ProcureRuntimeError: A line could not be decoded as text.
        ProcureParseError: A per-core line has malformed counters.
    """
    # Online processor count, only used to flag an unexpected line count
    expected = psutil.cpu_count()

    cores: list[CpuTimes] = []
    with _open_source(source) as fh:
        _read_line(fh)
        while True:
            line = _read_line(fh)
            if not line.startswith(Config.CPU_LINE_PREFIX):
                break
            cores.append(parse_line(line, policy))

    if expected is not None and expected != len(cores):
        logger.debug("Read %d per-core lines, %d processors online", len(cores), expected)

    return cores
