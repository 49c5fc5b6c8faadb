"""Process id enumeration from the /proc directory."""

import logging
import os
from collections.abc import Iterator

from procure.config import Config
from procure.errors import ProcureIoError

logger = logging.getLogger(__name__)


def _resolved_entries(entries: Iterator[os.DirEntry]) -> Iterator[os.DirEntry]:
    """Yield entries until the listing can no longer be read."""
    while True:
        try:
            entry = next(entries)
        except StopIteration:
            return
        except OSError as exc:
            # The directory changed under us; whatever was listed so far stands
            logger.debug("Stopped reading process directory: %s", exc)
            return
        yield entry


def _text_name(entry: os.DirEntry) -> str | None:
    """Return the entry name as text, or None if it is not valid UTF-8."""
    name = entry.name
    try:
        if isinstance(name, bytes):
            return name.decode("utf-8")
        name.encode("utf-8")
    except UnicodeError:
        logger.debug("Skipping non-text entry %r", name)
        return None
    return name


def _pid_from_name(name: str) -> int | None:
    """Return the name as a process id, or None if it is not a positive integer."""
    if not (name.isascii() and name.isdigit()):
        return None
    pid = int(name)
    return pid if pid > 0 else None


class PidIterator:
    """
    Single-pass iterator of process ids over an open directory listing.

    The listing is released when the iterator is exhausted, closed, used
    as a context manager, or garbage collected without being started.
    """

    def __init__(self, entries) -> None:
        self._entries = entries
        names = (_text_name(entry) for entry in _resolved_entries(entries))
        candidates = (_pid_from_name(name) for name in names if name is not None)
        self._pids = (pid for pid in candidates if pid is not None)

    def __iter__(self) -> "PidIterator":
        return self

    def __next__(self) -> int:
        try:
            return next(self._pids)
        except StopIteration:
            self.close()
            raise

    def close(self) -> None:
        """Release the directory listing."""
        self._entries.close()

    def __enter__(self) -> "PidIterator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __del__(self) -> None:
        self.close()


def pids(source_dir: str | os.PathLike | None = None) -> PidIterator:
    """
    Enumerate the ids of running processes.

    The directory is opened immediately; its entries are then examined
    lazily as the returned iterator is consumed. Entries whose name is not
    a positive integer are skipped, as are entries that vanish mid-scan.
    Ids come back in directory order, so sort them if order matters.

    Args:
        source_dir: Process information directory. Defaults to Config.PROC_ROOT.

    Returns:
        A single-pass iterator of process ids, usable in a with block.

    Raises:
        ProcureIoError: The directory could not be listed.
    """
    if source_dir is None:
        source_dir = Config.PROC_ROOT

    try:
        entries = os.scandir(source_dir)
    except OSError as exc:
        raise ProcureIoError(exc) from exc

    return PidIterator(entries)
