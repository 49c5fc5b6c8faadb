"""Tests for process id enumeration."""

import gc
import os
import warnings
from collections.abc import Iterator
from types import SimpleNamespace

import pytest

from procure import process
from procure.config import Config
from procure.errors import ProcureIoError
from procure.process import pids


def make_entries(root, names):
    """Create one directory per name under root."""
    for name in names:
        (root / name).mkdir()


class FlakyScandir:
    """Stand-in for os.scandir whose listing fails part way through."""

    def __init__(self, names):
        self._entries = iter(SimpleNamespace(name=name) for name in names)
        self.closed = False

    def __iter__(self):
        return self

    def __next__(self):
        entry = next(self._entries)
        if entry.name == "fail":
            raise OSError("directory changed")
        return entry

    def close(self):
        self.closed = True


class TestPids:
    """Tests for pids."""

    def test_pids_from_directory(self, tmp_path):
        """Test only positive integer names are reported."""
        make_entries(tmp_path, ["1", "33", "68", "notanumber", "42.5"])

        assert sorted(pids(tmp_path)) == [1, 33, 68]

    def test_empty_directory(self, tmp_path):
        """Test an empty directory yields nothing."""
        assert list(pids(tmp_path)) == []

    def test_non_positive_and_signed_names_are_skipped(self, tmp_path):
        """Test zero, signs and whitespace do not pass as process ids."""
        make_entries(tmp_path, ["0", "-5", "+7", " 9", "12", "self", "cpuinfo.d"])

        assert sorted(pids(tmp_path)) == [12]

    def test_files_with_numeric_names_are_reported(self, tmp_path):
        """Test entries are filtered by name, not by type."""
        (tmp_path / "4242").write_text("")
        (tmp_path / "stat").write_text("")

        assert list(pids(tmp_path)) == [4242]

    def test_non_utf8_names_are_skipped(self, tmp_path):
        """Test names that are not valid text are dropped."""
        make_entries(tmp_path, ["77"])
        os.mkdir(os.path.join(os.fsencode(tmp_path), b"\xff12"))

        assert list(pids(tmp_path)) == [77]

    def test_bytes_directory_path(self, tmp_path):
        """Test a bytes path gives integer ids all the same."""
        make_entries(tmp_path, ["5", "notanumber"])

        assert list(pids(os.fsencode(tmp_path))) == [5]

    def test_result_is_lazy_iterator(self, tmp_path):
        """Test ids are produced on demand, one pass only."""
        make_entries(tmp_path, ["1", "2", "3"])

        result = pids(tmp_path)

        assert isinstance(result, Iterator)
        first = next(result)
        rest = list(result)
        assert sorted([first, *rest]) == [1, 2, 3]
        assert list(result) == []

    def test_missing_directory_raises_at_call(self, tmp_path):
        """Test an unlistable directory is reported before iteration starts."""
        with pytest.raises(ProcureIoError) as excinfo:
            pids(tmp_path / "missing")

        assert isinstance(excinfo.value.underlying, FileNotFoundError)

    def test_listing_failure_mid_scan_ends_iteration(self, monkeypatch):
        """Test entries listed before a read failure are still reported."""
        listing = FlakyScandir(["10", "notanumber", "20", "fail", "30"])
        monkeypatch.setattr(process.os, "scandir", lambda path: listing)

        assert list(pids("/proc")) == [10, 20]
        assert listing.closed

    def test_closing_iterator_releases_directory(self, monkeypatch):
        """Test the listing is closed when the caller stops early."""
        listing = FlakyScandir(["1", "2", "3"])
        monkeypatch.setattr(process.os, "scandir", lambda path: listing)

        result = pids("/proc")
        assert next(result) == 1
        result.close()

        assert listing.closed

    def test_default_directory_comes_from_config(self, tmp_path, monkeypatch):
        """Test pids reads Config.PROC_ROOT by default."""
        make_entries(tmp_path, ["101", "202"])
        monkeypatch.setattr(Config, "PROC_ROOT", str(tmp_path))

        assert sorted(pids()) == [101, 202]

    def test_live_proc_contains_current_process(self):
        """Test the real /proc lists this test process and init."""
        found = set(pids("/proc"))

        assert os.getpid() in found
        assert 1 in found
        assert all(pid > 0 for pid in found)

    def test_context_manager_releases_directory(self, monkeypatch):
        """Test leaving a with block closes the listing."""
        listing = FlakyScandir(["1", "2", "3"])
        monkeypatch.setattr(process.os, "scandir", lambda path: listing)

        with pids("/proc") as result:
            assert next(result) == 1

        assert listing.closed

    def test_unstarted_iterator_releases_directory(self, tmp_path):
        """Test dropping a result that was never iterated closes the listing."""
        make_entries(tmp_path, ["1", "2"])

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", ResourceWarning)
            result = pids(tmp_path)
            del result
            gc.collect()

        unclosed = [w for w in caught if issubclass(w.category, ResourceWarning)]
        assert unclosed == []
