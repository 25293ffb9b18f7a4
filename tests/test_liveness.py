"""Tests for resque_status.liveness module."""

import os

import pytest

from resque_status import liveness
from resque_status.liveness import (
    Liveness,
    PlatformApiProbe,
    PosixProbe,
    ProcfsProbe,
    UnsupportedProbe,
    select_probe,
)


class TestLiveness:
    def test_from_bool(self):
        assert Liveness.from_bool(True) is Liveness.ALIVE
        assert Liveness.from_bool(False) is Liveness.DEAD

    def test_as_optional_bool(self):
        assert Liveness.ALIVE.as_optional_bool() is True
        assert Liveness.DEAD.as_optional_bool() is False
        assert Liveness.UNKNOWN.as_optional_bool() is None


@pytest.mark.skipif(not hasattr(os, "getpgid"), reason="requires getpgid")
class TestPosixProbe:
    def test_current_process_is_alive(self):
        assert PosixProbe()(os.getpid()) is Liveness.ALIVE

    def test_missing_process_is_dead(self, monkeypatch):
        def fake_getpgid(pid):
            raise ProcessLookupError(pid)

        monkeypatch.setattr(liveness.os, "getpgid", fake_getpgid)
        assert PosixProbe()(424242) is Liveness.DEAD

    def test_foreign_session_is_alive(self, monkeypatch):
        def fake_getpgid(pid):
            raise PermissionError(pid)

        monkeypatch.setattr(liveness.os, "getpgid", fake_getpgid)
        assert PosixProbe()(1) is Liveness.ALIVE

    @pytest.mark.parametrize("pid", [0, -1])
    def test_non_positive_pid_is_dead(self, pid):
        assert PosixProbe()(pid) is Liveness.DEAD

    def test_pid_beyond_platform_range_is_dead(self):
        assert PosixProbe()(99999999999) is Liveness.DEAD


class TestProcfsProbe:
    def test_entry_present(self, tmp_path):
        (tmp_path / "30677").mkdir()
        assert ProcfsProbe(tmp_path)(30677) is Liveness.ALIVE

    def test_entry_missing(self, tmp_path):
        assert ProcfsProbe(tmp_path)(30677) is Liveness.DEAD

    def test_non_positive_pid_is_dead(self, tmp_path):
        (tmp_path / "0").mkdir()
        assert ProcfsProbe(tmp_path)(0) is Liveness.DEAD


class TestPlatformApiProbe:
    def test_uses_psutil(self, monkeypatch):
        seen = []

        def fake_pid_exists(pid):
            seen.append(pid)
            return pid == 100

        monkeypatch.setattr(liveness.psutil, "pid_exists", fake_pid_exists)
        probe = PlatformApiProbe()
        assert probe(100) is Liveness.ALIVE
        assert probe(200) is Liveness.DEAD
        assert seen == [100, 200]

    def test_current_process_is_alive(self):
        assert PlatformApiProbe()(os.getpid()) is Liveness.ALIVE


class TestUnsupportedProbe:
    def test_always_unknown(self):
        assert UnsupportedProbe()(os.getpid()) is Liveness.UNKNOWN
        assert UnsupportedProbe()(0) is Liveness.UNKNOWN


class TestSelectProbe:
    @pytest.mark.parametrize("system", ["Linux", "FreeBSD", "Darwin"])
    def test_posix_platforms(self, monkeypatch, system):
        monkeypatch.setattr(liveness.os, "getpgid", lambda pid: pid, raising=False)
        assert isinstance(select_probe(system), PosixProbe)

    def test_posix_without_getpgid_uses_procfs(self, monkeypatch):
        monkeypatch.delattr(liveness.os, "getpgid", raising=False)
        assert isinstance(select_probe("Linux"), ProcfsProbe)

    @pytest.mark.parametrize("system", ["Windows", "win"])
    def test_windows(self, system):
        assert isinstance(select_probe(system), PlatformApiProbe)

    @pytest.mark.parametrize("system", ["SunOS", "AIX", "Java", ""])
    def test_unrecognized_platforms(self, system):
        assert isinstance(select_probe(system), UnsupportedProbe)

    def test_defaults_to_current_platform(self, monkeypatch):
        monkeypatch.setattr(liveness.platform, "system", lambda: "Plan9")
        assert isinstance(select_probe(), UnsupportedProbe)
