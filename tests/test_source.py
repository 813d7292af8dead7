"""Tests for the psutil-backed process source and signal sender."""

import os
import subprocess
import sys
import time

import psutil
import pytest

from conftest import record
from proctree.actions import ActionEngine
from proctree.builder import TreeBuilder
from proctree.models import ProcessRecord, SignalKind
from proctree.queries import QueryEngine
from proctree.source import PsutilProcessSource, PsutilSignalSender, StaticProcessSource

# Far above any default pid_max, so never a live process
MISSING_PID = 2**31 - 2

NESTED_SCRIPT = (
    "import subprocess, sys, time\n"
    "child = subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(60)'])\n"
    "print(child.pid, flush=True)\n"
    "time.sleep(60)\n"
)


def wait_for(predicate, timeout: float = 5.0) -> bool:
    """Poll predicate until it is true or the timeout expires."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()


def is_zombie_or_gone(pid: int) -> bool:
    try:
        return psutil.Process(pid).status() == psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return True


@pytest.fixture
def nested_processes():
    """
    Spawn a child that itself spawns a sleeping grandchild.

    The child never waits for the grandchild, so killing the grandchild
    leaves a zombie. Yields (child_pid, grandchild_pid).
    """
    child = subprocess.Popen(
        [sys.executable, "-c", NESTED_SCRIPT],
        stdout=subprocess.PIPE,
        text=True,
    )
    grandchild_pid = int(child.stdout.readline())
    try:
        yield child.pid, grandchild_pid
    finally:
        for pid in (grandchild_pid, child.pid):
            try:
                psutil.Process(pid).kill()
            except psutil.NoSuchProcess:
                pass
        child.wait(timeout=5.0)
        child.stdout.close()


class TestPsutilProcessSource:
    """Tests for PsutilProcessSource against the live process table."""

    def test_pids_include_self(self):
        """Test the test process is enumerated."""
        assert os.getpid() in PsutilProcessSource().pids()

    def test_lookup_self(self):
        """Test looking up the test process."""
        record = PsutilProcessSource().lookup(os.getpid())

        assert isinstance(record, ProcessRecord)
        assert record.pid == os.getpid()
        assert record.ppid == os.getppid()
        assert record.defunct is False
        assert isinstance(record.name, str)

    def test_lookup_missing_pid(self):
        """Test a pid with no process looks up as None."""
        assert PsutilProcessSource().lookup(MISSING_PID) is None

    def test_lookup_negative_pid(self):
        """Test a negative pid looks up as None."""
        assert PsutilProcessSource().lookup(-5) is None

    def test_lookup_keeps_process_with_unreadable_name(self, monkeypatch):
        """Test a process whose name is refused is still recorded."""
        def deny(self):
            raise psutil.AccessDenied(self.pid)

        monkeypatch.setattr(psutil.Process, "name", deny)
        record = PsutilProcessSource().lookup(os.getpid())

        assert record is not None
        assert record.pid == os.getpid()
        assert record.ppid == os.getppid()
        assert record.name == ""

    def test_lookup_zombie(self):
        """Test an unreaped child is recorded as defunct."""
        proc = subprocess.Popen([sys.executable, "-c", "pass"])
        try:
            # Unreaped until wait(), so it lingers as a zombie
            assert wait_for(lambda: is_zombie_or_gone(proc.pid))
            record = PsutilProcessSource().lookup(proc.pid)

            assert record is not None
            assert record.defunct is True
            assert record.ppid == os.getpid()
        finally:
            proc.wait(timeout=5.0)


class TestPsutilSignalSender:
    """Tests for PsutilSignalSender."""

    def test_missing_pid_is_ignored(self):
        """Test signalling a missing pid does not raise."""
        PsutilSignalSender().send(MISSING_PID, SignalKind.KILL)

    def test_non_positive_pid_is_refused(self, monkeypatch):
        """Test pids 0 and -1 are never signalled."""
        def fail(pid):
            raise AssertionError("psutil.Process should not be called")

        monkeypatch.setattr(psutil, "Process", fail)
        PsutilSignalSender().send(0, SignalKind.KILL)
        PsutilSignalSender().send(-1, SignalKind.KILL)

    def test_stop_and_continue(self):
        """Test STOP and CONT suspend and resume a child."""
        proc = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
        sender = PsutilSignalSender()
        try:
            sender.send(proc.pid, SignalKind.STOP)
            assert wait_for(lambda: psutil.Process(proc.pid).status() == psutil.STATUS_STOPPED)

            sender.send(proc.pid, SignalKind.CONT)
            assert wait_for(lambda: psutil.Process(proc.pid).status() != psutil.STATUS_STOPPED)
        finally:
            proc.kill()
            proc.wait(timeout=5.0)

    def test_kill(self):
        """Test KILL terminates a child."""
        proc = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
        PsutilSignalSender().send(proc.pid, SignalKind.KILL)
        assert proc.wait(timeout=5.0) == -9


class TestStaticProcessSource:
    """Tests for StaticProcessSource."""

    def test_enumeration_order(self):
        """Test pids are listed in record order, vanished pids last."""
        source = StaticProcessSource([record(3, 1), record(1, 0)], vanished=[9])
        assert source.pids() == [3, 1, 9]

    def test_first_record_wins(self):
        """Test the first record for a repeated pid is kept."""
        source = StaticProcessSource([record(3, 1), record(3, 2)])
        assert source.lookup(3).ppid == 1

    def test_vanished_lookup(self):
        """Test a vanished pid looks up as None."""
        source = StaticProcessSource([record(3, 1)], vanished=[3])
        assert source.lookup(3) is None


class TestLiveTree:
    """End-to-end discovery and signalling on real processes."""

    def test_tree_rooted_at_self(self, nested_processes):
        """Test a live tree finds a child and grandchild of the test process."""
        child_pid, grandchild_pid = nested_processes
        tree = TreeBuilder().build(os.getpid())
        queries = QueryEngine(tree)

        assert tree.root.pid == os.getpid()
        assert child_pid in queries.direct_descendants(os.getpid()).pids
        assert grandchild_pid in queries.grandchildren(os.getpid()).pids
        assert grandchild_pid in queries.indirect_descendants(os.getpid()).pids
        assert tree.find(grandchild_pid).parent_pid == child_pid

    def test_kill_descendants_then_zombie_parent(self, nested_processes):
        """Test killing a grandchild leaves a zombie whose parent is then killed."""
        child_pid, grandchild_pid = nested_processes

        tree = TreeBuilder().build(child_pid)
        result = ActionEngine(tree).signal_descendants(child_pid, SignalKind.KILL)
        assert result.pids == (grandchild_pid,)

        # The child never reaps, so the grandchild stays a zombie
        assert wait_for(lambda: is_zombie_or_gone(grandchild_pid))
        tree = TreeBuilder().build(child_pid)
        queries = QueryEngine(tree)
        assert queries.defunct_descendants(child_pid).pids == (grandchild_pid,)
        assert queries.count_defunct() == 1

        result = ActionEngine(tree).kill_zombie_parents(child_pid)
        assert result.pids == (child_pid,)
        assert wait_for(lambda: is_zombie_or_gone(child_pid))

    def test_missing_root(self):
        """Test a missing live root gives an empty tree."""
        tree = TreeBuilder().build(MISSING_PID)
        assert tree.root is None
        assert len(tree) == 0
