"""Process information and signal delivery backends for proctree."""

import logging
from collections.abc import Iterable
from typing import Protocol

import psutil

from proctree.models import ProcessRecord, SignalKind

logger = logging.getLogger(__name__)

# Processes that exit mid-scan, belong to other users, or carry invalid pids
_PSUTIL_ERRORS = (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess, ValueError)


class ProcessInfoSource(Protocol):
    """Read access to the OS process namespace."""

    def pids(self) -> list[int]:
        """Return every currently known pid."""
        ...

    def lookup(self, pid: int) -> ProcessRecord | None:
        """Return the record for a pid, or None if it does not exist."""
        ...


class SignalSender(Protocol):
    """Fire-and-forget signal delivery."""

    def send(self, pid: int, kind: SignalKind) -> None:
        """Deliver a signal, ignoring any failure."""
        ...


class PsutilProcessSource:
    """
    Process source backed by psutil.

    Handles NoSuchProcess, AccessDenied and ZombieProcess errors by
    reporting the pid as absent, since the process table changes under us.
    """

    def pids(self) -> list[int]:
        return psutil.pids()

    def lookup(self, pid: int) -> ProcessRecord | None:
        try:
            proc = psutil.Process(pid)
            with proc.oneshot():
                ppid = proc.ppid()
                status = proc.status()
                try:
                    name = proc.name()
                except (psutil.ZombieProcess, psutil.AccessDenied):
                    # The name is only a label; zombies and foreign processes may refuse it
                    name = ""
        except _PSUTIL_ERRORS as exc:
            logger.debug("Skipping pid %d: %s", pid, exc.__class__.__name__)
            return None

        return ProcessRecord(
            pid=pid,
            ppid=ppid,
            defunct=status == psutil.STATUS_ZOMBIE,
            name=name or "",
        )


class StaticProcessSource:
    """
    In-memory process source over a fixed list of records, used by the tests.

    Pids listed in ``vanished`` are enumerated but fail lookup, the way a
    process that exits between enumeration and lookup does.
    """

    def __init__(
        self,
        records: Iterable[ProcessRecord],
        vanished: Iterable[int] = (),
    ) -> None:
        self._records: dict[int, ProcessRecord] = {}
        for record in records:
            self._records.setdefault(record.pid, record)
        self._vanished = list(vanished)

    def pids(self) -> list[int]:
        return list(self._records) + self._vanished

    def lookup(self, pid: int) -> ProcessRecord | None:
        if pid in self._vanished:
            return None
        return self._records.get(pid)


class PsutilSignalSender:
    """Signal delivery through psutil.Process.send_signal."""

    def send(self, pid: int, kind: SignalKind) -> None:
        if pid <= 0:
            # 0 and negative pids address process groups, not a process
            logger.debug("Signal %s to pid %d refused", kind.name, pid)
            return
        try:
            psutil.Process(pid).send_signal(kind.signum)
        except _PSUTIL_ERRORS as exc:
            logger.debug("Signal %s to pid %d ignored: %s", kind.name, pid, exc.__class__.__name__)
            return
        logger.debug("Sent %s to pid %d", kind.name, pid)
