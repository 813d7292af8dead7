"""Signal-sending operations over a built ProcessTree."""

import logging

from proctree.models import QueryResult, SignalKind
from proctree.queries import QueryEngine
from proctree.source import PsutilSignalSender, SignalSender
from proctree.tree import ProcessTree

logger = logging.getLogger(__name__)

# The OS's top-level process; never signalled on behalf of its zombies
INIT_PID = 1


class ActionEngine:
    """
    Delivers signals to processes selected from a snapshot.

    Each action returns the pids it attempted to signal. Delivery is
    best-effort: the sender never reports failure, and the snapshot may be
    stale by the time a signal goes out.
    """

    def __init__(self, tree: ProcessTree, sender: SignalSender | None = None) -> None:
        self._tree = tree
        self._sender = sender if sender is not None else PsutilSignalSender()
        self._queries = QueryEngine(tree)

    def signal_descendants(self, pid: int, kind: SignalKind) -> QueryResult:
        """
        Signal every proper descendant of pid.

        Ancestry is decided per node by walking its parent chain, so the
        result follows tree insertion order.
        """
        if self._tree.find(pid) is None:
            return QueryResult()

        signalled = []
        for node in self._tree:
            if any(ancestor.pid == pid for ancestor in self._tree.ancestors(node)):
                self._sender.send(node.pid, kind)
                signalled.append(node.pid)

        logger.debug("Sent %s to %d descendants of %d", kind.name, len(signalled), pid)
        return QueryResult(tuple(signalled))

    def kill_zombie_parents(self, pid: int) -> QueryResult:
        """
        Kill the parent of every defunct descendant of pid.

        Parents are taken from each zombie's reported ppid and may repeat.
        Pid 1 and below are never targeted.
        """
        signalled = []
        for zombie_pid in self._queries.defunct_descendants(pid).pids:
            parent_pid = self._tree.find(zombie_pid).record.ppid
            if parent_pid <= INIT_PID:
                logger.debug("Not killing pid %d, parent of zombie %d", parent_pid, zombie_pid)
                continue
            self._sender.send(parent_pid, SignalKind.KILL)
            signalled.append(parent_pid)
        return QueryResult(tuple(signalled))

    def kill_root(self) -> QueryResult:
        """Kill the requested root pid, whether or not it was found."""
        root_pid = self._tree.requested_root
        if root_pid is None:
            return QueryResult()
        self._sender.send(root_pid, SignalKind.KILL)
        return QueryResult((root_pid,))
