"""Data models for proctree."""

import signal
from dataclasses import dataclass
from enum import Enum


class SignalKind(Enum):
    """Signals the action engine can deliver to a subtree."""

    KILL = "kill"
    STOP = "stop"
    CONT = "cont"

    @property
    def signum(self) -> int:
        """The OS signal number for this kind."""
        return {
            SignalKind.KILL: signal.SIGKILL,
            SignalKind.STOP: signal.SIGSTOP,
            SignalKind.CONT: signal.SIGCONT,
        }[self]


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable record of one process, captured at discovery time."""

    pid: int
    ppid: int  # OS-reported parent, may lie outside the tree
    defunct: bool
    name: str = ""


@dataclass(slots=True, frozen=True)
class QueryResult:
    """
    Outcome of a query or action.

    Either an ordered sequence of pids (traversal order) or a single-value
    report. The empty message is shown when there are no pids; actions
    have none and print nothing.
    """

    pids: tuple[int, ...] = ()
    empty_message: str | None = None
    report: str | None = None

    @classmethod
    def single(cls, report: str) -> "QueryResult":
        """Build a single-value report result."""
        return cls(report=report)

    def lines(self) -> list[str]:
        """Render the result as output lines."""
        if self.report is not None:
            return [self.report]
        if self.pids:
            return [str(pid) for pid in self.pids]
        if self.empty_message:
            return [self.empty_message]
        return []


class Operation(Enum):
    """Operations selectable by a command-line flag."""

    COUNT_DEFUNCT = ("-dc", "Count defunct processes in the tree")
    INDIRECT_DESCENDANTS = ("-ds", "List non-direct descendants")
    DIRECT_DESCENDANTS = ("-id", "List immediate descendants")
    SIBLINGS = ("-lg", "List sibling processes")
    DEFUNCT_SIBLINGS = ("-lz", "List defunct sibling processes")
    DEFUNCT_DESCENDANTS = ("-df", "List defunct descendants")
    GRANDCHILDREN = ("-gc", "List grandchildren")
    STATUS = ("-do", "Print defunct status")
    KILL_ZOMBIE_PARENTS = ("--pz", "Kill parents of zombie processes")
    KILL_DESCENDANTS = ("-sk", "Kill all descendants")
    STOP_DESCENDANTS = ("-st", "Stop all descendants")
    CONTINUE_DESCENDANTS = ("-dt", "Continue all stopped descendants")
    KILL_ROOT = ("-rp", "Kill the root process")

    def __init__(self, flag: str, description: str) -> None:
        self.flag = flag
        self.description = description
