"""Exceptions raised by proctree.

Only caller bugs raise. Vanished processes and failed signal deliveries
are expected outcomes and never surface as exceptions.
"""


class ProcTreeError(Exception):
    """Base class for proctree errors."""


class DuplicateProcessError(ProcTreeError):
    """A pid was inserted twice into the same tree."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"process {pid} is already in the tree")
        self.pid = pid


class UnknownProcessError(ProcTreeError):
    """A pid passed to a tree operation is not in the tree."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"process {pid} is not in the tree")
        self.pid = pid


class RootAlreadySetError(ProcTreeError):
    """The tree root was set more than once."""
