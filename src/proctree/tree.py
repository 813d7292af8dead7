"""In-memory process tree for proctree."""

from collections.abc import Iterator
from dataclasses import dataclass, field

from proctree.errors import DuplicateProcessError, RootAlreadySetError, UnknownProcessError
from proctree.models import ProcessRecord


@dataclass(slots=True)
class ProcessNode:
    """
    A process record placed in a tree.

    Links are pids resolved through the owning ProcessTree. ``parent_pid``
    is the parent within this tree, which is None for the root and for
    nodes not yet linked; ``record.ppid`` is what the OS reported.
    """

    record: ProcessRecord
    parent_pid: int | None = None
    children: list[int] = field(default_factory=list)

    @property
    def pid(self) -> int:
        return self.record.pid

    @property
    def defunct(self) -> bool:
        return self.record.defunct


class ProcessTree:
    """
    Write-once snapshot of a process hierarchy.

    Owns every node and indexes them by pid. The builder populates it once;
    queries and actions only read from it afterwards.
    """

    def __init__(self, requested_root: int | None = None) -> None:
        """
        Initialize an empty tree.

        Args:
            requested_root: The pid the tree was asked to be rooted at.
                Remembered even when that process does not exist.
        """
        self._nodes: dict[int, ProcessNode] = {}
        self._root: ProcessNode | None = None
        self.requested_root = requested_root

    @property
    def root(self) -> ProcessNode | None:
        """The root node, or None if the root process was not found."""
        return self._root

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, pid: object) -> bool:
        return pid in self._nodes

    def __iter__(self) -> Iterator[ProcessNode]:
        """Iterate nodes in insertion (discovery) order."""
        return iter(self._nodes.values())

    def insert(self, record: ProcessRecord) -> ProcessNode:
        """Add an unlinked node for a record whose pid is not in the tree yet."""
        if record.pid in self._nodes:
            raise DuplicateProcessError(record.pid)
        node = ProcessNode(record)
        self._nodes[record.pid] = node
        return node

    def link(self, parent_pid: int, child_pid: int) -> bool:
        """
        Attach a child node under a parent node.

        Skips children that already have a parent, the root, and any child
        that is the parent itself or one of its ancestors, so no sequence of
        calls can create a cycle.

        Returns:
            True if a link was made.
        """
        parent = self._get(parent_pid)
        child = self._get(child_pid)
        if child.parent_pid is not None or child is self._root or child is parent:
            return False
        if any(ancestor is child for ancestor in self.ancestors(parent)):
            return False
        parent.children.append(child.pid)
        child.parent_pid = parent.pid
        return True

    def find(self, pid: int) -> ProcessNode | None:
        return self._nodes.get(pid)

    def set_root(self, node: ProcessNode) -> None:
        if self._root is not None:
            raise RootAlreadySetError(f"root already set to {self._root.pid}")
        if self._nodes.get(node.pid) is not node:
            raise UnknownProcessError(node.pid)
        self._root = node
        if self.requested_root is None:
            self.requested_root = node.pid

    def parent_of(self, node: ProcessNode) -> ProcessNode | None:
        """Return the parent node within this tree."""
        if node.parent_pid is None:
            return None
        return self._nodes[node.parent_pid]

    def children_of(self, node: ProcessNode) -> list[ProcessNode]:
        return [self._nodes[pid] for pid in node.children]

    def ancestors(self, node: ProcessNode) -> Iterator[ProcessNode]:
        """Walk the parent chain upward, nearest ancestor first."""
        parent = self.parent_of(node)
        while parent is not None:
            yield parent
            parent = self.parent_of(parent)

    def walk(self, node: ProcessNode) -> Iterator[tuple[ProcessNode, int]]:
        """
        Depth-first pre-order walk of the subtree below a node.

        Yields (descendant, depth) pairs, children at depth 1. The node
        itself is not yielded. Iterative, so deep trees are fine.
        """
        stack = [(child, 1) for child in reversed(self.children_of(node))]
        while stack:
            current, depth = stack.pop()
            yield current, depth
            stack.extend((child, depth + 1) for child in reversed(self.children_of(current)))

    def _get(self, pid: int) -> ProcessNode:
        node = self._nodes.get(pid)
        if node is None:
            raise UnknownProcessError(pid)
        return node
