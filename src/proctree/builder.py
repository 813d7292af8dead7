"""Snapshot discovery for proctree."""

import logging
from collections import defaultdict

from proctree.models import ProcessRecord
from proctree.source import ProcessInfoSource, PsutilProcessSource
from proctree.tree import ProcessTree

logger = logging.getLogger(__name__)


class TreeBuilder:
    """
    Builds a ProcessTree rooted at a given pid from one pass over the
    process namespace.

    Every pid is looked up once and the records are grouped by parent pid;
    the grouping is then walked depth-first from the root. A child is
    inserted the first time it is reached, so malformed or racy parent
    pids cannot produce a cycle. Pids that vanish between enumeration and
    lookup are skipped.
    """

    def __init__(self, source: ProcessInfoSource | None = None) -> None:
        self._source = source if source is not None else PsutilProcessSource()

    def build(self, root_pid: int) -> ProcessTree:
        """
        Build the tree for root_pid.

        Returns a tree with no root if the root process does not exist.
        """
        tree = ProcessTree(requested_root=root_pid)

        root_record = self._source.lookup(root_pid)
        if root_record is None:
            logger.debug("Root pid %d not found", root_pid)
            return tree

        root = tree.insert(root_record)
        tree.set_root(root)

        by_parent = self._scan()
        self._discover(tree, root_pid, by_parent)
        self._reconcile(tree)

        logger.debug("Built tree rooted at %d with %d processes", root_pid, len(tree))
        return tree

    def _scan(self) -> dict[int, list[ProcessRecord]]:
        """Look up every pid once and group the records by parent pid."""
        by_parent: dict[int, list[ProcessRecord]] = defaultdict(list)
        seen: set[int] = set()

        for pid in self._source.pids():
            if pid in seen:
                continue
            record = self._source.lookup(pid)
            if record is None:
                # Exited between enumeration and lookup
                continue
            seen.add(pid)
            by_parent[record.ppid].append(record)

        return by_parent

    def _discover(
        self,
        tree: ProcessTree,
        root_pid: int,
        by_parent: dict[int, list[ProcessRecord]],
    ) -> None:
        """Insert and link every process reachable from root_pid, pre-order."""
        stack = [(root_pid, record) for record in reversed(by_parent.get(root_pid, []))]
        while stack:
            parent_pid, record = stack.pop()
            if record.pid in tree:
                continue
            tree.insert(record)
            tree.link(parent_pid, record.pid)
            stack.extend(
                (record.pid, child) for child in reversed(by_parent.get(record.pid, []))
            )

    def _reconcile(self, tree: ProcessTree) -> None:
        """Link any non-root node whose reported parent is in the tree but unlinked."""
        for node in tree:
            if node is tree.root or node.parent_pid is not None:
                continue
            if node.record.ppid in tree and tree.link(node.record.ppid, node.pid):
                logger.debug("Reconciled pid %d under %d", node.pid, node.record.ppid)
