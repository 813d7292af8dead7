"""Read-only relationship queries over a built ProcessTree."""

from proctree.models import QueryResult
from proctree.tree import ProcessNode, ProcessTree

NO_DIRECT_DESCENDANTS = "No direct descendants"
NO_GRANDCHILDREN = "No grandchildren"
NO_INDIRECT_DESCENDANTS = "No non-direct descendants"
NO_SIBLINGS = "No sibling/s"
NO_DEFUNCT_SIBLINGS = "No defunct sibling/s"
NO_DEFUNCT_DESCENDANTS = "No descendant zombie process/es"

DEFUNCT = "Defunct"
NOT_DEFUNCT = "Not defunct"


class QueryEngine:
    """
    Answers structural queries about a snapshot.

    Multi-result queries return pids in discovery order, depth-first where
    they span more than one level. An unknown pid yields an empty result
    carrying the query's empty message.
    """

    def __init__(self, tree: ProcessTree) -> None:
        self._tree = tree

    def count_defunct(self) -> int:
        """Count defunct processes in the whole tree, root included."""
        return sum(1 for node in self._tree if node.defunct)

    def direct_descendants(self, pid: int) -> QueryResult:
        node = self._tree.find(pid)
        if node is None:
            return QueryResult(empty_message=NO_DIRECT_DESCENDANTS)
        return QueryResult(tuple(node.children), NO_DIRECT_DESCENDANTS)

    def grandchildren(self, pid: int) -> QueryResult:
        node = self._tree.find(pid)
        if node is None:
            return QueryResult(empty_message=NO_GRANDCHILDREN)
        pids = [
            grandchild
            for child in self._tree.children_of(node)
            for grandchild in child.children
        ]
        return QueryResult(tuple(pids), NO_GRANDCHILDREN)

    def indirect_descendants(self, pid: int) -> QueryResult:
        """All descendants at depth two or more, depth-first."""
        node = self._tree.find(pid)
        if node is None:
            return QueryResult(empty_message=NO_INDIRECT_DESCENDANTS)
        pids = [descendant.pid for descendant, depth in self._tree.walk(node) if depth >= 2]
        return QueryResult(tuple(pids), NO_INDIRECT_DESCENDANTS)

    def siblings(self, pid: int) -> QueryResult:
        pids = [sibling.pid for sibling in self._siblings(pid)]
        return QueryResult(tuple(pids), NO_SIBLINGS)

    def defunct_siblings(self, pid: int) -> QueryResult:
        pids = [sibling.pid for sibling in self._siblings(pid) if sibling.defunct]
        return QueryResult(tuple(pids), NO_DEFUNCT_SIBLINGS)

    def defunct_descendants(self, pid: int) -> QueryResult:
        """Defunct processes anywhere below pid, depth-first."""
        node = self._tree.find(pid)
        if node is None:
            return QueryResult(empty_message=NO_DEFUNCT_DESCENDANTS)
        pids = [descendant.pid for descendant, _ in self._tree.walk(node) if descendant.defunct]
        return QueryResult(tuple(pids), NO_DEFUNCT_DESCENDANTS)

    def status_of(self, pid: int) -> str | None:
        """Report "Defunct" or "Not defunct", or None if pid is not in the tree."""
        node = self._tree.find(pid)
        if node is None:
            return None
        return DEFUNCT if node.defunct else NOT_DEFUNCT

    def _siblings(self, pid: int) -> list[ProcessNode]:
        node = self._tree.find(pid)
        if node is None:
            return []
        parent = self._tree.parent_of(node)
        if parent is None:
            return []
        return [sibling for sibling in self._tree.children_of(parent) if sibling.pid != pid]
