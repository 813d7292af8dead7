"""proctree - Textual snapshot browser."""

import argparse
import logging

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import Footer, Static, Tree
from textual.widgets.tree import TreeNode

from proctree.builder import TreeBuilder
from proctree.config import configure_logging
from proctree.queries import QueryEngine
from proctree.source import ProcessInfoSource
from proctree.tree import ProcessNode, ProcessTree


def format_label(node: ProcessNode) -> str:
    """Format a process as a tree label, highlighting zombies."""
    name = escape(node.record.name) if node.record.name else "?"
    if node.defunct:
        return f"[red]{node.pid} {name} <defunct>[/red]"
    return f"{node.pid} {name}"


class SummaryStats(Static):
    """Header widget showing the snapshot's root and counts."""

    DEFAULT_CSS = """
    SummaryStats {
        height: auto;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._root_pid: int | None = None
        self._found: bool = False
        self._total: int = 0
        self._defunct: int = 0

    def update_stats(self, tree: ProcessTree) -> None:
        """Update the statistics from a process tree."""
        self._root_pid = tree.requested_root
        self._found = tree.root is not None
        self._total = len(tree)
        self._defunct = QueryEngine(tree).count_defunct()
        self.update(self._get_summary())

    def _get_summary(self) -> str:
        if not self._found:
            return f"Process {self._root_pid} not found"
        return (
            f"Root: {self._root_pid}\n"
            f"Processes: {self._total}  Defunct: [red]{self._defunct}[/red]"
        )


class ProcessTreeView(Container):
    """Container for the process hierarchy widget."""

    DEFAULT_CSS = """
    ProcessTreeView {
        height: 1fr;
        border: solid $primary;
    }
    """

    def compose(self) -> ComposeResult:
        yield Tree("processes", id="process-tree")

    def show(self, tree: ProcessTree) -> None:
        """Replace the widget contents with the given snapshot."""
        widget = self.query_one("#process-tree", Tree)
        widget.clear()
        if tree.root is None:
            widget.root.set_label(f"{tree.requested_root} (not found)")
            return

        widget.root.set_label(format_label(tree.root))
        widget.root.data = tree.root.pid
        self._add_children(widget.root, tree.root, tree)
        widget.root.expand_all()

    def _add_children(self, parent: TreeNode, node: ProcessNode, tree: ProcessTree) -> None:
        # Iterative so very deep hierarchies do not hit the recursion limit
        stack = [(parent, node)]
        while stack:
            widget_node, process = stack.pop()
            for child in tree.children_of(process):
                if child.children:
                    branch = widget_node.add(format_label(child), data=child.pid)
                    stack.append((branch, child))
                else:
                    widget_node.add_leaf(format_label(child), data=child.pid)


class ProctreeApp(App):
    """Browse one process tree snapshot."""

    TITLE = "proctree"
    SUB_TITLE = "Process Tree Snapshot"

    CSS = """
    Screen {
        layout: vertical;
    }

    #summary {
        dock: top;
        height: auto;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("e", "expand_all", "Expand"),
        ("c", "collapse_all", "Collapse"),
    ]

    def __init__(self, root_pid: int, source: ProcessInfoSource | None = None) -> None:
        super().__init__()
        self._root_pid = root_pid
        self._builder = TreeBuilder(source)
        self._tree: ProcessTree | None = None

    @property
    def process_tree(self) -> ProcessTree | None:
        """The snapshot being shown, once mounted."""
        return self._tree

    def compose(self) -> ComposeResult:
        yield SummaryStats(id="summary")
        yield ProcessTreeView()
        yield Footer()

    def on_mount(self) -> None:
        """Take the snapshot and render it."""
        self._tree = self._builder.build(self._root_pid)
        self.query_one("#summary", SummaryStats).update_stats(self._tree)
        self.query_one(ProcessTreeView).show(self._tree)

    def action_expand_all(self) -> None:
        self.query_one("#process-tree", Tree).root.expand_all()

    def action_collapse_all(self) -> None:
        widget = self.query_one("#process-tree", Tree)
        widget.root.collapse_all()
        widget.root.expand()


def main() -> None:
    """Entry point for the proctree-view application."""
    parser = argparse.ArgumentParser(
        prog="proctree-view",
        description="Browse the process tree rooted at a process.",
    )
    parser.add_argument("root_pid", type=int, help="pid the tree is rooted at")
    args = parser.parse_args()

    configure_logging(logging.ERROR)
    app = ProctreeApp(args.root_pid)
    app.run()


if __name__ == "__main__":
    main()
