"""proctree - command-line interface."""

import argparse
import logging
import sys

from proctree.actions import ActionEngine
from proctree.builder import TreeBuilder
from proctree.config import configure_logging, init_config_from_args
from proctree.models import Operation, QueryResult, SignalKind
from proctree.queries import QueryEngine
from proctree.source import ProcessInfoSource, SignalSender
from proctree.tree import ProcessTree

logger = logging.getLogger(__name__)

NOT_IN_TREE = "Does not belong to the process tree"

HELP_FLAGS = ("-h", "--help")
VERBOSE_FLAGS = ("-v", "--verbose")


class _ArgumentParser(argparse.ArgumentParser):
    """Reports usage errors on stdout with exit status 1."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stdout)
        print(f"{self.prog}: error: {message}")
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="proctree",
        description="Inspect and signal the process tree rooted at a process.",
        allow_abbrev=False,
    )
    parser.add_argument("root_pid", type=int, help="pid the tree is rooted at")
    parser.add_argument("target_pid", type=int, help="pid the operation applies to")
    parser.add_argument(*VERBOSE_FLAGS, action="store_true", help="log debug output to stderr")

    ops = parser.add_mutually_exclusive_group()
    for operation in Operation:
        ops.add_argument(
            operation.flag,
            dest="operation",
            action="store_const",
            const=operation,
            help=operation.description,
        )
    parser.set_defaults(operation=None)
    return parser


def run_operation(
    operation: Operation,
    tree: ProcessTree,
    target_pid: int,
    sender: SignalSender | None = None,
) -> QueryResult:
    """Run one operation against a built tree."""
    queries = QueryEngine(tree)
    actions = ActionEngine(tree, sender)

    handlers = {
        Operation.COUNT_DEFUNCT: lambda: QueryResult.single(str(queries.count_defunct())),
        Operation.INDIRECT_DESCENDANTS: lambda: queries.indirect_descendants(target_pid),
        Operation.DIRECT_DESCENDANTS: lambda: queries.direct_descendants(target_pid),
        Operation.SIBLINGS: lambda: queries.siblings(target_pid),
        Operation.DEFUNCT_SIBLINGS: lambda: queries.defunct_siblings(target_pid),
        Operation.DEFUNCT_DESCENDANTS: lambda: queries.defunct_descendants(target_pid),
        Operation.GRANDCHILDREN: lambda: queries.grandchildren(target_pid),
        Operation.STATUS: lambda: _status_result(queries, target_pid),
        Operation.KILL_ZOMBIE_PARENTS: lambda: actions.kill_zombie_parents(target_pid),
        Operation.KILL_DESCENDANTS: lambda: actions.signal_descendants(target_pid, SignalKind.KILL),
        Operation.STOP_DESCENDANTS: lambda: actions.signal_descendants(target_pid, SignalKind.STOP),
        Operation.CONTINUE_DESCENDANTS: lambda: actions.signal_descendants(
            target_pid, SignalKind.CONT
        ),
        Operation.KILL_ROOT: actions.kill_root,
    }
    return handlers[operation]()


def _status_result(queries: QueryEngine, pid: int) -> QueryResult:
    status = queries.status_of(pid)
    return QueryResult.single(status) if status is not None else QueryResult()


def _first_unknown_option(argv: list[str]) -> str | None:
    """Return the first argument that looks like an option but is not one."""
    known = {operation.flag for operation in Operation}
    known.update(HELP_FLAGS, VERBOSE_FLAGS)
    for arg in argv:
        if arg == "--":
            break
        if not arg.startswith("-") or arg in known:
            continue
        try:
            int(arg)
        except ValueError:
            return arg
    return None


def _print_lines(lines: list[str]) -> None:
    for line in lines:
        print(line)


def main(
    argv: list[str] | None = None,
    source: ProcessInfoSource | None = None,
    sender: SignalSender | None = None,
) -> int:
    """Entry point for the proctree command. Returns the exit status."""
    if argv is None:
        argv = sys.argv[1:]
    # argparse would read "-vz" or "-help" as a clustered -v or -h
    unknown = _first_unknown_option(argv)
    if unknown is not None:
        print(f"Invalid option: {unknown}")
        return 1

    args = build_parser().parse_args(argv)

    cfg = init_config_from_args(args)
    configure_logging(cfg.log_level)

    try:
        tree = TreeBuilder(source).build(cfg.root_pid)

        if cfg.operation is None:
            node = tree.find(cfg.target_pid)
            if node is None:
                print(NOT_IN_TREE)
            else:
                print(f"{node.pid} {node.record.ppid}")
            return 0

        if cfg.operation is not Operation.KILL_ROOT and cfg.target_pid not in tree:
            print(
                f"The process {cfg.target_pid} does not belong to the tree "
                f"rooted at {cfg.root_pid}"
            )
            return 0

        result = run_operation(cfg.operation, tree, cfg.target_pid, sender)
        _print_lines(result.lines())
    except MemoryError:
        print("proctree: out of memory while building the process tree", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
