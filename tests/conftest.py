"""Shared fixtures for proctree tests."""

import logging

import pytest

from proctree.builder import TreeBuilder
from proctree.models import ProcessRecord, SignalKind
from proctree.source import StaticProcessSource


class RecordingSender:
    """Signal sender that records deliveries instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[tuple[int, SignalKind]] = []

    def send(self, pid: int, kind: SignalKind) -> None:
        self.sent.append((pid, kind))


def record(pid: int, ppid: int, defunct: bool = False, name: str = "") -> ProcessRecord:
    return ProcessRecord(pid=pid, ppid=ppid, defunct=defunct, name=name)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def example_source() -> StaticProcessSource:
    """
    Root 1 with children 2 (defunct) and 3; 4 (defunct) under 2.

    Unrelated process 50 hangs off pid 0 and must not appear.
    """
    return StaticProcessSource(
        [
            record(1, 0, name="init"),
            record(2, 1, defunct=True, name="zombie"),
            record(3, 1, name="shell"),
            record(4, 2, defunct=True, name="orphan"),
            record(50, 0, name="kthreadd"),
        ]
    )


@pytest.fixture
def example_tree(example_source):
    return TreeBuilder(example_source).build(1)


@pytest.fixture
def deep_source() -> StaticProcessSource:
    """
    A four-level hierarchy under root 10.

        10
        |- 11
        |  |- 13
        |  |  `- 15 (defunct)
        |  |     `- 17
        |  `- 14
        `- 12 (defunct)
           `- 16 (defunct)
    """
    return StaticProcessSource(
        [
            record(10, 1),
            record(11, 10),
            record(12, 10, defunct=True),
            record(13, 11),
            record(14, 11),
            record(15, 13, defunct=True),
            record(16, 12, defunct=True),
            record(17, 15),
        ]
    )


@pytest.fixture
def deep_tree(deep_source):
    return TreeBuilder(deep_source).build(10)


@pytest.fixture(autouse=True)
def reset_proctree_logging():
    """Drop handlers installed by configure_logging between tests."""
    yield
    logger = logging.getLogger("proctree")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
