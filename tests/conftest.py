from datetime import datetime, timedelta, timezone

import pytest

from commandbox.persistence import MemoryStoragePort
from commandbox.store import CommandStore


class StepClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


class SequentialIds:
    def __init__(self):
        self.counter = 0

    def __call__(self, prefix: str) -> str:
        self.counter += 1
        return f"{prefix}_{self.counter}"


def make_store(port=None, **kwargs) -> CommandStore:
    kwargs.setdefault("clock", StepClock())
    kwargs.setdefault("id_factory", SequentialIds())
    return CommandStore(port if port is not None else MemoryStoragePort(), **kwargs)


@pytest.fixture
def port():
    return MemoryStoragePort()


@pytest.fixture
def store(port):
    return make_store(port)


@pytest.fixture
def store_factory():
    return make_store
