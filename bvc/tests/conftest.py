import logging

import pytest

from bvc.core.clock import FixedClock
from bvc.core.models import RepoConfig
from bvc.store import create_working_copy

from .fakes import FakeContentStore, FakeLedger


@pytest.fixture(autouse=True)
def _detach_cli_log_handler():
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if handler.get_name() == "bvc-stderr":
            root.removeHandler(handler)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def content():
    return FakeContentStore()


@pytest.fixture
def repo(tmp_path):
    """Local-only repository with a README."""
    config = RepoConfig(name="proj", created_at="2024-01-01T00:00:00.000Z", author="alice")
    return create_working_copy(tmp_path / "proj", config)


@pytest.fixture
def remote_repo(tmp_path, ledger):
    """Repository registered on the fake ledger."""
    repo_id = ledger.add_repository("proj")
    config = RepoConfig(name="proj", created_at="2024-01-01T00:00:00.000Z", repo_id=repo_id, author="alice")
    return create_working_copy(tmp_path / "proj", config)
