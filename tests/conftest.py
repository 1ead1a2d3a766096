"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import os
from datetime import UTC, datetime
from pathlib import Path

import pytest
from gcrootctl.core.context import RunContext
from gcrootctl.core.users import AccountTable, UserAccount
from support import RootTree


@pytest.fixture
def now() -> datetime:
    """Reference time for a test run."""
    return datetime.now(UTC).replace(microsecond=0)


@pytest.fixture
def tree(tmp_path: Path, now: datetime) -> RootTree:
    """Empty store, anchor directory and home under tmp_path."""
    return RootTree(tmp_path, now)


@pytest.fixture
def accounts(tree: RootTree) -> AccountTable:
    """Account table holding the current user with the tree's home."""
    return AccountTable((UserAccount(uid=os.getuid(), name="tester", home=tree.home),))


@pytest.fixture
def context(now: datetime, accounts: AccountTable) -> RunContext:
    """Run context for the current user at ``now``."""
    return RunContext(uid=os.getuid(), now=now, accounts=accounts)
