"""Unit tests for the run context."""

import os
from datetime import UTC
from pathlib import Path
from unittest.mock import patch

from gcrootctl.core.context import RunContext
from gcrootctl.core.users import AccountTable, UserAccount


class TestRunContextCapture:
    """Tests for RunContext.capture."""

    def test_captures_process_state(self, tmp_path: Path) -> None:
        """capture records uid, an aware timestamp and the accounts."""
        table = AccountTable((UserAccount(uid=os.getuid(), name="me", home=tmp_path),))
        with patch("gcrootctl.core.context.enumerate_accounts", return_value=table):
            context = RunContext.capture(tmp_path / "missing")

        assert context.uid == os.getuid()
        assert context.now.tzinfo is UTC
        assert context.accounts is table
        assert context.booted_system is None

    def test_resolves_booted_system(self, tmp_path: Path) -> None:
        """The booted-system link is fully resolved."""
        system = tmp_path / "store" / "abc-system"
        system.mkdir(parents=True)
        middle = tmp_path / "system-3-link"
        middle.symlink_to(system)
        booted = tmp_path / "booted-system"
        booted.symlink_to(middle)

        with patch("gcrootctl.core.context.enumerate_accounts", return_value=AccountTable()):
            context = RunContext.capture(booted)

        assert context.booted_system == system.resolve()
