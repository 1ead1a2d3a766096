"""Unit tests for RootOperator."""

from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

from gcrootctl.retention.engine import PlanEntry, PlanKind
from gcrootctl.retention.operator import RemovalResult, RemovalStatus, RootOperator, tally


def _entry(path: Path) -> PlanEntry:
    return PlanEntry(
        path=path,
        kind=PlanKind.TEMPORARY_ROOT,
        policy="result",
        store_path=Path("/nix/store/abc-pkg"),
        age=timedelta(days=4),
        reason="older than 3d",
    )


def _link(tmp_path: Path, name: str) -> Path:
    link = tmp_path / name
    link.symlink_to(tmp_path / "target")
    return link


class TestRootOperator:
    """Tests for RootOperator.remove."""

    def test_removes_link(self, tmp_path: Path) -> None:
        """Removing unlinks the path but not its target."""
        target = tmp_path / "target"
        target.mkdir()
        link = _link(tmp_path, "result")

        results = RootOperator().remove([_entry(link)])

        assert results[0].status == RemovalStatus.REMOVED
        assert results[0].success is True
        assert not link.is_symlink()
        assert target.is_dir()

    def test_dry_run_keeps_link(self, tmp_path: Path) -> None:
        """Dry-run reports the removal without touching the link."""
        link = _link(tmp_path, "result")
        operator = RootOperator(dry_run=True)

        results = operator.remove([_entry(link)])

        assert operator.dry_run is True
        assert results[0].status == RemovalStatus.DRY_RUN
        assert results[0].dry_run is True
        assert link.is_symlink()

    def test_vanished_path_is_skipped(self, tmp_path: Path) -> None:
        """A path removed concurrently is skipped, not failed."""
        results = RootOperator().remove([_entry(tmp_path / "gone")])

        assert results[0].status == RemovalStatus.SKIPPED
        assert results[0].success is True
        assert "does not exist" in (results[0].error or "")

    def test_permission_error_is_failed(self, tmp_path: Path) -> None:
        """An unlink error is recorded as a failure."""
        link = _link(tmp_path, "result")

        with patch.object(Path, "unlink", side_effect=PermissionError("Permission denied")):
            results = RootOperator().remove([_entry(link)])

        assert results[0].status == RemovalStatus.FAILED
        assert results[0].success is False
        assert "Permission denied" in (results[0].error or "")

    def test_failure_does_not_stop_batch(self, tmp_path: Path) -> None:
        """Later entries are processed after a failure."""
        first = _link(tmp_path, "first")
        second = _link(tmp_path, "second")
        real_unlink = Path.unlink

        def flaky_unlink(self: Path, missing_ok: bool = False) -> None:
            if self == first:
                raise OSError("Read-only file system")
            real_unlink(self, missing_ok=missing_ok)

        with patch.object(Path, "unlink", flaky_unlink):
            results = RootOperator().remove([_entry(first), _entry(second)])

        assert [r.status for r in results] == [RemovalStatus.FAILED, RemovalStatus.REMOVED]
        assert first.is_symlink()
        assert not second.is_symlink()


def test_tally_counts_every_status() -> None:
    """tally returns a count for every status, including zero."""
    entry = _entry(Path("/tmp/x"))
    results = [
        RemovalResult(entry=entry, status=RemovalStatus.REMOVED),
        RemovalResult(entry=entry, status=RemovalStatus.REMOVED),
        RemovalResult(entry=entry, status=RemovalStatus.FAILED, error="boom"),
    ]

    counts = tally(results)

    assert counts[RemovalStatus.REMOVED] == 2
    assert counts[RemovalStatus.FAILED] == 1
    assert counts[RemovalStatus.SKIPPED] == 0
    assert counts[RemovalStatus.DRY_RUN] == 0
