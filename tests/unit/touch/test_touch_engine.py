"""Unit tests for the touch engine."""

import os
from datetime import timedelta
from pathlib import Path

import pytest
from gcrootctl.touch.engine import TouchEngine, find_project_root
from gcrootctl.touch.overrides import OverrideSet
from support import RootTree, set_link_mtime

OLD = timedelta(days=30)


def _link_mtime(path: Path) -> float:
    return path.lstat().st_mtime


class TestTouchEngine:
    """Tests for TouchEngine.run."""

    def test_touches_store_links(self, tree: RootTree) -> None:
        """Links into the store get a fresh mtime; their targets do not change."""
        link = tree.home / "project" / "result"
        tree.root(link, age=OLD)
        target = Path(os.readlink(link))
        target_mtime = target.stat().st_mtime
        before = _link_mtime(link)

        report = TouchEngine(tree.store).run(tree.home / "project")

        assert [r.path for r in report.touched] == [link]
        assert report.touched[0].store_path == Path(os.path.realpath(target))
        assert _link_mtime(link) > before
        assert target.stat().st_mtime == target_mtime

    def test_ignores_links_outside_store(self, tree: RootTree) -> None:
        """Links that do not resolve into the store are left alone."""
        project = tree.home / "project"
        project.mkdir()
        outside = project / "elsewhere"
        outside.symlink_to(tree.home)

        report = TouchEngine(tree.store).run(project)

        assert report.results == []

    def test_regular_files_untouched(self, tree: RootTree) -> None:
        """Regular files are not reported or modified."""
        project = tree.home / "project"
        project.mkdir()
        regular = project / "flake.nix"
        regular.write_text("{}")
        set_link_mtime(regular, tree.now - OLD)
        before = _link_mtime(regular)

        report = TouchEngine(tree.store).run(project)

        assert report.results == []
        assert report.visited == 1
        assert _link_mtime(regular) == before

    def test_excluded_link_keeps_timestamp(self, tree: RootTree) -> None:
        """A link excluded by an override is not touched."""
        keep = tree.home / "project" / "result"
        skip = tree.home / "project" / "result-old"
        tree.root(keep, age=OLD)
        tree.root(skip, age=OLD)
        before = _link_mtime(skip)

        report = TouchEngine(tree.store, OverrideSet(["!result-old"])).run(tree.home / "project")

        assert [r.path for r in report.touched] == [keep]
        assert _link_mtime(skip) == before

    def test_excluded_directory_is_pruned(self, tree: RootTree) -> None:
        """Entries below an excluded directory are never visited."""
        project = tree.home / "project"
        tree.root(project / ".git" / "result", age=OLD)
        tree.root(project / "result", age=OLD)

        report = TouchEngine(tree.store, OverrideSet(["!.git"])).run(project)

        assert [r.path for r in report.touched] == [project / "result"]
        assert report.visited == 2

    def test_walk_order(self, tree: RootTree) -> None:
        """Entries of a directory come before its subdirectories, in name order."""
        project = tree.home / "project"
        tree.root(project / "b" / "result")
        tree.root(project / "a" / "deep" / "result")
        tree.root(project / "result")

        report = TouchEngine(tree.store).run(project)

        assert [r.path for r in report.results] == [
            project / "result",
            project / "a" / "deep" / "result",
            project / "b" / "result",
        ]

    def test_max_depth(self, tree: RootTree) -> None:
        """max_depth=1 visits direct children only."""
        project = tree.home / "project"
        tree.root(project / "result")
        tree.root(project / "sub" / "result")

        shallow = TouchEngine(tree.store, max_depth=1).run(project)
        deep = TouchEngine(tree.store, max_depth=2).run(project)

        assert [r.path for r in shallow.results] == [project / "result"]
        assert len(deep.results) == 2

    def test_dry_run_changes_nothing(self, tree: RootTree) -> None:
        """Dry-run reports roots without updating timestamps."""
        link = tree.home / "project" / "result"
        tree.root(link, age=OLD)
        before = _link_mtime(link)

        report = TouchEngine(tree.store, dry_run=True).run(tree.home / "project")

        assert report.touched[0].dry_run is True
        assert _link_mtime(link) == before

    def test_single_link_argument(self, tree: RootTree) -> None:
        """A symlink passed as the walk root is touched itself."""
        link = tree.home / "result"
        tree.root(link, age=OLD)

        report = TouchEngine(tree.store).run(link)

        assert [r.path for r in report.touched] == [link]

    def test_utime_failure_is_reported(
        self, tree: RootTree, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A failed timestamp update is reported, not raised."""
        link = tree.home / "project" / "result"
        tree.root(link, age=OLD)

        def deny(*args: object, **kwargs: object) -> None:
            raise PermissionError("Operation not permitted")

        monkeypatch.setattr(os, "utime", deny)
        report = TouchEngine(tree.store).run(tree.home / "project")

        assert len(report.failed) == 1
        assert "not permitted" in (report.failed[0].error or "")


class TestFindProjectRoot:
    """Tests for find_project_root."""

    def test_finds_git_marker(self, tmp_path: Path) -> None:
        """The nearest ancestor with a .git entry is the project root."""
        (tmp_path / "repo" / ".git").mkdir(parents=True)
        nested = tmp_path / "repo" / "src" / "pkg"
        nested.mkdir(parents=True)

        assert find_project_root(nested) == tmp_path / "repo"

    def test_finds_envrc_marker(self, tmp_path: Path) -> None:
        """A .envrc file marks a project root."""
        (tmp_path / "repo").mkdir()
        (tmp_path / "repo" / ".envrc").write_text("use flake\n")

        assert find_project_root(tmp_path / "repo") == tmp_path / "repo"

    def test_nearest_marker_wins(self, tmp_path: Path) -> None:
        """Inner projects take precedence over outer ones."""
        (tmp_path / ".git").mkdir()
        inner = tmp_path / "inner"
        inner.mkdir()
        (inner / ".envrc").write_text("")

        assert find_project_root(inner) == inner
