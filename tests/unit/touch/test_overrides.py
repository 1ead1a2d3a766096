"""Unit tests for override globs."""

from pathlib import PurePosixPath

import pytest
from gcrootctl.touch.overrides import Decision, OverrideGlob, OverrideSet


class TestOverrideGlob:
    """Tests for OverrideGlob.parse and matching."""

    def test_parse_exclude(self) -> None:
        """A leading ! marks an exclude glob."""
        glob = OverrideGlob.parse("!.git")

        assert glob.exclude is True
        assert glob.pattern == ".git"
        assert glob.anchored is False

    def test_parse_directory_only(self) -> None:
        """A trailing slash restricts the glob to directories."""
        glob = OverrideGlob.parse("build/")

        assert glob.directory_only is True
        assert glob.anchored is False
        assert glob.pattern == "build"

    def test_parse_anchored(self) -> None:
        """A slash inside or at the start anchors the glob."""
        assert OverrideGlob.parse("sub/result").anchored is True
        assert OverrideGlob.parse("/result").anchored is True
        assert OverrideGlob.parse("/result").pattern == "result"

    @pytest.mark.parametrize("raw", ["", "!", "/", "!/"])
    def test_parse_empty_rejected(self, raw: str) -> None:
        """Globs without a body are rejected."""
        with pytest.raises(ValueError, match="Invalid override glob"):
            OverrideGlob.parse(raw)

    def test_basename_matches_any_depth(self) -> None:
        """Unanchored globs match the entry name at any depth."""
        glob = OverrideGlob.parse("result*")

        assert glob.matches(PurePosixPath("result"), is_dir=False)
        assert glob.matches(PurePosixPath("a/b/result-dev"), is_dir=False)
        assert not glob.matches(PurePosixPath("a/myresult"), is_dir=False)

    def test_anchored_matches_full_path(self) -> None:
        """Anchored globs match only relative to the walk root."""
        glob = OverrideGlob.parse("sub/result")

        assert glob.matches(PurePosixPath("sub/result"), is_dir=False)
        assert not glob.matches(PurePosixPath("x/sub/result"), is_dir=False)

    def test_double_star(self) -> None:
        """** matches zero or more directories."""
        glob = OverrideGlob.parse("**/out/result")

        assert glob.matches(PurePosixPath("out/result"), is_dir=False)
        assert glob.matches(PurePosixPath("a/b/out/result"), is_dir=False)
        assert not glob.matches(PurePosixPath("a/out/other"), is_dir=False)

    def test_directory_only_ignores_files(self) -> None:
        """Directory-only globs never match files."""
        glob = OverrideGlob.parse("build/")

        assert glob.matches(PurePosixPath("build"), is_dir=True)
        assert not glob.matches(PurePosixPath("build"), is_dir=False)


class TestOverrideSet:
    """Tests for OverrideSet decisions."""

    def test_empty_set_excludes_nothing(self) -> None:
        """Without globs nothing is excluded."""
        overrides = OverrideSet()

        assert not overrides
        assert len(overrides) == 0
        assert overrides.decide(PurePosixPath("result"), is_dir=False) == Decision.NONE
        assert not overrides.excluded(PurePosixPath("result"), is_dir=False)

    def test_last_match_wins(self) -> None:
        """A later glob overrides an earlier one."""
        overrides = OverrideSet(["!result*", "result-keep"])

        assert overrides.decide(PurePosixPath("result-keep"), False) == Decision.INCLUDE
        assert overrides.decide(PurePosixPath("result-dev"), False) == Decision.EXCLUDE

        reversed_order = OverrideSet(["result-keep", "!result*"])
        assert reversed_order.decide(PurePosixPath("result-keep"), False) == Decision.EXCLUDE

    def test_includes_skip_unmatched_files(self) -> None:
        """With include globs, files that match nothing are skipped."""
        overrides = OverrideSet(["result"])

        assert overrides.has_includes is True
        assert not overrides.excluded(PurePosixPath("result"), is_dir=False)
        assert overrides.excluded(PurePosixPath("other"), is_dir=False)

    def test_includes_do_not_prune_directories(self) -> None:
        """Unmatched directories are still descended."""
        overrides = OverrideSet(["result"])

        assert not overrides.excluded(PurePosixPath("sub"), is_dir=True)

    def test_exclude_only_keeps_unmatched(self) -> None:
        """With only exclude globs, unmatched entries are kept."""
        overrides = OverrideSet(["!.git"])

        assert overrides.has_includes is False
        assert overrides.excluded(PurePosixPath(".git"), is_dir=True)
        assert not overrides.excluded(PurePosixPath("result"), is_dir=False)

    def test_invalid_glob_raises(self) -> None:
        """An empty glob in the set raises ValueError."""
        with pytest.raises(ValueError):
            OverrideSet(["result", "!"])
