"""Unit tests for the store membership test."""

from pathlib import Path

from gcrootctl.roots.store import resolve_store_path
from support import RootTree


class TestResolveStorePath:
    """Tests for resolve_store_path function."""

    def test_link_into_store(self, tree: RootTree) -> None:
        """A link chain ending in the store resolves to the store path."""
        target = tree.store_path("abc-hello")
        link = tree.home / "result"
        link.symlink_to(target)

        assert resolve_store_path(tree.store, link) == target.resolve()

    def test_nested_path_in_store(self, tree: RootTree) -> None:
        """Paths below a store entry are inside the store."""
        target = tree.store_path("abc-hello") / "bin"
        target.mkdir()

        assert resolve_store_path(tree.store, target) == target.resolve()

    def test_link_outside_store(self, tree: RootTree, tmp_path: Path) -> None:
        """A link resolving outside the store is rejected."""
        outside = tmp_path / "elsewhere"
        outside.mkdir()
        link = tree.home / "result"
        link.symlink_to(outside)

        assert resolve_store_path(tree.store, link) is None

    def test_store_root_itself(self, tree: RootTree) -> None:
        """The store directory itself is not a store path."""
        link = tree.home / "store"
        link.symlink_to(tree.store)

        assert resolve_store_path(tree.store, link) is None

    def test_dangling_link(self, tree: RootTree) -> None:
        """A dangling link cannot be resolved."""
        link = tree.home / "result"
        link.symlink_to(tree.store / "gone")

        assert resolve_store_path(tree.store, link) is None

    def test_sibling_with_common_prefix(self, tree: RootTree) -> None:
        """Membership is component-wise, not a string prefix test."""
        sibling = tree.store.parent / "store-other"
        sibling.mkdir()
        link = tree.home / "result"
        link.symlink_to(sibling)

        assert resolve_store_path(tree.store, link) is None

    def test_store_reached_through_symlink(self, tree: RootTree, tmp_path: Path) -> None:
        """A store configured through a symlink still matches."""
        alias = tmp_path / "store-alias"
        alias.symlink_to(tree.store)
        target = tree.store_path("abc-hello")

        assert resolve_store_path(alias, target) == target.resolve()
