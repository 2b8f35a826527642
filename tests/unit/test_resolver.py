"""
Unit tests for path resolution and root containment.
"""

import os
from pathlib import Path

import pytest

from fileserver.handlers.resolver import (
    PathResolver,
    PathRejected,
    PathTraversalError,
    ResourceKind,
    ResourceNotFound,
    canonicalize,
    is_within,
    resolve,
)


needs_symlinks = pytest.mark.skipif(
    not hasattr(os, "symlink") or os.name == "nt",
    reason="symlinks not available",
)


class TestIsWithin:
    """Tests for the component-prefix containment check."""

    def test_child(self):
        assert is_within(Path("/srv/www/img"), Path("/srv/www"))

    def test_root_itself(self):
        assert is_within(Path("/srv/www"), Path("/srv/www"))

    def test_parent(self):
        assert not is_within(Path("/srv"), Path("/srv/www"))

    def test_sibling_with_same_depth(self):
        """Test that a same-depth sibling is not treated as inside."""
        assert not is_within(Path("/srv/wwx"), Path("/srv/www"))

    def test_sibling_with_string_prefix(self):
        assert not is_within(Path("/srv/www-private"), Path("/srv/www"))

    def test_unrelated(self):
        assert not is_within(Path("/etc/passwd"), Path("/srv/www"))


class TestResolve:
    """Tests for resolve() against a real tree."""

    def test_root(self, served_tree: Path):
        resource = resolve("/", served_tree)

        assert resource.kind is ResourceKind.DIRECTORY
        assert resource.path == served_tree.resolve()
        assert resource.display_path == "/"

    def test_empty_path_is_root(self, served_tree: Path):
        assert resolve("", served_tree).is_dir

    def test_file(self, served_tree: Path):
        resource = resolve("/img/cat.png", served_tree)

        assert resource.is_file
        assert resource.display_path == "/img/cat.png"
        assert resource.relative_path == Path("img/cat.png")

    def test_subdirectory(self, served_tree: Path):
        resource = resolve("/img", served_tree)
        assert resource.kind is ResourceKind.DIRECTORY
        assert resource.display_path == "/img"

    def test_trailing_slash(self, served_tree: Path):
        assert resolve("/img/", served_tree).is_dir

    def test_name_with_space(self, served_tree: Path):
        assert resolve("/a b.txt", served_tree).is_file

    def test_dotdot_inside_root(self, served_tree: Path):
        """Test that .. which stays inside the root is allowed."""
        resource = resolve("/img/../img/cat.png", served_tree)
        assert resource.display_path == "/img/cat.png"

    def test_missing(self, served_tree: Path):
        with pytest.raises(ResourceNotFound) as exc_info:
            resolve("/nope.txt", served_tree)
        assert exc_info.value.status_code == 404

    def test_dotdot_escape(self, served_tree: Path):
        """Test that ../secret.txt (which exists) is rejected."""
        with pytest.raises(PathTraversalError) as exc_info:
            resolve("/../secret.txt", served_tree)
        assert exc_info.value.status_code == 403

    def test_dotdot_to_parent_directory(self, served_tree: Path):
        with pytest.raises(PathTraversalError):
            resolve("/..", served_tree)

    def test_deep_escape_to_system_root(self, served_tree: Path):
        with pytest.raises(PathTraversalError):
            resolve("/../../../../../../../../", served_tree)

    def test_absolute_remainder(self, served_tree: Path, tmp_path: Path):
        """Test that //abs/path replaces the root and is rejected."""
        with pytest.raises(PathTraversalError):
            resolve("/" + str(tmp_path / "secret.txt"), served_tree)

    def test_sibling_directory_prefix(self, tmp_path: Path):
        """Test root /x/www against sibling /x/wwx and /x/www-private."""
        root = tmp_path / "www"
        root.mkdir()
        for sibling in ("wwx", "www-private"):
            (tmp_path / sibling).mkdir()
            (tmp_path / sibling / "data.txt").write_text("x")

            with pytest.raises(PathTraversalError):
                resolve(f"/../{sibling}/data.txt", root)

    def test_embedded_nul(self, served_tree: Path):
        with pytest.raises(ResourceNotFound):
            resolve("/index.html\x00.png", served_tree)

    def test_missing_escape_is_not_found(self, served_tree: Path):
        """Test that an escape to a missing path reports not-found."""
        with pytest.raises(ResourceNotFound):
            resolve("/../does-not-exist", served_tree)

    @needs_symlinks
    def test_symlink_escape(self, served_tree: Path, tmp_path: Path):
        (served_tree / "leak").symlink_to(tmp_path / "secret.txt")

        with pytest.raises(PathTraversalError):
            resolve("/leak", served_tree)

    @needs_symlinks
    def test_symlink_inside_root(self, served_tree: Path):
        (served_tree / "alias.png").symlink_to(served_tree / "img" / "cat.png")

        resource = resolve("/alias.png", served_tree)
        assert resource.display_path == "/img/cat.png"

    @needs_symlinks
    def test_broken_symlink(self, served_tree: Path):
        (served_tree / "dangling").symlink_to(served_tree / "gone")

        with pytest.raises(ResourceNotFound):
            resolve("/dangling", served_tree)

    @needs_symlinks
    def test_symlinked_root(self, served_tree: Path, tmp_path: Path):
        """Test that a root given through a symlink still contains its files."""
        link = tmp_path / "link-to-www"
        link.symlink_to(served_tree)

        assert resolve("/index.html", link).is_file

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="mkfifo not available")
    def test_fifo_is_other(self, served_tree: Path):
        os.mkfifo(served_tree / "pipe")
        assert resolve("/pipe", served_tree).kind is ResourceKind.OTHER


class TestPathResolver:
    def test_bound_root(self, served_tree: Path):
        resolver = PathResolver(served_tree)
        assert resolver.resolve("/index.html").is_file

    def test_rejections_share_base_class(self, served_tree: Path):
        resolver = PathResolver(served_tree)
        for path in ("/missing", "/../secret.txt"):
            with pytest.raises(PathRejected):
                resolver.resolve(path)


def test_canonicalize_missing(tmp_path: Path):
    with pytest.raises(ResourceNotFound):
        canonicalize(tmp_path / "missing")
