from __future__ import annotations

from pathlib import Path

from crate_mirror.platform.files import (
    clear_directory,
    copy_tree_into,
    list_files,
    reset_directory,
)


def _write(root: Path, rel: str, content: str) -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_reset_directory_empties_existing(tmp_path: Path) -> None:
    target = tmp_path / "work"
    _write(target, "old/file.txt", "x")

    reset_directory(target)

    assert target.is_dir()
    assert list(target.iterdir()) == []


def test_reset_directory_creates_missing(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b"
    reset_directory(target)
    assert target.is_dir()


def test_clear_directory_keeps_named_entries(tmp_path: Path) -> None:
    _write(tmp_path, ".git/HEAD", "ref: refs/heads/main\n")
    _write(tmp_path, "src/lib.rs", "fn main() {}")
    _write(tmp_path, "Cargo.toml", "[package]")

    removed = clear_directory(tmp_path, keep=(".git",))

    assert removed == 2
    assert sorted(p.name for p in tmp_path.iterdir()) == [".git"]
    assert (tmp_path / ".git" / "HEAD").read_text(encoding="utf-8") == "ref: refs/heads/main\n"


def test_clear_directory_removes_symlink_without_following(tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    _write(outside, "keep.txt", "safe")
    tree = tmp_path / "tree"
    tree.mkdir()
    (tree / "link").symlink_to(outside, target_is_directory=True)

    clear_directory(tree)

    assert not (tree / "link").exists()
    assert (outside / "keep.txt").read_text(encoding="utf-8") == "safe"


def test_copy_tree_into_copies_nested_files(tmp_path: Path) -> None:
    src = tmp_path / "src"
    _write(src, "a.txt", "A")
    _write(src, "sub/b.txt", "B")
    dest = tmp_path / "dest"
    dest.mkdir()

    count = copy_tree_into(src, dest)

    assert count == 2
    assert (dest / "a.txt").read_text(encoding="utf-8") == "A"
    assert (dest / "sub" / "b.txt").read_text(encoding="utf-8") == "B"


def test_copy_tree_into_honours_exclude(tmp_path: Path) -> None:
    src = tmp_path / "src"
    _write(src, ".git/config", "[core]")
    _write(src, "a.txt", "A")
    dest = tmp_path / "dest"
    dest.mkdir()

    count = copy_tree_into(src, dest, exclude=(".git",))

    assert count == 1
    assert not (dest / ".git").exists()


def test_exclude_applies_at_any_depth(tmp_path: Path) -> None:
    src = tmp_path / "src"
    _write(src, "a.txt", "A")
    _write(src, "vendor/dep/.git/HEAD", "ref: refs/heads/main")
    _write(src, "vendor/dep/lib.rs", "//")
    dest = tmp_path / "dest"
    dest.mkdir()

    count = copy_tree_into(src, dest, exclude=(".git",))

    assert count == 2
    assert (dest / "vendor" / "dep" / "lib.rs").is_file()
    assert not (dest / "vendor" / "dep" / ".git").exists()


def test_list_files_sorted_and_filtered(tmp_path: Path) -> None:
    _write(tmp_path, "b.txt", "")
    _write(tmp_path, "a/z.txt", "")
    _write(tmp_path, ".git/HEAD", "")

    files = [p.relative_to(tmp_path).as_posix() for p in list_files(tmp_path, exclude=(".git",))]

    assert files == ["a/z.txt", "b.txt"]
