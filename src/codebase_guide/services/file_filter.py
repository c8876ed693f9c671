"""File filtering — decide which tree entries are worth sending for analysis."""

from __future__ import annotations

from codebase_guide.domain.entities import TreeEntry

NOISE_DIRS: tuple[str, ...] = (
    "node_modules",
    ".git",
    "dist",
    "build",
    "vendor",
    "assets",
    "images",
    "public",
)

SOURCE_EXTENSIONS: tuple[str, ...] = (
    ".ts", ".tsx", ".js", ".jsx",
    ".py", ".go", ".rs", ".java",
    ".c", ".cpp", ".h", ".cs",
    ".md", ".json", ".yml", ".yaml",
)


def is_noise_path(path: str) -> bool:
    """Return *True* if *path* contains a ``<noise-dir>/`` segment anywhere."""
    return any(f"{d}/" in path for d in NOISE_DIRS)


def has_source_extension(path: str) -> bool:
    return path.endswith(SOURCE_EXTENSIONS)


def is_candidate(entry: TreeEntry) -> bool:
    """Keep files outside noise directories with a recognised extension."""
    if entry.type != "blob":
        return False
    return not is_noise_path(entry.path) and has_source_extension(entry.path)


def path_depth(path: str) -> int:
    return len(path.split("/"))


def rank_key(entry: TreeEntry) -> tuple[int, int]:
    """Sort key: README files first, then shallower paths.

    README files share one bucket so they keep tree order among themselves.
    """
    if "readme" in entry.path.lower():
        return (0, 0)
    return (1, path_depth(entry.path))


def filter_and_rank(entries: list[TreeEntry], limit: int) -> list[TreeEntry]:
    """Filter the raw tree, rank the survivors and keep at most *limit*."""
    candidates = [e for e in entries if is_candidate(e)]
    # sorted() is stable, so equal keys keep their tree order.
    return sorted(candidates, key=rank_key)[:limit]
