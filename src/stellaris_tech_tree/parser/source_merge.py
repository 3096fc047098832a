"""Helpers for finding and merging technology files across a game directory.

Input order matters: files are merged in sorted path order and later
files override earlier ones ("last wins"), also when parsing runs on a
thread pool.
"""

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TypeVar

from stellaris_tech_tree.models.technology import Technology
from stellaris_tech_tree.parser.tech_parser import TIER_FILE_NAME, parse_tech_file


logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")

TECH_SUBDIR: tuple[str, ...] = ("common", "technology")
LOCALIZATION_SUBDIR: tuple[str, ...] = ("localisation",)


def resolve_game_dirs(
    game_dir: Path,
    tech_subdir: tuple[str, ...] = TECH_SUBDIR,
    localization_subdir: tuple[str, ...] = LOCALIZATION_SUBDIR,
) -> tuple[Path, Path]:
    """Return (technology_dir, localization_dir) for a game install.

    Raises FileNotFoundError if the game directory or its technology
    directory is missing. The localization directory may not exist.
    """
    if not game_dir.is_dir():
        raise FileNotFoundError(f"Game directory does not exist: {game_dir}")
    tech_dir = game_dir.joinpath(*tech_subdir)
    if not tech_dir.is_dir():
        raise FileNotFoundError(
            f"Technology directory not found: {tech_dir} "
            f"(expected <game_dir>/{'/'.join(tech_subdir)}/)"
        )
    return tech_dir, game_dir.joinpath(*localization_subdir)


def iter_tech_files(root: Path, tier_file_name: str = TIER_FILE_NAME) -> list[Path]:
    """Return every technology .txt file under root, in sorted path order."""
    if not root.is_dir():
        raise FileNotFoundError(f"Technology directory does not exist: {root}")
    return sorted(
        p for p in root.rglob("*.txt")
        if p.is_file() and p.name != tier_file_name
    )


def _parse_or_warn(
    parser_fn: Callable[[Path], dict[K, V]], path: Path
) -> dict[K, V] | None:
    try:
        return parser_fn(path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("failed to parse %s: %s", path, exc)
        return None


def parse_files_merged(
    paths: Iterable[Path],
    parser_fn: Callable[[Path], dict[K, V]],
    *,
    workers: int | None = None,
) -> dict[K, V]:
    """Parse each file and merge the results, later files winning.

    With workers > 1 files are parsed on a thread pool; results are still
    merged in the order of *paths*, not in completion order. A file that
    cannot be read is reported and skipped.
    """
    ordered = list(paths)
    if workers is not None and workers > 1 and len(ordered) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda p: _parse_or_warn(parser_fn, p), ordered))
    else:
        results = [_parse_or_warn(parser_fn, p) for p in ordered]

    merged: dict[K, V] = {}
    for values in results:
        if values is not None:
            merged.update(values)
    return merged


def parse_tech_directory(
    root: Path,
    *,
    workers: int | None = None,
    tier_file_name: str = TIER_FILE_NAME,
) -> dict[str, Technology]:
    """Parse every technology file under root into one key → Technology map."""
    return parse_files_merged(
        iter_tech_files(root, tier_file_name),
        parse_tech_file,
        workers=workers,
    )
