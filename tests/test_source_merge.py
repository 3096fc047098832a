"""Tests for locating and merging technology files."""

import logging

import pytest

from stellaris_tech_tree.parser.source_merge import (
    iter_tech_files,
    parse_files_merged,
    parse_tech_directory,
    resolve_game_dirs,
)


def _write_tech(path, key, cost):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"{key} = {{\n\tcost = {cost}\n}}\n", encoding="utf-8")


# ---------------------------------------------------------------------------
# Directory layout
# ---------------------------------------------------------------------------


def test_iter_tech_files_sorted_recursive_without_tier_file(tmp_path):
    _write_tech(tmp_path / "b.txt", "tech_b", 1)
    _write_tech(tmp_path / "sub" / "a.txt", "tech_a", 1)
    _write_tech(tmp_path / "00_tier.txt", "tier_1", 1)
    (tmp_path / "notes.md").write_text("not a tech file")

    files = iter_tech_files(tmp_path)
    assert [p.relative_to(tmp_path).as_posix() for p in files] == ["b.txt", "sub/a.txt"]


def test_iter_tech_files_missing_dir_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        iter_tech_files(tmp_path / "missing")


def test_resolve_game_dirs(tmp_path):
    (tmp_path / "common" / "technology").mkdir(parents=True)
    tech_dir, loc_dir = resolve_game_dirs(tmp_path)
    assert tech_dir == tmp_path / "common" / "technology"
    assert loc_dir == tmp_path / "localisation"


def test_resolve_game_dirs_custom_subdirs(tmp_path):
    (tmp_path / "mod" / "tech").mkdir(parents=True)
    tech_dir, loc_dir = resolve_game_dirs(tmp_path, ("mod", "tech"), ("loc",))
    assert tech_dir == tmp_path / "mod" / "tech"
    assert loc_dir == tmp_path / "loc"


def test_resolve_game_dirs_missing_game_dir(tmp_path):
    with pytest.raises(FileNotFoundError, match="Game directory"):
        resolve_game_dirs(tmp_path / "missing")


def test_resolve_game_dirs_missing_tech_dir(tmp_path):
    with pytest.raises(FileNotFoundError, match="Technology directory"):
        resolve_game_dirs(tmp_path)


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


def test_later_file_wins(tmp_path):
    _write_tech(tmp_path / "00_first.txt", "tech_a", 1)
    _write_tech(tmp_path / "01_second.txt", "tech_a", 2)

    techs = parse_tech_directory(tmp_path)
    assert techs["tech_a"].cost == 2
    assert techs["tech_a"].source_file == "01_second.txt"


def test_threaded_merge_matches_sequential_order(tmp_path):
    for i in range(12):
        _write_tech(tmp_path / f"{i:02d}_techs.txt", "tech_shared", i)
        _write_tech(tmp_path / f"{i:02d}_own.txt", f"tech_{i}", i)

    sequential = parse_tech_directory(tmp_path)
    threaded = parse_tech_directory(tmp_path, workers=4)

    assert threaded["tech_shared"].cost == 11
    assert threaded["tech_shared"].source_file == "11_techs.txt"
    assert set(threaded) == set(sequential)
    assert len(threaded) == 13


def test_tier_file_never_contributes(tmp_path):
    _write_tech(tmp_path / "00_tier.txt", "tier_1", 1)
    _write_tech(tmp_path / "01_techs.txt", "tech_a", 1)
    assert list(parse_tech_directory(tmp_path)) == ["tech_a"]


def test_unreadable_file_is_reported_and_skipped(tmp_path, caplog):
    def parser(path):
        if path.name == "bad.txt":
            raise OSError("permission denied")
        return {path.name: 1}

    paths = [tmp_path / "a.txt", tmp_path / "bad.txt", tmp_path / "c.txt"]
    with caplog.at_level(logging.WARNING):
        merged = parse_files_merged(paths, parser)

    assert merged == {"a.txt": 1, "c.txt": 1}
    assert "bad.txt" in caplog.text
    assert "permission denied" in caplog.text


def test_unexpected_error_propagates(tmp_path):
    def parser(path):
        raise ValueError("bug")

    with pytest.raises(ValueError):
        parse_files_merged([tmp_path / "a.txt"], parser)


def test_empty_directory(tmp_path):
    assert parse_tech_directory(tmp_path) == {}


def test_deeply_nested_file_does_not_abort_directory(tmp_path):
    depth = 1200
    (tmp_path / "00_deep.txt").write_text(
        "tech_deep = {\n" + "a = {\n" * depth + "x = 1\n" + "}\n" * depth + "}\n",
        encoding="utf-8",
    )
    _write_tech(tmp_path / "01_plain.txt", "tech_plain", 3)

    techs = parse_tech_directory(tmp_path)
    assert set(techs) == {"tech_deep", "tech_plain"}
