"""Tests for the JSON/HTML export of a built tree."""

import json
from datetime import datetime, timezone

from stellaris_tech_tree.graph.tech_tree import TechTree
from stellaris_tech_tree.models.technology import TechLocalization, Technology
from stellaris_tech_tree.webui.export_tree import (
    build_export,
    format_tech_name,
    generate,
    technology_file_name,
    write_json_files,
)
from stellaris_tech_tree.webui.page import render_page


def _tree():
    localized = Technology(key="tech_lasers_1", area="physics", tier=1, category=["particles"])
    localized.name = "Red Lasers"
    localized.localizations["english"] = TechLocalization("Red Lasers", "Focused light.")
    return TechTree.build([
        Technology(key="tech_physics_lab", area="physics", is_start_tech=True),
        localized,
        Technology(key="tech_lasers_2", area="physics", tier=2,
                   prerequisites=["tech_lasers_1", "tech_ghost"]),
        Technology(key="tech_a_physics", area="physics"),
        Technology(key="tech_mystery", area=""),
        Technology(key="tech_hull_1", area="engineering", category=["voidcraft", "materials"]),
    ])


def test_format_tech_name():
    assert format_tech_name("tech_basic_science_lab_1") == "Basic Science Lab 1"
    assert format_tech_name("lasers") == "Lasers"
    assert format_tech_name("tech_") == ""


def test_technology_file_name():
    assert technology_file_name("Physics") == "technologies-physics.json"


# ---------------------------------------------------------------------------
# build_export
# ---------------------------------------------------------------------------


class TestBuildExport:
    def test_metadata(self):
        stamp = datetime(2024, 1, 2, tzinfo=timezone.utc)
        meta = build_export(_tree(), generated_at=stamp)["metadata"]
        assert meta["areas"] == ["engineering", "physics"]
        assert meta["tiers"] == [0, 1, 2]
        assert meta["categories"] == ["materials", "particles", "voidcraft"]
        assert meta["maxLevel"] == 1
        assert meta["technologyCount"] == 6
        assert meta["rootCount"] == 5
        assert meta["generatedAt"] == stamp.isoformat()
        assert meta["technologyFiles"] == [
            "technologies-engineering.json",
            "technologies-physics.json",
            "technologies-unknown.json",
        ]

    def test_areas_sorted_by_level_then_key(self):
        physics = build_export(_tree())["technologies"]["physics"]
        assert [row["key"] for row in physics] == [
            "tech_a_physics",
            "tech_lasers_1",
            "tech_physics_lab",
            "tech_lasers_2",
        ]

    def test_empty_area_goes_to_unknown(self):
        unknown = build_export(_tree())["technologies"]["unknown"]
        assert [row["key"] for row in unknown] == ["tech_mystery"]

    def test_row_contents(self):
        rows = {row["key"]: row for row in build_export(_tree())["technologies"]["physics"]}
        lasers_2 = rows["tech_lasers_2"]
        assert lasers_2["prerequisites"] == ["tech_lasers_1"]
        assert lasers_2["level"] == 1
        assert lasers_2["name"] == "Lasers 2"
        assert rows["tech_lasers_1"]["name"] == "Red Lasers"
        assert rows["tech_physics_lab"]["isStartTech"] is True
        assert rows["tech_physics_lab"]["icon"] == "tech_physics_lab"

    def test_category_joined(self):
        engineering = build_export(_tree())["technologies"]["engineering"]
        assert engineering[0]["category"] == "voidcraft, materials"

    def test_localizations(self):
        payload = build_export(_tree())["localizations"]
        assert payload["languages"] == ["english"]
        assert payload["localizations"] == {
            "tech_lasers_1": {
                "english": {"name": "Red Lasers", "description": "Focused light."},
            },
        }


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def test_write_json_files(tmp_path):
    written = write_json_files(_tree(), tmp_path / "out")
    names = {p.name for p in written}
    assert names == {
        "metadata.json",
        "localizations.json",
        "technologies-engineering.json",
        "technologies-physics.json",
        "technologies-unknown.json",
    }
    physics = json.loads((tmp_path / "out" / "technologies-physics.json").read_text(encoding="utf-8"))
    assert physics["area"] == "physics"
    assert len(physics["technologies"]) == 4


def test_generate_writes_page_last(tmp_path):
    output = tmp_path / "site" / "tree.html"
    written = generate(_tree(), output)
    assert written[-1] == output
    text = output.read_text(encoding="utf-8")
    assert "<title>Stellaris Technology Tree</title>" in text
    assert "metadata.json" in text
    assert (tmp_path / "site" / "metadata.json").exists()


def test_render_page_escapes_title():
    page = render_page("A & B")
    assert "<title>A &amp; B</title>" in page
    assert "{{title}}" not in page
