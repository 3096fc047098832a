"""Export a built TechTree as JSON data files plus a static viewer page.

Output layout (all files in one directory):

  metadata.json               areas, tiers, categories, maxLevel
  localizations.json          languages + key → language → name/description
  technologies-<area>.json    one file per area, sorted by level then key
  <name>.html                 viewer page that fetches the files above
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from stellaris_tech_tree.graph.tech_tree import TechNode, TechTree
from stellaris_tech_tree.webui.page import render_page


UNKNOWN_AREA = "unknown"


def technology_file_name(area: str) -> str:
    return f"technologies-{area.lower()}.json"


def format_tech_name(key: str) -> str:
    """Turn a technology key into a readable fallback name.

    "tech_basic_science_lab_1" → "Basic Science Lab 1"
    """
    name = key.removeprefix("tech_").replace("_", " ")
    return " ".join(word[:1].upper() + word[1:] for word in name.split())


def tech_payload(tree: TechTree, node: TechNode) -> dict[str, Any]:
    tech = node.tech
    return {
        "key": tech.key,
        "name": tech.name or format_tech_name(tech.key),
        "cost": tech.cost,
        "area": tech.area,
        "tier": tech.tier,
        "level": node.level,
        "category": ", ".join(tech.category),
        "prerequisites": [dep.key for dep in tree.dependencies_of(tech.key)],
        "weight": tech.weight,
        "sourceFile": tech.source_file,
        "icon": tech.icon,
        "isStartTech": tech.is_start_tech,
        "isDangerous": tech.is_dangerous,
        "isRare": tech.is_rare,
        "isEvent": tech.is_event,
        "isReverse": tech.is_reverse,
        "isRepeatable": tech.is_repeatable,
        "levels": tech.levels,
        "isGestalt": tech.is_gestalt,
        "isMegacorp": tech.is_megacorp,
    }


def _localizations_payload(tree: TechTree) -> dict[str, Any]:
    languages: set[str] = set()
    rows: dict[str, dict[str, dict[str, str]]] = {}
    for node in tree.all_nodes():
        for lang, loc in node.tech.localizations.items():
            languages.add(lang)
            rows.setdefault(node.key, {})[lang] = {
                "name": loc.name,
                "description": loc.description,
            }
    return {
        "languages": sorted(languages),
        "localizations": {key: rows[key] for key in sorted(rows)},
    }


def build_export(
    tree: TechTree,
    *,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    """Build the full export as one dict (metadata, localizations, technologies)."""
    by_area: dict[str, list[dict[str, Any]]] = {}
    for node in tree.all_nodes():
        area = node.tech.area or UNKNOWN_AREA
        by_area.setdefault(area, []).append(tech_payload(tree, node))
    for rows in by_area.values():
        rows.sort(key=lambda row: (row["level"], row["key"]))

    stamp = generated_at or datetime.now(timezone.utc)
    return {
        "metadata": {
            "areas": tree.areas(),
            "tiers": tree.tiers(),
            "categories": tree.categories(),
            "maxLevel": tree.max_level,
            "rootCount": len(tree.root_nodes()),
            "technologyCount": len(tree),
            "generatedAt": stamp.isoformat(),
            "technologyFiles": [technology_file_name(area) for area in sorted(by_area)],
        },
        "localizations": _localizations_payload(tree),
        "technologies": {area: by_area[area] for area in sorted(by_area)},
    }


def _write_json(path: Path, payload: Any) -> Path:
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return path


def write_json_files(tree: TechTree, output_dir: Path) -> list[Path]:
    """Write metadata, localizations and per-area technology files.

    Returns the written paths.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    export = build_export(tree)
    written = [
        _write_json(output_dir / "metadata.json", export["metadata"]),
        _write_json(output_dir / "localizations.json", export["localizations"]),
    ]
    for area, techs in export["technologies"].items():
        written.append(_write_json(
            output_dir / technology_file_name(area),
            {"area": area, "technologies": techs},
        ))
    return written


def generate(tree: TechTree, output_path: Path) -> list[Path]:
    """Write the JSON data files next to output_path, then the HTML page."""
    written = write_json_files(tree, output_path.parent)
    output_path.write_text(render_page(), encoding="utf-8")
    written.append(output_path)
    return written
