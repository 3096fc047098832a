"""Configuration knobs for a tree generation run.

Defaults match a vanilla Stellaris install. Mods may move the
technology or localisation folders or ship a differently named tier file.
"""

from dataclasses import dataclass, field
from pathlib import Path

from stellaris_tech_tree.parser.localization_parser import DEFAULT_LANGUAGE
from stellaris_tech_tree.parser.source_merge import LOCALIZATION_SUBDIR, TECH_SUBDIR
from stellaris_tech_tree.parser.tech_parser import TIER_FILE_NAME


@dataclass(slots=True)
class GeneratorConfig:
    """Tuneable parameters for one CLI run."""

    game_dir: Path
    output: Path = Path("tech-tree.html")
    language: str = DEFAULT_LANGUAGE   # language used for Technology.name
    workers: int | None = None         # >1 parses files on a thread pool
    serve: str | None = None           # "[host:]port" to serve the output
    tier_file_name: str = TIER_FILE_NAME
    tech_subdir: tuple[str, ...] = field(default=TECH_SUBDIR)
    localization_subdir: tuple[str, ...] = field(default=LOCALIZATION_SUBDIR)
