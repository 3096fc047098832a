"""CLI entry point: python -m stellaris_tech_tree --input GAME_DIR [--output PATH]"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from stellaris_tech_tree import __version__
from stellaris_tech_tree.config import GeneratorConfig
from stellaris_tech_tree.graph.tech_tree import TechTree
from stellaris_tech_tree.parser.localization_parser import Localization, apply_localizations
from stellaris_tech_tree.parser.source_merge import parse_tech_directory, resolve_game_dirs
from stellaris_tech_tree.webui.export_tree import generate
from stellaris_tech_tree.webui.server import parse_listen_address, serve


logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stellaris-tech-tree",
        description=(
            "Parse Stellaris technology and localisation files and generate "
            "an HTML tech tree with JSON data files."
        ),
    )
    parser.add_argument("--input", type=Path, default=None,
                        help="Stellaris game directory (contains common/technology/).")
    parser.add_argument("--output", type=Path, default=Path("tech-tree.html"),
                        help="Output HTML file; JSON files go next to it.")
    parser.add_argument("--serve", default=None, metavar="[HOST:]PORT",
                        help="Serve the output directory after generation (e.g. 8080).")
    parser.add_argument("--language", default="english",
                        help="Language used for technology names (default: english).")
    parser.add_argument("--workers", type=int, default=None,
                        help="Parse technology files on N threads.")
    parser.add_argument("--quiet", action="store_true",
                        help="Hide warnings about unknown prerequisites and bad files.")
    parser.add_argument("--version", action="store_true",
                        help="Show version information and exit.")
    return parser


def config_from_args(args: argparse.Namespace) -> GeneratorConfig:
    return GeneratorConfig(
        game_dir=args.input,
        output=args.output,
        language=args.language,
        workers=args.workers,
        serve=args.serve,
    )


def _load_localizations(config: GeneratorConfig, loc_dir: Path, technologies) -> None:
    try:
        localization = Localization.from_directory(loc_dir)
    except FileNotFoundError as exc:
        logger.warning("%s; continuing without localization data", exc)
        return
    languages = localization.languages()
    print(f"Loaded {len(languages)} languages: {', '.join(languages)}")
    apply_localizations(technologies, localization, config.language)


def run(config: GeneratorConfig) -> int:
    """Parse, build and export. Returns a process exit code."""
    listen: tuple[str, int] | None = None
    if config.serve:
        try:
            listen = parse_listen_address(config.serve)
        except ValueError as exc:
            print(f"Error: {exc}")
            return 1

    try:
        tech_dir, loc_dir = resolve_game_dirs(
            config.game_dir, config.tech_subdir, config.localization_subdir
        )
        print(f"Reading technology files from: {tech_dir}")
        technologies = parse_tech_directory(
            tech_dir, workers=config.workers, tier_file_name=config.tier_file_name
        )
    except FileNotFoundError as exc:
        print(f"Error: {exc}")
        return 1

    print(f"Parsed {len(technologies)} technologies")
    if not technologies:
        print("Error: no technologies found in the input directory")
        return 1

    _load_localizations(config, loc_dir, technologies.values())

    tree = TechTree.build(technologies)
    print(f"Built tree with {tree.max_level + 1} levels")
    print(f"Found {len(tree.root_nodes())} root technologies (no prerequisites)")
    if tree.areas():
        print(f"Research areas: {', '.join(tree.areas())}")
    if tree.tiers():
        print(f"Technology tiers: {', '.join(str(t) for t in tree.tiers())}")

    output = config.output.resolve()
    written = generate(tree, output)
    print(f"Wrote {len(written)} files to {output.parent}:")
    for path in written:
        print(f"  - {path.name}")

    if listen is not None:
        host, port = listen
        serve(output.parent, host=host, port=port, page=output.name)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"Stellaris Research Tree Generator v{__version__}")
        return 0

    if args.input is None:
        print("Error: game directory is required (--input)")
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.ERROR if args.quiet else logging.WARNING,
        format="Warning: %(message)s",
    )
    return run(config_from_args(args))


if __name__ == "__main__":
    sys.exit(main())
