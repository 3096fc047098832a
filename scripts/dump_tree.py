"""Dump the technology tree for a Stellaris install or a technology folder.

Builds the tree, prints an overview per area and tier, and prints the
prerequisite chains of a few technologies.

Usage:
    python -m scripts.dump_tree --input PATH [--tech KEY ...]
"""

import argparse
import logging
from pathlib import Path

from stellaris_tech_tree.graph.tech_tree import TechTree
from stellaris_tech_tree.parser.source_merge import parse_tech_directory, resolve_game_dirs


# Technologies with interesting prerequisite chains to display.
INTERESTING_TECHS = [
    "tech_lasers_5",              # long weapon chain
    "tech_mega_engineering",      # dangerous, deep chain
    "tech_synthetic_workers",     # OR-gated potential
    "tech_gateway_construction",  # gateway tech
]


def _tech_dir(path: Path) -> Path:
    """Accept either a game directory or a technology directory."""
    try:
        tech_dir, _loc_dir = resolve_game_dirs(path)
    except FileNotFoundError:
        return path
    return tech_dir


def main():
    parser = argparse.ArgumentParser(description="Dump the technology tree")
    parser.add_argument("--input", type=Path, required=True,
                        help="Game directory or common/technology directory.")
    parser.add_argument("--tech", action="append",
                        help="Technology key to show a chain for; repeatable.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="Warning: %(message)s")

    tech_dir = _tech_dir(args.input)
    try:
        technologies = parse_tech_directory(tech_dir)
    except FileNotFoundError as exc:
        print(f"Error: {exc}")
        return

    tree = TechTree.build(technologies)

    # --- Tree overview ---
    print(f"\n{'='*60}")
    print("  Technology Tree Overview")
    print(f"{'='*60}")
    print(f"  Technologies:    {len(tree)}")
    print(f"  Root techs:      {len(tree.root_nodes())}")
    print(f"  Levels:          {tree.max_level + 1}")
    print(f"  Missing prereqs: {len(tree.missing_prerequisites)}")

    for area in tree.areas():
        print(f"\n  {area}")
        for tier in tree.tiers():
            count = sum(1 for n in tree.nodes_by_area(area) if n.tech.tier == tier)
            if count:
                print(f"    tier {tier:<3} {count:>4} technologies")

    # --- Chains ---
    print(f"\n{'='*60}")
    print("  Prerequisite Chains")
    print(f"{'='*60}")

    for key in args.tech or INTERESTING_TECHS:
        node = tree.get_node(key)
        if node is None:
            continue
        tech = node.tech
        print(f"\n  {key} (level {node.level}, tier {tech.tier}, {tech.area or 'no area'})")
        print(f"    Source: {tech.source_file}, cost {tech.cost}")
        if tech.potential is not None:
            kind = tech.potential.type or f"leaf {tech.potential.key}"
            print(f"    Potential: {kind} ({len(tech.potential.children)} children)")
        chain = tree.prerequisite_chain(key)
        if chain:
            print(f"    Chain: {' → '.join(chain)} → {key}")
        else:
            print("    Chain: (root)")
        dependents = [n.key for n in tree.dependents_of(key)]
        if dependents:
            print(f"    Unlocks: {', '.join(dependents)}")

    print()


if __name__ == "__main__":
    main()
