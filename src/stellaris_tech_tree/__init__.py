"""Parse Stellaris technology files into a leveled dependency tree."""

from stellaris_tech_tree.graph.tech_tree import TechNode, TechTree
from stellaris_tech_tree.models.technology import (
    Condition,
    TechLocalization,
    Technology,
    WeightModifier,
)
from stellaris_tech_tree.parser.source_merge import parse_tech_directory
from stellaris_tech_tree.parser.tech_parser import parse_tech_content, parse_tech_file

__version__ = "1.0.0"

__all__ = [
    "Condition",
    "TechLocalization",
    "TechNode",
    "TechTree",
    "Technology",
    "WeightModifier",
    "parse_tech_content",
    "parse_tech_directory",
    "parse_tech_file",
]
