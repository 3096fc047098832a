"""Map parsed technology blocks onto Technology objects.

Each top-level ``tech_key = { ... }`` block becomes one Technology.
Fields are read with exact type checks: a value of the wrong type is
ignored and the field keeps its default, so unknown or malformed data
never aborts a file.

Condition blocks (``potential``, weight modifier gates) are parsed
structurally and one level deep:

  potential = { AND = { has_technology = "tech_x" is_gestalt = yes } }
    → Condition(type="AND", children=[has_technology, is_gestalt])

Deeper AND/OR/NOT blocks inside a child stay as opaque map values.
"""

import re
from pathlib import Path

from stellaris_tech_tree.models.script import ScriptMap, ScriptValue, is_int, is_number
from stellaris_tech_tree.models.technology import Condition, Technology, WeightModifier
from stellaris_tech_tree.parser.script_reader import (
    find_blocks,
    is_array,
    parse_block,
    parse_value,
    preprocess_script,
    split_top_level_blocks,
)


# Holds tier metadata, not technologies.
TIER_FILE_NAME = "00_tier.txt"

# Checked in priority order; the first one holding a map wins.
COMBINATORS: tuple[str, ...] = ("AND", "OR", "NOT")

# Technology attribute → script key for the boolean flags.
_BOOL_FIELDS: tuple[tuple[str, str], ...] = (
    ("is_start_tech", "start_tech"),
    ("is_dangerous", "is_dangerous"),
    ("is_rare", "is_rare"),
    ("is_event", "is_event_tech"),
    ("is_reverse", "is_reverse_engineerable"),
    ("is_repeatable", "is_repeatable"),
    ("is_gestalt", "is_gestalt"),
    ("is_megacorp", "is_megacorp"),
    ("is_machine_empire", "is_machine_empire"),
    ("is_hive_empire", "is_hive_empire"),
    ("is_drive_assimilator", "is_drive_assimilator"),
    ("is_rogue_servitor", "is_rogue_servitor"),
)

_COMPARISON_VALUE_RE = re.compile(r"^(>=|<=|!=|==|>|<) (.*)$")


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def get_bool(data: ScriptMap, key: str) -> bool:
    """True for a boolean True or the strings "yes"/"true"; False otherwise."""
    value = data.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value in ("yes", "true")
    return False


def _string_list(value: ScriptValue | None) -> list[str]:
    """Keep the string elements of an array value, in order."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _as_float(value: ScriptValue | None) -> float | None:
    if is_number(value):
        return float(value)  # type: ignore[arg-type]
    return None


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------


def _leaf(key: str, value: ScriptValue) -> Condition:
    """Build a leaf condition, splitting out a stored comparison operator."""
    if isinstance(value, str):
        match = _COMPARISON_VALUE_RE.match(value)
        if match:
            return Condition(
                key=key,
                value=parse_value(match.group(2)),
                operator=match.group(1),
            )
    return Condition(key=key, value=value)


def parse_condition(data: ScriptMap) -> Condition:
    """Parse a condition mapping.

    If the mapping holds an AND, OR or NOT map (checked in that order),
    the node takes that type and every entry of the nested map becomes
    one leaf child. Otherwise the node is a single leaf built from the
    lexicographically smallest key; the remaining entries are only
    reachable through ``raw``.
    """
    condition = Condition(raw=data)

    for combinator in COMBINATORS:
        block = data.get(combinator)
        if isinstance(block, dict):
            condition.type = combinator
            condition.children = [_leaf(k, v) for k, v in block.items()]
            return condition

    if data:
        first = min(data)
        leaf = _leaf(first, data[first])
        condition.key = leaf.key
        condition.value = leaf.value
        condition.operator = leaf.operator

    return condition


def _gated_modifier(block: ScriptMap) -> WeightModifier:
    factor = _as_float(block.get("factor"))
    add = _as_float(block.get("add"))
    return WeightModifier(
        factor=factor if factor is not None else 0.0,
        add=add if add is not None else 0.0,
        conditions=[
            parse_condition({key: value})
            for key, value in block.items()
            if key not in ("factor", "add")
        ],
    )


def parse_weight_modifiers(
    data: ScriptMap, nested: list[ScriptMap] | None = None
) -> list[WeightModifier]:
    """Parse a weight modifier block.

    A top-level ``factor`` and a top-level ``add`` each give one
    modifier. Every nested ``modifier = { factor = ... <conditions> }``
    gives one more, gated by its remaining entries.

    *nested* holds the ``modifier`` maps in source order. A parsed map
    keeps only the last of repeated keys, so without *nested* only the
    ``modifier`` left in *data* is used.
    """
    modifiers: list[WeightModifier] = []

    if "factor" in data:
        factor = _as_float(data["factor"])
        modifiers.append(WeightModifier(factor=factor if factor is not None else 0.0))

    if "add" in data:
        add = _as_float(data["add"])
        modifiers.append(WeightModifier(add=add if add is not None else 0.0))

    if nested is None:
        single = data.get("modifier")
        nested = [single] if isinstance(single, dict) else []
    modifiers.extend(_gated_modifier(block) for block in nested)

    return modifiers


def _map_blocks(body: str, key: str) -> list[str]:
    return [b for b in find_blocks(body, key) if not is_array(b)]


def parse_weight_modifiers_body(body: str) -> list[WeightModifier]:
    """Parse the text of one weight modifier block, keeping every ``modifier``."""
    nested = [parse_block(b) for b in _map_blocks(body, "modifier")]
    return parse_weight_modifiers(parse_block(body), nested)


# ---------------------------------------------------------------------------
# Technology
# ---------------------------------------------------------------------------


def parse_technology(
    key: str, data: ScriptMap, source_file: str = "", body: str | None = None
) -> Technology:
    """Build a Technology from one parsed top-level block.

    When the block text is given as *body*, repeated weight modifier and
    ``modifier`` blocks are all kept; *data* alone holds only the last
    of each.
    """
    tech = Technology(key=key, source_file=source_file)

    cost = data.get("cost")
    if is_int(cost):
        tech.cost = cost  # type: ignore[assignment]
    area = data.get("area")
    if isinstance(area, str):
        tech.area = area
    tier = data.get("tier")
    if is_int(tier):
        tech.tier = tier  # type: ignore[assignment]
    weight = data.get("weight")
    if is_int(weight):
        tech.weight = weight  # type: ignore[assignment]
    base_weight = data.get("base_weight")
    if isinstance(base_weight, float):
        tech.base_weight = base_weight
    levels = data.get("levels")
    if is_int(levels):
        tech.levels = levels  # type: ignore[assignment]

    for attr, script_key in _BOOL_FIELDS:
        setattr(tech, attr, get_bool(data, script_key))

    ai_update_type = data.get("ai_update_type")
    if isinstance(ai_update_type, str):
        tech.ai_update_type = ai_update_type
    gateway = data.get("gateway")
    if isinstance(gateway, str):
        tech.gateway = gateway
    icon = data.get("icon")
    if isinstance(icon, str) and icon:
        tech.icon = icon

    tech.prerequisites = _string_list(data.get("prerequisites"))
    tech.category = _string_list(data.get("category"))
    tech.feature_unlocks = _string_list(data.get("feature_unlocks"))

    # The game writes weight_modifier; older dumps use the plural.
    for modifier_key in ("weight_modifier", "weight_modifiers"):
        if body is not None:
            for block_body in _map_blocks(body, modifier_key):
                tech.weight_modifiers.extend(parse_weight_modifiers_body(block_body))
            continue
        block = data.get(modifier_key)
        if isinstance(block, dict):
            tech.weight_modifiers.extend(parse_weight_modifiers(block))

    potential = data.get("potential")
    if isinstance(potential, dict):
        tech.potential = parse_condition(potential)

    return tech


def parse_tech_content(content: str, source_file: str = "") -> dict[str, Technology]:
    """Parse the text of one technology file into key → Technology."""
    blocks = split_top_level_blocks(preprocess_script(content))
    return {
        key: parse_technology(key, parse_block(body), source_file, body)
        for key, body in blocks.items()
    }


def parse_tech_file(path: Path) -> dict[str, Technology]:
    """Parse a single technology file. The tier file yields nothing.

    Raises OSError if the file cannot be read.
    """
    if path.name == TIER_FILE_NAME:
        return {}
    text = path.read_bytes().decode("utf-8-sig", errors="replace")
    return parse_tech_content(text, path.name)
