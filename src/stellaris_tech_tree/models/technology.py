"""Technology data model with parsed conditions and weight modifiers."""

from dataclasses import dataclass, field

from stellaris_tech_tree.models.script import ScriptMap, ScriptValue


@dataclass(slots=True)
class Condition:
    """A structurally parsed (never evaluated) condition node.

    Combinators have type "AND", "OR" or "NOT" and hold leaf children.
    Leaves have an empty type and a single key/value pair.
    """
    type: str = ""                  # AND, OR, NOT, or "" for a leaf
    key: str = ""                   # e.g. "has_technology"
    value: ScriptValue | None = None
    operator: str = ""              # comparison symbol, "" when not modelled
    children: list["Condition"] = field(default_factory=list)
    raw: ScriptMap = field(default_factory=dict)  # mapping this node came from

    @property
    def is_leaf(self) -> bool:
        return not self.type


@dataclass(slots=True)
class WeightModifier:
    """A conditional adjustment to a technology's research weight."""
    factor: float = 0.0     # multiplicative
    add: float = 0.0        # additive
    conditions: list[Condition] = field(default_factory=list)


@dataclass(slots=True)
class TechLocalization:
    """Localized strings for one language."""
    name: str = ""
    description: str = ""


@dataclass(slots=True)
class Technology:
    """A parsed top-level technology block."""
    key: str
    name: str = ""                 # from localization, "" until assigned
    description: str = ""
    cost: int = 0
    area: str = ""                 # physics / society / engineering
    tier: int = 0
    category: list[str] = field(default_factory=list)
    prerequisites: list[str] = field(default_factory=list)
    weight: int = 0
    base_weight: float = 0.0
    source_file: str = ""
    icon: str = ""                 # defaults to key when the block has no icon

    is_start_tech: bool = False
    is_dangerous: bool = False
    is_rare: bool = False
    is_event: bool = False
    is_reverse: bool = False
    is_repeatable: bool = False
    levels: int = 0                # repeatable technologies only

    # Empire type restrictions
    is_gestalt: bool = False
    is_megacorp: bool = False
    is_machine_empire: bool = False
    is_hive_empire: bool = False
    is_drive_assimilator: bool = False
    is_rogue_servitor: bool = False

    feature_unlocks: list[str] = field(default_factory=list)
    weight_modifiers: list[WeightModifier] = field(default_factory=list)
    potential: Condition | None = None
    ai_update_type: str = ""
    gateway: str = ""

    # language -> strings
    localizations: dict[str, TechLocalization] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.icon:
            self.icon = self.key
