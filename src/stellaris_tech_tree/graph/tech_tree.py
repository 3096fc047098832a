"""Technology dependency tree with longest-path leveling.

Encodes technology prerequisites as a DAG. Nodes live in a dense list
owned by the tree; edges are lists of node indexes:

  dependencies[i] = indexes of the prerequisites of node i
  dependents[i]   = indexes of the nodes that list node i as prerequisite

Each node's level is the length of its longest prerequisite chain from
any root (a technology with no prerequisites), computed breadth-first
with deferred requeue:

  queue = roots
  pop n:  skip if finalized
          if every dependency is finalized:
              level = max(dep levels) + 1 (0 without deps), finalize,
              enqueue dependents
          else: push n to the back and retry later

The prerequisite graph is assumed acyclic. A cycle keeps its members
in the queue forever; it is not detected.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from stellaris_tech_tree.models.technology import Technology


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TechNode:
    """A node in the tree: one technology plus graph-derived attributes."""

    index: int
    tech: Technology
    dependencies: list[int] = field(default_factory=list)
    dependents: list[int] = field(default_factory=list)
    level: int = 0
    finalized: bool = False

    @property
    def key(self) -> str:
        return self.tech.key


class TechTree:
    """DAG of technology nodes with area / tier / category indexes.

    Built once by TechTree.build(); read-only afterwards.
    """

    __slots__ = (
        "_nodes",
        "_index",
        "_roots",
        "_max_level",
        "_by_area",
        "_by_tier",
        "_by_category",
        "missing_prerequisites",
    )

    def __init__(self) -> None:
        self._nodes: list[TechNode] = []
        self._index: dict[str, int] = {}
        self._roots: list[int] = []
        self._max_level = 0
        self._by_area: dict[str, list[int]] = defaultdict(list)
        self._by_tier: dict[int, list[int]] = defaultdict(list)
        self._by_category: dict[str, list[int]] = defaultdict(list)
        # (technology key, unknown prerequisite key) pairs dropped while wiring.
        self.missing_prerequisites: list[tuple[str, str]] = []

    # --- Construction --------------------------------------------------------

    @classmethod
    def build(
        cls, technologies: Mapping[str, Technology] | Iterable[Technology]
    ) -> TechTree:
        """Build the tree from parsed technologies.

        Accepts a key → Technology mapping or an iterable of Technology
        (keyed by ``tech.key``, last one wins).
        """
        tree = cls()
        techs = technologies.values() if isinstance(technologies, Mapping) else technologies

        # Phase 1: nodes.
        for tech in techs:
            existing = tree._index.get(tech.key)
            if existing is not None:
                tree._nodes[existing].tech = tech
                continue
            tree._index[tech.key] = len(tree._nodes)
            tree._nodes.append(TechNode(index=len(tree._nodes), tech=tech))

        # Phase 2: edges.
        for node in tree._nodes:
            for prereq_key in node.tech.prerequisites:
                dep_idx = tree._index.get(prereq_key)
                if dep_idx is None:
                    logger.warning(
                        "technology '%s' has unknown prerequisite '%s'",
                        node.key,
                        prereq_key,
                    )
                    tree.missing_prerequisites.append((node.key, prereq_key))
                    continue
                node.dependencies.append(dep_idx)
                tree._nodes[dep_idx].dependents.append(node.index)

        tree._roots = [n.index for n in tree._nodes if not n.dependencies]

        # Phase 3: levels. Phase 4: indexes.
        tree._calculate_levels()
        tree._organize_by_attributes()
        return tree

    def _calculate_levels(self) -> None:
        for node in self._nodes:
            node.finalized = False
            node.level = 0
        self._max_level = 0

        queue: deque[int] = deque(self._roots)
        while queue:
            node = self._nodes[queue.popleft()]
            if node.finalized:
                continue

            deps = [self._nodes[i] for i in node.dependencies]
            if not all(dep.finalized for dep in deps):
                # A forward reference: wait for the other branches.
                queue.append(node.index)
                continue

            node.level = max((dep.level for dep in deps), default=-1) + 1
            node.finalized = True
            if node.level > self._max_level:
                self._max_level = node.level
            queue.extend(node.dependents)

    def _organize_by_attributes(self) -> None:
        for node in self._nodes:
            tech = node.tech
            if tech.area:
                self._by_area[tech.area].append(node.index)
            self._by_tier[tech.tier].append(node.index)
            for category in tech.category:
                self._by_category[category].append(node.index)

    # --- Queries -------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    @property
    def max_level(self) -> int:
        """Highest level of any node (0 for an empty tree)."""
        return self._max_level

    def get_node(self, key: str) -> TechNode | None:
        """Return the node for a technology key, or None."""
        idx = self._index.get(key)
        return self._nodes[idx] if idx is not None else None

    def all_nodes(self) -> list[TechNode]:
        """Return every node. The order is not part of the contract."""
        return list(self._nodes)

    def root_nodes(self) -> list[TechNode]:
        """Return nodes with no (resolved) prerequisites."""
        return [self._nodes[i] for i in self._roots]

    def nodes_by_area(self, area: str) -> list[TechNode]:
        return [self._nodes[i] for i in self._by_area.get(area, [])]

    def nodes_by_tier(self, tier: int) -> list[TechNode]:
        return [self._nodes[i] for i in self._by_tier.get(tier, [])]

    def nodes_by_category(self, category: str) -> list[TechNode]:
        return [self._nodes[i] for i in self._by_category.get(category, [])]

    def areas(self) -> list[str]:
        return sorted(self._by_area)

    def tiers(self) -> list[int]:
        return sorted(self._by_tier)

    def categories(self) -> list[str]:
        return sorted(self._by_category)

    def dependencies_of(self, key: str) -> list[TechNode]:
        """Return the direct prerequisites of a technology, in source order."""
        node = self.get_node(key)
        if node is None:
            return []
        return [self._nodes[i] for i in node.dependencies]

    def dependents_of(self, key: str) -> list[TechNode]:
        """Return the technologies that directly require this one."""
        node = self.get_node(key)
        if node is None:
            return []
        return [self._nodes[i] for i in node.dependents]

    def prerequisite_chain(self, key: str) -> list[str]:
        """Return transitive prerequisites (all ancestors), deepest first."""
        node = self.get_node(key)
        if node is None:
            return []
        visited: set[int] = set()
        order: list[str] = []

        def _dfs(idx: int) -> None:
            if idx in visited:
                return
            visited.add(idx)
            for dep_idx in self._nodes[idx].dependencies:
                _dfs(dep_idx)
            order.append(self._nodes[idx].key)

        for dep_idx in node.dependencies:
            _dfs(dep_idx)
        return order

    def topological_order(self) -> list[str]:
        """Return all keys with prerequisites before dependents.

        Uses Kahn's algorithm; among ready nodes, keys come out sorted.
        """
        in_degree = {n.index: len(n.dependencies) for n in self._nodes}
        queue: deque[int] = deque(
            sorted((i for i, deg in in_degree.items() if deg == 0),
                   key=lambda i: self._nodes[i].key)
        )
        result: list[str] = []

        while queue:
            idx = queue.popleft()
            result.append(self._nodes[idx].key)
            ready: list[int] = []
            for dependent in self._nodes[idx].dependents:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    ready.append(dependent)
            queue.extend(sorted(ready, key=lambda i: self._nodes[i].key))

        return result
