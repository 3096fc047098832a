"""Tests for the technology dependency tree.

Unit tests use synthetic Technology objects; no game files required.
"""

import logging

from stellaris_tech_tree.graph.tech_tree import TechTree
from stellaris_tech_tree.models.technology import Technology
from stellaris_tech_tree.parser.tech_parser import parse_tech_content


def _tech(key, *prereqs, area="physics", tier=0, category=()):
    return Technology(
        key=key,
        area=area,
        tier=tier,
        category=list(category),
        prerequisites=list(prereqs),
    )


def _levels(tree):
    return {node.key: node.level for node in tree.all_nodes()}


def _assert_levels_consistent(tree):
    for node in tree.all_nodes():
        deps = tree.dependencies_of(node.key)
        if deps:
            assert node.level == max(d.level for d in deps) + 1
        else:
            assert node.level == 0
        assert node.finalized


def _diamond():
    return TechTree.build([
        _tech("a"),
        _tech("b", "a"),
        _tech("c", "a"),
        _tech("d", "b", "c"),
    ])


# ===========================================================================
# Construction and leveling
# ===========================================================================


class TestBuild:
    def test_parsed_two_tech_scenario(self):
        techs = parse_tech_content(
            'tech_a = { cost = 100 prerequisites = { "tech_b" } is_rare = yes }\n'
            "tech_b = { cost = 0 }\n"
        )
        tree = TechTree.build(techs)

        assert _levels(tree) == {"tech_a": 1, "tech_b": 0}
        assert [n.key for n in tree.dependencies_of("tech_a")] == ["tech_b"]
        assert [n.key for n in tree.dependents_of("tech_b")] == ["tech_a"]
        assert [n.key for n in tree.root_nodes()] == ["tech_b"]
        assert tree.max_level == 1

    def test_edges_are_symmetric(self):
        tree = _diamond()
        for node in tree.all_nodes():
            for dep in tree.dependencies_of(node.key):
                assert node.index in dep.dependents
            for child in tree.dependents_of(node.key):
                assert node.index in child.dependencies

    def test_diamond_levels(self):
        tree = _diamond()
        assert _levels(tree) == {"a": 0, "b": 1, "c": 1, "d": 2}
        assert tree.max_level == 2
        _assert_levels_consistent(tree)

    def test_longest_path_wins(self):
        # d is reachable from a directly and through b -> c.
        tree = TechTree.build([
            _tech("a"),
            _tech("x"),
            _tech("b", "a"),
            _tech("c", "b"),
            _tech("d", "a", "c"),
        ])
        assert _levels(tree) == {"a": 0, "x": 0, "b": 1, "c": 2, "d": 3}
        _assert_levels_consistent(tree)

    def test_definition_order_does_not_matter(self):
        tree = TechTree.build([
            _tech("d", "b", "c"),
            _tech("c", "a"),
            _tech("b", "a"),
            _tech("a"),
        ])
        assert _levels(tree) == {"a": 0, "b": 1, "c": 1, "d": 2}

    def test_accepts_mapping(self):
        tree = TechTree.build({"a": _tech("a"), "b": _tech("b", "a")})
        assert len(tree) == 2
        assert tree.get_node("b").level == 1

    def test_duplicate_key_last_wins(self):
        first = Technology(key="a", cost=1)
        second = Technology(key="a", cost=2)
        tree = TechTree.build([first, second])
        assert len(tree) == 1
        assert tree.get_node("a").tech.cost == 2

    def test_missing_prerequisite_dropped_and_warned(self, caplog):
        with caplog.at_level(logging.WARNING):
            tree = TechTree.build([_tech("tech_a", "tech_ghost")])

        node = tree.get_node("tech_a")
        assert node.dependencies == []
        assert node.level == 0
        assert [n.key for n in tree.root_nodes()] == ["tech_a"]
        assert tree.missing_prerequisites == [("tech_a", "tech_ghost")]
        assert "tech_ghost" in caplog.text

    def test_empty_tree(self):
        tree = TechTree.build([])
        assert len(tree) == 0
        assert tree.max_level == 0
        assert tree.root_nodes() == []
        assert tree.areas() == []
        assert tree.topological_order() == []

    def test_node_indexes_are_dense(self):
        tree = _diamond()
        assert sorted(n.index for n in tree.all_nodes()) == [0, 1, 2, 3]


# ===========================================================================
# Indexes and queries
# ===========================================================================


class TestQueries:
    def _tree(self):
        return TechTree.build([
            _tech("t_phys", area="physics", tier=1, category=["particles"]),
            _tech("t_soc", area="society", tier=0, category=["biology"]),
            _tech("t_eng", area="engineering", tier=2,
                  category=["materials", "voidcraft"]),
            _tech("t_none", area="", tier=1),
        ])

    def test_areas_sorted_without_empty(self):
        assert self._tree().areas() == ["engineering", "physics", "society"]

    def test_tiers_sorted(self):
        assert self._tree().tiers() == [0, 1, 2]

    def test_categories_sorted(self):
        assert self._tree().categories() == ["biology", "materials", "particles", "voidcraft"]

    def test_nodes_by_area(self):
        tree = self._tree()
        assert [n.key for n in tree.nodes_by_area("physics")] == ["t_phys"]
        assert tree.nodes_by_area("") == []
        assert tree.nodes_by_area("unknown") == []

    def test_nodes_by_tier(self):
        assert sorted(n.key for n in self._tree().nodes_by_tier(1)) == ["t_none", "t_phys"]

    def test_multi_category_node_in_each(self):
        tree = self._tree()
        assert [n.key for n in tree.nodes_by_category("materials")] == ["t_eng"]
        assert [n.key for n in tree.nodes_by_category("voidcraft")] == ["t_eng"]

    def test_lookup(self):
        tree = self._tree()
        assert "t_phys" in tree
        assert "t_missing" not in tree
        assert tree.get_node("t_missing") is None
        assert tree.dependencies_of("t_missing") == []
        assert tree.dependents_of("t_missing") == []

    def test_node_key_property(self):
        assert self._tree().get_node("t_soc").key == "t_soc"


class TestTraversal:
    def test_prerequisite_chain_deepest_first(self):
        assert _diamond().prerequisite_chain("d") == ["a", "b", "c"]

    def test_prerequisite_chain_of_root(self):
        assert _diamond().prerequisite_chain("a") == []

    def test_prerequisite_chain_unknown_key(self):
        assert _diamond().prerequisite_chain("zzz") == []

    def test_topological_order(self):
        assert _diamond().topological_order() == ["a", "b", "c", "d"]

    def test_topological_order_respects_edges(self):
        tree = TechTree.build([
            _tech("z"),
            _tech("m", "z"),
            _tech("b"),
            _tech("k", "m", "b"),
        ])
        order = tree.topological_order()
        assert order[:2] == ["b", "z"]
        position = {key: i for i, key in enumerate(order)}
        for node in tree.all_nodes():
            for dep in tree.dependencies_of(node.key):
                assert position[dep.key] < position[node.key]
