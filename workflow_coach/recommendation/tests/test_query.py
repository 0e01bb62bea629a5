from workflow_coach.recommendation.builder import build_index
from workflow_coach.recommendation.query import (
    gather_predecessor_context,
    gather_successor_context,
    most_frequently_used,
    recommend_for_node,
    source_node_recommendations,
)
from workflow_coach.recommendation.types import (
    Direction,
    NodeType,
    PortConnection,
    Single,
    UsageTriple,
)


def classify(node_id: str) -> NodeType | None:
    if node_id.startswith("src"):
        return NodeType.SOURCE
    return NodeType.OTHER


class _Graph:
    """Port connections keyed by node; node keys double as node ids."""

    def __init__(self, inputs=None, outputs=None):
        self.inputs = inputs or {}
        self.outputs = outputs or {}

    def node_id(self, node) -> str:
        return node

    def port_connections(self, node, direction):
        if direction is Direction.SUCCESSORS:
            return self.inputs.get(node, [])
        return self.outputs.get(node, [])


def _ids(entries) -> list[str]:
    return [e.target_id for e in entries]


def _index(*triples):
    return build_index(list(triples), classify)


def test_node_never_recommends_itself():
    index = _index(
        UsageTriple(node="loop", successor="loop", count=9),
        UsageTriple(node="loop", successor="b", count=1),
    )

    result = recommend_for_node(index, "loop", Direction.SUCCESSORS)

    assert _ids(result) == ["b"]
    assert result[0].total_frequency == 1


def test_unknown_node_gets_empty_list():
    index = _index(UsageTriple(node="a", successor="b", count=1))

    assert recommend_for_node(index, "zzz", Direction.SUCCESSORS) == []
    assert recommend_for_node(index, "zzz", Direction.PREDECESSORS) == []


def test_single_context_is_ranked_with_totals():
    index = _index(
        UsageTriple(node="a", successor="b", count=2),
        UsageTriple(node="a", successor="c", count=8),
    )

    result = recommend_for_node(index, "a", Direction.SUCCESSORS)

    assert _ids(result) == ["c", "b"]
    assert [e.total_frequency for e in result] == [10, 10]


def test_published_entries_are_not_modified_by_queries():
    index = _index(
        UsageTriple(node="a", successor="b", count=2),
        UsageTriple(node="a", successor="c", count=8),
    )
    before = index.entries(Single("a"), Direction.SUCCESSORS)

    recommend_for_node(index, "a", Direction.SUCCESSORS)

    assert index.entries(Single("a"), Direction.SUCCESSORS) == before
    assert [e.total_frequency for e in before] == [2, 8]


def test_successor_recommendations_use_upstream_neighbours():
    index = _index(
        UsageTriple(predecessor="p", node="n", successor="s1", count=4),
        UsageTriple(node="n", successor="s2", count=2),
    )
    graph = _Graph(inputs={"n": [[PortConnection("p")]]})

    assert _ids(recommend_for_node(index, "n", Direction.SUCCESSORS)) == ["s2"]
    assert _ids(
        recommend_for_node(index, "n", Direction.SUCCESSORS, graph=graph)
    ) == ["s1", "s2"]


def test_neighbour_context_wins_over_single_context():
    index = _index(
        UsageTriple(predecessor="p", node="n", successor="x", count=10),
        UsageTriple(node="n", successor="x", count=2),
    )
    graph = _Graph(inputs={"n": [[PortConnection("p")]]})

    (with_graph,) = recommend_for_node(index, "n", Direction.SUCCESSORS, graph=graph)
    (without_graph,) = recommend_for_node(index, "n", Direction.SUCCESSORS)

    assert with_graph.frequency() == 10
    assert without_graph.frequency() == 2


def test_successor_walk_stops_at_unconnected_port():
    index = _index(
        UsageTriple(predecessor="p1", node="n", successor="s1", count=1),
        UsageTriple(predecessor="p2", node="n", successor="s2", count=1),
    )
    graph = _Graph(inputs={"n": [[PortConnection("p1")], [], [PortConnection("p2")]]})

    gathered = gather_successor_context(index, graph, "n", "n")

    assert list(gathered) == ["s1"]


def test_successor_walk_stops_at_scope_boundary():
    index = _index(
        UsageTriple(predecessor="p1", node="n", successor="s1", count=1),
    )
    graph = _Graph(
        inputs={
            "n": [
                [PortConnection(None, leaves_scope=True)],
                [PortConnection("p1")],
            ]
        }
    )

    assert gather_successor_context(index, graph, "n", "n") == {}


def test_successor_walk_skips_non_plain_neighbours():
    index = _index(
        UsageTriple(predecessor="p1", node="n", successor="s1", count=1),
    )
    graph = _Graph(inputs={"n": [[PortConnection(None)], [PortConnection("p1")]]})

    assert list(gather_successor_context(index, graph, "n", "n")) == ["s1"]


def test_predecessor_walk_skips_boundary_and_continues():
    index = _index(
        UsageTriple(predecessor="p1", node="n", successor="s1", count=3),
        UsageTriple(predecessor="p2", node="n", successor="s2", count=5),
    )
    graph = _Graph(
        outputs={
            "n": [
                [PortConnection(None, leaves_scope=True), PortConnection("s1")],
                [],
                [PortConnection(None), PortConnection("s2")],
            ]
        }
    )

    gathered = gather_predecessor_context(index, graph, "n", "n")
    assert list(gathered) == ["p1", "p2"]

    result = recommend_for_node(index, "n", Direction.PREDECESSORS, graph=graph)
    assert _ids(result) == ["p2", "p1"]


def test_graph_node_key_can_differ_from_node_id():
    index = _index(UsageTriple(predecessor="p", node="n", successor="s", count=1))

    class _KeyedGraph(_Graph):
        def port_connections(self, node, direction):
            assert node == 7
            return [[PortConnection("p")]]

    result = recommend_for_node(
        index, "n", Direction.SUCCESSORS, graph=_KeyedGraph(), node=7
    )

    assert _ids(result) == ["s"]


def test_source_and_most_used_lists():
    index = _index(
        UsageTriple(successor="src_csv", count=4),
        UsageTriple(node="src_db", count=6),
        UsageTriple(node="a", count=1),
    )

    assert _ids(source_node_recommendations(index)) == ["src_db", "src_csv"]
    assert _ids(most_frequently_used(index)) == ["src_db", "a"]
