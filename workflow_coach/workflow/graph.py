"""NetworkX-backed workflow graph used for neighbour-aware recommendations."""

import json
from pathlib import Path
from typing import Any, Hashable

import networkx as nx

from ..recommendation.types import Direction, PortConnection

# Stands for everything outside the visible workflow (e.g. the parent of a
# metanode). Connections to or from it leave the visible scope.
BOUNDARY = "__boundary__"


class WorkflowGraph:
    """Workflow of node instances connected port to port.

    Node attributes: ``node_id`` (None for components and metanodes),
    ``in_ports`` and ``out_ports``. Edge attributes: ``source_port`` and
    ``dest_port``.
    """

    def __init__(self):
        self.graph = nx.MultiDiGraph()

    def add_node(
        self,
        key: Hashable,
        node_id: str | None,
        in_ports: int = 1,
        out_ports: int = 1,
    ) -> None:
        if key == BOUNDARY:
            raise ValueError(f"'{BOUNDARY}' is reserved for the workflow boundary")
        self.graph.add_node(key, node_id=node_id, in_ports=in_ports, out_ports=out_ports)

    def _require(self, key: Hashable) -> dict[str, Any]:
        if key == BOUNDARY or key not in self.graph:
            raise KeyError(f"Unknown node: {key}")
        return self.graph.nodes[key]

    def connect(
        self,
        source: Hashable,
        source_port: int,
        dest: Hashable,
        dest_port: int,
    ) -> None:
        """Connect an output port to an input port.

        Either end may be :data:`BOUNDARY` for connections crossing the
        workflow border. An input port accepts a single connection.
        """
        if source != BOUNDARY:
            data = self._require(source)
            if not 0 <= source_port < data["out_ports"]:
                raise ValueError(f"Node {source} has no output port {source_port}")
        if dest != BOUNDARY:
            data = self._require(dest)
            if not 0 <= dest_port < data["in_ports"]:
                raise ValueError(f"Node {dest} has no input port {dest_port}")
            if self._incoming(dest, dest_port):
                raise ValueError(f"Input port {dest_port} of {dest} is already connected")
        if BOUNDARY not in self.graph:
            self.graph.add_node(BOUNDARY, node_id=None, in_ports=0, out_ports=0)
        self.graph.add_edge(source, dest, source_port=source_port, dest_port=dest_port)

    def _incoming(self, key: Hashable, port: int) -> list[Hashable]:
        return [
            source
            for source, _, data in self.graph.in_edges(key, data=True)
            if data.get("dest_port") == port
        ]

    def _outgoing(self, key: Hashable, port: int) -> list[Hashable]:
        return [
            dest
            for _, dest, data in self.graph.out_edges(key, data=True)
            if data.get("source_port") == port
        ]

    def _connection(self, neighbor: Hashable) -> PortConnection:
        if neighbor == BOUNDARY:
            return PortConnection(neighbor_id=None, leaves_scope=True)
        return PortConnection(neighbor_id=self.graph.nodes[neighbor].get("node_id"))

    def node_id(self, node: Hashable) -> str:
        node_id = self._require(node).get("node_id")
        if not node_id:
            raise ValueError(f"Node {node} is not a plain node and has no node id")
        return node_id

    def port_connections(
        self, node: Hashable, direction: Direction
    ) -> list[list[PortConnection]]:
        """Connections per port that give context for ``direction``.

        Successor recommendations look upstream, so the input ports are
        reported; predecessor recommendations look at the output ports.
        """
        data = self._require(node)
        if direction is Direction.SUCCESSORS:
            return [
                [self._connection(n) for n in self._incoming(node, port)]
                for port in range(data["in_ports"])
            ]
        return [
            [self._connection(n) for n in self._outgoing(node, port)]
            for port in range(data["out_ports"])
        ]

    def to_dict(self) -> dict[str, Any]:
        nodes = [
            {
                "key": key,
                "node_id": data.get("node_id"),
                "in_ports": data["in_ports"],
                "out_ports": data["out_ports"],
            }
            for key, data in self.graph.nodes(data=True)
            if key != BOUNDARY
        ]
        connections = [
            {
                "source": None if source == BOUNDARY else source,
                "source_port": data["source_port"],
                "dest": None if dest == BOUNDARY else dest,
                "dest_port": data["dest_port"],
            }
            for source, dest, data in self.graph.edges(data=True)
        ]
        return {"nodes": nodes, "connections": connections}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkflowGraph":
        """Build a workflow; a null connection end means the workflow boundary.

        Node keys are read as strings, so keys saved as numbers match the
        text given on the command line.
        """
        workflow = cls()
        for node in data.get("nodes", []):
            workflow.add_node(
                str(node["key"]),
                node.get("node_id"),
                in_ports=int(node.get("in_ports", 1)),
                out_ports=int(node.get("out_ports", 1)),
            )
        for conn in data.get("connections", []):
            source = conn.get("source")
            dest = conn.get("dest")
            workflow.connect(
                BOUNDARY if source is None else str(source),
                int(conn.get("source_port", 0)),
                BOUNDARY if dest is None else str(dest),
                int(conn.get("dest_port", 0)),
            )
        return workflow

    def save(self, path: Path) -> None:
        """Save workflow to JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    @classmethod
    def load(cls, path: Path) -> "WorkflowGraph":
        """Load workflow from JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data)
