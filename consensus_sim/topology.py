"""
Peer topology generation for setup code.

Builds peer lists and display positions for nodes numbered 1..N.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

import networkx as nx


class TopologyStrategy(Enum):
    """Network topology generation strategies."""
    CLIQUE = "clique"  # Fully connected
    RING = "ring"  # Each node linked to its two neighbours
    SMALL_WORLD = "small_world"  # Connected Watts-Strogatz
    RANDOM = "random"  # Connected Erdős–Rényi


class Topology:
    """
    Topology generator.

    All strategies yield connected graphs, so flooding reaches every node.
    """

    def __init__(
        self,
        strategy: TopologyStrategy = TopologyStrategy.SMALL_WORLD,
        avg_degree: int = 4,
        seed: Optional[int] = None,
        rewire_prob: float = 0.1
    ):
        if avg_degree < 2:
            raise ValueError("avg_degree must be at least 2")
        self.strategy = strategy
        self.avg_degree = avg_degree
        self.seed = seed
        self.rewire_prob = rewire_prob

    def build_graph(self, num_nodes: int) -> nx.Graph:
        """Build a connected graph on nodes 1..num_nodes."""
        if num_nodes < 1:
            raise ValueError("num_nodes must be at least 1")

        if num_nodes <= 2 or self.strategy == TopologyStrategy.CLIQUE:
            graph = nx.complete_graph(num_nodes)
        elif self.strategy == TopologyStrategy.RING:
            graph = nx.cycle_graph(num_nodes)
        elif self.strategy == TopologyStrategy.SMALL_WORLD:
            k = min(self.avg_degree, num_nodes - 1)
            graph = nx.connected_watts_strogatz_graph(num_nodes, k, self.rewire_prob, seed=self.seed)
        elif self.strategy == TopologyStrategy.RANDOM:
            graph = self._connected_random(num_nodes)
        else:
            raise ValueError(f"Unknown topology strategy: {self.strategy}")

        return nx.relabel_nodes(graph, {i: i + 1 for i in range(num_nodes)})

    def _connected_random(self, num_nodes: int, tries: int = 100) -> nx.Graph:
        p = min(1.0, self.avg_degree / (num_nodes - 1))
        seed = self.seed
        for attempt in range(tries):
            graph = nx.gnp_random_graph(num_nodes, p, seed=None if seed is None else seed + attempt)
            if nx.is_connected(graph):
                return graph
        raise ValueError(f"Could not build a connected random graph in {tries} tries")

    def generate(self, num_nodes: int) -> Dict[int, List[int]]:
        """
        Generate peer lists.

        Returns:
            Dictionary mapping node_id to its sorted peer ids
        """
        graph = self.build_graph(num_nodes)
        return {node_id: sorted(graph.neighbors(node_id)) for node_id in sorted(graph.nodes)}

    @staticmethod
    def positions(num_nodes: int) -> Dict[int, Tuple[float, float]]:
        """Display positions on a circle, scaled into [0, 1]."""
        if num_nodes == 1:
            return {1: (0.5, 0.5)}
        layout = nx.circular_layout(range(1, num_nodes + 1), scale=0.4, center=(0.5, 0.5))
        return {
            node_id: (_clamp(float(x)), _clamp(float(y)))
            for node_id, (x, y) in layout.items()
        }


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, round(value, 6)))


def diameter(peers: Dict[int, List[int]]) -> int:
    """Longest shortest path, in hops, of a peer map."""
    graph = nx.Graph()
    graph.add_nodes_from(peers)
    for node_id, neighbors in peers.items():
        graph.add_edges_from((node_id, n) for n in neighbors)
    if graph.number_of_nodes() <= 1:
        return 0
    return nx.diameter(graph)
