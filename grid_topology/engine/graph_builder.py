"""
Port-level connectivity graph.

Wires become arcs in both directions between their ports; component
internals become extra arcs between ports of the same component.
"""

import logging
from itertools import combinations

import networkx as nx

from ..core.graph_base import ALL_SIDES, ComponentType, GridTopology, Side

logger = logging.getLogger(__name__)

# Arc kinds stored on the 'kind' attribute
WIRE = 'wire'
BUS = 'bus'
SWITCH = 'switch'
TRANSFORMER = 'transformer'


class ConnectivityGraphBuilder:
    """Build the frozen port graph used by one solve"""

    def __init__(self, topology: GridTopology):
        self.topology = topology

    def build(self) -> nx.DiGraph:
        """
        Build the connectivity graph.

        Returns:
            Frozen networkx.DiGraph whose nodes are port ids
        """
        graph = nx.DiGraph()

        # Every component always has four ports, wired or not
        for component in self.topology.components.values():
            for port in component.ports:
                graph.add_node(port.id, component_id=component.id, side=port.side)

        for edge in self.topology.edges.values():
            self._add_bidirectional(graph, edge.source_port_id, edge.target_port_id, WIRE, edge_id=edge.id)

        self._add_bus_meshes(graph)
        self._add_switch_links(graph)
        self._add_transformer_links(graph)

        logger.debug(
            f"Built connectivity graph: {graph.number_of_nodes()} ports, "
            f"{graph.number_of_edges()} arcs"
        )
        return nx.freeze(graph)

    def _add_bus_meshes(self, graph: nx.DiGraph):
        """Buses conduct across all four sides"""
        for bus in self.topology.components_of_type(ComponentType.BUS):
            for a, b in combinations(ALL_SIDES, 2):
                self._add_bidirectional(graph, bus.port_id(a), bus.port_id(b), BUS)

    def _add_switch_links(self, graph: nx.DiGraph):
        """Closed switches link their two poles; open switches add nothing"""
        for switch in self.topology.components_of_type(ComponentType.SWITCH):
            if switch.data.status != 'on':
                continue
            if switch.is_tie_switch:
                self._add_bidirectional(graph, switch.port_id(Side.LEFT), switch.port_id(Side.RIGHT), SWITCH)
            else:
                self._add_bidirectional(graph, switch.port_id(Side.TOP), switch.port_id(Side.BOTTOM), SWITCH)

    def _add_transformer_links(self, graph: nx.DiGraph):
        """Primary feeds secondary; no back-feed from secondary to primary"""
        for transformer in self.topology.components_of_type(ComponentType.TRANSFORMER):
            graph.add_edge(transformer.port_id(Side.TOP), transformer.port_id(Side.BOTTOM), kind=TRANSFORMER)

    @staticmethod
    def _add_bidirectional(graph: nx.DiGraph, a: str, b: str, kind: str, **attrs):
        graph.add_edge(a, b, kind=kind, **attrs)
        graph.add_edge(b, a, kind=kind, **attrs)


def build_connectivity_graph(topology: GridTopology) -> nx.DiGraph:
    return ConnectivityGraphBuilder(topology).build()
