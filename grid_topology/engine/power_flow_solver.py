"""
Topology-aware power-flow solver.

Multi-source breadth-first reachability over the port graph. This is a
reachability model, not a load flow: it reports which ports are live,
which way power travels on each wire and the voltage level to display.
"""

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import networkx as nx
import numpy as np

from ..core.edge_types import (
    DEFAULT_VOLTAGE, EdgeState, FlowDirection, resolve_display_voltage
)
from ..core.graph_base import (
    ALL_SIDES, Component, ComponentType, GridTopology, PortStatus, Side, WireEdge
)
from ..core.node_types import rule_for
from ..data.topology_adapter import TopologyAdapter
from .graph_builder import ConnectivityGraphBuilder

logger = logging.getLogger(__name__)


@dataclass
class SolveResults:
    """Results from one solve"""
    node_powered: Dict[str, bool]
    node_state: Dict[str, bool]
    port_status: Dict[str, PortStatus]
    edge_states: Dict[str, EdgeState]

    # First-seen BFS distance of every energized port
    distance: Dict[str, int]

    def is_port_energized(self, port_id: str) -> bool:
        return port_id in self.distance

    def get_component_results(self, component_id: str) -> Dict[str, Any]:
        """Get powered flag, state and port energization for one component"""
        if component_id not in self.port_status:
            raise KeyError(f"Component {component_id} not in results")

        return {
            'powered': self.node_powered[component_id],
            'state': self.node_state[component_id],
            'ports': self.port_status[component_id].as_dict(),
        }

    def distance_vector(self) -> Tuple[List[str], np.ndarray]:
        """
        Port distances as an array aligned to a sorted port index.

        Returns:
            (port_ids, distances) with np.inf for de-energized ports
        """
        port_ids = sorted(
            f"{component_id}:{side.value}"
            for component_id in self.port_status
            for side in ALL_SIDES
        )
        distances = np.full(len(port_ids), np.inf)
        for i, port_id in enumerate(port_ids):
            if port_id in self.distance:
                distances[i] = self.distance[port_id]
        return port_ids, distances

    def to_dict(self) -> Dict[str, Any]:
        """Render the caller-facing output contract"""
        return {
            'nodePowered': dict(self.node_powered),
            'nodeState': dict(self.node_state),
            'portStatus': {cid: status.as_dict() for cid, status in self.port_status.items()},
            'edgeStates': {
                eid: {'active': s.active, 'flow': s.flow.value, 'voltage': s.voltage}
                for eid, s in self.edge_states.items()
            },
        }


def determine_flow(edge: WireEdge, distance: Mapping[str, int]) -> FlowDirection:
    """
    Flow direction on a wire from the BFS distances of its endpoints.

    The endpoint closer to a source is upstream. Equal distances are
    broken by comparing port ids so the answer never depends on
    iteration order.
    """
    source_dist = distance.get(edge.source_port_id)
    target_dist = distance.get(edge.target_port_id)

    if source_dist is None and target_dist is None:
        return FlowDirection.NONE
    if target_dist is None:
        return FlowDirection.FORWARD
    if source_dist is None:
        return FlowDirection.REVERSE

    if source_dist < target_dist:
        return FlowDirection.FORWARD
    if target_dist < source_dist:
        return FlowDirection.REVERSE
    if edge.source_port_id < edge.target_port_id:
        return FlowDirection.FORWARD
    return FlowDirection.REVERSE


def is_load_running(component: Component, results: SolveResults) -> bool:
    """Display state of a load: commanded running and fed on its input"""
    return bool(results.node_state.get(component.id)) and results.port_status[component.id].top


class PowerFlowSolver:
    """
    Energization solver for one immutable topology.

    The connectivity graph is built once per solver; build a new solver
    after any switch toggle or wiring change.
    """

    def __init__(self, topology: GridTopology, default_voltage: float = DEFAULT_VOLTAGE):
        """
        Initialize the solver.

        Args:
            topology: Normalized GridTopology
            default_voltage: Voltage reported when nothing else resolves
        """
        self.topology = topology
        self.default_voltage = default_voltage
        self.graph: nx.DiGraph = ConnectivityGraphBuilder(topology).build()

    def _source_ports(self) -> List[str]:
        return [c.port_id(Side.BOTTOM) for c in self.topology.components_of_type(ComponentType.SOURCE)]

    def _propagate(self) -> Dict[str, int]:
        """Multi-source BFS; returns first-seen distance per reached port"""
        sources = self._source_ports()
        if not sources:
            warnings.warn("Topology has no power source; every port is de-energized.")
            return {}

        distance = {}
        for depth, layer in enumerate(nx.bfs_layers(self.graph, sources)):
            for port_id in layer:
                distance[port_id] = depth
        return distance

    def solve(self) -> SolveResults:
        """
        Compute the complete energization result.

        Returns:
            SolveResults
        """
        distance = self._propagate()

        node_powered = {}
        node_state = {}
        port_status = {}

        for component in self.topology.components.values():
            status = PortStatus(**{
                side.value: component.port_id(side) in distance for side in ALL_SIDES
            })
            rule = rule_for(component)
            port_status[component.id] = status
            node_powered[component.id] = rule.compute_powered(status)
            node_state[component.id] = rule.compute_node_state(status, component.data)

        edge_states = {}
        for edge in self.topology.edges.values():
            active = edge.source_port_id in distance or edge.target_port_id in distance
            edge_states[edge.id] = EdgeState(
                id=edge.id,
                active=active,
                flow=determine_flow(edge, distance),
                voltage=resolve_display_voltage(edge, self.topology.components, self.default_voltage),
            )

        logger.debug(
            f"Solved topology: {len(distance)}/{self.graph.number_of_nodes()} ports energized, "
            f"{sum(node_powered.values())}/{len(node_powered)} components powered"
        )

        return SolveResults(
            node_powered=node_powered,
            node_state=node_state,
            port_status=port_status,
            edge_states=edge_states,
            distance=distance,
        )

    def get_operating_summary(self, results: SolveResults) -> Dict[str, int]:
        """Counts shown alongside a running simulation"""
        components = self.topology.components.values()
        switches = [c for c in components if c.type == ComponentType.SWITCH]
        loads = [c for c in components if c.type == ComponentType.LOAD]

        return {
            'sources': sum(1 for c in components if c.type == ComponentType.SOURCE),
            'switches': len(switches),
            'closed_switches': sum(1 for c in switches if c.data.status == 'on'),
            'loads': len(loads),
            'running_loads': sum(1 for c in loads if is_load_running(c, results)),
            'powered_components': sum(results.node_powered.values()),
            'active_edges': sum(1 for s in results.edge_states.values() if s.active),
        }


def solve_network(raw_components: Sequence[Mapping[str, Any]],
                  raw_edges: Sequence[Mapping[str, Any]],
                  default_voltage: float = DEFAULT_VOLTAGE,
                  adapter: Optional[TopologyAdapter] = None) -> SolveResults:
    """
    Normalize a raw network description and solve it.

    Raises:
        MalformedTopologyError: if the description cannot be normalized
    """
    adapter = adapter or TopologyAdapter()
    topology = adapter.build(raw_components, raw_edges)
    return PowerFlowSolver(topology, default_voltage=default_voltage).solve()
