"""
Grid Topology Package

Topology-aware power-flow solver for drawn single-line networks of power
sources, switches, buses, loads and transformers.

Key Features:
- Four-port component model with a per-type rule table
- Side inference for wires drawn without explicit handles
- Port-level connectivity graph (networkx) with bus meshes, closed
  switches and one-way transformer windings
- Multi-source breadth-first energization with flow direction and
  display voltage per wire
- Advisory validation of port usage and single-feed inputs

Example usage:
    from grid_topology import solve_network

    results = solve_network(components, edges)
    results.node_powered['load_1']
    results.to_dict()
"""

__version__ = "1.0.0"
__author__ = "Grid Topology Project"

# Core components
from .core.graph_base import (
    ALL_SIDES, Component, ComponentType, GridTopology, MalformedTopologyError,
    OperatingData, Port, PortStatus, Side, WireEdge, make_port_id, parse_port_id
)
from .core.node_types import NODE_RULES, ComponentRule, rule_for
from .core.edge_types import (
    DEFAULT_VOLTAGE, EdgeState, FlowDirection, resolve_display_voltage, voltage_to_color
)

# Data normalization
from .data.topology_adapter import TopologyAdapter, build_topology, infer_side

# Engine
from .engine.graph_builder import ConnectivityGraphBuilder, build_connectivity_graph
from .engine.power_flow_solver import PowerFlowSolver, SolveResults, is_load_running, solve_network

# Utilities
from .utils.validators import ConnectionIssue, IssueKind, TopologyValidator
from .utils.switching import ComponentNotPoweredError, toggle_load, toggle_switch

__all__ = [
    # Core
    'ALL_SIDES', 'Side', 'ComponentType', 'OperatingData', 'Port', 'PortStatus',
    'Component', 'WireEdge', 'GridTopology', 'MalformedTopologyError',
    'make_port_id', 'parse_port_id',
    'NODE_RULES', 'ComponentRule', 'rule_for',
    'DEFAULT_VOLTAGE', 'EdgeState', 'FlowDirection', 'resolve_display_voltage', 'voltage_to_color',

    # Data
    'TopologyAdapter', 'build_topology', 'infer_side',

    # Engine
    'ConnectivityGraphBuilder', 'build_connectivity_graph',
    'PowerFlowSolver', 'SolveResults', 'is_load_running', 'solve_network',

    # Utils
    'TopologyValidator', 'ConnectionIssue', 'IssueKind',
    'toggle_switch', 'toggle_load', 'ComponentNotPoweredError',
]
