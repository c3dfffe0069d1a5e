"""
Engine Package

Connectivity graph construction and the energization solver.
"""

from .graph_builder import ConnectivityGraphBuilder, build_connectivity_graph
from .power_flow_solver import PowerFlowSolver, SolveResults, solve_network

__all__ = [
    'ConnectivityGraphBuilder',
    'build_connectivity_graph',
    'PowerFlowSolver',
    'SolveResults',
    'solve_network',
]
