"""Normalization of raw network descriptions."""

from .topology_adapter import TopologyAdapter, build_topology, infer_side

__all__ = ['TopologyAdapter', 'build_topology', 'infer_side']
