"""
Operator actions on a topology.

Each helper returns a new GridTopology; the caller solves it again.
"""

import logging

from ..core.graph_base import ComponentType, GridTopology
from ..engine.power_flow_solver import SolveResults

logger = logging.getLogger(__name__)


class ComponentNotPoweredError(RuntimeError):
    """Raised when an action needs a powered component"""


def toggle_switch(topology: GridTopology, component_id: str) -> GridTopology:
    """Close an open switch or open a closed one"""
    component = topology.get_component(component_id)
    if component.type != ComponentType.SWITCH:
        raise ValueError(f"Component {component_id} is a {component.type.value}, not a switch")

    new_status = 'off' if component.data.status == 'on' else 'on'
    logger.info(f"Switch {component_id}: {component.data.status} -> {new_status}")
    return topology.with_component_data(component_id, status=new_status)


def toggle_load(topology: GridTopology, results: SolveResults, component_id: str) -> GridTopology:
    """
    Start a stopped load or stop a running one.

    Only powered loads can be operated.

    Raises:
        ComponentNotPoweredError: if the load is not powered in `results`
    """
    component = topology.get_component(component_id)
    if component.type != ComponentType.LOAD:
        raise ValueError(f"Component {component_id} is a {component.type.value}, not a load")
    if not results.node_powered.get(component_id, False):
        raise ComponentNotPoweredError(f"Load {component_id} is not powered; close the feeding switches first")

    new_status = 'stopped' if component.data.status == 'running' else 'running'
    logger.info(f"Load {component_id}: {component.data.status} -> {new_status}")
    return topology.with_component_data(component_id, status=new_status)
