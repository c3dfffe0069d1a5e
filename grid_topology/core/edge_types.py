"""
Wire-level result types and voltage resolution.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from .graph_base import Component, ComponentType, Side, WireEdge, parse_port_id

DEFAULT_VOLTAGE = 380.0
DEFAULT_RATIO = 1.0


class FlowDirection(Enum):
    """Reported direction of power on a wire relative to its declared source"""
    FORWARD = 'forward'
    REVERSE = 'reverse'
    NONE = 'none'


@dataclass(frozen=True)
class EdgeState:
    """Solved state of one wire"""
    id: str
    active: bool
    flow: FlowDirection
    voltage: float

    def as_dict(self) -> Dict:
        return {
            'id': self.id,
            'active': self.active,
            'flow': self.flow.value,
            'voltage': self.voltage,
        }


def _configured_voltage(component: Component, default_voltage: float) -> float:
    if component.data.voltage is None:
        return default_voltage
    return component.data.voltage


def resolve_display_voltage(edge: WireEdge,
                            components: Dict[str, Component],
                            default_voltage: float = DEFAULT_VOLTAGE) -> float:
    """
    Resolve the voltage shown on a wire.

    Order: wire override; transformer secondary (voltage x ratio);
    transformer primary (voltage); power source voltage; default.
    The wire's source end is checked before its target end at each step.
    """
    if edge.voltage is not None:
        return edge.voltage

    endpoints = []
    for port_id in (edge.source_port_id, edge.target_port_id):
        component_id, side = parse_port_id(port_id)
        endpoints.append((components.get(component_id), side))

    for component, side in endpoints:
        if component is not None and component.type == ComponentType.TRANSFORMER and side == Side.BOTTOM:
            ratio = component.data.ratio
            if ratio is None:
                ratio = DEFAULT_RATIO
            return _configured_voltage(component, default_voltage) * ratio

    for component, side in endpoints:
        if component is not None and component.type == ComponentType.TRANSFORMER and side == Side.TOP:
            return _configured_voltage(component, default_voltage)

    for component, _ in endpoints:
        if component is not None and component.type == ComponentType.SOURCE:
            return _configured_voltage(component, default_voltage)

    return default_voltage


def voltage_to_color(voltage: Optional[float]) -> str:
    """Map a voltage level to its display colour"""
    if voltage is None:
        voltage = 0.0
    if voltage >= 1000:
        return '#ef4444'
    if voltage >= 500:
        return '#f97316'
    if voltage >= 220:
        return '#eab308'
    if voltage >= 110:
        return '#22c55e'
    return '#3b82f6'
