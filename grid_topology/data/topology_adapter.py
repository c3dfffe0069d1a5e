"""
Build a normalized GridTopology from a raw network description.

Raw components carry free-form positions and raw wires may or may not
name the side they attach to; the adapter infers the side for every
wire endpoint and fills in the wire voltage where it can.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..core.graph_base import (
    Component, ComponentType, GridTopology, MalformedTopologyError,
    OperatingData, Side, WireEdge, make_port_id
)

logger = logging.getLogger(__name__)

# Names accepted for ComponentType.SOURCE
TYPE_ALIASES = {
    'powerSource': ComponentType.SOURCE,
    'power_source': ComponentType.SOURCE,
}

# Checked in this order; the first substring found in a handle wins
HANDLE_TAGS: Tuple[Side, ...] = (Side.LEFT, Side.RIGHT, Side.TOP, Side.BOTTOM)


def parse_component_type(raw_type: Optional[str],
                         default_type: ComponentType = ComponentType.BUS) -> ComponentType:
    """Map a raw type string to a ComponentType"""
    if raw_type is None or raw_type == '':
        return default_type
    if raw_type in TYPE_ALIASES:
        return TYPE_ALIASES[raw_type]
    try:
        return ComponentType(raw_type)
    except ValueError:
        raise MalformedTopologyError(f"Unknown component type '{raw_type}'") from None


def side_from_handle(handle: Optional[str]) -> Optional[Side]:
    """Explicit side tag contained in a wire handle, if any"""
    if not handle:
        return None
    handle = handle.lower()
    for side in HANDLE_TAGS:
        if side.value in handle:
            return side
    return None


def infer_side(component: Optional[Component],
               other: Optional[Component],
               handle: Optional[str],
               is_source: bool) -> Side:
    """
    Decide which side of `component` a wire endpoint lands on.

    This is the only place side inference happens; validation and
    solving both go through it so they always agree.

    Args:
        component: Component at this end of the wire
        other: Component at the opposite end
        handle: Raw handle string for this end (may be None)
        is_source: True if this is the wire's source end

    Returns:
        Inferred side
    """
    tagged = side_from_handle(handle)
    if tagged is not None:
        return tagged

    position = component.position if component is not None else None
    other_position = other.position if other is not None else None
    has_geometry = position is not None and other_position is not None

    if component is not None and component.is_tie_switch:
        if not has_geometry:
            return Side.LEFT
        return Side.LEFT if other_position[0] < position[0] else Side.RIGHT

    if component is not None and component.type == ComponentType.SWITCH:
        if has_geometry and other_position[1] < position[1]:
            return Side.TOP
        return Side.BOTTOM

    if component is not None and component.type == ComponentType.SOURCE:
        return Side.BOTTOM
    if component is not None and component.type == ComponentType.LOAD:
        return Side.TOP

    if component is not None and component.type == ComponentType.BUS:
        if has_geometry:
            if other_position[0] < position[0]:
                return Side.LEFT
            if other_position[0] > position[0]:
                return Side.RIGHT
            if other_position[1] < position[1]:
                return Side.TOP
        return Side.BOTTOM

    return Side.BOTTOM if is_source else Side.TOP


def parse_number(value: Any, owner: str, field: str) -> Optional[float]:
    """
    Convert an optional numeric field, rejecting values that are not numbers.

    Raises:
        MalformedTopologyError: naming the owning component or wire and the field
    """
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise MalformedTopologyError(f"{owner}: field '{field}' is not a number: {value!r}") from None


def _parse_position(raw: Any, owner: str) -> Optional[Tuple[float, float]]:
    if not isinstance(raw, Mapping):
        return None
    x, y = raw.get('x'), raw.get('y')
    if x is None or y is None:
        return None
    return parse_number(x, owner, 'position.x'), parse_number(y, owner, 'position.y')


class TopologyAdapter:
    """Convert raw component/wire dictionaries into a GridTopology"""

    def __init__(self, default_type: ComponentType = ComponentType.BUS):
        """
        Initialize the adapter.

        Args:
            default_type: Type assumed for raw components without one
        """
        self.default_type = default_type

    def build_component(self, raw: Mapping[str, Any]) -> Component:
        """Build one Component from its raw description"""
        component_id = raw.get('id')
        if not isinstance(component_id, str) or not component_id:
            raise MalformedTopologyError(f"Component without a valid id: {raw!r}")

        owner = f"Component {component_id}"
        data = raw.get('data') or {}
        operating = OperatingData(
            status=data.get('status'),
            sub_type=data.get('subType'),
            voltage=parse_number(data.get('voltage'), owner, 'voltage'),
            ratio=parse_number(data.get('ratio'), owner, 'ratio'),
            capacity=parse_number(data.get('capacity'), owner, 'capacity'),
            rated_current=parse_number(data.get('ratedCurrent'), owner, 'ratedCurrent'),
        )

        return Component(
            id=component_id,
            type=parse_component_type(raw.get('type'), self.default_type),
            data=operating,
            position=_parse_position(raw.get('position'), owner),
        )

    def build_edge(self, raw: Mapping[str, Any], components: Dict[str, Component]) -> WireEdge:
        """Normalize one raw wire against already-built components"""
        edge_id = raw.get('id')
        if not isinstance(edge_id, str) or not edge_id:
            raise MalformedTopologyError(f"Edge without a valid id: {raw!r}")

        source_id, target_id = raw.get('source'), raw.get('target')
        for endpoint in (source_id, target_id):
            if not isinstance(endpoint, str) or endpoint not in components:
                raise MalformedTopologyError(
                    f"Edge {edge_id} references non-existent component {endpoint}"
                )

        source = components[source_id]
        target = components[target_id]

        source_side = infer_side(source, target, raw.get('sourceHandle'), is_source=True)
        target_side = infer_side(target, source, raw.get('targetHandle'), is_source=False)

        return WireEdge(
            id=edge_id,
            source_port_id=make_port_id(source_id, source_side),
            target_port_id=make_port_id(target_id, target_side),
            voltage=self._normalized_voltage(
                raw, edge_id, (source, source_side), (target, target_side)
            ),
        )

    def build(self, raw_components: Sequence[Mapping[str, Any]],
              raw_edges: Sequence[Mapping[str, Any]]) -> GridTopology:
        """
        Build the complete normalized topology.

        Raises:
            MalformedTopologyError: on duplicate ids, unknown types or
                wires whose endpoints are not known components
        """
        topology = GridTopology()

        for raw in raw_components:
            topology.add_component(self.build_component(raw))

        for raw in raw_edges:
            topology.add_edge(self.build_edge(raw, topology.components))

        logger.debug(
            f"Normalized topology: {len(topology.components)} components, "
            f"{len(topology.edges)} edges"
        )
        return topology

    @staticmethod
    def _normalized_voltage(raw: Mapping[str, Any], edge_id: str,
                            source_end: Tuple[Component, Side],
                            target_end: Tuple[Component, Side]) -> Optional[float]:
        """Wire override, then source voltage, then target voltage"""
        edge_data = raw.get('data') or {}
        override = parse_number(edge_data.get('voltage'), f"Edge {edge_id}", 'voltage')
        if override is not None:
            return override

        # Secondary side wires take voltage x ratio from the solver
        for component, side in (source_end, target_end):
            if component.type == ComponentType.TRANSFORMER and side == Side.BOTTOM:
                return None

        for component, _ in (source_end, target_end):
            if component.data.voltage is not None:
                return component.data.voltage

        return None


def build_topology(raw_components: List[Mapping[str, Any]],
                   raw_edges: List[Mapping[str, Any]],
                   default_type: ComponentType = ComponentType.BUS) -> GridTopology:
    """Shortcut for TopologyAdapter(default_type).build(...)"""
    return TopologyAdapter(default_type=default_type).build(raw_components, raw_edges)
