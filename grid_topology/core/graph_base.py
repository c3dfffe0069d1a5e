"""
Core data structures for the port-level grid topology.
Components own four cardinal ports; wires connect ports by id.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple


class MalformedTopologyError(ValueError):
    """Raised when a topology description cannot be turned into a graph"""


class Side(Enum):
    """Cardinal connection faces of a component"""
    TOP = 'top'
    BOTTOM = 'bottom'
    LEFT = 'left'
    RIGHT = 'right'


ALL_SIDES: Tuple[Side, ...] = (Side.TOP, Side.BOTTOM, Side.LEFT, Side.RIGHT)


class ComponentType(Enum):
    """Supported component types"""
    SOURCE = 'source'
    SWITCH = 'switch'
    BUS = 'bus'
    LOAD = 'load'
    TRANSFORMER = 'transformer'


TIE_SUBTYPE = 'tie'


def make_port_id(component_id: str, side: Side) -> str:
    """Build the '<componentId>:<side>' port identifier"""
    return f"{component_id}:{side.value}"


def parse_port_id(port_id: str) -> Tuple[str, Side]:
    """
    Split a port identifier into component id and side.

    The component id may itself contain ':'; the side is always the
    text after the last separator.
    """
    component_id, sep, side_name = port_id.rpartition(':')
    if not sep or not component_id:
        raise MalformedTopologyError(f"Port id '{port_id}' is not of the form component:side")
    try:
        side = Side(side_name)
    except ValueError:
        raise MalformedTopologyError(f"Port id '{port_id}' names unknown side '{side_name}'") from None
    return component_id, side


@dataclass(frozen=True)
class OperatingData:
    """Caller-supplied operating state of a component"""
    status: Optional[str] = None      # on/off, running/stopped, or a free label
    sub_type: Optional[str] = None    # e.g. 'tie' for bus-tie switches
    voltage: Optional[float] = None
    ratio: Optional[float] = None
    capacity: Optional[float] = None
    rated_current: Optional[float] = None

    @property
    def is_tie(self) -> bool:
        return self.sub_type == TIE_SUBTYPE


@dataclass(frozen=True)
class Port:
    """A single side of a component"""
    component_id: str
    side: Side

    @property
    def id(self) -> str:
        return make_port_id(self.component_id, self.side)


@dataclass(frozen=True)
class PortStatus:
    """Energization of the four ports of one component"""
    top: bool = False
    bottom: bool = False
    left: bool = False
    right: bool = False

    def __getitem__(self, side: Side) -> bool:
        return getattr(self, side.value)

    def any(self) -> bool:
        return self.top or self.bottom or self.left or self.right

    def as_dict(self) -> Dict[str, bool]:
        return {side.value: self[side] for side in ALL_SIDES}


@dataclass(frozen=True)
class Component:
    """Typed grid component with four always-present ports"""
    id: str
    type: ComponentType
    data: OperatingData = field(default_factory=OperatingData)
    position: Optional[Tuple[float, float]] = None

    @property
    def is_tie_switch(self) -> bool:
        return self.type == ComponentType.SWITCH and self.data.is_tie

    @property
    def ports(self) -> Tuple[Port, ...]:
        return tuple(Port(self.id, side) for side in ALL_SIDES)

    def port(self, side: Side) -> Port:
        return Port(self.id, side)

    def port_id(self, side: Side) -> str:
        return make_port_id(self.id, side)


@dataclass(frozen=True)
class WireEdge:
    """User wiring between two ports"""
    id: str
    source_port_id: str
    target_port_id: str
    voltage: Optional[float] = None  # explicit or normalized override

    @property
    def source_port(self) -> Port:
        return Port(*parse_port_id(self.source_port_id))

    @property
    def target_port(self) -> Port:
        return Port(*parse_port_id(self.target_port_id))


class GridTopology:
    """Normalized components and wires for one solve"""

    def __init__(self, components: Optional[List[Component]] = None,
                 edges: Optional[List[WireEdge]] = None):
        # Insertion-ordered; ordering only affects iteration, never results
        self.components: Dict[str, Component] = {}
        self.edges: Dict[str, WireEdge] = {}

        for component in components or []:
            self.add_component(component)
        for edge in edges or []:
            self.add_edge(edge)

    def add_component(self, component: Component) -> str:
        """
        Add a component.

        Args:
            component: Component to register

        Returns:
            component id
        """
        if not component.id:
            raise MalformedTopologyError("Component id must be a non-empty string")
        if component.id in self.components:
            raise MalformedTopologyError(f"Component {component.id} already exists")

        self.components[component.id] = component
        return component.id

    def add_edge(self, edge: WireEdge) -> str:
        """
        Add a wire between two existing component ports.

        Both endpoints must parse as port ids and reference components
        already present in the topology.
        """
        if not edge.id:
            raise MalformedTopologyError("Edge id must be a non-empty string")
        if edge.id in self.edges:
            raise MalformedTopologyError(f"Edge {edge.id} already exists")

        for port_id in (edge.source_port_id, edge.target_port_id):
            component_id, _ = parse_port_id(port_id)
            if component_id not in self.components:
                raise MalformedTopologyError(
                    f"Edge {edge.id} references non-existent component {component_id}"
                )

        self.edges[edge.id] = edge
        return edge.id

    def get_component(self, component_id: str) -> Component:
        """Get component by id"""
        if component_id not in self.components:
            raise MalformedTopologyError(f"Component {component_id} not found")
        return self.components[component_id]

    def components_of_type(self, component_type: ComponentType) -> Iterator[Component]:
        return (c for c in self.components.values() if c.type == component_type)

    def with_component_data(self, component_id: str, **changes) -> 'GridTopology':
        """Return a copy with one component's operating data replaced"""
        target = self.get_component(component_id)
        updated = replace(target, data=replace(target.data, **changes))

        components = [updated if c.id == component_id else c for c in self.components.values()]
        return GridTopology(components, list(self.edges.values()))

    def get_system_info(self) -> Dict:
        """Get topology counts"""
        component_types = {}
        for component in self.components.values():
            key = component.type.value
            component_types[key] = component_types.get(key, 0) + 1

        return {
            'n_components': len(self.components),
            'n_edges': len(self.edges),
            'n_ports': 4 * len(self.components),
            'component_types': component_types,
        }
