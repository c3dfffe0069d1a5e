"""
Per-type component rules.

Each rule answers which sides accept incoming and outgoing wiring, which
side is limited to a single feed, and how port energization translates
into the component's powered flag and its own active state.
"""

from typing import Dict, Optional, Tuple

from .graph_base import (
    ALL_SIDES, Component, ComponentType, OperatingData, PortStatus, Side
)


class ComponentRule:
    """Base rule; subclasses fill in the per-type behaviour"""

    component_type: ComponentType
    input_sides: Tuple[Side, ...] = ()
    output_sides: Tuple[Side, ...] = ()

    def multiplicity_side(self, inferred_side: Side) -> Optional[Side]:
        """Side subject to the single-feed rule, or None if unconstrained"""
        return None

    def compute_powered(self, status: PortStatus) -> bool:
        raise NotImplementedError

    def compute_node_state(self, status: PortStatus, data: OperatingData) -> bool:
        raise NotImplementedError

    def is_input_side_allowed(self, side: Side) -> bool:
        return side in self.input_sides

    def is_output_side_allowed(self, side: Side) -> bool:
        return side in self.output_sides


class SourceRule(ComponentRule):
    """Power source: always live, feeds from its bottom port"""

    component_type = ComponentType.SOURCE
    output_sides = (Side.BOTTOM,)

    def compute_powered(self, status: PortStatus) -> bool:
        return True

    def compute_node_state(self, status: PortStatus, data: OperatingData) -> bool:
        return True


class LoadRule(ComponentRule):
    """Load: single input on top, state follows the running command"""

    component_type = ComponentType.LOAD
    input_sides = (Side.TOP,)

    def multiplicity_side(self, inferred_side: Side) -> Optional[Side]:
        return Side.TOP

    def compute_powered(self, status: PortStatus) -> bool:
        return status.top

    def compute_node_state(self, status: PortStatus, data: OperatingData) -> bool:
        return data.status == 'running'


class TransformerRule(ComponentRule):
    """Two-winding transformer: primary on top, secondary on bottom"""

    component_type = ComponentType.TRANSFORMER
    input_sides = (Side.TOP,)
    output_sides = (Side.BOTTOM,)

    def multiplicity_side(self, inferred_side: Side) -> Optional[Side]:
        return Side.TOP

    def compute_powered(self, status: PortStatus) -> bool:
        return status.top

    def compute_node_state(self, status: PortStatus, data: OperatingData) -> bool:
        return self.compute_powered(status)


class BusRule(ComponentRule):
    """Bus bar: every side is both input and output, no feed limit"""

    component_type = ComponentType.BUS
    input_sides = ALL_SIDES
    output_sides = ALL_SIDES

    def compute_powered(self, status: PortStatus) -> bool:
        return status.any()

    def compute_node_state(self, status: PortStatus, data: OperatingData) -> bool:
        return self.compute_powered(status)


class SwitchRule(ComponentRule):
    """
    Breaker: input top, output bottom.

    Powered when any side is live, so an open breaker still shows that
    it sits next to a live conductor.
    """

    component_type = ComponentType.SWITCH
    input_sides = (Side.TOP,)
    output_sides = (Side.BOTTOM,)

    def multiplicity_side(self, inferred_side: Side) -> Optional[Side]:
        return Side.TOP

    def compute_powered(self, status: PortStatus) -> bool:
        return status.any()

    def compute_node_state(self, status: PortStatus, data: OperatingData) -> bool:
        return data.status == 'on'


class TieSwitchRule(SwitchRule):
    """Bus-tie switch: bidirectional between left and right, merges two feeds"""

    input_sides = (Side.LEFT, Side.RIGHT)
    output_sides = (Side.LEFT, Side.RIGHT)

    def multiplicity_side(self, inferred_side: Side) -> Optional[Side]:
        return None

    def compute_node_state(self, status: PortStatus, data: OperatingData) -> bool:
        # Commanded status only, never port energization
        return data.status == 'on'


NODE_RULES: Dict[ComponentType, ComponentRule] = {
    ComponentType.SOURCE: SourceRule(),
    ComponentType.LOAD: LoadRule(),
    ComponentType.TRANSFORMER: TransformerRule(),
    ComponentType.BUS: BusRule(),
    ComponentType.SWITCH: SwitchRule(),
}

TIE_SWITCH_RULE = TieSwitchRule()


def rule_for(component: Component) -> ComponentRule:
    """Select the rule that governs a component"""
    if component.is_tie_switch:
        return TIE_SWITCH_RULE

    return NODE_RULES[component.type]
