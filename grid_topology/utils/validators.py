"""
Validators for raw network descriptions and port usage.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..core.graph_base import GridTopology, MalformedTopologyError, parse_port_id
from ..core.node_types import rule_for
from ..data.topology_adapter import TopologyAdapter, parse_number

logger = logging.getLogger(__name__)


class IssueKind(Enum):
    """Advisory connection problems"""
    ILLEGAL_OUTPUT_SIDE = 'illegal_output_side'
    ILLEGAL_INPUT_SIDE = 'illegal_input_side'
    MULTIPLE_FEEDS = 'multiple_feeds'


@dataclass(frozen=True)
class ConnectionIssue:
    """One advisory issue found in a topology"""
    kind: IssueKind
    component_id: str
    side: str
    edge_ids: Tuple[str, ...]
    message: str


class TopologyValidator:
    """Validate network descriptions before and after normalization"""

    def __init__(self, adapter: Optional[TopologyAdapter] = None):
        self.adapter = adapter or TopologyAdapter()
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_structure(self, components: Sequence[Mapping[str, Any]],
                           edges: Sequence[Mapping[str, Any]]) -> Tuple[bool, List[str]]:
        """
        Validate raw input structure.

        Collects every problem instead of stopping at the first one.

        Returns:
            (is_valid, list_of_errors)
        """
        self.errors = []
        known_ids = set()

        for index, raw in enumerate(components):
            component_id = raw.get('id')
            if not isinstance(component_id, str) or not component_id:
                self.errors.append(f"Component #{index} has no valid id")
                continue
            if component_id in known_ids:
                self.errors.append(f"Component {component_id} is defined more than once")
            known_ids.add(component_id)

            # Type and numeric fields
            try:
                self.adapter.build_component(raw)
            except MalformedTopologyError as e:
                self.errors.append(str(e))

        edge_ids = set()
        for index, raw in enumerate(edges):
            edge_id = raw.get('id')
            if not isinstance(edge_id, str) or not edge_id:
                self.errors.append(f"Edge #{index} has no valid id")
                edge_id = f"#{index}"
            elif edge_id in edge_ids:
                self.errors.append(f"Edge {edge_id} is defined more than once")
            edge_ids.add(edge_id)

            for end in ('source', 'target'):
                endpoint = raw.get(end)
                if not isinstance(endpoint, str) or endpoint not in known_ids:
                    self.errors.append(
                        f"Edge {edge_id} references non-existent {end} component {endpoint}"
                    )

            try:
                parse_number((raw.get('data') or {}).get('voltage'), f"Edge {edge_id}", 'voltage')
            except MalformedTopologyError as e:
                self.errors.append(str(e))

        return len(self.errors) == 0, self.errors

    def validate_port_usage(self, topology: GridTopology) -> List[ConnectionIssue]:
        """
        Check wires against the per-type port rules.

        Returns:
            List of advisory ConnectionIssue records
        """
        issues = []
        feeds: Dict[Tuple[str, str], List[str]] = defaultdict(list)

        for edge in topology.edges.values():
            source_id, source_side = parse_port_id(edge.source_port_id)
            target_id, target_side = parse_port_id(edge.target_port_id)
            source = topology.components[source_id]
            target = topology.components[target_id]

            if not rule_for(source).is_output_side_allowed(source_side):
                issues.append(ConnectionIssue(
                    kind=IssueKind.ILLEGAL_OUTPUT_SIDE,
                    component_id=source_id,
                    side=source_side.value,
                    edge_ids=(edge.id,),
                    message=f"{source.type.value} {source_id} cannot output from its {source_side.value} side",
                ))

            target_rule = rule_for(target)
            if not target_rule.is_input_side_allowed(target_side):
                issues.append(ConnectionIssue(
                    kind=IssueKind.ILLEGAL_INPUT_SIDE,
                    component_id=target_id,
                    side=target_side.value,
                    edge_ids=(edge.id,),
                    message=f"{target.type.value} {target_id} cannot take input on its {target_side.value} side",
                ))

            limited_side = target_rule.multiplicity_side(target_side)
            if limited_side is not None:
                feeds[(target_id, limited_side.value)].append(edge.id)

        for (component_id, side), edge_ids in feeds.items():
            if len(edge_ids) > 1:
                issues.append(ConnectionIssue(
                    kind=IssueKind.MULTIPLE_FEEDS,
                    component_id=component_id,
                    side=side,
                    edge_ids=tuple(edge_ids),
                    message=f"{component_id} {side} input is fed by {len(edge_ids)} wires",
                ))

        self.warnings = [issue.message for issue in issues]
        for issue in issues:
            logger.warning(issue.message)

        return issues

    def validate_network(self, components: Sequence[Mapping[str, Any]],
                         edges: Sequence[Mapping[str, Any]]) -> Tuple[bool, List[str], List[ConnectionIssue]]:
        """
        Structure check, then port-usage check on the normalized topology.

        Side inference is the adapter's, so the sides checked here are
        exactly the sides the solver uses.

        Returns:
            (is_valid, structural_errors, connection_issues)
        """
        is_valid, errors = self.validate_structure(components, edges)
        if not is_valid:
            return False, list(errors), []

        topology = self.adapter.build(components, edges)
        return True, [], self.validate_port_usage(topology)

    def generate_validation_report(self, topology: GridTopology, results=None) -> str:
        """Generate a plain-text validation report"""
        report = []
        report.append("=" * 60)
        report.append("GRID TOPOLOGY VALIDATION REPORT")
        report.append("=" * 60)

        info = topology.get_system_info()
        report.append(f"\nSystem Information:")
        report.append(f"  Components: {info['n_components']}")
        report.append(f"  Wires: {info['n_edges']}")
        for component_type, count in sorted(info['component_types'].items()):
            report.append(f"    {component_type}: {count}")

        report.append(f"\n1. Port Usage:")
        issues = self.validate_port_usage(topology)
        if not issues:
            report.append("   ✓ All wires use legal ports")
        else:
            report.append(f"   ⚠ {len(issues)} issues found:")
            for issue in issues[:10]:
                report.append(f"     - [{issue.kind.value}] {issue.message}")
            if len(issues) > 10:
                report.append(f"     ... and {len(issues)-10} more issues")

        if results is not None:
            report.append(f"\n2. Energization:")
            unpowered = sorted(cid for cid, powered in results.node_powered.items() if not powered)
            report.append(f"   Powered components: {len(results.node_powered) - len(unpowered)}/{len(results.node_powered)}")
            if unpowered:
                report.append(f"   De-energized: {', '.join(unpowered[:10])}")
                if len(unpowered) > 10:
                    report.append(f"     ... and {len(unpowered)-10} more")

        report.append("\n" + "=" * 60)

        return "\n".join(report)
