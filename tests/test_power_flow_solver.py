"""Tests for the energization solver."""

import numpy as np
import pytest

from grid_topology import (
    FlowDirection, GridTopology, PowerFlowSolver, TopologyAdapter, solve_network, voltage_to_color
)
from grid_topology.engine.power_flow_solver import determine_flow
from builders import component, wire


def solve(components, edges, **kwargs):
    return PowerFlowSolver(GridTopology(components, edges), **kwargs).solve()


def test_solving_twice_gives_identical_results(radial_feeder):
    solver = PowerFlowSolver(radial_feeder)
    assert solver.solve() == solver.solve()
    assert PowerFlowSolver(radial_feeder).solve() == solver.solve()


def test_radial_feeder_is_energized_end_to_end(radial_feeder):
    results = PowerFlowSolver(radial_feeder).solve()

    assert all(results.node_powered.values())
    assert results.distance['ps:bottom'] == 0
    assert results.distance['qf:top'] == 1
    assert results.distance['qf:bottom'] == 2
    assert results.distance['m1:top'] > results.distance['bus:top']
    assert {s.flow for s in results.edge_states.values()} == {FlowDirection.FORWARD}


def test_multiple_sources_merge_on_a_bus():
    results = solve(
        [
            component('ps1', 'source', voltage=380.0),
            component('ps2', 'source', voltage=380.0),
            component('bus1', 'bus', voltage=380.0),
        ],
        [
            wire('e1', 'ps1', 'bottom', 'bus1', 'top', 380.0),
            wire('e2', 'ps2', 'bottom', 'bus1', 'right', 380.0),
        ],
    )

    assert results.node_powered['bus1']
    assert results.node_state['bus1']
    assert results.port_status['bus1'].left
    assert results.port_status['bus1'].bottom
    assert results.edge_states['e1'].flow == FlowDirection.FORWARD
    assert results.edge_states['e2'].flow == FlowDirection.FORWARD


def tie_network(status):
    return (
        [
            component('ps', 'source', voltage=380.0),
            component('tie', 'switch', status=status, sub_type='tie'),
            component('load', 'load', status='running'),
        ],
        [
            wire('e1', 'ps', 'bottom', 'tie', 'left', 380.0),
            wire('e2', 'tie', 'right', 'load', 'top', 380.0),
        ],
    )


def test_closed_tie_switch_bridges_to_load():
    results = solve(*tie_network('on'))

    assert results.node_powered['load']
    assert results.node_state['tie']
    assert results.edge_states['e2'].flow == FlowDirection.FORWARD


def test_open_tie_switch_blocks_load():
    results = solve(*tie_network('off'))

    assert not results.node_powered['load']
    assert not results.node_state['tie']
    # Left pole still touches the live wire
    assert results.node_powered['tie']
    assert not results.edge_states['e2'].active
    assert results.edge_states['e2'].flow == FlowDirection.NONE


def test_transformer_passes_power_top_to_bottom():
    results = solve(
        [
            component('ps', 'source', voltage=380.0),
            component('tx', 'transformer', voltage=380.0),
            component('load', 'load', status='running'),
        ],
        [
            wire('e1', 'ps', 'bottom', 'tx', 'top', 380.0),
            wire('e2', 'tx', 'bottom', 'load', 'top', 380.0),
        ],
    )

    assert results.node_powered['tx']
    assert results.node_state['tx']
    assert results.node_powered['load']
    assert results.edge_states['e2'].flow == FlowDirection.FORWARD


def test_transformer_never_back_feeds():
    results = solve(
        [
            component('ps', 'source'),
            component('tx', 'transformer'),
            component('b', 'bus'),
        ],
        [
            wire('e1', 'ps', 'bottom', 'tx', 'bottom'),
            wire('e2', 'tx', 'top', 'b', 'top'),
        ],
    )

    assert results.port_status['tx'].bottom
    assert not results.port_status['tx'].top
    assert not results.node_powered['tx']
    assert not results.node_powered['b']


def test_transformer_ratio_scales_downstream_voltage():
    results = solve(
        [
            component('ps', 'source', voltage=1000.0),
            component('tx', 'transformer', voltage=1000.0, ratio=0.4),
            component('load', 'load', status='running'),
        ],
        [
            wire('e1', 'ps', 'bottom', 'tx', 'top'),
            wire('e2', 'tx', 'bottom', 'load', 'top'),
        ],
    )

    assert results.edge_states['e1'].voltage == 1000
    assert results.edge_states['e2'].voltage == pytest.approx(400)


def test_transformer_scaling_through_the_adapter():
    results = solve_network(
        [
            {'id': 'ps', 'type': 'powerSource', 'position': {'x': 0, 'y': 0}, 'data': {'voltage': 1000}},
            {'id': 'tx', 'type': 'transformer', 'position': {'x': 0, 'y': 100},
             'data': {'voltage': 1000, 'ratio': 0.4}},
            {'id': 'load', 'type': 'load', 'position': {'x': 0, 'y': 200}, 'data': {'status': 'running'}},
        ],
        [
            {'id': 'e1', 'source': 'ps', 'target': 'tx'},
            {'id': 'e2', 'source': 'tx', 'target': 'load'},
        ],
    )

    assert results.node_powered['load']
    assert results.edge_states['e2'].voltage == pytest.approx(400)


def test_missing_ratio_defaults_to_one():
    results = solve(
        [component('tx', 'transformer', voltage=10000.0), component('m', 'load')],
        [wire('e1', 'tx', 'bottom', 'm', 'top')],
    )
    assert results.edge_states['e1'].voltage == 10000


def test_voltage_defaults_to_380():
    results = solve(
        [component('b1', 'bus'), component('b2', 'bus')],
        [wire('e1', 'b1', 'bottom', 'b2', 'top')],
    )
    assert results.edge_states['e1'].voltage == 380


def test_default_voltage_is_configurable():
    results = solve(
        [component('b1', 'bus'), component('b2', 'bus')],
        [wire('e1', 'b1', 'bottom', 'b2', 'top')],
        default_voltage=220.0,
    )
    assert results.edge_states['e1'].voltage == 220


def test_load_state_independent_of_power():
    with pytest.warns(UserWarning, match='no power source'):
        results = solve([component('load', 'load', status='running')], [])

    assert not results.node_powered['load']
    assert results.node_state['load']


def test_open_switch_isolates_only_its_branch():
    def network(status):
        return (
            [
                component('ps', 'source'),
                component('bus', 'bus'),
                component('q1', 'switch', status=status),
                component('q2', 'switch', status='on'),
                component('m1', 'load', status='running'),
                component('m2', 'load', status='running'),
            ],
            [
                wire('e0', 'ps', 'bottom', 'bus', 'top'),
                wire('e1', 'bus', 'bottom', 'q1', 'top'),
                wire('e2', 'q1', 'bottom', 'm1', 'top'),
                wire('e3', 'bus', 'right', 'q2', 'top'),
                wire('e4', 'q2', 'bottom', 'm2', 'top'),
            ],
        )

    closed = solve(*network('on'))
    opened = solve(*network('off'))

    assert closed.node_powered['m1']
    assert not opened.node_powered['m1']
    assert opened.node_powered['m2']
    assert opened.node_powered['q1']
    assert not opened.port_status['q1'].bottom


def test_wire_drawn_against_the_flow_reports_reverse():
    results = solve(
        [component('ps', 'source'), component('m', 'load')],
        [wire('e1', 'm', 'top', 'ps', 'bottom')],
    )
    assert results.edge_states['e1'].active
    assert results.edge_states['e1'].flow == FlowDirection.REVERSE


def symmetric_sources():
    """Two sources, each on its own bus section, sections tied bus to bus"""
    return (
        [
            component('ps_a', 'source'),
            component('ps_b', 'source'),
            component('bus_a', 'bus'),
            component('bus_b', 'bus'),
        ],
        [
            wire('e1', 'ps_a', 'bottom', 'bus_a', 'top'),
            wire('e2', 'ps_b', 'bottom', 'bus_b', 'top'),
            wire('e3', 'bus_a', 'bottom', 'bus_b', 'bottom'),
            wire('e4', 'bus_b', 'right', 'bus_a', 'right'),
        ],
    )


def test_equal_distance_tie_break_is_lexicographic():
    results = solve(*symmetric_sources())

    assert results.distance['bus_a:bottom'] == results.distance['bus_b:bottom'] == 2
    assert results.distance['bus_a:right'] == results.distance['bus_b:right'] == 2
    assert results.edge_states['e3'].flow == FlowDirection.FORWARD
    assert results.edge_states['e4'].flow == FlowDirection.REVERSE


def test_equal_distance_tie_break_is_stable():
    components, edges = symmetric_sources()
    baseline = solve(components, edges)

    for _ in range(5):
        assert solve(list(reversed(components)), list(reversed(edges))).edge_states == baseline.edge_states


def test_determine_flow_single_finite_endpoint():
    edge = wire('e', 'a', 'bottom', 'b', 'top')
    assert determine_flow(edge, {'a:bottom': 3}) == FlowDirection.FORWARD
    assert determine_flow(edge, {'b:top': 3}) == FlowDirection.REVERSE
    assert determine_flow(edge, {}) == FlowDirection.NONE


def test_results_render_output_contract(radial_feeder):
    payload = PowerFlowSolver(radial_feeder).solve().to_dict()

    assert set(payload) == {'nodePowered', 'nodeState', 'portStatus', 'edgeStates'}
    assert payload['portStatus']['m1'] == {'top': True, 'bottom': False, 'left': False, 'right': False}
    assert payload['edgeStates']['e1'] == {'active': True, 'flow': 'forward', 'voltage': 380.0}


def test_component_results_and_distance_vector(radial_feeder):
    results = PowerFlowSolver(radial_feeder).solve()

    assert results.get_component_results('m1') == {
        'powered': True,
        'state': True,
        'ports': {'top': True, 'bottom': False, 'left': False, 'right': False},
    }
    with pytest.raises(KeyError):
        results.get_component_results('nope')

    port_ids, distances = results.distance_vector()
    assert len(port_ids) == 16
    assert distances[port_ids.index('ps:bottom')] == 0
    assert np.isinf(distances[port_ids.index('m1:bottom')])


def test_operating_summary():
    topology = GridTopology(
        [
            component('ps', 'source'),
            component('q1', 'switch', status='on'),
            component('q2', 'switch', status='off'),
            component('m1', 'load', status='running'),
            component('m2', 'load', status='running'),
            component('m3', 'load', status='stopped'),
        ],
        [
            wire('e1', 'ps', 'bottom', 'q1', 'top'),
            wire('e2', 'q1', 'bottom', 'm1', 'top'),
            wire('e3', 'ps', 'bottom', 'q2', 'top'),
            wire('e4', 'q2', 'bottom', 'm2', 'top'),
            wire('e5', 'q1', 'bottom', 'm3', 'top'),
        ],
    )
    solver = PowerFlowSolver(topology)
    summary = solver.get_operating_summary(solver.solve())

    assert summary == {
        'sources': 1,
        'switches': 2,
        'closed_switches': 1,
        'loads': 3,
        'running_loads': 1,
        'powered_components': 5,
        'active_edges': 4,
    }


@pytest.mark.parametrize('voltage, color', [
    (10000, '#ef4444'),
    (1000, '#ef4444'),
    (660, '#f97316'),
    (380, '#eab308'),
    (110, '#22c55e'),
    (24, '#3b82f6'),
    (None, '#3b82f6'),
])
def test_voltage_to_color(voltage, color):
    assert voltage_to_color(voltage) == color


def test_solve_network_rejects_dangling_edges():
    from grid_topology import MalformedTopologyError

    with pytest.raises(MalformedTopologyError):
        solve_network([{'id': 'ps', 'type': 'source'}], [{'id': 'e1', 'source': 'ps', 'target': 'x'}])


def test_solve_network_accepts_custom_adapter():
    results = solve_network(
        [{'id': 'ps', 'type': 'source'}, {'id': 'n'}],
        [{'id': 'e1', 'source': 'ps', 'target': 'n', 'targetHandle': 'in-top'}],
        adapter=TopologyAdapter(),
    )
    assert results.node_powered['n']


def test_solve_network_rejects_non_numeric_voltage():
    from grid_topology import MalformedTopologyError

    with pytest.raises(MalformedTopologyError, match='voltage'):
        solve_network([{'id': 'ps', 'type': 'source', 'data': {'voltage': 'high'}}], [])
