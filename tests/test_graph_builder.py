"""Tests for the port-level connectivity graph."""

import networkx as nx
import pytest

from grid_topology import GridTopology, build_connectivity_graph
from builders import component, internal_links, wire


def test_every_component_contributes_four_ports():
    graph = build_connectivity_graph(GridTopology([component('m', 'load'), component('ps', 'source')]))
    assert set(graph.nodes) == {
        'm:top', 'm:bottom', 'm:left', 'm:right',
        'ps:top', 'ps:bottom', 'ps:left', 'ps:right',
    }
    assert graph.number_of_edges() == 0


def test_wires_are_bidirectional():
    graph = build_connectivity_graph(GridTopology(
        [component('ps', 'source'), component('m', 'load')],
        [wire('e1', 'ps', 'bottom', 'm', 'top')],
    ))
    assert graph.has_edge('ps:bottom', 'm:top')
    assert graph.has_edge('m:top', 'ps:bottom')
    assert graph['ps:bottom']['m:top']['edge_id'] == 'e1'


def test_bus_is_fully_meshed():
    graph = build_connectivity_graph(GridTopology([component('b', 'bus')]))
    # 6 unordered pairs, both directions
    assert len(internal_links(graph)) == 12


def test_closed_switch_links_top_and_bottom():
    graph = build_connectivity_graph(GridTopology([component('q', 'switch', status='on')]))
    assert internal_links(graph) == [('q:bottom', 'q:top'), ('q:top', 'q:bottom')]


@pytest.mark.parametrize('status', ['off', None, 'tripped'])
def test_open_switch_adds_no_link(status):
    graph = build_connectivity_graph(GridTopology([component('q', 'switch', status=status)]))
    assert internal_links(graph) == []


def test_closed_tie_switch_links_left_and_right_only():
    graph = build_connectivity_graph(GridTopology([component('tie', 'switch', status='on', sub_type='tie')]))
    assert internal_links(graph) == [('tie:left', 'tie:right'), ('tie:right', 'tie:left')]


def test_transformer_is_one_way():
    graph = build_connectivity_graph(GridTopology([component('t', 'transformer')]))
    assert graph.has_edge('t:top', 't:bottom')
    assert not graph.has_edge('t:bottom', 't:top')


def test_loads_and_sources_have_no_internal_links():
    graph = build_connectivity_graph(GridTopology([component('m', 'load'), component('ps', 'source')]))
    assert internal_links(graph) == []


def test_graph_is_frozen(radial_feeder):
    graph = build_connectivity_graph(radial_feeder)
    assert nx.is_frozen(graph)
    with pytest.raises(nx.NetworkXError):
        graph.add_edge('ps:bottom', 'm1:top')
