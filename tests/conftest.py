"""Shared fixtures for grid topology tests."""

import pytest

from grid_topology import GridTopology
from builders import component, wire


@pytest.fixture
def radial_feeder():
    """source -> breaker -> bus -> load, breaker closed"""
    return GridTopology(
        [
            component('ps', 'source', voltage=380.0),
            component('qf', 'switch', status='on'),
            component('bus', 'bus'),
            component('m1', 'load', status='running'),
        ],
        [
            wire('e1', 'ps', 'bottom', 'qf', 'top'),
            wire('e2', 'qf', 'bottom', 'bus', 'top'),
            wire('e3', 'bus', 'bottom', 'm1', 'top'),
        ],
    )
