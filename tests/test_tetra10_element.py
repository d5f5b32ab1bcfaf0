"""Test suite for the 10-node tetrahedron shape functions and quadrature.

This module contains:
1. Shape function properties (partition of unity, Kronecker delta)
2. Derivative checks against finite differences
3. Gauss rule tables and element factory
"""

import numpy as np
import pytest

from fea_solver.core.config import ElementType
from fea_solver.core.exceptions import ConfigurationError
from fea_solver.elements import TETRA10, TETRA10_GAUSS_4, TETRA10_GAUSS_5, ElementFactory
from fea_solver.elements.TETRA10 import (
    NODE_COORDINATES,
    tetra10_dshape,
    tetra10_shape,
)


# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def element():
    return TETRA10()


@pytest.fixture
def sample_points():
    """Points inside the reference tetrahedron, including Gauss points."""
    points = [(0.1, 0.2, 0.3), (0.25, 0.25, 0.25), (0.6, 0.1, 0.05), (0.0, 0.0, 0.0)]
    points += [p.coords for p in TETRA10_GAUSS_4]
    points += [p.coords for p in TETRA10_GAUSS_5]
    return points


# =============================================================================
# Shape Functions
# =============================================================================


class TestShapeFunctions:
    """Tests for shape function properties."""

    def test_partition_of_unity(self, element, sample_points):
        for pt in sample_points:
            N = element.shape_functions(*pt)
            assert np.isclose(np.sum(N), 1.0, atol=1e-12), (
                f"Partition of unity failed at {pt}: sum(N)={np.sum(N)}"
            )

    def test_kronecker_delta_at_nodes(self, element):
        """N_i = 1 at node i and 0 at every other node, midside nodes included."""
        for node_idx, coords in enumerate(NODE_COORDINATES):
            N = element.shape_functions(*coords)
            expected = np.zeros(10)
            expected[node_idx] = 1.0
            assert np.allclose(N, expected, atol=1e-12), f"N at node {node_idx}: {N}"

    def test_corner_function_values(self):
        # N0 = (2L - 1)L with L = 1 - r - s - t
        r, s, t = 0.1, 0.2, 0.3
        L = 1 - r - s - t
        assert tetra10_shape(0, r, s, t) == pytest.approx((2 * L - 1) * L)
        assert tetra10_shape(4, r, s, t) == pytest.approx(4 * r * L)
        assert tetra10_shape(9, r, s, t) == pytest.approx(4 * s * t)

    def test_reproduces_linear_field(self, element, sample_points):
        """Σ N_i x_i = x for the reference node positions."""
        coords = np.array(NODE_COORDINATES)
        for pt in sample_points:
            N = element.shape_functions(*pt)
            assert np.allclose(N @ coords, pt, atol=1e-12)

    def test_invalid_node_index(self):
        with pytest.raises(IndexError):
            tetra10_shape(10, 0.1, 0.1, 0.1)
        with pytest.raises(IndexError):
            tetra10_shape(-1, 0.1, 0.1, 0.1)


# =============================================================================
# Shape Function Derivatives
# =============================================================================


class TestShapeFunctionDerivatives:
    """Tests for local derivatives."""

    def test_derivative_shape(self, element):
        dN = element.shape_function_derivatives(0.1, 0.2, 0.3)
        assert dN.shape == (3, 10)

    def test_derivatives_sum_to_zero(self, element, sample_points):
        for pt in sample_points:
            dN = element.shape_function_derivatives(*pt)
            assert np.allclose(dN.sum(axis=1), 0.0, atol=1e-12), f"Σ dN ≠ 0 at {pt}"

    def test_finite_difference(self, element):
        """Closed-form derivatives match central differences."""
        h = 1e-6
        pt = np.array([0.15, 0.25, 0.35])
        dN = element.shape_function_derivatives(*pt)
        for axis in range(3):
            step = np.zeros(3)
            step[axis] = h
            fd = (element.shape_functions(*(pt + step)) - element.shape_functions(*(pt - step))) / (
                2 * h
            )
            assert np.allclose(dN[axis], fd, atol=1e-8), f"Derivative mismatch along axis {axis}"

    def test_invalid_axis(self):
        with pytest.raises(IndexError):
            tetra10_dshape(0, 3, 0.1, 0.1, 0.1)

    def test_invalid_node_index(self):
        with pytest.raises(IndexError):
            tetra10_dshape(10, 0, 0.1, 0.1, 0.1)


# =============================================================================
# Quadrature
# =============================================================================


class TestQuadrature:
    """Tests for the tetrahedron Gauss tables."""

    @pytest.mark.parametrize("rule", [TETRA10_GAUSS_4, TETRA10_GAUSS_5])
    def test_weights_sum_to_reference_volume(self, rule):
        assert rule.weights_sum() == pytest.approx(1.0 / 6.0, abs=1e-12)

    def test_point_counts(self):
        assert len(TETRA10_GAUSS_4) == 4
        assert len(TETRA10_GAUSS_5) == 5

    def test_five_point_table_order(self):
        first = TETRA10_GAUSS_5[0]
        assert first.weight == pytest.approx(-4.0 / 30.0)
        assert first.coords == (0.25, 0.25, 0.25)
        assert TETRA10_GAUSS_5[4].coords == pytest.approx((1 / 6.0, 1 / 6.0, 1 / 6.0))

    def test_four_point_table_order(self):
        assert TETRA10_GAUSS_4[0].coords == (0.58541020, 0.13819660, 0.13819660)
        assert TETRA10_GAUSS_4[3].coords == (0.13819660, 0.13819660, 0.13819660)
        assert TETRA10_GAUSS_4[0].weight == pytest.approx(1.0 / 24.0)

    @pytest.mark.parametrize("count", [4, 5])
    def test_integrates_quadratic(self, count):
        """∫ r² dV over the reference tetrahedron is 1/60."""
        rule = TETRA10().quadrature(count)
        value = sum(p.weight * p.r**2 for p in rule)
        assert value == pytest.approx(1.0 / 60.0, rel=1e-7)

    @pytest.mark.parametrize("count", [1, 3, 6])
    def test_unsupported_count(self, count):
        with pytest.raises(ConfigurationError, match="gauss_nodes_count"):
            TETRA10().quadrature(count)


# =============================================================================
# Element Factory
# =============================================================================


class TestElementFactory:
    """Tests for element kind lookup."""

    def test_get_by_enum(self):
        element = ElementFactory.get_element(ElementType.TETRAHEDRA10)
        assert isinstance(element, TETRA10)
        assert element.nodes_per_element == 10
        assert element.dofs_count == 30

    def test_get_by_name(self):
        assert isinstance(ElementFactory.get_element("TETRAHEDRA10"), TETRA10)

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError, match="Unsupported element type"):
            ElementFactory.get_element("HEXAHEDRA20")
