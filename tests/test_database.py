import numpy as np
import pytest

from fea_solver.core.database import ElementDatabase
from fea_solver.core.exceptions import ConfigurationError
from fea_solver.elements import TETRA10


@pytest.fixture
def database():
    return ElementDatabase(TETRA10(), 5)


class TestElementDatabase:
    def test_not_built_initially(self, database):
        assert not database.is_built
        assert len(database) == 5
        with pytest.raises(RuntimeError):
            database[0]
        with pytest.raises(RuntimeError):
            list(database)

    def test_build(self, database):
        assert database.build() is database
        assert database.is_built
        nodes = list(database)
        assert len(nodes) == 5
        for node in nodes:
            assert node.forms.shape == (10,)
            assert node.dforms.shape == (3, 10)
            assert np.isclose(node.forms.sum(), 1.0)
            assert np.allclose(node.dforms.sum(axis=1), 0.0)

    def test_weights_follow_rule(self, database):
        database.build()
        weights = [node.weight for node in database]
        assert weights == list(database.rule.weights)

    def test_build_is_idempotent(self, database):
        database.build()
        first = list(database)
        database.build()
        second = list(database)
        assert all(a is b for a, b in zip(first, second))

    def test_values_match_element(self, database):
        element = TETRA10()
        database.build()
        for point, node in zip(database.rule, database):
            assert np.allclose(node.forms, element.shape_functions(*point.coords))
            assert np.allclose(node.dforms, element.shape_function_derivatives(*point.coords))

    def test_arrays_read_only(self, database):
        database.build()
        with pytest.raises(ValueError):
            database[0].dforms[0, 0] = 1.0

    def test_clear(self, database):
        database.build()
        database.clear()
        assert not database.is_built

    def test_unsupported_gauss_count(self):
        with pytest.raises(ConfigurationError):
            ElementDatabase(TETRA10(), 7)
