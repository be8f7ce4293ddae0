"""
Tests for support domains and their intersections.
"""

import numpy as np
import pytest

from expofam.base.support import (
    CountVectors,
    IntegerInterval,
    IntersectionSupport,
    PositiveDefiniteMatrices,
    ProbabilitySimplex,
    RealInterval,
    RealVectors,
    TensorSimplex,
)


class TestRealInterval:
    @pytest.mark.parametrize("x, expected", [
        (0.0, False),
        (1e-300, True),
        (5.0, True),
        (np.inf, True),
        (-1.0, False),
        (np.nan, False),
        ([1.0], False),
    ])
    def test_open_left(self, x, expected):
        support = RealInterval(0.0, np.inf, left_closed=False)
        assert support.contains(x) is expected

    def test_in_operator(self):
        assert 0.5 in RealInterval(0.0, 1.0)
        assert 1.5 not in RealInterval(0.0, 1.0)

    def test_intersect_keeps_tighter_endpoints(self):
        a = RealInterval(0.0, 2.0, left_closed=False)
        b = RealInterval(-1.0, 1.0, right_closed=False)
        assert a.intersect(b) == RealInterval(0.0, 1.0, left_closed=False, right_closed=False)

    def test_intersect_shared_endpoint(self):
        a = RealInterval(0.0, np.inf)
        b = RealInterval(0.0, np.inf, left_closed=False)
        result = a.intersect(b)
        assert not result.left_closed
        assert not result.contains(0.0)

    def test_intersect_equal(self):
        assert RealInterval().intersect(RealInterval()) == RealInterval()

    def test_str(self):
        assert str(RealInterval(0.0, 1.0, left_closed=False)) == "(0.0, 1.0]"


class TestIntegerInterval:
    def test_contains(self):
        support = IntegerInterval(0, 5)
        assert support.contains(3)
        assert support.contains(3.0)
        assert not support.contains(2.5)
        assert not support.contains(6)
        assert not support.contains(-1)

    def test_points(self):
        np.testing.assert_array_equal(IntegerInterval(2, 4).points(), [2.0, 3.0, 4.0])

    def test_unbounded_points(self):
        with pytest.raises(ValueError):
            IntegerInterval(0, np.inf).points()

    def test_intersect(self):
        assert IntegerInterval(0, 5).intersect(IntegerInterval(2, 7)) == IntegerInterval(2, 5)

    def test_discrete(self):
        assert IntegerInterval(0, 1).is_discrete
        assert not RealInterval().is_discrete


class TestVectorSupports:
    def test_real_vectors(self):
        assert RealVectors().contains([1.0, 2.0, 3.0])
        assert not RealVectors(dim=2).contains([1.0, 2.0, 3.0])
        assert not RealVectors().contains([1.0, np.nan])
        assert not RealVectors().contains(1.0)

    def test_simplex(self):
        support = ProbabilitySimplex(dim=3)
        assert support.contains([0.2, 0.3, 0.5])
        assert not support.contains([0.0, 0.5, 0.5])
        assert not support.contains([0.2, 0.3, 0.6])
        assert not support.contains([0.5, 0.5])

    def test_count_vectors(self):
        support = CountVectors(total=5)
        assert support.contains([1, 2, 2])
        assert support.contains([0.0, 0.0, 5.0])
        assert not support.contains([1, 2, 1])
        assert not support.contains([1.5, 1.5, 2.0])
        assert not support.contains([-1, 3, 3])

    def test_positive_definite(self):
        support = PositiveDefiniteMatrices(dim=2)
        assert support.contains(np.eye(2))
        assert not support.contains(np.eye(3))
        assert not support.contains([[1.0, 2.0], [2.0, 1.0]])
        assert not support.contains([1.0, 2.0])

    def test_tensor_simplex(self):
        support = TensorSimplex((2, 3))
        x = np.array([[0.2, 0.5, 0.9], [0.8, 0.5, 0.1]])
        assert support.contains(x)
        assert not support.contains(x.T)
        assert not support.contains(np.full((2, 3), 0.4))


class TestIntersectionSupport:
    def test_mixed_supports(self):
        result = RealInterval(0.0, 10.0).intersect(IntegerInterval(0, 20))
        assert isinstance(result, IntersectionSupport)
        assert result.contains(4)
        assert not result.contains(4.5)
        assert not result.contains(15)
        assert result.is_discrete

    def test_chained(self):
        result = RealInterval(0.0, 10.0).intersect(IntegerInterval(0, 20))
        chained = result.intersect(RealInterval(-np.inf, 3.0))
        assert len(chained.parts) == 3
        assert chained.contains(3)
        assert not chained.contains(4)

    def test_existing_part(self):
        part = IntegerInterval(0, 20)
        result = RealInterval(0.0, 10.0).intersect(part)
        assert result.intersect(part) is result


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
