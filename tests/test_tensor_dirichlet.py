"""
Tests for tensor composition, using the TensorDirichlet family.

Tests that:
- The packed layout keeps each slice's parameters contiguous
- Log partition, expectation parameters and Fisher information assemble
  from the per-slice Dirichlet quantities
- Products and conversions preserve the shape conditioner
"""

import numpy as np
import pytest
from scipy import stats
from scipy.linalg import block_diag

from expofam import (
    MEAN,
    Dirichlet,
    ExponentialFamilyDistribution,
    Gamma,
    TensorDirichlet,
    TensorFamily,
    block_entities,
    convert_to_distribution,
    convert_to_entity,
    entropy,
    get_family,
    prod,
)
from expofam.tensor import from_blocks, to_blocks


@pytest.fixture
def alpha():
    return np.array([
        [1.5, 2.0, 0.7],
        [2.5, 0.8, 1.1],
        [3.0, 1.2, 4.0],
    ])


@pytest.fixture
def ef(alpha):
    return convert_to_entity(TensorDirichlet(alpha=alpha))


# ============================================================
# Layout
# ============================================================

class TestLayout:
    def test_packed_order(self):
        alpha = np.array([[1.0, 2.0], [3.0, 4.0]])
        ef = convert_to_entity(TensorDirichlet(alpha=alpha))
        assert ef.conditioner == (2, 2)
        np.testing.assert_array_equal(ef.natural_parameters, [0.0, 2.0, 1.0, 3.0])

    def test_natural_tuple_keeps_shape(self, ef, alpha):
        np.testing.assert_allclose(ef.natural_tuple[0], alpha - 1.0)

    def test_blocks_round_trip(self):
        rng = np.random.default_rng(0)
        arr = rng.normal(size=(3, 2, 4))
        blocks = to_blocks(arr)
        assert blocks.shape == (8, 3)
        np.testing.assert_array_equal(blocks[0], arr[:, 0, 0])
        np.testing.assert_array_equal(blocks[1], arr[:, 0, 1])
        np.testing.assert_array_equal(from_blocks(blocks, arr.shape), arr)

    def test_family_is_tensor(self, ef):
        assert isinstance(ef.family, TensorFamily)
        assert ef.family.base is get_family(Dirichlet)
        assert ef.family.num_blocks(ef.conditioner) == 3

    def test_invalid_conditioners(self):
        with pytest.raises(ValueError):
            ExponentialFamilyDistribution("TensorDirichlet", np.zeros(4), (1, 4))
        with pytest.raises(ValueError):
            ExponentialFamilyDistribution("TensorDirichlet", np.zeros(6), (2, 2))
        with pytest.raises(ValueError):
            ExponentialFamilyDistribution("TensorDirichlet", np.zeros(4), [2, 2])

    def test_round_trip_keeps_shape(self, ef, alpha):
        dist = convert_to_distribution(ef)
        assert dist.shape == alpha.shape
        np.testing.assert_allclose(dist.alpha, alpha)


# ============================================================
# Block assembly
# ============================================================

class TestBlocks:
    def test_block_entities(self, ef, alpha):
        blocks = block_entities(ef)
        assert len(blocks) == 3
        for j, block in enumerate(blocks):
            assert block == convert_to_entity(Dirichlet(alpha=alpha[:, j]))

    def test_block_entities_requires_tensor_family(self):
        with pytest.raises(TypeError):
            block_entities(convert_to_entity(Gamma(shape=2.0, rate=1.0)))

    def test_log_partition_is_sum(self, ef):
        np.testing.assert_allclose(
            ef.log_partition, sum(b.log_partition for b in block_entities(ef)), rtol=1e-12
        )

    def test_expectation_parameters_concatenate(self, ef):
        np.testing.assert_allclose(
            ef.expectation_params,
            np.concatenate([b.expectation_params for b in block_entities(ef)]),
            rtol=1e-12,
        )

    @pytest.mark.parametrize("space", ["natural", MEAN])
    def test_fisher_is_block_diagonal(self, ef, space):
        expected = block_diag(*[b.fisher_information(space) for b in block_entities(ef)])
        fisher = ef.fisher_information(space)
        assert fisher.shape == (9, 9)
        np.testing.assert_allclose(fisher, expected, rtol=1e-12)
        assert fisher[0, 3] == 0.0

    def test_entropy_is_sum(self, ef, alpha):
        expected = sum(stats.dirichlet(alpha[:, j]).entropy() for j in range(3))
        np.testing.assert_allclose(entropy(ef), expected, rtol=1e-10)


# ============================================================
# Density and products
# ============================================================

class TestDensity:
    def test_three_axis_logpdf(self):
        rng = np.random.default_rng(1)
        alpha = rng.uniform(0.5, 3.0, size=(2, 2, 3))
        x = rng.dirichlet([1.0, 1.0], size=(2, 3)).transpose(2, 0, 1)
        ef = convert_to_entity(TensorDirichlet(alpha=alpha))
        assert ef.conditioner == (2, 2, 3)
        expected = sum(
            stats.dirichlet(alpha[:, i, j]).logpdf(x[:, i, j])
            for i in range(2) for j in range(3)
        )
        np.testing.assert_allclose(ef.logpdf(x), expected, rtol=1e-10)

    def test_outside_support(self, ef):
        assert ef.logpdf(np.full((3, 3), 0.5)) == -np.inf
        assert ef.logpdf(np.full((3, 2), 1.0 / 3.0)) == -np.inf

    def test_product_adds_concentrations(self, alpha):
        result = prod(TensorDirichlet(alpha=alpha), TensorDirichlet(alpha=alpha))
        assert isinstance(result, TensorDirichlet)
        np.testing.assert_allclose(result.alpha, 2 * alpha - 1)

    def test_product_matches_block_products(self, ef):
        result = prod(ef, ef)
        for block, product_block in zip(block_entities(ef), block_entities(result)):
            assert product_block == prod(block, block)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
