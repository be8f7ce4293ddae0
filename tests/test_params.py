"""
Tests for the standard distribution value objects.

Tests that each standard distribution:
- Can be constructed with valid values and promotes them
- Is frozen (raises FrozenInstanceError on attribute assignment)
- Supports dataclasses.asdict() and dict-style access
- Rejects invalid parameters with DomainError
"""

import dataclasses
import pytest
import numpy as np

from expofam import DomainError
from expofam.params import (
    Bernoulli,
    Beta,
    Binomial,
    Dirichlet,
    Erlang,
    Exponential,
    Gamma,
    InverseWishart,
    Laplace,
    Multinomial,
    MvNormalMeanCovariance,
    MvNormalMeanPrecision,
    MvNormalWeightedMeanPrecision,
    MvNormalWishart,
    NormalMeanPrecision,
    NormalMeanVariance,
    NormalWeightedMeanPrecision,
    Rayleigh,
    TensorDirichlet,
    Wishart,
)


# ============================================================================
# Univariate distributions
# ============================================================================

class TestExponential:
    def test_construction(self):
        d = Exponential(rate=2.0)
        assert d.rate == 2.0

    def test_frozen(self):
        d = Exponential(rate=2.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            d.rate = 3.0

    def test_asdict(self):
        d = Exponential(rate=2.0)
        assert dataclasses.asdict(d) == {"rate": 2.0}

    def test_slots(self):
        d = Exponential(rate=2.0)
        assert not hasattr(d, "__dict__")

    @pytest.mark.parametrize("rate", [0.0, -1.0, np.inf, np.nan])
    def test_invalid_rate(self, rate):
        with pytest.raises(DomainError):
            Exponential(rate=rate)


class TestGamma:
    def test_construction(self):
        d = Gamma(shape=2.0, rate=1.5)
        assert d.shape == 2.0
        assert d.rate == 1.5

    def test_int_promoted_to_float(self):
        d = Gamma(shape=2, rate=1)
        assert isinstance(d.shape, float)
        assert isinstance(d.rate, float)

    def test_frozen(self):
        d = Gamma(shape=2.0, rate=1.5)
        with pytest.raises(dataclasses.FrozenInstanceError):
            d.shape = 3.0

    def test_dict_access(self):
        d = Gamma(shape=2.0, rate=1.5)
        assert d["shape"] == 2.0
        assert list(d.keys()) == ["shape", "rate"]
        assert dict(d.items()) == {"shape": 2.0, "rate": 1.5}
        assert "rate" in d
        with pytest.raises(KeyError):
            d["scale"]

    def test_params_tuple(self):
        assert Gamma(shape=2.0, rate=1.5).params() == (2.0, 1.5)

    def test_invalid(self):
        with pytest.raises(DomainError):
            Gamma(shape=-1.0, rate=1.0)
        with pytest.raises(ValueError):
            Gamma(shape=1.0, rate=0.0)


class TestErlang:
    def test_integer_shape(self):
        d = Erlang(shape=3.0, scale=0.5)
        assert d.shape == 3
        assert isinstance(d.shape, int)

    @pytest.mark.parametrize("shape", [0, 2.5, True, -1])
    def test_invalid_shape(self, shape):
        with pytest.raises(DomainError):
            Erlang(shape=shape, scale=1.0)


class TestBernoulliAndBinomial:
    def test_bernoulli_bounds_are_valid_values(self):
        assert Bernoulli(p=0.0).p == 0.0
        assert Bernoulli(p=1.0).p == 1.0

    @pytest.mark.parametrize("p", [-0.1, 1.1])
    def test_bernoulli_invalid(self, p):
        with pytest.raises(DomainError):
            Bernoulli(p=p)

    def test_binomial_construction(self):
        d = Binomial(n=5, p=0.3)
        assert d.n == 5
        assert d.p == 0.3

    @pytest.mark.parametrize("n", [0, 2.5, -3])
    def test_binomial_invalid_trials(self, n):
        with pytest.raises(DomainError):
            Binomial(n=n, p=0.5)


class TestOtherUnivariate:
    def test_beta(self):
        d = Beta(a=2.0, b=3.0)
        assert d.params() == (2.0, 3.0)
        with pytest.raises(DomainError):
            Beta(a=0.0, b=1.0)

    def test_laplace(self):
        d = Laplace(loc=-1.0, scale=2.0)
        assert d.loc == -1.0
        with pytest.raises(DomainError):
            Laplace(loc=np.inf, scale=1.0)
        with pytest.raises(DomainError):
            Laplace(loc=0.0, scale=-1.0)

    def test_normal(self):
        d = NormalMeanVariance(mean=1.0, var=4.0)
        assert d.params() == (1.0, 4.0)
        with pytest.raises(DomainError):
            NormalMeanVariance(mean=0.0, var=0.0)

    def test_rayleigh(self):
        assert Rayleigh(scale=2.0).scale == 2.0
        with pytest.raises(DomainError):
            Rayleigh(scale=-2.0)


# ============================================================================
# Multivariate and matrix distributions
# ============================================================================

class TestMvNormalMeanCovariance:
    def test_construction(self):
        d = MvNormalMeanCovariance(mean=[1.0, 2.0], cov=np.eye(2))
        np.testing.assert_array_equal(d.mean, [1.0, 2.0])
        np.testing.assert_array_equal(d.cov, np.eye(2))
        assert d.dim == 2

    def test_frozen_arrays(self):
        d = MvNormalMeanCovariance(mean=[1.0, 2.0], cov=np.eye(2))
        with pytest.raises(dataclasses.FrozenInstanceError):
            d.mean = np.zeros(2)
        with pytest.raises(ValueError):
            d.cov[0, 0] = 5.0

    def test_input_is_copied(self):
        mean = np.array([1.0, 2.0])
        d = MvNormalMeanCovariance(mean=mean, cov=np.eye(2))
        mean[0] = 100.0
        assert d.mean[0] == 1.0

    def test_not_positive_definite(self):
        with pytest.raises(DomainError):
            MvNormalMeanCovariance(mean=[0.0, 0.0], cov=[[1.0, 2.0], [2.0, 1.0]])

    def test_shape_mismatch(self):
        with pytest.raises(DomainError):
            MvNormalMeanCovariance(mean=[0.0, 0.0, 0.0], cov=np.eye(2))

    def test_equality_is_array_aware(self):
        a = MvNormalMeanCovariance(mean=[1.0, 2.0], cov=np.eye(2))
        b = MvNormalMeanCovariance(mean=np.array([1.0, 2.0]), cov=np.eye(2))
        c = MvNormalMeanCovariance(mean=[1.0, 2.0 + 1e-12], cov=np.eye(2))
        assert a == b
        assert a != c
        assert a.isclose(c)


class TestPrecisionParameterizations:
    def test_normal_precision(self):
        d = NormalMeanPrecision(mean=1.0, precision=4)
        assert d.params() == (1.0, 4.0)
        np.testing.assert_allclose(d.to_scipy().var(), 0.25)
        with pytest.raises(DomainError):
            NormalMeanPrecision(mean=0.0, precision=0.0)

    def test_normal_weighted(self):
        d = NormalWeightedMeanPrecision(xi=2.0, precision=4.0)
        np.testing.assert_allclose(d.to_scipy().mean(), 0.5)
        with pytest.raises(DomainError):
            NormalWeightedMeanPrecision(xi=np.nan, precision=1.0)

    @pytest.mark.parametrize("cls", [MvNormalMeanPrecision, MvNormalWeightedMeanPrecision])
    def test_multivariate(self, cls):
        d = cls([1.0, 2.0], np.eye(2))
        assert d.dim == 2
        with pytest.raises(ValueError):
            d.precision[0, 0] = 5.0
        with pytest.raises(DomainError):
            cls([0.0, 0.0, 0.0], np.eye(2))
        with pytest.raises(DomainError):
            cls([0.0, 0.0], [[1.0, 2.0], [2.0, 1.0]])

    def test_weighted_mean_to_scipy(self):
        precision = np.array([[2.0, 0.5], [0.5, 1.0]])
        d = MvNormalWeightedMeanPrecision(xi=[1.0, 1.0], precision=precision)
        frozen = d.to_scipy()
        np.testing.assert_allclose(frozen.mean, np.linalg.solve(precision, [1.0, 1.0]))
        np.testing.assert_allclose(frozen.cov, np.linalg.inv(precision))


class TestMvNormalWishart:
    def test_construction(self):
        d = MvNormalWishart(mean=[0.0, 1.0], scale=np.eye(2), kappa=2, df=3)
        assert d.dim == 2
        assert d.kappa == 2.0
        assert d.df == 3.0
        assert d.precision_marginal() == Wishart(df=3.0, scale=np.eye(2))

    def test_conditional(self):
        d = MvNormalWishart(mean=[0.0, 1.0], scale=np.eye(2), kappa=2.0, df=3.0)
        conditional = d.conditional(np.diag([1.0, 3.0]))
        assert conditional == MvNormalMeanPrecision(mean=[0.0, 1.0], precision=np.diag([2.0, 6.0]))

    @pytest.mark.parametrize("kwargs", [
        dict(mean=[0.0, 0.0], scale=np.eye(2), kappa=0.0, df=3.0),
        dict(mean=[0.0, 0.0], scale=np.eye(2), kappa=1.0, df=1.0),
        dict(mean=[0.0, 0.0, 0.0], scale=np.eye(2), kappa=1.0, df=3.0),
        dict(mean=[0.0, 0.0], scale=-np.eye(2), kappa=1.0, df=3.0),
    ], ids=["kappa", "df", "shape", "scale"])
    def test_invalid(self, kwargs):
        with pytest.raises(DomainError):
            MvNormalWishart(**kwargs)


class TestDirichletAndMultinomial:
    def test_dirichlet(self):
        d = Dirichlet(alpha=[1.0, 2.0, 3.0])
        np.testing.assert_array_equal(d.alpha, [1.0, 2.0, 3.0])

    @pytest.mark.parametrize("alpha", [[1.0], [1.0, -2.0], [[1.0, 2.0], [3.0, 4.0]]])
    def test_dirichlet_invalid(self, alpha):
        with pytest.raises(DomainError):
            Dirichlet(alpha=alpha)

    def test_multinomial(self):
        d = Multinomial(n=4, p=[0.25, 0.75])
        assert d.n == 4
        np.testing.assert_array_equal(d.p, [0.25, 0.75])

    def test_multinomial_must_sum_to_one(self):
        with pytest.raises(DomainError):
            Multinomial(n=4, p=[0.2, 0.2])


class TestWishart:
    @pytest.mark.parametrize("cls", [Wishart, InverseWishart])
    def test_construction(self, cls):
        d = cls(df=3.0, scale=np.eye(2))
        assert d.df == 3.0
        assert d.dim == 2

    @pytest.mark.parametrize("cls", [Wishart, InverseWishart])
    def test_df_lower_bound(self, cls):
        with pytest.raises(DomainError):
            cls(df=0.5, scale=np.eye(2))

    @pytest.mark.parametrize("cls", [Wishart, InverseWishart])
    def test_asymmetric_scale(self, cls):
        with pytest.raises(DomainError):
            cls(df=3.0, scale=[[1.0, 0.5], [0.0, 1.0]])


class TestTensorDirichlet:
    def test_shape_and_slices(self):
        alpha = np.arange(1.0, 7.0).reshape(2, 3)
        d = TensorDirichlet(alpha=alpha)
        assert d.shape == (2, 3)
        slices = list(d.slices())
        assert len(slices) == 3
        np.testing.assert_array_equal(slices[0].alpha, [1.0, 4.0])
        np.testing.assert_array_equal(slices[2].alpha, [3.0, 6.0])

    def test_invalid(self):
        with pytest.raises(DomainError):
            TensorDirichlet(alpha=np.ones((1, 3)))
        with pytest.raises(DomainError):
            TensorDirichlet(alpha=np.zeros((2, 2)))


# ============================================================================
# scipy bridge
# ============================================================================

@pytest.mark.parametrize("dist, x", [
    (Gamma(shape=2.0, rate=3.0), 0.5),
    (Erlang(shape=2, scale=0.5), 0.5),
    (NormalMeanVariance(mean=1.0, var=4.0), 0.0),
    (Laplace(loc=1.0, scale=2.0), -1.0),
    (Rayleigh(scale=2.0), 1.0),
])
def test_to_scipy_parameterization(dist, x):
    """to_scipy() maps the conventional parameters to scipy's conventions."""
    frozen = dist.to_scipy()
    assert np.isfinite(frozen.logpdf(x))
    if isinstance(dist, Gamma):
        np.testing.assert_allclose(frozen.mean(), dist.shape / dist.rate)
    if isinstance(dist, NormalMeanVariance):
        np.testing.assert_allclose(frozen.var(), dist.var)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
