"""
Tests for the product algebra.

Tests that:
- Same-conditioner products add natural parameters, so the product density
  is proportional to the product of the factors' densities
- Standard operands give a standard distribution back when the result is
  proper, and an entity otherwise
- Families whose base measure depends on x give a generic product over
  h(x)^2 with summed natural parameters and an exact log partition
- Mismatched conditioners give a generic representation
- Strategies and incompatible operands raise UnsupportedOperation
- log_scale is the log normalizing constant of a product of densities
- prod_inplace writes into an existing buffer
"""

import numpy as np
import pytest
from scipy import stats
from scipy.integrate import quad
from scipy.special import comb, gammaln, logit, logsumexp

from expofam import (
    Beta,
    Binomial,
    Dirichlet,
    Erlang,
    ExponentialFamilyDistribution,
    Gamma,
    GenericExponentialFamily,
    Laplace,
    Multinomial,
    MvNormalMeanCovariance,
    NormalMeanPrecision,
    NormalMeanVariance,
    ProductRegime,
    ProductStrategy,
    PropernessViolation,
    Rayleigh,
    TensorDirichlet,
    UnsupportedOperation,
    convert_to_entity,
    log_scale,
    prod,
    prod_inplace,
    product_regime,
)

from family_cases import CASES, CASE_IDS


def assert_constant(values, rtol=1e-8, atol=1e-8):
    values = np.asarray(values, dtype=float)
    np.testing.assert_allclose(values, values[0], rtol=rtol, atol=atol)


# ============================================================
# Same family, same conditioner
# ============================================================

class TestClosedForm:
    @pytest.mark.parametrize("name, dist, points", CASES, ids=CASE_IDS)
    def test_density_ratio_is_constant(self, name, dist, points):
        """log p(x) - log a(x) - log b(x) does not depend on x."""
        a = convert_to_entity(dist)
        result = prod(a, a)
        np.testing.assert_allclose(result.natural_parameters, 2 * a.natural_parameters)
        ratios = [result.logpdf(x) - a.logpdf(x) - a.logpdf(x) for x in points]
        assert_constant(ratios)

    @pytest.mark.parametrize("name, dist, points", CASES, ids=CASE_IDS)
    def test_named_only_for_constant_base_measure(self, name, dist, points):
        a = convert_to_entity(dist)
        result = prod(a, a)
        if a.family.is_base_measure_constant:
            assert isinstance(result, ExponentialFamilyDistribution)
        else:
            assert isinstance(result, GenericExponentialFamily)

    def test_gamma_unit(self):
        assert prod(Gamma(shape=1.0, rate=1.0), Gamma(shape=1.0, rate=1.0)) == \
            Gamma(shape=1.0, rate=2.0)

    def test_gamma_entities(self):
        a = convert_to_entity(Gamma(shape=1.0, rate=1.0))
        result = prod(a, a)
        assert isinstance(result, ExponentialFamilyDistribution)
        np.testing.assert_array_equal(result.natural_parameters, [0.0, -2.0])
        assert result.to_distribution() == Gamma(shape=1.0, rate=2.0)

    def test_gamma_shapes_combine(self):
        result = prod(Gamma(shape=2.0, rate=1.0), Gamma(shape=3.5, rate=0.5))
        assert result.isclose(Gamma(shape=4.5, rate=1.5))

    def test_erlang_stays_erlang(self):
        result = prod(Erlang(shape=2, scale=1.0), Erlang(shape=3, scale=0.5))
        assert isinstance(result, Erlang)
        assert result.shape == 4
        np.testing.assert_allclose(result.scale, 1.0 / 3.0)

    def test_normal_precisions_add(self):
        result = prod(NormalMeanVariance(mean=0.0, var=1.0),
                      NormalMeanVariance(mean=2.0, var=1.0))
        assert isinstance(result, NormalMeanVariance)
        np.testing.assert_allclose(result.params(), (1.0, 0.5))

    def test_improper_result_stays_entity(self):
        """Two Gamma shapes below 1/2 sum to a shape below zero."""
        result = prod(Gamma(shape=0.3, rate=1.0), Gamma(shape=0.3, rate=1.0))
        assert isinstance(result, ExponentialFamilyDistribution)
        assert not result.is_proper()
        np.testing.assert_allclose(result.natural_parameters, [-1.4, -2.0])

    def test_mixed_operands_return_entity(self):
        a = convert_to_entity(Gamma(shape=2.0, rate=1.0))
        result = prod(a, Gamma(shape=2.0, rate=1.0))
        assert isinstance(result, ExponentialFamilyDistribution)
        np.testing.assert_allclose(result.natural_parameters, [2.0, -2.0])

    def test_mul_operator(self):
        a = convert_to_entity(Beta(a=2.0, b=3.0))
        b = convert_to_entity(Beta(a=1.5, b=1.0))
        assert a * b == prod(a, b)

    def test_dtype_promotion(self):
        a = convert_to_entity(Gamma(shape=2.0, rate=1.0)).astype(np.float32)
        b = convert_to_entity(Gamma(shape=2.0, rate=1.0))
        assert prod(a, a).dtype == np.float32
        assert prod(a, b).dtype == np.float64


# ============================================================
# Same conditioner, base measure depending on x
# ============================================================

class TestSquaredBaseMeasure:
    def test_binomial_same_trials(self):
        a = convert_to_entity(Binomial(n=5, p=0.3))
        b = convert_to_entity(Binomial(n=5, p=0.4))
        result = prod(a, b)
        assert isinstance(result, GenericExponentialFamily)
        assert result.conditioners == (5, 5)
        np.testing.assert_allclose(result.natural_parameters, [logit(0.3) + logit(0.4)])
        assert_constant([
            result.logpdf(x) - a.logpdf(x) - b.logpdf(x) for x in range(6)
        ])

    def test_binomial_normalizes(self):
        result = prod(Binomial(n=5, p=0.3), Binomial(n=5, p=0.4))
        total = sum(result.pdf(x) for x in range(6))
        np.testing.assert_allclose(total, 1.0, rtol=1e-12)

    def test_binomial_log_partition(self):
        eta = logit(0.3) + logit(0.4)
        expected = logsumexp([2 * np.log(comb(5, x)) + eta * x for x in range(6)])
        result = prod(Binomial(n=5, p=0.3), Binomial(n=5, p=0.4))
        np.testing.assert_allclose(result.log_partition, expected, rtol=1e-12)

    def test_binomial_closed_strategy(self):
        result = prod(Binomial(n=5, p=0.3), Binomial(n=5, p=0.4), strategy="closed")
        assert isinstance(result, GenericExponentialFamily)
        np.testing.assert_allclose(result.natural_parameters, [logit(0.3) + logit(0.4)])

    def test_rayleigh_density_ratio(self):
        a = convert_to_entity(Rayleigh(scale=1.0))
        result = prod(a, a)
        assert_constant([
            result.logpdf(x) - 2 * a.logpdf(x) for x in [0.2, 1.0, 2.5]
        ])

    def test_rayleigh_log_partition(self):
        """int_0^inf x^2 exp(-x^2) dx = sqrt(pi)/4."""
        result = prod(Rayleigh(scale=1.0), Rayleigh(scale=1.0))
        np.testing.assert_allclose(result.natural_parameters, [-1.0])
        np.testing.assert_allclose(result.log_partition, np.log(np.sqrt(np.pi) / 4))
        total, _ = quad(result.pdf, 0.0, np.inf)
        np.testing.assert_allclose(total, 1.0, rtol=1e-8)

    def test_multinomial_log_partition(self):
        p, q = np.array([0.2, 0.3, 0.5]), np.array([0.5, 0.25, 0.25])
        eta = np.log(p) + np.log(q)
        terms = []
        for i in range(6):
            for j in range(6 - i):
                x = np.array([i, j, 5 - i - j])
                log_h = gammaln(6) - gammaln(x + 1).sum()
                terms.append(2 * log_h + eta @ x)
        result = prod(Multinomial(n=5, p=p), Multinomial(n=5, p=q))
        assert isinstance(result, GenericExponentialFamily)
        np.testing.assert_allclose(result.log_partition, logsumexp(terms), rtol=1e-10)

    def test_multinomial_density_ratio(self):
        a = convert_to_entity(Multinomial(n=4, p=[0.1, 0.6, 0.3]))
        b = convert_to_entity(Multinomial(n=4, p=[0.4, 0.4, 0.2]))
        result = prod(a, b)
        points = [np.array([4, 0, 0]), np.array([1, 2, 1]), np.array([0, 1, 3])]
        assert_constant([result.logpdf(x) - a.logpdf(x) - b.logpdf(x) for x in points])


# ============================================================
# Same family, different conditioners
# ============================================================

class TestMismatchedConditioners:
    def test_binomial_gives_generic(self):
        result = prod(Binomial(n=5, p=0.3), Binomial(n=7, p=0.6))
        assert isinstance(result, GenericExponentialFamily)
        assert result.conditioners == (5, 7)
        np.testing.assert_allclose(result.natural_parameters, [logit(0.3), logit(0.6)])

    def test_binomial_density_ratio_is_constant(self):
        a = convert_to_entity(Binomial(n=5, p=0.3))
        b = convert_to_entity(Binomial(n=7, p=0.6))
        result = prod(a, b)
        assert_constant([
            result.logpdf(x) - a.logpdf(x) - b.logpdf(x) for x in range(6)
        ])

    def test_binomial_support_is_intersection(self):
        result = prod(Binomial(n=5, p=0.3), Binomial(n=7, p=0.6))
        assert result.insupport(5)
        assert not result.insupport(6)
        assert result.logpdf(6) == -np.inf
        total = sum(result.pdf(x) for x in range(6))
        np.testing.assert_allclose(total, 1.0, rtol=1e-12)

    def test_laplace_log_partition(self):
        """Laplace(0, 1) x Laplace(1, 1): Z = 2/e."""
        result = prod(Laplace(loc=0.0, scale=1.0), Laplace(loc=1.0, scale=1.0))
        assert isinstance(result, GenericExponentialFamily)
        np.testing.assert_allclose(result.log_partition, np.log(2.0) - 1.0, rtol=1e-12)

    def test_laplace_density_ratio_is_constant(self):
        a = convert_to_entity(Laplace(loc=0.0, scale=1.0))
        b = convert_to_entity(Laplace(loc=2.0, scale=0.5))
        result = prod(a, b)
        assert_constant([
            result.logpdf(x) - a.logpdf(x) - b.logpdf(x)
            for x in [-3.0, 0.0, 0.7, 2.0, 5.0]
        ])

    def test_generic_result_is_order_aware(self):
        a = convert_to_entity(Laplace(loc=0.0, scale=1.0))
        b = convert_to_entity(Laplace(loc=2.0, scale=0.5))
        ab, ba = prod(a, b), prod(b, a)
        assert ab.conditioners == (0.0, 2.0)
        assert ba.conditioners == (2.0, 0.0)
        np.testing.assert_allclose(ab.log_partition, ba.log_partition, rtol=1e-12)

    def test_multinomial_trials_mismatch(self):
        p = [0.2, 0.3, 0.5]
        with pytest.raises(UnsupportedOperation):
            prod(Multinomial(n=3, p=p), Multinomial(n=4, p=p))

    def test_tensor_dirichlet_shape_mismatch(self):
        with pytest.raises(UnsupportedOperation):
            prod(TensorDirichlet(alpha=np.ones((2, 2))),
                 TensorDirichlet(alpha=np.ones((2, 3))))


# ============================================================
# Strategies and errors
# ============================================================

class TestStrategies:
    def test_closed_rejects_mismatch(self):
        with pytest.raises(UnsupportedOperation):
            prod(Laplace(loc=0.0, scale=1.0), Laplace(loc=1.0, scale=1.0),
                 strategy=ProductStrategy.CLOSED)

    def test_closed_accepts_match(self):
        result = prod(Laplace(loc=0.0, scale=1.0), Laplace(loc=0.0, scale=1.0),
                      strategy="closed")
        assert result == Laplace(loc=0.0, scale=0.5)

    def test_generic_with_equal_conditioners(self):
        a = convert_to_entity(Laplace(loc=0.0, scale=1.0))
        b = convert_to_entity(Laplace(loc=0.0, scale=2.0))
        generic = prod(a, b, strategy=ProductStrategy.GENERIC)
        closed = prod(a, b)
        assert isinstance(generic, GenericExponentialFamily)
        np.testing.assert_allclose(generic.log_partition, closed.log_partition, rtol=1e-12)
        for x in [-1.0, 0.0, 2.5]:
            np.testing.assert_allclose(generic.logpdf(x), closed.logpdf(x), rtol=1e-10)

    def test_generic_rejects_non_interval_support(self):
        a = TensorDirichlet(alpha=np.ones((2, 2)))
        with pytest.raises(UnsupportedOperation):
            prod(a, a, strategy=ProductStrategy.GENERIC)

    def test_generic_rejects_simplex(self):
        a = Dirichlet(alpha=[1.5, 2.0, 3.0])
        with pytest.raises(UnsupportedOperation):
            prod(a, a, strategy=ProductStrategy.GENERIC)

    def test_generic_multinomial_equal_trials(self):
        a = Multinomial(n=5, p=[0.2, 0.3, 0.5])
        b = Multinomial(n=5, p=[0.5, 0.25, 0.25])
        generic = prod(a, b, strategy=ProductStrategy.GENERIC)
        matched = prod(a, b)
        assert generic.natural_parameters.size == 6
        np.testing.assert_allclose(generic.log_partition, matched.log_partition, rtol=1e-12)
        x = np.array([1, 2, 2])
        np.testing.assert_allclose(generic.logpdf(x), matched.logpdf(x), rtol=1e-10)

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            prod(Gamma(shape=1.0, rate=1.0), Gamma(shape=1.0, rate=1.0), strategy="fast")

    def test_incompatible_families(self):
        with pytest.raises(UnsupportedOperation):
            prod(Gamma(shape=2.0, rate=1.0), Beta(a=2.0, b=2.0))

    def test_unsupported_operation_is_type_error(self):
        with pytest.raises(TypeError):
            prod(Gamma(shape=2.0, rate=1.0), Erlang(shape=2, scale=1.0))


class TestProductRegime:
    def test_same_conditioner(self):
        a = convert_to_entity(Binomial(n=5, p=0.3))
        b = convert_to_entity(Binomial(n=5, p=0.7))
        assert product_regime(a, b) is ProductRegime.SAME_FAMILY_SAME_CONDITIONER

    def test_different_conditioner(self):
        a = convert_to_entity(Binomial(n=5, p=0.3))
        b = convert_to_entity(Binomial(n=6, p=0.7))
        assert product_regime(a, b) is ProductRegime.SAME_FAMILY_DIFFERENT_CONDITIONER

    def test_incompatible(self):
        a = convert_to_entity(Gamma(shape=2.0, rate=1.0))
        b = convert_to_entity(Beta(a=2.0, b=2.0))
        assert product_regime(a, b) is ProductRegime.INCOMPATIBLE_FAMILY

    def test_generic_operand(self):
        a = convert_to_entity(Laplace(loc=0.0, scale=1.0))
        generic = prod(a, Laplace(loc=1.0, scale=1.0))
        assert product_regime(generic, a) is ProductRegime.SAME_FAMILY_DIFFERENT_CONDITIONER


# ============================================================
# Log-scale of a product
# ============================================================

def normal_log_scale(m1, v1, m2, v2):
    return -(np.log(v1 + v2) + np.log(2 * np.pi)) / 2 - (m1 - m2) ** 2 / (2 * (v1 + v2))


class TestLogScale:
    @pytest.mark.parametrize("m1, v1, m2, v2", [
        (0.0, 1.0, 0.0, 1.0),
        (1.5, 0.3, -2.0, 4.0),
        (-3.0, 10.0, 0.5, 0.01),
    ])
    def test_normal(self, m1, v1, m2, v2):
        result = log_scale(NormalMeanVariance(mean=m1, var=v1),
                           NormalMeanVariance(mean=m2, var=v2))
        np.testing.assert_allclose(result, normal_log_scale(m1, v1, m2, v2), rtol=1e-12)

    def test_normal_across_forms(self):
        result = log_scale(NormalMeanPrecision(mean=1.5, precision=2.0),
                           NormalMeanVariance(mean=-0.5, var=1.0))
        np.testing.assert_allclose(result, normal_log_scale(1.5, 0.5, -0.5, 1.0), rtol=1e-12)

    def test_mvnormal(self):
        cov1 = np.array([[2.0, 0.3], [0.3, 1.0]])
        cov2 = np.array([[0.5, -0.1], [-0.1, 0.7]])
        m1, m2 = np.array([0.5, -1.0]), np.array([1.0, 2.0])
        result = log_scale(MvNormalMeanCovariance(mean=m1, cov=cov1),
                           MvNormalMeanCovariance(mean=m2, cov=cov2))
        expected = stats.multivariate_normal(m2, cov1 + cov2).logpdf(m1)
        np.testing.assert_allclose(result, expected, rtol=1e-10)

    def test_gamma(self):
        a1, b1, a2, b2 = 2.0, 1.0, 3.5, 0.5
        expected = (a1 * np.log(b1) + a2 * np.log(b2) - gammaln(a1) - gammaln(a2)
                    + gammaln(a1 + a2 - 1) - (a1 + a2 - 1) * np.log(b1 + b2))
        result = log_scale(Gamma(shape=a1, rate=b1), Gamma(shape=a2, rate=b2))
        np.testing.assert_allclose(result, expected, rtol=1e-12)

    def test_binomial_same_trials(self):
        a, b = Binomial(n=5, p=0.3), Binomial(n=5, p=0.4)
        expected = logsumexp([
            a.to_scipy().logpmf(x) + b.to_scipy().logpmf(x) for x in range(6)
        ])
        np.testing.assert_allclose(log_scale(a, b), expected, rtol=1e-12)

    def test_laplace_mismatched(self):
        a, b = Laplace(loc=0.0, scale=1.0), Laplace(loc=2.0, scale=0.5)
        total, _ = quad(lambda x: a.to_scipy().pdf(x) * b.to_scipy().pdf(x),
                        -np.inf, np.inf, points=[0.0, 2.0])
        np.testing.assert_allclose(log_scale(a, b), np.log(total), rtol=1e-8)

    def test_not_integrable(self):
        """x^-0.7 e^-x squared is not integrable at zero."""
        assert log_scale(Gamma(shape=0.3, rate=1.0), Gamma(shape=0.3, rate=1.0)) == np.inf

    def test_improper_operand(self):
        improper = ExponentialFamilyDistribution("Gamma", [-2.0, -1.0])
        with pytest.raises(PropernessViolation):
            log_scale(improper, Gamma(shape=2.0, rate=1.0))


# ============================================================
# In-place products
# ============================================================

class TestProdInplace:
    def test_writes_into_buffer(self):
        a = convert_to_entity(Gamma(shape=2.0, rate=1.0))
        b = convert_to_entity(Gamma(shape=3.0, rate=2.0))
        out = a.similar()
        result = prod_inplace(out, a, b)
        assert result is out
        assert out == prod(a, b)

    def test_out_may_alias_operand(self):
        a = convert_to_entity(Beta(a=2.0, b=3.0))
        b = convert_to_entity(Beta(a=1.5, b=4.0))
        buffer = a.natural_parameters
        prod_inplace(a, a, b)
        assert a.natural_parameters is buffer
        np.testing.assert_allclose(a.natural_parameters, [1.5, 5.0])

    def test_rejects_squared_base_measure(self):
        a = convert_to_entity(Binomial(n=4, p=0.3))
        b = convert_to_entity(Binomial(n=4, p=0.6))
        with pytest.raises(UnsupportedOperation):
            prod_inplace(a.similar(), a, b)

    def test_rejects_mismatched_conditioners(self):
        a = convert_to_entity(Binomial(n=4, p=0.3))
        b = convert_to_entity(Binomial(n=5, p=0.6))
        with pytest.raises(UnsupportedOperation):
            prod_inplace(a.similar(), a, b)

    def test_rejects_wrong_buffer_family(self):
        a = convert_to_entity(Gamma(shape=2.0, rate=1.0))
        out = convert_to_entity(Beta(a=2.0, b=2.0))
        with pytest.raises(ValueError):
            prod_inplace(out, a, a)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
