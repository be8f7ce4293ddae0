"""
Tests for divergences, entropy and the expectation-to-natural solver.
"""

import numpy as np
import pytest
from scipy.special import digamma, gammaln

from expofam import (
    Bernoulli,
    Beta,
    Binomial,
    Dirichlet,
    Erlang,
    ExponentialFamilyDistribution,
    Gamma,
    Laplace,
    MvNormalMeanCovariance,
    NormalMeanVariance,
    PropernessViolation,
    UnsupportedOperation,
    bregman_divergence,
    convert_to_entity,
    entropy,
    expectation_parameters,
    expectation_to_natural,
    kl_divergence,
    prod,
)
from expofam.geometry import mean_fisher_information

from family_cases import CASES, CASE_IDS, case


def gamma_kl(a1, b1, a2, b2):
    """KL(Gamma(a1, b1) || Gamma(a2, b2)) in shape/rate form."""
    return (
        (a1 - a2) * digamma(a1) - gammaln(a1) + gammaln(a2)
        + a2 * (np.log(b1) - np.log(b2)) + a1 * (b2 - b1) / b1
    )


def normal_kl(m1, v1, m2, v2):
    return 0.5 * (np.log(v2 / v1) + (v1 + (m1 - m2) ** 2) / v2 - 1.0)


# ============================================================
# KL divergence
# ============================================================

class TestKLDivergence:
    @pytest.mark.parametrize("name, dist, points", CASES, ids=CASE_IDS)
    def test_zero_for_identical(self, name, dist, points):
        ef = convert_to_entity(dist)
        assert kl_divergence(ef, ef.copy()) == 0.0

    def test_gamma(self):
        p = convert_to_entity(Gamma(shape=2.5, rate=1.5))
        q = convert_to_entity(Gamma(shape=1.2, rate=0.4))
        np.testing.assert_allclose(kl_divergence(p, q), gamma_kl(2.5, 1.5, 1.2, 0.4), rtol=1e-10)
        np.testing.assert_allclose(kl_divergence(q, p), gamma_kl(1.2, 0.4, 2.5, 1.5), rtol=1e-10)

    def test_normal(self):
        p = convert_to_entity(NormalMeanVariance(mean=0.3, var=2.0))
        q = convert_to_entity(NormalMeanVariance(mean=-1.0, var=0.5))
        np.testing.assert_allclose(kl_divergence(p, q), normal_kl(0.3, 2.0, -1.0, 0.5), rtol=1e-10)

    def test_mvnormal(self):
        mu1, cov1 = np.array([0.5, -1.0]), np.array([[2.0, 0.3], [0.3, 1.0]])
        mu2, cov2 = np.array([0.0, 0.5]), np.array([[1.0, -0.2], [-0.2, 0.8]])
        p = convert_to_entity(MvNormalMeanCovariance(mean=mu1, cov=cov1))
        q = convert_to_entity(MvNormalMeanCovariance(mean=mu2, cov=cov2))
        prec2 = np.linalg.inv(cov2)
        diff = mu2 - mu1
        expected = 0.5 * (
            np.trace(prec2 @ cov1) + diff @ prec2 @ diff - 2
            + np.log(np.linalg.det(cov2) / np.linalg.det(cov1))
        )
        np.testing.assert_allclose(kl_divergence(p, q), expected, rtol=1e-10)

    def test_bernoulli(self):
        p = convert_to_entity(Bernoulli(p=0.3))
        q = convert_to_entity(Bernoulli(p=0.6))
        expected = 0.3 * np.log(0.3 / 0.6) + 0.7 * np.log(0.7 / 0.4)
        np.testing.assert_allclose(kl_divergence(p, q), expected, rtol=1e-10)

    @pytest.mark.parametrize("name", ["beta", "dirichlet", "wishart", "laplace"])
    def test_non_negative(self, name):
        _, dist, _ = case(name)
        p = convert_to_entity(dist)
        q = prod(p, p)
        assert bregman_divergence(p, q) > 0.0
        assert bregman_divergence(q, p) > 0.0

    def test_different_families(self):
        with pytest.raises(UnsupportedOperation):
            kl_divergence(convert_to_entity(Gamma(shape=2.0, rate=1.0)),
                          convert_to_entity(Beta(a=2.0, b=1.0)))

    def test_different_conditioners(self):
        with pytest.raises(UnsupportedOperation):
            kl_divergence(convert_to_entity(Binomial(n=4, p=0.5)),
                          convert_to_entity(Binomial(n=5, p=0.5)))

    def test_generic_operand(self):
        a = convert_to_entity(Laplace(loc=0.0, scale=1.0))
        generic = prod(a, Laplace(loc=1.0, scale=1.0))
        with pytest.raises(UnsupportedOperation):
            kl_divergence(generic, a)

    def test_improper_operand(self):
        p = convert_to_entity(Gamma(shape=2.0, rate=1.0))
        q = ExponentialFamilyDistribution("Gamma", [-2.0, -1.0])
        with pytest.raises(PropernessViolation):
            kl_divergence(p, q)


# ============================================================
# Entropy
# ============================================================

class TestEntropy:
    @pytest.mark.parametrize("name", [
        "exponential", "gamma", "erlang", "beta", "bernoulli", "laplace",
        "normal", "mvnormal", "dirichlet", "wishart",
    ])
    def test_matches_scipy(self, name):
        _, dist, _ = case(name)
        np.testing.assert_allclose(
            entropy(convert_to_entity(dist)), dist.to_scipy().entropy(), rtol=1e-8
        )

    def test_normal_closed_form(self):
        ef = convert_to_entity(NormalMeanVariance(mean=1.0, var=3.0))
        np.testing.assert_allclose(entropy(ef), 0.5 * np.log(2 * np.pi * np.e * 3.0))

    @pytest.mark.parametrize("name", ["binomial", "multinomial", "rayleigh"])
    def test_requires_constant_base_measure(self, name):
        _, dist, _ = case(name)
        with pytest.raises(UnsupportedOperation):
            entropy(convert_to_entity(dist))

    def test_improper(self):
        with pytest.raises(PropernessViolation):
            entropy(ExponentialFamilyDistribution("Gamma", [-2.0, -1.0]))


# ============================================================
# Expectation parameters to natural parameters
# ============================================================

class TestExpectationToNatural:
    @pytest.mark.parametrize("dist", [
        Gamma(shape=2.5, rate=1.5),
        NormalMeanVariance(mean=0.7, var=2.0),
        Beta(a=2.0, b=3.5),
        Bernoulli(p=0.3),
        Dirichlet(alpha=[1.5, 2.0, 3.0]),
        Laplace(loc=0.5, scale=1.5),
    ], ids=lambda d: type(d).__name__)
    def test_recovers_natural_parameters(self, dist):
        ef = convert_to_entity(dist)
        result = expectation_to_natural(ef.family, expectation_parameters(ef), ef.conditioner)
        assert isinstance(result, ExponentialFamilyDistribution)
        np.testing.assert_allclose(
            result.natural_parameters, ef.natural_parameters, rtol=1e-5, atol=1e-7
        )

    def test_initial_guess(self):
        ef = convert_to_entity(Gamma(shape=4.0, rate=0.5))
        result = expectation_to_natural(
            "Gamma", ef.expectation_params, theta0=np.array([2.0, -1.0])
        )
        np.testing.assert_allclose(result.natural_parameters, [3.0, -0.5], rtol=1e-5)

    @pytest.mark.parametrize("dist", [
        Erlang(shape=3, scale=0.5),
        MvNormalMeanCovariance(mean=[0.0, 0.0], cov=np.eye(2)),
    ], ids=lambda d: type(d).__name__)
    def test_non_box_domain(self, dist):
        ef = convert_to_entity(dist)
        with pytest.raises(UnsupportedOperation):
            expectation_to_natural(ef.family, ef.expectation_params, ef.conditioner)


def test_mean_fisher_information_shortcut():
    ef = convert_to_entity(Gamma(shape=2.0, rate=1.0))
    np.testing.assert_allclose(mean_fisher_information(ef), ef.fisher_information("mean"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
