import pytest

from sophia_crpropa.random_source import RandomSource, truncated_exponential


def test_same_seed_same_stream():
    a, b = RandomSource(7), RandomSource(7)
    assert [a.uniform() for _ in range(20)] == [b.uniform() for _ in range(20)]


def test_reseed_restarts_stream():
    r = RandomSource(3)
    first = [r.uniform() for _ in range(5)]
    r.reseed(3)
    assert [r.uniform() for _ in range(5)] == first


def test_default_seed():
    r = RandomSource()
    r.reseed(11)
    r.reseed()
    assert r.seed == RandomSource().seed


def test_uniform_open_interval(rng):
    values = [rng.uniform() for _ in range(10000)]
    assert all(0. < v < 1. for v in values)


def test_choose_skips_zero_weights(rng):
    picks = {rng.choose([0., 1., 0., 3.]) for _ in range(2000)}
    assert picks == {1, 3}


def test_beta_variate_mean(rng):
    values = [rng.beta_variate(0.5, 2.5) for _ in range(4000)]
    assert all(0. < v < 1. for v in values)
    assert sum(values) / len(values) == pytest.approx(0.5 / 3., abs=0.02)


def test_gamma_variate_small_alpha(rng):
    values = [rng.gamma_variate(0.5) for _ in range(4000)]
    assert sum(values) / len(values) == pytest.approx(0.5, abs=0.05)


def test_truncated_exponential_bounds(rng):
    values = [truncated_exponential(rng, 12., -2., -0.1) for _ in range(2000)]
    assert all(-2. <= v <= -0.1 for v in values)
    # steep slope piles the values up near the upper edge
    assert sorted(values)[len(values) // 2] > -0.3
