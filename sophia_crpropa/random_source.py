"""Shared uniform random number source.

All stochastic decisions of the generator go through ``RandomSource.uniform``,
the derived distributions below consume uniform draws only, so a fixed seed
and identical inputs reproduce an event exactly.
"""

from math import sqrt, log, cos, pi, exp

import numpy as np

from sophia_crpropa.config_file import seed as default_seed
from sophia_crpropa.errors import SamplingExhausted


class RandomSource:
    """Reseedable uniform generator with a fixed default seed."""

    def __init__(self, seed=None):
        self._generator = None
        self._seed = default_seed if seed is None else seed

    @property
    def seed(self):
        return self._seed

    def reseed(self, seed=None):
        """Restart the stream, ``None`` restores the default seed."""
        self._seed = default_seed if seed is None else seed
        self._generator = None

    def uniform(self):
        """Float in the open interval (0, 1)."""
        if self._generator is None:
            self._generator = np.random.Generator(np.random.PCG64(self._seed))
        r = self._generator.random()
        while r == 0.:
            r = self._generator.random()
        return r

    def gauss(self):
        """Standard normal variate (Box-Muller, two uniform draws)."""
        r1 = self.uniform()
        r2 = self.uniform()
        return sqrt(-2. * log(r1)) * cos(2. * pi * r2)

    def exponential(self):
        return -log(self.uniform())

    def gamma_variate(self, alpha, max_attempts=1000):
        """Gamma(alpha, 1) variate, Marsaglia-Tsang for alpha >= 1."""
        if alpha < 1.:
            # boost to alpha + 1 and scale back
            return self.gamma_variate(alpha + 1., max_attempts) * self.uniform()**(1. / alpha)

        d = alpha - 1. / 3.
        c = 1. / sqrt(9. * d)
        for _ in range(max_attempts):
            x = self.gauss()
            v = 1. + c * x
            if v <= 0.:
                continue
            v = v**3
            u = self.uniform()
            if log(u) < 0.5 * x * x + d - d * v + d * log(v):
                return d * v
        raise SamplingExhausted('gamma variate', max_attempts)

    def beta_variate(self, a, b):
        """Beta(a, b) variate from the ratio of two gamma variates."""
        ga = self.gamma_variate(a)
        gb = self.gamma_variate(b)
        return ga / (ga + gb)

    def choose(self, weights):
        """Index drawn with probability proportional to ``weights``.

        The first index whose cumulative weight exceeds the draw is returned,
        a draw falling on the total (rounding) selects the last index.
        """
        total = sum(weights)
        r = self.uniform() * total
        cumulative = 0.
        for i, w in enumerate(weights):
            cumulative += w
            if r < cumulative:
                return i
        return len(weights) - 1

    def sign(self):
        return 1. if self.uniform() < 0.5 else -1.


def truncated_exponential(rng, slope, lo, hi):
    """Variate of exp(slope * t) restricted to [lo, hi] by inverse CDF."""
    r = rng.uniform()
    if slope * (hi - lo) < 1e-8:
        return lo + r * (hi - lo)
    return hi + log(1. - r * (1. - exp(slope * (lo - hi)))) / slope
