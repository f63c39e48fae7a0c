"""Sampling of the photon-nucleon invariant mass and of the interaction mode."""

import logging
from enum import IntEnum
from math import sqrt

import numpy as np
from scipy.integrate import quad

from sophia_crpropa.config_file import max_s_attempts
from sophia_crpropa.cross_sections import (S_THRESHOLD, cross_section_terms, functs,
                                           nucleon_mass)

logger = logging.getLogger(__name__)

# Split point between rejection sampling and the analytic draw, GeV^2
S0 = 10.


class Mode(IntEnum):
    """Interaction modes in the order of the cumulative selection."""
    RESONANCE_DECAY = 1
    DIRECT_N_PI = 2
    DIRECT_DELTA_PI = 3
    DIFFRACTIVE_RHO = 4
    DIFFRACTIVE_OMEGA = 5
    FRAGMENT_RESONANCE_REGION = 6
    FRAGMENT_MULTIPION = 7


def max_invariant_mass2(eps, nucleon, energy):
    """Largest s reachable with a head-on photon of energy eps."""
    m = nucleon_mass(nucleon)
    p = sqrt(max(energy * energy - m * m, 0.))
    return m * m + 2. * eps * (energy + p)


def _integral(nucleon, lo, hi):
    if hi <= lo:
        return 0.
    value, _ = quad(functs, lo, hi, args=(nucleon,), limit=200)
    return value


def sample_s(rng, eps, nucleon, energy):
    """Sample s for a nucleon of lab energy ``energy`` in an isotropic field
    of photons with energy ``eps`` (all GeV).

    Below S0 the weight sigma(s) * (s - m^2) is sampled by rejection, above S0
    the cross section is taken as constant and s is drawn from the inverse
    CDF of (s - m^2). Returns None when the weight vanishes on the whole range.
    """
    m2 = nucleon_mass(nucleon)**2
    smin = S_THRESHOLD
    smax = max(smin, max_invariant_mass2(eps, nucleon, energy))
    if smax - smin <= 1e-8:
        return smin + rng.uniform() * 1e-6

    s0 = min(S0, smax)
    sintegr1 = _integral(nucleon, smin, s0)
    sintegr2 = _integral(nucleon, s0, smax)
    if sintegr1 + sintegr2 <= 0.:
        return None

    quo = sintegr1 / (sintegr1 + sintegr2)
    if rng.uniform() < quo:
        return _sample_rejection(rng, nucleon, smin, s0)

    r = rng.uniform()
    lo, hi = (s0 - m2)**2, (smax - m2)**2
    return m2 + sqrt(lo + r * (hi - lo))


def _sample_rejection(rng, nucleon, smin, s0):
    grid = np.linspace(smin, s0, 400)
    fmax = 1.1 * max(functs(s, nucleon) for s in grid)
    if fmax <= 0.:
        return smin + rng.uniform() * (s0 - smin)

    best_s, best_f = smin, -1.
    for _ in range(max_s_attempts):
        s = smin + rng.uniform() * (s0 - smin)
        f = functs(s, nucleon)
        if rng.uniform() * fmax < f:
            return s
        if f > best_f:
            best_s, best_f = s, f

    logger.warning('invariant mass sampling not accepted after %d attempts, '
                   'using s = %.4f GeV^2', max_s_attempts, best_s)
    return best_s


def scatter_angle(s, eps, nucleon, energy):
    """cos(theta) between nucleon and photon in the lab for given s.

    Values outside [-1, 1] from rounding are clamped.
    """
    m = nucleon_mass(nucleon)
    p = sqrt(max(energy * energy - m * m, 0.))
    if p == 0. or eps == 0.:
        return -1.
    cos_theta = (m * m + 2. * eps * energy - s) / (2. * eps * p)
    if abs(cos_theta) > 1.:
        logger.warning('cos(theta) = %.8f outside [-1, 1], clamped', cos_theta)
        cos_theta = max(-1., min(1., cos_theta))
    return cos_theta


def decide_interaction_mode(rng, eps_prime, nucleon):
    """Pick the interaction mode with one uniform draw against the
    cumulative cross-section fractions."""
    t = cross_section_terms(eps_prime, nucleon)
    total = sum(t)
    if total == 0.:
        total = 1.

    cumulative = np.cumsum([t.resonances, t.direct_n_pi, t.direct_delta_pi,
                            t.diffractive_rho, t.diffractive_omega,
                            t.fragmentation_resonance_region]) / total
    r = rng.uniform()
    for mode, prob in zip(Mode, cumulative):
        if r < prob:
            return mode
    return Mode.FRAGMENT_MULTIPION
