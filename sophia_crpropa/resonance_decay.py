"""Excitation and two-body decay of the nucleon resonances.

The resonance is chosen by its share of the resonant cross section, its decay
channel from branching ratios that depend on the photon energy range (channels
with heavier products open at higher eps_prime), and the polar angle of the
baryon in the CM frame from a resonance specific distribution in cos^2(theta).
"""

import logging
from math import sqrt

from sophia_crpropa.config_file import max_decay_attempts
from sophia_crpropa.cross_sections import (RESONANCES, N_RESONANCES, nucleon_mass,
                                           resonance_cross_sections)
from sophia_crpropa.decays import sample_breit_wigner_mass
from sophia_crpropa.errors import InvalidCodeError, KinematicsError, SamplingExhausted
from sophia_crpropa.kinematics import two_body_momentum
from sophia_crpropa.particle_tables import (MASS, WIDTH, DECAY_THRESHOLD, RESONANCE_PRODUCTS,
                                            PROTON, NEUTRON, name)

logger = logging.getLogger(__name__)

# Isospin decomposition of the channel groups: (share, baryon, meson)
# keyed by (twice the resonance isospin, nucleon)
_ISOSPIN = {
    (1, PROTON): {
        'N pi': [(1. / 3., 13, 6), (2. / 3., 14, 7)],
        'Delta pi': [(1. / 2., 38, 8), (1. / 3., 39, 6), (1. / 6., 40, 7)],
        'N rho': [(1. / 3., 13, 25), (2. / 3., 14, 23)],
        'N eta': [(1., 13, 21)],
        'Lambda K': [(1., 32, 9)],
    },
    (1, NEUTRON): {
        'N pi': [(1. / 3., 14, 6), (2. / 3., 13, 8)],
        'Delta pi': [(1. / 2., 41, 7), (1. / 3., 40, 6), (1. / 6., 39, 8)],
        'N rho': [(1. / 3., 14, 25), (2. / 3., 13, 24)],
        'N eta': [(1., 14, 21)],
        'Lambda K': [(1., 32, 19)],
    },
    (3, PROTON): {
        'N pi': [(2. / 3., 13, 6), (1. / 3., 14, 7)],
        'Delta pi': [(2. / 5., 38, 8), (1. / 15., 39, 6), (8. / 15., 40, 7)],
        'N rho': [(2. / 3., 13, 25), (1. / 3., 14, 23)],
    },
    (3, NEUTRON): {
        'N pi': [(2. / 3., 14, 6), (1. / 3., 13, 8)],
        'Delta pi': [(2. / 5., 41, 7), (1. / 15., 40, 6), (8. / 15., 39, 8)],
        'N rho': [(2. / 3., 14, 25), (1. / 3., 13, 24)],
    },
}

# Branching ratios of the channel groups, one entry per resonance
GROUP_BRANCHING = [
    {'N pi': 1.},
    {'N pi': 0.65, 'Delta pi': 0.35},
    {'N pi': 0.55, 'Delta pi': 0.25, 'N rho': 0.20},
    {'N pi': 0.50, 'N eta': 0.50},
    {'N pi': 0.80, 'N eta': 0.10, 'Lambda K': 0.10},
    {'N pi': 0.45, 'Delta pi': 0.55},
    {'N pi': 0.65, 'Delta pi': 0.20, 'N rho': 0.15},
    {'N pi': 0.15, 'Delta pi': 0.55, 'N rho': 0.30},
    {'N pi': 0.40, 'Delta pi': 0.25, 'N rho': 0.35},
]

# Angular distributions c0 + c2 x^2 + c4 x^4 of x = cos(theta), None for isotropic
ANGULAR_COEFFICIENTS = [
    (5., -3., 0.),
    None,
    (1., 1.5, 0.),
    None,
    None,
    (1., 2., -1.6),
    (1., 6., -5.),
    (1., 0.8, 0.),
    (1., 2.5, -1.8),
]


def _channel_opening(baryon, meson):
    """Lowest CM energy at which a channel is offered, resonant products may
    be produced one width below their table mass."""
    w = MASS[baryon] + MASS[meson]
    for code in (baryon, meson):
        if code in RESONANCE_PRODUCTS:
            w -= WIDTH[code]
    return w


def _build_energy_ranges(ires, nucleon):
    """Energy ranges [(eps_min, channels)] of one resonance, at most three."""
    m = nucleon_mass(nucleon)
    isospin = _ISOSPIN[(RESONANCES[ires].isospin3, nucleon)]
    groups = []
    for group, br in GROUP_BRANCHING[ires].items():
        opening = max(_channel_opening(b, c) for _, b, c in isospin[group])
        eps_open = max(0., (opening * opening - m * m) / (2. * m))
        groups.append((eps_open, br, isospin[group]))

    limits = sorted(set(eps for eps, _, _ in groups))
    if len(limits) > 3:
        raise InvalidCodeError(f'{RESONANCES[ires].name} has more than three energy ranges')

    ranges = []
    for eps_min in limits:
        channels = [(br * share, baryon, meson)
                    for eps, br, split in groups if eps <= eps_min
                    for share, baryon, meson in split]
        ranges.append((eps_min, channels))
    # the lowest range extends down to threshold
    ranges[0] = (0., ranges[0][1])
    return ranges


ENERGY_RANGES = {nucleon: [_build_energy_ranges(i, nucleon) for i in range(N_RESONANCES)]
                 for nucleon in (PROTON, NEUTRON)}


def _angular_bound(coefficients):
    c0, c2, c4 = coefficients
    norm = 2. * c0 + 2. * c2 / 3. + 2. * c4 / 5.
    candidates = [0., 1.]
    if c4 != 0.:
        u = -c2 / (2. * c4)
        if 0. < u < 1.:
            candidates.append(u)
    return max(c0 + c2 * u + c4 * u * u for u in candidates) / norm


ANGULAR_BOUNDS = [None if c is None else _angular_bound(c) for c in ANGULAR_COEFFICIENTS]


def probangle(ires, x):
    """Normalised density of x = cos(theta) for resonance ``ires``."""
    if not 0 <= ires < N_RESONANCES:
        raise InvalidCodeError(f'no angular distribution for resonance index {ires}')
    coefficients = ANGULAR_COEFFICIENTS[ires]
    if coefficients is None:
        return 0.5
    c0, c2, c4 = coefficients
    x2 = x * x
    return (c0 + c2 * x2 + c4 * x2 * x2) / (2. * c0 + 2. * c2 / 3. + 2. * c4 / 5.)


def scatterangle(rng, ires):
    """cos(theta) of the baryon in the CM frame by acceptance-rejection."""
    if not 0 <= ires < N_RESONANCES:
        raise InvalidCodeError(f'no angular distribution for resonance index {ires}')
    bound = ANGULAR_BOUNDS[ires]
    if bound is None:
        bound = 0.5
    for _ in range(max_decay_attempts):
        x = 2. * rng.uniform() - 1.
        if rng.uniform() * bound < probangle(ires, x):
            return x
    raise SamplingExhausted(f'decay angle of {RESONANCES[ires].name}', max_decay_attempts)


def dec_res2(rng, eps_prime, nucleon):
    """Index of the excited resonance, weighted by its cross section."""
    sigmas = resonance_cross_sections(eps_prime, nucleon)
    if sum(sigmas) <= 0.:
        raise KinematicsError(f'no resonance contributes at eps_prime = {eps_prime:.4f} GeV')
    return rng.choose(sigmas)


def dec_proc2(rng, eps_prime, ires, nucleon):
    """Decay channel (baryon, meson) of resonance ``ires``."""
    ranges = ENERGY_RANGES[nucleon][ires]
    channels = ranges[0][1]
    for eps_min, range_channels in ranges:
        if eps_prime >= eps_min:
            channels = range_channels
    _, baryon, meson = channels[rng.choose([br for br, _, _ in channels])]
    return baryon, meson


def product_masses(rng, W, code_a, code_b):
    """Masses of a two-body final state at CM energy W.

    When the table masses do not fit, a resonant product gets a Breit-Wigner
    mass below W minus the partner mass.
    """
    m_a, m_b = MASS[code_a], MASS[code_b]
    if W > m_a + m_b:
        return m_a, m_b
    if code_a in RESONANCE_PRODUCTS:
        m_a = sample_breit_wigner_mass(rng, m_a, WIDTH[code_a], DECAY_THRESHOLD[code_a], W - m_b)
    elif code_b in RESONANCE_PRODUCTS:
        m_b = sample_breit_wigner_mass(rng, m_b, WIDTH[code_b], DECAY_THRESHOLD[code_b], W - m_a)
    else:
        raise KinematicsError(f'W = {W:.4f} GeV below the {name(code_a)} {name(code_b)} threshold')
    return m_a, m_b


def res_decay(rng, eps_prime, nucleon):
    """Resonance excitation and decay in the CM frame, incoming nucleon along +z.

    Returns [(p5, code), (p5, code)] of the baryon and the meson.
    """
    W = sqrt(nucleon_mass(nucleon)**2 + 2. * nucleon_mass(nucleon) * eps_prime)
    ires = dec_res2(rng, eps_prime, nucleon)
    baryon, meson = dec_proc2(rng, eps_prime, ires, nucleon)
    m_a, m_b = product_masses(rng, W, baryon, meson)
    logger.debug('%s -> %s %s at W = %.4f GeV', RESONANCES[ires].name, name(baryon),
                 name(meson), W)

    p = two_body_momentum(W, m_a, m_b)
    x = scatterangle(rng, ires)
    pz = p * x
    pt2 = p * p * (1. - x * x)
    r = rng.uniform()
    px = rng.sign() * sqrt(pt2 * r)
    py = rng.sign() * sqrt(pt2 * (1. - r))

    E_a = sqrt(p * p + m_a * m_a)
    E_b = sqrt(p * p + m_b * m_b)
    return [([px, py, pz, E_a, m_a], baryon), ([-px, -py, -pz, E_b, m_b], meson)]
