"""Decays of unstable particles in the SOPHIA particle record.

Two-body decays are isotropic, N-body decays (N = 3..10) use Raubold-Lynch
phase space with rejection against a tabulated maximum weight, optionally
multiplied by a matrix element weight (V-A for weak decays, |p1 x p2|^2 for
vector mesons into three pions).
"""

import logging
from math import sqrt, atan, tan, cos, sin, pi

from sophia_crpropa.config_file import max_decay_attempts, max_mass_attempts
from sophia_crpropa.errors import InvalidCodeError, KinematicsError, SamplingExhausted
from sophia_crpropa.kinematics import two_body_momentum, boost, isotropic_two_body
from sophia_crpropa.particle_tables import (MASS, WIDTH, DECAY_THRESHOLD,
                                            RESONANCE_PRODUCTS, decay_channels, name)

logger = logging.getLogger(__name__)

MAX_MULTIPLICITY = 10

# normalisation of the N-body maximum weight, by multiplicity
WEIGHT_NORMALIZATION = {3: 2., 4: 5., 5: 15., 6: 60., 7: 250., 8: 1500., 9: 12000., 10: 120000.}


def sample_breit_wigner_mass(rng, m0, width, mmin, mmax):
    """Truncated non-relativistic Breit-Wigner (Cauchy) mass in [mmin, mmax].

    The range is split into a low tail, a core of +/- 2 widths and a high
    tail. The core is drawn from the exact inverse CDF, the tails from a
    1/(m - m0)^2 envelope followed by an acceptance test.
    """
    if mmax <= mmin:
        raise KinematicsError(f'empty mass range [{mmin:.4f}, {mmax:.4f}]')
    if width <= 0.:
        if not mmin <= m0 <= mmax:
            raise KinematicsError(f'mass {m0:.4f} outside [{mmin:.4f}, {mmax:.4f}]')
        return m0

    half = 0.5 * width
    core_lo, core_hi = max(mmin, m0 - 2. * width), min(mmax, m0 + 2. * width)

    regions = []
    if core_hi > core_lo:
        a_lo, a_hi = atan((core_lo - m0) / half), atan((core_hi - m0) / half)
        regions.append(('core', (a_lo, a_hi), (a_hi - a_lo) / pi))
    if mmin < m0 - 2. * width:
        # distances from the peak to the near and far end of the tail
        d_near, d_far = m0 - min(mmax, m0 - 2. * width), m0 - mmin
        regions.append(('low', (d_near, d_far), half / pi * (1. / d_near - 1. / d_far)))
    if mmax > m0 + 2. * width:
        d_near, d_far = max(mmin, m0 + 2. * width) - m0, mmax - m0
        regions.append(('high', (d_near, d_far), half / pi * (1. / d_near - 1. / d_far)))

    weights = [w for _, _, w in regions]
    for _ in range(max_mass_attempts):
        kind, bounds, _ = regions[rng.choose(weights)]
        r = rng.uniform()
        if kind == 'core':
            a_lo, a_hi = bounds
            return m0 + half * tan(a_lo + r * (a_hi - a_lo))

        d_near, d_far = bounds
        d = 1. / (1. / d_near - r * (1. / d_near - 1. / d_far))
        if rng.uniform() * (d * d + half * half) < d * d:
            return m0 - d if kind == 'low' else m0 + d
    raise SamplingExhausted('Breit-Wigner mass', max_mass_attempts)


def _dot(p, q):
    return p[3] * q[3] - p[0] * q[0] - p[1] * q[1] - p[2] * q[2]


def _isotropic(rng, p):
    cth = 2. * rng.uniform() - 1.
    sth = sqrt(max(0., 1. - cth * cth))
    phi = 2. * pi * rng.uniform()
    return p * sth * cos(phi), p * sth * sin(phi), p * cth


def _weak_weight(M, momenta):
    """V-A weight (P.p3)(p1.p2), normalised to its maximum M^4/16."""
    p1, p2, p3 = momenta[:3]
    w = 16. * M * p3[3] * _dot(p1, p2) / M**4
    return min(1., max(0., w))


def _vector3pi_weight(M, masses, momenta):
    """|p1 x p2|^2 of a vector meson into three pions."""
    p1, p2 = momenta[0], momenta[1]
    cx = p1[1] * p2[2] - p1[2] * p2[1]
    cy = p1[2] * p2[0] - p1[0] * p2[2]
    cz = p1[0] * p2[1] - p1[1] * p2[0]
    p1max = two_body_momentum(M, masses[0], masses[1] + masses[2])
    p2max = two_body_momentum(M, masses[1], masses[0] + masses[2])
    if not p1max or not p2max:
        return 0.
    return min(1., (cx * cx + cy * cy + cz * cz) / (p1max * p2max)**2)


def phase_space(rng, M, masses, matrix_element=None):
    """N-body decay at rest of a mass M into ``masses``.

    The maximum weight is the product of the largest two-body momenta of
    the chain, divided by an empirical factor growing with the multiplicity.
    Returns four-vectors (px, py, pz, E) in the parent rest frame.
    """
    n = len(masses)
    if n == 2:
        pair = isotropic_two_body(rng, M, masses[0], masses[1])
        if pair is None:
            raise KinematicsError(f'two-body decay of M={M:.4f} into {masses} closed')
        return [pair[0][:4], pair[1][:4]]
    if n > MAX_MULTIPLICITY:
        raise KinematicsError(f'{n}-body decays are not supported')

    T = M - sum(masses)
    if T <= 0.:
        raise KinematicsError(f'{n}-body decay of M={M:.4f} into {masses} closed')

    partial = [sum(masses[:k + 1]) for k in range(n)]
    wtmax = 1. / WEIGHT_NORMALIZATION[n]
    for k in range(1, n):
        wtmax *= two_body_momentum(partial[k] + T, partial[k - 1], masses[k])

    for _ in range(max_decay_attempts):
        r = sorted(rng.uniform() for _ in range(n - 2))
        inv = [masses[0]] + [partial[k] + r[k - 1] * T for k in range(1, n - 1)] + [M]

        pcm = []
        wt = 1.
        for k in range(1, n):
            p = two_body_momentum(inv[k], inv[k - 1], masses[k])
            if p is None:
                p = 0.
            pcm.append(p)
            wt *= p
        if rng.uniform() * wtmax >= wt:
            continue

        momenta = _build_momenta(rng, masses, inv, pcm)
        if matrix_element == 'weak':
            if rng.uniform() >= _weak_weight(M, momenta):
                continue
        elif matrix_element == 'vector3pi':
            if rng.uniform() >= _vector3pi_weight(M, masses, momenta):
                continue
        return momenta

    raise SamplingExhausted(f'{n}-body phase space of M={M:.4f}', max_decay_attempts)


def _build_momenta(rng, masses, inv, pcm):
    """Chain of two-body decays inv[k] -> inv[k-1] + masses[k]."""
    qx, qy, qz = _isotropic(rng, pcm[0])
    momenta = [[qx, qy, qz, sqrt(pcm[0]**2 + masses[0]**2)],
               [-qx, -qy, -qz, sqrt(pcm[0]**2 + masses[1]**2)]]
    for k in range(2, len(masses)):
        p = pcm[k - 1]
        qx, qy, qz = _isotropic(rng, p)
        # subsystem inv[k-1] recoils against particle k
        E_sub = sqrt(p * p + inv[k - 1]**2)
        gamma = E_sub / inv[k - 1]
        gbx, gby, gbz = -qx / inv[k - 1], -qy / inv[k - 1], -qz / inv[k - 1]
        momenta = [list(boost(gamma, gbx, gby, gbz, *q)[:4]) for q in momenta]
        momenta.append([qx, qy, qz, sqrt(p * p + masses[k]**2)])
    return momenta


def _daughter_masses(rng, M, daughters, smear):
    masses = [MASS[d] for d in daughters]
    if not smear:
        return masses
    for i, d in enumerate(daughters):
        if d in RESONANCE_PRODUCTS and WIDTH[d] > 0.:
            mmax = M - (sum(masses) - masses[i])
            mmin = DECAY_THRESHOLD[d]
            if mmax > mmin:
                masses[i] = sample_breit_wigner_mass(rng, MASS[d], WIDTH[d], mmin, mmax)
    return masses


def decay_particle(rng, p5, code, smear=False):
    """Decay one particle with five-momentum ``p5``.

    Returns a list of ([px, py, pz, E, m], code) in the frame of ``p5``.
    Channels closed for the particle's actual mass are skipped.
    """
    channels = decay_channels(code)
    if not channels:
        raise InvalidCodeError(f'no decay channels for {name(code)}')
    M = p5[4]
    open_channels = [c for c in channels
                     if len(c[1]) == 1 or sum(MASS[d] for d in c[1]) < M]
    if not open_channels:
        raise KinematicsError(f'{name(code)} of mass {M:.4f} has no open decay channel')

    _, daughters, matrix_element = open_channels[rng.choose([c[0] for c in open_channels])]
    gamma = p5[3] / M
    gbx, gby, gbz = p5[0] / M, p5[1] / M, p5[2] / M

    if len(daughters) == 1:
        return [([p5[0], p5[1], p5[2], p5[3], M], daughters[0])]

    masses = _daughter_masses(rng, M, daughters, smear)
    products = []
    for q, m, d in zip(phase_space(rng, M, masses, matrix_element), masses, daughters):
        px, py, pz, E, _ = boost(gamma, gbx, gby, gbz, q[0], q[1], q[2], q[3])
        products.append(([px, py, pz, E, m], d))
    return products


def decay_all_unstable(record, rng, unstable, smear=False):
    """Decay every unstable entry of ``record`` including daughters of decays,
    then keep only the stable entries."""
    i = 0
    while i < record.n:
        code = int(record.code[i])
        try:
            decays = unstable[code]
        except KeyError:
            raise InvalidCodeError(f'unknown particle code {code} in record') from None
        if decays:
            for p5, d in decay_particle(rng, record.p[i], code, smear):
                record.append(p5, d)
        i += 1

    record.filter(lambda c: not unstable[c])
    return record
