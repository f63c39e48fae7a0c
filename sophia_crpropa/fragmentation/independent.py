"""Independent fragmentation.

Every parton of a colour system fragments on its own into a jet of hadrons
along its direction. The flavours left at the jet ends are joined into extra
hadrons, then momenta are shifted to cancel the total three-momentum and
scaled to reproduce the system energy in its rest frame.
"""

import logging
from math import sqrt

from sophia_crpropa.config_file import max_string_attempts, max_rescale_iterations, max_lund_entries
from sophia_crpropa.errors import KinematicsError, SamplingExhausted
from sophia_crpropa.fragmentation.flavour import new_flavour, combine, combine_three, pick_quark
from sophia_crpropa.fragmentation.lund_data import pdg_mass, is_gluon, is_triplet
from sophia_crpropa.fragmentation.prepare import system_momentum
from sophia_crpropa.fragmentation.record import FINAL
from sophia_crpropa.fragmentation.zsampling import lund_z, sample_pt
from sophia_crpropa.kinematics import (four_velocity, boost_vector, direction_angles,
                                       invariant_mass2, rotate)

logger = logging.getLogger(__name__)

ENERGY, TRANSVERSE_MASS, UNIFORM = 1, 2, 3


def _jet(rng, flavour, p, hadrons, params):
    """Hadrons along the direction of a parton of momentum p, returns the
    flavour left at the end of the jet."""
    cth, sth, cph, sph = direction_angles(p[0], p[1], p[2])
    w = p[3] + sqrt(p[0] * p[0] + p[1] * p[1] + p[2] * p[2])
    ptx, pty = 0., 0.
    while w > params['independent_cutoff']:
        if len(hadrons) >= max_lund_entries:
            return None
        hadron, next_end = new_flavour(rng, flavour, params)
        px_new, py_new = sample_pt(rng, params['pt_width'])
        hx, hy = ptx - px_new, pty - py_new
        m = pdg_mass(hadron)
        mt2 = m * m + hx * hx + hy * hy
        p_plus = lund_z(rng, next_end, mt2, params) * w
        p_minus = mt2 / p_plus
        w -= p_plus
        x, y, z = rotate(hx, hy, 0.5 * (p_plus - p_minus), cth, sth, cph, sph)
        hadrons.append((hadron, [x, y, z, 0.5 * (p_plus + p_minus), m]))
        flavour = next_end
        ptx, pty = px_new, py_new
    return flavour


def fragment_jets(rng, kfs, momenta, params):
    """Jets of all partons plus the hadrons joining their end flavours.

    Returns [(kf, p5)] or None when the end flavours cannot be joined.
    """
    hadrons = []
    triplets, antitriplets = [], []
    for kf, p in zip(kfs, momenta):
        if is_gluon(kf):
            q = pick_quark(rng, params['strange_fraction'])
            kf = q if rng.uniform() < 0.5 else -q
            # the partner of the gluon's flavour stays behind at the jet origin
            (antitriplets if kf > 0 else triplets).append(-kf)
        end = _jet(rng, kf, p, hadrons, params)
        if end is None:
            return None
        (triplets if is_triplet(end) else antitriplets).append(end)

    while triplets and antitriplets:
        kf = combine(rng, triplets.pop(), antitriplets.pop(), params)
        if kf is None:
            return None
        m = pdg_mass(kf)
        hadrons.append((kf, [0., 0., 0., m, m]))
    left = triplets or antitriplets
    if len(left) == 3:
        kf = combine_three(rng, left[0], left[1], left[2], params)
        if kf is None:
            return None
        m = pdg_mass(kf)
        hadrons.append((kf, [0., 0., 0., m, m]))
    elif left:
        return None
    return hadrons


def compensate(hadrons, W, scheme):
    """Restore p = 0 and E = W in the system rest frame.

    The missing three-momentum is shared in proportion to the hadron energy
    (ENERGY), transverse mass (TRANSVERSE_MASS) or equally (UNIFORM), then all
    three-momenta are scaled by a common factor found by Newton iteration.
    Returns False when no solution is found.
    """
    if len(hadrons) < 2 or sum(h[4] for _, h in hadrons) >= W:
        return False
    if scheme == ENERGY:
        weights = [h[3] for _, h in hadrons]
    elif scheme == TRANSVERSE_MASS:
        weights = [sqrt(h[4]**2 + h[0]**2 + h[1]**2) for _, h in hadrons]
    else:
        weights = [1.] * len(hadrons)
    norm = sum(weights)
    total = [sum(h[k] for _, h in hadrons) for k in range(3)]
    for (_, h), w in zip(hadrons, weights):
        for k in range(3):
            h[k] -= total[k] * w / norm

    p2 = [h[0]**2 + h[1]**2 + h[2]**2 for _, h in hadrons]
    m2 = [h[4]**2 for _, h in hadrons]
    alpha = 1.
    for _ in range(max_rescale_iterations):
        energies = [sqrt(m + alpha * alpha * q) for m, q in zip(m2, p2)]
        f = sum(energies) - W
        if abs(f) < 1e-10 * W:
            break
        df = sum(alpha * q / e for q, e in zip(p2, energies))
        if df <= 0.:
            return False
        alpha -= f / df
    else:
        return False

    for (_, h), m, q in zip(hadrons, m2, p2):
        for k in range(3):
            h[k] *= alpha
        h[3] = sqrt(m + alpha * alpha * q)
    return True


def fragment_independent(rng, record, system, params):
    """Fragment a colour system of the record with independent jets."""
    partons = system.partons
    P = system_momentum(record, partons)
    velocity = four_velocity(P)
    if velocity is None:
        raise KinematicsError(f'colour system at entry {partons[0]} has no rest frame')
    W = sqrt(invariant_mass2(P))
    kfs = [int(record.kf[i]) for i in partons]
    rest = [boost_vector(record.p[i], velocity, inverse=True) for i in partons]

    for _ in range(max_string_attempts):
        hadrons = fragment_jets(rng, kfs, rest, params)
        if hadrons is not None and compensate(hadrons, W, params['compensation_scheme']):
            break
    else:
        raise SamplingExhausted(f'independent fragmentation of mass {W:.3f} GeV',
                                max_string_attempts)

    first = record.n
    for kf, h in hadrons:
        q = boost_vector(h, velocity)
        record.add(FINAL, kf, [q[0], q[1], q[2], q[3], h[4]], mother=partons[0])
    record.mark_fragmented(partons, first, record.n - 1)
    if system.junction >= 0:
        record.first_daughter[system.junction] = first
        record.last_daughter[system.junction] = record.n - 1
    logger.debug('%d partons fragmented independently into %d hadrons', len(partons), len(hadrons))
    return list(range(first, record.n))
