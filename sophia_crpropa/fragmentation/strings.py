"""Lund string breaking.

A string between a triplet and an antitriplet end is broken in its rest frame,
with the triplet end along +z. Hadrons are peeled off a randomly chosen end,
each taking a fraction z of the remaining light-cone momentum of that end,
until the remaining mass falls below the stopping mass. The last two hadrons
share the remainder exactly.

Three strings meeting at a junction are broken leg by leg with the same
steps, the junction ends up inside a baryon.
"""

import logging
from math import sqrt

from sophia_crpropa.config_file import max_string_attempts, max_lund_entries
from sophia_crpropa.errors import ColourFlowError, KinematicsError, SamplingExhausted
from sophia_crpropa.fragmentation.flavour import (new_flavour, combine, diquark_code, diquark_spin,
                                                  pick_quark)
from sophia_crpropa.fragmentation.lund_data import pdg_mass, is_gluon, is_triplet
from sophia_crpropa.fragmentation.prepare import system_momentum
from sophia_crpropa.fragmentation.record import FINAL
from sophia_crpropa.fragmentation.zsampling import lund_z, sample_pt
from sophia_crpropa.kinematics import (four_velocity, boost_vector, direction_angles,
                                       invariant_mass2, lambda_function, rotate)

logger = logging.getLogger(__name__)

PLUS, MINUS = 1, -1


def _light_cone_to_p5(side, along, against, px, py, m):
    p_plus, p_minus = (along, against) if side == PLUS else (against, along)
    return [px, py, 0.5 * (p_plus - p_minus), 0.5 * (p_plus + p_minus), m]


def break_string(rng, W, kf_plus, kf_minus, params):
    """One attempt at breaking a string of mass W.

    Returns [(kf, p5)] in the string rest frame ordered from the +z end, or
    None when the attempt is rejected.
    """
    flavour = {PLUS: kf_plus, MINUS: kf_minus}
    pt = {PLUS: (0., 0.), MINUS: (0., 0.)}
    # remaining light-cone momentum along each end
    w = {PLUS: W, MINUS: W}
    produced = {PLUS: [], MINUS: []}
    smearing = 1. + params['stop_smearing'] * (2. * rng.uniform() - 1.)

    while True:
        stop = (params['stop_mass'] + pdg_mass(flavour[PLUS]) + pdg_mass(flavour[MINUS])) * smearing
        qx = pt[PLUS][0] + pt[MINUS][0]
        qy = pt[PLUS][1] + pt[MINUS][1]
        if w[PLUS] * w[MINUS] - qx * qx - qy * qy < stop * stop:
            break
        if len(produced[PLUS]) + len(produced[MINUS]) >= max_lund_entries:
            return None

        side = PLUS if rng.uniform() < 0.5 else MINUS
        hadron, next_end = new_flavour(rng, flavour[side], params)
        px_new, py_new = sample_pt(rng, params['pt_width'])
        hx, hy = pt[side][0] - px_new, pt[side][1] - py_new
        m = pdg_mass(hadron)
        mt2 = m * m + hx * hx + hy * hy
        along = lund_z(rng, next_end, mt2, params) * w[side]
        against = mt2 / along
        w[side] -= along
        w[-side] -= against
        if w[-side] <= 0.:
            return None
        produced[side].append((hadron, _light_cone_to_p5(side, along, against, hx, hy, m)))
        flavour[side] = next_end
        pt[side] = (px_new, py_new)

    # the last two hadrons
    side = PLUS if rng.uniform() < 0.5 else MINUS
    hadron1, next_end = new_flavour(rng, flavour[side], params)
    hadron2 = combine(rng, next_end, flavour[-side], params)
    if hadron2 is None:
        return None
    px_new, py_new = sample_pt(rng, params['pt_width'])
    h1x, h1y = pt[side][0] - px_new, pt[side][1] - py_new
    h2x, h2y = pt[-side][0] + px_new, pt[-side][1] + py_new
    m1, m2 = pdg_mass(hadron1), pdg_mass(hadron2)
    m1t2 = m1 * m1 + h1x * h1x + h1y * h1y
    m2t2 = m2 * m2 + h2x * h2x + h2y * h2y

    ww = w[PLUS] * w[MINUS]
    if ww <= 0. or sqrt(ww) <= sqrt(m1t2) + sqrt(m2t2):
        return None
    x = (ww + m1t2 - m2t2 + sqrt(max(0., lambda_function(ww, m1t2, m2t2)))) / (2. * ww)
    along1 = x * w[side]
    against1 = m1t2 / along1
    along2, against2 = w[-side] - against1, w[side] - along1
    if along2 <= 0. or against2 <= 0.:
        return None
    produced[side].append((hadron1, _light_cone_to_p5(side, along1, against1, h1x, h1y, m1)))
    produced[-side].append((hadron2, _light_cone_to_p5(-side, along2, against2, h2x, h2y, m2)))
    return produced[PLUS] + produced[MINUS][::-1]


def _peel_leg(rng, kf, p, params, smearing):
    """Hadrons taken off a junction leg of momentum p, from its quark end
    towards the junction.

    Returns the hadrons [(kf, p5)] and the flavour left next to the junction,
    or (None, None) when the leg produces too many hadrons.
    """
    cth, sth, cph, sph = direction_angles(p[0], p[1], p[2])
    w = p[3] + sqrt(p[0] * p[0] + p[1] * p[1] + p[2] * p[2])
    flavour = kf
    ptx, pty = 0., 0.
    hadrons = []
    while w > (params['stop_mass'] + pdg_mass(flavour)) * smearing:
        if len(hadrons) >= max_lund_entries:
            return None, None
        hadron, next_end = new_flavour(rng, flavour, params)
        px_new, py_new = sample_pt(rng, params['pt_width'])
        hx, hy = ptx - px_new, pty - py_new
        m = pdg_mass(hadron)
        mt2 = m * m + hx * hx + hy * hy
        along = lund_z(rng, next_end, mt2, params) * w
        against = mt2 / along
        w -= along
        x, y, z = rotate(hx, hy, 0.5 * (along - against), cth, sth, cph, sph)
        hadrons.append((hadron, [x, y, z, 0.5 * (along + against), m]))
        flavour = next_end
        ptx, pty = px_new, py_new
    return hadrons, flavour


def break_junction(rng, legs, params):
    """One attempt at fragmenting three strings meeting at a junction.

    ``legs`` are (kf, p) of the three string ends with momenta in the rest
    frame of the system. The two softest legs are broken from their ends
    towards the junction, their leftover quarks form a diquark which closes
    a last string with the hardest leg. Returns [(kf, p5)] in the same frame,
    or None when the attempt is rejected.
    """
    smearing = 1. + params['stop_smearing'] * (2. * rng.uniform() - 1.)
    # baryon number stays at the junction
    leg_params = dict(params, baryon_fraction=0.)
    legs = sorted(legs, key=lambda leg: leg[1][3])

    hadrons = []
    remainder = [0., 0., 0., 0.]
    ends = []
    for kf, p in legs[:2]:
        produced, end = _peel_leg(rng, kf, p, leg_params, smearing)
        if produced is None:
            return None
        for k in range(4):
            remainder[k] += p[k] - sum(h[k] for _, h in produced)
        hadrons += produced
        ends.append(end)

    sign = 1 if ends[0] > 0 else -1
    diquark = sign * diquark_code(abs(ends[0]), abs(ends[1]), diquark_spin(rng, params))
    kf_last, p_last = legs[2]
    P = [p_last[k] + remainder[k] for k in range(4)]
    if is_triplet(kf_last):
        triplet, antitriplet, p_triplet = kf_last, diquark, p_last
    else:
        triplet, antitriplet, p_triplet = diquark, kf_last, remainder

    velocity = four_velocity(P)
    if velocity is None or P[3] <= 0.:
        return None
    W = sqrt(invariant_mass2(P))
    if W <= pdg_mass(triplet) + pdg_mass(antitriplet):
        return None
    last = break_string(rng, W, triplet, antitriplet, params)
    if last is None:
        return None

    pa = boost_vector(p_triplet, velocity, inverse=True)
    cth, sth, cph, sph = direction_angles(pa[0], pa[1], pa[2])
    for kf, p in last:
        x, y, z = rotate(p[0], p[1], p[2], cth, sth, cph, sph)
        q = boost_vector((x, y, z, p[3]), velocity)
        hadrons.append((kf, [q[0], q[1], q[2], q[3], p[4]]))
    return hadrons


def _junction_legs(record, partons):
    """Split the partons of a junction system into its three legs, each an
    end followed by its gluons."""
    legs = []
    for i in partons:
        if not legs or not is_gluon(int(record.kf[i])):
            legs.append([])
        legs[-1].append(i)
    return legs


def _triplet_side(momenta):
    """Momentum on the triplet side of a string, a gluon in the middle is
    shared between the two sides."""
    n = len(momenta)
    side = [0., 0., 0., 0.]
    for k, p in enumerate(momenta[:(n + 1) // 2]):
        f = 0.5 if n % 2 and k == n // 2 else 1.
        for j in range(4):
            side[j] += f * p[j]
    return side


def _add_hadrons(record, system, hadrons, velocity):
    first = record.n
    for kf, p in hadrons:
        q = boost_vector(p, velocity)
        record.add(FINAL, kf, [q[0], q[1], q[2], q[3], p[4]], mother=system.partons[0])
    record.mark_fragmented(system.partons, first, record.n - 1)
    if system.junction >= 0:
        record.first_daughter[system.junction] = first
        record.last_daughter[system.junction] = record.n - 1
    return list(range(first, record.n))


def fragment_string(rng, record, system, params):
    """Fragment an open string or a closed gluon loop of the record.

    Gluons are absorbed by the side of the string they sit on, a loop is cut
    open at its first gluon into a new quark-antiquark pair.
    """
    partons = system.partons
    P = system_momentum(record, partons)
    velocity = four_velocity(P)
    if velocity is None:
        raise KinematicsError(f'string at entry {partons[0]} has no rest frame')
    W = sqrt(invariant_mass2(P))

    momenta = [record.p[i, :4] for i in partons]
    if system.closed:
        q = pick_quark(rng, params['strange_fraction'])
        kf_a, kf_b = q, -q
        half = 0.5 * record.p[partons[0], :4]
        momenta = [half] + momenta[1:] + [half]
    else:
        kf_a, kf_b = int(record.kf[partons[0]]), int(record.kf[partons[-1]])
    pa = boost_vector(_triplet_side(momenta), velocity, inverse=True)
    cth, sth, cph, sph = direction_angles(pa[0], pa[1], pa[2])

    for _ in range(max_string_attempts):
        hadrons = break_string(rng, W, kf_a, kf_b, params)
        if hadrons is not None:
            break
    else:
        raise SamplingExhausted(f'breaking of a string of mass {W:.3f} GeV', max_string_attempts)

    rotated = []
    for kf, p in hadrons:
        x, y, z = rotate(p[0], p[1], p[2], cth, sth, cph, sph)
        rotated.append((kf, [x, y, z, p[3], p[4]]))
    logger.debug('string of mass %.3f GeV broken into %d hadrons', W, len(hadrons))
    return _add_hadrons(record, system, rotated, velocity)


def fragment_junction(rng, record, system, params):
    """Fragment the three strings of a junction system of the record."""
    P = system_momentum(record, system.partons)
    velocity = four_velocity(P)
    if velocity is None:
        raise KinematicsError(f'junction at entry {system.junction} has no rest frame')
    legs = _junction_legs(record, system.partons)
    if len(legs) != 3:
        raise ColourFlowError(f'junction at entry {system.junction} has {len(legs)} legs')
    legs = [(int(record.kf[leg[0]]), boost_vector(system_momentum(record, leg), velocity,
                                                   inverse=True))
            for leg in legs]

    for _ in range(max_string_attempts):
        hadrons = break_junction(rng, legs, params)
        if hadrons is not None:
            break
    else:
        W = sqrt(invariant_mass2(P))
        raise SamplingExhausted(f'junction system of mass {W:.3f} GeV', max_string_attempts)

    logger.debug('junction system broken into %d hadrons', len(hadrons))
    return _add_hadrons(record, system, hadrons, velocity)
