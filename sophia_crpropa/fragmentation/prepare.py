"""Colour singlet systems of the fragmentation record and collapse of the
systems too small to be fragmented as strings.

Colour flows along ``colour_next`` from the triplet end of a string through
its gluons to the antitriplet end. Closed gluon loops point back to their
start, and the three legs of a junction point to the junction entry.
"""

import logging
from collections import namedtuple
from math import sqrt

from sophia_crpropa.config_file import max_collapse_iterations
from sophia_crpropa.errors import ColourFlowError, KinematicsError, SamplingExhausted
from sophia_crpropa.fragmentation.flavour import new_flavour, combine
from sophia_crpropa.fragmentation.lund_data import (pdg_mass, is_gluon, is_triplet,
                                                    is_antitriplet)
from sophia_crpropa.fragmentation.record import FINAL, JUNCTION_ENTRY
from sophia_crpropa.kinematics import (four_velocity, boost_vector, direction_angles,
                                       invariant_mass2, mass_shell_rescale, two_body_momentum)

logger = logging.getLogger(__name__)

ColourSystem = namedtuple('ColourSystem', ['partons', 'closed', 'junction'])


def system_momentum(record, entries):
    P = [0., 0., 0., 0.]
    for i in entries:
        for k in range(4):
            P[k] += record.p[i, k]
    return P


def _walk(record, start, visited):
    """Follow the colour flow from ``start``.

    Returns the chain and where it ended: -1 at an open end, ``start`` for a
    closed loop, or the index of a junction.
    """
    chain = [start]
    visited.add(start)
    i = start
    for _ in range(record.capacity):
        j = int(record.colour_next[i])
        if j < 0 or j == start:
            return chain, j
        if record.status[j] == JUNCTION_ENTRY:
            return chain, j
        if j in visited:
            raise ColourFlowError(f'colour flow from entry {start} reaches entry {j} twice')
        visited.add(j)
        chain.append(j)
        i = j
    raise ColourFlowError(f'colour flow from entry {start} does not terminate')


def colour_systems(record):
    """Colour singlet systems made of the unfragmented partons."""
    kf = record.kf
    partons = record.active_partons()
    visited = set()
    systems = []
    legs = {}

    for i in partons:
        if i in visited or record.colour_prev[i] >= 0:
            continue
        chain, end = _walk(record, i, visited)
        if end == i:
            raise ColourFlowError(f'colour flow returns to the string end at entry {i}')
        if not is_triplet(kf[chain[0]]):
            raise ColourFlowError(f'string starts at KF = {kf[chain[0]]} (entry {chain[0]})')
        if any(not is_gluon(kf[j]) for j in chain[1:-1]):
            raise ColourFlowError(f'string from entry {i} has a string end inside')
        if end >= 0:
            if len(chain) > 1 and not is_gluon(kf[chain[-1]]):
                raise ColourFlowError(f'junction leg from entry {i} has two string ends')
            legs.setdefault(end, []).append(chain)
            continue
        if len(chain) < 2 or not is_antitriplet(kf[chain[-1]]):
            raise ColourFlowError(f'string from entry {i} has no antitriplet end')
        systems.append(ColourSystem(chain, False, -1))

    for i in partons:
        if i in visited:
            continue
        if not is_gluon(kf[i]):
            raise ColourFlowError(f'KF = {kf[i]} (entry {i}) is not attached to a string')
        chain, end = _walk(record, i, visited)
        if end != i:
            raise ColourFlowError(f'gluon chain from entry {i} is neither a loop nor a string')
        systems.append(ColourSystem(chain, True, -1))

    for j, chains in legs.items():
        if len(chains) != 3:
            raise ColourFlowError(f'junction at entry {j} has {len(chains)} legs')
        systems.append(ColourSystem([k for chain in chains for k in chain], False, j))
    return systems


def _is_small(record, system, params):
    if system.closed or system.junction >= 0 or len(system.partons) != 2:
        return False
    i_a, i_b = system.partons
    threshold = params['collapse_mass'] + pdg_mass(record.kf[i_a]) + pdg_mass(record.kf[i_b])
    return invariant_mass2(system_momentum(record, system.partons)) < threshold * threshold


def prepare_fragmentation(rng, record, params):
    """Collapse small q-qbar and q-qq systems into hadrons until none is left."""
    for _ in range(max_collapse_iterations):
        small = [s for s in colour_systems(record) if _is_small(record, s, params)]
        if not small:
            return
        collapse(rng, record, small[0], params)
    raise SamplingExhausted('collapse of small colour systems', max_collapse_iterations)


def collapse(rng, record, system, params):
    """Turn a two-parton system into two hadrons, or one hadron with the
    excess momentum shuffled to another system or hadron."""
    i_a, i_b = system.partons
    kf_a, kf_b = int(record.kf[i_a]), int(record.kf[i_b])
    P = system_momentum(record, system.partons)
    velocity = four_velocity(P)
    if velocity is None:
        raise KinematicsError(f'colour system at entry {i_a} has no rest frame')
    W = sqrt(invariant_mass2(P))

    hadron1, next_end = new_flavour(rng, kf_a, params)
    hadron2 = combine(rng, next_end, kf_b, params)
    if hadron2 is not None:
        m1, m2 = pdg_mass(hadron1), pdg_mass(hadron2)
        p = two_body_momentum(W, m1, m2)
        if p is not None:
            pa = boost_vector(record.p[i_a], velocity, inverse=True)
            cth, sth, cph, sph = direction_angles(pa[0], pa[1], pa[2])
            ux, uy, uz = sth * cph, sth * sph, cth
            k1 = boost_vector((p * ux, p * uy, p * uz, sqrt(p * p + m1 * m1)), velocity)
            k2 = boost_vector((-p * ux, -p * uy, -p * uz, sqrt(p * p + m2 * m2)), velocity)
            first = record.add(FINAL, hadron1, list(k1) + [m1], mother=i_a)
            record.add(FINAL, hadron2, list(k2) + [m2], mother=i_a)
            record.mark_fragmented(system.partons, first, first + 1)
            logger.debug('system of mass %.3f GeV collapsed into %d %d', W, hadron1, hadron2)
            return

    hadron = combine(rng, kf_a, kf_b, params)
    if hadron is None:
        raise KinematicsError(f'KF = {kf_a} and {kf_b} do not form a hadron')
    _shuffle(record, system, P, hadron, pdg_mass(hadron))


def _partners(record, system):
    groups = [[i] for i in record.final_state()]
    groups += [s.partons for s in colour_systems(record) if s.partons != system.partons]
    return groups


def _shuffle(record, system, P, hadron, m):
    """Put ``hadron`` on its mass shell by exchanging momentum with the
    partner forming the largest invariant mass with the system."""
    candidates = []
    for group in _partners(record, system):
        Q = system_momentum(record, group)
        M_Q2 = invariant_mass2(Q)
        if M_Q2 <= 0.:
            continue
        pair2 = invariant_mass2([P[k] + Q[k] for k in range(4)])
        if pair2 > (m + sqrt(M_Q2))**2:
            candidates.append((pair2, group, Q, sqrt(M_Q2)))
    if not candidates:
        raise KinematicsError(f'no partner to put KF = {hadron} of mass {m:.4f} on shell')

    _, group, Q, M_Q = max(candidates, key=lambda c: c[0])
    k_hadron, k_partner = mass_shell_rescale(P, Q, m, M_Q)
    old_velocity, new_velocity = four_velocity(Q), four_velocity(k_partner)
    for i in group:
        rest = boost_vector(record.p[i], old_velocity, inverse=True)
        q = boost_vector(rest, new_velocity)
        record.p[i, :4] = q

    first = record.add(FINAL, hadron, k_hadron, mother=system.partons[0])
    record.mark_fragmented(system.partons, first, first)
    logger.debug('system collapsed into %d, momentum shuffled with entries %s', hadron, group)
