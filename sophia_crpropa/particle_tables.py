"""Static particle tables of the SOPHIA code space.

Antibaryons carry the negated code of the baryon, every other antiparticle
has a code of its own. Masses and widths in GeV.
"""

import logging

from particle import Particle, ParticleNotFound

from sophia_crpropa.errors import InvalidCodeError

logger = logging.getLogger(__name__)

# code, name, PDG id, mass, width, charge, baryon number
_PARTICLES = [
    (1, 'gamma', 22, 0., 0., 0, 0),
    (2, 'e+', -11, 0.51099895e-3, 0., 1, 0),
    (3, 'e-', 11, 0.51099895e-3, 0., -1, 0),
    (4, 'mu+', -13, 0.1056584, 0., 1, 0),
    (5, 'mu-', 13, 0.1056584, 0., -1, 0),
    (6, 'pi0', 111, 0.1349768, 0., 0, 0),
    (7, 'pi+', 211, 0.1395704, 0., 1, 0),
    (8, 'pi-', -211, 0.1395704, 0., -1, 0),
    (9, 'K+', 321, 0.493677, 0., 1, 0),
    (10, 'K-', -321, 0.493677, 0., -1, 0),
    (11, 'K0L', 130, 0.497611, 0., 0, 0),
    (12, 'K0S', 310, 0.497611, 0., 0, 0),
    (13, 'p', 2212, 0.9382721, 0., 1, 1),
    (14, 'n', 2112, 0.9395654, 0., 0, 1),
    (15, 'nu_e', 12, 0., 0., 0, 0),
    (16, 'nu_ebar', -12, 0., 0., 0, 0),
    (17, 'nu_mu', 14, 0., 0., 0, 0),
    (18, 'nu_mubar', -14, 0., 0., 0, 0),
    (19, 'K0', 311, 0.497611, 0., 0, 0),
    (20, 'K0bar', -311, 0.497611, 0., 0, 0),
    (21, 'eta', 221, 0.547862, 0., 0, 0),
    (22, "eta'", 331, 0.95778, 0., 0, 0),
    (23, 'rho+', 213, 0.77526, 0.1491, 1, 0),
    (24, 'rho-', -213, 0.77526, 0.1491, -1, 0),
    (25, 'rho0', 113, 0.77526, 0.1491, 0, 0),
    (26, 'omega', 223, 0.78265, 0.00849, 0, 0),
    (27, 'K*+', 323, 0.89167, 0.0514, 1, 0),
    (28, 'K*-', -323, 0.89167, 0.0514, -1, 0),
    (29, 'K*0', 313, 0.89555, 0.0473, 0, 0),
    (30, 'K*0bar', -313, 0.89555, 0.0473, 0, 0),
    (31, 'phi', 333, 1.019461, 0.004249, 0, 0),
    (32, 'Lambda', 3122, 1.115683, 0., 0, 1),
    (33, 'Sigma+', 3222, 1.18937, 0., 1, 1),
    (34, 'Sigma0', 3212, 1.192642, 0., 0, 1),
    (35, 'Sigma-', 3112, 1.197449, 0., -1, 1),
    (36, 'Xi0', 3322, 1.31486, 0., 0, 1),
    (37, 'Xi-', 3312, 1.32171, 0., -1, 1),
    (38, 'Delta++', 2224, 1.232, 0.117, 2, 1),
    (39, 'Delta+', 2214, 1.232, 0.117, 1, 1),
    (40, 'Delta0', 2114, 1.232, 0.117, 0, 1),
    (41, 'Delta-', 1114, 1.232, 0.117, -1, 1),
    (42, 'Sigma*+', 3224, 1.3828, 0.036, 1, 1),
    (43, 'Sigma*0', 3214, 1.3837, 0.036, 0, 1),
    (44, 'Sigma*-', 3114, 1.3872, 0.0394, -1, 1),
    (45, 'Xi*0', 3324, 1.5318, 0.0091, 0, 1),
    (46, 'Xi*-', 3314, 1.5350, 0.0099, -1, 1),
    (47, 'Omega-', 3334, 1.67245, 0., -1, 1),
    (48, 'W+', 24, 80.377, 2.085, 1, 0),
    (49, 'W-', -24, 80.377, 2.085, -1, 0),
]

PHOTON, POSITRON, ELECTRON, MUON_PLUS, MUON_MINUS = 1, 2, 3, 4, 5
PI0, PI_PLUS, PI_MINUS = 6, 7, 8
PROTON, NEUTRON = 13, 14
K0, K0BAR = 19, 20
DELTA_PP, DELTA_P, DELTA_0, DELTA_M = 38, 39, 40, 41

NAME = {}
PDG = {}
MASS = {}
WIDTH = {}
CHARGE = {}
BARYON = {}

for _code, _name, _pdg, _mass, _width, _charge, _baryon in _PARTICLES:
    NAME[_code] = _name
    PDG[_code] = _pdg
    MASS[_code] = _mass
    WIDTH[_code] = _width
    CHARGE[_code] = _charge
    BARYON[_code] = _baryon
    if _baryon:
        NAME[-_code] = 'anti-' + _name
        PDG[-_code] = -_pdg
        MASS[-_code] = _mass
        WIDTH[-_code] = _width
        CHARGE[-_code] = -_charge
        BARYON[-_code] = -_baryon

CODE_FROM_PDG = {pdg: code for code, pdg in PDG.items()}

# Charge conjugation of the non-baryon codes, baryons conjugate by negation
_MESON_CONJUGATES = [
    (1, 1), (2, 3), (4, 5), (6, 6), (7, 8), (9, 10), (11, 11), (12, 12),
    (15, 16), (17, 18), (19, 20), (21, 21), (22, 22), (23, 24), (25, 25),
    (26, 26), (27, 28), (29, 30), (31, 31), (48, 49),
]
CONJUGATE = {}
for _a, _b in _MESON_CONJUGATES:
    CONJUGATE[_a] = _b
    CONJUGATE[_b] = _a
for _code in list(BARYON):
    if BARYON[_code]:
        CONJUGATE[_code] = -_code

# Decay channels of the particles, their antiparticles use the conjugated
# channels. Entries: (branching ratio, daughters, matrix element)
# Matrix elements: None phase space, 'weak' V-A weight
# (P.p3)(p1.p2), 'vector3pi' weight |p1 x p2|^2
DECAYS = {
    5: [(1., (3, 17, 16), 'weak')],
    6: [(0.98823, (1, 1), None), (0.01174, (2, 3, 1), None)],
    7: [(0.999877, (4, 17), None), (0.000123, (2, 15), None)],
    9: [(0.6356, (4, 17), None), (0.2067, (7, 6), None),
        (0.0558, (7, 7, 8), None), (0.0176, (7, 6, 6), None),
        (0.0507, (6, 2, 15), None), (0.0335, (6, 4, 17), None)],
    11: [(0.1952, (6, 6, 6), None), (0.1254, (7, 8, 6), None),
         (0.2028, (7, 3, 16), None), (0.2027, (8, 2, 15), None),
         (0.1352, (7, 5, 18), None), (0.1352, (8, 4, 17), None)],
    12: [(0.6920, (7, 8), None), (0.3069, (6, 6), None)],
    19: [(0.5, (11,), None), (0.5, (12,), None)],
    21: [(0.3936, (1, 1), None), (0.3257, (6, 6, 6), None),
         (0.2292, (7, 8, 6), None), (0.0422, (7, 8, 1), None)],
    22: [(0.425, (7, 8, 21), None), (0.224, (6, 6, 21), None),
         (0.295, (25, 1), None), (0.0252, (26, 1), None),
         (0.0222, (1, 1), None)],
    23: [(1., (7, 6), None)],
    25: [(1., (7, 8), None)],
    26: [(0.893, (7, 8, 6), 'vector3pi'), (0.0835, (6, 1), None),
         (0.0153, (7, 8), None)],
    27: [(0.667, (19, 7), None), (0.333, (9, 6), None)],
    29: [(0.667, (9, 8), None), (0.333, (19, 6), None)],
    31: [(0.492, (9, 10), None), (0.340, (11, 12), None),
         (0.153, (7, 8, 6), 'vector3pi'), (0.013, (21, 1), None)],
    32: [(0.641, (13, 8), None), (0.359, (14, 6), None)],
    33: [(0.5157, (13, 6), None), (0.4831, (14, 7), None)],
    34: [(1., (32, 1), None)],
    35: [(1., (14, 8), None)],
    36: [(1., (32, 6), None)],
    37: [(1., (32, 8), None)],
    38: [(1., (13, 7), None)],
    39: [(0.667, (13, 6), None), (0.333, (14, 7), None)],
    40: [(0.667, (14, 6), None), (0.333, (13, 8), None)],
    41: [(1., (14, 8), None)],
    42: [(0.87, (32, 7), None), (0.0585, (33, 6), None), (0.0585, (34, 7), None)],
    43: [(0.87, (32, 6), None), (0.0585, (33, 8), None), (0.0585, (35, 7), None)],
    44: [(0.87, (32, 8), None), (0.0585, (35, 6), None), (0.0585, (34, 8), None)],
    45: [(0.333, (36, 6), None), (0.667, (37, 7), None)],
    46: [(0.333, (37, 6), None), (0.667, (36, 8), None)],
    47: [(0.678, (32, 10), None), (0.236, (36, 8), None), (0.086, (37, 6), None)],
    48: [(0.5, (2, 15), None), (0.5, (4, 17), None)],
}

# Products that may be put below their table mass by the resonance and
# two-body channels
RESONANCE_PRODUCTS = frozenset([23, 24, 25, 26, 27, 28, 29, 30, 38, 39, 40, 41])

# K0 and K0bar are not mass eigenstates, they always turn into K0L / K0S
ALWAYS_UNSTABLE = frozenset([19, 20])


def check_code(code):
    if code not in MASS:
        raise InvalidCodeError(f'unknown particle code {code}')
    return code


def mass(code):
    try:
        return MASS[code]
    except KeyError:
        raise InvalidCodeError(f'unknown particle code {code}') from None


def name(code):
    return NAME.get(code, f'<{code}>')


def pdg_id(code):
    try:
        return PDG[code]
    except KeyError:
        raise InvalidCodeError(f'no PDG id for particle code {code}') from None


def from_pdg(pid):
    try:
        return CODE_FROM_PDG[pid]
    except KeyError:
        raise InvalidCodeError(f'PDG id {pid} has no particle code') from None


def conjugate(code):
    try:
        return CONJUGATE[code]
    except KeyError:
        raise InvalidCodeError(f'no charge conjugate for code {code}') from None


def decay_channels(code):
    """Decay channels of ``code``, conjugating the channels of its antiparticle.

    Returns a list of (branching, daughters, matrix element), empty for codes
    without decays.
    """
    if code in DECAYS:
        return DECAYS[code]
    anti = CONJUGATE.get(code)
    if anti is not None and anti != code and anti in DECAYS:
        return [(br, tuple(CONJUGATE[d] for d in daughters), me)
                for br, daughters, me in DECAYS[anti]]
    return []


def _decay_threshold(code):
    channels = decay_channels(code)
    if not channels:
        return None
    return min(sum(MASS[d] for d in daughters) for _, daughters, _ in channels)


DECAY_THRESHOLD = {code: _decay_threshold(code) for code in MASS}


def default_instability():
    """Fresh copy of the default decay flags: everything with a decay table."""
    unstable = {code: bool(decay_channels(code)) for code in MASS}
    return unstable


def declare_pions_stable(unstable, stable=True):
    """Toggle the decay flags of pi0, pi+ and pi-."""
    for code in (PI0, PI_PLUS, PI_MINUS):
        unstable[code] = not stable
    return unstable


def limit_secondaries(unstable, max_lifetime=1e30):
    """Restricts the secondaries to those with a
       lifetime greater than max_lifetime in seconds.

    Particles living shorter than ``max_lifetime`` are flagged unstable,
    provided a decay table exists for them.
    """
    for code, pid in PDG.items():
        if code in ALWAYS_UNSTABLE:
            unstable[code] = True
            continue
        try:
            lifetime = Particle.from_pdgid(pid).lifetime
        except ParticleNotFound:
            logger.warning('%s not in the PDG table, decay flag unchanged', name(code))
            continue

        short_lived = (lifetime is not None) and (lifetime < max_lifetime * 1e9)
        if short_lived and not decay_channels(code):
            logger.warning('%s has no decay channels, kept as stable secondary', name(code))
            unstable[code] = False
        else:
            unstable[code] = short_lived
    return unstable
