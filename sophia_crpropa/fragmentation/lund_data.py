"""Code tables of the fragmentation side.

The fragmentation record uses PDG particle codes for partons and hadrons.
Quark and diquark masses are constituent masses, hadron masses come from the
SOPHIA tables so that a hadron keeps its mass when translated back.
"""

from sophia_crpropa.errors import InvalidCodeError
from sophia_crpropa.particle_tables import MASS, CODE_FROM_PDG, PDG

GLUON = 21
JUNCTION = 88

# d, u, s constituent masses (GeV)
QUARK_MASS = {1: 0.33, 2: 0.33, 3: 0.50}

DIQUARK_MASS = {
    1103: 0.77133,
    2101: 0.57933,
    2103: 0.77133,
    2203: 0.77133,
    3101: 0.80473,
    3103: 0.92953,
    3201: 0.80473,
    3203: 0.92953,
    3303: 1.09361,
}

# three times the charge of d, u, s
_QUARK_CHARGE3 = {1: -1, 2: 2, 3: -1}
_LEPTON_CHARGE3 = {11: -3, 12: 0, 13: -3, 14: 0, 15: -3, 16: 0}

HADRONS = sorted(pdg for pdg in CODE_FROM_PDG if abs(pdg) > 100)

_ALL_CODES = sorted(
    [q * sign for q in QUARK_MASS for sign in (1, -1)]
    + [dq * sign for dq in DIQUARK_MASS for sign in (1, -1)]
    + [GLUON, JUNCTION] + HADRONS)
_COMPRESSED = {kf: i for i, kf in enumerate(_ALL_CODES)}


def digits(kf):
    """PDG digits (n_q1, n_q2, n_q3, n_J) of |kf|."""
    a = abs(kf)
    return (a // 1000) % 10, (a // 100) % 10, (a // 10) % 10, a % 10


def is_quark(kf):
    return 1 <= abs(kf) <= 6


def is_diquark(kf):
    a = abs(kf)
    return 1000 < a < 10000 and (a // 10) % 10 == 0


def is_gluon(kf):
    return kf == GLUON


def is_parton(kf):
    return is_quark(kf) or is_diquark(kf) or kf == GLUON


def is_triplet(kf):
    """Colour triplet string ends: quarks and antidiquarks."""
    return (is_quark(kf) and kf > 0) or (is_diquark(kf) and kf < 0)


def is_antitriplet(kf):
    return (is_quark(kf) and kf < 0) or (is_diquark(kf) and kf > 0)


def charge3(kf):
    """Three times the electric charge, from the PDG digits."""
    a = abs(kf)
    sign = 1 if kf > 0 else -1
    if a in (GLUON, 22, JUNCTION):
        return 0
    if a == 24:
        return 3 * sign
    if a in _LEPTON_CHARGE3:
        return sign * _LEPTON_CHARGE3[a]
    if a <= 6:
        return sign * _QUARK_CHARGE3[a]

    nq1, nq2, nq3, _ = digits(kf)
    if nq1 and not nq3:
        return sign * (_QUARK_CHARGE3[nq1] + _QUARK_CHARGE3[nq2])
    if nq1:
        return sign * (_QUARK_CHARGE3[nq1] + _QUARK_CHARGE3[nq2] + _QUARK_CHARGE3[nq3])
    if nq2 == nq3:
        return 0
    # up-type quark with the heavier digit carries the quark, down-type the antiquark
    if nq2 % 2 == 0:
        return sign * (_QUARK_CHARGE3[nq2] - _QUARK_CHARGE3[nq3])
    return sign * (_QUARK_CHARGE3[nq3] - _QUARK_CHARGE3[nq2])


def baryon3(kf):
    """Three times the baryon number."""
    if is_quark(kf):
        return 1 if kf > 0 else -1
    if is_diquark(kf) or (abs(kf) > 1000 and digits(kf)[2]):
        n = 2 if is_diquark(kf) else 3
        return n if kf > 0 else -n
    return 0


def compress_code(kf):
    """Dense index of a fragmentation code."""
    try:
        return _COMPRESSED[kf]
    except KeyError:
        raise InvalidCodeError(f'no compressed code for KF = {kf}') from None


def pdg_mass(kf):
    a = abs(kf)
    if a in QUARK_MASS:
        return QUARK_MASS[a]
    if a in DIQUARK_MASS:
        return DIQUARK_MASS[a]
    if kf in (GLUON, JUNCTION):
        return 0.
    try:
        return MASS[CODE_FROM_PDG[kf]]
    except KeyError:
        raise InvalidCodeError(f'no mass for KF = {kf}') from None


def lund_get(kf):
    """SOPHIA code of a fragmentation-side hadron code."""
    try:
        return CODE_FROM_PDG[kf]
    except KeyError:
        raise InvalidCodeError(f'KF = {kf} has no SOPHIA code') from None


def lund_put(code):
    """Fragmentation-side code of a SOPHIA code."""
    try:
        return PDG[code]
    except KeyError:
        raise InvalidCodeError(f'SOPHIA code {code} has no KF code') from None
