"""Flavour generation of the string breaks.

String ends are colour triplets (quarks, antidiquarks) or antitriplets
(antiquarks, diquarks). A break at an end creates a new quark-antiquark or
diquark-antidiquark pair, one member joins the end into a hadron, the other
becomes the new end of the same colour type. With popcorn switched on a
diquark end may instead give up one quark to a meson, so a meson can appear
between a baryon and its antibaryon.
"""

import logging

from sophia_crpropa.config_file import max_flavour_attempts
from sophia_crpropa.errors import ColourFlowError, InvalidCodeError, SamplingExhausted
from sophia_crpropa.fragmentation.lund_data import (digits, is_quark, is_diquark,
                                                    is_triplet, is_antitriplet)
from sophia_crpropa.particle_tables import PHOTON, PROTON, NEUTRON

logger = logging.getLogger(__name__)

# Pseudoscalar mixing of the flavour diagonal states: (kf, weight)
_DIAGONAL_PSEUDOSCALAR = {
    1: [(111, 0.5), (221, 0.25), (331, 0.25)],
    2: [(111, 0.5), (221, 0.25), (331, 0.25)],
    3: [(221, 0.5), (331, 0.5)],
}
_DIAGONAL_VECTOR = {
    1: [(113, 0.5), (223, 0.5)],
    2: [(113, 0.5), (223, 0.5)],
    3: [(333, 1.)],
}


def pick_quark(rng, strange_fraction):
    """d, u or s with relative weights 1 : 1 : strange_fraction."""
    return 1 + rng.choose((1., 1., strange_fraction))


def diquark_code(q1, q2, spin):
    hi, lo = max(q1, q2), min(q1, q2)
    if hi == lo:
        spin = 1
    return 1000 * hi + 100 * lo + 2 * spin + 1


def diquark_content(kf):
    """Quark flavours and spin of a diquark code."""
    nq1, nq2, _, nj = digits(kf)
    return nq1, nq2, (nj - 1) // 2


def diquark_spin(rng, params):
    # three spin states of a spin 1 diquark
    s1 = 3. * params['spin1_diquark_fraction']
    return 1 if rng.uniform() < s1 / (1. + s1) else 0


def new_diquark(rng, params):
    q1 = pick_quark(rng, params['strange_diquark_fraction'])
    q2 = pick_quark(rng, params['strange_diquark_fraction'])
    if q1 == q2:
        return diquark_code(q1, q2, 1)
    return diquark_code(q1, q2, diquark_spin(rng, params))


def _diagonal_meson(rng, q, vector, params):
    table = _DIAGONAL_VECTOR[q] if vector else _DIAGONAL_PSEUDOSCALAR[q]
    kf = table[rng.choose([w for _, w in table])][0]
    if kf == 221 and rng.uniform() >= params['eta_suppression']:
        return None
    if kf == 331 and rng.uniform() >= params['etaprime_suppression']:
        return None
    return kf


def meson_code(rng, q, a, params):
    """Meson made of quark q and the antiquark of flavour a, None when an
    eta or eta' is rejected by its suppression."""
    strange = 3 in (q, a)
    vector_fraction = params['vector_fraction_strange' if strange else 'vector_fraction_light']
    vector = rng.uniform() < vector_fraction
    if q == a:
        return _diagonal_meson(rng, q, vector, params)

    heavy, light = max(q, a), min(q, a)
    kf = 100 * heavy + 10 * light + (3 if vector else 1)
    # positive for an up-type heavy quark or a down-type heavy antiquark
    if (heavy % 2 == 0) == (heavy == q):
        return kf
    return -kf


def baryon_code(rng, q, diquark, params):
    """Baryon made of quark q and a diquark, SU(6) spin and flavour weights."""
    d1, d2, dspin = diquark_content(diquark)
    a, b, c = sorted((q, d1, d2), reverse=True)

    decuplet = False
    if dspin == 1:
        w = 2. * params['decuplet_suppression']
        decuplet = rng.uniform() < w / (1. + w)
    if a == b == c:
        decuplet = True
    if decuplet:
        return 1000 * a + 100 * b + 10 * c + 4
    if a == b or b == c:
        return 1000 * a + 100 * b + 10 * c + 2

    # uds octet: Lambda or Sigma0
    if {d1, d2} == {1, 2}:
        return 3122 if dspin == 0 else 3212
    p_lambda = 0.75 if dspin == 0 else 0.25
    return 3122 if rng.uniform() < p_lambda else 3212


def _popcorn_meson(rng, sign, diquark, n, params):
    """Break a diquark end: one of its quarks and the antiquark of the new
    pair form a meson, the other quark and n the new diquark end."""
    q1, q2, _ = diquark_content(diquark)
    if rng.uniform() < 0.5:
        q1, q2 = q2, q1
    meson = meson_code(rng, q1, n, params) if sign > 0 else meson_code(rng, n, q1, params)
    if meson is None:
        return None
    return meson, sign * diquark_code(q2, n, diquark_spin(rng, params))


def _try_new_flavour(rng, kf_end, params):
    sign = 1 if kf_end > 0 else -1
    if is_quark(kf_end):
        q = abs(kf_end)
        bf = params['baryon_fraction']
        if rng.uniform() < bf / (1. + bf):
            qq = new_diquark(rng, params)
            return sign * baryon_code(rng, q, qq, params), -sign * qq
        n = pick_quark(rng, params['strange_fraction'])
        meson = meson_code(rng, q, n, params) if sign > 0 else meson_code(rng, n, q, params)
        if meson is None:
            return None
        return meson, sign * n
    if is_diquark(kf_end):
        n = pick_quark(rng, params['strange_fraction'])
        if params['popcorn'] and rng.uniform() < params['popcorn_fraction']:
            return _popcorn_meson(rng, sign, abs(kf_end), n, params)
        return sign * baryon_code(rng, n, abs(kf_end), params), -sign * n
    raise InvalidCodeError(f'KF = {kf_end} is not a string end')


def new_flavour(rng, kf_end, params):
    """Break the string next to the end ``kf_end``.

    Returns (hadron, new end), the new end has the colour type of ``kf_end``.
    """
    for _ in range(max_flavour_attempts):
        result = _try_new_flavour(rng, kf_end, params)
        if result is not None:
            return result
    raise SamplingExhausted(f'flavour next to KF = {kf_end}', max_flavour_attempts)


def combine(rng, kf1, kf2, params):
    """Hadron made of a triplet and an antitriplet end, None for a diquark
    and an antidiquark."""
    if is_triplet(kf1) and is_antitriplet(kf2):
        t, a = kf1, kf2
    elif is_triplet(kf2) and is_antitriplet(kf1):
        t, a = kf2, kf1
    else:
        raise ColourFlowError(f'KF = {kf1} and {kf2} do not form a colour singlet')

    if is_quark(t) and is_quark(a):
        for _ in range(max_flavour_attempts):
            meson = meson_code(rng, t, -a, params)
            if meson is not None:
                return meson
        raise SamplingExhausted(f'meson of KF = {t}, {a}', max_flavour_attempts)
    if is_quark(t):
        return baryon_code(rng, t, a, params)
    if is_quark(a):
        return -baryon_code(rng, -a, -t, params)
    return None


def combine_three(rng, kf1, kf2, kf3, params):
    """Baryon (antibaryon) of three quarks (antiquarks), None otherwise."""
    flavours = (kf1, kf2, kf3)
    if all(is_quark(f) and f > 0 for f in flavours):
        sign = 1
    elif all(is_quark(f) and f < 0 for f in flavours):
        sign = -1
    else:
        return None
    q1, q2, q3 = (abs(f) for f in flavours)
    return sign * baryon_code(rng, q3, diquark_code(q1, q2, diquark_spin(rng, params)), params)


def valences(rng, code):
    """Valence partons (triplet, antitriplet) of an incoming SOPHIA particle."""
    if code == PHOTON:
        q = 2 if rng.uniform() < 0.8 else 1
        return q, -q
    nucleon = abs(code)
    r = rng.uniform()
    if nucleon == PROTON:
        q, qq = (2, 2101) if r < 0.5 else (2, 2103) if r < 2. / 3. else (1, 2203)
    elif nucleon == NEUTRON:
        q, qq = (1, 2101) if r < 0.5 else (1, 2103) if r < 2. / 3. else (2, 1103)
    else:
        raise InvalidCodeError(f'no valence content for code {code}')
    if code < 0:
        return -qq, -q
    return q, qq
