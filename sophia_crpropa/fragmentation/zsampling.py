"""Lund symmetric fragmentation function and hadron transverse momentum.

f(z) = z^-c (1 - z)^a exp(-b mT^2 / z)

Sampling uses a flat envelope, except for distributions peaked at small z
(zmax < 0.1), where the envelope is flat below zdiv = 2.75 zmax and falls
like 1/z above, and for distributions peaked near 1 (zmax > 0.85, b mT^2 > 1),
where ln f is concave and the envelope is the tangent exponential below the
point zdiv at which f has dropped by a factor e.
"""

from math import exp, log, sqrt, cos, sin, pi

from sophia_crpropa.config_file import max_z_attempts
from sophia_crpropa.errors import SamplingExhausted
from sophia_crpropa.fragmentation.lund_data import is_diquark
from sophia_crpropa.random_source import truncated_exponential


def lund_zmax(a, b, c=1.):
    """Position of the maximum of f(z)."""
    if abs(c - a) < 1e-6:
        return b / (b + c)
    return ((b + c) - sqrt((b - c)**2 + 4. * a * b)) / (2. * (c - a))


def _log_f(z, a, b, c):
    return -c * log(z) + a * log(1. - z) - b / z


def _bisect_zdiv(a, b, c, zmax):
    target = _log_f(zmax, a, b, c) - 1.
    lo, hi = 1e-6, zmax
    if _log_f(lo, a, b, c) >= target:
        return lo
    for _ in range(60):
        mid = 0.5 * (lo + hi)
        if _log_f(mid, a, b, c) < target:
            lo = mid
        else:
            hi = mid
    return lo


def sample_z(rng, a, b, c=1.):
    """z from the Lund function, b already multiplied by mT^2."""
    zmax = lund_zmax(a, b, c)
    log_fmax = _log_f(zmax, a, b, c)

    if zmax < 0.1 and c == 1.:
        zdiv = 2.75 * zmax
        p_flat = 1. / (1. - log(zdiv))
        for _ in range(max_z_attempts):
            if rng.uniform() < p_flat:
                z = zdiv * rng.uniform()
                envelope = log_fmax
            else:
                z = zdiv**rng.uniform()
                envelope = log_fmax + log(zdiv / z)
            if log(rng.uniform()) < _log_f(z, a, b, c) - envelope:
                return z
        raise SamplingExhausted('Lund z (small zmax)', max_z_attempts)

    if zmax > 0.85 and b > 1.:
        zdiv = _bisect_zdiv(a, b, c, zmax)
        log_fdiv = _log_f(zdiv, a, b, c)
        slope = -c / zdiv - a / (1. - zdiv) + b / zdiv**2
        area_tail = exp(log_fdiv - log_fmax) * (1. - exp(-slope * zdiv)) / slope
        area_peak = 1. - zdiv
        p_tail = area_tail / (area_tail + area_peak)
        for _ in range(max_z_attempts):
            if rng.uniform() < p_tail:
                z = truncated_exponential(rng, slope, 0., zdiv)
                envelope = log_fdiv + slope * (z - zdiv)
            else:
                z = zdiv + (1. - zdiv) * rng.uniform()
                envelope = log_fmax
            if 0. < z < 1. and log(rng.uniform()) < _log_f(z, a, b, c) - envelope:
                return z
        raise SamplingExhausted('Lund z (large zmax)', max_z_attempts)

    for _ in range(max_z_attempts):
        z = rng.uniform()
        if log(rng.uniform()) < _log_f(z, a, b, c) - log_fmax:
            return z
    raise SamplingExhausted('Lund z', max_z_attempts)


def lund_z(rng, new_flavour, mt2, params):
    """z of a hadron whose break created ``new_flavour``."""
    a = params['lund_a']
    if is_diquark(new_flavour):
        a += params['lund_a_diquark']
    return sample_z(rng, a, params['lund_b'] * mt2)


def sample_pt(rng, width):
    """Transverse momentum components of a string break, exp(-pT^2 / width^2)."""
    pt = width * sqrt(-log(rng.uniform()))
    phi = 2. * pi * rng.uniform()
    return pt * cos(phi), pt * sin(phi)
