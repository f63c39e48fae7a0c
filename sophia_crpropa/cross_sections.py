"""Photopion cross sections as a function of the photon energy in the
nucleon rest frame, eps_prime (GeV). All cross sections in microbarn.

The total is the sum of nine resonances (relativistic Breit-Wigner shapes
with a threshold suppression), direct single pion production into N pi and
Delta pi, diffractive rho / omega production, and fragmentation split into a
resonance-region piece and the multipion piece.
"""

import logging
from collections import namedtuple
from enum import IntEnum
from math import exp

from sophia_crpropa.errors import InvalidCodeError
from sophia_crpropa.particle_tables import MASS, PROTON, NEUTRON

logger = logging.getLogger(__name__)

# Threshold of photopion production, s in GeV^2
S_THRESHOLD = 1.1646
HBARC2 = 389.379  # (hbar c)^2 in microbarn GeV^2

Resonance = namedtuple('Resonance', ['name', 'mass', 'width', 'multiplicity',
                                     'b_gamma_p', 'b_gamma_n', 'isospin3'])

# multiplicity is 2J+1, isospin3 is twice the isospin
RESONANCES = [
    Resonance('Delta(1232)', 1.231, 0.110, 4, 5.6e-3, 6.1e-3, 3),
    Resonance('N(1440)', 1.440, 0.350, 2, 0.5e-3, 0.3e-3, 1),
    Resonance('N(1520)', 1.515, 0.110, 4, 4.6e-3, 4.0e-3, 1),
    Resonance('N(1535)', 1.525, 0.100, 2, 2.5e-3, 2.5e-3, 1),
    Resonance('N(1650)', 1.675, 0.160, 2, 1.0e-3, 0.0, 1),
    Resonance('N(1675)', 1.675, 0.150, 6, 0.0, 0.2e-3, 1),
    Resonance('N(1680)', 1.680, 0.125, 6, 2.1e-3, 0.0, 1),
    Resonance('Delta(1700)', 1.690, 0.290, 4, 2.0e-3, 2.0e-3, 3),
    Resonance('Delta(1950)', 1.950, 0.300, 8, 1.0e-3, 1.0e-3, 3),
]
N_RESONANCES = len(RESONANCES)

# Onset of fragmentation and the upper end of the resonance-region piece
EPS_FRAGMENTATION = 0.85
EPS_DELTA_MAX = 10.


class Channel(IntEnum):
    """Slices of the total cross section."""
    TOTAL = 1
    RESONANCE = 2
    RESONANCE_DIRECT = 3
    DIRECT_N_PI = 4
    DIRECT_DELTA_PI = 5
    DIFFRACTIVE = 6
    DIFFRACTIVE_RHO = 7
    DIFFRACTIVE_OMEGA = 8
    FRAGMENTATION = 9
    FRAGMENTATION_RESONANCE_REGION = 10
    MULTIPION = 11


Terms = namedtuple('Terms', ['resonances', 'direct_n_pi', 'direct_delta_pi',
                             'diffractive_rho', 'diffractive_omega',
                             'fragmentation_resonance_region', 'multipion'])


def nucleon_mass(nucleon):
    if nucleon not in (PROTON, NEUTRON):
        raise InvalidCodeError(f'code {nucleon} is not a nucleon')
    return MASS[nucleon]


def mandelstam_s(eps_prime, nucleon):
    m = nucleon_mass(nucleon)
    return m * m + 2. * m * eps_prime


def eps_prime_from_s(s, nucleon):
    m = nucleon_mass(nucleon)
    return (s - m * m) / (2. * m)


def Ef(x, th, w):
    """Linear threshold suppression rising from th to th + w."""
    if x <= th:
        return 0.
    if x < th + w:
        return (x - th) / w
    return 1.


def Pl(x, xth, xmax, alpha):
    """Power law turn-on peaking at xmax, used by the direct terms."""
    if xth >= x:
        return 0.
    a = alpha * xmax / xth
    prod1 = ((x - xth) / (xmax - xth))**(a - alpha)
    prod2 = (x / xmax)**(-a)
    return prod1 * prod2


def breit_wigner(sigma_0, width, mass, eps_prime, nucleon):
    """Relativistic Breit-Wigner of a resonance excited by a photon."""
    s = mandelstam_s(eps_prime, nucleon)
    gam2s = width * width * s
    return sigma_0 * (s / eps_prime**2) * gam2s / ((s - mass * mass)**2 + gam2s)


def resonance_peak_norm(resonance, nucleon):
    """sigma_0 of a resonance: pi (hbar c)^2 (2J+1) b_gamma / m^2."""
    m = nucleon_mass(nucleon)
    b_gamma = resonance.b_gamma_p if nucleon == PROTON else resonance.b_gamma_n
    return 3.141592653589793 * HBARC2 * resonance.multiplicity * b_gamma / (m * m)


def resonance_cross_sections(eps_prime, nucleon):
    """Cross sections of the individual resonances."""
    if eps_prime <= 0. or mandelstam_s(eps_prime, nucleon) < S_THRESHOLD:
        return [0.] * N_RESONANCES
    suppression = Ef(eps_prime, 0.152, 0.17)
    return [breit_wigner(resonance_peak_norm(r, nucleon), r.width, r.mass, eps_prime, nucleon)
            * suppression for r in RESONANCES]


def pomeron_cross_section(s):
    return 67.7 * s**0.0808


def reggeon_cross_section(s):
    return 129. * s**(-0.4525)


def dl_total(s):
    """Pomeron plus reggeon fit of the total photoabsorption cross section."""
    return pomeron_cross_section(s) + reggeon_cross_section(s)


def cross_section_terms(eps_prime, nucleon):
    """All terms of the cross section at eps_prime, as a Terms tuple."""
    s = mandelstam_s(eps_prime, nucleon)
    if s < S_THRESHOLD:
        return Terms(0., 0., 0., 0., 0., 0., 0.)

    x = eps_prime
    cs_res = sum(resonance_cross_sections(x, nucleon))
    cs_dir1 = 92.7 * Pl(x, 0.152, 0.25, 2.)
    cs_dir2 = 37.7 * Pl(x, 0.4, 0.6, 2.)

    cs_rho = cs_omega = cs_multi = cs_delta = 0.
    if x > EPS_FRAGMENTATION:
        ss1 = (x - EPS_FRAGMENTATION) / 0.69
        ss2 = 29.3 * s**(-0.34) + 59.3 * s**0.095
        cs_frag = (1. - exp(-ss1)) * ss2
        diffractive_share = 0.11 - 0.04 * exp(-(x - EPS_FRAGMENTATION) / 1.5)
        cs_diffr = diffractive_share * cs_frag
        cs_rho = 0.9 * cs_diffr
        cs_omega = 0.1 * cs_diffr
        cs_multi = cs_frag - cs_diffr

        if x < EPS_DELTA_MAX:
            model = cs_res + cs_dir1 + cs_dir2 + cs_frag
            cs_delta = (1. - x / EPS_DELTA_MAX) * (dl_total(s) - model)
            if cs_delta < 0.:
                # the deficit is taken from the multipion piece
                cs_multi = max(0., cs_multi + cs_delta)
                cs_delta = 0.

    return Terms(cs_res, cs_dir1, cs_dir2, cs_rho, cs_omega, cs_delta, cs_multi)


def crossection(eps_prime, channel, nucleon):
    """Cross section slice ``channel`` (a Channel) in microbarn."""
    t = cross_section_terms(eps_prime, nucleon)
    channel = Channel(channel)
    if channel == Channel.TOTAL:
        return sum(t)
    if channel == Channel.RESONANCE:
        return t.resonances
    if channel == Channel.RESONANCE_DIRECT:
        return t.resonances + t.direct_n_pi + t.direct_delta_pi
    if channel == Channel.DIRECT_N_PI:
        return t.direct_n_pi
    if channel == Channel.DIRECT_DELTA_PI:
        return t.direct_delta_pi
    if channel == Channel.DIFFRACTIVE:
        return t.diffractive_rho + t.diffractive_omega
    if channel == Channel.DIFFRACTIVE_RHO:
        return t.diffractive_rho
    if channel == Channel.DIFFRACTIVE_OMEGA:
        return t.diffractive_omega
    if channel == Channel.FRAGMENTATION:
        return t.fragmentation_resonance_region + t.multipion
    if channel == Channel.FRAGMENTATION_RESONANCE_REGION:
        return t.fragmentation_resonance_region
    return t.multipion


def functs(s, nucleon):
    """Invariant mass weight sigma(s) * (s - m^2) of the photon background."""
    m = nucleon_mass(nucleon)
    return crossection(eps_prime_from_s(s, nucleon), Channel.TOTAL, nucleon) * (s - m * m)


def threshold_eps_prime(nucleon):
    return eps_prime_from_s(S_THRESHOLD, nucleon)
