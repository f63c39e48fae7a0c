"""Photon-nucleon interactions other than resonance excitation, in the CM
frame with the nucleon along +z and the photon along -z.

Direct pion production and diffractive vector meson production are two-body
t-channel processes. Multiparticle production goes through one string
(reggeon exchange) or two strings (pomeron exchange) which are fragmented
with the Lund model.
"""

import logging
from math import sqrt, log, cos, sin, pi

from sophia_crpropa.config_file import (max_multipion_attempts, max_kinematics_attempts,
                                        parton_pt_width)
from sophia_crpropa.cross_sections import (nucleon_mass, pomeron_cross_section,
                                           reggeon_cross_section)
from sophia_crpropa.errors import KinematicsError, SamplingExhausted
from sophia_crpropa.fragmentation.flavour import valences
from sophia_crpropa.fragmentation.independent import fragment_independent
from sophia_crpropa.fragmentation.lund_data import JUNCTION, pdg_mass, lund_get, lund_put
from sophia_crpropa.fragmentation.prepare import colour_systems, prepare_fragmentation
from sophia_crpropa.fragmentation.record import (LundRecord, DOCUMENTATION, FINAL,
                                                 STRING_PARTON, JUNCTION_ENTRY)
from sophia_crpropa.fragmentation.strings import fragment_string, fragment_junction
from sophia_crpropa.kinematics import mass_shell_rescale, two_body_momentum
from sophia_crpropa.particle_tables import PHOTON, PROTON, name
from sophia_crpropa.random_source import truncated_exponential
from sophia_crpropa.resonance_decay import product_masses
from sophia_crpropa.sampling import Mode

logger = logging.getLogger(__name__)

DIRECT_SLOPE = 12.          # GeV^-2
DIFFRACTIVE_SLOPE = 6.5     # GeV^-2 at s = 1 GeV^2
REGGE_SLOPE = 0.25          # alpha', GeV^-2


def _direct_channels(nucleon, mode):
    if mode == Mode.DIRECT_N_PI:
        return [(1., 14, 7)] if nucleon == PROTON else [(1., 13, 8)]
    if mode == Mode.DIRECT_DELTA_PI:
        if nucleon == PROTON:
            return [(0.75, 38, 8), (0.25, 40, 7)]
        return [(0.75, 41, 7), (0.25, 39, 8)]
    if mode == Mode.DIFFRACTIVE_RHO:
        return [(1., nucleon, 25)]
    return [(1., nucleon, 26)]


def incoming_momenta(nucleon, W):
    """Four-momenta of the nucleon (+z) and the photon (-z) in the CM frame."""
    m = nucleon_mass(nucleon)
    p = (W * W - m * m) / (2. * W)
    return [0., 0., p, sqrt(p * p + m * m)], [0., 0., -p, p]


def t_channel(rng, record, nucleon, W, baryon, meson, slope):
    """Two-body final state with dsigma/dt ~ exp(slope t), the meson
    going forward with respect to the photon."""
    m_b, m_m = product_masses(rng, W, baryon, meson)
    p_in = incoming_momenta(nucleon, W)[1][3]
    p_out = two_body_momentum(W, m_b, m_m)
    E_m = sqrt(p_out * p_out + m_m * m_m)

    t_forward = m_m * m_m - 2. * (p_in * E_m - p_in * p_out)
    t_backward = m_m * m_m - 2. * (p_in * E_m + p_in * p_out)
    t = truncated_exponential(rng, slope, t_backward, t_forward)
    cos_theta = (t - m_m * m_m + 2. * p_in * E_m) / (2. * p_in * p_out)
    cos_theta = max(-1., min(1., cos_theta))
    sin_theta = sqrt(1. - cos_theta * cos_theta)
    phi = 2. * pi * rng.uniform()

    px, py, pz = p_out * sin_theta * cos(phi), p_out * sin_theta * sin(phi), -p_out * cos_theta
    record.append([-px, -py, -pz, sqrt(p_out * p_out + m_b * m_b), m_b], baryon)
    record.append([px, py, pz, E_m, m_m], meson)
    logger.debug('t-channel %s %s, t = %.4f GeV^2', name(baryon), name(meson), t)
    return t


def _add_string(lund, triplet, antitriplet, p_triplet, p_antitriplet, mothers):
    """Put two partons on their mass shells and join them by a string."""
    shell = mass_shell_rescale(p_triplet, p_antitriplet, pdg_mass(triplet), pdg_mass(antitriplet))
    if shell is None:
        return None
    i = lund.add(STRING_PARTON, triplet, shell[0], mother=mothers[0])
    j = lund.add(FINAL, antitriplet, shell[1], mother=mothers[1])
    lund.connect(i, j)
    return i, j


def reggeon_string(rng, lund, nucleon, W):
    """One string: the nucleon quark takes over the photon momentum, the
    diquark keeps the nucleon momentum."""
    p_nucleon, p_photon = incoming_momenta(nucleon, W)
    q, qq = valences(rng, nucleon)
    if _add_string(lund, q, qq, p_photon, p_nucleon, (1, 1)) is None:
        raise KinematicsError(f'reggeon string of mass {W:.3f} GeV below its end masses')


def _scaled(p, x, ptx, pty):
    return [x * p[0] + ptx, x * p[1] + pty, x * p[2], x * p[3]]


def pomeron_strings(rng, lund, nucleon, W, params):
    """Two strings between the valence partons of photon and nucleon,
    photon quark to nucleon diquark and nucleon quark to photon antiquark.

    With probability ``junction_fraction`` the nucleon diquark is split and
    its quarks meet the photon quark at a junction instead.
    """
    p_nucleon, p_photon = incoming_momenta(nucleon, W)
    q_photon, qbar_photon = valences(rng, PHOTON)
    q_nucleon, qq_nucleon = valences(rng, nucleon)
    junction = rng.uniform() < params['junction_fraction']
    n0 = lund.n

    for _ in range(max_kinematics_attempts):
        lund.truncate(n0)
        x_photon = rng.beta_variate(0.5, 0.5)
        x_nucleon = rng.beta_variate(0.5, 2.5)
        gx, gy = rng.gauss() * parton_pt_width, rng.gauss() * parton_pt_width
        nx, ny = rng.gauss() * parton_pt_width, rng.gauss() * parton_pt_width

        k_q = _scaled(p_photon, x_photon, gx, gy)
        k_qbar = _scaled(p_photon, 1. - x_photon, -gx, -gy)
        k_qn = _scaled(p_nucleon, x_nucleon, nx, ny)
        k_qq = _scaled(p_nucleon, 1. - x_nucleon, -nx, -ny)

        first = _add_string(lund, q_photon, qq_nucleon, k_q, k_qq, (0, 1))
        second = _add_string(lund, q_nucleon, qbar_photon, k_qn, k_qbar, (1, 0))
        if first is None or second is None:
            continue
        if junction:
            _split_diquark(rng, lund, *first)
        return
    raise SamplingExhausted('pomeron parton momenta', max_kinematics_attempts)


def _split_diquark(rng, lund, i_quark, i_diquark):
    """Replace the diquark end of a string by its two quarks, the three
    quarks being joined at a junction."""
    kf = int(lund.kf[i_diquark])
    q1, q2 = kf // 1000, (kf // 100) % 10
    p = lund.p[i_diquark].copy()
    r = rng.uniform()
    j = lund.add(JUNCTION_ENTRY, JUNCTION, [0., 0., 0., 0., 0.])
    lund.status[i_diquark] = DOCUMENTATION
    lund.colour_prev[i_diquark] = -1
    for quark, x in ((q1, r), (q2, 1. - r)):
        k = lund.add(STRING_PARTON, quark, x * p, mother=i_diquark)
        lund.connect(k, j)
    lund.connect(i_quark, j)


def multiparticle(rng, lund, nucleon, W, mode, params):
    """String configuration of one attempt, fragmented into the Lund record."""
    p_nucleon, p_photon = incoming_momenta(nucleon, W)
    lund.clear()
    lund.add(DOCUMENTATION, lund_put(PHOTON), p_photon + [0.])
    lund.add(DOCUMENTATION, lund_put(nucleon), p_nucleon + [nucleon_mass(nucleon)])

    s = W * W
    p_reggeon = reggeon_cross_section(s) / (reggeon_cross_section(s) + pomeron_cross_section(s))
    if mode == Mode.FRAGMENT_RESONANCE_REGION or rng.uniform() < p_reggeon:
        reggeon_string(rng, lund, nucleon, W)
    else:
        pomeron_strings(rng, lund, nucleon, W, params)

    prepare_fragmentation(rng, lund, params)
    independent = params['fragmentation_model'] == 'independent'
    for system in colour_systems(lund):
        if independent:
            fragment_independent(rng, lund, system, params)
        elif system.junction >= 0:
            fragment_junction(rng, lund, system, params)
        else:
            fragment_string(rng, lund, system, params)


def fragment_interaction(rng, record, nucleon, W, mode, params, lund=None):
    """Final state of a non-resonant interaction at CM energy W, appended to
    the SOPHIA record in the CM frame."""
    mode = Mode(mode)
    if mode in (Mode.DIRECT_N_PI, Mode.DIRECT_DELTA_PI,
                Mode.DIFFRACTIVE_RHO, Mode.DIFFRACTIVE_OMEGA):
        channels = _direct_channels(nucleon, mode)
        _, baryon, meson = channels[rng.choose([c[0] for c in channels])]
        if mode in (Mode.DIRECT_N_PI, Mode.DIRECT_DELTA_PI):
            slope = DIRECT_SLOPE
        else:
            slope = DIFFRACTIVE_SLOPE + 2. * REGGE_SLOPE * log(W * W)
        t_channel(rng, record, nucleon, W, baryon, meson, slope)
        return

    if lund is None:
        lund = LundRecord()
    for attempt in range(max_multipion_attempts):
        try:
            multiparticle(rng, lund, nucleon, W, mode, params)
        except (SamplingExhausted, KinematicsError) as err:
            logger.warning('fragmentation at W = %.3f GeV rejected (attempt %d): %s',
                           W, attempt + 1, err)
            continue
        n0 = record.n
        for i in lund.final_state():
            record.append(lund.p[i], lund_get(int(lund.kf[i])))
        logger.debug('%s at W = %.3f GeV: %d hadrons', mode.name, W, record.n - n0)
        return

    logger.error('fragmentation at W = %.3f GeV failed %d times', W, max_multipion_attempts)
    raise SamplingExhausted(f'multiparticle fragmentation at W = {W:.3f} GeV',
                            max_multipion_attempts)
