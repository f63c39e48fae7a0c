"""Generation of single photon-nucleon interaction events

The nucleon moves along +z in the lab. The photon direction follows from the
sampled invariant mass, its azimuth is random. The final state is generated in
the CM frame, decayed, then rotated and boosted to the lab.

19.10.2026 - Leonel Morejon
"""

import logging
from math import sqrt, cos, sin, pi

import numpy as np

from sophia_crpropa import config_file
from sophia_crpropa.cross_sections import S_THRESHOLD, eps_prime_from_s, nucleon_mass
from sophia_crpropa.decays import decay_all_unstable
from sophia_crpropa.errors import ConservationError
from sophia_crpropa.fragmentation.interaction import fragment_interaction
from sophia_crpropa.fragmentation.record import LundRecord
from sophia_crpropa.kinematics import (four_velocity, boost_vector, direction_angles, rotate,
                                       invariant_mass2)
from sophia_crpropa.particle_record import ParticleRecord
from sophia_crpropa.particle_tables import (BARYON, CHARGE, PROTON, NEUTRON, default_instability,
                                            declare_pions_stable, limit_secondaries)
from sophia_crpropa.random_source import RandomSource
from sophia_crpropa.resonance_decay import res_decay
from sophia_crpropa.sampling import (Mode, sample_s, scatter_angle, decide_interaction_mode,
                                     max_invariant_mass2)

logger = logging.getLogger(__name__)


class Event:
    """Final state of one interaction in the lab frame."""

    def __init__(self, particles, s=0., eps_prime=0., mode=None, cos_theta=None):
        self.particles = particles
        self.s = s
        self.eps_prime = eps_prime
        self.mode = mode
        self.cos_theta = cos_theta

    @property
    def count(self):
        return len(self.particles)

    @property
    def momenta(self):
        if not self.particles:
            return np.zeros((0, 5))
        return np.array([p for p, _ in self.particles])

    @property
    def codes(self):
        return np.array([c for _, c in self.particles], dtype=int)

    def __len__(self):
        return self.count

    def __repr__(self):
        mode = self.mode.name if self.mode is not None else None
        return f'Event(count={self.count}, s={self.s:.4f}, mode={mode})'


def check_conservation(record, P, charge, baryon, tolerance=config_file.conservation_tolerance):
    """Compare the final state with the initial four-momentum, charge and
    baryon number, raising ConservationError on a mismatch."""
    total = record.total_momentum()
    scale = max(P[3], 1e-12)
    for k, label in enumerate(('px', 'py', 'pz', 'E')):
        if abs(total[k] - P[k]) > tolerance * scale:
            logger.error('%s not conserved: initial %.6g, final %.6g', label, P[k], total[k])
            raise ConservationError(f'{label} not conserved: {P[k]:.6g} -> {total[k]:.6g}')

    final_charge = sum(CHARGE[int(c)] for c in record.codes)
    final_baryon = sum(BARYON[int(c)] for c in record.codes)
    if final_charge != charge or final_baryon != baryon:
        logger.error('quantum numbers not conserved: charge %d -> %d, baryon %d -> %d',
                     charge, final_charge, baryon, final_baryon)
        raise ConservationError(f'charge {charge} -> {final_charge}, '
                                f'baryon number {baryon} -> {final_baryon}')


class EventGenerator:
    '''Photopion event generator owning its random stream and records
    '''
    def __init__(self, seed=None, lund_parameters=None, unstable=None,
                 smear_resonance_masses=config_file.smear_resonance_masses,
                 check_conservation=config_file.check_conservation):
        self.rng = RandomSource(seed)
        self.record = ParticleRecord()
        self.lund = LundRecord()
        self.lund_parameters = dict(config_file.lund_parameters)
        if lund_parameters is not None:
            self.lund_parameters.update(lund_parameters)
        self.unstable = default_instability() if unstable is None else dict(unstable)
        self.smear_resonance_masses = smear_resonance_masses
        self.check_conservation = check_conservation

    def reseed(self, seed=None):
        self.rng.reseed(seed)

    def limit_secondaries(self, max_lifetime=1e30):
        """Decay every particle living shorter than max_lifetime seconds."""
        limit_secondaries(self.unstable, max_lifetime)

    def generate_event(self, is_proton, nucleon_energy, photon_energy,
                       declare_charged_pions_stable=None):
        """Interaction of a nucleon of lab energy ``nucleon_energy`` with a
        photon of energy ``photon_energy`` (GeV) from an isotropic background.

        ``declare_charged_pions_stable`` overrides the pion decay flags for
        this event only, ``None`` keeps the flags of the generator.
        Returns an empty Event below the photopion threshold.
        """
        nucleon = PROTON if is_proton else NEUTRON
        unstable = self.unstable
        if declare_charged_pions_stable is not None:
            unstable = declare_pions_stable(dict(self.unstable), declare_charged_pions_stable)
        self.record.clear()

        m = nucleon_mass(nucleon)
        if nucleon_energy <= m or photon_energy <= 0. or \
                max_invariant_mass2(photon_energy, nucleon, nucleon_energy) < S_THRESHOLD:
            return Event([])

        s = sample_s(self.rng, photon_energy, nucleon, nucleon_energy)
        if s is None:
            return Event([])
        cos_theta = scatter_angle(s, photon_energy, nucleon, nucleon_energy)

        sin_theta = sqrt(max(0., 1. - cos_theta * cos_theta))
        phi = 2. * pi * self.rng.uniform()
        p_nucleon = [0., 0., sqrt(nucleon_energy**2 - m * m), nucleon_energy]
        p_photon = [photon_energy * sin_theta * cos(phi), photon_energy * sin_theta * sin(phi),
                    photon_energy * cos_theta, photon_energy]
        P = [p_nucleon[k] + p_photon[k] for k in range(4)]

        # the clamped angle can shift s slightly, the lab vectors are what is conserved
        s = invariant_mass2(P)
        W = sqrt(s)
        eps_prime = eps_prime_from_s(s, nucleon)
        mode = decide_interaction_mode(self.rng, eps_prime, nucleon)
        logger.debug('s = %.4f GeV^2, eps_prime = %.4f GeV, mode %s', s, eps_prime, mode.name)

        if mode == Mode.RESONANCE_DECAY:
            for p5, code in res_decay(self.rng, eps_prime, nucleon):
                self.record.append(p5, code)
        else:
            fragment_interaction(self.rng, self.record, nucleon, W, mode,
                                 self.lund_parameters, self.lund)
        decay_all_unstable(self.record, self.rng, unstable, self.smear_resonance_masses)

        velocity = four_velocity(P)
        n_cm = boost_vector(p_nucleon, velocity, inverse=True)
        angles = direction_angles(n_cm[0], n_cm[1], n_cm[2])
        for i in range(self.record.n):
            p = self.record.p[i]
            x, y, z = rotate(p[0], p[1], p[2], *angles)
            self.record.p[i, :4] = boost_vector((x, y, z, p[3]), velocity)

        if self.check_conservation:
            check_conservation(self.record, P, CHARGE[nucleon], BARYON[nucleon])
        logger.debug('%d stable particles', self.record.n)
        return Event(self.record.entries(), s, eps_prime, mode, cos_theta)


_default_generator = None


def generate_event(is_proton, nucleon_energy, photon_energy, declare_charged_pions_stable=None):
    """Event from a process wide generator with the default seed."""
    global _default_generator
    if _default_generator is None:
        _default_generator = EventGenerator()
    return _default_generator.generate_event(is_proton, nucleon_energy, photon_energy,
                                             declare_charged_pions_stable)
