"""Implementation of the photopion module for CRPropa3

    Nucleons interact with an isotropic, monochromatic photon background.
    The interactions are sampled with the SOPHIA event generator of this package.

    19.10.2026 - Leonel Morejon
"""

__version__ = "0.1.0"

import logging

from numpy import pi, log, sqrt, array, cross, arccos, einsum
from numpy.linalg import norm
from scipy.integrate import quad
from scipy.spatial.transform import Rotation as R

from crpropa import Candidate, GeV, Module, ParticleState, Vector3d, Random

from sophia_crpropa.config_file import allowed_secondaries
from sophia_crpropa.cross_sections import Channel, crossection, eps_prime_from_s, nucleon_mass
from sophia_crpropa.event import EventGenerator
from sophia_crpropa.particle_tables import PROTON, NEUTRON, pdg_id

logger = logging.getLogger(__name__)

MICROBARN = 1e-34  # m^2


# Dealing with proton and neutron pid ambiguity
def pdgid2crpropa(pid):
    """CRPropa ids of nucleons are nucleus ids
    """
    relation = dict([
        (2212, 1000010010),
        (2112, 1000000010),
        (-2212, -1000010010),
        (-2112, -1000000010)
    ])
    return relation.get(pid, pid)


def crpropa2pdgid(pid):
    relation = dict([
        (1000010010, 2212),
        (1000000010, 2112),
        (-1000010010, -2212),
        (-1000000010, -2112)
    ])
    return relation.get(pid, pid)


def interaction_rate(is_proton, energy, photon_energy, photon_density):
    """Interactions per meter of a nucleon with lab energy ``energy`` (GeV) in
    an isotropic background of photons with energy ``photon_energy`` (GeV) and
    number density ``photon_density`` (m^-3).

    The cross section is averaged over the angle with the relative flux
    factor (1 - beta cos(theta)).
    """
    nucleon = PROTON if is_proton else NEUTRON
    m = nucleon_mass(nucleon)
    if energy <= m:
        return 0.
    p = sqrt(energy**2 - m**2)
    beta = p / energy

    def integrand(mu):
        s = m**2 + 2. * photon_energy * (energy - p * mu)
        return 0.5 * (1. - beta * mu) * crossection(eps_prime_from_s(s, nucleon),
                                                     Channel.TOTAL, nucleon)

    sigma, _ = quad(integrand, -1., 1., limit=200)
    return photon_density * sigma * MICROBARN


class PhotoPionInteractions(Module):
    '''Photopion production of nucleons on a photon background
    '''
    def __init__(self, photon_energy=1e-3, photon_density=1e8, seed=None, Emin=0.,
                 declare_charged_pions_stable=None):
        """The initialization takes as arguments
            - photon_energy  : energy of the background photons in GeV
            - photon_density : photon number density in m^-3
            - seed           : random number generator seed
            - Emin           : minimal energy of injected secondaries in GeV
            - declare_charged_pions_stable : True or False overrides the pion
              decay flags, None keeps those set by limit_secondaries
        """
        Module.__init__(self)

        self.photon_energy = photon_energy
        self.photon_density = photon_density
        self.Emin = Emin
        self.declare_charged_pions_stable = declare_charged_pions_stable
        self.allowed_secondaries = allowed_secondaries
        self.generator = EventGenerator(seed)

        if seed is None:
            self.random_number_generator = Random()  # using the eponymous class from CRPropa
        else:
            self.random_number_generator = Random(seed)

        self.limit_secondaries()

    def limit_secondaries(self, max_lifetime=1e30):
        """Restricts the secondaries to those with a
           lifetime greater than max_lifetime in seconds.
        """
        self.generator.limit_secondaries(max_lifetime)

    def compute_interaction_rate(self, is_proton, energy):
        return interaction_rate(is_proton, energy, self.photon_energy, self.photon_density)

    def process(self, candidate):
        """This is the function called to operate on candidates (particles),
        only nucleons interact.
        """
        pid = candidate.current.getId()
        if pid not in (1000010010, 1000000010):
            return
        is_proton = pid == 1000010010
        currE = candidate.current.getEnergy() / GeV  # in GeV

        rate = self.compute_interaction_rate(is_proton, currE)
        if rate == 0:
            return

        # Sampling interaction from the inverse of an exponential distribution
        current_step = candidate.getCurrentStep()
        random_number = self.random_number_generator.rand()
        interaction_step = - log(random_number) / rate

        if interaction_step >= current_step:
            candidate.limitNextStep(interaction_step)
            return

        pids, energies, momenta = self.sample_interaction(is_proton, currE)
        crpropa_direction = candidate.current.getDirection()
        primary_direction = array([crpropa_direction.x, crpropa_direction.y, crpropa_direction.z])
        momenta = momenta.dot(self.alignment(primary_direction).T)

        interaction_position = candidate.current.getPosition() - crpropa_direction * (current_step - interaction_step)

        # the leading nucleon continues as the primary
        nucleons = [i for i, p in enumerate(pids) if p in (1000010010, 1000000010)]
        leading = max(nucleons, key=lambda i: energies[i]) if nucleons else None
        for i, (pid, en, pvector) in enumerate(zip(pids, energies, momenta)):
            direction = Vector3d(pvector[0], pvector[1], pvector[2])
            if i == leading:
                candidate.current.setId(int(pid))
                candidate.current.setEnergy(en * GeV)
                candidate.current.setDirection(direction)
                continue
            if en < self.Emin:
                continue
            ps = ParticleState(int(pid), en * GeV, interaction_position, direction)
            candidate.addSecondary(Candidate(ps))

        if leading is None:
            candidate.setActive(False)
        candidate.limitNextStep(interaction_step)

    def alignment(self, primary_direction):
        """Random rotation about z followed by the rotation of z onto the
        primary direction."""
        random_phi = 2 * pi * self.random_number_generator.rand()
        arbitrary_phi_rotation = R.from_euler('z', random_phi).as_matrix()
        rotation_axis = cross(array([0, 0, 1]), primary_direction)
        if norm(rotation_axis) == 0:
            if primary_direction[2] > 0:
                return arbitrary_phi_rotation
            return R.from_euler('x', pi).as_matrix().dot(arbitrary_phi_rotation)
        theta = arccos(primary_direction[2] / norm(primary_direction))  # in radians
        rotation_axis = rotation_axis / norm(rotation_axis)
        z_alignment_to_primary_direction = R.from_rotvec(theta * rotation_axis).as_matrix()
        return z_alignment_to_primary_direction.dot(arbitrary_phi_rotation)

    def sample_interaction(self, is_proton, energy):
        """Calls the event generator and returns products
           Returns:
           - particles ids (CRPropa convention)
           - energies [in GeV]
           - momenta as unitary vectors in the frame with the nucleon along z
        """
        event = self.generator.generate_event(is_proton, energy, self.photon_energy,
                                              self.declare_charged_pions_stable)
        kept = [(p, code) for p, code in event.particles
                if code in self.allowed_secondaries and p[3] > 0]
        if not kept:
            return [], array([]), array([]).reshape(0, 3)

        energies = array([p[3] for p, _ in kept])
        momenta = array([p[:3] for p, _ in kept])
        momenta = einsum('ij, i -> ij', momenta, 1 / norm(momenta, axis=1))  # normalizing
        pids = [pdgid2crpropa(pdg_id(code)) for _, code in kept]
        logger.debug('%d of %d secondaries kept', len(kept), event.count)
        return pids, energies, momenta
