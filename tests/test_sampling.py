from math import sqrt

import pytest

from sophia_crpropa.cross_sections import S_THRESHOLD, nucleon_mass
from sophia_crpropa.particle_tables import PROTON, NEUTRON
from sophia_crpropa.sampling import (Mode, sample_s, scatter_angle, decide_interaction_mode,
                                     max_invariant_mass2)


@pytest.mark.parametrize('nucleon', [PROTON, NEUTRON])
def test_sampled_s_in_range(rng, nucleon):
    eps, energy = 1e-3, 1e3
    smax = max_invariant_mass2(eps, nucleon, energy)
    for _ in range(50):
        s = sample_s(rng, eps, nucleon, energy)
        assert S_THRESHOLD <= s <= smax


def test_high_s_branch(rng):
    eps, energy = 0.1, 1e3
    smax = max_invariant_mass2(eps, PROTON, energy)
    values = [sample_s(rng, eps, PROTON, energy) for _ in range(200)]
    assert all(S_THRESHOLD <= s <= smax for s in values)
    assert any(s > 10. for s in values)


def test_scatter_angle_reproduces_s(rng):
    eps, energy = 1e-3, 1e3
    m = nucleon_mass(PROTON)
    p = sqrt(energy**2 - m * m)
    for _ in range(20):
        s = sample_s(rng, eps, PROTON, energy)
        cos_theta = scatter_angle(s, eps, PROTON, energy)
        assert -1. <= cos_theta <= 1.
        assert m * m + 2. * eps * (energy - p * cos_theta) == pytest.approx(s, rel=1e-9)


def test_scatter_angle_clamped():
    assert scatter_angle(1e6, 1e-3, PROTON, 1e3) == -1.


def test_modes_in_resonance_region(rng):
    modes = {decide_interaction_mode(rng, 0.3, PROTON) for _ in range(500)}
    assert modes <= {Mode.RESONANCE_DECAY, Mode.DIRECT_N_PI, Mode.DIRECT_DELTA_PI}
    assert Mode.RESONANCE_DECAY in modes


def test_multipion_dominates_at_high_energy(rng):
    modes = [decide_interaction_mode(rng, 100., PROTON) for _ in range(200)]
    assert modes.count(Mode.FRAGMENT_MULTIPION) > 100
    assert Mode.FRAGMENT_RESONANCE_REGION not in modes
