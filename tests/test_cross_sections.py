"""Tests of the photopion cross sections."""

import numpy as np
import pytest

from sophia_crpropa import cross_sections
from sophia_crpropa.cross_sections import (Channel, S_THRESHOLD, crossection, cross_section_terms,
                                           dl_total, functs, mandelstam_s, eps_prime_from_s,
                                           threshold_eps_prime, resonance_cross_sections)
from sophia_crpropa.errors import InvalidCodeError
from sophia_crpropa.particle_tables import PROTON, NEUTRON

eps_grid = np.logspace(np.log10(0.16), 3, 60)


@pytest.mark.parametrize('nucleon', [PROTON, NEUTRON])
def test_zero_below_threshold(nucleon):
    eps = 0.99 * threshold_eps_prime(nucleon)
    for channel in Channel:
        assert crossection(eps, channel, nucleon) == 0.
    assert functs(S_THRESHOLD - 0.01, nucleon) == 0.


@pytest.mark.parametrize('nucleon', [PROTON, NEUTRON])
def test_slices_bounded_by_total(nucleon):
    for eps in eps_grid:
        total = crossection(eps, Channel.TOTAL, nucleon)
        assert total == pytest.approx(sum(cross_section_terms(eps, nucleon)))
        for channel in Channel:
            value = crossection(eps, channel, nucleon)
            assert value >= 0.
            assert value <= total * (1. + 1e-12)


def test_composite_slices():
    eps = 1.5
    t = cross_section_terms(eps, PROTON)
    assert crossection(eps, Channel.RESONANCE_DIRECT, PROTON) == pytest.approx(
        t.resonances + t.direct_n_pi + t.direct_delta_pi)
    assert crossection(eps, Channel.DIFFRACTIVE, PROTON) == pytest.approx(
        crossection(eps, Channel.DIFFRACTIVE_RHO, PROTON)
        + crossection(eps, Channel.DIFFRACTIVE_OMEGA, PROTON))
    assert crossection(eps, Channel.DIFFRACTIVE_RHO, PROTON) == pytest.approx(
        9. * crossection(eps, Channel.DIFFRACTIVE_OMEGA, PROTON))


def test_delta_resonance_peak():
    sigmas = resonance_cross_sections(0.34, PROTON)
    assert sigmas[0] == max(sigmas)
    assert crossection(0.34, Channel.TOTAL, PROTON) > 200.


def test_no_fragmentation_below_onset():
    for eps in (0.3, 0.6, 0.84):
        assert crossection(eps, Channel.FRAGMENTATION, PROTON) == 0.
        assert crossection(eps, Channel.DIFFRACTIVE, PROTON) == 0.


def test_high_energy_close_to_regge_fit():
    eps = 100.
    total = crossection(eps, Channel.TOTAL, PROTON)
    assert 80. < total < 150.
    assert total == pytest.approx(dl_total(mandelstam_s(eps, PROTON)), rel=0.2)


def test_s_and_eps_prime_inverse():
    assert eps_prime_from_s(mandelstam_s(0.7, NEUTRON), NEUTRON) == pytest.approx(0.7)


def test_unknown_nucleon():
    with pytest.raises(InvalidCodeError):
        crossection(0.5, Channel.TOTAL, 7)


def test_negative_delta_term_taken_from_multipion(monkeypatch):
    x = 2.
    terms = cross_section_terms(x, PROTON)
    model = (terms.resonances + terms.direct_n_pi + terms.direct_delta_pi
             + terms.diffractive_rho + terms.diffractive_omega + terms.multipion)
    deficit = 0.5 * terms.multipion
    # total fit below the model by deficit / (1 - x / 10)
    monkeypatch.setattr(cross_sections, 'dl_total', lambda s: model - deficit / 0.8)
    shifted = cross_section_terms(x, PROTON)
    assert shifted.fragmentation_resonance_region == 0.
    assert shifted.multipion == pytest.approx(terms.multipion - deficit)
    assert shifted.diffractive_rho == terms.diffractive_rho


def test_multipion_floored_at_zero(monkeypatch):
    monkeypatch.setattr(cross_sections, 'dl_total', lambda s: 0.)
    terms = cross_section_terms(2., NEUTRON)
    assert terms.fragmentation_resonance_region == 0.
    assert terms.multipion == 0.
    assert crossection(2., Channel.FRAGMENTATION, NEUTRON) == 0.
