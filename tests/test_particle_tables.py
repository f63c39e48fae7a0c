"""Consistency of the SOPHIA particle tables with the PDG data."""

import pytest
from particle import Particle

from sophia_crpropa.errors import InvalidCodeError
from sophia_crpropa.fragmentation.lund_data import charge3
from sophia_crpropa.particle_tables import (PDG, MASS, CHARGE, BARYON, DECAY_THRESHOLD,
                                            ALWAYS_UNSTABLE, PI0, PI_PLUS, PI_MINUS, NEUTRON,
                                            check_code, conjugate, decay_channels, from_pdg,
                                            default_instability, declare_pions_stable,
                                            limit_secondaries, mass, pdg_id)


def test_codes_cover_sophia_range():
    assert set(range(1, 50)) <= set(MASS)
    assert all(code < 0 for code in MASS if code not in range(1, 50))


@pytest.mark.parametrize('code', sorted(PDG))
def test_charge_matches_pdg(code):
    assert Particle.from_pdgid(PDG[code]).charge == CHARGE[code]


@pytest.mark.parametrize('code', sorted(c for c in PDG if abs(PDG[c]) > 100))
def test_charge_from_quark_content(code):
    assert charge3(PDG[code]) == 3 * CHARGE[code]


def test_conjugation():
    for code in MASS:
        anti = conjugate(code)
        assert conjugate(anti) == code
        assert CHARGE[anti] == -CHARGE[code]
        assert BARYON[anti] == -BARYON[code]
        assert MASS[anti] == MASS[code]


def test_decay_channels_conserve_quantum_numbers():
    for code in MASS:
        for br, daughters, _ in decay_channels(code):
            assert br > 0.
            assert sum(CHARGE[d] for d in daughters) == CHARGE[code]
            assert sum(BARYON[d] for d in daughters) == BARYON[code]


def test_branching_ratios_normalised():
    for code in MASS:
        channels = decay_channels(code)
        if channels:
            assert sum(br for br, _, _ in channels) == pytest.approx(1., abs=0.02)


def test_decays_open_at_table_mass():
    for code, threshold in DECAY_THRESHOLD.items():
        if threshold is not None:
            assert threshold <= MASS[code]


def test_lookups():
    assert pdg_id(13) == 2212
    assert from_pdg(-2112) == -NEUTRON
    assert mass(7) == mass(8)
    assert check_code(-32) == -32
    with pytest.raises(InvalidCodeError):
        mass(99)
    with pytest.raises(InvalidCodeError):
        from_pdg(5)
    with pytest.raises(KeyError):
        pdg_id(0)


def test_default_instability():
    unstable = default_instability()
    assert unstable[PI_PLUS] and unstable[PI0]
    assert not unstable[13] and not unstable[NEUTRON]
    assert not unstable[1] and not unstable[15]
    declare_pions_stable(unstable)
    assert not any(unstable[c] for c in (PI0, PI_PLUS, PI_MINUS))
    declare_pions_stable(unstable, False)
    assert all(unstable[c] for c in (PI0, PI_PLUS, PI_MINUS))


def test_limit_secondaries():
    unstable = limit_secondaries(default_instability(), max_lifetime=1.)
    assert unstable[PI_PLUS] and unstable[5]
    assert not unstable[NEUTRON]
    assert all(unstable[c] for c in ALWAYS_UNSTABLE)

    unstable = limit_secondaries(default_instability(), max_lifetime=1e-9)
    assert not unstable[PI_PLUS] and not unstable[5]
    assert unstable[PI0]
