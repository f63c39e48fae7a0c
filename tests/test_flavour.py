"""Flavour generation at the string breaks."""

import pytest

from sophia_crpropa.errors import ColourFlowError, InvalidCodeError
from sophia_crpropa.fragmentation.flavour import (new_flavour, combine, combine_three, valences,
                                                  meson_code, baryon_code, diquark_code,
                                                  diquark_content, new_diquark)
from sophia_crpropa.fragmentation.lund_data import (GLUON, charge3, baryon3, is_triplet,
                                                    is_antitriplet, is_diquark, lund_get)
from sophia_crpropa.particle_tables import PHOTON, PROTON, NEUTRON


@pytest.mark.parametrize('end', [1, 2, 3, -1, -2, -3, 2101, 2103, 3303, -2101, -3201])
def test_new_flavour_conserves_quantum_numbers(rng, params, end):
    for _ in range(300):
        hadron, new_end = new_flavour(rng, end, params)
        assert charge3(hadron) + charge3(new_end) == charge3(end)
        assert baryon3(hadron) + baryon3(new_end) == baryon3(end)
        assert is_triplet(new_end) == is_triplet(end)
        lund_get(hadron)


@pytest.mark.parametrize('end', [2101, 2103, 3303, -2101, -3201])
def test_popcorn_breaks_diquark_ends(rng, params, end):
    params['popcorn'] = True
    params['popcorn_fraction'] = 1.
    for _ in range(300):
        hadron, new_end = new_flavour(rng, end, params)
        assert baryon3(hadron) == 0
        assert is_diquark(new_end)
        assert is_triplet(new_end) == is_triplet(end)
        assert charge3(hadron) + charge3(new_end) == charge3(end)
        lund_get(hadron)


def test_diquark_ends_give_baryons_without_popcorn(rng, params):
    for _ in range(300):
        hadron, new_end = new_flavour(rng, 2101, params)
        assert baryon3(hadron) == 3
        assert not is_diquark(new_end)


def test_baryon_fraction_controls_diquarks(rng, params):
    params['baryon_fraction'] = 0.
    assert not any(is_diquark(new_flavour(rng, 2, params)[1]) for _ in range(300))
    params['baryon_fraction'] = 1.
    ends = [new_flavour(rng, 2, params)[1] for _ in range(300)]
    assert sum(is_diquark(e) for e in ends) > 100


def test_new_flavour_rejects_gluon(rng, params):
    with pytest.raises(InvalidCodeError):
        new_flavour(rng, GLUON, params)


def test_meson_codes(rng, params):
    assert meson_code(rng, 2, 1, params) in (211, 213)
    assert meson_code(rng, 1, 2, params) in (-211, -213)
    assert meson_code(rng, 2, 3, params) in (321, 323)
    assert meson_code(rng, 3, 2, params) in (-321, -323)
    assert meson_code(rng, 1, 3, params) in (311, 313)
    params['vector_fraction_strange'] = 1.
    assert meson_code(rng, 3, 3, params) == 333


def test_eta_suppression(rng, params):
    params['vector_fraction_light'] = 0.
    params['eta_suppression'] = 0.
    params['etaprime_suppression'] = 0.
    codes = {meson_code(rng, 1, 1, params) for _ in range(200)}
    assert codes == {111, None}


def test_baryon_codes(rng, params):
    assert baryon_code(rng, 2, 2203, params) == 2224
    assert baryon_code(rng, 2, 2101, params) == 2212
    assert baryon_code(rng, 1, 2101, params) == 2112
    assert baryon_code(rng, 3, 2101, params) == 3122
    assert baryon_code(rng, 3, 3303, params) == 3334
    params['decuplet_suppression'] = 0.
    assert baryon_code(rng, 3, 2103, params) == 3212
    assert baryon_code(rng, 1, 3201, params) in (3122, 3212)


def test_diquarks(rng, params):
    assert diquark_code(1, 2, 0) == 2101
    assert diquark_code(3, 3, 0) == 3303
    assert diquark_content(3201) == (3, 2, 0)
    for _ in range(100):
        assert is_diquark(new_diquark(rng, params))


def test_combine(rng, params):
    assert combine(rng, 2, -1, params) in (211, 213)
    assert combine(rng, -1, 2, params) in (211, 213)
    assert combine(rng, 1, 2101, params) in (2112, 2114)
    assert combine(rng, -2101, -1, params) in (-2112, -2114)
    assert combine(rng, -2101, 2101, params) is None
    with pytest.raises(ColourFlowError):
        combine(rng, 2, 1, params)


def test_combine_three(rng, params):
    assert combine_three(rng, 2, 2, 1, params) in (2212, 2214)
    assert combine_three(rng, -1, -1, -1, params) == -1114
    assert combine_three(rng, 2, -1, 1, params) is None


def test_valences(rng):
    for _ in range(100):
        q, qbar = valences(rng, PHOTON)
        assert q in (1, 2) and qbar == -q
        for nucleon in (PROTON, NEUTRON):
            q, qq = valences(rng, nucleon)
            assert is_triplet(q) and is_antitriplet(qq)
            assert charge3(q) + charge3(qq) == (3 if nucleon == PROTON else 0)
        triplet, antitriplet = valences(rng, -PROTON)
        assert charge3(triplet) + charge3(antitriplet) == -3
        assert baryon3(triplet) + baryon3(antitriplet) == -3
    with pytest.raises(InvalidCodeError):
        valences(rng, 7)
