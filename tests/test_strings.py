"""Lund string breaking."""

from math import sqrt

import numpy as np
import pytest

from sophia_crpropa.errors import SamplingExhausted
from sophia_crpropa.fragmentation.lund_data import GLUON, JUNCTION, charge3, baryon3, is_parton
from sophia_crpropa.fragmentation.prepare import colour_systems, system_momentum
from sophia_crpropa.fragmentation.record import (LundRecord, FINAL, STRING_PARTON, FRAGMENTED,
                                                  JUNCTION_ENTRY)
from sophia_crpropa.fragmentation.strings import break_string, fragment_string, fragment_junction


def parton(px, py, pz, m):
    return [px, py, pz, sqrt(px * px + py * py + pz * pz + m * m), m]


def string_break(rng, W, kf_plus, kf_minus, params):
    for _ in range(200):
        hadrons = break_string(rng, W, kf_plus, kf_minus, params)
        if hadrons is not None:
            return hadrons
    raise AssertionError('no accepted string break')


@pytest.mark.parametrize('W, ends', [(3., (2, -2)), (10., (2, 2101)), (40., (-2101, 2101)),
                                     (2.5, (1, 2103))])
def test_break_string_conserves(rng, params, W, ends):
    for _ in range(20):
        hadrons = string_break(rng, W, *ends, params)
        total = np.sum([p[:4] for _, p in hadrons], axis=0)
        assert np.allclose(total, [0., 0., 0., W], atol=1e-9)
        assert sum(charge3(kf) for kf, _ in hadrons) == charge3(ends[0]) + charge3(ends[1])
        assert sum(baryon3(kf) for kf, _ in hadrons) == baryon3(ends[0]) + baryon3(ends[1])
        for _, p in hadrons:
            assert p[3]**2 - p[0]**2 - p[1]**2 - p[2]**2 == pytest.approx(p[4]**2, abs=1e-6)
            assert p[3] > 0.


def test_multiplicity_grows_with_mass(rng, params):
    low = np.mean([len(string_break(rng, 3., 2, -2, params)) for _ in range(50)])
    high = np.mean([len(string_break(rng, 30., 2, -2, params)) for _ in range(50)])
    assert high > low + 2


def test_fragment_string_in_the_record(rng, params):
    record = LundRecord()
    pq = [0.5, 1., 8., sqrt(0.25 + 1. + 64. + 0.33**2), 0.33]
    pqq = [-0.2, 0.3, -6., sqrt(0.04 + 0.09 + 36. + 0.57933**2), 0.57933]
    i = record.add(STRING_PARTON, 2, pq)
    j = record.add(FINAL, 2101, pqq)
    record.connect(i, j)
    system = colour_systems(record)[0]

    produced = fragment_string(rng, record, system, params)

    assert produced == record.final_state()
    assert record.status[i] == FRAGMENTED and record.status[j] == FRAGMENTED
    assert all(record.mother[k] == i for k in produced)
    assert np.allclose(system_momentum(record, produced), np.add(pq, pqq)[:4], atol=1e-9)
    assert sum(charge3(int(record.kf[k])) for k in produced) == 3
    assert sum(baryon3(int(record.kf[k])) for k in produced) == 3


def test_fragment_string_gives_up(rng, params, monkeypatch):
    import sophia_crpropa.fragmentation.strings as strings
    monkeypatch.setattr(strings, 'break_string', lambda *args: None)
    record = LundRecord()
    i = record.add(STRING_PARTON, 2, [0., 0., 5., 5.01, 0.33])
    j = record.add(FINAL, -2, [0., 0., -5., 5.01, 0.33])
    record.connect(i, j)
    with pytest.raises(SamplingExhausted):
        fragment_string(rng, record, colour_systems(record)[0], params)


def check_system(record, produced, momenta, charge, baryon):
    assert not any(is_parton(int(record.kf[k])) for k in produced)
    assert np.allclose(system_momentum(record, produced), np.sum(momenta, axis=0)[:4], atol=1e-8)
    assert sum(charge3(int(record.kf[k])) for k in produced) == charge
    assert sum(baryon3(int(record.kf[k])) for k in produced) == baryon
    for k in produced:
        p = record.p[k]
        assert p[3]**2 - p[0]**2 - p[1]**2 - p[2]**2 == pytest.approx(p[4]**2, abs=1e-6)


def test_fragment_string_with_gluon(rng, params):
    for _ in range(10):
        record = LundRecord()
        momenta = [parton(0.3, 0., 6., 0.33), parton(2., 1.5, 0., 0.), parton(-1., -0.5, -5., 0.33)]
        entries = [record.add(STRING_PARTON, kf, p) for kf, p in zip((2, GLUON, -1), momenta)]
        record.status[entries[-1]] = FINAL
        record.connect(entries[0], entries[1])
        record.connect(entries[1], entries[2])
        system = colour_systems(record)[0]

        produced = fragment_string(rng, record, system, params)

        assert all(record.status[i] == FRAGMENTED for i in entries)
        check_system(record, produced, momenta, 3, 0)


def test_fragment_gluon_loop(rng, params):
    for _ in range(10):
        record = LundRecord()
        momenta = [parton(0., 0., 5., 0.), parton(0., 4., -2., 0.), parton(0.5, -4., -3., 0.)]
        entries = [record.add(STRING_PARTON, GLUON, p) for p in momenta]
        for i, j in zip(entries, entries[1:] + entries[:1]):
            record.connect(i, j)
        system = colour_systems(record)[0]
        assert system.closed

        produced = fragment_string(rng, record, system, params)

        assert all(record.status[i] == FRAGMENTED for i in entries)
        check_system(record, produced, momenta, 0, 0)


def junction_record(momenta, flavours=(2, 2, 1)):
    record = LundRecord()
    j = record.add(JUNCTION_ENTRY, JUNCTION, [0.] * 5)
    for kf, p in zip(flavours, momenta):
        record.connect(record.add(STRING_PARTON, kf, p), j)
    return record, j


def test_fragment_junction(rng, params):
    momenta = [parton(0.2, 0.1, 8., 0.33), parton(0.4, 0., -3., 0.33), parton(-0.6, -0.1, -4., 0.33)]
    for _ in range(10):
        record, j = junction_record(momenta)
        systems = colour_systems(record)
        assert len(systems) == 1 and systems[0].junction == j

        produced = fragment_junction(rng, record, systems[0], params)

        assert all(record.status[i] == FRAGMENTED for i in systems[0].partons)
        assert list(record.daughters(j)) == produced
        check_system(record, produced, momenta, 3, 3)


def test_fragment_junction_with_gluon_leg(rng, params):
    momenta = [parton(0.2, 0.1, 6., 0.33), parton(2., 0., 1., 0.), parton(0.4, 0., -3., 0.33),
               parton(-2.6, -0.1, -4., 0.33)]
    record = LundRecord()
    j = record.add(JUNCTION_ENTRY, JUNCTION, [0.] * 5)
    quark = record.add(STRING_PARTON, 2, momenta[0])
    gluon = record.add(STRING_PARTON, GLUON, momenta[1])
    record.connect(quark, gluon)
    record.connect(gluon, j)
    for kf, p in zip((1, 1), momenta[2:]):
        record.connect(record.add(STRING_PARTON, kf, p), j)
    system = colour_systems(record)[0]

    produced = fragment_junction(rng, record, system, params)

    check_system(record, produced, momenta, 0, 3)


def test_fragment_junction_gives_up(rng, params, monkeypatch):
    import sophia_crpropa.fragmentation.strings as strings
    monkeypatch.setattr(strings, 'break_junction', lambda *args: None)
    record, _ = junction_record([parton(0., 0., 5., 0.33), parton(1., 0., -2., 0.33),
                                 parton(-1., 0., -2., 0.33)])
    with pytest.raises(SamplingExhausted):
        fragment_junction(rng, record, colour_systems(record)[0], params)
