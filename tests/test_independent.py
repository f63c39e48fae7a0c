"""Independent fragmentation and momentum compensation."""

from math import sqrt

import numpy as np
import pytest

from sophia_crpropa.fragmentation.independent import (ENERGY, TRANSVERSE_MASS, UNIFORM, compensate,
                                                      fragment_jets, fragment_independent)
from sophia_crpropa.fragmentation.lund_data import GLUON, charge3, baryon3, is_parton
from sophia_crpropa.fragmentation.prepare import colour_systems, system_momentum
from sophia_crpropa.fragmentation.record import LundRecord, FINAL, STRING_PARTON, FRAGMENTED


def hadron(px, py, pz, m):
    return [px, py, pz, sqrt(px * px + py * py + pz * pz + m * m), m]


@pytest.mark.parametrize('scheme', [ENERGY, TRANSVERSE_MASS, UNIFORM])
def test_compensate(scheme):
    hadrons = [(211, hadron(0.3, 0.1, 2., 0.1396)), (-211, hadron(-0.2, 0., -1.5, 0.1396)),
               (2212, hadron(0.1, -0.3, 0.4, 0.9383))]
    assert compensate(hadrons, 4., scheme)
    total = np.sum([p[:4] for _, p in hadrons], axis=0)
    assert np.allclose(total, [0., 0., 0., 4.], atol=1e-8)
    for _, p in hadrons:
        assert p[3]**2 - p[0]**2 - p[1]**2 - p[2]**2 == pytest.approx(p[4]**2, abs=1e-9)


def test_compensate_impossible():
    hadrons = [(2212, hadron(0., 0., 1., 0.9383)), (-2212, hadron(0., 0., -1., 0.9383))]
    assert not compensate(hadrons, 1.5, ENERGY)
    assert not compensate(hadrons[:1], 5., ENERGY)


def test_fragment_jets_flavour(rng, params):
    for _ in range(20):
        hadrons = fragment_jets(rng, [2, GLUON, -1], [hadron(0, 0, 5, 0.), hadron(4, 0, 0, 0.),
                                                       hadron(0, 0, -5, 0.)], params)
        if hadrons is None:
            continue
        assert sum(charge3(kf) for kf, _ in hadrons) == 3
        assert sum(baryon3(kf) for kf, _ in hadrons) == 0


def test_fragment_independent(rng, params):
    record = LundRecord()
    momenta = [hadron(0.2, 0., 6., 0.), hadron(3., 1., 0., 0.), hadron(-1., 0., -5., 0.)]
    entries = [record.add(STRING_PARTON, kf, p) for kf, p in zip((2, GLUON, 2101), momenta)]
    record.status[entries[-1]] = FINAL
    record.connect(entries[0], entries[1])
    record.connect(entries[1], entries[2])
    system = colour_systems(record)[0]

    produced = fragment_independent(rng, record, system, params)

    assert all(record.status[i] == FRAGMENTED for i in entries)
    assert not any(is_parton(int(record.kf[k])) for k in produced)
    assert np.allclose(system_momentum(record, produced), np.sum(momenta, axis=0)[:4], atol=1e-8)
    assert sum(charge3(int(record.kf[k])) for k in produced) == 3
    assert sum(baryon3(int(record.kf[k])) for k in produced) == 3
