"""Colour systems and the collapse of small systems."""

from math import sqrt

import numpy as np
import pytest

from sophia_crpropa.errors import ColourFlowError
from sophia_crpropa.fragmentation.lund_data import GLUON, JUNCTION, charge3, is_parton
from sophia_crpropa.fragmentation.prepare import (colour_systems, prepare_fragmentation,
                                                  system_momentum)
from sophia_crpropa.fragmentation.record import (LundRecord, FINAL, STRING_PARTON, FRAGMENTED,
                                                 JUNCTION_ENTRY)


def massless(px, py, pz):
    return [px, py, pz, sqrt(px * px + py * py + pz * pz), 0.]


def add_string(record, kfs, momenta):
    entries = []
    for k, (kf, p) in enumerate(zip(kfs, momenta)):
        status = FINAL if k == len(kfs) - 1 else STRING_PARTON
        entries.append(record.add(status, kf, p))
    for i, j in zip(entries, entries[1:]):
        record.connect(i, j)
    return entries


def test_open_strings_and_gluon_loop():
    record = LundRecord()
    first = add_string(record, [2, GLUON, 2101], [massless(0, 0, 3), massless(2, 0, 0),
                                                   massless(0, 0, -3)])
    second = add_string(record, [-2101, -1], [massless(0, 1, 1), massless(0, -1, -1)])
    g1 = record.add(STRING_PARTON, GLUON, massless(1, 1, 0))
    g2 = record.add(STRING_PARTON, GLUON, massless(-1, -1, 0))
    record.connect(g1, g2)
    record.connect(g2, g1)

    systems = colour_systems(record)
    assert [s.partons for s in systems] == [first, second, [g1, g2]]
    assert [s.closed for s in systems] == [False, False, True]


def test_junction_system():
    record = LundRecord()
    j = record.add(JUNCTION_ENTRY, JUNCTION, [0.] * 5)
    legs = [record.add(STRING_PARTON, q, massless(*p)) for q, p in
            ((2, (0, 0, 2)), (2, (2, 0, -1)), (1, (-2, 0, -1)))]
    for i in legs:
        record.connect(i, j)
    systems = colour_systems(record)
    assert len(systems) == 1
    assert systems[0].junction == j
    assert sorted(systems[0].partons) == legs


@pytest.mark.parametrize('kfs', [[2], [-2, 1], [2, 1], [2, -1, -1]])
def test_broken_colour_flow(kfs):
    record = LundRecord()
    add_string(record, kfs, [massless(0, 0, 1 + k) for k in range(len(kfs))])
    with pytest.raises(ColourFlowError):
        colour_systems(record)


def test_dangling_gluon():
    record = LundRecord()
    record.add(STRING_PARTON, GLUON, massless(0, 0, 1))
    with pytest.raises(ColourFlowError):
        colour_systems(record)


def test_small_system_collapses(rng, params):
    record = LundRecord()
    m = 0.33
    small = add_string(record, [2, -1], [[0., 0., 0.5, sqrt(0.25 + m * m), m],
                                         [0., 0., -0.5, sqrt(0.25 + m * m), m]])
    large = add_string(record, [2, 2101], [massless(5, 0, 0.1), massless(-5, 0.2, 0)])
    initial = system_momentum(record, small + large)

    prepare_fragmentation(rng, record, params)

    assert all(record.status[i] == FRAGMENTED for i in small)
    systems = colour_systems(record)
    assert [s.partons for s in systems] == [large]

    remaining = record.final_state() + record.active_partons()
    assert np.allclose(system_momentum(record, remaining), initial, atol=1e-9)
    assert sum(charge3(int(record.kf[i])) for i in remaining) == 2 + 1 + 2 + 1
    assert all(not is_parton(int(record.kf[i])) for i in record.final_state())
