import numpy as np
import pytest

from sophia_crpropa.errors import RecordOverflowError
from sophia_crpropa.fragmentation.record import (LundRecord, FINAL, STRING_PARTON, DOCUMENTATION,
                                                 FRAGMENTED)
from sophia_crpropa.particle_record import ParticleRecord


def test_particle_record_append_and_filter():
    record = ParticleRecord(capacity=4)
    record.append([0., 0., 1., 2., 1.7], 13)
    record.append([0., 0., -1., 1.1, 0.5], 7)
    record.append([1., 0., 0., 1., 0.], 1)
    assert len(record) == 3
    assert np.allclose(record.total_momentum(), [1., 0., 0., 4.1])

    record.filter(lambda code: code != 7)
    assert list(record.codes) == [13, 1]
    assert record.entries()[1] == ((1., 0., 0., 1., 0.), 1)


def test_particle_record_overflow():
    record = ParticleRecord(capacity=1)
    record.append([0.] * 5, 1)
    with pytest.raises(RecordOverflowError):
        record.append([0.] * 5, 1)
    record.clear()
    assert record.n == 0


def test_lund_record_genealogy():
    record = LundRecord(capacity=10)
    i = record.add(DOCUMENTATION, 2212, [0., 0., 1., 1.4, 0.94])
    q = record.add(STRING_PARTON, 2, [0., 0., 1., 1., 0.], mother=i)
    qq = record.add(FINAL, 2101, [0., 0., -1., 1., 0.], mother=i)
    record.connect(q, qq)
    assert record.daughters(i) == [q, qq]
    assert record.colour_next[q] == qq and record.colour_prev[qq] == q
    assert record.active_partons() == [q, qq]

    h = record.add(FINAL, 211, [0., 0., 0., 0.14, 0.14], mother=q)
    record.mark_fragmented([q, qq], h, h)
    assert record.status[q] == FRAGMENTED
    assert record.ancestry(h) == [q, i]
    assert record.final_state() == [h]
    assert record.active_partons() == []


def test_lund_record_truncate():
    record = LundRecord(capacity=10)
    a = record.add(STRING_PARTON, 2, [0.] * 5)
    b = record.add(FINAL, -2, [0.] * 5, mother=a)
    record.connect(a, b)
    record.truncate(1)
    assert record.n == 1
    assert record.colour_next[a] == -1
    assert record.daughters(a) == []


def test_lund_record_overflow():
    record = LundRecord(capacity=2)
    record.add(FINAL, 211, [0.] * 5)
    record.add(FINAL, 211, [0.] * 5)
    with pytest.raises(RecordOverflowError):
        record.add(FINAL, 211, [0.] * 5)
