"""Particle record of the SOPHIA code space.

A fixed capacity array of five-momenta (px, py, pz, E, m) and particle codes,
owned by one event generation and overwritten from index 0 at every event.
"""

import numpy as np

from sophia_crpropa.config_file import max_sophia_entries
from sophia_crpropa.errors import RecordOverflowError


class ParticleRecord:

    def __init__(self, capacity=max_sophia_entries):
        self.capacity = capacity
        self.p = np.zeros((capacity, 5))
        self.code = np.zeros(capacity, dtype=int)
        self.n = 0

    def __len__(self):
        return self.n

    def clear(self):
        self.n = 0

    def append(self, p5, code):
        """Append one entry and return its index."""
        if self.n >= self.capacity:
            raise RecordOverflowError(f'particle record full ({self.capacity} entries)')
        i = self.n
        self.p[i, :] = p5[:5]
        self.code[i] = code
        self.n += 1
        return i

    def filter(self, keep):
        """Compact the record in place to the entries whose code passes ``keep``."""
        mask = np.array([keep(int(c)) for c in self.code[:self.n]], dtype=bool)
        kept = int(mask.sum())
        self.p[:kept] = self.p[:self.n][mask]
        self.code[:kept] = self.code[:self.n][mask]
        self.n = kept

    @property
    def momenta(self):
        return self.p[:self.n]

    @property
    def codes(self):
        return self.code[:self.n]

    def total_momentum(self):
        return self.p[:self.n, :4].sum(axis=0)

    def entries(self):
        """List of ((px, py, pz, E, m), code) of the live entries."""
        return [(tuple(float(v) for v in self.p[i]), int(self.code[i]))
                for i in range(self.n)]
