"""Scratch record of the fragmentation subsystem.

Besides the five-momenta and PDG codes, every entry has a status, its mother,
the range of its daughters and the colour-flow pointers to the neighbouring
partons of its string.
"""

import numpy as np

from sophia_crpropa.config_file import max_lund_entries
from sophia_crpropa.errors import RecordOverflowError
from sophia_crpropa.fragmentation.lund_data import is_parton

FINAL = 1           # final hadron, or last parton of a string
STRING_PARTON = 2   # parton with the string continuing
DECAYED = 11
FRAGMENTED = 12
DOCUMENTATION = 21
JUNCTION_ENTRY = 42


class LundRecord:

    def __init__(self, capacity=max_lund_entries):
        self.capacity = capacity
        self.status = np.zeros(capacity, dtype=int)
        self.kf = np.zeros(capacity, dtype=int)
        self.mother = np.full(capacity, -1, dtype=int)
        self.first_daughter = np.full(capacity, -1, dtype=int)
        self.last_daughter = np.full(capacity, -1, dtype=int)
        self.colour_next = np.full(capacity, -1, dtype=int)
        self.colour_prev = np.full(capacity, -1, dtype=int)
        self.p = np.zeros((capacity, 5))
        self.n = 0

    def __len__(self):
        return self.n

    def clear(self):
        self.truncate(0)

    def add(self, status, kf, p5, mother=-1):
        """Append an entry and return its index."""
        if self.n >= self.capacity:
            raise RecordOverflowError(f'fragmentation record full ({self.capacity} entries)')
        i = self.n
        self.status[i] = status
        self.kf[i] = kf
        self.mother[i] = mother
        self.first_daughter[i] = self.last_daughter[i] = -1
        self.colour_next[i] = self.colour_prev[i] = -1
        self.p[i, :] = p5[:5]
        self.n += 1
        if mother >= 0:
            if self.first_daughter[mother] < 0:
                self.first_daughter[mother] = i
            self.last_daughter[mother] = i
        return i

    def connect(self, i, j):
        """Colour flows from entry i to entry j."""
        self.colour_next[i] = j
        if self.status[j] != JUNCTION_ENTRY:
            self.colour_prev[j] = i

    def mark_fragmented(self, partons, first, last):
        """Flag ``partons`` as fragmented into the entries first..last."""
        for i in partons:
            self.status[i] = FRAGMENTED
            self.first_daughter[i] = first
            self.last_daughter[i] = last

    def daughters(self, i):
        if self.first_daughter[i] < 0:
            return []
        return list(range(self.first_daughter[i], self.last_daughter[i] + 1))

    def ancestry(self, i):
        """Mothers of entry i, nearest first."""
        chain = []
        j = self.mother[i]
        while j >= 0 and len(chain) < self.n:
            chain.append(int(j))
            j = self.mother[j]
        return chain

    def is_parton(self, i):
        return is_parton(int(self.kf[i]))

    def final_state(self):
        """Indices of the final hadrons."""
        return [i for i in range(self.n)
                if self.status[i] == FINAL and not self.is_parton(i)]

    def active_partons(self):
        return [i for i in range(self.n)
                if self.status[i] in (FINAL, STRING_PARTON) and self.is_parton(i)]

    def truncate(self, n):
        """Drop the entries from n on, undoing the pointers into them."""
        n = min(self.n, n)
        self.n = n
        for pointers in (self.first_daughter, self.last_daughter):
            pointers[:n][pointers[:n] >= n] = -1
        for pointers in (self.colour_next, self.colour_prev):
            pointers[:n][pointers[:n] >= n] = -1
