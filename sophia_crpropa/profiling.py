"""Timing of the event generation over a grid of nucleon energies.

19.10.2026 - Leonel Morejon
"""

import logging
import time

import numpy as np
from tqdm import tqdm

from sophia_crpropa.event import EventGenerator

logger = logging.getLogger(__name__)

default_energies = (1e2, 1e3, 1e4)  # GeV


def base_profile(Nsim=10, Nevents=100, energies=default_energies, photon_energy=1e-3,
                 is_proton=True, seed=None, output_filename=None):
    """Generates events a number of cycles per nucleon energy and reports
    the duration of every cycle.
    Nsim : number of cycles
    Nevents : number of events per cycle
    photon_energy : background photon energy in GeV

    Returns an array of durations in seconds with shape (Nsim, len(energies)).
    """
    tprofile = np.zeros((Nsim, len(energies)))
    generator = EventGenerator(seed)
    multiplicities = np.zeros(len(energies))

    with tqdm(total=Nsim * len(energies)) as pbar:
        for ne, energy in enumerate(energies):
            for simnum in range(Nsim):
                tstart = time.time()
                for _ in range(Nevents):
                    multiplicities[ne] += generator.generate_event(is_proton, energy, photon_energy).count
                tprofile[simnum, ne] = time.time() - tstart

                pbar.update(1)

    for energy, total in zip(energies, multiplicities):
        logger.info('E = %.3g GeV: %.2f particles per event', energy, total / max(Nsim * Nevents, 1))

    if output_filename is not None:
        header = 'durations in s, columns E = ' + ' '.join(f'{e:.3g}' for e in energies) + ' GeV'
        np.savetxt(output_filename, tprofile, header=header)
    return tprofile


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    energy_grid = np.logspace(1.5, 5, 8)
    base_profile(Nsim=10, Nevents=1000, energies=energy_grid, output_filename='time_profile.txt')
