"""Photopion production of nucleons on photon backgrounds, SOPHIA model.

The CRPropa module lives in ``sophia_crpropa.crpropa_module`` and is not
imported here, the event generator does not need CRPropa.
"""

__version__ = "0.1.0"

from sophia_crpropa.cross_sections import Channel, crossection
from sophia_crpropa.errors import (SophiaError, SamplingExhausted, ConservationError,
                                   InvalidCodeError, ColourFlowError, RecordOverflowError,
                                   KinematicsError)
from sophia_crpropa.event import Event, EventGenerator, generate_event
from sophia_crpropa.random_source import RandomSource
from sophia_crpropa.sampling import Mode
