"""String and independent fragmentation of the non-resonant interactions."""

from sophia_crpropa.fragmentation.interaction import fragment_interaction
from sophia_crpropa.fragmentation.prepare import colour_systems, prepare_fragmentation
from sophia_crpropa.fragmentation.record import LundRecord
