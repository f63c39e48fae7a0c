import pytest

from sophia_crpropa.config_file import lund_parameters
from sophia_crpropa.random_source import RandomSource


@pytest.fixture
def rng():
    return RandomSource(20261019)


@pytest.fixture
def params():
    return dict(lund_parameters)
