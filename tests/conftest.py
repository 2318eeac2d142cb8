import pytest

from wipecord.selector_resolver import SelectorResolver
from wipecord.timing import SettleTimings, Settler


@pytest.fixture
def resolver():
    """Resolver over the packaged Discord selector table."""
    return SelectorResolver.from_yaml()


@pytest.fixture
def settler():
    """Settler with every wait set to zero, so tests never sleep."""
    return Settler(SettleTimings.immediate())
