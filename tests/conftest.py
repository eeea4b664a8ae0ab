#
# Pytest Fixtures
#

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from contio.adapters import Adapters, default_adapters
from contio.delimiters import DelimiterConfig


# Fixtures -------------------------------------------------------------------------------------------------------------

@pytest.fixture
def adapters() -> Adapters:
    """Fresh, empty adapter registry."""
    return Adapters()


@pytest.fixture
def module_adapters():
    """Module adapter registry, with handlers registered by the test removed afterwards."""
    registry = default_adapters()
    before = set(registry)
    yield registry
    for typ in set(registry) - before:
        registry.remove(typ)


@pytest.fixture
def json_config() -> DelimiterConfig:
    return DelimiterConfig.json()
