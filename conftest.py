import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    # Throttle history lives in the default cache and would leak between tests
    cache.clear()
    yield
    cache.clear()
