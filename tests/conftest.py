import pytest

from libmath.core import settings


@pytest.fixture(autouse=True)
def _restore_settings():
    """Process-wide settings are shared; give every test the defaults back."""
    yield
    settings.reset_settings()
