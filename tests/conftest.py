import os
import sys
import pytest

# Add the project root directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from imgproxy_signer.core.config import SignatureConfiguration
from tests.utils.constants import BASE_URL


@pytest.fixture
def signed_configuration():
    """Configuration with a key/salt pair."""
    return SignatureConfiguration(base_url=BASE_URL, key="secret", salt="hello")


@pytest.fixture
def unsigned_configuration():
    """Configuration without key and salt."""
    return SignatureConfiguration(base_url=BASE_URL)
