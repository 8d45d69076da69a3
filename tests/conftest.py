"""
Pytest configuration and shared fixtures for Product Enricher tests.
"""

import pytest
import json
import sys
import tempfile
from pathlib import Path
from unittest.mock import Mock

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


# ============================================================================
# SAMPLE DATA FIXTURES
# ============================================================================

@pytest.fixture
def sample_products():
    """Sample Shopify REST products for testing."""
    return [
        {
            "id": 7001234567,
            "title": "Tropical Splash Water Slide",
            "tags": "Water-Slides, Summer, Featured",
            "body_html": "",
            "variants": [
                {"id": 41000000001, "title": "Default Title", "barcode": None},
            ]
        },
        {
            "id": 7001234568,
            "title": "Castle Bounce House",
            "tags": "all-jumpers",
            "body_html": "<p>Old description</p>",
            "variants": [
                {"id": 41000000002, "title": "Red", "barcode": "0012345678905"},
                {"id": 41000000003, "title": "Blue", "barcode": ""},
            ]
        },
        {
            "id": 7001234569,
            "title": "Replacement Blower 1.5 HP",
            "tags": "Accessories, Blowers",
            "body_html": "<p>Blower</p>",
            "variants": [
                {"id": 41000000004, "title": "Default Title", "barcode": None},
            ]
        }
    ]


@pytest.fixture
def sample_metafields():
    """Sample product metafields from the custom namespace."""
    return [
        {"namespace": "custom", "key": "dimensions", "value": "30'L x 12'W x 18'H"},
        {"namespace": "custom", "key": "includes", "value": "Blower, stakes, tarp"},
        {"namespace": "custom", "key": "warranty", "value": "3 years on vinyl"},
        {"namespace": "global", "key": "warranty", "value": "ignored"},
    ]


@pytest.fixture
def sample_config():
    """Configuration dictionary with test credentials and no delays."""
    return {
        "SHOPIFY_SHOP": "test-store.myshopify.com",
        "SHOPIFY_ADMIN_TOKEN": "shpat_test_token",
        "SHOPIFY_API_VERSION": "2025-01",
        "SHOPIFY_WEBHOOK_SECRET": "",
        "PAGE_LIMIT": 250,
        "MAX_RETRIES": 5,
        "WEBHOOK_MAX_RETRIES": 3,
        "DEFAULT_RETRY_AFTER": 2,
        "NETWORK_RETRY_DELAY": 1,
        "REQUEST_TIMEOUT": 30,
        "ITEM_DELAY": 0,
        "STORE_NAME": "Tago's Jump Inc.",
        "TARGET_TAGS": [
            "all-jumpers",
            "water-slides",
            "combos-wet-dry",
            "combos wet/dry",
            "interactives",
            "obstacle courses",
            "slide combos"
        ],
        "METAFIELD_NAMESPACE": "custom",
        "OVERWRITE_DESCRIPTIONS": True,
        "DESCRIPTION_MODE": "template",
        "CLAUDE_API_KEY": "",
        "CLAUDE_MODEL": "claude-sonnet-4-5-20250929",
        "OPENAI_API_KEY": "",
        "OPENAI_MODEL": "gpt-5",
        "GENERATE_BARCODES": True,
        "BARCODE_PREFIX": "200",
        "MAX_BARCODE_ATTEMPTS": 100,
        "VERIFY_BARCODES_REMOTELY": False,
        "LOG_FILE": "test.log"
    }


# ============================================================================
# TEMPORARY FILE FIXTURES
# ============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir):
    """Create a temporary config.json file."""
    config_path = temp_dir / "config.json"
    config_data = {
        "SHOPIFY_SHOP": "file-store.myshopify.com",
        "SHOPIFY_ADMIN_TOKEN": "shpat_from_file",
        "SHOPIFY_API_VERSION": "2024-10",
        "STORE_NAME": "Test Inflatables",
        "LOG_FILE": str(temp_dir / "test.log")
    }
    with open(config_path, 'w') as f:
        json.dump(config_data, f, indent=4)
    return config_path


# ============================================================================
# MOCK API FIXTURES
# ============================================================================

@pytest.fixture
def make_response():
    """Factory for mock requests.Response objects."""
    def _make(status_code=200, json_data=None, headers=None, links=None, reason="OK", text=""):
        response = Mock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 400
        response.reason = reason
        response.text = text
        response.headers = headers or {}
        response.links = links or {}
        response.json.return_value = json_data if json_data is not None else {}
        return response

    return _make


@pytest.fixture
def mock_client():
    """Mock ShopifyClient with successful default responses."""
    client = Mock()
    client.fetch_all_products.return_value = []
    client.fetch_product_metafields.return_value = []
    client.update_product.return_value = {}
    client.update_variant.return_value = {}
    client.barcode_exists.return_value = False
    return client


# ============================================================================
# UTILITY FIXTURES
# ============================================================================

@pytest.fixture
def capture_logs(caplog):
    """Capture log output for testing."""
    import logging
    caplog.set_level(logging.DEBUG)
    return caplog


@pytest.fixture
def mock_status_fn():
    """Mock status function that collects status messages."""
    messages = []

    def status_fn(msg):
        messages.append(msg)

    status_fn.messages = messages
    return status_fn
