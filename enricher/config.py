"""
Configuration and logging management for the Product Enricher.
"""

import os
import sys
import json
import logging

from dotenv import load_dotenv

# Version
SCRIPT_VERSION = "1.0.0 - Product Enricher"

# File paths
APP_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CONFIG_FILE = os.path.join(APP_DIR, "config.json")
ENV_FILE = os.path.join(APP_DIR, ".env")

# Environment variables that take precedence over config.json
ENV_OVERRIDE_KEYS = [
    "SHOPIFY_SHOP",
    "SHOPIFY_ADMIN_TOKEN",
    "SHOPIFY_API_VERSION",
    "SHOPIFY_WEBHOOK_SECRET",
    "CLAUDE_API_KEY",
    "OPENAI_API_KEY",
]


def default_config():
    """Return a fresh copy of the default configuration."""
    return {
        "_SHOPIFY_SETTINGS": "Shopify Admin API credentials. Environment variables override these.",
        "SHOPIFY_SHOP": "",
        "SHOPIFY_ADMIN_TOKEN": "",
        "SHOPIFY_API_VERSION": "2025-01",
        "SHOPIFY_WEBHOOK_SECRET": "",
        "_REQUEST_SETTINGS": "Rate limit handling and pacing between product updates.",
        "PAGE_LIMIT": 250,
        "MAX_RETRIES": 5,
        "WEBHOOK_MAX_RETRIES": 3,
        "DEFAULT_RETRY_AFTER": 2,
        "NETWORK_RETRY_DELAY": 1,
        "REQUEST_TIMEOUT": 30,
        "ITEM_DELAY": 0.3,
        "_DESCRIPTION_SETTINGS": "Description generation. DESCRIPTION_MODE is template, claude or openai.",
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
        "_BARCODE_SETTINGS": "EAN-13 barcode generation for variants without one.",
        "GENERATE_BARCODES": True,
        "BARCODE_PREFIX": "200",
        "MAX_BARCODE_ATTEMPTS": 100,
        "VERIFY_BARCODES_REMOTELY": False,
        "_USER SETTINGS": "Local run settings.",
        "LOG_FILE": "enricher.log"
    }


def load_config():
    """Load configuration from config.json or create with defaults."""
    default = default_config()

    try:
        if not os.path.exists(CONFIG_FILE):
            with open(CONFIG_FILE, "w", encoding="utf-8") as f:
                json.dump(default, f, indent=4)
            return default
        else:
            with open(CONFIG_FILE, "r", encoding="utf-8") as f:
                loaded_config = json.load(f)

                # Ensure all required fields exist
                for key in default:
                    if key not in loaded_config:
                        loaded_config[key] = default[key]

                return loaded_config
    except json.JSONDecodeError as e:
        logging.error(f"Failed to parse config.json: {e}. Using defaults.")
        return default
    except IOError as e:
        logging.error(f"Failed to read/write config.json: {e}. Using defaults.")
        return default
    except Exception as e:
        logging.error(f"Unexpected error loading config: {e}. Using defaults.")
        return default


def save_config(config):
    """Save configuration to config.json."""
    try:
        with open(CONFIG_FILE, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=4)
    except IOError as e:
        logging.error(f"Failed to write config.json: {e}")
    except Exception as e:
        logging.error(f"Unexpected error saving config: {e}")


def apply_env_overrides(config):
    """
    Override credentials in config with environment variables.

    A .env file in the project root is loaded first; variables already set
    in the process environment win over the file.

    Args:
        config: Configuration dictionary (modified in place)

    Returns:
        The same configuration dictionary
    """
    load_dotenv(ENV_FILE)

    for key in ENV_OVERRIDE_KEYS:
        value = os.getenv(key)
        if value:
            config[key] = value
            logging.debug(f"Using {key} from environment")

    return config


def get_config():
    """Load config.json and apply environment overrides."""
    return apply_env_overrides(load_config())


def setup_logging(log_path: str, level: int = logging.INFO):
    """
    Configure logging to file and console.

    Args:
        log_path: Path to log file
        level: Console logging level (typically INFO)
    """
    try:
        for h in logging.root.handlers[:]:
            logging.root.removeHandler(h)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
        )

        logging.root.setLevel(logging.DEBUG)
        logging.root.addHandler(file_handler)
        logging.root.addHandler(console_handler)

        install_global_exception_logging()
    except Exception as e:
        print(f"Failed to setup logging: {e}", file=sys.stderr)
        raise


def install_global_exception_logging():
    """Log all unhandled exceptions to the log file."""
    def _log_excepthook(exctype, value, tb):
        logging.critical(
            "Unhandled exception",
            exc_info=(exctype, value, tb)
        )
        sys.__excepthook__(exctype, value, tb)

    sys.excepthook = _log_excepthook


def log_and_status(status_fn, msg: str, level: str = "info", ui_msg: str = None):
    """
    Log a message to log file and console, then forward it to a status callback.

    Args:
        status_fn: Function receiving status messages (can be None)
        msg: Detailed message for log file and console
        level: Log level - "info", "warning", or "error"
        ui_msg: Optional shorter message for the status callback
    """
    if ui_msg is None:
        ui_msg = msg

    # Always log to file/console first
    if level == "error":
        logging.error(msg)
    elif level == "warning":
        logging.warning(msg)
    else:
        logging.info(msg)

    if status_fn is not None:
        try:
            status_fn(ui_msg)
        except Exception as e:
            logging.warning(f"status_fn raised while logging message: {e}", exc_info=True)
            # Print to console as fallback
            print(f"[STATUS] {ui_msg}")
