"""
Shopify Admin REST API client with rate limit handling and pagination.

Every call goes through ShopifyClient.request(), which waits out HTTP 429
responses using the Retry-After header and gives up after a fixed number
of attempts. Product listings follow the cursor links Shopify returns in
the Link header.
"""

import logging
import time
from typing import Dict, List, Optional

import requests

from .config import log_and_status

DEFAULT_API_VERSION = "2025-01"
DEFAULT_MAX_RETRIES = 5
DEFAULT_RETRY_AFTER = 2
DEFAULT_TIMEOUT = 30


class ShopifyAPIError(Exception):
    """Non-success response from the Shopify Admin API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code} {message}")
        self.status_code = status_code
        self.message = message


def parse_retry_after(value, default: float = DEFAULT_RETRY_AFTER) -> float:
    """Seconds to wait from a Retry-After header, falling back to default."""
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return default
    return seconds if seconds >= 0 else default


class ShopifyClient:
    """Minimal Shopify Admin REST client used by the batch job and the webhook."""

    def __init__(
        self,
        shop: str,
        token: str,
        api_version: str = DEFAULT_API_VERSION,
        max_retries: int = DEFAULT_MAX_RETRIES,
        default_retry_after: float = DEFAULT_RETRY_AFTER,
        network_retry_delay: Optional[float] = None,
        timeout: float = DEFAULT_TIMEOUT
    ):
        if not shop or not token:
            raise ValueError("Shopify shop domain and admin token are required")

        self.shop = shop
        self.token = token
        self.api_version = api_version or DEFAULT_API_VERSION
        self.max_retries = max_retries
        self.default_retry_after = default_retry_after
        # None disables retries on transport errors and 5xx responses
        self.network_retry_delay = network_retry_delay
        self.timeout = timeout

    @classmethod
    def from_config(cls, cfg: Dict, webhook: bool = False) -> "ShopifyClient":
        """
        Build a client from the configuration dictionary.

        The webhook variant uses fewer attempts and also retries transport
        errors, since a single product has to get through.
        """
        return cls(
            shop=cfg.get("SHOPIFY_SHOP", ""),
            token=cfg.get("SHOPIFY_ADMIN_TOKEN", ""),
            api_version=cfg.get("SHOPIFY_API_VERSION", DEFAULT_API_VERSION),
            max_retries=cfg.get("WEBHOOK_MAX_RETRIES", 3) if webhook else cfg.get("MAX_RETRIES", DEFAULT_MAX_RETRIES),
            default_retry_after=cfg.get("DEFAULT_RETRY_AFTER", DEFAULT_RETRY_AFTER),
            network_retry_delay=cfg.get("NETWORK_RETRY_DELAY", 1) if webhook else None,
            timeout=cfg.get("REQUEST_TIMEOUT", DEFAULT_TIMEOUT)
        )

    @property
    def base_url(self) -> str:
        return f"https://{self.shop}/admin/api/{self.api_version}"

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "X-Shopify-Access-Token": self.token,
            "Content-Type": "application/json",
        }

    def url(self, path: str) -> str:
        if path.startswith("https://") or path.startswith("http://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(self, method: str, path: str, payload: Dict = None, params: Dict = None) -> requests.Response:
        """
        Send a request, waiting out rate limits.

        Args:
            method: HTTP method
            path: Path relative to the versioned admin API, or an absolute URL
            payload: JSON body
            params: Query string parameters

        Returns:
            Successful response

        Raises:
            ShopifyAPIError: On a non-success response or when retries run out
            requests.exceptions.RequestException: On transport errors when
                network retries are disabled or exhausted
        """
        url = self.url(path)

        for attempt in range(1, self.max_retries + 1):
            try:
                response = requests.request(
                    method,
                    url,
                    headers=self.headers,
                    json=payload,
                    params=params,
                    timeout=self.timeout
                )
            except requests.exceptions.RequestException as e:
                if self.network_retry_delay is None or attempt == self.max_retries:
                    raise
                logging.error(f"Request error {attempt}/{self.max_retries} for {url}: {e}")
                time.sleep(self.network_retry_delay)
                continue

            if response.status_code == 429:
                retry_after = parse_retry_after(response.headers.get("Retry-After"), self.default_retry_after)
                logging.warning(f"⏳ Rate limit reached. Retrying in {retry_after}s...")
                time.sleep(retry_after)
                continue

            if not response.ok:
                error = ShopifyAPIError(response.status_code, response.reason or response.text)
                if (
                    self.network_retry_delay is not None
                    and response.status_code >= 500
                    and attempt < self.max_retries
                ):
                    logging.error(f"Request error {attempt}/{self.max_retries} for {url}: {error}")
                    time.sleep(self.network_retry_delay)
                    continue
                raise error

            return response

        raise ShopifyAPIError(429, f"Failed after {self.max_retries} retries for {url}")

    def fetch_all_products(self, limit: int = 250, status_fn=None) -> List[Dict]:
        """
        Fetch every product in the store, following Link header pagination.

        Args:
            limit: Page size (Shopify maximum is 250)
            status_fn: Optional status update function

        Returns:
            List of product dictionaries
        """
        all_products = []
        next_url = self.url("products.json")
        params = {"limit": limit}
        page_count = 0

        while next_url:
            response = self.request("GET", next_url, params=params)
            data = response.json()
            all_products.extend(data.get("products", []))
            page_count += 1

            # The next link already carries page_info and limit
            next_url = response.links.get("next", {}).get("url")
            params = None

        log_and_status(status_fn, f"📦 Loaded {len(all_products)} products from {page_count} page(s)")
        return all_products

    def fetch_product_metafields(self, product_id) -> List[Dict]:
        """Fetch the metafields attached to a product."""
        response = self.request("GET", f"products/{product_id}/metafields.json")
        return response.json().get("metafields") or []

    def update_product(self, product_id, fields: Dict) -> Dict:
        """
        Update a product.

        Args:
            product_id: Product ID
            fields: Fields to set (e.g. body_html, variants)

        Returns:
            Updated product dictionary as returned by Shopify
        """
        payload = {"product": {"id": product_id, **fields}}
        response = self.request("PUT", f"products/{product_id}.json", payload=payload)
        return response.json().get("product", {})

    def update_variant(self, variant_id, barcode: str) -> Dict:
        """Set the barcode of a single variant."""
        payload = {"variant": {"id": variant_id, "barcode": barcode}}
        response = self.request("PUT", f"variants/{variant_id}.json", payload=payload)
        return response.json().get("variant", {})

    def barcode_exists(self, barcode: str) -> bool:
        """
        Check whether any product in the store already uses a barcode.

        Lookup failures are logged and treated as "not found".
        """
        try:
            response = self.request(
                "GET",
                "products.json",
                params={"limit": 1, "fields": "id", "variants.barcode": barcode}
            )
            return bool(response.json().get("products"))
        except (ShopifyAPIError, requests.exceptions.RequestException) as e:
            logging.warning(f"⚠️ Error checking barcode {barcode}: {e}")
            return False
