"""
Webhook endpoint for Shopify "products/create" events.

Each new product gets barcodes for its variants and, when it has none, a
generated description. Run with:

    uvicorn enricher.webhook:app
"""

import base64
import hashlib
import hmac
import json
import logging
import time
from datetime import datetime, timezone
from functools import lru_cache
from typing import Dict, Optional

import requests
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .config import get_config, log_and_status
from .shopify_client import ShopifyClient, ShopifyAPIError
from .barcodes import assign_barcodes, DEFAULT_PREFIX
from .descriptions import (
    DEFAULT_TARGET_TAGS,
    match_target_tag,
    needs_description,
    generate_product_description
)
from .ai_writer import polish_description


def verify_webhook(body: bytes, hmac_header: str, secret: str) -> bool:
    """
    Check the X-Shopify-Hmac-Sha256 header against the raw request body.

    Args:
        body: Raw request body
        hmac_header: Base64 HMAC sent by Shopify
        secret: Webhook signing secret

    Returns:
        True if the signature matches
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    calculated = base64.b64encode(digest).decode("utf-8")
    # Compare bytes, header values may carry non-ASCII characters
    return hmac.compare_digest(calculated.encode("utf-8"), (hmac_header or "").encode("utf-8"))


def process_new_product(product: Dict, client: ShopifyClient, cfg: Dict, status_fn=None) -> Dict:
    """
    Fill in barcodes and description for a newly created product.

    If the combined product update fails but barcodes were generated, each
    variant is updated on its own and the result is flagged as partial.

    Args:
        product: Product payload from the webhook
        client: Shopify client
        cfg: Configuration dictionary
        status_fn: Optional status update function

    Returns:
        Result dictionary (success, changes, barcodes_generated,
        description_added, partial)

    Raises:
        ShopifyAPIError: If the update fails and there are no barcodes to fall back on
    """
    title = product.get('title', '')
    variants = product.get('variants') or []
    log_and_status(status_fn, f"Processing: {title} ({len(variants)} variants)")

    variant_updates = []
    if cfg.get("GENERATE_BARCODES", True):
        if cfg.get("VERIFY_BARCODES_REMOTELY", False):
            is_taken = client.barcode_exists
        else:
            is_taken = lambda code: False  # noqa: E731
        variant_updates = assign_barcodes(
            product,
            0,
            is_taken=is_taken,
            max_attempts=cfg.get("MAX_BARCODE_ATTEMPTS", 100),
            prefix=cfg.get("BARCODE_PREFIX", DEFAULT_PREFIX)
        )

    fields = {}
    if needs_description(product):
        target_tags = cfg.get("TARGET_TAGS") or DEFAULT_TARGET_TAGS
        tag = match_target_tag(product, target_tags)
        description = generate_product_description(product, cfg.get("STORE_NAME", ""), target_tags)
        fields['body_html'] = polish_description(title, description, tag, cfg)
        logging.info(f"Description generated ({len(fields['body_html'])} characters)")

    if variant_updates:
        fields['variants'] = variant_updates

    if not fields:
        log_and_status(status_fn, f"Product {title} is already complete")
        return {
            "success": True,
            "changes": False,
            "barcodes_generated": 0,
            "description_added": False,
            "partial": False
        }

    try:
        client.update_product(product['id'], fields)
    except (ShopifyAPIError, requests.exceptions.RequestException) as e:
        logging.error(f"Error updating {title}: {e}")
        if not variant_updates:
            raise

        log_and_status(status_fn, "Retrying with barcode-only variant updates...")
        variants_updated = 0
        for update in variant_updates:
            try:
                client.update_variant(update['id'], update['barcode'])
                logging.info(f"Barcode {update['barcode']} applied to variant {update['id']}")
                variants_updated += 1
            except (ShopifyAPIError, requests.exceptions.RequestException) as variant_error:
                logging.error(f"Error updating variant {update['id']}: {variant_error}")

        return {
            "success": variants_updated > 0,
            "changes": variants_updated > 0,
            "barcodes_generated": variants_updated,
            "description_added": False,
            "partial": True
        }

    log_and_status(status_fn, f"✅ {title} updated")
    logging.info(f"  Description: {'yes' if 'body_html' in fields else 'no'}")
    logging.info(f"  Barcodes: {len(variant_updates)}")

    return {
        "success": True,
        "changes": True,
        "barcodes_generated": len(variant_updates),
        "description_added": 'body_html' in fields,
        "partial": False
    }


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

@lru_cache(maxsize=1)
def webhook_config() -> Dict:
    """Configuration shared by all webhook requests."""
    return get_config()


def get_client(cfg: Dict = Depends(webhook_config)) -> Optional[ShopifyClient]:
    """Shopify client for the webhook, or None when credentials are missing."""
    try:
        return ShopifyClient.from_config(cfg, webhook=True)
    except ValueError as e:
        logging.error(f"Webhook cannot reach Shopify: {e}")
        return None


def server_error(message: str, start_time: float) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": message,
            "processingTime": int((time.monotonic() - start_time) * 1000)
        }
    )


app = FastAPI(title="Product Enricher Webhook")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST"],
    allow_headers=["Content-Type", "X-Shopify-Hmac-Sha256"],
)


@app.get("/health")
async def health() -> Dict:
    return {"status": "ok"}


@app.post("/")
@app.post("/webhooks/product-created")
async def product_created(
    request: Request,
    cfg: Dict = Depends(webhook_config),
    client: Optional[ShopifyClient] = Depends(get_client)
):
    """Handle a products/create webhook delivery."""
    start_time = time.monotonic()
    logging.info(f"Webhook received: {datetime.now(timezone.utc).isoformat()}")

    body = await request.body()

    # Signature is only enforced when a secret is configured and Shopify sent one
    secret = cfg.get("SHOPIFY_WEBHOOK_SECRET")
    hmac_header = request.headers.get("x-shopify-hmac-sha256")
    if secret and hmac_header and not verify_webhook(body, hmac_header, secret):
        logging.error("Webhook signature mismatch")
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    try:
        product = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logging.error(f"Webhook body is not valid JSON: {e}")
        return JSONResponse(status_code=400, content={"error": "Invalid product data"})

    if not isinstance(product, dict) or not product.get('id'):
        logging.error("Invalid product data")
        return JSONResponse(status_code=400, content={"error": "Invalid product data"})

    logging.info(f"Product: {product.get('title')} (ID: {product['id']})")

    if client is None:
        return server_error("Shopify credentials not configured", start_time)

    try:
        result = await run_in_threadpool(process_new_product, product, client, cfg)
    except Exception as e:
        logging.error(f"Webhook handler error: {e}", exc_info=True)
        return server_error(str(e), start_time)

    duration = int((time.monotonic() - start_time) * 1000)
    logging.info(f"Processing finished in {duration}ms")

    return {
        "success": result["success"],
        "message": "Product processed and updated" if result["changes"] else "Product received, no changes needed",
        "productId": product['id'],
        "productTitle": product.get('title'),
        "barcodesGenerated": result.get("barcodes_generated", 0),
        "descriptionAdded": result.get("description_added", False),
        "partial": result.get("partial", False),
        "processingTime": duration,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
