"""
Batch enrichment of the whole catalog.

Fetches every product, keeps the ones carrying a target tag, writes a
marketing description and fills missing variant barcodes. Products are
processed one at a time; a failed update is logged and the batch moves on.
"""

import json
import logging
import time
from typing import Dict, List

import requests

from .config import log_and_status
from .shopify_client import ShopifyClient, ShopifyAPIError
from .barcodes import assign_barcodes, collect_existing_barcodes, validate_prefix, DEFAULT_PREFIX
from .descriptions import (
    DEFAULT_TARGET_TAGS,
    match_target_tag,
    needs_description,
    generate_product_description
)
from .ai_writer import resolve_provider, polish_description


def build_update_payload(description: str = None, variant_updates: List[Dict] = None) -> Dict:
    """
    Build the fields sent in a product update.

    Only keys with something to write are included.
    """
    fields = {}
    if description:
        fields['body_html'] = description
    if variant_updates:
        fields['variants'] = variant_updates
    return fields


def update_products(
    cfg: Dict,
    client: ShopifyClient = None,
    status_fn=None,
    dry_run: bool = False,
    limit: int = None,
    generate_barcodes: bool = None
) -> Dict:
    """
    Enrich every tagged product in the store.

    Args:
        cfg: Configuration dictionary
        client: Shopify client (built from cfg when omitted)
        status_fn: Optional status update function
        dry_run: Log the updates instead of sending them
        limit: Stop after this many tagged products
        generate_barcodes: Override GENERATE_BARCODES from config

    Returns:
        Summary dictionary with counts and the titles of updated products

    Raises:
        ShopifyAPIError: If the product listing cannot be fetched
        ValueError: If the description mode or barcode prefix is misconfigured
    """
    if client is None:
        client = ShopifyClient.from_config(cfg)
    if generate_barcodes is None:
        generate_barcodes = cfg.get("GENERATE_BARCODES", True)

    # Fail before touching any product if the AI provider or barcode prefix is misconfigured
    resolve_provider(cfg)
    prefix = cfg.get("BARCODE_PREFIX", DEFAULT_PREFIX)
    if generate_barcodes:
        prefix = validate_prefix(prefix)

    target_tags = cfg.get("TARGET_TAGS") or DEFAULT_TARGET_TAGS
    store_name = cfg.get("STORE_NAME", "")
    namespace = cfg.get("METAFIELD_NAMESPACE", "custom")
    overwrite = cfg.get("OVERWRITE_DESCRIPTIONS", True)
    item_delay = cfg.get("ITEM_DELAY", 0.3)
    max_attempts = cfg.get("MAX_BARCODE_ATTEMPTS", 100)

    products = client.fetch_all_products(limit=cfg.get("PAGE_LIMIT", 250), status_fn=status_fn)
    log_and_status(status_fn, f"📦 Products found: {len(products)}")

    existing_barcodes = collect_existing_barcodes(products)
    if generate_barcodes:
        log_and_status(status_fn, f"🔢 Existing barcodes: {len(existing_barcodes)}")

    summary = {
        "total": len(products),
        "matched": 0,
        "updated": 0,
        "failed": 0,
        "barcodes_generated": 0,
        "updated_titles": []
    }

    for product_index, product in enumerate(products):
        tag = match_target_tag(product, target_tags)
        if not tag:
            continue

        if limit is not None and summary["matched"] >= limit:
            log_and_status(status_fn, f"Reached limit of {limit} products")
            break

        summary["matched"] += 1
        title = product.get('title', '')

        try:
            description = None
            if overwrite or needs_description(product):
                metafields = client.fetch_product_metafields(product['id'])
                description = generate_product_description(
                    product,
                    store_name,
                    target_tags,
                    metafields=metafields,
                    namespace=namespace
                )
                description = polish_description(title, description, tag, cfg)

            variant_updates = []
            if generate_barcodes:
                variant_updates = assign_barcodes(
                    product,
                    product_index * 100,
                    is_taken=existing_barcodes.__contains__,
                    max_attempts=max_attempts,
                    prefix=prefix
                )
                # Reserve for the rest of this run
                existing_barcodes.update(v['barcode'] for v in variant_updates)

            fields = build_update_payload(description, variant_updates)
            if not fields:
                logging.info(f"Nothing to update for {title}")
                continue

            if dry_run:
                log_and_status(status_fn, f"[DRY RUN] Would update {title}")
                logging.debug(json.dumps({"product": {"id": product['id'], **fields}}, indent=2))
            else:
                client.update_product(product['id'], fields)

            summary["updated"] += 1
            summary["barcodes_generated"] += len(variant_updates)
            summary["updated_titles"].append(title)

            barcode_note = f" ({len(variant_updates)} barcodes generated)" if variant_updates else ""
            log_and_status(status_fn, f"✅ Updated: {title}{barcode_note}")

        except (ShopifyAPIError, requests.exceptions.RequestException) as e:
            summary["failed"] += 1
            log_and_status(status_fn, f"❌ Error updating {title}: {e}", "error")

        if not dry_run:
            time.sleep(item_delay)

    log_and_status(status_fn, "")
    log_and_status(status_fn, "=" * 60)
    log_and_status(status_fn, f"🎉 Update complete. Products updated: {summary['updated']}")
    log_and_status(status_fn, f"🔢 Barcodes generated: {summary['barcodes_generated']}")
    if summary["failed"]:
        log_and_status(status_fn, f"⚠️ Failed updates: {summary['failed']}", "warning")
    log_and_status(status_fn, "=" * 60)

    return summary
