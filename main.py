#!/usr/bin/env python3
"""
Product Enricher - CLI Entry Point

Runs the batch enrichment over every tagged product in the Shopify store,
or serves the product-created webhook with --serve.
"""

import argparse
import logging
import sys

from enricher.config import (
    get_config,
    setup_logging,
    SCRIPT_VERSION
)
from enricher.ai_writer import VALID_MODES


def print_status(message):
    """Print status message to stdout."""
    print(f"[STATUS] {message}")


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Product Enricher - descriptions and barcodes for Shopify products",
        epilog=f"Version {SCRIPT_VERSION}"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be updated without writing to Shopify"
    )
    parser.add_argument(
        "--limit",
        type=int,
        help="Stop after this many tagged products"
    )
    parser.add_argument(
        "--no-barcodes",
        action="store_true",
        help="Skip barcode generation"
    )
    parser.add_argument(
        "--description-mode",
        choices=VALID_MODES,
        help="Description source: template, claude or openai (default: from config.json)"
    )
    parser.add_argument(
        "--log-file",
        help="Path to log file"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the product-created webhook server instead of the batch job"
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Webhook server host (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Webhook server port (default: 8000)"
    )

    args = parser.parse_args(argv)

    config = get_config()

    if args.description_mode:
        config["DESCRIPTION_MODE"] = args.description_mode
    if args.no_barcodes:
        config["GENERATE_BARCODES"] = False

    # Setup logging
    log_file = args.log_file or config.get("LOG_FILE") or "enricher.log"
    setup_logging(log_file, logging.DEBUG if args.verbose else logging.INFO)

    if not config.get("SHOPIFY_SHOP") or not config.get("SHOPIFY_ADMIN_TOKEN"):
        print("ERROR: Shopify credentials missing. Set SHOPIFY_SHOP and SHOPIFY_ADMIN_TOKEN in config.json, .env or the environment.")
        return 1

    if args.serve:
        import uvicorn
        from enricher.webhook import app, webhook_config

        # Webhook requests use the flag-adjusted config
        app.dependency_overrides[webhook_config] = lambda: config
        print_status(f"Serving product-created webhook on {args.host}:{args.port}")
        uvicorn.run(app, host=args.host, port=args.port)
        return 0

    from enricher.product_updater import update_products

    print_status(f"Updating products in {config['SHOPIFY_SHOP']}")
    try:
        summary = update_products(
            config,
            status_fn=print_status,
            dry_run=args.dry_run,
            limit=args.limit,
            generate_barcodes=False if args.no_barcodes else None
        )
    except Exception as e:
        logging.error(f"Batch update failed: {e}", exc_info=True)
        print(f"ERROR: Failed to update products: {e}")
        return 1

    print_status(
        f"Done: {summary['updated']}/{summary['matched']} tagged products updated, "
        f"{summary['failed']} failed, {summary['barcodes_generated']} barcodes generated"
    )
    return 0 if summary["failed"] == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
