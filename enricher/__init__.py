"""
Product Enricher Package

Fills in marketing descriptions and EAN-13 barcodes for Shopify products,
either as a batch over the whole catalog or one product at a time from a
products/create webhook.

Modules:
- config: config.json loading, environment overrides and logging setup
- shopify_client: Shopify Admin REST client with rate limit handling
- barcodes: EAN-13 barcode generation
- descriptions: tag matching and HTML description templates
- ai_writer: optional Claude/OpenAI polishing of descriptions
- product_updater: batch enrichment job
- webhook: FastAPI app for product-created webhooks
"""

__version__ = "1.0.0"

__all__ = [
    "config",
    "shopify_client",
    "barcodes",
    "descriptions",
    "ai_writer",
    "product_updater",
    "webhook",
]
