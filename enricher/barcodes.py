"""
EAN-13 barcode generation for product variants.

Generated codes use an in-store prefix ("200" by default), the last six
digits of the product ID and a three-digit index, followed by the standard
EAN-13 check digit.
"""

import logging
from typing import Callable, Dict, List, Set

DEFAULT_PREFIX = "200"
DEFAULT_MAX_ATTEMPTS = 100


def validate_prefix(prefix) -> str:
    """
    Check that a barcode prefix is exactly 3 digits.

    Raises:
        ValueError: If the prefix would not give a 13-digit code
    """
    prefix = str(prefix or "")
    if len(prefix) != 3 or not prefix.isdigit():
        raise ValueError(f"BARCODE_PREFIX must be 3 digits, got: {prefix!r}")
    return prefix


def ean13_check_digit(base: str) -> int:
    """
    Compute the EAN-13 check digit for a 12-digit base code.

    Digits at even positions (0-based) weigh 1, odd positions weigh 3.

    Args:
        base: 12-digit string

    Returns:
        Check digit (0-9)

    Raises:
        ValueError: If base is not exactly 12 digits
    """
    if len(base) != 12 or not base.isdigit():
        raise ValueError(f"EAN-13 base must be 12 digits, got: {base!r}")

    total = 0
    for i, ch in enumerate(base):
        digit = int(ch)
        total += digit if i % 2 == 0 else digit * 3

    return (10 - (total % 10)) % 10


def generate_barcode(product_id, index: int, prefix: str = DEFAULT_PREFIX) -> str:
    """
    Build an EAN-13 code from a product ID and an index.

    Format: prefix + last 6 digits of product ID + index (3 digits) + check digit.
    The index wraps at 1000 so the result is always 13 digits long.

    Args:
        product_id: Shopify product ID (int or numeric string)
        index: Position used to make the code unique within the product
        prefix: 3-digit prefix (200-299 is reserved for in-store use)

    Returns:
        13-digit barcode string
    """
    product_part = str(product_id).zfill(6)[-6:]
    index_part = str(index % 1000).zfill(3)
    base = f"{prefix}{product_part}{index_part}"
    return base + str(ean13_check_digit(base))


def is_valid_ean13(code) -> bool:
    """Check length, digits and check digit of an EAN-13 code."""
    code = str(code or "")
    if len(code) != 13 or not code.isdigit():
        return False
    return ean13_check_digit(code[:12]) == int(code[12])


def collect_existing_barcodes(products: List[Dict]) -> Set[str]:
    """Gather every non-empty variant barcode across the catalog."""
    existing = set()
    for product in products:
        for variant in product.get('variants') or []:
            if variant.get('barcode'):
                existing.add(variant['barcode'])
    return existing


def assign_barcodes(
    product: Dict,
    base_index: int,
    is_taken: Callable[[str], bool],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    prefix: str = DEFAULT_PREFIX
) -> List[Dict]:
    """
    Generate barcodes for the variants of a product that have none.

    For variant number N the candidate index is base_index + N + attempt,
    bumped until is_taken() returns False. Variants that already carry a
    barcode are left alone.

    Args:
        product: Product dictionary with 'id' and 'variants'
        base_index: Starting index for this product
        is_taken: Callable returning True when a code is already in use
        max_attempts: Candidates tried per variant before giving up
        prefix: Barcode prefix

    Returns:
        List of {"id": variant_id, "barcode": code} updates
    """
    updates = []
    generated = set()
    title = product.get('title', '')

    for variant_index, variant in enumerate(product.get('variants') or []):
        if variant.get('barcode'):
            continue

        barcode = None
        for attempt in range(max_attempts):
            candidate = generate_barcode(product['id'], base_index + variant_index + attempt, prefix)
            if candidate not in generated and not is_taken(candidate):
                barcode = candidate
                break

        if barcode is None:
            logging.warning(
                f"⚠️ Could not generate a unique barcode for variant {variant.get('id')} "
                f"after {max_attempts} attempts"
            )
            continue

        generated.add(barcode)
        updates.append({"id": variant.get('id'), "barcode": barcode})
        logging.info(f"🔢 New barcode for \"{title}\" (variant {variant.get('id')}): {barcode}")

    return updates
