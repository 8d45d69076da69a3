"""
Tag matching and HTML description templates for catalog products.
"""

from typing import Dict, List, Optional, Union

DEFAULT_STORE_NAME = "Tago's Jump Inc."

DEFAULT_TARGET_TAGS = [
    "all-jumpers",
    "water-slides",
    "combos-wet-dry",
    "combos wet/dry",
    "interactives",
    "obstacle courses",
    "slide combos",
]


def parse_tags(tags: Union[str, List[str], None]) -> List[str]:
    """
    Normalize product tags to a list of trimmed, lowercased strings.

    Shopify REST returns tags as a comma-separated string; exported product
    files sometimes carry a list instead. Both are accepted.
    """
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    return [t.strip().lower() for t in tags if t and t.strip()]


def match_target_tag(product: Dict, target_tags: List[str] = None) -> Optional[str]:
    """
    Return the first product tag that belongs to the target tag list.

    Tags are compared case-insensitively and the product's own tag order
    decides which one wins.

    Args:
        product: Product dictionary with 'tags'
        target_tags: Tags that qualify a product for enrichment

    Returns:
        Matching tag (lowercased) or None
    """
    if target_tags is None:
        target_tags = DEFAULT_TARGET_TAGS
    targets = {t.strip().lower() for t in target_tags}

    for tag in parse_tags(product.get('tags')):
        if tag in targets:
            return tag
    return None


def get_metafield_value(metafields: List[Dict], key: str, namespace: str = "custom") -> str:
    """Return the value of namespace.key from a metafield list, or ''."""
    for metafield in metafields or []:
        if metafield.get('namespace') == namespace and metafield.get('key') == key:
            return metafield.get('value') or ""
    return ""


def needs_description(product: Dict) -> bool:
    """True when the product has no body_html or only whitespace."""
    return not (product.get('body_html') or "").strip()


def build_usp_description(
    title: str,
    tag: str,
    store_name: str = DEFAULT_STORE_NAME,
    dimensions: str = "",
    includes: str = "",
    warranty: str = ""
) -> str:
    """
    Build the marketing block for a tagged product.

    Dimensions, includes and warranty lines are only rendered when a value
    is present.
    """
    lines = [
        '<div class="product-usp">',
        f"Take Your Business to the Next Level with {store_name}<br>",
        f"With any inflatable {tag} from {store_name}, you can rest easy knowing you're getting "
        f"a top-of-the-line, commercial-grade inflatable that's built to last and maximize "
        f"your investment.<br><br>",
        f"The {title} is no exception. It's the perfect option for any event where people want "
        f"to cool off and have some adrenaline-pumping fun. With a spectacular design and vibrant "
        f"color scheme, the {title} adds a pop of excitement and visual appeal to any party, "
        f"ensuring your customers come back for more.<br><br>",
        f"The {title} from {store_name} is an ideal choice for any event.<br>",
    ]

    if dimensions:
        lines.append(f"<strong>Dimensions:</strong> {dimensions}<br>")
    if includes:
        lines.append(f"<strong>Includes:</strong> {includes}<br>")
    if warranty:
        lines.append(f"<strong>Warranty:</strong> {warranty}")

    lines.append("</div>")
    return "\n".join(lines)


def build_generic_description(store_name: str = DEFAULT_STORE_NAME) -> str:
    """Fallback description for products without a target tag."""
    return "\n".join([
        '<div class="product-description">',
        f"<p>High-quality product from {store_name}. Built with commercial-grade materials "
        f"for durability and performance.</p>",
        "<p>Perfect for events, parties, and commercial use. Trust in our commitment to "
        "quality and customer satisfaction.</p>",
        "</div>",
    ])


def generate_product_description(
    product: Dict,
    store_name: str = DEFAULT_STORE_NAME,
    target_tags: List[str] = None,
    metafields: List[Dict] = None,
    namespace: str = "custom"
) -> str:
    """
    Generate a description for a product.

    Tagged products get the marketing block (with metafield details when
    metafields are supplied); anything else gets the generic block.
    """
    tag = match_target_tag(product, target_tags)
    if not tag:
        return build_generic_description(store_name)

    return build_usp_description(
        product.get('title', ''),
        tag,
        store_name,
        dimensions=get_metafield_value(metafields, "dimensions", namespace),
        includes=get_metafield_value(metafields, "includes", namespace),
        warranty=get_metafield_value(metafields, "warranty", namespace),
    )
