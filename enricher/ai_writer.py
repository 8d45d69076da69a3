"""
Optional AI polishing of generated product descriptions.

DESCRIPTION_MODE selects the provider: "template" keeps the generated HTML
as-is, "claude" and "openai" send it through the respective API.
"""

import logging

import anthropic
from openai import OpenAI

VALID_MODES = ("template", "claude", "openai")


def build_polish_prompt(title: str, draft_html: str, tag: str, store_name: str) -> str:
    """
    Build the prompt asking the model to rewrite a draft description.

    Args:
        title: Product title
        draft_html: Template-generated description
        tag: Product line the product belongs to (e.g. "water-slides")
        store_name: Store name to keep in the copy

    Returns:
        Formatted prompt string
    """
    category = tag or "general"

    prompt = f"""You are a professional e-commerce copywriter for {store_name}, a seller of commercial-grade inflatables.

Rewrite the draft product description below so it reads naturally and is unique to this product.

Product information:
- Title: {title}
- Product line: {category}

Draft description:
{draft_html}

Requirements:
1. Keep every fact from the draft (dimensions, included items, warranty) exactly as written
2. Keep the store name "{store_name}"
3. Use second-person voice and focus on benefits for rental businesses
4. Avoid generic filler such as "must-have" or "best ever"
5. Keep the result under 200 words

Return ONLY the rewritten description as HTML inside a single <div class="product-usp"> element. Do not include explanations or markdown formatting."""

    return prompt


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code block, if any."""
    text = (text or "").strip()
    if text.startswith("```"):
        logging.debug("Removing markdown code block wrapper from AI response")
        lines = text.split('\n')
        text = '\n'.join(lines[1:-1]).strip()
    return text


def polish_with_claude(prompt: str, api_key: str, model: str) -> str:
    """Send the prompt to Claude and return the rewritten HTML."""
    client = anthropic.Anthropic(api_key=api_key)

    logging.info(f"Sending description rewrite request to Claude ({model})...")
    response = client.messages.create(
        model=model,
        max_tokens=2000,
        messages=[{
            "role": "user",
            "content": prompt
        }]
    )
    logging.info(f"Token usage - Input: {response.usage.input_tokens}, Output: {response.usage.output_tokens}")

    return strip_code_fence(response.content[0].text)


def polish_with_openai(prompt: str, api_key: str, model: str) -> str:
    """Send the prompt to OpenAI and return the rewritten HTML."""
    client = OpenAI(api_key=api_key)

    logging.info(f"Sending description rewrite request to OpenAI ({model})...")
    response = client.chat.completions.create(
        model=model,
        messages=[{
            "role": "user",
            "content": prompt
        }]
    )
    logging.info(f"Token usage - Total: {response.usage.total_tokens}")

    return strip_code_fence(response.choices[0].message.content)


def resolve_provider(cfg: dict):
    """
    Resolve the configured description provider.

    Args:
        cfg: Configuration dictionary

    Returns:
        None for template mode, else (provider_name, polish_fn, api_key, model)

    Raises:
        ValueError: If the mode is unknown or the provider's API key is missing
    """
    mode = (cfg.get("DESCRIPTION_MODE") or "template").lower()

    if mode == "template":
        return None

    if mode == "claude":
        api_key = (cfg.get("CLAUDE_API_KEY") or "").strip()
        model = cfg.get("CLAUDE_MODEL", "claude-sonnet-4-5-20250929")
        polish_fn = polish_with_claude
        provider_name = "Claude"
    elif mode == "openai":
        api_key = (cfg.get("OPENAI_API_KEY") or "").strip()
        model = cfg.get("OPENAI_MODEL", "gpt-5")
        polish_fn = polish_with_openai
        provider_name = "OpenAI"
    else:
        error_msg = f"Unknown description mode: {mode}. Must be one of {', '.join(VALID_MODES)}."
        logging.error(error_msg)
        raise ValueError(error_msg)

    if not api_key:
        error_msg = f"{provider_name} API key not configured. Set {mode.upper()}_API_KEY in config.json or the environment."
        logging.error(error_msg)
        raise ValueError(error_msg)

    return provider_name, polish_fn, api_key, model


def polish_description(title: str, draft_html: str, tag: str, cfg: dict) -> str:
    """
    Optionally rewrite a draft description with the configured AI provider.

    Returns the draft unchanged in template mode, when the API call fails,
    or when the model returns nothing.

    Raises:
        ValueError: If the mode is unknown or the provider's API key is missing
    """
    provider = resolve_provider(cfg)
    if provider is None:
        return draft_html

    provider_name, polish_fn, api_key, model = provider
    prompt = build_polish_prompt(title, draft_html, tag, cfg.get("STORE_NAME", ""))

    try:
        polished = polish_fn(prompt, api_key, model)
    except Exception as e:
        logging.error(f"{provider_name} rewrite failed for {title}: {e}. Keeping template description.")
        return draft_html

    if not polished:
        logging.warning(f"{provider_name} returned an empty description for {title}. Keeping template description.")
        return draft_html

    return polished
