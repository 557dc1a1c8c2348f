"""
Order Email Pattern Extraction

Independent regex extractors over normalized email text. Every extractor
returns an empty/default value when it is not confident, and never raises.

Shop name and variant are strict (high precision, low recall).
"""

import re
from typing import Optional

ORDER_ID_PATTERN = re.compile(r"(\d{18,20})")

TRACKING_PATTERNS = [
    # J&T Express
    re.compile(r"(JT\d{13,16})", re.IGNORECASE),
    # SPX / Shopee Express
    re.compile(r"(SPX?\d{12,})", re.IGNORECASE),
]

SHOP_NAME_PATTERNS = [
    # "X Official Store"
    re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,2})\s+(?i:official\s+store)"),
    # "X Online Shop"
    re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,2})\s+(?i:online\s+shop)"),
]
SHOP_NAME_REJECT_WORDS = ("tiktok", "order", "delivery")

VARIANT_COLORS = (
    "black", "white", "red", "blue", "pink", "brown", "green",
    "gray", "beige", "navy", "purple", "yellow", "orange",
)
VARIANT_PATTERN = re.compile(
    r"(?i:\b(" + "|".join(VARIANT_COLORS) + r")\b)"
    # Optional code like XL, #01, A-12 (uppercase, not a size region)
    r"(?:\s*(?!(?:EU|US|UK)\b)([#A-Z0-9-]{1,15})\b)?"
    # Optional size like "EU 42", ", US:9"
    r"(?:,?\s*(?i:(EU|US|UK))[:\s]?(\d{1,3})\b)?"
)
VARIANT_NOISE_PATTERN = re.compile(r"msg|email|for\s|your|order", re.IGNORECASE)

CURRENCY = r"(?:₱|PHP|Php|P)?"
AMOUNT = r"(\d[\d,]*(?:\.\d+)?)"

# Checked in priority order, first label with a valid amount wins
TOTAL_LABELS = [
    r"Total\s+Payment",
    r"Order\s+Total",
    r"Grand\s+Total",
    r"Total\s+Amount",
    r"Total\s*\(\d+\s*items?\)",
    r"Total",
]
TOTAL_PATTERNS = [
    re.compile(rf"\b(?:{label})[:\s]*{CURRENCY}\s*{AMOUNT}", re.IGNORECASE)
    for label in TOTAL_LABELS
]
CURRENCY_AMOUNT_PATTERN = re.compile(rf"₱\s*{AMOUNT}")

MAX_PRICE = 100000

QUANTITY_PATTERNS = [
    # ×2, x2, X 2
    re.compile(r"(?<![A-Za-z0-9])[×x]\s?(\d+)\b", re.IGNORECASE),
    # 2 items
    re.compile(r"\b(\d+)\s*items?\b", re.IGNORECASE),
]
MAX_QUANTITY = 100


def capitalize_words(text: str) -> str:
    return " ".join(word.capitalize() for word in text.split())


def parse_price(text: str) -> Optional[float]:
    """Parse '1,234.56' -> 1234.56; None if unparseable."""
    try:
        return float(text.replace(",", ""))
    except (TypeError, ValueError):
        return None


def is_valid_price(price: Optional[float]) -> bool:
    return price is not None and 0 < price < MAX_PRICE


def extract_order_id(text: str) -> str:
    """First run of 18-20 digits, or ''."""
    match = ORDER_ID_PATTERN.search(text or "")
    return match.group(1) if match else ""


def extract_tracking_number(text: str) -> str:
    """
    Extract a courier tracking number (J&T first, then SPX).

    Returns:
        Upper-cased tracking number, or ''
    """
    for pattern in TRACKING_PATTERNS:
        match = pattern.search(text or "")
        if match:
            return match.group(1).upper()
    return ""


def extract_shop_name(text: str) -> str:
    """
    Extract seller name from "<Name> Official Store" / "<Name> Online Shop".

    Only the first occurrence of each template is considered. Names mentioning
    the platform or generic order words are rejected.
    """
    for pattern in SHOP_NAME_PATTERNS:
        match = pattern.search(text or "")
        if not match:
            continue

        name = match.group(1).strip()
        name_lower = name.lower()
        if not 3 <= len(name) <= 30:
            continue
        if any(word in name_lower for word in SHOP_NAME_REJECT_WORDS):
            continue
        return capitalize_words(name)

    return ""


def extract_variant(text: str) -> str:
    """
    Extract a product variant: color word, optional code, optional size.

    Examples:
        "Black XL"         -> "Black XL"
        "white EU 42"      -> "white, EU:42"
        "Navy #02, US:9"   -> "Navy #02, US:9"
    """
    match = VARIANT_PATTERN.search(text or "")
    if not match:
        return ""

    color, code, region, size = match.groups()
    variant = color
    if code:
        variant += f" {code}"
    if region and size:
        variant += f", {region.upper()}:{size}"

    variant = variant.strip()
    if not 3 <= len(variant) <= 40:
        return ""
    if VARIANT_NOISE_PATTERN.search(variant):
        return ""
    return variant


def extract_total_price(text: str) -> float:
    """
    Extract the order total.

    Labeled totals are tried in priority order ("Total Payment" before bare
    "Total"). Without a usable label, the last peso amount in the text is
    taken, since totals render last in these templates.

    Returns:
        Price in (0, 100000), or 0 when it could not be determined
    """
    text = text or ""

    for pattern in TOTAL_PATTERNS:
        for match in pattern.finditer(text):
            price = parse_price(match.group(1))
            if is_valid_price(price):
                return price
        # Out-of-range amounts under this label fall through to the next label

    last_price = 0.0
    for match in CURRENCY_AMOUNT_PATTERN.finditer(text):
        price = parse_price(match.group(1))
        if price and price > 0:
            last_price = price

    return last_price if is_valid_price(last_price) else 0.0


def extract_quantity(text: str) -> int:
    """Quantity from '×N'/'xN', else 'N item(s)'; 1 when absent or out of range."""
    for pattern in QUANTITY_PATTERNS:
        match = pattern.search(text or "")
        if match:
            quantity = int(match.group(1))
            return quantity if 0 < quantity < MAX_QUANTITY else 1
    return 1
