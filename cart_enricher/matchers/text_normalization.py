import re
from typing import List, Optional, Tuple

# Uppercase-led alphanumeric code followed by a filename separator, e.g. "I3A6W" in
# "SportCapGSWhiteI3A6W-WB5795051.jpg"
IMAGE_SKU_PATTERN = re.compile(r"([A-Z][A-Z0-9]{3,9})(?=[-_.])")

# "Champion Boys Logo Jogger Grey M:- Grey, M" -> ("Champion Boys Logo Jogger", "Grey M")
VARIANT_SUFFIX_PATTERN = re.compile(r"^(.+?)\s+([A-Za-z]+(?:\s+[A-Z0-9]+)?)\s*:-\s*.+$")

# " - ", " – " (en dash) and " — " (em dash)
DASH_SEPARATOR_PATTERN = re.compile(r"\s+[-–—]\s+")

TRAILING_SLASHES = re.compile(r"/+$")
WHITESPACE = re.compile(r"\s+")
PUNCTUATION = re.compile(r"[^\w\s-]")


def normalize_url(url: Optional[str]) -> str:
    """Lowercase a URL and strip trailing slashes."""
    if not url:
        return ""
    return TRAILING_SLASHES.sub("", url.lower())


def normalize_for_comparison(s: Optional[str]) -> str:
    """Lowercase, trim and collapse whitespace."""
    if not s:
        return ""
    return WHITESPACE.sub(" ", s.lower().strip())


def normalize_title_for_similarity(s: str) -> str:
    """Lowercase, drop punctuation other than hyphens, collapse whitespace."""
    s = PUNCTUATION.sub("", s.lower())
    return WHITESPACE.sub(" ", s).strip()


def extract_skus_from_image_url(image_url: Optional[str]) -> List[str]:
    """
    Extract SKU-shaped tokens from the filename part of an image URL.

    Many stores embed the product SKU in image filenames, which makes the cart
    image URL usable when the cart item carries no product URL.

    Args:
        image_url (Optional[str]): Cart item image URL.

    Returns:
        List[str]: Candidate SKUs in the order they appear in the filename.
    """
    if not image_url:
        return []
    filename = image_url.split("/")[-1]
    return IMAGE_SKU_PATTERN.findall(filename)


def parse_cart_title(title: Optional[str]) -> Tuple[str, Optional[str]]:
    """
    Split a cart title into its base name and color/variant suffix.

    Examples:
        "Sport Cap - White" -> ("Sport Cap", "White")
        "Champion Boys Logo Jogger Grey M:- Grey, M" -> ("Champion Boys Logo Jogger", "Grey M")
        "Sport Cap" -> ("Sport Cap", None)

    Args:
        title (Optional[str]): Cart item title.

    Returns:
        Tuple[str, Optional[str]]: (base, color). Color is None when no separator is found.
    """
    if not title:
        return "", None

    suffix_match = VARIANT_SUFFIX_PATTERN.match(title)
    if suffix_match:
        return suffix_match.group(1).strip(), suffix_match.group(2).strip()

    parts = DASH_SEPARATOR_PATTERN.split(title)
    if len(parts) >= 2:
        color = parts.pop().strip()
        return " - ".join(parts).strip(), color

    return title.strip(), None
