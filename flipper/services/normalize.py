from __future__ import annotations

import re

# Section-sign formatting codes: colours 0-9a-f, styles k-o, reset r.
_FORMAT_CODE_RE = re.compile(r"§[0-9a-fk-or]")
# Star and reforge glyphs decorating upgraded items.
_DECORATION_RE = re.compile(r"^[✪⚚\s]+|[\s✪⚚]+$")


def strip_formatting(text: str) -> str:
    return _FORMAT_CODE_RE.sub("", text)


def normalize_item_name(raw_name: str) -> str:
    """Grouping key for auction listings.

    Drops formatting codes first, then any leading/trailing run of decorative
    glyphs and whitespace, so ``"§6✪ Hyperion"`` and ``"Hyperion"`` collide.
    """
    return _DECORATION_RE.sub("", strip_formatting(raw_name)).strip()


def format_product_name(product_id: str) -> str:
    """``ENCHANTED_DIAMOND`` -> ``Enchanted Diamond``."""
    words = product_id.replace("_", " ").lower().split(" ")
    return " ".join(word[:1].upper() + word[1:] for word in words)
