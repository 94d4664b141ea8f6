"""
Name Normalizer

Pure helpers that turn free-text item names (as typed by staff or sent by the
order intake paths) into comparable keys, plus the fallback kind/unit
classifier used when an item has no catalog entry.
"""

import re
import unicodedata
from typing import Tuple

from kitchencogs.models.common import Kind, Unit

FULL_PLATE_GRAMS = 350
HALF_PLATE_GRAMS = 175

PORTION_PATTERN = re.compile(r"(?:extra|half)")

# Regex families for the fallback classifier, matched against normalized slugs.
# Plastic/plastics are takeaway packs.
FOOD_PIECE_PATTERN = re.compile(r"(moimoi|moimo|moi|plantain|dodo|pack|packs|plastic|plastics)")
PROTEIN_PATTERN = re.compile(
    r"(chicken|beef|goat|turkey|fish|meat|protein|gizzard|ponmo|shaki|kote|cowleg|egg)"
)
DRINK_PATTERN = re.compile(
    r"(coke|cocacola|fanta|sprite|pepsi|7up|maltina|malt|water|juice|zobo|chapman|soda|drink|beer)"
)


def _fold(s: str) -> str:
    """Lowercase and strip diacritics."""
    decomposed = unicodedata.normalize("NFKD", str(s or "").lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_slug(s: str = "") -> str:
    """Canonical slug: lowercase ascii letters and digits only."""
    return re.sub(r"[^a-z0-9]+", "", _fold(s))


def base_food_slug(s: str = "") -> str:
    """Slug with portion modifiers removed, so "Fried Rice Extra" -> "friedrice"."""
    return PORTION_PATTERN.sub("", normalize_slug(s))


def loose_key(s: str = "") -> str:
    """Last-resort matching key. Never used as a primary identity."""
    folded = re.sub(r"[\s\-_]", "", _fold(s))
    return re.sub(r"[^a-z0-9]", "", folded)


def is_portion_variant(s: str = "") -> bool:
    return bool(PORTION_PATTERN.search(normalize_slug(s)))


def grams_for_name(s: str = "") -> int:
    """Plate weight for a gram-unit food line item."""
    return HALF_PLATE_GRAMS if is_portion_variant(s) else FULL_PLATE_GRAMS


def strip_portion_words(s: str = "") -> str:
    """Display name without "extra"/"half", falling back to the input if nothing is left."""
    text = str(s or "").strip()
    stripped = re.sub(r"(?:extra|half)", "", text, flags=re.IGNORECASE)
    stripped = " ".join(stripped.split())
    return stripped or text


def is_food_piece_name(s: str = "") -> bool:
    return bool(FOOD_PIECE_PATTERN.search(normalize_slug(s)))


def looks_protein(s: str = "") -> bool:
    return bool(PROTEIN_PATTERN.search(normalize_slug(s)))


def looks_drink(s: str = "") -> bool:
    return bool(DRINK_PATTERN.search(normalize_slug(s)))


def infer_kind_unit(s: str = "") -> Tuple[Kind, Unit]:
    """
    Classify an uncataloged name.

    Checked in order: piece-counted foods, proteins, drinks, then the
    default of a gram-weighed food. Never consulted when a catalog entry
    exists.
    """
    if is_food_piece_name(s):
        return Kind.FOOD, Unit.PIECE
    if looks_protein(s):
        return Kind.PROTEIN, Unit.PIECE
    if looks_drink(s):
        return Kind.DRINK, Unit.PIECE
    return Kind.FOOD, Unit.GRAM
