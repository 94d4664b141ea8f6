"""
Alias Resolver

Maps catalog ids, slugs and free-text sku strings to catalog items.

The map is a request-scoped value built from a catalog snapshot with
build_alias_map(); callers pass it down instead of rebuilding it per lookup.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from rapidfuzz import fuzz, process

from kitchencogs.models.common import Kind
from kitchencogs.models.inventory import CatalogItem
from kitchencogs.services.naming import base_food_slug, loose_key, normalize_slug

logger = logging.getLogger(__name__)

# Substring matching on very short keys ("ri", "c") matches almost anything.
MIN_CONTAINMENT_KEY_LENGTH = 3

SUGGESTION_CUTOFF = 80.0


@dataclass
class AliasMap:
    """Snapshot of the catalog indexed for name resolution."""

    items: List[CatalogItem] = field(default_factory=list)
    by_id: Dict[str, CatalogItem] = field(default_factory=dict)
    by_slug: Dict[str, CatalogItem] = field(default_factory=dict)
    alias_to_slug: Dict[str, str] = field(default_factory=dict)
    by_loose: Dict[str, CatalogItem] = field(default_factory=dict)

    def resolve(
        self,
        item_id: Optional[str] = None,
        slug: Optional[str] = None,
        sku: Optional[str] = None,
    ) -> Optional[CatalogItem]:
        """Resolve to one catalog item, or None if every strategy fails."""
        item, _ = self.resolve_with_method(item_id=item_id, slug=slug, sku=sku)
        return item

    def resolve_with_method(
        self,
        item_id: Optional[str] = None,
        slug: Optional[str] = None,
        sku: Optional[str] = None,
    ) -> Tuple[Optional[CatalogItem], Optional[str]]:
        """
        Resolve and report which strategy matched.

        Strategies, first match wins:
        1. "id"        - direct catalog id
        2. "slug"      - normalized input against the alias map
        3. "base"      - base-food slug against the alias map
        4. "loose"     - loose key (and its base variant) against names/slugs
        5. "contains"  - substring either way against loose names/slugs
        """
        # 1. Direct by id
        if item_id and item_id in self.by_id:
            return self.by_id[item_id], "id"

        raw_candidates = [str(c) for c in (slug, sku) if c]
        if not raw_candidates:
            return None, None

        # 2. Exact normalized slug
        for raw in raw_candidates:
            item = self._lookup_alias(normalize_slug(raw))
            if item:
                return item, "slug"

        # 3. Base-food slug
        for raw in raw_candidates:
            item = self._lookup_alias(base_food_slug(raw))
            if item:
                return item, "base"

        # 4. Loose key equality
        for raw in raw_candidates:
            for key in (loose_key(raw), loose_key(base_food_slug(raw))):
                if key and key in self.by_loose:
                    return self.by_loose[key], "loose"

        # 5. Partial containment
        for raw in raw_candidates:
            item = self._best_containment(loose_key(raw))
            if item:
                return item, "contains"

        return None, None

    def canonical_slug(self, name: str) -> Optional[str]:
        """Catalog slug for a free-text name, or None if unresolved."""
        item = self.resolve(sku=name)
        return item.slug if item else None

    def suggest(self, text: str) -> Optional[str]:
        """Closest catalog slug by fuzzy score, for unconfigured rows."""
        query = normalize_slug(text)
        if not query or not self.by_slug:
            return None

        match = process.extractOne(
            query,
            list(self.by_slug.keys()),
            scorer=fuzz.WRatio,
            score_cutoff=SUGGESTION_CUTOFF,
        )
        if not match:
            return None
        return match[0]

    def _lookup_alias(self, key: str) -> Optional[CatalogItem]:
        if not key:
            return None
        canonical = self.alias_to_slug.get(key)
        if canonical is None:
            return None
        return self.by_slug.get(canonical)

    def _best_containment(self, key: str) -> Optional[CatalogItem]:
        if len(key) < MIN_CONTAINMENT_KEY_LENGTH:
            return None

        best: Optional[CatalogItem] = None
        best_score = -1.0
        for item in self.items:
            for candidate in (loose_key(item.name), loose_key(item.slug)):
                if len(candidate) < MIN_CONTAINMENT_KEY_LENGTH:
                    continue
                if candidate in key or key in candidate:
                    score = fuzz.ratio(key, candidate)
                    if score > best_score:
                        best, best_score = item, score
        return best


def build_alias_map(items: Iterable[CatalogItem]) -> AliasMap:
    """
    Build an AliasMap from a catalog snapshot.

    Every item contributes its own slug, the normalized slug of each alias,
    and (for food) its base-food slug, so portion variants collapse onto
    the base item. Own slugs are registered first and derived keys never
    replace an existing entry, so "Fried Rice Extra" can't take over
    "friedrice" from "Fried Rice".
    """
    alias_map = AliasMap()
    items = list(items)

    for item in items:
        alias_map.items.append(item)
        alias_map.by_id[item.id] = item
        alias_map.by_slug[item.slug] = item
        alias_map.alias_to_slug[item.slug] = item.slug

    for item in items:
        for alias in item.aliases or []:
            alias_slug = normalize_slug(alias)
            if alias_slug:
                alias_map.alias_to_slug.setdefault(alias_slug, item.slug)

        if item.kind == Kind.FOOD:
            base = base_food_slug(item.name)
            if base:
                alias_map.alias_to_slug.setdefault(base, item.slug)

    # Same precedence for loose keys: names and slugs before base variants
    for item in items:
        for key in (loose_key(item.name), loose_key(item.slug)):
            if key:
                alias_map.by_loose.setdefault(key, item)
    for item in items:
        if item.kind == Kind.FOOD:
            base_key = loose_key(base_food_slug(item.name))
            if base_key:
                alias_map.by_loose.setdefault(base_key, item)

    logger.debug(
        f"Built alias map with {len(alias_map.alias_to_slug)} aliases "
        f"for {len(alias_map.items)} items"
    )
    return alias_map
