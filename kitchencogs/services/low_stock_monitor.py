"""
Low Stock Monitor

Applies threshold rules to summary rows and fires at most one alert per item
per shop-local day.

The daily gate is the low_stock movement insert itself: the storage layer
refuses a second one for the same (slug, day), so only the request that wins
the insert sends email.
"""

import logging
import re
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Pattern

from kitchencogs.models.common import Kind, MovementType, SideEffectResult, Unit
from kitchencogs.models.summary import InventorySummary, LowStockAlert, SummaryRow
from kitchencogs.services.naming import normalize_slug
from kitchencogs.services.notifier import Notifier

logger = logging.getLogger(__name__)

RICE_PATTERN = re.compile(r"friedrice|jollofrice|nativerice|rice")
MOIMOI_PLANTAIN_PATTERN = re.compile(r"moimoi|moimo|moi|plantain|dodo")


@dataclass
class LowStockRule:
    """Alert when a matching row's remaining falls below threshold."""
    name: str
    label: str
    threshold: float
    kind: Optional[Kind] = None
    unit: Optional[Unit] = None
    pattern: Optional[Pattern] = None

    def matches(self, row: SummaryRow) -> bool:
        if self.kind is not None and row.kind != self.kind:
            return False
        if self.unit is not None and row.unit != self.unit:
            return False
        if self.pattern is not None:
            if not (self.pattern.search(normalize_slug(row.sku)) or self.pattern.search(row.slug)):
                return False
        return True

    def triggered(self, row: SummaryRow) -> bool:
        return self.matches(row) and row.remaining < self.threshold


@dataclass
class AlertRules:
    """Low-stock configuration."""
    rules: List[LowStockRule] = field(default_factory=list)
    require_catalog_identity: bool = True
    enabled: bool = True


def default_rules(rice_threshold_grams: float = 900, piece_threshold: float = 3) -> List[LowStockRule]:
    return [
        LowStockRule(
            name="rice_grams",
            label=f"Rice (grams) < {rice_threshold_grams:g}g",
            threshold=rice_threshold_grams,
            kind=Kind.FOOD,
            unit=Unit.GRAM,
            pattern=RICE_PATTERN,
        ),
        LowStockRule(
            name="moimoi_plantain_pieces",
            label=f"MoiMoi/Plantain < {piece_threshold:g} pcs",
            threshold=piece_threshold,
            kind=Kind.FOOD,
            unit=Unit.PIECE,
            pattern=MOIMOI_PLANTAIN_PATTERN,
        ),
        LowStockRule(
            name="drink_pieces",
            label=f"Any Drink < {piece_threshold:g} pcs",
            threshold=piece_threshold,
            kind=Kind.DRINK,
            unit=Unit.PIECE,
        ),
        LowStockRule(
            name="protein_pieces",
            label=f"Any Protein < {piece_threshold:g} pcs",
            threshold=piece_threshold,
            kind=Kind.PROTEIN,
            unit=Unit.PIECE,
        ),
    ]


@dataclass
class AlertCandidate:
    row: SummaryRow
    rule: LowStockRule


def find_candidates(summary: InventorySummary, config: AlertRules) -> List[AlertCandidate]:
    """Rows that break a rule. First matching rule wins per row."""
    candidates = []
    for row in summary.all_rows():
        if row.extra:
            continue
        if config.require_catalog_identity and not row.id:
            continue
        for rule in config.rules:
            if rule.triggered(row):
                candidates.append(AlertCandidate(row=row, rule=rule))
                break
    return candidates


# Claims the daily gate; returns False if the movement already exists.
ClaimFn = Callable[[SummaryRow, str, str], bool]


def run_low_stock_alerts(
    summary: InventorySummary,
    config: AlertRules,
    claim: ClaimFn,
    notifier: Notifier,
    max_workers: int = 4,
) -> List[LowStockAlert]:
    """
    Evaluate rules, claim the daily gate for each triggered row, then email.

    Never raises: claim errors and email failures are logged and the loop
    moves on to the next item.
    """
    if not config.enabled:
        return []

    fired: List[LowStockAlert] = []
    for candidate in find_candidates(summary, config):
        row = candidate.row
        note = f"remaining={round(row.remaining)} ({candidate.rule.label})"
        try:
            claimed = claim(row, note, summary.day_key)
        except Exception:
            logger.exception(f"Low-stock gate failed for {row.slug}")
            continue

        if not claimed:
            logger.debug(f"Low-stock alert for {row.slug} already sent on {summary.day_key}")
            continue

        fired.append(LowStockAlert(
            slug=row.slug,
            sku=row.sku,
            unit=row.unit,
            remaining=row.remaining,
            rule=candidate.rule.label,
        ))

    if not fired:
        return fired

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(fired)))) as pool:
        results = list(pool.map(lambda alert: _dispatch(notifier, alert), fired))

    for alert, result in zip(fired, results):
        alert.emailed = result.ok
        if not result.ok:
            logger.warning(f"Low-stock email for {alert.slug} not sent: {result.error}")

    logger.info(f"Fired {len(fired)} low-stock alerts for {summary.day_key}")
    return fired


def _dispatch(notifier: Notifier, alert: LowStockAlert) -> SideEffectResult:
    try:
        return notifier.send_low_stock(alert)
    except Exception as exc:
        logger.exception(f"Notifier raised for {alert.slug}")
        return SideEffectResult.failure(str(exc))


def sqlite_claim(insert_movement: Callable[..., object]) -> ClaimFn:
    """
    Build a ClaimFn around a movement insert that raises
    sqlite3.IntegrityError on the daily unique index.
    """
    def claim(row: SummaryRow, note: str, day_key: str) -> bool:
        try:
            insert_movement(
                movement_type=MovementType.LOW_STOCK,
                sku=row.sku,
                slug=row.slug,
                unit=row.unit,
                note=note,
                day_key=day_key,
            )
            return True
        except sqlite3.IntegrityError:
            return False

    return claim
