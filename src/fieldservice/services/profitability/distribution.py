"""Monthly contract distribution.

A monthly fee is spread evenly over the visits an entity actually received in
that calendar month, so the divisor is counted per (entity, month) rather than
across the whole report window.

The month key carries no year, so the engine assumes report windows of at most
twelve calendar months; longer windows fold the same month of different years
into one divisor.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, Literal, Optional, Tuple

from ...models.domain import ReportPeriod, Visit
from .models import EntityKind

logger = logging.getLogger(__name__)

MonthlyCounts = Dict[Tuple[str, int], int]


def month_index(moment: datetime) -> int:
    """0-indexed calendar month (January == 0)."""

    return moment.month - 1


def spans_repeated_month(period: ReportPeriod) -> bool:
    """True when the window covers the same calendar month in two different years."""

    start, end = period.start, period.end
    return (end.year * 12 + end.month) - (start.year * 12 + start.month) >= 12


def count_visits_per_month(
    visits: Iterable[Visit],
    group_by: Literal["customer", "branch"] | EntityKind,
    period: Optional[ReportPeriod] = None,
) -> MonthlyCounts:
    kind = EntityKind(group_by)
    counts: Counter[Tuple[str, int]] = Counter()
    for visit in visits:
        if not visit.is_completed:
            continue
        if period is not None and not period.contains(visit.visit_date):
            continue
        entity_id = visit.customer_id if kind is EntityKind.CUSTOMER else visit.branch_id
        if not entity_id:
            continue
        counts[(entity_id, month_index(visit.visit_date))] += 1
    return dict(counts)


@dataclass(slots=True)
class MonthlyVisitCounts:
    by_customer: MonthlyCounts = field(default_factory=dict)
    by_branch: MonthlyCounts = field(default_factory=dict)

    def visits_in_month(self, kind: EntityKind, entity_id: Optional[str], moment: datetime) -> int:
        if not entity_id:
            return 0
        source = self.by_customer if kind is EntityKind.CUSTOMER else self.by_branch
        return source.get((entity_id, month_index(moment)), 0)


def build_monthly_visit_counts(visits: Iterable[Visit], period: Optional[ReportPeriod] = None) -> MonthlyVisitCounts:
    visits = list(visits)
    if period is not None and spans_repeated_month(period):
        logger.warning(
            f"Report window {period.start} to {period.end} repeats a calendar month; "
            "monthly visit counts for that month are merged across years"
        )
    return MonthlyVisitCounts(
        by_customer=count_visits_per_month(visits, EntityKind.CUSTOMER, period),
        by_branch=count_visits_per_month(visits, EntityKind.BRANCH, period),
    )
