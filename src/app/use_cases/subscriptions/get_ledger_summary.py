"""GetLedgerSummary Use Case

Read-only financial summary of the ledger for administrators.
"""

from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.domain.actor import ActorContext, Capability
from src.domain.errors import failure
from src.domain.ledger_entry import LedgerEntryStatus, LedgerEventType
from .authorization import authorize
from .dtos import LedgerSummaryDTO, LedgerSummaryRowDTO
from .list_ledger_entries import check_date_range

# Events that charge the user; the others repeat the price for reference only
BILLABLE_EVENT_TYPES = frozenset({
    LedgerEventType.CREATED,
    LedgerEventType.RENEWED,
    LedgerEventType.UPGRADED,
    LedgerEventType.DOWNGRADED,
})


class GetLedgerSummary:
    """
    Use Case: Ledger totals by event type and status

    Requires the analytics capability. Revenue sums COMPLETED entries of
    billable events. Optionally narrowed to one user and to a created_at
    range (both ends inclusive).
    """

    def __init__(self, ledger_repo: LedgerEntryRepository):
        self.ledger_repo = ledger_repo

    async def execute(
        self,
        actor: ActorContext,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> Result[LedgerSummaryDTO]:
        try:
            authorize(actor, Capability.VIEW_ANALYTICS)
            check_date_range(date_from, date_to)

            groups = await self.ledger_repo.summarize(
                user_id=user_id, date_from=date_from, date_to=date_to
            )

            rows = []
            by_event_type: Counter = Counter()
            by_status: Counter = Counter()
            revenue = Decimal("0.00")
            for event_type, status, count, amount in groups:
                rows.append(LedgerSummaryRowDTO(
                    event_type=event_type.value,
                    status=status.value,
                    count=count,
                    total_amount=amount,
                ))
                by_event_type[event_type.value] += count
                by_status[status.value] += count
                if status == LedgerEntryStatus.COMPLETED and event_type in BILLABLE_EVENT_TYPES:
                    revenue += amount

            rows.sort(key=lambda r: (r.event_type, r.status))
            return Return.ok(LedgerSummaryDTO(
                user_id=user_id,
                date_from=date_from,
                date_to=date_to,
                total_entries=sum(by_status.values()),
                revenue=revenue,
                by_event_type=dict(by_event_type),
                by_status=dict(by_status),
                rows=rows,
            ))

        except Exception as e:
            return Return.err(failure(e, "LEDGER_SUMMARY_FAILED", "Failed to summarize ledger"))
