"""ListLedgerEntries Use Case

Transaction history across subscriptions, filtered and paginated.
"""

from libs.result import Result, Return
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.domain.actor import ActorContext, Capability
from src.domain.errors import ValidationError, failure
from .authorization import authorize
from .dtos import LedgerEntryFilterDTO, LedgerEntryListDTO, to_ledger_entry_dto


def check_date_range(date_from, date_to) -> None:
    if date_from is not None and date_to is not None and date_from > date_to:
        raise ValidationError("date_from must not be after date_to", code="INVALID_DATE_RANGE")


class ListLedgerEntries:
    """
    Use Case: View ledger entries (transaction history)

    Entries are ordered newest first. Users only see entries of their own
    subscriptions; the user_id filter is forced to the caller unless the caller
    may view all subscriptions. The admin listing (all_users) requires that
    capability outright.
    """

    def __init__(self, ledger_repo: LedgerEntryRepository):
        self.ledger_repo = ledger_repo

    async def execute(
        self, actor: ActorContext, filters: LedgerEntryFilterDTO, all_users: bool = False
    ) -> Result[LedgerEntryListDTO]:
        """
        Args:
            actor: Caller
            filters: Event types, statuses, date range, subscription and paging
            all_users: Admin listing across every user

        Returns:
            Result[LedgerEntryListDTO]: Page of entries plus the total match count
        """
        try:
            if all_users:
                authorize(actor, Capability.VIEW_ALL_SUBSCRIPTIONS)
            else:
                authorize(actor, Capability.REQUEST_SUBSCRIPTIONS)
            check_date_range(filters.date_from, filters.date_to)

            user_id = filters.user_id
            if not actor.has(Capability.VIEW_ALL_SUBSCRIPTIONS):
                user_id = actor.user_id

            entries, total = await self.ledger_repo.search(
                user_id=user_id,
                subscription_id=filters.subscription_id,
                event_types=filters.event_types,
                statuses=filters.statuses,
                date_from=filters.date_from,
                date_to=filters.date_to,
                limit=filters.limit,
                offset=filters.offset,
            )

            return Return.ok(LedgerEntryListDTO(
                items=[to_ledger_entry_dto(e) for e in entries],
                total=total,
                limit=filters.limit,
                offset=filters.offset,
            ))

        except Exception as e:
            return Return.err(failure(e, "LIST_LEDGER_ENTRIES_FAILED", "Failed to list ledger entries"))
