"""Ledger API Routes

The caller's own transaction history.
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from src.adapter.container import SubscriptionServices
from src.api.auth import get_actor
from src.api.error import ClientError
from src.api.schemas.subscription_request import Envelope
from src.app.use_cases.subscriptions import ListLedgerEntries
from src.app.use_cases.subscriptions.dtos import LedgerEntryFilterDTO, LedgerEntryListDTO
from src.depends import get_services
from src.domain.actor import ActorContext
from src.domain.ledger_entry import LedgerEntryStatus, LedgerEventType

router = APIRouter(prefix="/ledger", tags=["Ledger"])


@router.get("", response_model=Envelope[LedgerEntryListDTO])
async def list_my_ledger_entries(
    event_type: Optional[List[LedgerEventType]] = Query(default=None),
    status_filter: Optional[List[LedgerEntryStatus]] = Query(default=None, alias="status"),
    subscription_id: Optional[str] = Query(default=None),
    date_from: Optional[datetime] = Query(default=None),
    date_to: Optional[datetime] = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    actor: ActorContext = Depends(get_actor),
    services: SubscriptionServices = Depends(get_services),
):
    """
    Transaction history of the caller's subscriptions, newest first.

    **Returns:**
    - 200: Page of ledger entries
    - 400: date_from after date_to
    """
    filters = LedgerEntryFilterDTO(
        subscription_id=subscription_id,
        event_types=event_type,
        statuses=status_filter,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    result = await ListLedgerEntries(services.ledger_repo).execute(actor, filters)

    if result.is_err():
        raise ClientError(result.error)

    return Envelope(data=result.value)
