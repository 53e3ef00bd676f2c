"""Actor context from trusted upstream headers

Authentication happens in front of this service; the gateway forwards the
resulting identity as headers.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional
from fastapi import Header, HTTPException, status
from src.domain.actor import ActorContext, Role


def _parse_bool(value: Optional[str]) -> bool:
    if value is None:
        return True
    return value.strip().lower() not in ("0", "false", "no", "off")


async def get_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
    x_user_active: Optional[str] = Header(default=None),
    x_approval_limit: Optional[str] = Header(default=None),
) -> ActorContext:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )

    try:
        role = Role((x_user_role or Role.USER.value).strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role '{x_user_role}'",
        )

    approval_limit = None
    if x_approval_limit:
        try:
            approval_limit = Decimal(x_approval_limit)
        except InvalidOperation:
            approval_limit = None
        if approval_limit is None or not approval_limit.is_finite() or approval_limit < 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="X-Approval-Limit must be a non-negative number",
            )

    return ActorContext(
        user_id=x_user_id.strip(),
        role=role,
        is_active=_parse_bool(x_user_active),
        approval_limit=approval_limit,
    )
