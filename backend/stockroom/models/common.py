from __future__ import annotations

import uuid
from decimal import Decimal


def new_uuid() -> str:
    return str(uuid.uuid4())


def money_str(value: Decimal | None) -> str | None:
    """Money is serialized as a two-place decimal string ("60.00")."""
    if value is None:
        return None
    return f"{Decimal(value):.2f}"
