"""
Order Models

Orders are owned by the intake side of the business; this package only
reads their line items to work out what was used.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from kitchencogs.models.common import OrderChannel


class OrderLineItem(BaseModel):
    """A line on an order, as typed by whichever intake path created it."""
    name: str
    quantity: int = 0
    price: float = 0.0


class Order(BaseModel):
    """A placed order."""
    order_id: str
    channel: OrderChannel = OrderChannel.ONLINE
    created_at: datetime
    items: List[OrderLineItem] = Field(default_factory=list)
