"""Order intake. Orders are acknowledged and logged, not persisted."""

from __future__ import annotations

from typing import Any
import logging

logger = logging.getLogger(__name__)


class OrderService:
    def receive(self, order: Any) -> None:
        logger.info("Order received: %s", order)
