"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance keeps its own state, with no cross-user sharing.
"""

from dataclasses import dataclass, field


@dataclass
class OrderState:
    """Tracks a single simulated order lifecycle."""

    order_id: str | None = None
    order_number: str | None = None
    current_status: str = "processing"
    stock_conflicts: int = 0


@dataclass
class SellerState:
    """Orders a simulated seller is working through."""

    queue: list[str] = field(default_factory=list)
