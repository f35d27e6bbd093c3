"""Order number generation.

Order numbers read ``<prefix><YYMMDD><NNNN>``: the prefix (``BB`` by
default), the two-digit year, month and day of generation, and a random
zero-padded four-digit suffix. A candidate is checked against the order
store and regenerated on collision. The check only narrows the race; the
unique constraint on ``Order.order_number`` is what finally rejects a
duplicate, and placement regenerates when that happens.
"""

import secrets
from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from orders.errors import NumberGenerationExhausted

logger = structlog.get_logger(__name__)

SUFFIX_SPACE = 10_000


def _utc_now() -> datetime:
    return datetime.now(UTC)


class OrderNumberGenerator:
    def __init__(
        self,
        exists: Callable[[str], bool],
        prefix: str = "BB",
        max_attempts: int = 5,
        clock: Callable[[], datetime] = _utc_now,
        rng: Callable[[int], int] | None = None,
    ) -> None:
        self.exists = exists
        self.prefix = prefix
        self.max_attempts = max_attempts
        self.clock = clock
        self.rng = rng or secrets.randbelow

    def candidate(self) -> str:
        stamp = self.clock().strftime("%y%m%d")
        return f"{self.prefix}{stamp}{self.rng(SUFFIX_SPACE):04d}"

    def generate(self) -> str:
        """Return an order number no stored order currently uses.

        Raises ``NumberGenerationExhausted`` after ``max_attempts`` collisions.
        """
        for attempt in range(1, self.max_attempts + 1):
            number = self.candidate()
            if not self.exists(number):
                return number
            logger.debug("Order number taken", order_number=number, attempt=attempt)

        logger.warning("Order number generation exhausted", attempts=self.max_attempts)
        raise NumberGenerationExhausted(
            f"No unused order number found after {self.max_attempts} attempts",
            attempts=self.max_attempts,
        )
