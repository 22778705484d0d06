"""
Identifier Generator - ids, tracking numbers, customer numbers, SKUs, manifest numbers

Everything here is derived from the clock plus randomness, with no sequence
shared across restarts. That is fine for a single in-memory process; a
multi-instance deployment needs a coordinated scheme (UUIDs or a sequence).
"""
import random
import string
import time
from datetime import datetime, timezone
from typing import Callable, Optional

BASE36_ALPHABET = string.digits + string.ascii_lowercase
CUSTOMER_SEQUENCE_START = 100001
CUSTOMER_EXTRA_CANDIDATES = 1000


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding needs a non-negative integer")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(BASE36_ALPHABET[rem])
    return "".join(reversed(digits))


class IdentifierGenerator:

    def __init__(
        self,
        tracking_prefix: str = "DNE",
        customer_prefix: str = "DNX",
        sku_prefix: str = "SKU",
        manifest_prefix: str = "MNF",
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.tracking_prefix = tracking_prefix
        self.customer_prefix = customer_prefix
        self.sku_prefix = sku_prefix
        self.manifest_prefix = manifest_prefix
        self._rng = rng or random.SystemRandom()
        self._clock = clock or time.time

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _random_base36(self, length: int) -> str:
        return "".join(self._rng.choice(BASE36_ALPHABET) for _ in range(length))

    def generate_id(self) -> str:
        """Opaque internal id like id_1718000000000_k3j9x0a1b"""
        return f"id_{self._now_ms()}_{self._random_base36(9)}"

    def generate_tracking_number(self) -> str:
        """Tracking number like DNELXQ4Z3K0ABCDE (prefix + base36 ms + 5 random)"""
        stamp = to_base36(self._now_ms()).upper()
        return f"{self.tracking_prefix}{stamp}{self._random_base36(5).upper()}"

    def generate_customer_number(self, count: int, exists: Callable[[str], bool]) -> str:
        """
        Customer number like DNX-100001, derived from the current user count.

        Steps forward from count + 100001 while the candidate is taken. With
        `count` users at most `count` numbers can be taken, so count + 1 candidates
        always find a free one.
        """
        for offset in range(count + 1 + CUSTOMER_EXTRA_CANDIDATES):
            candidate = f"{self.customer_prefix}-{count + CUSTOMER_SEQUENCE_START + offset:06d}"
            if not exists(candidate):
                return candidate
        # Only reachable if `exists` reports far more taken numbers than `count`
        raise RuntimeError("customer number sequence exhausted")

    def generate_sku(self) -> str:
        """SKU like SKU-1718000000000-417"""
        return f"{self.sku_prefix}-{self._now_ms()}-{self._rng.randrange(1000)}"

    def generate_manifest_number(self) -> str:
        """Manifest number like MNF-20260121-0042"""
        date_part = datetime.fromtimestamp(self._clock(), tz=timezone.utc).strftime("%Y%m%d")
        return f"{self.manifest_prefix}-{date_part}-{self._rng.randrange(10000):04d}"
