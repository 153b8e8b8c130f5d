import random
from datetime import datetime, time, timedelta, timezone
from typing import Optional, Sequence, Tuple

from servicemarket.data import CATEGORIES, FIRST_NAMES, LAST_NAMES

PRICE_MIN = 50
PRICE_MAX = 100  # exclusive
SLOT_DAY_SPAN = 14
SLOT_FIRST_HOUR = 9
SLOT_LAST_HOUR = 17  # exclusive
SLOT_DURATIONS_HOURS = (1, 2, 3)


def _in_zone_of(wall: datetime, now: datetime) -> datetime:
    """Attach the zone of ``now`` to the naive ``wall`` time, using the offset in force on wall's date."""
    zone = now.tzinfo
    if zone is None:
        return wall
    if isinstance(zone, timezone) and now.utcoffset() == now.replace(tzinfo=None).astimezone().utcoffset():
        # fixed offset taken from the system zone, as datetime.astimezone() returns it
        return wall.astimezone()
    return wall.replace(tzinfo=zone)


class AttributeRandomizer:
    """Uniform draws over the fixed attribute domains used by the seeder.

    Pass ``seed`` (or a ready ``random.Random``) for reproducible output.
    Without either, draws come from system entropy.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        categories: Sequence[str] = CATEGORIES,
        first_names: Sequence[str] = FIRST_NAMES,
        last_names: Sequence[str] = LAST_NAMES,
    ) -> None:
        if rng is not None and seed is not None:
            raise ValueError("Pass either seed or rng, not both")
        self._rng = rng if rng is not None else random.Random(seed)
        self._categories = tuple(categories)
        self._first_names = tuple(first_names)
        self._last_names = tuple(last_names)

    def category(self) -> str:
        return self._rng.choice(self._categories)

    def display_name(self) -> str:
        first = self._rng.choice(self._first_names)
        last = self._rng.choice(self._last_names)
        return f"{first} {last}"

    def price_per_hour(self) -> int:
        return self._rng.randrange(PRICE_MIN, PRICE_MAX)

    def gst_registered(self) -> bool:
        return self._rng.random() < 0.5

    def slot_start(self, now: datetime) -> datetime:
        day_offset = self._rng.randrange(SLOT_DAY_SPAN)
        hour = self._rng.randrange(SLOT_FIRST_HOUR, SLOT_LAST_HOUR)
        wall = datetime.combine(now.date() + timedelta(days=day_offset), time(hour=hour))
        return _in_zone_of(wall, now)

    def slot_duration_hours(self) -> int:
        return self._rng.choice(SLOT_DURATIONS_HOURS)

    def slot_window(self, now: datetime) -> Tuple[datetime, datetime]:
        start = self.slot_start(now)
        return start, start + timedelta(hours=self.slot_duration_hours())
