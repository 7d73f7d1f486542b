from __future__ import annotations

from datetime import datetime


class SystemClock:
    def now(self) -> datetime:
        # Booking times are wall-clock times in the site's local zone.
        return datetime.now().astimezone()
