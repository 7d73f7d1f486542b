from __future__ import annotations

from typing import Sequence

from domain.models import CourseMatch, CourseRow, CourseSlot, RowSnapshot
from domain.ports import LoggerPort, PageDriverPort
from domain.selectors import ListingSelectors
from domain.services.retry import RetryPolicy, driver_sleep, poll

DEFAULT_LISTING_POLICY = RetryPolicy(max_attempts=3, interval_seconds=1.0)


class CourseMatcher:
    """Finds the listing row for a course slot and resolves its booking control."""

    def __init__(
        self,
        *,
        logger: LoggerPort,
        selectors: ListingSelectors | None = None,
        listing_policy: RetryPolicy = DEFAULT_LISTING_POLICY,
    ) -> None:
        self._logger = logger
        self._sel = selectors or ListingSelectors()
        self._listing_policy = listing_policy

    async def find(self, driver: PageDriverPort, slot: CourseSlot) -> CourseMatch:
        self._logger.info("course_search_started", day=slot.day, time=slot.time)
        try:
            rows = await self.scan(driver)
        except Exception as exc:
            self._logger.error("course_search_failed", error=str(exc))
            return CourseMatch(found=False, reason=f"listing unreadable: {exc}")
        if rows is None:
            return CourseMatch(found=False, reason="listing missing")
        return self.match(rows, slot)

    async def scan(self, driver: PageDriverPort) -> list[RowSnapshot] | None:
        """Snapshot every listing row, or ``None`` when the listing never renders."""
        if not await self._wait_for_listing(driver):
            self._logger.warning("course_listing_missing", selector=self._sel.table)
            return None
        rows = list(await driver.snapshot_course_rows(self._sel))
        self._logger.debug("course_rows_scanned", count=len(rows))
        return rows

    def match(self, rows: Sequence[RowSnapshot], slot: CourseSlot) -> CourseMatch:
        for row in rows:
            if row.day is None or row.time is None:
                continue
            day = row.day.strip()
            time = row.time.strip()
            if day != slot.day or time != slot.time:
                continue
            if not row.has_action_cell:
                self._logger.debug("course_match_without_action_cell", position=row.position)
                continue

            if not row.has_booking_control:
                indicator = row.indicator.value if row.indicator else "unknown"
                self._logger.warning(
                    "course_match_not_bookable",
                    day=day,
                    time=time,
                    indicator=indicator,
                )
                return CourseMatch(found=False, reason=f"no booking control ({indicator})")

            selector = self._booking_selector(row)
            course_row = CourseRow(
                day=day,
                time=time,
                booking_control_ref=selector,
                booking_control_name=row.booking_control_name,
                row_identity=row.row_id or f"row-{row.position}",
            )
            self._logger.info(
                "course_match_found",
                selector=selector,
                button_name=row.booking_control_name,
            )
            return CourseMatch(
                found=True,
                button_selector=selector,
                button_name=row.booking_control_name,
                row=course_row,
            )

        self._logger.warning("course_not_found", day=slot.day, time=slot.time)
        return CourseMatch(found=False, reason="no matching row")

    def _booking_selector(self, row: RowSnapshot) -> str:
        control = f"{self._sel.action_cell} {self._sel.booking_button}"
        if row.row_id:
            return f"#{row.row_id} {control}"
        # Positional fallback breaks if the listing is re-sorted before the click.
        return f"{self._sel.rows}:nth-child({row.position}) {control}"

    async def _wait_for_listing(self, driver: PageDriverPort) -> bool:
        async def _check(_attempt: int) -> bool | None:
            return True if await driver.exists(self._sel.table) else None

        found = await poll(_check, self._listing_policy, sleep=driver_sleep(driver))
        return bool(found)
