from __future__ import annotations

from typing import Awaitable, Sequence

from domain.errors import DriverTimeoutError, FormFillError
from domain.models import UserProfile
from domain.ports import LoggerPort, PageDriverPort
from domain.selectors import GENDER_CODES, RegistrationFormSelectors
from domain.services.retry import RetryPolicy, driver_sleep, poll

DEFAULT_CONDITIONAL_POLICY = RetryPolicy(max_attempts=5, interval_seconds=0.5)


class FormFiller:
    """
    Fills the registration form role by role.

    Fixed roles must succeed; the student id field is conditional on the
    status selection and is searched for by live polling.
    """

    def __init__(
        self,
        *,
        logger: LoggerPort,
        selectors: RegistrationFormSelectors | None = None,
        student_statuses: Sequence[str] = ("S-RWTH",),
        conditional_policy: RetryPolicy = DEFAULT_CONDITIONAL_POLICY,
        settle_ms: int = 500,
        network_idle_ms: int = 1_000,
        field_timeout_ms: int = 30_000,
    ) -> None:
        self._logger = logger
        self._sel = selectors or RegistrationFormSelectors()
        self._student_statuses = tuple(student_statuses)
        self._conditional_policy = conditional_policy
        self._settle_ms = settle_ms
        self._network_idle_ms = network_idle_ms
        self._field_timeout_ms = field_timeout_ms

    async def fill(self, driver: PageDriverPort, profile: UserProfile) -> bool:
        self._logger.info("form_fill_started")
        try:
            await self._select_gender(driver, profile.gender)
            await self._fill_field(driver, "first_name", self._sel.first_name, profile.first_name)
            await self._fill_field(driver, "last_name", self._sel.last_name, profile.last_name)
            await self._fill_field(driver, "address", self._sel.address, profile.address)
            await self._fill_field(driver, "zip_city", self._sel.zip_city, profile.zip_city)
            await self._select_status(driver, profile.status)

            if profile.status in self._student_statuses:
                await self._fill_student_id(driver, profile.student_id)

            await self._fill_field(driver, "email", self._sel.email, profile.email)
            await self._fill_field(driver, "phone", self._sel.phone, profile.phone)

            if profile.accept_terms:
                await self._run_fixed(driver.check(self._sel.terms), "terms", self._sel.terms)
                self._logger.info("form_terms_accepted")
        except FormFillError as exc:
            self._logger.error("form_fill_failed", role=exc.role, error=str(exc))
            return False

        self._logger.info("form_fill_completed")
        return True

    # -- fixed roles --------------------------------------------------------

    async def _select_gender(self, driver: PageDriverPort, gender: str) -> None:
        code = GENDER_CODES.get(gender.strip().lower())
        if code is None:
            self._logger.warning("form_gender_unknown", gender=gender)
            return
        selector = self._sel.gender_radio.format(code=code)
        await self._run_fixed(driver.click(selector), "gender", selector)
        self._logger.info("form_gender_selected", code=code)

    async def _select_status(self, driver: PageDriverPort, status: str) -> None:
        await self._run_fixed(driver.select_option(self._sel.status, status), "status", self._sel.status)
        self._logger.info("form_status_selected", status=status)

    async def _fill_field(self, driver: PageDriverPort, role: str, selector: str, value: str) -> None:
        try:
            await driver.wait_for_selector(selector, state="attached", timeout_ms=self._field_timeout_ms)
            await driver.fill(selector, value)
        except Exception as exc:
            raise FormFillError(role, selector, str(exc)) from exc
        self._logger.info("form_field_filled", role=role, selector=selector)

    @staticmethod
    async def _run_fixed(action: Awaitable[None], role: str, selector: str) -> None:
        try:
            await action
        except Exception as exc:
            raise FormFillError(role, selector, str(exc)) from exc

    # -- conditional student id ---------------------------------------------

    async def _fill_student_id(self, driver: PageDriverPort, student_id: str | None) -> None:
        if not student_id:
            self._logger.warning("form_student_id_missing_in_profile")
            return
        try:
            selector = await self._find_student_id_field(driver)
            if selector is None:
                self._logger.warning("form_student_id_field_not_found")
                return
            await driver.fill(selector, student_id)
            self._logger.info("form_student_id_filled", selector=selector)
        except Exception as exc:
            self._logger.warning("form_student_id_fill_failed", error=str(exc))

    async def _find_student_id_field(self, driver: PageDriverPort) -> str | None:
        self._logger.info("form_student_id_waiting")
        await driver.wait_for_timeout(self._settle_ms)

        async def _check(attempt: int) -> str | None:
            self._logger.debug(
                "form_student_id_probe",
                attempt=attempt + 1,
                max_attempts=self._conditional_policy.max_attempts,
            )
            for candidate in self._sel.student_id_candidates:
                if await self._visible(driver, candidate):
                    return candidate
            return None

        async def _settle_network(_attempt: int) -> None:
            try:
                await driver.wait_for_load_state("networkidle", timeout_ms=self._network_idle_ms)
            except DriverTimeoutError:
                pass

        selector = await poll(
            _check,
            self._conditional_policy,
            sleep=driver_sleep(driver),
            between=_settle_network,
        )
        if selector is not None:
            return selector

        self._logger.warning("form_student_id_scanning_visible_inputs")
        return await self._first_unfilled_text_input(driver)

    async def _first_unfilled_text_input(self, driver: PageDriverPort) -> str | None:
        # Last resort; may pick an unrelated field.
        for field in await driver.visible_inputs():
            if field.type != "text" or field.id in self._sel.fixed_field_ids:
                continue
            if field.id:
                selector = f"#{field.id}"
            elif field.name:
                selector = f'[name="{field.name}"]'
            else:
                continue
            self._logger.info("form_student_id_guess", id=field.id, name=field.name)
            return selector
        return None

    @staticmethod
    async def _visible(driver: PageDriverPort, selector: str) -> bool:
        try:
            return await driver.is_visible(selector)
        except Exception:
            return False
