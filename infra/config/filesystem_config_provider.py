from __future__ import annotations

import json
import re
from pathlib import Path

from domain.models import BookingConfig, CourseSlot, UserProfile
from domain.selectors import GENDER_CODES

_REQUIRED_CONFIG_KEYS = {"target_url", "course"}
_REQUIRED_PROFILE_KEYS = {
    "gender",
    "first_name",
    "last_name",
    "address",
    "zip_city",
    "status",
    "email",
    "phone",
}
_LOG_LEVELS = {"debug", "info", "warning", "error"}
_PLACEHOLDER_PATTERN = re.compile(r"^YOUR_", re.IGNORECASE)
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()/]{7,}$")
_CLOCK_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_SLOT_TIME_PATTERN = re.compile(r"^\d{2}:\d{2}(-\d{2}:\d{2})?$")


class FileSystemConfigProvider:
    """Reads config.json and profile.json from a config directory.

    Every public method re-reads from disk so that edits
    to the JSON files take effect without restarting.
    """

    def __init__(self, config_dir: str) -> None:
        self._config_dir = Path(config_dir)

    def validate(self) -> list[str]:
        errors: list[str] = []
        config_path = self._config_dir / "config.json"
        profile_path = self._config_dir / "profile.json"

        config_data = self._validate_json_file(config_path, _REQUIRED_CONFIG_KEYS, errors)
        profile_data = self._validate_json_file(profile_path, _REQUIRED_PROFILE_KEYS, errors)

        if config_data is not None:
            errors.extend(self._validate_config_formats(config_data))
        if profile_data is not None:
            statuses = self._student_statuses(config_data or {})
            errors.extend(self._validate_profile_formats(profile_data, statuses))

        return errors

    @staticmethod
    def _validate_config_formats(data: dict) -> list[str]:
        errors: list[str] = []
        url = str(data.get("target_url", ""))
        if _PLACEHOLDER_PATTERN.search(url):
            errors.append("target_url is a placeholder. Set the course listing URL.")
        elif not url.startswith(("http://", "https://")):
            errors.append("target_url must start with 'http://' or 'https://'.")

        course = data.get("course")
        if not isinstance(course, dict):
            errors.append("course must be an object with 'day' and 'time'.")
        else:
            if not str(course.get("day", "")).strip():
                errors.append("course.day must not be empty (e.g. 'Mo').")
            slot_time = str(course.get("time", "")).strip()
            if not _SLOT_TIME_PATTERN.match(slot_time):
                errors.append(f"course.time '{slot_time}' must look like 'HH:MM-HH:MM'.")

        timeout = data.get("navigation_timeout_ms")
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0):
            errors.append("navigation_timeout_ms must be a positive integer.")

        for flag in ("debug_mode",):
            value = data.get(flag)
            if value is not None and not isinstance(value, bool):
                errors.append(f"{flag} must be a boolean (true/false), not a string.")

        browser = data.get("browser", {})
        if not isinstance(browser, dict):
            errors.append("browser must be an object.")
        elif browser.get("headless") is not None and not isinstance(browser.get("headless"), bool):
            errors.append("browser.headless must be a boolean (true/false).")

        level = data.get("log_level")
        if level is not None and str(level).lower() not in _LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(sorted(_LOG_LEVELS))}.")

        book_at = data.get("book_at")
        if book_at is not None and not _CLOCK_PATTERN.match(str(book_at)):
            errors.append(f"book_at '{book_at}' must be a clock time in HH:MM format.")

        return errors

    @staticmethod
    def _validate_profile_formats(data: dict, student_statuses: tuple[str, ...]) -> list[str]:
        errors: list[str] = []
        for key in ("first_name", "last_name", "address", "zip_city"):
            value = str(data.get(key, "")).strip()
            if not value or _PLACEHOLDER_PATTERN.search(value):
                errors.append(f"profile.json: {key} is empty or a placeholder.")

        gender = str(data.get("gender", ""))
        if gender.strip().lower() not in GENDER_CODES:
            errors.append(
                f"profile.json: gender '{gender}' must be one of {', '.join(GENDER_CODES)}."
            )

        email = str(data.get("email", ""))
        if not _EMAIL_PATTERN.match(email):
            errors.append(f"profile.json: email '{email}' is not a valid email address.")
        elif email == "your@email.com":
            errors.append("profile.json: email is a placeholder. Enter your real email.")

        phone = str(data.get("phone", ""))
        if not _PHONE_PATTERN.match(phone):
            errors.append(f"profile.json: phone '{phone}' is not a valid phone number.")

        status = str(data.get("status", "")).strip()
        if not status:
            errors.append("profile.json: status must not be empty.")
        elif status in student_statuses and not str(data.get("student_id") or "").strip():
            errors.append(f"profile.json: status '{status}' requires a student_id.")

        accept = data.get("accept_terms")
        if accept is not None and not isinstance(accept, bool):
            errors.append("profile.json: accept_terms must be a boolean (true/false).")

        return errors

    def get_config(self) -> BookingConfig:
        data = self._read_json("config.json")
        browser = data.get("browser", {})
        viewport = browser.get("viewport", {})
        course = data["course"]
        return BookingConfig(
            target_url=data["target_url"],
            course=CourseSlot(day=str(course["day"]).strip(), time=str(course["time"]).strip()),
            navigation_timeout_ms=int(data.get("navigation_timeout_ms", 30_000)),
            headless=bool(browser.get("headless", True)),
            slow_mo_ms=int(browser.get("slow_mo_ms", 0)),
            viewport_width=int(viewport.get("width", 1280)),
            viewport_height=int(viewport.get("height", 800)),
            debug_mode=bool(data.get("debug_mode", False)),
            log_level=str(data.get("log_level", "info")).lower(),
            student_statuses=self._student_statuses(data),
            book_at=data.get("book_at"),
        )

    def get_profile(self) -> UserProfile:
        data = self._read_json("profile.json")
        return UserProfile(
            gender=data["gender"],
            first_name=data["first_name"],
            last_name=data["last_name"],
            address=data["address"],
            zip_city=data["zip_city"],
            status=data["status"],
            email=data["email"],
            phone=str(data["phone"]),
            student_id=str(data["student_id"]) if data.get("student_id") else None,
            accept_terms=bool(data.get("accept_terms", True)),
        )

    def get_target_slot(self) -> CourseSlot:
        return self.get_config().course

    # -- internal helpers ---------------------------------------------------

    @staticmethod
    def _student_statuses(data: dict) -> tuple[str, ...]:
        return tuple(data.get("student_statuses", ("S-RWTH",)))

    def _read_json(self, filename: str) -> dict:
        path = self._config_dir / filename
        return json.loads(path.read_text(encoding="utf-8"))

    @staticmethod
    def _validate_json_file(
        path: Path,
        required_keys: set[str],
        errors: list[str],
    ) -> dict | None:
        """Validate a JSON file exists and has required keys.

        Returns the parsed dict on success, or None if the file
        is missing or unparseable.
        """
        if not path.is_file():
            errors.append(f"Missing file: {path}")
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            errors.append(f"Cannot read {path}: {exc}")
            return None
        if not isinstance(data, dict):
            errors.append(f"{path.name} must contain a JSON object")
            return None
        missing = required_keys - set(data.keys())
        if missing:
            errors.append(f"{path.name} missing keys: {', '.join(sorted(missing))}")
            return None
        return data
