from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import asdict, replace
from typing import Sequence

from domain.models import BookingConfig, RunContext
from domain.services import (
    BookingWorkflow,
    CourseMatcher,
    FormFieldDiscoverer,
    wait_for_booking_time,
)
from domain.services.schedule import parse_hhmm
from infra.browser import PlaywrightBrowserSession
from infra.config import FileSystemConfigProvider
from infra.logs import FileSystemDiagnosticSink
from infra.runtime import StructuredLogger, SystemClock, UuidIdGenerator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="course-booker")
    sub = parser.add_subparsers(dest="command", required=True)

    book_p = sub.add_parser("book", help="Book the configured course slot")
    book_p.add_argument("--config-dir", default="./config", help="Path to config folder")
    book_p.add_argument("--headless", action="store_true", default=None)
    book_p.add_argument("--no-headless", dest="headless", action="store_false")
    book_p.add_argument("--debug", action="store_true", help="Save HTML at every step")
    book_p.add_argument("--artifacts-dir", default="artifacts")
    book_p.add_argument("--at", dest="book_at", help="Wait until this clock time (HH:MM) before booking")

    validate_p = sub.add_parser("validate", help="Check config.json and profile.json")
    validate_p.add_argument("--config-dir", default="./config")

    inspect_p = sub.add_parser("inspect-forms", help="Print the forms found on a page as JSON")
    inspect_p.add_argument("url")
    inspect_p.add_argument("--headless", action="store_true", default=True)
    inspect_p.add_argument("--no-headless", dest="headless", action="store_false")

    list_p = sub.add_parser("list-courses", help="Print the rows of the configured course listing")
    list_p.add_argument("--config-dir", default="./config")
    list_p.add_argument("--headless", action="store_true", default=True)
    list_p.add_argument("--no-headless", dest="headless", action="store_false")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "validate":
        errors = FileSystemConfigProvider(args.config_dir).validate()
        if errors:
            _print_errors(errors)
            return 1
        print("Config OK")
        return 0

    if args.command == "book":
        return _handle_book(args)

    if args.command == "inspect-forms":
        return asyncio.run(_inspect_forms(args.url, headless=args.headless))

    if args.command == "list-courses":
        return _handle_list_courses(args)

    raise SystemExit(f"Unsupported command: {args.command}")


def _print_errors(errors: list[str]) -> None:
    print("Config validation failed:")
    for err in errors:
        print(f"  - {err}")


def _handle_book(args: argparse.Namespace) -> int:
    config_provider = FileSystemConfigProvider(args.config_dir)
    errors = config_provider.validate()
    if errors:
        _print_errors(errors)
        return 1
    if args.book_at is not None:
        try:
            parse_hhmm(args.book_at)
        except ValueError as exc:
            print(f"--at: {exc}")
            return 2

    cfg = config_provider.get_config()
    overrides: dict[str, object] = {}
    if args.headless is not None:
        overrides["headless"] = args.headless
    if args.debug:
        overrides["debug_mode"] = True
    if args.book_at is not None:
        overrides["book_at"] = args.book_at
    cfg = replace(cfg, **overrides)

    profile = config_provider.get_profile()
    slot = config_provider.get_target_slot()
    logger = StructuredLogger(level="debug" if cfg.debug_mode else cfg.log_level)
    clock = SystemClock()
    ids = UuidIdGenerator()
    run_context = RunContext(run_id=ids.new_run_id(), config=cfg, is_debug=cfg.debug_mode)

    print(f"Target: {slot.day} {slot.time} at {cfg.target_url}")
    print(f"Debug mode: {'ON' if cfg.debug_mode else 'OFF'}")

    workflow = BookingWorkflow.from_config(
        cfg,
        logger=logger,
        sink=FileSystemDiagnosticSink(base_dir=args.artifacts_dir),
    )

    async def _run() -> int:
        if cfg.book_at:
            await wait_for_booking_time(clock, cfg.book_at, logger=logger)
        async with PlaywrightBrowserSession.from_config(cfg) as session:
            driver = await session.new_driver()
            result = await workflow.run(
                driver=driver,
                target_url=cfg.target_url,
                slot=slot,
                profile=profile,
                run_context=run_context,
            )
        print(f"result={result.outcome.value} state={result.state.value} reason={result.reason or '-'}")
        return 0 if result.succeeded else 1

    return asyncio.run(_run())


async def _inspect_forms(url: str, *, headless: bool) -> int:
    logger = StructuredLogger(level="warning")
    async with PlaywrightBrowserSession(headless=headless) as session:
        driver = await session.new_driver()
        await driver.goto(url)
        forms = await FormFieldDiscoverer(logger=logger).discover(driver)
    print(json.dumps([asdict(form) for form in forms], indent=2, ensure_ascii=False))
    return 0


def _handle_list_courses(args: argparse.Namespace) -> int:
    config_provider = FileSystemConfigProvider(args.config_dir)
    errors = config_provider.validate()
    if errors:
        _print_errors(errors)
        return 1
    cfg = replace(config_provider.get_config(), headless=args.headless)
    return asyncio.run(_list_courses(cfg))


async def _list_courses(cfg: BookingConfig) -> int:
    logger = StructuredLogger(level="warning")
    async with PlaywrightBrowserSession.from_config(cfg) as session:
        driver = await session.new_driver()
        await driver.goto(cfg.target_url, timeout_ms=cfg.navigation_timeout_ms)
        rows = await CourseMatcher(logger=logger).scan(driver)
    if rows is None:
        print("No course listing found")
        return 1
    for row in rows:
        day = (row.day or "-").strip()
        time = (row.time or "-").strip()
        if row.has_booking_control:
            state = "bookable"
        elif row.indicator is not None:
            state = row.indicator.value
        else:
            state = "-"
        print(f"{row.position} | {day} | {time} | {state} | {row.row_id or '-'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
