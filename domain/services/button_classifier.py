from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from domain.models import ButtonDescriptor, ButtonIntent, ButtonMatch
from domain.ports import LoggerPort, PageDriverPort
from domain.services.heuristics import Strategy, first_success


@dataclass(frozen=True)
class IntentVocabulary:
    """Tier-1 vocabulary: exact ``name`` tokens and case-sensitive text phrases."""

    names: tuple[str, ...]
    phrases: tuple[str, ...]


INTENT_VOCABULARY: dict[ButtonIntent, IntentVocabulary] = {
    ButtonIntent.CONFIRM: IntentVocabulary(
        names=("buchen",),
        phrases=("Buchen", "Book", "预订"),
    ),
    ButtonIntent.SUBMIT: IntentVocabulary(
        names=("submit", "absenden"),
        phrases=("Absenden", "Submit", "weiter zur Buchung"),
    ),
    ButtonIntent.CONTINUE: IntentVocabulary(
        names=("next", "continue", "weiter"),
        phrases=("Weiter", "Continue", "Next"),
    ),
}

# Tier 2, compared lowercased.
GENERIC_NAMES: tuple[str, ...] = ("submit", "ok", "confirm", "next", "continue")
GENERIC_WORDS: tuple[str, ...] = (
    "weiter",
    "bestätigen",
    "absenden",
    "continue",
    "next",
    "submit",
    "confirm",
    "提交",
    "确认",
    "下一步",
    "继续",
    "预订",
)


def _tier_one(vocabulary: IntentVocabulary):
    def _matches(button: ButtonDescriptor) -> bool:
        if button.name and button.name in vocabulary.names:
            return True
        return any(phrase in button.text for phrase in vocabulary.phrases)

    return _matches


def _tier_two(button: ButtonDescriptor) -> bool:
    if button.type.lower() == "submit":
        return True
    if button.name.lower() in GENERIC_NAMES:
        return True
    text = button.text.lower()
    return any(word in text for word in GENERIC_WORDS)


def _by_id(button: ButtonDescriptor) -> str | None:
    return f"#{button.id}" if button.id else None


def _by_name(button: ButtonDescriptor) -> str | None:
    return f'[name="{button.name}"]' if button.name else None


def _by_class(button: ButtonDescriptor) -> str | None:
    classes = button.class_name.split()
    return "." + ".".join(classes) if classes else None


SELECTOR_STRATEGIES: tuple[Strategy[ButtonDescriptor, str], ...] = (
    Strategy("id", _by_id),
    Strategy("name", _by_name),
    Strategy("class", _by_class),
)


class ButtonClassifier:
    """Picks the control matching an intent from a snapshot of clickable controls."""

    def __init__(self, *, logger: LoggerPort) -> None:
        self._logger = logger

    async def snapshot(self, driver: PageDriverPort, selector: str) -> list[ButtonDescriptor]:
        try:
            buttons = list(await driver.snapshot_buttons(selector))
        except Exception as exc:
            self._logger.error("button_snapshot_failed", selector=selector, error=str(exc))
            return []
        for button in buttons:
            self._logger.debug(
                "button_seen",
                index=button.index,
                text=button.text,
                type=button.type,
                name=button.name,
            )
        self._logger.info("buttons_found", count=len(buttons))
        return buttons

    def classify(
        self,
        buttons: Sequence[ButtonDescriptor],
        intent: ButtonIntent,
    ) -> ButtonMatch | None:
        tiers = (
            (1, _tier_one(INTENT_VOCABULARY[intent])),
            (2, _tier_two),
        )
        for tier, matches in tiers:
            for button in buttons:
                if matches(button):
                    self._logger.info(
                        "button_classified",
                        intent=intent.value,
                        tier=tier,
                        text=button.text,
                        name=button.name,
                    )
                    return ButtonMatch(descriptor=button, tier=tier)
        self._logger.warning("button_not_classified", intent=intent.value, candidates=len(buttons))
        return None

    @staticmethod
    def build_selector(button: ButtonDescriptor, base_selector: str) -> str:
        """
        Rebuild a selector for ``button``: id, then name, then class list.

        The positional fallback is only valid against the unmodified snapshot
        the descriptor came from.
        """
        resolved = first_success(SELECTOR_STRATEGIES, button)
        if resolved is not None:
            return resolved[1]
        return f"{base_selector} >> nth={button.index}"
