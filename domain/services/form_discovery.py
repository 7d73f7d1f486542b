from __future__ import annotations

from typing import Sequence

from domain.models import FieldSnapshot, FormDescriptor, FormFieldDescriptor, FormSnapshot
from domain.ports import LoggerPort, PageDriverPort
from domain.services.heuristics import Strategy, first_success

LABEL_STRATEGIES: tuple[Strategy[FieldSnapshot, str], ...] = (
    Strategy("label_for", lambda f: f.labels.for_label.strip()),
    Strategy("ancestor_block", lambda f: f.labels.ancestor_label.strip()),
    Strategy("previous_sibling", lambda f: f.labels.sibling_label.strip()),
    Strategy("placeholder", lambda f: f.placeholder.strip()),
)


def resolve_label(field: FieldSnapshot) -> str:
    resolved = first_success(LABEL_STRATEGIES, field)
    return resolved[1] if resolved else ""


class FormFieldDiscoverer:
    """Describes every form on a page without touching it."""

    def __init__(self, *, logger: LoggerPort) -> None:
        self._logger = logger

    async def discover(self, driver: PageDriverPort) -> list[FormDescriptor]:
        try:
            snapshots = await driver.snapshot_forms()
        except Exception as exc:
            self._logger.error("form_discovery_failed", error=str(exc))
            return []

        forms = self.describe(snapshots)
        total = 0
        for form in forms:
            total += len(form.fields)
            self._logger.info("form_described", form_id=form.form_id, fields=len(form.fields))
        self._logger.info("forms_discovered", forms=len(forms), fields=total)
        return forms

    def describe(self, snapshots: Sequence[FormSnapshot]) -> list[FormDescriptor]:
        return [self._describe_form(snapshot) for snapshot in snapshots]

    @staticmethod
    def _describe_form(snapshot: FormSnapshot) -> FormDescriptor:
        fields = tuple(
            FormFieldDescriptor(
                index=field.index,
                name=field.name,
                type=field.type or field.tag.lower(),
                label=resolve_label(field),
                value=field.value,
                id=field.id,
                class_name=field.class_name,
                required=field.required,
                disabled=field.disabled,
                read_only=field.read_only,
                placeholder=field.placeholder,
                options=tuple(field.options) if field.options else None,
            )
            for field in snapshot.fields
        )
        return FormDescriptor(
            form_index=snapshot.form_index,
            form_id=snapshot.form_id or f"anonymous_form_{snapshot.form_index}",
            action=snapshot.action,
            method=(snapshot.method or "get").lower(),
            fields=fields,
        )
