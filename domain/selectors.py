"""
Selectors for the course booking system, grouped by page.

Fallback chains (tried in order) are tuples. When the site changes its
markup, update selectors here only.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ListingSelectors:
    table: str = "table.bs_kurse"
    rows: str = "table.bs_kurse tbody tr"
    day_cell: str = ".bs_stag"
    time_cell: str = ".bs_szeit"
    action_cell: str = ".bs_sbuch"
    booking_button: str = ".bs_btn_buchen"
    waitlist_button: str = ".bs_btn_warteliste"
    autostart_indicator: str = ".bs_btn_autostart"


@dataclass(frozen=True)
class PopupSelectors:
    buttons: str = "input[type='submit'], button"


@dataclass(frozen=True)
class RegistrationFormSelectors:
    gender_radio: str = 'input[name="sex"][value="{code}"]'
    first_name: str = "#BS_F1100"
    last_name: str = "#BS_F1200"
    address: str = "#BS_F1300"
    zip_city: str = "#BS_F1400"
    status: str = "#BS_F1600"
    email: str = "#BS_F2000"
    phone: str = "#BS_F2100"
    terms: str = 'input[name="tnbed"]'
    student_id_candidates: tuple[str, ...] = (
        "#BS_F1610",
        "#BS_F4101",
        '[name="matric_nr"]',
        'input[placeholder*="Matrikelnummer"]',
        'input[name*="matric"]',
    )
    # Ids of fields filled by fixed steps; never a student id candidate.
    fixed_field_ids: tuple[str, ...] = (
        "BS_F1100",
        "BS_F1200",
        "BS_F1300",
        "BS_F1400",
        "BS_F2000",
        "BS_F2100",
    )
    submit_button: str = "#bs_submit"


@dataclass(frozen=True)
class ConfirmationSelectors:
    final_buttons: tuple[str, ...] = (
        'input[type="submit"][value="verbindlich buchen"]',
        '.sub[type="submit"]',
        'input.sub[type="submit"]',
        'input[type="submit"]',
        'button[type="submit"]',
    )


@dataclass(frozen=True)
class SiteSelectors:
    listing: ListingSelectors = field(default_factory=ListingSelectors)
    popup: PopupSelectors = field(default_factory=PopupSelectors)
    form: RegistrationFormSelectors = field(default_factory=RegistrationFormSelectors)
    confirmation: ConfirmationSelectors = field(default_factory=ConfirmationSelectors)


GENDER_CODES: dict[str, str] = {
    "männlich": "M",
    "weiblich": "W",
    "divers": "D",
    "keine angabe": "X",
}

SUBMIT_SUCCESS_MARKERS: tuple[str, ...] = ("erfolgreich", "successful", "Anmeldung")
FINAL_SUCCESS_MARKERS: tuple[str, ...] = (
    "erfolgreich",
    "success",
    "bestätigt",
    "Buchungsbestätigung",
)
