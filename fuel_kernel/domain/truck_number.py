"""
Truck number normalisation.

Truck numbers arrive as free text ("T991 EFN", "t991-efn", "T991EFN").
Storage and comparison use the compact form; display and batch lookup use
the spaced form, whose last token is the fleet suffix.
"""

from __future__ import annotations

import re

_SEPARATORS = re.compile(r"[\s-]+")
_PLATE = re.compile(r"^(T\d{3,4})([A-Z]{3})$")


def normalize_truck_no(truck_no: str | None) -> str:
    """Remove spaces and hyphens and upper-case: "t991-efn" -> "T991EFN"."""
    if not truck_no:
        return ""
    return _SEPARATORS.sub("", truck_no).upper().strip()


def format_truck_no_display(truck_no: str | None) -> str:
    """Spaced display form: "T991EFN" -> "T991 EFN".

    Plates that don't follow the T-digits-letters pattern are returned in
    normalised form.
    """
    normalized = normalize_truck_no(truck_no)
    match = _PLATE.match(normalized)
    if match:
        return f"{match.group(1)} {match.group(2)}"
    return normalized


def is_truck_no_match(first: str | None, second: str | None) -> bool:
    return normalize_truck_no(first) == normalize_truck_no(second)


def is_valid_truck_no(truck_no: str | None) -> bool:
    return bool(_PLATE.match(normalize_truck_no(truck_no)))


def truck_suffix(truck_no: str | None) -> str:
    """Fleet suffix used for extra-fuel batches, lower-cased.

    "T103 DNH" -> "dnh", "T103DNH" -> "dnh".  Non-standard plates fall
    back to the last whitespace-delimited token of the raw input.
    """
    if not truck_no or not truck_no.strip():
        return ""
    display = format_truck_no_display(truck_no)
    if " " in display:
        return display.rsplit(" ", 1)[1].lower()
    return truck_no.strip().split()[-1].lower()
