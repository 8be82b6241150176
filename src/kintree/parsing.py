"""GEDCOM import (minimal subset) and date handling utilities."""

import logging
import re
from pathlib import Path

from ged4py import GedcomReader

from kintree.models import EventDetails, Marriage, Person, normalize_gender

logger = logging.getLogger(__name__)

MONTH_MAP = {
    "JAN": 1, "JANUARY": 1,
    "FEB": 2, "FEBRUARY": 2,
    "MAR": 3, "MARCH": 3,
    "APR": 4, "APRIL": 4,
    "MAY": 5,
    "JUN": 6, "JUNE": 6,
    "JUL": 7, "JULY": 7,
    "AUG": 8, "AUGUST": 8,
    "SEP": 9, "SEPT": 9, "SEPTEMBER": 9,
    "OCT": 10, "OCTOBER": 10,
    "NOV": 11, "NOVEMBER": 11,
    "DEC": 12, "DECEMBER": 12,
}  # fmt: skip

_QUALIFIERS = re.compile(
    r"^(ABT\.?|ABOUT|BEF\.?|BEFORE|AFT\.?|AFTER|EST\.?|CAL\.?|FROM|TO|BET\.?|AND|CIRCA|CA\.?|AROUND):?\s*",
    re.IGNORECASE,
)

# (pattern, order of the captured groups)
_DATE_PATTERNS = [
    (re.compile(r"^(\d{4})-(\d{2})-(\d{2})$"), "ymd"),  # 1839-08-29, 1746-00-00
    (re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s*(\d{4})$"), "dMy"),  # 25 NOV 1954, 11 Aug. 1968
    (re.compile(r"^([A-Za-z]+)\.?,?\s*(\d{4})$"), "My"),  # NOV 1954, May, 1837
    (re.compile(r"^(\d{4})$"), "y"),  # 1698
    (re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$"), "mdy"),  # 01-27-1920, 1/15/1957
    (re.compile(r"^(\d{1,2})\s+(\d{1,2})\s+(\d{4})$"), "mdy"),  # 04 05 1911
    (re.compile(r"^([A-Za-z]+)\.?\s*(\d{1,2}),?\s*(\d{4})$"), "Mdy"),  # April 17, 1850
]


def parse_date_string(date_str: str | None) -> str | None:
    """
    Parse a free-form or GEDCOM date string into ISO format (YYYY-MM-DD).
    Returns None if the date cannot be parsed.

    Missing month or day default to 01; qualifiers such as ABT, BEF or
    "around" and surrounding parentheses are ignored.
    """
    if not date_str:
        return None

    s = date_str.strip().strip("()").rstrip("?")
    s = _QUALIFIERS.sub("", s).strip()
    if not s:
        return None

    for pattern, order in _DATE_PATTERNS:
        match = pattern.match(s)
        if not match:
            continue

        year, month, day = None, 1, 1
        for token, value in zip(order, match.groups()):
            if token == "y":
                year = int(value)
            elif token == "m":
                month = int(value)
            elif token == "d":
                day = int(value)
            elif token == "M":
                month = MONTH_MAP.get(value.upper().rstrip("."))

        if month is None or year is None:
            continue
        # Handle 00 month/day as defaults
        month = month or 1
        day = day or 1
        if 1 <= month <= 12 and 1 <= day <= 31:
            return f"{year:04d}-{month:02d}-{day:02d}"

    return None


def xref_to_id(xref_id: str) -> str:
    """Turn a GEDCOM xref like '@I_347421849@' into a person id."""
    person_id = xref_id.strip().strip("@")
    if not person_id:
        raise ValueError(f"Empty xref id: {xref_id!r}")
    return person_id


def extract_name_parts(indi) -> tuple[str, str, str]:
    """Extract full name, given name, and surname from an individual record."""
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return ("", "", "")

    name_value = name_rec.value

    # ged4py returns NAME as tuple: (given, surname, suffix)
    if isinstance(name_value, tuple):
        given, surname, suffix = name_value
        parts = [p for p in [given, surname, suffix] if p]
        return (" ".join(parts), given or "", surname or "")

    # Fallback: string format "Given /Surname/"
    full = str(name_value).replace("/", "").strip()
    givn = name_rec.sub_tag("GIVN")
    surn = name_rec.sub_tag("SURN")
    return (full, givn.value if givn else "", surn.value if surn else "")


def extract_event(rec, tag: str) -> EventDetails | None:
    """Extract date and place from an event tag (BIRT, DEAT, MARR, ...)."""
    event = rec.sub_tag(tag)
    if event is None:
        return None

    date_rec = event.sub_tag("DATE")
    place_rec = event.sub_tag("PLAC")

    # ged4py may return DateValue objects
    return EventDetails(
        date=str(date_rec.value) if date_rec and date_rec.value else "",
        place=str(place_rec.value) if place_rec and place_rec.value else "",
    )


def _value(rec, tag: str) -> str:
    sub = rec.sub_tag(tag)
    return str(sub.value) if sub is not None and sub.value else ""


def _link(rec, tag: str) -> str | None:
    sub = rec.sub_tag(tag)
    return xref_to_id(sub.xref_id) if sub is not None and sub.xref_id else None


def _add_once(ids: list[str], value: str) -> None:
    if value not in ids:
        ids.append(value)


def normalize_records(reader: GedcomReader) -> list[Person]:
    """
    Convert INDI and FAM records into a symmetric person snapshot.
    Anything outside NAME/SEX/BIRT/DEAT/OCCU/NOTE and HUSB/WIFE/CHIL/MARR/DIV
    is ignored, including vendor tags starting with _.
    """
    people: dict[str, Person] = {}

    for rec in reader.records0("INDI"):
        if rec.xref_id is None:
            continue

        person_id = xref_to_id(rec.xref_id)
        full, given_name, surname = extract_name_parts(rec)
        people[person_id] = Person(
            id=person_id,
            name=full,
            given_name=given_name,
            surname=surname,
            gender=normalize_gender(_value(rec, "SEX")),
            occupation=_value(rec, "OCCU"),
            notes=_value(rec, "NOTE"),
            birth=extract_event(rec, "BIRT") or EventDetails(),
            death=extract_event(rec, "DEAT"),
        )

    skipped = 0
    for rec in reader.records0("FAM"):
        if rec.xref_id is None:
            continue

        parent_ids = [pid for pid in (_link(rec, "HUSB"), _link(rec, "WIFE")) if pid in people]
        child_ids = [
            xref_to_id(child.xref_id)
            for child in rec.sub_tags("CHIL")
            if child.xref_id and xref_to_id(child.xref_id) in people
        ]
        skipped += len(rec.sub_tags("CHIL")) - len(child_ids)

        if len(parent_ids) == 2:
            a, b = (people[pid] for pid in parent_ids)
            marriage = extract_event(rec, "MARR") or EventDetails()
            divorce = extract_event(rec, "DIV")
            for person, spouse in ((a, b), (b, a)):
                _add_once(person.spouse_ids, spouse.id)
                person.marriages.append(
                    Marriage(
                        spouse_id=spouse.id,
                        date=marriage.date,
                        place=marriage.place,
                        divorced=divorce is not None,
                        divorce_date=divorce.date if divorce else "",
                        divorce_place=divorce.place if divorce else "",
                    )
                )

        for child_id in child_ids:
            for parent_id in parent_ids:
                _add_once(people[child_id].parent_ids, parent_id)
                _add_once(people[parent_id].child_ids, child_id)

    if skipped:
        logger.warning("Ignored %d CHIL references to unknown individuals", skipped)
    return list(people.values())


def read_gedcom(filepath: Path) -> list[Person]:
    """Parse a GEDCOM file into a person snapshot."""
    with GedcomReader(str(filepath)) as reader:
        return normalize_records(reader)
