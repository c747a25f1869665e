"""Placeholder rendering for schedule subject and body templates.

Templates use ``{{token}}`` markers. Every token family has a base form
and an ``_arabic`` form:

    {{date}}                  {{date_arabic}}
    {{day_name}}              {{day_name_arabic}}
    {{week_number}}           {{week_number_arabic}}
    {{week_in_month}}         {{week_in_month_arabic}}
    {{week_in_month_ordinal}} {{week_in_month_ordinal_arabic}}
    {{month_name}}            {{month_name_arabic}}
    {{year}}                  {{year_arabic}}
    {{department_name}}       {{department_name_arabic}}
    {{user_name}}             {{user_name_arabic}}

Base tokens are language-neutral: English names and Latin digits whatever
the template language. ``_arabic`` tokens always render Arabic names and
Arabic-Indic digits. Unknown tokens are left in place untouched.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Dict

TOKEN_RE = re.compile(r"\{\{\s*([A-Za-z_]+)\s*\}\}")

ENGLISH_DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
ARABIC_DAY_NAMES = ["الاثنين", "الثلاثاء", "الأربعاء", "الخميس", "الجمعة", "السبت", "الأحد"]

ENGLISH_MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
ARABIC_MONTH_NAMES = [
    "يناير", "فبراير", "مارس", "أبريل", "مايو", "يونيو",
    "يوليو", "أغسطس", "سبتمبر", "أكتوبر", "نوفمبر", "ديسمبر",
]

ARABIC_ORDINALS = ["", "الأول", "الثاني", "الثالث", "الرابع", "الخامس"]

ARABIC_DIGITS = str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩")

DATE_FORMATS = {
    "DD/MM/YYYY": "%d/%m/%Y",
    "MM/DD/YYYY": "%m/%d/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
}
DEFAULT_DATE_FORMAT = "%d/%m/%Y"


@dataclass(frozen=True)
class PlaceholderContext:
    """Lookups resolved by the caller before rendering."""

    department_name: str = ""
    department_name_arabic: str = ""
    user_name: str = ""
    user_name_arabic: str = ""
    date_format: str = "DD/MM/YYYY"


def to_arabic_digits(value: str) -> str:
    return value.translate(ARABIC_DIGITS)


def english_ordinal(n: int) -> str:
    """1 -> 1st, 2 -> 2nd, 11 -> 11th, 23 -> 23rd."""
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def week_in_month(day: date) -> int:
    """Week of the month, 1..5: days 1-7 are week 1, 29-31 week 5."""
    return (day.day - 1) // 7 + 1


def build_replacements(as_of: date, language: str, context: PlaceholderContext) -> Dict[str, str]:
    """Token name -> rendered value for one date and context.

    ``language`` does not change any value; base tokens stay neutral and
    the ``_arabic`` family carries the localized forms.
    """
    formatted_date = as_of.strftime(DATE_FORMATS.get(context.date_format, DEFAULT_DATE_FORMAT))
    week_number = str(as_of.isocalendar()[1])
    week_of_month = week_in_month(as_of)
    year = f"{as_of.year:04d}"

    english = {
        "date": formatted_date,
        "day_name": ENGLISH_DAY_NAMES[as_of.weekday()],
        "week_number": week_number,
        "week_in_month": str(week_of_month),
        "week_in_month_ordinal": english_ordinal(week_of_month),
        "month_name": ENGLISH_MONTH_NAMES[as_of.month - 1],
        "year": year,
        "department_name": context.department_name,
        "user_name": context.user_name,
    }
    arabic = {
        "date": to_arabic_digits(formatted_date),
        "day_name": ARABIC_DAY_NAMES[as_of.weekday()],
        "week_number": to_arabic_digits(week_number),
        "week_in_month": to_arabic_digits(str(week_of_month)),
        "week_in_month_ordinal": ARABIC_ORDINALS[week_of_month],
        "month_name": ARABIC_MONTH_NAMES[as_of.month - 1],
        "year": to_arabic_digits(year),
        "department_name": context.department_name_arabic or context.department_name,
        "user_name": context.user_name_arabic or context.user_name,
    }

    replacements = dict(english)
    replacements.update({f"{name}_arabic": value for name, value in arabic.items()})
    return replacements


def render(template: str, as_of: date, language: str, context: PlaceholderContext) -> str:
    """Substitute every known ``{{token}}`` in ``template``."""
    if not template:
        return template or ""
    replacements = build_replacements(as_of, language, context)

    def _substitute(match: "re.Match[str]") -> str:
        value = replacements.get(match.group(1))
        return match.group(0) if value is None else value

    return TOKEN_RE.sub(_substitute, template)
