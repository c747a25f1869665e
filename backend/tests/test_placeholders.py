"""Tests for placeholder rendering."""

from datetime import date

import pytest

from services.placeholders import (
    PlaceholderContext,
    english_ordinal,
    render,
    to_arabic_digits,
    week_in_month,
)

FRIDAY = date(2024, 3, 15)


@pytest.fixture
def context():
    return PlaceholderContext(
        department_name="Operations",
        department_name_arabic="العمليات",
        user_name="Sara Ahmed",
        user_name_arabic="سارة أحمد",
    )


@pytest.mark.unit
class TestRenderEnglish:

    def test_year_and_month_name(self, context):
        assert render("{{year}}-{{month_name}}", FRIDAY, "en", context) == "2024-March"

    def test_unknown_token_passes_through(self, context):
        assert render("Hi {{bogus}} {{year}}", FRIDAY, "en", context) == "Hi {{bogus}} 2024"

    def test_whitespace_inside_braces(self, context):
        assert render("{{ year }}", FRIDAY, "en", context) == "2024"

    def test_date_default_format(self, context):
        assert render("{{date}}", FRIDAY, "en", context) == "15/03/2024"

    def test_date_configured_format(self):
        ctx = PlaceholderContext(date_format="YYYY-MM-DD")
        assert render("{{date}}", FRIDAY, "en", ctx) == "2024-03-15"

    def test_day_name(self, context):
        assert render("{{day_name}}", FRIDAY, "en", context) == "Friday"

    def test_iso_week_number(self, context):
        assert render("{{week_number}}", FRIDAY, "en", context) == "11"

    def test_week_in_month_and_ordinal(self, context):
        text = render("{{week_in_month}} / {{week_in_month_ordinal}}", FRIDAY, "en", context)
        assert text == "3 / 3rd"

    def test_department_and_user(self, context):
        text = render("{{department_name}}: {{user_name}}", FRIDAY, "en", context)
        assert text == "Operations: Sara Ahmed"

    def test_empty_template(self, context):
        assert render("", FRIDAY, "en", context) == ""

    def test_text_without_tokens_unchanged(self, context):
        assert render("<p>Hello</p>", FRIDAY, "en", context) == "<p>Hello</p>"


@pytest.mark.unit
class TestRenderArabic:

    def test_arabic_variants_in_english_template(self, context):
        text = render("{{month_name_arabic}} {{year_arabic}}", FRIDAY, "en", context)
        assert text == "مارس ٢٠٢٤"

    def test_day_name_arabic(self, context):
        assert render("{{day_name_arabic}}", FRIDAY, "en", context) == "الجمعة"

    def test_ordinal_arabic(self, context):
        assert render("{{week_in_month_ordinal_arabic}}", FRIDAY, "en", context) == "الثالث"

    def test_base_tokens_stay_neutral_in_arabic_templates(self, context):
        rendered = render("{{year}}-{{month_name}} {{date}}", FRIDAY, "ar", context)
        assert rendered == "2024-March 15/03/2024"

    def test_arabic_template_uses_arabic_variants(self, context):
        rendered = render("{{month_name_arabic}} {{year_arabic}}", FRIDAY, "ar", context)
        assert rendered == "مارس ٢٠٢٤"

    def test_names_arabic(self, context):
        text = render("{{department_name_arabic}} {{user_name_arabic}}", FRIDAY, "en", context)
        assert text == "العمليات سارة أحمد"

    def test_arabic_name_falls_back_to_display_name(self):
        ctx = PlaceholderContext(user_name="Sam")
        assert render("{{user_name_arabic}}", FRIDAY, "en", ctx) == "Sam"


@pytest.mark.unit
class TestHelpers:

    @pytest.mark.parametrize("n,expected", [
        (1, "1st"), (2, "2nd"), (3, "3rd"), (4, "4th"),
        (11, "11th"), (12, "12th"), (13, "13th"),
        (21, "21st"), (22, "22nd"), (23, "23rd"),
    ])
    def test_english_ordinal(self, n, expected):
        assert english_ordinal(n) == expected

    def test_week_in_month_bounds(self):
        assert week_in_month(date(2024, 3, 1)) == 1
        assert week_in_month(date(2024, 3, 7)) == 1
        assert week_in_month(date(2024, 3, 8)) == 2
        assert week_in_month(date(2024, 3, 31)) == 5

    def test_arabic_digits(self):
        assert to_arabic_digits("15/03/2024") == "١٥/٠٣/٢٠٢٤"
