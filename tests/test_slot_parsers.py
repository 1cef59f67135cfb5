"""Tests for slot extraction from transcribed speech."""

from datetime import date

import pytest

from medibook.conversation.slot_parsers import (
    add_months,
    parse_date,
    parse_email,
    parse_name,
    parse_phone,
    parse_time,
    validate_appointment_date,
    validate_date_of_birth,
    wants_to_skip,
)
from tests.conftest import TODAY


class TestParseName:
    def test_strips_lead_in_phrase(self):
        assert parse_name("my name is john smith") == "John Smith"

    def test_keeps_first_two_tokens(self):
        assert parse_name("this is mary anne jones speaking") == "Mary Anne"

    def test_single_name(self):
        assert parse_name("John") == "John"

    def test_punctuation_trimmed(self):
        assert parse_name("I'm Sarah Chen.") == "Sarah Chen"

    def test_falls_back_to_raw_text(self):
        assert parse_name("it is me") == "it is me"

    def test_too_short_fails(self):
        assert parse_name("i") is None

    def test_empty_fails(self):
        assert parse_name("") is None
        assert parse_name("   ") is None


class TestParsePhone:
    def test_ten_digits_get_country_code(self):
        assert parse_phone("555 123 4567") == "+15551234567"

    def test_formatted_number(self):
        assert parse_phone("(555) 123-4567") == "+15551234567"

    def test_spoken_digits(self):
        assert parse_phone("five five five one two three four five six seven") == "+15551234567"

    def test_oh_is_zero(self):
        assert parse_phone("five five five oh one two three four five six") == "+15550123456"

    def test_eleven_digits_with_leading_one(self):
        assert parse_phone("1 555 123 4567") == "+15551234567"

    def test_international_number(self):
        assert parse_phone("+44 20 7946 0958") == "+442079460958"

    def test_sentence_around_number(self):
        assert parse_phone("sure, it's 555-123-4567 thanks") == "+15551234567"

    def test_too_few_digits(self):
        assert parse_phone("12345") is None

    def test_too_many_digits(self):
        assert parse_phone("1234567890123456") is None

    def test_no_digits(self):
        assert parse_phone("I don't remember") is None


class TestParseEmail:
    def test_written_address(self):
        assert parse_email("john.smith@example.com") == "john.smith@example.com"

    def test_lowercased(self):
        assert parse_email("it's John.Smith@Example.COM") == "john.smith@example.com"

    def test_spoken_address(self):
        assert parse_email("john dot smith at gmail dot com") == "john.smith@gmail.com"

    def test_spoken_with_lead_in(self):
        assert parse_email("my email is jane at example dot org") == "jane@example.org"

    def test_no_address(self):
        assert parse_email("I don't know") is None

    def test_empty(self):
        assert parse_email("") is None


class TestWantsToSkip:
    @pytest.mark.parametrize("text", ["skip", "no email", "I don't have one", "I'd rather not"])
    def test_skip_phrases(self, text):
        assert wants_to_skip(text) is True

    def test_address_is_not_a_skip(self):
        assert wants_to_skip("john at gmail dot com") is False


class TestParseDate:
    @pytest.mark.parametrize("text, expected", [
        ("today", date(2026, 10, 19)),
        ("tomorrow please", date(2026, 10, 20)),
        ("the day after tomorrow", date(2026, 10, 21)),
        ("next week", date(2026, 10, 26)),
        ("in a week", date(2026, 10, 26)),
        ("in 3 days", date(2026, 10, 22)),
    ])
    def test_relative_phrases(self, text, expected):
        assert parse_date(text, TODAY) == expected

    def test_weekday_name(self):
        assert parse_date("friday", TODAY) == date(2026, 10, 23)

    def test_same_weekday_is_next_week(self):
        assert parse_date("monday", TODAY) == date(2026, 10, 26)

    @pytest.mark.parametrize("text", ["tue", "tues", "next tuesday"])
    def test_weekday_abbreviations(self, text):
        assert parse_date(text, TODAY) == date(2026, 10, 20)

    def test_thursday_abbreviation(self):
        assert parse_date("thurs", TODAY) == date(2026, 10, 22)

    def test_next_saturday(self):
        assert parse_date("next Saturday", TODAY) == date(2026, 10, 24)

    def test_month_and_day(self):
        assert parse_date("october 25", TODAY) == date(2026, 10, 25)

    def test_month_abbreviation_with_ordinal(self):
        assert parse_date("nov 3rd", TODAY) == date(2026, 11, 3)

    def test_passed_month_day_rolls_to_next_year(self):
        assert parse_date("october 5", TODAY) == date(2027, 10, 5)

    def test_explicit_year_honoured(self):
        assert parse_date("march 5 1985", TODAY) == date(1985, 3, 5)

    def test_iso_date(self):
        assert parse_date("2026-11-03", TODAY) == date(2026, 11, 3)

    def test_us_numeric_date(self):
        assert parse_date("11/03/2026", TODAY) == date(2026, 11, 3)
        assert parse_date("11-03-2026", TODAY) == date(2026, 11, 3)

    def test_impossible_date(self):
        assert parse_date("02/30/2026", TODAY) is None

    def test_unparseable(self):
        assert parse_date("whenever works", TODAY) is None
        assert parse_date("", TODAY) is None


class TestValidateAppointmentDate:
    def test_today_is_valid(self):
        assert validate_appointment_date(TODAY, TODAY, 3).is_valid is True

    def test_past(self):
        result = validate_appointment_date(date(2026, 10, 18), TODAY, 3)
        assert result.is_valid is False
        assert result.reason == "past"

    def test_weekend(self):
        result = validate_appointment_date(date(2026, 10, 24), TODAY, 3)
        assert result.reason == "weekend"

    def test_last_day_of_horizon(self):
        assert validate_appointment_date(date(2027, 1, 19), TODAY, 3).is_valid is True

    def test_beyond_horizon(self):
        result = validate_appointment_date(date(2027, 1, 20), TODAY, 3)
        assert result.reason == "too_far"


class TestValidateDateOfBirth:
    def test_plausible(self):
        assert validate_date_of_birth(date(1985, 3, 5), TODAY).is_valid is True

    def test_future(self):
        assert validate_date_of_birth(date(2027, 1, 1), TODAY).reason == "future"

    def test_implausibly_old(self):
        assert validate_date_of_birth(date(1900, 1, 1), TODAY).reason == "implausible"


class TestAddMonths:
    def test_clamps_to_month_end(self):
        assert add_months(date(2026, 11, 30), 3) == date(2027, 2, 28)

    def test_negative(self):
        assert add_months(date(2026, 10, 19), -12) == date(2025, 10, 19)


class TestParseTime:
    SLOTS = ["14:00", "14:30", "15:00"]

    def test_pm_hour(self):
        assert parse_time("2 pm", self.SLOTS) == "14:00"

    def test_compact_pm(self):
        assert parse_time("2pm works", self.SLOTS) == "14:00"

    def test_hour_and_minutes_without_meridiem_tries_afternoon(self):
        assert parse_time("2:30", self.SLOTS) == "14:30"

    def test_hour_word(self):
        assert parse_time("three o'clock", self.SLOTS) == "15:00"

    def test_twenty_four_hour(self):
        assert parse_time("14:30", self.SLOTS) == "14:30"

    def test_closest_within_tolerance_prefers_earlier_on_tie(self):
        assert parse_time("2:15 pm", self.SLOTS) == "14:00"

    def test_closest_within_tolerance(self):
        assert parse_time("3:20 pm", self.SLOTS) == "15:00"

    def test_outside_tolerance(self):
        assert parse_time("9 am", self.SLOTS) is None

    def test_afternoon_bucket(self):
        assert parse_time("sometime in the afternoon", self.SLOTS) == "14:00"

    def test_morning_bucket(self):
        assert parse_time("morning", ["09:00", "09:30", "14:00"]) == "09:00"

    def test_evening_bucket(self):
        assert parse_time("evening if possible", ["08:30", "11:00", "16:00", "17:30"]) == "17:30"

    def test_bucket_without_candidates(self):
        assert parse_time("morning", self.SLOTS) is None

    def test_am_hour(self):
        assert parse_time("10 am", ["09:00", "10:00"]) == "10:00"

    def test_no_candidates(self):
        assert parse_time("2 pm", []) is None

    def test_gibberish(self):
        assert parse_time("whatever", self.SLOTS) is None
