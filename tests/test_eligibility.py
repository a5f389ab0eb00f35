"""Tests for age calculation and the per-level eligibility bands."""

from datetime import date, timedelta

import pytest

from admissions.errors import ValidationFailedError
from admissions.models import EducationalLevel
from admissions.services.eligibility import (
    age_band,
    calculate_age,
    check_eligibility,
    evaluate,
)
from tests.conftest import TODAY, years_ago


class TestCalculateAge:
    def test_exact_anniversary_counts_the_full_year(self):
        assert calculate_age(years_ago(10), TODAY) == 10

    def test_day_before_anniversary_is_a_year_younger(self):
        assert calculate_age(years_ago(10) + timedelta(days=1), TODAY) == 9

    def test_birthday_earlier_this_year(self):
        assert calculate_age(date(2012, 1, 15), TODAY) == 14

    def test_leap_day_birthday(self):
        dob = date(2012, 2, 29)
        assert calculate_age(dob, date(2026, 2, 28)) == 13
        assert calculate_age(dob, date(2026, 3, 1)) == 14


class TestAgeBands:
    def test_junior_secondary(self):
        assert age_band(EducationalLevel.junior_secondary) == (10, 15)

    def test_senior_secondary(self):
        assert age_band(EducationalLevel.senior_secondary) == (13, 18)

    def test_other_levels_use_default_band(self):
        assert age_band(EducationalLevel.primary) == (10, 18)

    def test_evaluate_reports_band_and_age(self):
        result = evaluate(years_ago(12), EducationalLevel.junior_secondary, TODAY)
        assert result.eligible
        assert (result.age, result.min_age, result.max_age) == (12, 10, 15)


class TestCheckEligibility:
    def test_too_young_for_junior_secondary(self):
        with pytest.raises(
            ValidationFailedError,
            match="at least 10 years old for Junior Secondary",
        ):
            check_eligibility(years_ago(9), EducationalLevel.junior_secondary, TODAY)

    def test_too_old_for_junior_secondary(self):
        with pytest.raises(
            ValidationFailedError,
            match="cannot be older than 15 years for Junior Secondary",
        ):
            check_eligibility(years_ago(16), EducationalLevel.junior_secondary, TODAY)

    def test_too_young_for_senior_secondary(self):
        with pytest.raises(ValidationFailedError, match="at least 13 years old"):
            check_eligibility(years_ago(12), EducationalLevel.senior_secondary, TODAY)

    def test_too_old_for_senior_secondary(self):
        with pytest.raises(ValidationFailedError, match="older than 18 years"):
            check_eligibility(years_ago(19), EducationalLevel.senior_secondary, TODAY)

    @pytest.mark.parametrize(
        "years, level",
        [
            (10, EducationalLevel.junior_secondary),
            (15, EducationalLevel.junior_secondary),
            (13, EducationalLevel.senior_secondary),
            (18, EducationalLevel.senior_secondary),
            (18, EducationalLevel.primary),
        ],
    )
    def test_band_edges_are_inclusive(self, years, level):
        assert check_eligibility(years_ago(years), level, TODAY).eligible

    def test_age_uses_birthday_not_calendar_year(self):
        # Turns 16 tomorrow, so still 15 today.
        dob = years_ago(16) + timedelta(days=1)
        assert check_eligibility(dob, EducationalLevel.junior_secondary, TODAY).age == 15
