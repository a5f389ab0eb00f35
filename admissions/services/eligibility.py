"""Age-band eligibility rules per educational level."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from admissions.errors import ValidationFailedError
from admissions.models.application import EducationalLevel

DEFAULT_AGE_BAND = (10, 18)

AGE_BANDS: dict[EducationalLevel, tuple[int, int]] = {
    EducationalLevel.junior_secondary: (10, 15),
    EducationalLevel.senior_secondary: (13, 18),
}

_LEVEL_LABELS = {
    EducationalLevel.primary: "Primary",
    EducationalLevel.junior_secondary: "Junior Secondary",
    EducationalLevel.senior_secondary: "Senior Secondary",
}


@dataclass(frozen=True)
class Eligibility:
    age: int
    min_age: int
    max_age: int

    @property
    def eligible(self) -> bool:
        return self.min_age <= self.age <= self.max_age


def calculate_age(date_of_birth: date, today: date) -> int:
    """Whole years elapsed, less one if this year's birthday is still ahead."""
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def age_band(level: EducationalLevel) -> tuple[int, int]:
    return AGE_BANDS.get(level, DEFAULT_AGE_BAND)


def evaluate(date_of_birth: date, level: EducationalLevel, today: date) -> Eligibility:
    min_age, max_age = age_band(level)
    return Eligibility(
        age=calculate_age(date_of_birth, today), min_age=min_age, max_age=max_age
    )


def check_eligibility(
    date_of_birth: date, level: EducationalLevel, today: date
) -> Eligibility:
    """Raise ``ValidationFailedError`` naming the violated bound when ineligible."""
    result = evaluate(date_of_birth, level, today)
    label = _LEVEL_LABELS.get(level, level.value)
    if result.age < result.min_age:
        raise ValidationFailedError(
            f"Student must be at least {result.min_age} years old for {label}"
        )
    if result.age > result.max_age:
        raise ValidationFailedError(
            f"Student cannot be older than {result.max_age} years for {label}"
        )
    return result
