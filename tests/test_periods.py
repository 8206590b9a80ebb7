from datetime import date

from familybudget.services.periods import last_day_of_month, month_bounds, previous_period


def test_last_day_of_month_handles_leap_years():
    assert last_day_of_month(2024, 2) == date(2024, 2, 29)
    assert last_day_of_month(2023, 2) == date(2023, 2, 28)
    assert last_day_of_month(2024, 4) == date(2024, 4, 30)


def test_month_bounds():
    assert month_bounds(2024, 3) == (date(2024, 3, 1), date(2024, 3, 31))


def test_previous_period_is_previous_calendar_month():
    assert previous_period(date(2024, 4, 1)) == (date(2024, 3, 1), date(2024, 3, 31))
    # the day inside the month does not matter
    assert previous_period(date(2024, 3, 15)) == (date(2024, 2, 1), date(2024, 2, 29))


def test_previous_period_wraps_january_to_december():
    assert previous_period(date(2025, 1, 1)) == (date(2024, 12, 1), date(2024, 12, 31))
