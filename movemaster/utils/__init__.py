"""Leaf helpers: identifiers, money and date keys."""

from movemaster.utils.dates import (
    add_months,
    date_key,
    days_in_month,
    month_grid,
    month_key,
    parse_date_key,
    split_date_key,
    start_of_day,
    today_key,
)
from movemaster.utils.ids import new_id
from movemaster.utils.money import ZERO, format_money, to_money

__all__ = [
    "ZERO",
    "add_months",
    "date_key",
    "days_in_month",
    "format_money",
    "month_grid",
    "month_key",
    "new_id",
    "parse_date_key",
    "split_date_key",
    "start_of_day",
    "to_money",
    "today_key",
]
