# -*- coding: utf-8 -*-
import re
import logging
from pandas import DateOffset

# A tenor is one or more <count><unit> parts, e.g. '3m', '1y6m', '2 weeks'. Units reduce to their first letter.
TENOR_PART = re.compile(r'(\d+)(days?|d|weeks?|w|months?|mon|m|years?|yrs?|y)')


def clean_tenor(tenor: str) -> str:
    """'3 Months' -> '3m', '1 Year 6 Months' -> '1y6m'."""
    if not isinstance(tenor, str):
        raise TypeError(f"'tenor' {tenor} must be a string. Instead is type {type(tenor)}")

    compact = ''.join(tenor.lower().split())
    parts = TENOR_PART.findall(compact)
    if not parts or ''.join(count + unit for count, unit in parts) != compact:
        logging.error(f"invalid 'tenor' value: {tenor}")
        raise ValueError(f"invalid 'tenor' value: {tenor}")

    return ''.join(f'{int(count)}{unit[0]}' for count, unit in parts)


def tenor_to_date_offset(tenor: str) -> DateOffset:
    tenor = clean_tenor(tenor)

    if re.search(r'^\d+d$', tenor) is not None:
        offset = DateOffset(days=int(tenor[:-1]))
    elif re.search(r'^\d+w$', tenor) is not None:
        offset = DateOffset(weeks=int(tenor[:-1]))
    elif re.search(r'^\d+(y\d+m|m|y)$', tenor) is not None:
        offset = DateOffset(months=tenor_to_months(tenor))
    else:
        logging.error(f"invalid 'tenor' value: {tenor}")
        raise ValueError(f"invalid 'tenor' value: {tenor}")

    return offset


def tenor_to_months(tenor: str) -> int:
    """
    Number of months in a month/year tenor; 3M -> 3, 1Y -> 12, 1Y6M -> 18.
    Day and week tenors have no whole-month length and are rejected.
    """
    tenor = clean_tenor(tenor)

    if re.search(r'^\d+m$', tenor) is not None:
        return int(tenor[:-1])
    elif re.search(r'^\d+y$', tenor) is not None:
        return 12 * int(tenor[:-1])
    elif re.search(r'^\d+y\d+m$', tenor) is not None:
        years, months = tenor[:-1].split('y')
        return int(years) * 12 + int(months)

    logging.error(f"invalid 'tenor' value: {tenor}")
    raise ValueError(f"invalid 'tenor' value: {tenor}")


def months_to_tenor(months: int) -> str:
    if months % 12 == 0:
        return f'{months // 12}y'
    return f'{months}m'
