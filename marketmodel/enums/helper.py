# -*- coding: utf-8 -*-
from typing import Optional

import pandas as pd


def clean_enum_value(value, aliases: Optional[dict]=None):
    """
    Normalise a user given code: 'Mid-Point' -> 'mid_point'. Missing values (None, NaN) map to None.
    Codes listed in 'aliases' are then replaced by their canonical value, e.g. {'mt': 'mersenne_twister'}.
    """
    if isinstance(value, str):
        value = '_'.join(value.lower().strip().replace('-', ' ').split())
        if aliases:
            value = aliases.get(value, value)
    elif value is None or pd.isna(value):
        value = None
    return value


def is_valid_enum_value(enum_class, value, aliases: Optional[dict]=None) -> bool:
    value = clean_enum_value(value, aliases)
    return value in {enum_member.value for enum_member in enum_class}


def get_enum_member(enum_class, value, aliases: Optional[dict]=None):
    if isinstance(value, enum_class):
        return value

    cleaned_value = clean_enum_value(value, aliases)
    if cleaned_value is None:
        return enum_class.default()
    for enum_member in enum_class:
        if enum_member.value == cleaned_value:
            return enum_member

    valid_values = [enum_member.value for enum_member in enum_class] + sorted(aliases or {})
    raise ValueError(f"Invalid value: {value}. Valid codes are: {valid_values}")
