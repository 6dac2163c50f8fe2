# -*- coding: utf-8 -*-
from marketmodel.enums.helper import clean_enum_value, is_valid_enum_value, get_enum_member
from marketmodel.enums.market_model import Discretization, BrownianGeneratorType

__all__ = [
    'clean_enum_value',
    'is_valid_enum_value',
    'get_enum_member',
    'Discretization',
    'BrownianGeneratorType',
]
