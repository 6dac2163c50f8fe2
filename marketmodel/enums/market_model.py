# -*- coding: utf-8 -*-
from enum import Enum

from marketmodel.enums.helper import get_enum_member, is_valid_enum_value

DISCRETIZATION_ALIASES = {
    'midpoint': 'mid_point',
    'trapezodial': 'trapezoidal',
    'gauss_kronrod': 'gauss_kronrod_quadrature',
    'quadrature': 'gauss_kronrod_quadrature',
}

BROWNIAN_GENERATOR_ALIASES = {
    'mt': 'mersenne_twister',
    'mt19937': 'mersenne_twister',
    'mersennetwister': 'mersenne_twister',
}


class Discretization(Enum):
    # Schemes for the level term of the extended Ornstein-Uhlenbeck conditional expectation
    MID_POINT = 'mid_point'
    TRAPEZOIDAL = 'trapezoidal'
    GAUSS_KRONROD_QUADRATURE = 'gauss_kronrod_quadrature'

    @classmethod
    def default(cls):
        return cls.MID_POINT

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value, DISCRETIZATION_ALIASES)

    @classmethod
    def from_value(cls, value):
        """Create an enum member from the given value, if valid."""
        return get_enum_member(cls, value, DISCRETIZATION_ALIASES)

    @property
    def display_name(self):
        dict_ = {
            'MID_POINT': 'Mid-point rule',
            'TRAPEZOIDAL': 'Trapezoidal rule',
            'GAUSS_KRONROD_QUADRATURE': 'Adaptive Gauss-Kronrod quadrature',
        }
        return dict_[self.name]


class BrownianGeneratorType(Enum):
    MERSENNE_TWISTER = 'mersenne_twister'
    SOBOL = 'sobol'

    @classmethod
    def default(cls):
        return cls.MERSENNE_TWISTER

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value, BROWNIAN_GENERATOR_ALIASES)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value, BROWNIAN_GENERATOR_ALIASES)
