# -*- coding: utf-8 -*-
from marketmodel.utils.settings import *
from marketmodel.utils.tenor import clean_tenor, tenor_to_date_offset, tenor_to_months, months_to_tenor
from marketmodel.utils.statistics import SequenceStatistics
