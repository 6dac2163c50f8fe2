# -*- coding: utf-8 -*-
from marketmodel.instruments.ir.pathwise_product import CashFlow, PathwiseMultiProduct
from marketmodel.instruments.ir.pathwise_caplet import (PathwiseMultiCaplet, PathwiseMultiDeflatedCaplet,
                                                        PathwiseMultiDeflatedCap)
