# -*- coding: utf-8 -*-

# This file is part of Poreflow.
# Licensed under MIT License.

__version__ = '0.1.0'
