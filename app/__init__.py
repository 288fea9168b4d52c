# -*- coding: utf-8 -*-
"""
Almlah Place Submission - Application Core Module
"""

from .config import Config, WizardSteps

__all__ = ["Config", "WizardSteps"]
