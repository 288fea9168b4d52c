# -*- coding: utf-8 -*-
"""
Wizard Framework - step navigation and context base classes.

Provides base classes for multi-step wizards with consistent
navigation, validation, and state management.
"""

from .wizard_context import WizardContext
from .step_navigator import StepNavigator

__all__ = [
    'WizardContext',
    'StepNavigator'
]
