# -*- coding: utf-8 -*-
"""
Place Submission Wizard - multi-step creation of a place with images.
"""

from .place_context import PlaceSubmissionContext
from .place_wizard import PlaceSubmissionWizard

__all__ = [
    'PlaceSubmissionContext',
    'PlaceSubmissionWizard'
]
