# -*- coding: utf-8 -*-
"""Validation services package."""

from .validation_strategy import ValidationStrategy, is_uuid
from .validation_factory import ValidationFactory

__all__ = ['ValidationStrategy', 'ValidationFactory', 'is_uuid']
