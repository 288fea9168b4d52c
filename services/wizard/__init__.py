# -*- coding: utf-8 -*-
"""Wizard step services."""

from .step_validator import StepValidator

__all__ = ["StepValidator"]
