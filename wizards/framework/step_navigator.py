# -*- coding: utf-8 -*-
"""
Step Navigator - Manages navigation between wizard steps.

Handles:
- Step progression (next/previous)
- Step validation before navigation
- Jump rules (no skipping ahead)
- Progress tracking
"""

from typing import Callable, Dict, List

from .wizard_context import WizardContext
from utils.logger import get_logger

logger = get_logger(__name__)

StepChangedCallback = Callable[[int, int], None]
ValidationFailedCallback = Callable[[Dict[str, str]], None]


class StepNavigator:
    """
    Manages navigation between 1-based wizard steps.

    The last step is terminal: it is only entered through finish(),
    never through next_step() or goto_step().

    Args:
        context: Wizard context (holds current step and completed steps)
        step_count: Number of steps including the terminal one
        validate_step: step -> field errors ({} when valid)
    """

    def __init__(self, context: WizardContext, step_count: int,
                 validate_step: Callable[[int], Dict[str, str]]):
        self.context = context
        self.step_count = step_count
        self.validate_step = validate_step

        self._step_changed: List[StepChangedCallback] = []
        self._validation_failed: List[ValidationFailedCallback] = []

    # =========================================================================
    # Observers
    # =========================================================================

    def on_step_changed(self, callback: StepChangedCallback):
        """Register callback(old_step, new_step)."""
        self._step_changed.append(callback)

    def on_validation_failed(self, callback: ValidationFailedCallback):
        """Register callback(field_errors)."""
        self._validation_failed.append(callback)

    def emit_validation_failed(self, errors: Dict[str, str]):
        for callback in self._validation_failed:
            callback(errors)

    # =========================================================================
    # State
    # =========================================================================

    @property
    def current_step(self) -> int:
        return self.context.current_step

    @property
    def terminal_step(self) -> int:
        return self.step_count

    @property
    def last_editable_step(self) -> int:
        return self.step_count - 1

    def can_go_next(self) -> bool:
        """Check if we can navigate to the next step."""
        return self.current_step < self.last_editable_step

    def can_go_previous(self) -> bool:
        """Check if we can navigate to the previous step."""
        return 1 < self.current_step < self.terminal_step

    def can_jump_to(self, step: int) -> bool:
        """Allowed targets: steps already completed (moving forward past them needs next_step)."""
        if step < 1 or step > self.last_editable_step:
            return False
        if self.current_step == self.terminal_step:
            return False
        return step <= self.context.highest_completed_step

    # =========================================================================
    # Navigation
    # =========================================================================

    def next_step(self) -> Dict[str, str]:
        """
        Validate the current step and move forward one step.

        On the last editable step the step is validated but not left.

        Returns:
            Field errors ({} on success)
        """
        step = self.current_step
        if step >= self.terminal_step:
            logger.debug(f"Cannot go next: already at terminal step ({step})")
            return {}

        errors = self.validate_step(step)
        if errors:
            logger.warning(f"Step {step} validation failed: {errors}")
            self.emit_validation_failed(errors)
            return errors

        self.context.mark_step_completed(step)

        if not self.can_go_next():
            logger.debug(f"Step {step} is valid; leaving it requires submission")
            return {}

        logger.info(f"Navigating: Step {step} → {step + 1}")
        self._navigate_to(step + 1)
        return {}

    def previous_step(self) -> bool:
        """Navigate to the previous step (no validation)."""
        if not self.can_go_previous():
            logger.debug(f"Cannot go previous from step {self.current_step}")
            return False

        logger.info(f"Navigating back: Step {self.current_step} → {self.current_step - 1}")
        self._navigate_to(self.current_step - 1)
        return True

    def goto_step(self, step: int) -> bool:
        """
        Navigate to a specific step.

        Returns:
            True if navigation was successful
        """
        if step == self.current_step:
            return True

        if not self.can_jump_to(step):
            logger.debug(
                f"Jump to step {step} refused "
                f"(highest completed: {self.context.highest_completed_step})"
            )
            return False

        self._navigate_to(step)
        return True

    def finish(self):
        """Enter the terminal step (after a successful submission)."""
        self.context.mark_step_completed(self.last_editable_step)
        self._navigate_to(self.terminal_step)

    def reset(self):
        """Reset navigator to first step."""
        old_step = self.current_step
        self.context.reset_progress()
        if old_step != 1:
            self._emit_step_changed(old_step, 1)

    def _navigate_to(self, new_step: int):
        old_step = self.current_step
        self.context.current_step = new_step
        self.context.touch()
        self._emit_step_changed(old_step, new_step)
        logger.info(f"Navigation complete: Step {new_step} is now active")

    def _emit_step_changed(self, old_step: int, new_step: int):
        for callback in self._step_changed:
            callback(old_step, new_step)

    def get_progress_percentage(self) -> float:
        """
        Get current progress as percentage.

        Returns:
            Progress percentage (0.0 to 100.0)
        """
        if self.step_count <= 1:
            return 100.0
        return ((self.current_step - 1) / (self.step_count - 1)) * 100.0

    def get_completed_steps_count(self) -> int:
        """Get number of completed steps."""
        return len(self.context.completed_steps)
