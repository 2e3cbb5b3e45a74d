"""
Configuration manager for quiz runner settings.
"""
import logging
from typing import Any, Dict, List, Optional

from .models import QuizSettings


class ConfigManager:
    """Manages timer configuration and other quiz parameters."""

    # Default configuration values
    DEFAULT_TIMER_ENABLED = False
    DEFAULT_TIMER_DURATION = 600  # 10 minutes
    DEFAULT_QUESTION_FILE = None  # Use the bundled sample questions

    # Validation limits
    MIN_TIMER_MINUTES = 1
    MAX_TIMER_MINUTES = 180  # 3 hours
    MIN_TIMER_DURATION = MIN_TIMER_MINUTES * 60

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._global_settings = QuizSettings(
            timer_enabled=self.DEFAULT_TIMER_ENABLED,
            timer_duration=self.DEFAULT_TIMER_DURATION
        )
        self._question_file: Optional[str] = self.DEFAULT_QUESTION_FILE

    def get_quiz_settings(self) -> QuizSettings:
        """
        Get current quiz settings.

        Returns:
            Copy of the current QuizSettings
        """
        return QuizSettings(
            timer_enabled=self._global_settings.timer_enabled,
            timer_duration=self._global_settings.timer_duration
        )

    def set_timer_enabled(self, enabled: bool) -> Dict[str, Any]:
        """
        Enable or disable the session countdown.

        The change is picked up by the next session start; a countdown that
        is already running is not affected.

        Args:
            enabled: True to run sessions against the clock

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(enabled, bool):
            error_msg = f"Timer enabled must be a boolean, got {type(enabled).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected true/false, got {type(enabled).__name__}"
            }

        self._global_settings.timer_enabled = enabled
        state = "enabled" if enabled else "disabled"
        self.logger.info(f"Timer {state}")
        return {
            'success': True,
            'new_value': enabled,
            'message': f"Timer {state}",
            'user_message': f"✅ Timer {state} for the next quiz"
        }

    def get_timer_enabled(self) -> bool:
        return self._global_settings.timer_enabled

    def toggle_timer(self) -> Dict[str, Any]:
        """Flip the timer enabled setting."""
        return self.set_timer_enabled(not self._global_settings.timer_enabled)

    def set_timer_duration_minutes(self, minutes: int) -> Dict[str, Any]:
        """
        Set the session countdown length in whole minutes.

        Args:
            minutes: Countdown length, at least one minute

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(minutes, int) or isinstance(minutes, bool):
            error_msg = f"Timer duration must be an integer number of minutes, got {type(minutes).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(minutes).__name__}"
            }

        if minutes < self.MIN_TIMER_MINUTES:
            error_msg = f"Timer duration must be at least {self.MIN_TIMER_MINUTES} minute"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Timer too short: Minimum is {self.MIN_TIMER_MINUTES} minute"
            }

        if minutes > self.MAX_TIMER_MINUTES:
            error_msg = f"Timer duration cannot exceed {self.MAX_TIMER_MINUTES} minutes"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Timer too long: Maximum is {self.MAX_TIMER_MINUTES} minutes"
            }

        self._global_settings.timer_duration = minutes * 60
        self.logger.info(f"Timer duration set to {minutes} minutes")
        return {
            'success': True,
            'new_value': minutes,
            'message': f"Timer duration set to {minutes} minutes",
            'user_message': f"✅ Timer set to {minutes} minute{'s' if minutes != 1 else ''}"
        }

    def get_timer_duration(self) -> int:
        """
        Get current timer duration setting.

        Returns:
            Timer duration in seconds
        """
        return self._global_settings.timer_duration

    def get_timer_duration_minutes(self) -> int:
        return self._global_settings.timer_duration // 60

    def set_question_file(self, file_path: Optional[str]) -> Dict[str, Any]:
        """
        Set the JSON file the question bank is loaded from.

        Args:
            file_path: Path to a question file, or None for the sample questions

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if file_path is not None and (not isinstance(file_path, str) or not file_path.strip()):
            error_msg = "Question file must be a non-empty path"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ Question file path cannot be empty"
            }

        self._question_file = file_path
        self.logger.info(f"Question file set to {file_path or 'bundled sample questions'}")
        return {
            'success': True,
            'message': f"Question file set to {file_path}",
            'user_message': f"✅ Questions will be loaded from {file_path or 'the sample set'}"
        }

    def get_question_file(self) -> Optional[str]:
        return self._question_file

    def apply_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Apply the 'quiz' section of a configuration dictionary.

        Invalid values are logged and skipped so the defaults stay in place.

        Returns:
            List of error messages for settings that could not be applied
        """
        errors = []
        quiz_config = config.get('quiz', {}) if isinstance(config, dict) else {}

        if 'timer_enabled' in quiz_config:
            result = self.set_timer_enabled(quiz_config['timer_enabled'])
            if not result['success']:
                errors.append(result['error'])

        if 'timer_duration_minutes' in quiz_config:
            result = self.set_timer_duration_minutes(quiz_config['timer_duration_minutes'])
            if not result['success']:
                errors.append(result['error'])

        if 'question_file' in quiz_config:
            result = self.set_question_file(quiz_config['question_file'])
            if not result['success']:
                errors.append(result['error'])

        if errors:
            self.logger.warning(f"Configuration applied with {len(errors)} errors")
        else:
            self.logger.info("Configuration applied successfully")
        return errors

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values."""
        self._global_settings = QuizSettings(
            timer_enabled=self.DEFAULT_TIMER_ENABLED,
            timer_duration=self.DEFAULT_TIMER_DURATION
        )
        self._question_file = self.DEFAULT_QUESTION_FILE
        self.logger.info("All settings reset to default values")

    def validate_settings(self) -> Dict[str, Any]:
        """
        Validate current settings and return validation results.

        Returns:
            Dictionary with validation results and any issues found
        """
        validation_result = {
            "valid": True,
            "issues": []
        }

        if not isinstance(self._global_settings.timer_enabled, bool):
            validation_result["valid"] = False
            validation_result["issues"].append(
                f"Invalid timer enabled setting: {self._global_settings.timer_enabled}"
            )

        duration = self._global_settings.timer_duration
        if (not isinstance(duration, int) or
            duration < self.MIN_TIMER_DURATION or
            duration > self.MAX_TIMER_MINUTES * 60):
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid timer duration: {duration}")

        return validation_result

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        timer_str = "on" if self._global_settings.timer_enabled else "off"
        return (
            f"Quiz Settings:\n"
            f"• Timer: {timer_str}\n"
            f"• Duration: {self.get_timer_duration_minutes()} minutes\n"
            f"• Questions: {self._question_file or 'sample set'}"
        )
