"""
Unit tests for ConfigManager class.
"""
import logging
import unittest

from quiz_runner.config_manager import ConfigManager
from tests.test_fixtures import TestDataValidation


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager functionality."""

    def setUp(self):
        """Set up test fixtures before each test method."""
        self.config_manager = ConfigManager()

        # Suppress logging during tests
        logging.disable(logging.CRITICAL)

    def tearDown(self):
        """Clean up after each test method."""
        logging.disable(logging.NOTSET)

    def test_initialization_with_defaults(self):
        """Test that ConfigManager initializes with correct default values."""
        settings = self.config_manager.get_quiz_settings()

        self.assertFalse(settings.timer_enabled)
        self.assertEqual(settings.timer_duration, 600)
        self.assertIsNone(self.config_manager.get_question_file())
        self.assertTrue(TestDataValidation.validate_quiz_settings(settings))

    def test_get_quiz_settings_returns_copy(self):
        settings = self.config_manager.get_quiz_settings()
        settings.timer_enabled = True

        self.assertFalse(self.config_manager.get_timer_enabled())

    def test_set_timer_enabled(self):
        result = self.config_manager.set_timer_enabled(True)

        self.assertTrue(result['success'])
        self.assertTrue(result['new_value'])
        self.assertTrue(self.config_manager.get_timer_enabled())

    def test_set_timer_enabled_invalid_type(self):
        result = self.config_manager.set_timer_enabled("yes")

        self.assertFalse(result['success'])
        self.assertIn('user_message', result)
        self.assertFalse(self.config_manager.get_timer_enabled())

    def test_toggle_timer(self):
        first = self.config_manager.toggle_timer()
        second = self.config_manager.toggle_timer()

        self.assertTrue(first['new_value'])
        self.assertFalse(second['new_value'])
        self.assertFalse(self.config_manager.get_timer_enabled())

    def test_set_timer_duration_valid_values(self):
        """Test setting valid timer lengths."""
        result = self.config_manager.set_timer_duration_minutes(1)
        self.assertTrue(result['success'])
        self.assertEqual(self.config_manager.get_timer_duration(), 60)

        result = self.config_manager.set_timer_duration_minutes(45)
        self.assertTrue(result['success'])
        self.assertEqual(self.config_manager.get_timer_duration(), 2700)
        self.assertEqual(self.config_manager.get_timer_duration_minutes(), 45)

        result = self.config_manager.set_timer_duration_minutes(ConfigManager.MAX_TIMER_MINUTES)
        self.assertTrue(result['success'])

    def test_set_timer_duration_invalid_values(self):
        """Test setting invalid timer lengths."""
        for value in (0, -5, ConfigManager.MAX_TIMER_MINUTES + 1, "10", 2.5, True, None):
            result = self.config_manager.set_timer_duration_minutes(value)
            self.assertFalse(result['success'], f"{value!r} should be rejected")
            self.assertIn('error', result)

        self.assertEqual(self.config_manager.get_timer_duration(), ConfigManager.DEFAULT_TIMER_DURATION)

    def test_set_question_file(self):
        self.assertTrue(self.config_manager.set_question_file("questions.json")['success'])
        self.assertEqual(self.config_manager.get_question_file(), "questions.json")

        self.assertTrue(self.config_manager.set_question_file(None)['success'])
        self.assertIsNone(self.config_manager.get_question_file())

        self.assertFalse(self.config_manager.set_question_file("   ")['success'])

    def test_apply_config(self):
        errors = self.config_manager.apply_config({
            'quiz': {
                'timer_enabled': True,
                'timer_duration_minutes': 5,
                'question_file': 'bank.json'
            }
        })

        self.assertEqual(errors, [])
        self.assertTrue(self.config_manager.get_timer_enabled())
        self.assertEqual(self.config_manager.get_timer_duration(), 300)
        self.assertEqual(self.config_manager.get_question_file(), 'bank.json')

    def test_apply_config_keeps_defaults_for_invalid_values(self):
        errors = self.config_manager.apply_config({
            'quiz': {
                'timer_enabled': 'sometimes',
                'timer_duration_minutes': 0
            }
        })

        self.assertEqual(len(errors), 2)
        self.assertFalse(self.config_manager.get_timer_enabled())
        self.assertEqual(self.config_manager.get_timer_duration(), 600)

    def test_apply_config_without_quiz_section(self):
        self.assertEqual(self.config_manager.apply_config({}), [])
        self.assertEqual(self.config_manager.apply_config(None), [])

    def test_reset_to_defaults(self):
        self.config_manager.set_timer_enabled(True)
        self.config_manager.set_timer_duration_minutes(3)
        self.config_manager.set_question_file("bank.json")

        self.config_manager.reset_to_defaults()

        self.assertFalse(self.config_manager.get_timer_enabled())
        self.assertEqual(self.config_manager.get_timer_duration(), 600)
        self.assertIsNone(self.config_manager.get_question_file())

    def test_validate_settings(self):
        validation = self.config_manager.validate_settings()
        self.assertTrue(validation['valid'])
        self.assertEqual(validation['issues'], [])

        # Bypass the setters to simulate corrupted state
        self.config_manager._global_settings.timer_duration = 30
        validation = self.config_manager.validate_settings()
        self.assertFalse(validation['valid'])
        self.assertEqual(len(validation['issues']), 1)

    def test_get_settings_summary(self):
        self.config_manager.set_timer_enabled(True)
        self.config_manager.set_timer_duration_minutes(15)

        summary = self.config_manager.get_settings_summary()

        self.assertIn("Timer: on", summary)
        self.assertIn("15 minutes", summary)
        self.assertIn("sample set", summary)


if __name__ == '__main__':
    unittest.main()
