from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from api.settings import AnalyzerSettings


class AnalyzerSettingsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = AnalyzerSettings.from_env()
        self.assertEqual(settings.health_log_heading, "Health log")
        self.assertTrue(settings.use_date_regex)
        self.assertEqual(settings.date_regex_pattern, r"\d{4}-\d{2}-\d{2}")
        self.assertEqual(settings.daily_note_tag, "#daily")
        self.assertEqual(settings.extractor, "heuristic")
        self.assertEqual(settings.llm_endpoint, "http://localhost:11434/api/generate")
        self.assertEqual(settings.llm_timeout_seconds, 60.0)
        self.assertEqual(settings.cache_backend, "file")

    def test_environment_overrides(self) -> None:
        env = {
            "HEALTH_LOG_HEADING": "Symptoms journal",
            "HEALTH_LOG_USE_DATE_REGEX": "0",
            "HEALTH_LOG_DAILY_TAG": "#journal",
            "HEALTH_LOG_EXTRACTOR": " LLM ",
            "HEALTH_LOG_LLM_MODEL": "mistral",
            "HEALTH_LOG_LLM_TIMEOUT_SECONDS": "12.5",
            "HEALTH_LOG_CACHE_BACKEND": "postgres",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = AnalyzerSettings.from_env()
        self.assertEqual(settings.health_log_heading, "Symptoms journal")
        self.assertFalse(settings.use_date_regex)
        self.assertEqual(settings.daily_note_tag, "#journal")
        self.assertEqual(settings.extractor, "llm")
        self.assertEqual(settings.llm_model, "mistral")
        self.assertEqual(settings.llm_timeout_seconds, 12.5)
        self.assertEqual(settings.cache_backend, "postgres")

    def test_invalid_values_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            AnalyzerSettings(extractor="regex")
        with self.assertRaises(ValueError):
            AnalyzerSettings(cache_backend="redis")
        with self.assertRaises(ValueError):
            AnalyzerSettings(health_log_heading="  ")


if __name__ == "__main__":
    unittest.main()
