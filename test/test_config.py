import os
import sys
import unittest
from unittest.mock import patch

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from schemacheck.config import ValidatorConfig


class TestValidatorConfig(unittest.TestCase):
    """Test configuration defaults and environment overrides."""

    def test_defaults(self):
        config = ValidatorConfig()
        self.assertTrue(config.assert_formats)
        self.assertTrue(config.collect_annotations)
        self.assertEqual(config.multiple_of_tolerance, 1e-9)

    @patch.dict(os.environ, {}, clear=True)
    def test_from_env_without_variables(self):
        self.assertEqual(ValidatorConfig.from_env(), ValidatorConfig())

    @patch.dict(os.environ, {
        "SCHEMACHECK_ASSERT_FORMATS": "off",
        "SCHEMACHECK_COLLECT_ANNOTATIONS": "False",
        "SCHEMACHECK_MULTIPLE_OF_TOLERANCE": "1e-6",
    }, clear=True)
    def test_from_env(self):
        config = ValidatorConfig.from_env()
        self.assertFalse(config.assert_formats)
        self.assertFalse(config.collect_annotations)
        self.assertEqual(config.multiple_of_tolerance, 1e-6)

    @patch.dict(os.environ, {"CHECK_ASSERT_FORMATS": "0"}, clear=True)
    def test_custom_prefix(self):
        self.assertFalse(ValidatorConfig.from_env(prefix="CHECK_").assert_formats)

    @patch.dict(os.environ, {"SCHEMACHECK_ASSERT_FORMATS": "maybe"}, clear=True)
    def test_bad_boolean(self):
        self.assertRaises(ValueError, ValidatorConfig.from_env)

    @patch.dict(os.environ, {"SCHEMACHECK_MULTIPLE_OF_TOLERANCE": "small"}, clear=True)
    def test_bad_tolerance(self):
        self.assertRaises(ValueError, ValidatorConfig.from_env)

    @patch.dict(os.environ, {"SCHEMACHECK_MULTIPLE_OF_TOLERANCE": "-1"}, clear=True)
    def test_negative_tolerance(self):
        self.assertRaises(ValueError, ValidatorConfig.from_env)

    def test_frozen(self):
        config = ValidatorConfig()
        with self.assertRaises(AttributeError):
            config.assert_formats = False


if __name__ == '__main__':
    unittest.main()
