"""Tests for the validate and check commands."""

import json
import os
import sys
import tempfile
import unittest
from unittest.mock import patch

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from schemacheck.errors import InvalidSchema, UnresolvableReference
from schemacheck.validate import (EXIT_INVALID, EXIT_SCHEMA_ERROR, build_validator, check, validate,
                                  validate_file, validate_json_instances, write_report)


def get_schema(name):
    """Provides a schema file path."""
    return os.path.join(os.path.dirname(__file__), 'schemas', name)


def get_instance(name):
    """Provides an instance file path."""
    return os.path.join(os.path.dirname(__file__), 'instances', name)


class TestBuildValidator(unittest.TestCase):
    """Test loading a schema with its references."""

    def test_relative_reference_is_loaded(self):
        validator = build_validator(get_schema('person.json'))
        self.assertEqual(len(validator.cache), 2)
        self.assertTrue(validator.is_valid({"username": "AUser", "password": "12345678"}))
        self.assertFalse(validator.is_valid({"username": "1User", "password": "12345678"}))

    def test_yaml_schema(self):
        validator = build_validator(get_schema('sandwich.yaml'))
        self.assertTrue(validator.is_valid(["Cheese", "Rye", "Toasted"]))
        self.assertFalse(validator.is_valid(["Cheese", "Rye", "Toasted", "Extra"]))

    def test_invalid_schema(self):
        with self.assertRaises(InvalidSchema) as cm:
            build_validator(get_schema('invalid_minlength.json'))
        self.assertEqual(cm.exception.path, '#/minLength')

    def test_missing_referenced_document(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            schema_path = os.path.join(temp_dir, 'schema.json')
            with open(schema_path, 'w', encoding='utf-8') as f:
                json.dump({"$ref": "missing.json"}, f)
            with self.assertRaises(UnresolvableReference):
                build_validator(schema_path)

    def test_ref_files(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            common_path = os.path.join(temp_dir, 'common.json')
            with open(common_path, 'w', encoding='utf-8') as f:
                json.dump({"$id": "urn:example:common", "definitions": {"id": {"type": "integer"}}}, f)
            schema_path = os.path.join(temp_dir, 'schema.json')
            with open(schema_path, 'w', encoding='utf-8') as f:
                json.dump({"properties": {"id": {"$ref": "urn:example:common#/definitions/id"}}}, f)
            validator = build_validator(schema_path, [common_path])
            self.assertTrue(validator.is_valid({"id": 1}))
            self.assertFalse(validator.is_valid({"id": "one"}))


class TestValidateFile(unittest.TestCase):
    """Test file-based validation."""

    def setUp(self):
        self.validator = build_validator(get_schema('person.json'))

    def test_single_instance(self):
        results = validate_file(get_instance('person_valid.json'), self.validator)
        self.assertEqual(len(results), 1)
        self.assertTrue(results[0].is_valid)
        self.assertEqual(results[0].instance_path, get_instance('person_valid.json'))

    def test_required_and_additional(self):
        results = validate_file(get_instance('person_invalid.json'), self.validator)
        self.assertFalse(results[0].is_valid)
        keywords = sorted(f.keyword for f in results[0].failures)
        self.assertEqual(keywords, ['additionalProperties', 'required'])

    def test_jsonl(self):
        results = validate_file(get_instance('people.jsonl'), self.validator)
        self.assertEqual([r.is_valid for r in results], [True, False, False])
        self.assertTrue(results[1].instance_path.endswith('people.jsonl:2'))

    def test_array_schema_takes_whole_file(self):
        validator = build_validator(get_schema('sandwich.yaml'))
        results = validate_file(get_instance('sandwich.json'), validator)
        self.assertEqual(len(results), 1)
        self.assertTrue(results[0].is_valid)

    def test_array_of_instances(self):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump([{"username": "a", "password": "12345678"}, {"username": "b"}], f)
            instance_path = f.name
        try:
            results, valid_count, invalid_count = validate_json_instances([instance_path], self.validator)
            self.assertEqual(len(results), 2)
            self.assertEqual((valid_count, invalid_count), (1, 1))
        finally:
            os.unlink(instance_path)

    def test_write_report(self):
        results = validate_file(get_instance('person_invalid.json'), self.validator)
        with tempfile.TemporaryDirectory() as temp_dir:
            out = os.path.join(temp_dir, 'report.json')
            write_report(results, out)
            with open(out, 'r', encoding='utf-8') as f:
                report = json.load(f)
        self.assertFalse(report['valid'])
        self.assertEqual(report['results'][0]['failures'][0]['location'], '')


class TestValidateCommand(unittest.TestCase):
    """Test the validate command entry point."""

    @patch('builtins.print')
    def test_valid(self, mock_print):
        validate([get_instance('person_valid.json')], get_schema('person.json'))
        printed = ' '.join(str(call.args[0]) for call in mock_print.call_args_list if call.args)
        self.assertIn("1/1 instances valid", printed)

    @patch('builtins.print')
    def test_invalid(self, mock_print):
        with self.assertRaises(SystemExit) as cm:
            validate([get_instance('person_valid.json'), get_instance('people.jsonl')],
                     get_schema('person.json'), quiet=True)
        self.assertEqual(cm.exception.code, EXIT_INVALID)
        mock_print.assert_not_called()

    @patch('builtins.print')
    def test_schema_error_at_load(self, mock_print):
        with self.assertRaises(SystemExit) as cm:
            validate([get_instance('person_valid.json')], get_schema('invalid_minlength.json'))
        self.assertEqual(cm.exception.code, EXIT_SCHEMA_ERROR)

    @patch('builtins.print')
    def test_unresolvable_pointer(self, mock_print):
        with self.assertRaises(SystemExit) as cm:
            validate([get_instance('id.json')], get_schema('broken_ref.json'))
        self.assertEqual(cm.exception.code, EXIT_SCHEMA_ERROR)

    @patch('builtins.print')
    def test_missing_instance_file(self, mock_print):
        with self.assertRaises(SystemExit) as cm:
            validate([get_instance('does_not_exist.json')], get_schema('person.json'))
        self.assertEqual(cm.exception.code, EXIT_SCHEMA_ERROR)
        printed = ' '.join(str(call.args[0]) for call in mock_print.call_args_list if call.args)
        self.assertIn("Instance error (UnresolvableReference)", printed)

    @patch('builtins.print')
    def test_malformed_instance_file(self, mock_print):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            f.write('{"username": "a", "password": }')
            instance_path = f.name
        try:
            with self.assertRaises(SystemExit) as cm:
                validate([instance_path], get_schema('person.json'), quiet=True)
            self.assertEqual(cm.exception.code, EXIT_SCHEMA_ERROR)
            mock_print.assert_called_once()
            self.assertIn("MalformedJSON", mock_print.call_args.args[0])
        finally:
            os.unlink(instance_path)

    @patch('builtins.print')
    def test_no_format_assertion(self, mock_print):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump({"username": "a", "password": "12345678", "email": "nope"}, f)
            instance_path = f.name
        try:
            with self.assertRaises(SystemExit):
                validate([instance_path], get_schema('person.json'))
            validate([instance_path], get_schema('person.json'), no_format_assertion=True)
        finally:
            os.unlink(instance_path)

    @patch('builtins.print')
    def test_report_written(self, mock_print):
        with tempfile.TemporaryDirectory() as temp_dir:
            out = os.path.join(temp_dir, 'report.json')
            validate([get_instance('person_valid.json')], get_schema('person.json'), out=out)
            with open(out, 'r', encoding='utf-8') as f:
                report = json.load(f)
        self.assertTrue(report['valid'])
        annotations = report['results'][0]['annotations']
        self.assertIn({"location": "", "keyword": "title", "value": "Person"}, annotations)


class TestCheckCommand(unittest.TestCase):
    """Test the check command entry point."""

    @patch('builtins.print')
    def test_good_schemas(self, mock_print):
        check([get_schema('person.json'), get_schema('sandwich.yaml')])
        mock_print.assert_any_call(f"✓ {get_schema('person.json')}")

    @patch('builtins.print')
    def test_bad_schema(self, mock_print):
        with self.assertRaises(SystemExit) as cm:
            check([get_schema('person.json'), get_schema('invalid_minlength.json')])
        self.assertEqual(cm.exception.code, EXIT_SCHEMA_ERROR)


if __name__ == '__main__':
    unittest.main()
