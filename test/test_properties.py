"""Behavioral laws that hold across schemas and instances."""

import os
import sys
import unittest

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

import schemacheck
from schemacheck.errors import CyclicReference
from schemacheck.validator import Validator, validate_instance

SCHEMAS = [
    True,
    False,
    {},
    {"type": "string"},
    {"type": ["integer", "null"]},
    {"minimum": 3, "exclusiveMaximum": 10},
    {"multipleOf": 0.5},
    {"pattern": "^a"},
    {"format": "ipv4"},
    {"required": ["a"], "properties": {"a": {"type": "boolean"}}},
    {"additionalProperties": False, "properties": {"a": {}}},
    {"items": {"type": "number"}, "minItems": 1},
    {"items": [{"const": 1}], "additionalItems": False},
    {"contains": {"const": "x"}},
    {"uniqueItems": True},
    {"anyOf": [{"type": "string"}, {"minimum": 5}]},
    {"oneOf": [{"type": "number"}, {"type": "integer"}]},
    {"not": {"type": "object"}},
    {"if": {"type": "string"}, "then": {"minLength": 2}, "else": {"type": "number"}},
    {"dependencies": {"a": ["b"], "c": {"required": ["d"]}}},
]

INSTANCES = [
    None, True, False, 0, 1, 2.5, 3, 7, 12, -4, "", "a", "abc", "10.0.0.1",
    [], [1], [1, 1], [1, 2], ["x"], [1, "x"], {}, {"a": True}, {"a": 1}, {"b": 1},
    {"a": True, "b": 2}, {"c": 1}, {"c": 1, "d": 2},
]


class TestLaws(unittest.TestCase):
    """Test laws relating schemas to each other."""

    def test_not_inverts(self):
        for schema in SCHEMAS:
            for instance in INSTANCES:
                with self.subTest(schema=schema, instance=instance):
                    self.assertNotEqual(validate_instance(instance, schema).is_valid,
                                        validate_instance(instance, {"not": schema}).is_valid)

    def test_single_all_of_is_identity(self):
        for schema in SCHEMAS:
            for instance in INSTANCES:
                with self.subTest(schema=schema, instance=instance):
                    self.assertEqual(validate_instance(instance, schema).is_valid,
                                     validate_instance(instance, {"allOf": [schema]}).is_valid)

    def test_single_enum_is_const(self):
        for value in INSTANCES:
            for instance in INSTANCES:
                with self.subTest(value=value, instance=instance):
                    self.assertEqual(validate_instance(instance, {"enum": [value]}).is_valid,
                                     validate_instance(instance, {"const": value}).is_valid)

    def test_idempotence(self):
        for schema in SCHEMAS:
            validator = Validator(schema)
            for instance in INSTANCES:
                with self.subTest(schema=schema, instance=instance):
                    self.assertEqual(validator.validate(instance).to_dict(),
                                     validator.validate(instance).to_dict())

    def test_failures_do_not_short_circuit(self):
        schema = {"type": "string", "minLength": 5, "pattern": "^x", "format": "email"}
        result = validate_instance("abc", schema)
        self.assertEqual([f.keyword for f in result.failures], ['minLength', 'pattern', 'format'])

    def test_cycle_is_deterministic(self):
        schema = {"definitions": {"loop": {"$ref": "#/definitions/loop"}}, "$ref": "#/definitions/loop"}
        for _ in range(3):
            result = validate_instance([1, 2], schema)
            self.assertFalse(result.is_valid)
            self.assertIsInstance(result.schema_errors[0], CyclicReference)


class TestPackageApi(unittest.TestCase):
    """Test the lazily loaded package API."""

    def test_public_names(self):
        self.assertIs(schemacheck.Validator, Validator)
        self.assertTrue(schemacheck.validate_instance("x", {"type": "string"}).is_valid)
        self.assertTrue(issubclass(schemacheck.InvalidPointer, schemacheck.UnresolvableReference))
        self.assertTrue(issubclass(schemacheck.MalformedJSON, schemacheck.SchemaError))


if __name__ == '__main__':
    unittest.main()
