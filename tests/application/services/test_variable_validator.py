# tests/application/services/test_variable_validator.py
import pytest
from application.services.variable_validator import (
    VariableValidator,
    format_validation_errors,
    validate_variables,
)
from domain.exceptions import ValidationError


class TestVariableValidator:
    def test_valid_variables(self):
        result = validate_variables({"host": "api", "url": "https://{{host}}", "port": 443})
        assert result.valid is True
        assert result.errors == []

    def test_two_variable_cycle_reports_both(self):
        result = validate_variables({"a": "{{b}}", "b": "{{a}}"})
        assert result.valid is False
        assert [e.variable for e in result.errors] == ["a", "b"]

    def test_self_reference(self):
        result = validate_variables({"x": "{{x}}"})
        assert result.valid is False
        assert result.errors[0].message == "Cyclic variable reference detected: x"

    def test_reference_to_unknown_variable_is_valid(self):
        assert validate_variables({"a": "{{undefinedThing}}"}).valid is True

    def test_ensure_valid_raises(self):
        with pytest.raises(ValidationError) as excinfo:
            VariableValidator().ensure_valid({"x": "{{x}}"})
        assert 'Variable "x" references itself.' in str(excinfo.value)


class TestFormatValidationErrors:
    def test_valid_is_empty(self):
        assert format_validation_errors(validate_variables({})) == ""

    def test_single_offender(self):
        assert format_validation_errors(validate_variables({"x": "{{x}}"})) == 'Variable "x" references itself.'

    def test_many_offenders(self):
        message = format_validation_errors(validate_variables({"a": "{{b}}", "b": "{{a}}"}))
        assert message == "Cyclic reference detected:\n  • a\n  • b"
