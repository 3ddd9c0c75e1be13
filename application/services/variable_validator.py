from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from application.outcome import CycleDetected
from application.services.variable_resolver import VariableResolver, has_placeholders
from domain.exceptions import CyclicReferenceError, ValidationError


@dataclass(frozen=True)
class VariableIssue:
    variable: str
    message: str


@dataclass(frozen=True)
class VariableValidationResult:
    valid: bool
    errors: List[VariableIssue] = field(default_factory=list)


@dataclass(frozen=True)
class VariableValidator:
    """
    Checks a set of environment variables for cyclic references before
    they are saved.
    """
    resolver: VariableResolver = field(default_factory=VariableResolver)

    def validate_variables(self, variables: Mapping[str, Any]) -> VariableValidationResult:
        errors: List[VariableIssue] = []
        for key, value in variables.items():
            if not isinstance(value, str) or not has_placeholders(value):
                continue
            outcome = self.resolver.try_resolve("{{" + key + "}}", variables)
            if isinstance(outcome, CycleDetected):
                errors.append(
                    VariableIssue(variable=key, message=str(CyclicReferenceError(outcome.variable)))
                )
        return VariableValidationResult(valid=not errors, errors=errors)

    def ensure_valid(self, variables: Mapping[str, Any]) -> None:
        result = self.validate_variables(variables)
        if not result.valid:
            raise ValidationError(format_validation_errors(result))


def validate_variables(
    variables: Mapping[str, Any],
    resolver: Optional[VariableResolver] = None,
) -> VariableValidationResult:
    validator = VariableValidator(resolver) if resolver is not None else VariableValidator()
    return validator.validate_variables(variables)


def format_validation_errors(result: VariableValidationResult) -> str:
    if result.valid:
        return ""
    names = [issue.variable for issue in result.errors]
    if len(names) == 1:
        return f'Variable "{names[0]}" references itself.'
    lines = "\n".join(f"  • {name}" for name in names)
    return f"Cyclic reference detected:\n{lines}"
