from domain.steps.base import RequestTemplate, Step
from domain.steps.assertion import Assertion, AssertionKind, AssertionOperator
from domain.steps.extraction import ExtractionSource, ValueTransform, VariableExtraction

__all__ = [
    "RequestTemplate",
    "Step",
    "Assertion",
    "AssertionKind",
    "AssertionOperator",
    "ExtractionSource",
    "ValueTransform",
    "VariableExtraction",
]
