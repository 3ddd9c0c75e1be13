from __future__ import annotations


class DomainError(Exception):
    pass


class ValidationError(DomainError):
    pass


class CyclicReferenceError(DomainError):
    def __init__(self, variable: str):
        super().__init__(f"Cyclic variable reference detected: {variable}")
        self.variable = variable


class JsonPathError(DomainError):
    pass
