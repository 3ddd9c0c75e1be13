# tests/domain/test_scope.py
from domain.scope import VariableScope


class TestVariableScope:
    def test_empty_scope(self):
        scope = VariableScope()
        assert len(scope) == 0
        assert "x" not in scope

    def test_extend_returns_new_scope(self):
        base = VariableScope({"a": 1})
        extended = base.extend({"b": 2})
        assert extended is not base
        assert dict(extended) == {"a": 1, "b": 2}
        assert dict(base) == {"a": 1}

    def test_extend_overrides_existing_key(self):
        scope = VariableScope({"userId": 1}).extend({"userId": 42})
        assert scope["userId"] == 42

    def test_extend_with_nothing_returns_same_scope(self):
        scope = VariableScope({"a": 1})
        assert scope.extend({}) is scope
        assert scope.extend(None) is scope

    def test_source_mapping_is_copied(self):
        source = {"a": 1}
        scope = VariableScope(source)
        source["a"] = 2
        assert scope["a"] == 1

    def test_to_dict(self):
        assert VariableScope({"a": 1}).to_dict() == {"a": 1}
