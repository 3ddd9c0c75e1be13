# tests/application/services/test_dynamic_variables.py
import random
import re
import uuid

from application.services.dynamic_variables import DynamicVariableGenerator, FIRST_NAMES


def _generator() -> DynamicVariableGenerator:
    return DynamicVariableGenerator(rng=random.Random(42), clock=lambda: 1700000000.5)


class TestDynamicVariableGenerator:
    def test_timestamps(self):
        gen = _generator()
        assert gen.generate("$timestamp") == "1700000000"
        assert gen.generate("$timestampMs") == "1700000000500"
        assert gen.generate("$isoTimestamp") == "2023-11-14T22:13:20.500Z"

    def test_uuid_is_valid(self):
        value = _generator().generate("$uuid")
        assert str(uuid.UUID(value)) == value

    def test_name_without_dollar(self):
        assert _generator().generate("timestamp") == "1700000000"

    def test_unknown_returns_none(self):
        assert _generator().generate("$nothing") is None
        assert _generator().is_builtin("$nothing") is False

    def test_random_values_have_expected_shape(self):
        gen = _generator()
        assert 0 <= int(gen.generate("$randomInt")) <= 1000
        assert re.fullmatch(r"[A-Za-z0-9]{10}", gen.generate("$randomString"))
        assert re.fullmatch(r"[a-z0-9]{8}@[a-z]+\.com", gen.generate("$randomEmail"))
        assert re.fullmatch(r"\+1-\d{3}-\d{3}-\d{4}", gen.generate("$randomPhoneNumber"))
        assert re.fullmatch(r"#[0-9a-f]{6}", gen.generate("$randomColor"))
        assert gen.generate("$randomBoolean") in ("true", "false")
        assert gen.generate("$randomFirstName") in FIRST_NAMES

    def test_each_reference_is_fresh(self):
        gen = DynamicVariableGenerator()
        assert gen.generate("$uuid") != gen.generate("$uuid")
