# tests/application/services/test_base_url_resolver.py
from application.services.base_url_resolver import BaseUrlResolver


class TestBaseUrlResolver:
    def test_relative_path_joins_base(self):
        assert BaseUrlResolver("http://h:3000").resolve_url("/users") == "http://h:3000/users"

    def test_base_with_trailing_slash_keeps_prefix(self):
        assert BaseUrlResolver("http://h/api/").resolve_url("users") == "http://h/api/users"

    def test_absolute_path_replaces_base_path(self):
        assert BaseUrlResolver("http://h/api").resolve_url("/users") == "http://h/users"

    def test_absolute_url_wins(self):
        assert BaseUrlResolver("http://h").resolve_url("https://other/x") == "https://other/x"

    def test_empty_base(self):
        assert BaseUrlResolver("").resolve_url("/users") == "/users"
