# application/services/base_url_resolver.py
from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urljoin


@dataclass(frozen=True)
class BaseUrlResolver:
    """
    Relative-to-absolute resolution, as a browser would do it:
      ("http://h/api/", "users")  -> http://h/api/users
      ("http://h/api", "/users")  -> http://h/users
      (anything, "https://x/y")   -> https://x/y
    """
    base_url: str

    def resolve_url(self, url: str) -> str:
        if not self.base_url:
            return url
        return urljoin(self.base_url, url)
