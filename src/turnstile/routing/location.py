"""RouteLocation — an immutable client-side route address.

Locations are plain values: they compare by path, query, and name,
and never touch browser history. ``full_path`` is what guards record
when they ask a login page to send the user back afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from urllib.parse import parse_qsl, urlencode, urlsplit


@dataclass(frozen=True, slots=True)
class RouteLocation:
    """A route address: path, query parameters, and an optional name.

    Usage::

        loc = RouteLocation.parse("/dashboard?tab=billing")
        loc.path       # "/dashboard"
        loc.query      # {"tab": "billing"}
        loc.full_path  # "/dashboard?tab=billing"
    """

    path: str = "/"
    query: dict[str, str] = field(default_factory=dict)
    name: str | None = None

    @classmethod
    def parse(cls, value: str, *, name: str | None = None) -> RouteLocation:
        """Parse ``"/path?key=value"`` into a location.

        Scheme and host are ignored; a missing path becomes ``"/"``.
        Repeated query keys keep the last value.
        """
        parts = urlsplit(value)
        path = parts.path or "/"
        if not path.startswith("/"):
            path = f"/{path}"
        query = dict(parse_qsl(parts.query, keep_blank_values=True))
        return cls(path=path, query=query, name=name)

    @classmethod
    def coerce(cls, value: str | RouteLocation) -> RouteLocation:
        """Return *value* unchanged if it is a location, else parse it."""
        if isinstance(value, RouteLocation):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        msg = f"Expected a path string or RouteLocation, got {type(value).__name__}."
        raise TypeError(msg)

    @property
    def full_path(self) -> str:
        """Path plus encoded query string (slashes left readable)."""
        if not self.query:
            return self.path
        return f"{self.path}?{urlencode(self.query, safe='/')}"

    def with_query(self, **params: str) -> RouteLocation:
        """Return a copy with *params* merged into the query."""
        return replace(self, query={**self.query, **params})

    def __str__(self) -> str:
        return self.full_path


ROOT = RouteLocation()
"""The location a dispatcher starts on before its first navigation."""
