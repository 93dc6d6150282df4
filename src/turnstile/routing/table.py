"""Binding table with trie-based pattern matching.

Maps a destination path to the ``GuardBinding`` that protects it.
Matching precedence per segment: static, then parameter, then
catch-all (``{rest:path}``). A path with no binding resolves to
``None``, which the dispatcher treats as an empty guard list.
"""

import re
from dataclasses import dataclass

from turnstile.errors import ConfigurationError
from turnstile.routing.binding import BindingMatch, GuardBinding, PathSegment
from turnstile.routing.params import CONVERTERS


def parse_pattern(pattern: str) -> list[PathSegment]:
    """Parse a binding pattern string into segments.

    Examples::

        "/users"             -> [PathSegment("users")]
        "/users/{id}"        -> [PathSegment("users"), PathSegment("{id}", is_param=True, ...)]
        "/users/{id:int}"    -> [..., PathSegment("{id:int}", is_param=True, param_type="int")]
        "/files/{rest:path}" -> [..., PathSegment("{rest:path}", is_param=True, param_type="path")]

    Raises ``ConfigurationError`` for an unknown converter or a
    catch-all segment that is not last.
    """
    segments: list[PathSegment] = []
    parts = [part for part in pattern.strip("/").split("/") if part]
    for index, part in enumerate(parts):
        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            if ":" in inner:
                param_name, param_type = inner.split(":", 1)
            else:
                param_name = inner
                param_type = "str"
            if param_type not in CONVERTERS:
                msg = f"Unknown converter {param_type!r} in pattern {pattern!r}."
                raise ConfigurationError(msg)
            if param_type == "path" and index != len(parts) - 1:
                msg = f"Catch-all segment {part!r} must be last in pattern {pattern!r}."
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=param_name,
                    param_type=param_type,
                )
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


class _TrieNode:
    """A node in the binding trie."""

    __slots__ = ("binding", "catch_all", "children", "param_child")

    def __init__(self) -> None:
        # Static segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child (only one param pattern per level)
        self.param_child: _ParamEdge | None = None
        # Catch-all binding (path converter)
        self.catch_all: _CatchAllEdge | None = None
        # Binding terminating at this node
        self.binding: GuardBinding | None = None


@dataclass(slots=True)
class _ParamEdge:
    """A parameter edge in the trie."""

    param_name: str
    param_type: str
    regex: re.Pattern[str]
    node: _TrieNode


@dataclass(slots=True)
class _CatchAllEdge:
    """A catch-all (path) edge — consumes the remaining path."""

    param_name: str
    binding: GuardBinding


class BindingTable:
    """Pattern → guard binding lookup.

    Usage::

        table = BindingTable()
        table.add(GuardBinding("/dashboard", (auth(),)))
        table.add(GuardBinding("/admin/{section}", (auth(), role("admin"))))
        match = table.resolve("/admin/users")
        match.binding.guards  # (auth, role)
    """

    __slots__ = ("_bindings", "_root")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._bindings: list[GuardBinding] = []

    def __len__(self) -> int:
        return len(self._bindings)

    @property
    def bindings(self) -> list[GuardBinding]:
        """All registered bindings, in registration order."""
        return list(self._bindings)

    def add(self, binding: GuardBinding) -> None:
        """Register *binding*. Raises ``ConfigurationError`` on conflict."""
        segments = parse_pattern(binding.pattern)
        node = self._root

        for seg in segments:
            if seg.is_param and seg.param_type == "path":
                if node.catch_all is not None:
                    self._conflict(binding, node.catch_all.binding)
                node.catch_all = _CatchAllEdge(
                    param_name=seg.param_name or "path",
                    binding=binding,
                )
                self._bindings.append(binding)
                return

            if seg.is_param:
                if node.param_child is None:
                    pattern, _ = CONVERTERS[seg.param_type]
                    node.param_child = _ParamEdge(
                        param_name=seg.param_name or "",
                        param_type=seg.param_type,
                        regex=re.compile(f"^{pattern}$"),
                        node=_TrieNode(),
                    )
                elif (
                    node.param_child.param_name != seg.param_name
                    or node.param_child.param_type != seg.param_type
                ):
                    msg = (
                        f"Pattern {binding.pattern!r} declares {seg.value!r} where "
                        f"another binding declares "
                        f"{{{node.param_child.param_name}:{node.param_child.param_type}}}."
                    )
                    raise ConfigurationError(msg)
                node = node.param_child.node
            else:
                if seg.value not in node.children:
                    node.children[seg.value] = _TrieNode()
                node = node.children[seg.value]

        if node.binding is not None:
            self._conflict(binding, node.binding)
        node.binding = binding
        self._bindings.append(binding)

    def _conflict(self, new: GuardBinding, existing: GuardBinding) -> None:
        msg = (
            f"Pattern {new.pattern!r} conflicts with already bound "
            f"pattern {existing.pattern!r}."
        )
        raise ConfigurationError(msg)

    def resolve(self, path: str) -> BindingMatch | None:
        """Return the binding for *path*, or ``None`` if nothing matches."""
        parts = [p for p in path.strip("/").split("/") if p]
        return self._match_node(self._root, parts, 0, {})

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> BindingMatch | None:
        """Recursively match path parts against the trie."""
        if index == len(parts):
            if node.binding is not None:
                return BindingMatch(binding=node.binding, path_params=params)
            return None

        part = parts[index]

        # 1. Static child first (exact match)
        if part in node.children:
            result = self._match_node(node.children[part], parts, index + 1, params)
            if result is not None:
                return result

        # 2. Parameter child
        if node.param_child is not None:
            edge = node.param_child
            if edge.regex.match(part):
                new_params = {**params, edge.param_name: part}
                result = self._match_node(edge.node, parts, index + 1, new_params)
                if result is not None:
                    return result

        # 3. Catch-all
        if node.catch_all is not None:
            remaining = "/".join(parts[index:])
            new_params = {**params, node.catch_all.param_name: remaining}
            return BindingMatch(binding=node.catch_all.binding, path_params=new_params)

        return None
