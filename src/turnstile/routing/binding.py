"""GuardBinding and BindingMatch frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a binding pattern.

    Static:  ``/users``  (is_param=False)
    Param:   ``/{id}``   (is_param=True, param_name="id")
    Typed:   ``/{id:int}`` (is_param=True, param_name="id", param_type="int")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class GuardBinding:
    """An ordered list of guards attached to a route pattern.

    Owned by router configuration. Order is significant: guards run
    exactly as listed.
    """

    pattern: str
    guards: tuple[Callable[..., Any], ...] = ()
    name: str | None = None


@dataclass(frozen=True, slots=True)
class BindingMatch:
    """Result of resolving a path against the binding table."""

    binding: GuardBinding
    path_params: dict[str, str]
