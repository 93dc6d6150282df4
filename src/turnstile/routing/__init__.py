"""Routing — route locations and the guard binding table.

Bindings are registered during setup; the table resolves a destination
path to the ordered guards that protect it.
"""

from turnstile.routing.binding import BindingMatch, GuardBinding
from turnstile.routing.location import ROOT, RouteLocation
from turnstile.routing.table import BindingTable

__all__ = [
    "ROOT",
    "BindingMatch",
    "BindingTable",
    "GuardBinding",
    "RouteLocation",
]
