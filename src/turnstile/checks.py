"""Binding checks — static validation of guard bindings.

Catches ordering mistakes before any navigation runs:

- ``role()`` bound without an earlier ``auth()`` (anonymous users would
  be treated as "role-less" instead of "unauthenticated"),
- the same guard object listed twice in one chain,
- a binding entry that is not callable.

Usage::

    result = check_bindings(dispatcher.table)
    for issue in result.issues:
        print(f"{issue.severity.value}: {issue.message}")

    # Or let the dispatcher raise on errors:
    dispatcher.check()
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from turnstile.guards.builtin import AuthGuard, RoleGuard
from turnstile.guards.protocol import guard_label
from turnstile.routing.table import BindingTable

# ---------------------------------------------------------------------------
# Issue types
# ---------------------------------------------------------------------------


class Severity(Enum):
    """Severity of a binding check issue."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True, slots=True)
class CheckIssue:
    """A single problem found in one binding."""

    severity: Severity
    category: str
    message: str
    pattern: str | None = None


@dataclass(slots=True)
class CheckResult:
    """Result of checking a binding table."""

    issues: list[CheckIssue] = field(default_factory=list)
    bindings_checked: int = 0

    @property
    def errors(self) -> list[CheckIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[CheckIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [f"Checked {self.bindings_checked} binding(s)."]
        if self.ok and not self.warnings:
            lines.append("No issues found.")
        elif self.ok:
            lines.append(f"No errors. {len(self.warnings)} warning(s).")
        else:
            lines.append(f"{len(self.errors)} error(s), {len(self.warnings)} warning(s).")
        for issue in self.issues:
            prefix = issue.severity.value.upper()
            where = f" in {issue.pattern}" if issue.pattern else ""
            lines.append(f"  [{prefix}] {issue.message}{where}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def _check_chain(pattern: str, chain: Sequence[Any]) -> list[CheckIssue]:
    issues: list[CheckIssue] = []
    seen: set[int] = set()
    auth_seen = False

    for position, guard in enumerate(chain):
        if not callable(guard):
            issues.append(
                CheckIssue(
                    severity=Severity.ERROR,
                    category="not_callable",
                    message=f"Guard at position {position} is not callable: {guard!r}",
                    pattern=pattern,
                )
            )
            continue

        if id(guard) in seen:
            issues.append(
                CheckIssue(
                    severity=Severity.WARNING,
                    category="duplicate_guard",
                    message=f"Guard {guard_label(guard)} appears more than once",
                    pattern=pattern,
                )
            )
        seen.add(id(guard))

        if isinstance(guard, AuthGuard):
            auth_seen = True
        elif isinstance(guard, RoleGuard) and not auth_seen:
            issues.append(
                CheckIssue(
                    severity=Severity.ERROR,
                    category="role_before_auth",
                    message=(
                        f"{guard!r} runs before auth(); anonymous users will be "
                        f"sent to {guard.forbidden.full_path} instead of the login page"
                    ),
                    pattern=pattern,
                )
            )
    return issues


def check_bindings(table: BindingTable, *, global_guards: Sequence[Any] = ()) -> CheckResult:
    """Check every binding in *table*.

    *global_guards* are prepended to each chain, matching how the
    dispatcher composes ``before_each`` guards.
    """
    result = CheckResult()
    for binding in table.bindings:
        chain = [*global_guards, *binding.guards]
        result.issues.extend(_check_chain(binding.pattern, chain))
        result.bindings_checked += 1
    return result
