from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, overload

from tallytest.assertions.evaluator import Checks

TestBody = Callable[[Checks], None]


@dataclass(frozen=True)
class TestCase:
    """A named test body.

    Calling a test case runs its body once with a fresh :class:`Checks` and
    returns the number of failed assertions (0 means the test passed).
    Exceptions raised by the body are not caught.
    """

    __test__ = False

    name: str
    body: TestBody

    @property
    def module(self) -> str:
        return getattr(self.body, "__module__", "")

    def __call__(self) -> int:
        checks = Checks(self.name)
        self.body(checks)
        return checks.failed


class Registry:
    """Ordered collection of test cases, in registration order."""

    def __init__(self) -> None:
        self._cases: list[TestCase] = []

    def add(self, case: TestCase) -> TestCase:
        if any(c.name == case.name for c in self._cases):
            raise ValueError(f"Test '{case.name}' is already registered")
        self._cases.append(case)
        return case

    @overload
    def test(self, body: TestBody) -> TestCase: ...

    @overload
    def test(
        self, body: None = None, *, name: str | None = None
    ) -> Callable[[TestBody], TestCase]: ...

    def test(self, body=None, *, name=None):
        """Decorator registering ``body`` as a test case.

        Usable bare (``@test``) or with an explicit name (``@test(name="x")``).
        The decorated name is bound to the resulting :class:`TestCase`.
        """

        def register(fn: TestBody) -> TestCase:
            return self.add(TestCase(name=name or fn.__name__, body=fn))

        if body is not None:
            return register(body)
        return register

    def clear(self) -> None:
        self._cases.clear()

    def __iter__(self) -> Iterator[TestCase]:
        return iter(self._cases)

    def __len__(self) -> int:
        return len(self._cases)


_default_registry = Registry()


def default_registry() -> Registry:
    """Return the process-wide registry that :func:`test` registers into."""
    return _default_registry


test = _default_registry.test
