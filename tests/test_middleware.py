from __future__ import annotations

from junction.middleware import MiddlewareSet


def a(request) -> bool:
    return True


def b(request) -> bool:
    return True


def h(request) -> bool:
    return True


def test_snapshot_and_combine_prepends_middleware() -> None:
    middleware = MiddlewareSet()
    middleware.use(a, b)

    assert middleware.snapshot_and_combine([h]) == (a, b, h)
    assert middleware.snapshot_and_combine([]) == (a, b)


def test_snapshot_is_not_affected_by_later_mutation() -> None:
    middleware = MiddlewareSet([a])
    chain = middleware.snapshot_and_combine([h])

    middleware.use(b)
    middleware.remove(a)

    assert chain == (a, h)
    assert middleware.snapshot() == (b,)


def test_remove_deletes_every_occurrence() -> None:
    middleware = MiddlewareSet([a, b, a])
    middleware.remove(a)

    assert list(middleware) == [b]
    assert len(middleware) == 1


def test_remove_unknown_handler_is_a_noop() -> None:
    middleware = MiddlewareSet([a])
    middleware.remove(b)

    assert middleware.snapshot() == (a,)


def test_remove_compares_by_identity_not_equality() -> None:
    class AlwaysEqual:
        def __call__(self, request) -> bool:
            return True

        def __eq__(self, other: object) -> bool:
            return True

        __hash__ = object.__hash__

    first, second = AlwaysEqual(), AlwaysEqual()
    middleware = MiddlewareSet([first, second])
    middleware.remove(second)

    assert middleware.snapshot() == (first,)
    assert middleware.snapshot()[0] is first


def test_bound_methods_can_be_removed() -> None:
    class Guard:
        def check(self, request) -> bool:
            return True

    guard, other = Guard(), Guard()
    middleware = MiddlewareSet()
    middleware.use(guard.check, other.check)

    assert guard.check in middleware
    middleware.remove(guard.check)

    assert guard.check not in middleware
    assert other.check in middleware
