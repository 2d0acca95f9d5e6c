"""
Comprehensive tests for future combinators (combinators.py).

Tests:
- all_as_list: Ordered aggregation, fail on first failure
- successful_as_list: Aggregation with default values
- exceptionally_completed_future: Pre-failed futures
- is_completed / check_completed / get_completed / get_exception
- handle_compose / exceptionally_compose / dereference
- combine: Binary zip
- Uses randomized inputs
"""

import random
import string

import pytest

from futurekit import (
    Future,
    FutureCancelledError,
    FutureNotCompletedError,
    FutureNotFailedError,
    all_as_list,
    check_completed,
    combine,
    dereference,
    exceptionally_completed_future,
    exceptionally_compose,
    get_completed,
    get_exception,
    handle_compose,
    is_completed,
    successful_as_list,
)


# =============================================================================
# Test Fixtures and Helpers
# =============================================================================

def random_string(length: int = 10) -> str:
    """Generate a random string."""
    return ''.join(random.choices(string.ascii_letters, k=length))


def random_int(min_val: int = -1000, max_val: int = 1000) -> int:
    """Generate a random integer."""
    return random.randint(min_val, max_val)


# =============================================================================
# all_as_list Tests
# =============================================================================

class TestAllAsList:
    """Tests for all_as_list combinator."""

    def test_empty(self):
        """Empty input completes immediately with an empty list."""
        result = all_as_list([])
        assert result.is_ready()
        assert result.get() == []

    def test_one(self):
        value = random_string()
        assert all_as_list([Future.make_ready(value)]).get() == [value]

    def test_multiple(self):
        values = [random_int() for _ in range(5)]
        result = all_as_list([Future.make_ready(v) for v in values])
        assert result.get() == values

    def test_accepts_generator(self):
        values = [random_int() for _ in range(3)]
        result = all_as_list(Future.make_ready(v) for v in values)
        assert result.get() == values

    def test_order_independent_of_completion_order(self):
        """Results keep input positions whatever order inputs settle in."""
        values = [random_int() for _ in range(6)]
        futures = [Future() for _ in values]
        result = all_as_list(futures)

        order = list(range(len(futures)))
        random.shuffle(order)
        for i in order[:-1]:
            futures[i].set_result(values[i])
            assert not result.is_ready()
        futures[order[-1]].set_result(values[order[-1]])

        assert result.get() == values

    def test_duplicates(self):
        """The same future may appear several times."""
        f = Future()
        result = all_as_list([f, f, f])
        f.set_result("x")
        assert result.get() == ["x", "x", "x"]

    def test_exceptional(self):
        """Failure surfaces the failed input's exception object."""
        error = RuntimeError("boom")
        result = all_as_list([
            Future.make_ready("a"),
            exceptionally_completed_future(error),
            Future.make_ready("b"),
        ])
        assert result.failed()
        assert get_exception(result) is error

    def test_fails_before_others_settle(self):
        """Fails as soon as one input fails, without waiting for the rest."""
        pending = Future()
        failing = Future()
        error = ValueError("early")
        result = all_as_list([pending, failing])
        failing.set_exception(error)
        assert result.exception() is error
        assert not pending.is_ready()

    def test_multiple_failures(self):
        """With several failures the cause is one of the real causes."""
        errors = [ValueError("a"), KeyError("b"), OSError("c")]
        futures = [Future() for _ in errors]
        result = all_as_list(futures)
        for f, e in zip(futures, errors):
            f.set_exception(e)
        assert any(result.exception() is e for e in errors)

    def test_cancelled_input(self):
        f = Future()
        result = all_as_list([Future.make_ready(1), f])
        f.cancel()
        assert isinstance(result.exception(), FutureCancelledError)

    def test_none_element(self):
        """A None element fails fast at call time."""
        with pytest.raises(TypeError, match=r"futures\[1\]"):
            all_as_list([Future.make_ready(1), None])

    def test_none_list(self):
        with pytest.raises(TypeError):
            all_as_list(None)

    def test_non_future_element(self):
        with pytest.raises(TypeError):
            all_as_list([Future.make_ready(1), 2])

    def test_cancelling_result_leaves_inputs(self):
        """Cancelling the aggregate does not cancel its inputs."""
        inputs = [Future(), Future()]
        result = all_as_list(inputs)
        result.cancel()
        assert not any(f.is_ready() for f in inputs)


# =============================================================================
# successful_as_list Tests
# =============================================================================

class TestSuccessfulAsList:
    """Tests for successful_as_list combinator."""

    def test_empty(self):
        assert successful_as_list([], lambda e: None).get() == []

    def test_mixed(self):
        """Failed positions hold the mapper's value."""
        error = ValueError("bad")
        result = successful_as_list(
            [Future.make_ready("a"), Future.make_exception(error), Future.make_ready("c")],
            lambda e: f"default:{e}",
        )
        assert result.get() == ["a", "default:bad", "c"]

    def test_all_failed(self):
        futures = [Future.make_exception(RuntimeError(str(i))) for i in range(4)]
        result = successful_as_list(futures, lambda e: -1)
        assert result.get() == [-1, -1, -1, -1]

    def test_mapper_receives_cause(self):
        error = KeyError("k")
        seen = []
        successful_as_list([Future.make_exception(error)], lambda e: seen.append(e))
        assert seen == [error]

    def test_mapper_raises(self):
        """The result fails only when the mapper itself raises."""
        mapper_error = RuntimeError("mapper broke")

        def _mapper(_):
            raise mapper_error

        result = successful_as_list([Future.make_exception(ValueError())], _mapper)
        assert result.exception() is mapper_error

    def test_pending_inputs(self):
        a, b = Future(), Future()
        result = successful_as_list([a, b], lambda e: 0)
        b.set_exception(ValueError())
        assert not result.is_ready()
        a.set_result(9)
        assert result.get() == [9, 0]

    def test_mapper_required(self):
        with pytest.raises(TypeError):
            successful_as_list([Future.make_ready(1)], None)

    def test_none_element(self):
        with pytest.raises(TypeError):
            successful_as_list([None], lambda e: 0)


# =============================================================================
# Factory and accessor Tests
# =============================================================================

class TestExceptionallyCompletedFuture:
    """Tests for exceptionally_completed_future."""

    def test_is_failed_immediately(self):
        error = ValueError(random_string())
        f = exceptionally_completed_future(error)
        assert is_completed(f)
        assert f.failed()
        assert get_exception(f) is error

    def test_none(self):
        with pytest.raises(TypeError):
            exceptionally_completed_future(None)


class TestAccessors:
    """Tests for the synchronous accessors."""

    def test_is_completed(self):
        assert is_completed(Future.make_ready(1))
        assert is_completed(Future.make_exception(ValueError()))
        assert not is_completed(Future())

    def test_check_completed(self):
        check_completed(Future.make_ready(1))
        with pytest.raises(FutureNotCompletedError):
            check_completed(Future())

    def test_get_completed(self):
        value = random_int()
        assert get_completed(Future.make_ready(value)) == value

    def test_get_completed_pending(self):
        """Usage error, not a domain failure."""
        with pytest.raises(FutureNotCompletedError):
            get_completed(Future())

    def test_get_completed_failed(self):
        error = LookupError("nope")
        with pytest.raises(LookupError) as info:
            get_completed(Future.make_exception(error))
        assert info.value is error

    def test_get_exception(self):
        error = RuntimeError("x")
        assert get_exception(Future.make_exception(error)) is error

    def test_get_exception_pending(self):
        with pytest.raises(FutureNotFailedError):
            get_exception(Future())

    def test_get_exception_succeeded(self):
        with pytest.raises(FutureNotFailedError):
            get_exception(Future.make_ready(1))

    def test_get_exception_cancelled(self):
        """Cancellation is reported as such, not as an ordinary failure."""
        f = Future()
        f.cancel()
        with pytest.raises(FutureCancelledError):
            get_exception(f)

    def test_accessors_reject_none(self):
        for accessor in (is_completed, check_completed, get_completed, get_exception):
            with pytest.raises(TypeError):
                accessor(None)


# =============================================================================
# Composition Tests
# =============================================================================

class TestHandleCompose:
    """Tests for handle_compose."""

    def test_success(self):
        calls = []

        def _fn(value, error):
            calls.append((value, error))
            return Future.make_ready(value * 2)

        result = handle_compose(Future.make_ready(21), _fn)
        assert result.get() == 42
        assert calls == [(21, None)]

    def test_failure(self):
        error = ValueError("src")
        calls = []

        def _fn(value, e):
            calls.append((value, e))
            return Future.make_ready("recovered")

        result = handle_compose(Future.make_exception(error), _fn)
        assert result.get() == "recovered"
        assert calls == [(None, error)]

    def test_waits_for_inner(self):
        """The result stays pending until the returned future settles."""
        inner = Future()
        result = handle_compose(Future.make_ready(1), lambda v, e: inner)
        assert not result.is_ready()
        inner.set_result("inner")
        assert result.get() == "inner"

    def test_inner_failure(self):
        error = OSError("inner failed")
        result = handle_compose(Future.make_ready(1),
                                lambda v, e: Future.make_exception(error))
        assert result.exception() is error

    def test_fn_raises(self):
        error = RuntimeError("fn broke")

        def _fn(value, e):
            raise error

        result = handle_compose(Future.make_ready(1), _fn)
        assert result.exception() is error

    def test_called_once(self):
        source = Future()
        calls = []
        handle_compose(source, lambda v, e: calls.append(v) or Future.make_ready(v))
        source.set_result(1)
        source.set_result(2)
        assert calls == [1]


class TestExceptionallyCompose:
    """Tests for exceptionally_compose."""

    def test_success_passes_through(self):
        """On success the recovery function is never invoked."""
        called = []
        value = random_string()
        result = exceptionally_compose(Future.make_ready(value),
                                       lambda e: called.append(e) or Future.make_ready("x"))
        assert result.get() == value
        assert called == []

    def test_failure_recovers(self):
        error = ValueError("primary down")
        fallback = Future()
        result = exceptionally_compose(Future.make_exception(error), lambda e: fallback)
        assert not result.is_ready()
        fallback.set_result("from fallback")
        assert result.get() == "from fallback"

    def test_recovery_receives_cause(self):
        error = KeyError("k")
        seen = []
        exceptionally_compose(Future.make_exception(error),
                              lambda e: seen.append(e) or Future.make_ready(0))
        assert seen == [error]

    def test_recovery_fails(self):
        second = RuntimeError("fallback down too")
        result = exceptionally_compose(Future.make_exception(ValueError()),
                                       lambda e: Future.make_exception(second))
        assert result.exception() is second

    def test_ready_none_value(self):
        """A None value is a success, not a failure."""
        result = exceptionally_compose(Future.make_ready(None),
                                       lambda e: Future.make_ready("wrong"))
        assert result.get() is None

    def test_long_recovery_chain(self):
        """A thousand recoveries stacked on a pending source."""
        source = Future()
        result = source
        for _ in range(1000):
            result = exceptionally_compose(result, lambda e: Future.make_exception(e))
        error = LookupError("still missing")
        source.set_exception(error)
        assert result.exception() is error


class TestDereference:
    """Tests for dereference."""

    def test_success(self):
        assert dereference(Future.make_ready(Future.make_ready(5))).get() == 5

    def test_inner_fails_later(self):
        """Inner failure surfaces with the inner cause."""
        inner = Future()
        result = dereference(Future.make_ready(inner))
        assert not result.is_ready()
        error = ValueError("inner")
        inner.set_exception(error)
        assert result.exception() is error

    def test_outer_fails(self):
        """Outer failure before producing the inner future is kept."""
        error = ConnectionError("outer")
        result = dereference(Future.make_exception(error))
        assert result.exception() is error

    def test_outer_pending(self):
        outer = Future()
        result = dereference(outer)
        inner = Future()
        outer.set_result(inner)
        assert not result.is_ready()
        inner.set_result("v")
        assert result.get() == "v"


class TestCombine:
    """Tests for combine."""

    def test_both_succeed(self):
        a_val, b_val = random_int(), random_int()
        result = combine(Future.make_ready(a_val), Future.make_ready(b_val),
                         lambda a, b: a + b)
        assert result.get() == a_val + b_val

    def test_different_types(self):
        result = combine(Future.make_ready("n="), Future.make_ready(3),
                         lambda a, b: a + str(b))
        assert result.get() == "n=3"

    def test_first_fails(self):
        error = ValueError("a")
        result = combine(Future.make_exception(error), Future(), lambda a, b: (a, b))
        assert result.exception() is error

    def test_second_fails(self):
        error = ValueError("b")
        result = combine(Future.make_ready(1), Future.make_exception(error),
                         lambda a, b: (a, b))
        assert result.exception() is error

    def test_both_fail(self):
        first, second = ValueError("a"), KeyError("b")
        a, b = Future(), Future()
        result = combine(a, b, lambda x, y: x)
        b.set_exception(second)
        a.set_exception(first)
        assert result.exception() in (first, second)

    def test_function_raises(self):
        result = combine(Future.make_ready(1), Future.make_ready(0), lambda a, b: a / b)
        assert isinstance(result.exception(), ZeroDivisionError)

    def test_none_arguments(self):
        with pytest.raises(TypeError):
            combine(None, Future.make_ready(1), lambda a, b: a)
        with pytest.raises(TypeError):
            combine(Future.make_ready(1), None, lambda a, b: a)
        with pytest.raises(TypeError):
            combine(Future.make_ready(1), Future.make_ready(2), None)


class TestWithWorkerPool:
    """Combinators over futures settled by real worker threads."""

    def test_all_as_list(self, worker_pool):
        values = [random_int() for _ in range(10)]
        futures = [worker_pool.run(lambda v=v: v) for v in values]
        assert all_as_list(futures).get(timeout=5) == values

    def test_successful_as_list(self, worker_pool):
        def _task(i):
            if i % 2:
                raise ValueError(i)
            return i

        futures = [worker_pool.run(lambda i=i: _task(i)) for i in range(6)]
        result = successful_as_list(futures, lambda e: None)
        assert result.get(timeout=5) == [0, None, 2, None, 4, None]

    def test_exceptionally_compose(self, worker_pool):
        def _primary():
            raise TimeoutError("primary")

        result = exceptionally_compose(
            worker_pool.run(_primary),
            lambda e: worker_pool.run(lambda: "secondary"),
        )
        assert result.get(timeout=5) == "secondary"
