"""
Deferred results for asynchronous record retrieval.

A ``Deferred`` is a one-shot container for the outcome of an in-flight
operation. It is an explicit state machine (pending -> fulfilled | failed)
with an ordered list of continuations, each of which runs exactly once.

Chaining mirrors sequential code with exceptions:

    >>> d = Deferred()
    >>> chained = d.then(lambda v: v + 1).then(lambda v: v * 2).catch(lambda e: -1)
    >>> d.resolve(1)
    >>> chained.result()
    4

If a ``then`` continuation returns another ``Deferred`` the outer chain waits
for it and adopts its outcome instead of nesting it. A failure at any step
skips the remaining ``then`` continuations until the nearest ``catch``.

Settlement is thread-safe: a worker thread may resolve a Deferred while the
caller thread is still attaching continuations. Continuations always fire
in registration order. They run on whichever thread settles the Deferred,
or immediately on the registering thread once dispatch has finished.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, Type, TypeVar

from .exceptions import InvalidStateError

T = TypeVar("T")


class DeferredState(str, Enum):
    """Lifecycle states of a Deferred."""

    PENDING = "pending"
    FULFILLED = "fulfilled"
    FAILED = "failed"


class Deferred(Generic[T]):
    """One-shot, exactly-once settling result with chained continuations."""

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._state = DeferredState.PENDING
        self._value: Optional[T] = None
        self._error: Optional[BaseException] = None
        # Set once resolve()/reject() is accepted, possibly before the terminal
        # state is reached (when adopting another Deferred).
        self._claimed = False
        self._callbacks: List[Callable[["Deferred[T]"], None]] = []
        self._dispatching = False

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def resolved(cls, value: T) -> "Deferred[T]":
        deferred: Deferred[T] = cls()
        deferred.resolve(value)
        return deferred

    @classmethod
    def rejected(cls, error: BaseException) -> "Deferred[Any]":
        deferred: Deferred[Any] = cls()
        deferred.reject(error)
        return deferred

    @classmethod
    def attempt(cls, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> "Deferred[Any]":
        """
        Call ``fn`` and lift its outcome into a Deferred.

        A returned Deferred is passed through untouched, a plain return value
        becomes a fulfilled Deferred and a raised exception becomes a failed
        one. This lets callers treat sync and async ports the same way.
        """
        try:
            outcome = fn(*args, **kwargs)
        except Exception as exc:
            return cls.rejected(exc)
        if isinstance(outcome, Deferred):
            return outcome
        return cls.resolved(outcome)

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------
    def resolve(self, value: Any) -> None:
        """
        Fulfil with ``value``.

        Resolving with another Deferred adopts its eventual outcome.

        Raises:
            InvalidStateError: If this Deferred was already resolved or rejected
        """
        if value is self:
            raise InvalidStateError("A Deferred cannot be resolved with itself")
        self._claim()
        if isinstance(value, Deferred):
            value._add_callback(self._adopt)
            return
        self._settle(DeferredState.FULFILLED, value, None)

    def reject(self, error: BaseException) -> None:
        """
        Fail with ``error``.

        Raises:
            InvalidStateError: If this Deferred was already resolved or rejected
        """
        if not isinstance(error, BaseException):
            raise TypeError(f"reject() expects an exception, got {type(error).__name__}")
        self._claim()
        self._settle(DeferredState.FAILED, None, error)

    def _claim(self) -> None:
        with self._condition:
            if self._claimed:
                raise InvalidStateError(
                    f"Deferred already settled (state={self._state.value})"
                )
            self._claimed = True

    def _adopt(self, source: "Deferred[Any]") -> None:
        self._settle(source._state, source._value, source._error)

    def _settle(
        self,
        state: DeferredState,
        value: Any,
        error: Optional[BaseException],
    ) -> None:
        with self._condition:
            self._state = state
            self._value = value
            self._error = error
            self._dispatching = True
            self._condition.notify_all()
        self._drain()

    def _drain(self) -> None:
        # Callbacks registered from any thread while draining join the queue
        # behind the ones already waiting.
        while True:
            with self._condition:
                if not self._callbacks:
                    self._dispatching = False
                    return
                callback = self._callbacks.pop(0)
            try:
                callback(self)
            except BaseException:
                self._drain()
                raise

    def _add_callback(self, callback: Callable[["Deferred[T]"], None]) -> None:
        with self._condition:
            if self._state is DeferredState.PENDING or self._dispatching:
                self._callbacks.append(callback)
                return
        callback(self)

    # ------------------------------------------------------------------
    # Chaining
    # ------------------------------------------------------------------
    def then(self, on_fulfilled: Callable[[T], Any]) -> "Deferred[Any]":
        """
        Register a success continuation and return the chained Deferred.

        Failures skip ``on_fulfilled`` and propagate to the returned Deferred.
        """
        child: Deferred[Any] = Deferred()

        def _continue(source: Deferred[T]) -> None:
            if source._state is DeferredState.FAILED:
                child.reject(source._error)  # type: ignore[arg-type]
                return
            try:
                outcome = on_fulfilled(source._value)  # type: ignore[arg-type]
            except Exception as exc:
                child.reject(exc)
                return
            except BaseException as exc:
                child.reject(exc)
                raise
            child.resolve(outcome)

        self._add_callback(_continue)
        return child

    def catch(
        self,
        on_failed: Callable[[BaseException], Any],
        *error_types: Type[BaseException],
    ) -> "Deferred[Any]":
        """
        Register a failure continuation and return the chained Deferred.

        Args:
            on_failed: Handler receiving the error; its return value (or the
                outcome of a returned Deferred) becomes the recovered result.
                Raising from the handler fails the chained Deferred.
            *error_types: Restrict handling to these exception types; other
                failures pass through unchanged.
        """
        child: Deferred[Any] = Deferred()

        def _continue(source: Deferred[T]) -> None:
            if source._state is DeferredState.FULFILLED:
                child.resolve(source._value)
                return
            error = source._error
            if error_types and not isinstance(error, error_types):
                child.reject(error)  # type: ignore[arg-type]
                return
            try:
                outcome = on_failed(error)  # type: ignore[arg-type]
            except Exception as exc:
                child.reject(exc)
                return
            except BaseException as exc:
                child.reject(exc)
                raise
            child.resolve(outcome)

        self._add_callback(_continue)
        return child

    def finally_(self, callback: Callable[[], Any]) -> "Deferred[T]":
        """Run ``callback`` on either outcome, then pass the outcome through."""
        child: Deferred[T] = Deferred()

        def _continue(source: Deferred[T]) -> None:
            try:
                callback()
            except Exception as exc:
                child.reject(exc)
                return
            child._claim()
            child._adopt(source)

        self._add_callback(_continue)
        return child

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    @property
    def state(self) -> DeferredState:
        return self._state

    def done(self) -> bool:
        return self._state is not DeferredState.PENDING

    def succeeded(self) -> bool:
        return self._state is DeferredState.FULFILLED

    def failed(self) -> bool:
        return self._state is DeferredState.FAILED

    def _wait(self, timeout: Optional[float]) -> None:
        with self._condition:
            settled = self._condition.wait_for(self.done, timeout=timeout)
        if not settled:
            raise TimeoutError(f"Deferred not settled within {timeout}s")

    def result(self, timeout: Optional[float] = None) -> T:
        """
        Block until settled and return the value, re-raising a failure.

        Raises:
            TimeoutError: If still pending after ``timeout`` seconds
        """
        self._wait(timeout)
        if self._state is DeferredState.FAILED:
            raise self._error  # type: ignore[misc]
        return self._value  # type: ignore[return-value]

    def exception(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        """Block until settled and return the failure, or None on success."""
        self._wait(timeout)
        return self._error

    def __repr__(self) -> str:
        return f"<Deferred state={self._state.value}>"
