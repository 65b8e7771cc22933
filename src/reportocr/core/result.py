"""Lightweight, typed Result container for per-document batch outcomes.

Motivation
----------
A batch of documents must not lose nine good extractions because the tenth
hit a throttled OCR endpoint. The batch coordinator therefore returns one
``Result`` per input document instead of raising on the first failure:

- ``Ok(ExtractionResult)`` for a document that went through the pipeline,
- ``Err(ReportOcrError)`` for a document that was rate limited, rejected by
  upload validation, or failed at the OCR service.

Example
-------
>>> from reportocr.core.result import Result, err, ok, partition
>>> r: Result[int, str] = ok(3)
>>> r.unwrap()
3
>>> partition([r, err("boom")])
([3], ['boom'])
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar, cast

T = TypeVar("T")
E = TypeVar("E")


class Result(Generic[T, E]):
    """Sum type representing either success (`Ok[T]`) or failure (`Err[E]`)."""

    # ----- Introspection -----------------------------------------------------
    def is_ok(self) -> bool:
        """Return ``True`` if this is an :class:`Ok` value."""
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        """Return ``True`` if this is an :class:`Err` value."""
        return isinstance(self, Err)

    # ----- Unwraps -----------------------------------------------------------
    def unwrap(self) -> T:
        """Return the inner value if ``Ok``, else raise.

        When the error payload is an exception it is re-raised as-is, so
        callers that prefer exceptions can opt back into them per item.
        """
        if isinstance(self, Ok):
            return cast(Ok[T, E], self).value
        error = cast(Err[T, E], self).error
        if isinstance(error, BaseException):
            raise error
        raise RuntimeError(f"Attempted to unwrap Err: {self!r}")

    def unwrap_err(self) -> E:
        """Return the error value if ``Err``, else raise."""
        if isinstance(self, Err):
            return cast(Err[T, E], self).error
        raise RuntimeError(f"Attempted to unwrap_err on Ok: {self!r}")

    # ----- Dunder helpers ----------------------------------------------------
    def __repr__(self) -> str:  # pragma: no cover - trivial representation
        if isinstance(self, Ok):
            return f"Ok({cast(Ok[T, E], self).value!r})"
        if isinstance(self, Err):
            return f"Err({cast(Err[T, E], self).error!r})"
        return "Result(?)"


@dataclass(frozen=True)
class Ok(Result[T, E]):
    """Successful result wrapping a value of type ``T``."""

    value: T


@dataclass(frozen=True)
class Err(Result[T, E]):
    """Failed result wrapping an error payload of type ``E``."""

    error: E


# ----- Convenience constructors ----------------------------------------------
def ok(value: T) -> Result[T, E]:
    """Construct :class:`Ok` with better type inference at call sites."""
    return Ok(value)


def err(error: E) -> Result[T, E]:
    """Construct :class:`Err` with better type inference at call sites."""
    return Err(error)


def partition(results: Iterable[Result[T, E]]) -> tuple[list[T], list[E]]:
    """Split ``results`` into success values and errors, keeping order."""
    values: list[T] = []
    errors: list[E] = []
    for r in results:
        if isinstance(r, Ok):
            values.append(cast(Ok[T, E], r).value)
        else:
            errors.append(cast(Err[T, E], r).error)
    return values, errors


__all__ = ["Result", "Ok", "Err", "ok", "err", "partition"]
