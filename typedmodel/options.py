#  -*- coding: utf-8 -*-
"""
Per-call options and the diagnostic channel.

Every engine operation that may fail on bad input data (construction, wrap,
coerce, set, clean) accepts an ``options`` argument. Its ``errors`` field
selects the error-propagation mode:

- throwing mode (``errors is None``): failures raise an exception;
- collecting mode (``errors`` is a list): failures are appended to the list as
  human-readable strings and processing continues.

``Options.report`` is the single place where this choice is made. Callers that
prefer a result value over either mode use ``Result`` through
``Model.validate``.
"""

from __future__ import annotations

from collections.abc import Mapping

from typedmodel.errors import InvalidValueError, ModelError, ValidationError

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, TypeAlias, TYPE_CHECKING

if TYPE_CHECKING:
    from typedmodel.properties import PropertyDescriptor


OptionsLike: TypeAlias = 'Options | list[str] | Mapping[str, Any] | None'


class Options:
    """
    Options accepted by construction, wrap, coerce, set and clean calls.

    Parameters
    ----------
    errors : list of str, optional
        Ordered diagnostics sink. When given, failures are collected here
        instead of raised.
    strict : bool, default False
        Disable lenient coercions: a value must already have the exact
        representation expected by its type.
    property : PropertyDescriptor, optional
        The descriptor being marshalled. Set by the engine so diagnostics can
        name the offending field.
    """

    __slots__ = ('errors', 'strict', 'property')

    def __init__(self,
                 errors: list[str] | None = None,
                 strict: bool = False,
                 property: PropertyDescriptor | None = None) -> None:

        self.errors: list[str] | None = errors
        self.strict: bool = bool(strict)
        self.property: PropertyDescriptor | None = property

    def __repr__(self) -> str:
        return f"Options(errors={self.errors!r}, strict={self.strict!r}, property={self.property!r})"

    @property
    def collecting(self) -> bool:
        """True if failures are collected rather than raised."""
        return self.errors is not None

    def report(self, message: str, error: type[ModelError] = InvalidValueError) -> None:
        """
        Report a failure through the active propagation mode.

        Parameters
        ----------
        message : str
            Human-readable diagnostic.
        error : type, default InvalidValueError
            Exception class raised in throwing mode.

        Raises
        ------
        ModelError
            In throwing mode, an instance of ``error``.
        """
        if self.errors is not None:
            self.errors.append(message)
            return

        raise error(message)

    def for_property(self, descriptor: PropertyDescriptor | None) -> Options:
        """
        Return options bound to ``descriptor`` sharing this error list.
        """
        return Options(errors=self.errors, strict=self.strict, property=descriptor)


def to_options(options: OptionsLike = None) -> Options:
    """
    Normalize any accepted options form into an ``Options`` instance.

    ``None`` yields default options, a list is taken as the error list, and a
    mapping is read for its ``errors``, ``strict`` and ``property`` keys.

    Raises
    ------
    TypeError
        If ``options`` has none of the accepted forms.
    """
    if options is None:
        return Options()

    if isinstance(options, Options):
        return options

    if isinstance(options, list):
        return Options(errors=options)

    if isinstance(options, Mapping):
        unknown = set(options) - {'errors', 'strict', 'property'}
        if unknown:
            raise TypeError(f"Unexpected option keys: {sorted(unknown)}")

        return Options(**options)

    raise TypeError(f"Expected Options, list, dict or None, got {type(options).__name__}")


def coercion_error(value: Any, options: OptionsLike = None) -> None:
    """
    Report ``value`` as invalid for the field bound to ``options``.

    Always returns None so coercion functions can ``return coercion_error(...)``
    and leave the field unset in collecting mode. Unset means the storage key
    holds an explicit ``None``, so ``clean()`` emits the key with a ``None``
    value instead of dropping it.
    """
    options = to_options(options)

    message = ''
    if options.property is not None:
        message += f'{options.property.name}: '
    message += f'Invalid value: {value!r}'

    options.report(message)


class Result:
    """
    Outcome of validating a record: the wrapped value plus its diagnostics.

    Attributes
    ----------
    value : object
        The wrapped model (or coerced value), possibly with invalid fields
        left unset.
    errors : list of str
        Diagnostics collected during validation.
    """

    __slots__ = ('value', 'errors')

    def __init__(self, value: Any, errors: list[str]) -> None:
        self.value: Any = value
        self.errors: list[str] = errors

    def __repr__(self) -> str:
        return f"Result(value={self.value!r}, errors={self.errors!r})"

    def __bool__(self) -> bool:
        return self.ok

    @property
    def ok(self) -> bool:
        """True if no diagnostic was collected."""
        return not self.errors

    def get(self) -> Any:
        """
        Return the value, or raise if any diagnostic was collected.

        Raises
        ------
        ValidationError
            Carrying every collected diagnostic.
        """
        if self.errors:
            raise ValidationError(self.errors)

        return self.value
