#  -*- coding: utf-8 -*-
"""
Exception taxonomy of the typedmodel engine.

Every exception raised by the engine derives from ``ModelError`` and carries a
``source`` attribute so callers can tell engine failures apart from errors
raised by user hooks. Each concrete class also derives from the built-in
exception a caller would naturally expect (``ValueError`` for bad data,
``TypeError`` for schema misuse).

Conditions
----------
InvalidValueError
    A value cannot be coerced to the declared type of a field. Collectable.
UnrecognizedPropertyError
    Input data carries a key that the type does not declare and the type does
    not tolerate additional properties. Collectable.
ConstructionError
    Direct instantiation of a type marked non-constructable. Always raised.
WrapError
    Attempt to wrap a list as a model instance. Always raised.
TypeResolutionError
    A declaration names an unknown type or has an unrecognized shape. Always
    raised, at type-definition time.
ValidationError
    Raised by ``Result.get`` when a validation result carries diagnostics.
"""

from __future__ import annotations


__all__ = [
    "ModelError",
    "InvalidValueError",
    "UnrecognizedPropertyError",
    "ConstructionError",
    "WrapError",
    "TypeResolutionError",
    "ValidationError",
]


SOURCE = 'typedmodel'


class ModelError(Exception):
    """Base class of all errors raised by the engine."""

    source: str = SOURCE


class InvalidValueError(ModelError, ValueError):
    """A value could not be coerced to the type declared for a field."""


class UnrecognizedPropertyError(ModelError, ValueError):
    """A key is not declared by the type and extra keys are not tolerated."""


class ConstructionError(ModelError, TypeError):
    """The type does not allow direct construction of instances."""


class WrapError(ModelError, TypeError):
    """The value cannot be wrapped by a model type."""


class TypeResolutionError(ModelError, TypeError):
    """A property declaration could not be resolved to a type."""


class ValidationError(ModelError, ValueError):
    """
    Aggregate of the diagnostics collected while validating a record.

    Parameters
    ----------
    errors : list of str
        The collected diagnostics, in the order they were reported.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors: list[str] = list(errors)
        super().__init__('; '.join(self.errors))
