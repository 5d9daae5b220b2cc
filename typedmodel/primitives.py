#  -*- coding: utf-8 -*-
"""
Built-in primitive types.

Primitives are passthrough types (``wrap=False``): values are coerced and then
stored in the raw record as they are. Each one maps a family of host markers
(``str``, ``int``, ``list``, ...) and a built-in type name (``'string'``,
``'integer'``, ...) to the same type.

Coercion is lenient by default and exact under ``Options(strict=True)``;
``None`` always passes through unconverted.
"""

from __future__ import annotations

import datetime
import math
import numbers
import types

import numpy
import pandas

from collections.abc import Callable, Mapping

from typedmodel.model import Model, marshal
from typedmodel.options import Options
from typedmodel.resolution import TypeRegistry

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any


TRUE_STRINGS = frozenset({'true', '1', 'yes', 'on'})


def _parse_number(text: str) -> int | float | None:
    text = text.strip()

    try:
        return int(text)
    except ValueError:
        pass

    try:
        value = float(text)
    except ValueError:
        return None

    return None if math.isnan(value) else value


def _python_scalar(value: Any) -> Any:
    return value.item() if isinstance(value, numpy.generic) else value


# ========== ========== ========== ========== ========== Primitive
class Primitive(Model):
    """Base of the built-in passthrough types."""

    wrap = False
    primitive = True
    constructable = False


class String(Primitive):

    @classmethod
    def coerce(cls, value: Any, options: Options) -> str | None:
        if value is None or isinstance(value, str):
            return value

        if options.strict:
            return cls.coercion_error(value, options)

        if isinstance(value, (bool, numpy.bool_)):
            return 'true' if value else 'false'

        if isinstance(value, numbers.Number):
            return str(_python_scalar(value))

        if isinstance(value, (datetime.date, datetime.time)):
            return value.isoformat()

        if isinstance(value, (Mapping, list, tuple, set, Model)):
            return cls.coercion_error(value, options)

        return str(value)


class Number(Primitive):

    @classmethod
    def coerce(cls, value: Any, options: Options) -> int | float | None:
        if value is None:
            return value

        if isinstance(value, (bool, numpy.bool_)):
            if options.strict:
                return cls.coercion_error(value, options)

            return int(value)

        if isinstance(value, numbers.Real):
            value = _python_scalar(value)

            if isinstance(value, float) and math.isnan(value):
                return cls.coercion_error(value, options)

            return value

        if not options.strict and isinstance(value, str):
            number = _parse_number(value)

            if number is not None:
                return number

        return cls.coercion_error(value, options)


class Integer(Number):

    @classmethod
    def coerce(cls, value: Any, options: Options) -> int | None:
        if value is None:
            return value

        if isinstance(value, (bool, numpy.bool_)):
            if options.strict:
                return cls.coercion_error(value, options)

            return int(value)

        if isinstance(value, numbers.Integral):
            return int(value)

        if options.strict:
            return cls.coercion_error(value, options)

        number = _parse_number(value) if isinstance(value, str) else value

        if isinstance(number, int):
            return number

        if isinstance(number, numbers.Real):
            number = float(number)

            if math.isfinite(number) and number.is_integer():
                return int(number)

        return cls.coercion_error(value, options)


class Boolean(Primitive):

    @classmethod
    def coerce(cls, value: Any, options: Options) -> bool | None:
        if value is None or isinstance(value, bool):
            return value

        if isinstance(value, numpy.bool_):
            return bool(value)

        if options.strict:
            return cls.coercion_error(value, options)

        if isinstance(value, numbers.Number):
            return value != 0

        if isinstance(value, str):
            return value.strip().lower() in TRUE_STRINGS

        return cls.coercion_error(value, options)


class Date(Primitive):
    """
    Date and time values, stored as ``datetime.datetime``.

    Strings are parsed with pandas (ISO 8601 and the usual textual forms),
    numbers are read as milliseconds since the Unix epoch in UTC.
    """

    @classmethod
    def coerce(cls, value: Any, options: Options) -> datetime.datetime | None:
        if value is None:
            return value

        if isinstance(value, pandas.Timestamp):
            return value.to_pydatetime()

        if isinstance(value, datetime.datetime):
            return value

        if options.strict:
            return cls.coercion_error(value, options)

        if isinstance(value, datetime.date):
            return datetime.datetime.combine(value, datetime.time())

        if isinstance(value, numpy.datetime64):
            value = str(value)

        if isinstance(value, (bool, numpy.bool_)):
            return cls.coercion_error(value, options)

        if isinstance(value, numbers.Real):
            try:
                return datetime.datetime.fromtimestamp(float(value) / 1000, tz=datetime.timezone.utc)
            except (ValueError, OverflowError, OSError):
                return cls.coercion_error(value, options)

        if isinstance(value, str):
            try:
                timestamp = pandas.Timestamp(value)
            except (ValueError, TypeError, OverflowError):
                return cls.coercion_error(value, options)

            if timestamp is pandas.NaT:
                return cls.coercion_error(value, options)

            return timestamp.to_pydatetime()

        return cls.coercion_error(value, options)


class Object(Primitive):
    """Any value, stored as is."""


class Array(Primitive):
    """
    Lists, coerced element by element through the ``items`` descriptor.

    The list is modified in place so the raw record keeps holding the same
    list object.
    """

    @classmethod
    def coerce(cls, value: Any, options: Options) -> list | None:
        if value is None:
            return value

        if not isinstance(value, list):
            if options.strict:
                return cls.coercion_error(value, options)

            if isinstance(value, numpy.ndarray):
                value = value.tolist()

            elif isinstance(value, tuple):
                value = list(value)

            else:
                return cls.coercion_error(value, options)

        items = options.property.items if options.property is not None else None

        if items is not None:
            for index, element in enumerate(value):
                value[index] = marshal(items, element, options)

        return value


class Function(Primitive):

    @classmethod
    def coerce(cls, value: Any, options: Options) -> Callable | None:
        if value is None or callable(value):
            return value

        return cls.coercion_error(value, options)


# ========== ========== ========== ========== ========== markers and names
_HOST_TYPES: dict[Any, type] = {
    str: String,
    int: Integer,
    float: Number,
    numbers.Number: Number,
    numbers.Real: Number,
    bool: Boolean,
    datetime.datetime: Date,
    datetime.date: Date,
    pandas.Timestamp: Date,
    dict: Object,
    object: Object,
    list: Array,
    tuple: Array,
    Callable: Function,
    types.FunctionType: Function,
}

registry = TypeRegistry({
    'string': String,
    'number': Number,
    'integer': Integer,
    'boolean': Boolean,
    'date': Date,
    'object': Object,
    'array': Array,
    'function': Function,
})
"""Built-in type names, consulted before any application resolver."""


def host_type(marker: Any) -> type | None:
    """Return the primitive type denoted by a host marker such as ``str``."""
    try:
        return _HOST_TYPES.get(marker)
    except TypeError:
        # unhashable declarations are not markers
        return None
