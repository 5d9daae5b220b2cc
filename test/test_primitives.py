#  -*- coding: utf-8 -*-
"""
Test suite for the built-in primitive types.

Tests cover:
- Lenient coercion of every primitive
- Strict coercion
- Markers and built-in type names
- Array element coercion
"""

from __future__ import annotations

import collections.abc
import datetime
import numbers

import numpy as np
import pandas as pd
import pytest

from typedmodel import (
    Model, Options, InvalidValueError,
    String, Number, Integer, Boolean, Date, Object, Array, Function,
)
from typedmodel.primitives import host_type, registry


UTC = datetime.timezone.utc


# ========== ========== ========== ========== Fixtures
@pytest.fixture
def strict() -> Options:
    """Strict throwing options."""
    return Options(strict=True)


# ========== ========== ========== ========== Test primitive contract
class TestPrimitiveContract:
    """Test the type contract of primitives."""

    @pytest.mark.parametrize('name', ['string', 'number', 'integer', 'boolean', 'date', 'object', 'array', 'function'])
    def test_registered_primitives(self, name: str) -> None:
        # every built-in name resolves to a primitive passthrough type
        type_ = registry(name)

        assert type_.is_primitive()
        assert not type_.is_wrapped()
        assert not type_.has_properties()

    def test_markers(self) -> None:
        # host markers map to primitives
        assert host_type(str) is String
        assert host_type(int) is Integer
        assert host_type(float) is Number
        assert host_type(numbers.Number) is Number
        assert host_type(bool) is Boolean
        assert host_type(datetime.datetime) is Date
        assert host_type(datetime.date) is Date
        assert host_type(pd.Timestamp) is Date
        assert host_type(dict) is Object
        assert host_type(object) is Object
        assert host_type(list) is Array
        assert host_type(tuple) is Array
        assert host_type(collections.abc.Callable) is Function

    def test_unknown_markers(self) -> None:
        # unknown and unhashable markers are not primitives
        assert host_type(complex) is None
        assert host_type({'type': str}) is None
        assert host_type([str]) is None

    def test_integer_is_a_number(self) -> None:
        # Integer derives from Number
        assert Integer.is_compatible_with(Number)
        assert not Number.is_compatible_with(Integer)

    def test_primitives_not_constructable(self) -> None:
        # primitive values are never wrapped
        with pytest.raises(TypeError):
            String('abc')

    def test_wrap_returns_coerced_value(self) -> None:
        # wrap on a passthrough type coerces
        assert Integer.wrap('12') == 12
        assert Object.wrap({'a': 1}) == {'a': 1}


# ========== ========== ========== ========== Test String
class TestString:
    """Test String coercion."""

    def test_lenient(self) -> None:
        # booleans, numbers and dates become text
        assert String.coerce('Hello') == 'Hello'
        assert String.coerce(True) == 'true'
        assert String.coerce(False) == 'false'
        assert String.coerce(42) == '42'
        assert String.coerce(0) == '0'
        assert String.coerce(1.5) == '1.5'
        assert String.coerce(np.int64(7)) == '7'
        assert String.coerce(datetime.datetime(1970, 1, 1)) == '1970-01-01T00:00:00'
        assert String.coerce(None) is None

    def test_containers_invalid(self) -> None:
        # containers never coerce to text
        with pytest.raises(InvalidValueError):
            String.coerce({'a': 1})

        with pytest.raises(InvalidValueError):
            String.coerce([1])

    def test_strict(self, strict: Options) -> None:
        # strict accepts only str
        assert String.coerce('x', strict) == 'x'

        with pytest.raises(InvalidValueError):
            String.coerce(1, strict)

    def test_field(self) -> None:
        # field writes coerce
        Person = Model.extend(properties={'message': String})
        person = Person()

        person.set_message(True)
        assert person.get_message() == 'true'

        person.set_message(42)
        assert person.get_message() == '42'

        person.set_message(None)
        assert person.get_message() is None


# ========== ========== ========== ========== Test Number and Integer
class TestNumber:
    """Test Number coercion."""

    def test_lenient(self) -> None:
        # numeric strings are parsed
        assert Number.coerce(3.5) == 3.5
        assert Number.coerce('10') == 10
        assert Number.coerce(' 1.5 ') == 1.5
        assert Number.coerce(True) == 1
        assert Number.coerce(None) is None

    def test_numpy_scalars(self) -> None:
        # numpy scalars become Python numbers
        value = Number.coerce(np.float64(2.5))

        assert value == 2.5
        assert type(value) is float

    def test_invalid(self) -> None:
        # junk and NaN are invalid
        for value in ('asdf', float('nan'), 'nan', [1], {}):
            with pytest.raises(InvalidValueError):
                Number.coerce(value)

    def test_strict(self, strict: Options) -> None:
        # strict accepts real numbers only
        assert Number.coerce(1, strict) == 1

        with pytest.raises(InvalidValueError):
            Number.coerce('1', strict)

        with pytest.raises(InvalidValueError):
            Number.coerce(True, strict)


class TestInteger:
    """Test Integer coercion."""

    def test_lenient(self) -> None:
        # integral values of any representation
        assert Integer.coerce(3) == 3
        assert Integer.coerce(3.0) == 3
        assert Integer.coerce('30') == 30
        assert Integer.coerce('4.0') == 4
        assert Integer.coerce(np.int32(5)) == 5
        assert Integer.coerce('12345678901234567890') == 12345678901234567890

    def test_invalid(self) -> None:
        # fractional values and junk are invalid
        for value in (1.5, '1.5', 'blah', float('inf'), [1]):
            with pytest.raises(InvalidValueError):
                Integer.coerce(value)

    def test_collecting(self) -> None:
        # collecting mode reports the original value
        errors = []

        assert Integer.coerce('blah', errors) is None
        assert errors == ["Invalid value: 'blah'"]

    def test_strict(self, strict: Options) -> None:
        # strict accepts integral numbers only
        assert Integer.coerce(2, strict) == 2

        with pytest.raises(InvalidValueError):
            Integer.coerce(2.0, strict)


# ========== ========== ========== ========== Test Boolean
class TestBoolean:
    """Test Boolean coercion."""

    def test_numbers(self) -> None:
        # numbers compare against zero
        assert Boolean.coerce(1) is True
        assert Boolean.coerce(0) is False
        assert Boolean.coerce(-1) is True
        assert Boolean.coerce(np.bool_(True)) is True

    def test_strings(self) -> None:
        # recognized truthy strings
        assert Boolean.coerce('true') is True
        assert Boolean.coerce('Yes') is True
        assert Boolean.coerce('on') is True
        assert Boolean.coerce('1') is True
        assert Boolean.coerce('abc') is False
        assert Boolean.coerce('false') is False

    def test_none(self) -> None:
        # None passes through
        assert Boolean.coerce(None) is None

    def test_invalid(self) -> None:
        # containers are invalid
        with pytest.raises(InvalidValueError):
            Boolean.coerce({'a': 1})

    def test_strict(self, strict: Options) -> None:
        # strict accepts bool only
        with pytest.raises(InvalidValueError):
            Boolean.coerce(1, strict)

    def test_array_of_booleans(self) -> None:
        # array elements are coerced one by one
        Something = Model.extend(properties={'arrayOfBooleans': [Boolean]})

        something = Something.wrap({'arrayOfBooleans': [0, 1, 'abc', -1, 'true']})

        assert something.get_arrayOfBooleans() == [False, True, False, True, True]


# ========== ========== ========== ========== Test Date
class TestDate:
    """Test Date coercion."""

    def test_parse_iso_string(self) -> None:
        # strings are parsed with pandas
        value = Date.coerce('1980-02-01T05:00:00.000Z')

        assert value == datetime.datetime(1980, 2, 1, 5, tzinfo=UTC)

    def test_naive_string(self) -> None:
        # strings without offset stay naive
        assert Date.coerce('2020-01-02') == datetime.datetime(2020, 1, 2)

    def test_epoch_milliseconds(self) -> None:
        # numbers are epoch milliseconds in UTC
        assert Date.coerce(0) == datetime.datetime(1970, 1, 1, tzinfo=UTC)
        assert Date.coerce(86400000) == datetime.datetime(1970, 1, 2, tzinfo=UTC)

    def test_date_and_timestamp(self) -> None:
        # other date representations become datetime
        assert Date.coerce(datetime.date(2020, 1, 2)) == datetime.datetime(2020, 1, 2)

        value = Date.coerce(pd.Timestamp('2020-01-02 03:04'))
        assert type(value) is datetime.datetime
        assert value == datetime.datetime(2020, 1, 2, 3, 4)

        assert Date.coerce(np.datetime64('2020-01-02')) == datetime.datetime(2020, 1, 2)

    def test_invalid(self) -> None:
        # booleans and junk are invalid
        with pytest.raises(InvalidValueError):
            Date.coerce(True)

        with pytest.raises(InvalidValueError):
            Date.coerce('not a date')

        with pytest.raises(InvalidValueError):
            Date.coerce([2020])

    def test_strict(self, strict: Options) -> None:
        # strict accepts datetime only
        now = datetime.datetime.now()

        assert Date.coerce(now, strict) is now

        with pytest.raises(InvalidValueError):
            Date.coerce(0, strict)

    def test_field(self) -> None:
        # Date fields store datetimes
        Person = Model.extend(properties={'dateOfBirth': datetime.datetime})
        person = Person()
        person.set_dateOfBirth(datetime.datetime(1980, 2, 1))

        assert person.get_dateOfBirth() == datetime.datetime(1980, 2, 1)


# ========== ========== ========== ========== Test Array, Object, Function
class TestArray:
    """Test Array coercion."""

    def test_tuple_and_ndarray(self) -> None:
        # tuples and ndarrays become lists
        assert Array.coerce((1, 2)) == [1, 2]
        assert Array.coerce(np.array([1, 2])) == [1, 2]

    def test_invalid(self) -> None:
        # scalars are invalid
        with pytest.raises(InvalidValueError):
            Array.coerce('abc')

    def test_strict(self, strict: Options) -> None:
        # strict accepts lists only
        with pytest.raises(InvalidValueError):
            Array.coerce((1, 2), strict)

    def test_elements_reported_by_field(self) -> None:
        # element failures name the array field
        Something = Model.extend(properties={'counts': ['integer']})

        errors = []
        something = Something({'counts': [1, 'x', '3']}, errors)

        assert errors == ["counts: Invalid value: 'x'"]
        assert something.get_counts() == [1, None, 3]


class TestObject:
    """Test Object passthrough."""

    def test_any_value(self) -> None:
        # anything is stored as is
        Something = Model.extend(properties={'anything': None})
        value = {'nested': [1, 2]}

        something = Something({'anything': value})

        assert something.get_anything() is value
        assert Something.get_property('anything').type is Object


class TestFunction:
    """Test Function coercion."""

    def test_callables(self) -> None:
        # callables are accepted
        Item = Model.extend(properties={'handler': Function})

        item = Item({'handler': len})

        assert item.get_handler() is len

    def test_non_callables(self) -> None:
        # anything else is invalid
        Item = Model.extend(properties={'handler': Function})

        with pytest.raises(InvalidValueError):
            Item({'handler': 'abc'})
