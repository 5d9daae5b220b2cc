#  -*- coding: utf-8 -*-
"""
Model types over plain records.

This module implements the type-definition and instance-marshalling engine:

- ``ModelMetatype`` builds a derived type from a base type plus a declaration
  (class statement or ``Model.extend``), resolving property declarations into
  descriptors and generating accessors.
- ``Model`` is the root type. An instance wraps exactly one raw record (a
  ``dict``) and reads/writes it through the coercion pipeline, so the record
  is never copied.
- ``clean`` and ``stringify`` produce canonical plain snapshots containing
  only persisted fields.

Identity
--------
Wrapping the same record twice returns the same wrapper as long as that
wrapper is alive. The association record -> wrapper is kept in weak side
maps keyed by ``(id(record), type)`` and by ``id(record)`` (the most recent
wrapper), so wrapping a record as another type does not hide the first
wrapper. The wrapper holds its record, so the keys stay valid for the life of
the entry. Nested records read back from a parent are re-attached with
``Model.attach``, which never coerces them again.

Declaring types
---------------
Both forms below build the same type::

    Person = Model.extend(properties={'name': str, 'born': 'date'}, typename='Person')

    class Person(Model):
        properties = {'name': str, 'born': 'date'}

Reserved declaration keys are ``init``, ``wrap``, ``unwrap``, ``auto_unwrap``,
``coerce``, ``properties``, ``prototype`` and ``typename``. Any other key is
copied onto the type as static metadata (``additional_properties``,
``constructable``, ...).
"""

from __future__ import annotations

import datetime
import json
import keyword
import logging
import weakref

import numpy

from collections.abc import Mapping

from typedmodel.errors import ConstructionError, UnrecognizedPropertyError, WrapError
from typedmodel.options import Options, OptionsLike, Result, to_options, coercion_error as report_invalid_value
from typedmodel.properties import PropertyDescriptor, PropertyTable, ModelProperty, EMPTY_PROPERTIES
from typedmodel.resolution import Resolver, to_property_descriptor

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Callable, Iterator, Type


logger = logging.getLogger(__name__)

RESERVED_PREFIX = '$'
"""Raw keys starting with this prefix are never treated as data fields."""

RESERVED_KEYS = frozenset({
    'init', 'wrap', 'unwrap', 'auto_unwrap', 'coerce', 'properties', 'prototype', 'typename',
})

RESERVED_ATTRIBUTES = frozenset({'data'})


class _Missing:

    def __repr__(self) -> str:
        return 'MISSING'


MISSING = _Missing()

# one live wrapper per (record, type), plus the most recent wrapper per record
_wrappers: weakref.WeakValueDictionary[tuple[int, type], Model] = weakref.WeakValueDictionary()
_latest: weakref.WeakValueDictionary[int, Model] = weakref.WeakValueDictionary()


# ========== ========== ========== ========== ========== helpers
def is_reserved_key(key: Any) -> bool:
    return isinstance(key, str) and key.startswith(RESERVED_PREFIX)


def is_model(obj: Any) -> bool:
    """True if ``obj`` is a model instance (a wrapper)."""
    return isinstance(obj, Model)


def unwrap(obj: Any) -> Any:
    """Return the raw value behind ``obj``, or ``obj`` itself if not wrapped."""
    if isinstance(obj, Model):
        return obj.unwrap()

    return obj


def wrapper_of(record: Any, type_: type | None = None) -> Model | None:
    """
    Return the live wrapper of ``record``, if any.

    Without ``type_`` the most recently bound wrapper is returned. With
    ``type_`` the wrapper of exactly that type is preferred, then the most
    recent wrapper if it is an instance of ``type_``.
    """
    wrapper = None

    if type_ is not None:
        wrapper = _wrappers.get((id(record), type_))

    if wrapper is None:
        wrapper = _latest.get(id(record))

        if type_ is not None and not isinstance(wrapper, type_):
            wrapper = None

    if wrapper is not None and wrapper.data is record:
        return wrapper

    return None


def _bind(record: Any, model: Model) -> None:
    if isinstance(record, dict):
        _wrappers[(id(record), type(model))] = model
        _latest[id(record)] = model


def _unbind(model: Model) -> None:
    key = id(model.data)

    if _wrappers.get((key, type(model))) is model:
        del _wrappers[(key, type(model))]

    if _latest.get(key) is model:
        del _latest[key]


# ========== ========== ========== ========== ========== marshalling
def _coerce(descriptor: PropertyDescriptor, value: Any, options: OptionsLike) -> Any:
    type_ = descriptor.type

    if isinstance(value, Model) and isinstance(value, type_):
        # wrapped instances are never stored inside another record
        return value.unwrap()

    coerce = getattr(type_, 'coerce', None)

    if coerce is not None:
        value = coerce(value, to_options(options).for_property(descriptor))

    return value


def _attach(descriptor: PropertyDescriptor, value: Any, options: OptionsLike) -> Any:
    type_ = descriptor.type

    if value is None or not type_.is_wrapped():
        return value

    # run the nested record through its own property pipeline
    return unwrap(type_.wrap(value, to_options(options).for_property(descriptor)))


def marshal(descriptor: PropertyDescriptor, value: Any, options: OptionsLike = None) -> Any:
    """
    Convert ``value`` into the raw form stored for ``descriptor``.

    Applies the same steps as a property write without the final store:
    unwrap compatible instances, coerce, and recursively wrap nested records
    of wrapping types. Used for array elements.
    """
    value = _coerce(descriptor, value, options)
    return _attach(descriptor, value, options)


def _rewrap(type_: type, value: Any) -> Any:
    # stored records already went through the set pipeline
    if isinstance(value, dict) and getattr(type_.wrap, '__func__', None) is Model.wrap.__func__:
        return type_.attach(value)

    return type_.wrap(value)


def _get(model: Model, descriptor: PropertyDescriptor) -> Any:
    if descriptor.getter is not None:
        return descriptor.getter(model, descriptor)

    value = model.data.get(descriptor.storage_key)
    if value is None:
        return value

    type_ = descriptor.type
    if type_.is_wrapped():
        if type_.is_auto_unwrapped():
            value = unwrap(value)
        else:
            # make sure an instance of the declared type is returned
            value = _rewrap(type_, value)

    return value


def _set(model: Model, descriptor: PropertyDescriptor, value: Any, options: OptionsLike = None) -> None:
    value = _coerce(descriptor, value, options)

    if descriptor.setter is not None:
        descriptor.setter(model, descriptor, value)
        return

    model.data[descriptor.storage_key] = _attach(descriptor, value, options)


def _clean_field(descriptor: PropertyDescriptor, value: Any, options: Options) -> Any:
    if value is None:
        return value

    if isinstance(value, Model):
        return value.clean(options)

    if isinstance(value, list):
        if descriptor.items is None:
            return clean(value, options)

        return [_clean_field(descriptor.items, element, options) for element in value]

    if isinstance(value, dict) and descriptor.type.is_wrapped():
        wrapper = wrapper_of(value, descriptor.type)
        if wrapper is not None:
            return wrapper.clean(options)

        clean_record = getattr(descriptor.type, 'clean_record', None)
        if clean_record is not None:
            return clean_record(value, options)

    return clean(value, options)


# ========== ========== ========== ========== ========== accessors
def _generate_getter(descriptor: PropertyDescriptor) -> Callable[[Model], Any]:

    def getter(self: Model) -> Any:
        return _get(self, descriptor)

    getter.__name__ = f'get_{descriptor.name}'
    getter.__doc__ = descriptor.doc or f"Return the value of '{descriptor.name}'."

    return getter


def _generate_setter(descriptor: PropertyDescriptor) -> Callable[[Model, Any, OptionsLike], None]:

    def setter(self: Model, value: Any, options: OptionsLike = None) -> None:
        _set(self, descriptor, value, options)

    setter.__name__ = f'set_{descriptor.name}'
    setter.__doc__ = f"Coerce and store the value of '{descriptor.name}'."

    return setter


def _defines(cls: type, name: str) -> bool:
    # True if an ancestor defines ``name`` as something other than a field
    for klass in cls.__mro__[1:]:
        if name in klass.__dict__:
            return not isinstance(klass.__dict__[name], ModelProperty)

    return False


def _install_accessors(cls: type, descriptor: PropertyDescriptor, namespace: dict[str, Any]) -> None:
    name = descriptor.name

    for prefix, enabled, generate in (('get_', descriptor.readable, _generate_getter),
                                      ('set_', descriptor.writable, _generate_setter)):
        method_name = prefix + name

        if enabled and method_name not in namespace:
            method = generate(descriptor)
            method.__qualname__ = f'{cls.__qualname__}.{method_name}'
            setattr(cls, method_name, method)

    if not name.isidentifier() or keyword.iskeyword(name) or name.startswith('__'):
        return

    if name in RESERVED_ATTRIBUTES or name in namespace or _defines(cls, name):
        logger.warning(
            "Property %r of %s collides with an existing attribute; "
            "use get_%s()/set_%s() to access it", name, cls.__name__, name, name
        )
        return

    attribute = ModelProperty(descriptor)
    setattr(cls, name, attribute)
    attribute.__set_name__(cls, name)


def _as_coercer(coerce: Any) -> classmethod:
    func = coerce.__func__ if isinstance(coerce, (classmethod, staticmethod)) else coerce
    bound = not isinstance(coerce, staticmethod)

    def coercer(cls: type, value: Any, options: OptionsLike = None) -> Any:
        if bound:
            return func(cls, value, to_options(options))

        return func(value, to_options(options))

    coercer.__name__ = 'coerce'
    coercer.__doc__ = func.__doc__

    return classmethod(coercer)


def _as_factory(wrap: Any) -> classmethod | staticmethod:
    if isinstance(wrap, (classmethod, staticmethod)):
        return wrap

    return classmethod(wrap)


# ========== ========== ========== ========== ========== ModelMetatype
class ModelMetatype(type):
    """
    Metaclass building model types.

    For every class derived from ``Model`` (through a class statement or
    ``Model.extend``) the metaclass:

    - interprets the reserved declaration keys (``wrap``, ``auto_unwrap``,
      ``coerce``, ``init``, ``prototype``);
    - resolves a non-empty ``properties`` mapping into a ``PropertyTable``
      chained to the base type's table, so a redeclared name shadows the
      ancestor's descriptor without removing it. Without declarations, the
      base table is reused as is;
    - generates ``get_<name>``/``set_<name>`` methods and a ``ModelProperty``
      attribute for each declared property.

    Class keyword ``resolver`` supplies the resolver used for type names::

        class Person(Model, resolver=registry):
            properties = {'home': 'Address'}
    """

    # ========== ========== ========== ========== ========== special methods
    def __new__(mcs,
                name: str,
                bases: tuple[type, ...],
                namespace: dict[str, Any],
                resolver: Resolver | None = None,
                **kwargs: Any) -> ModelMetatype:

        if not any(isinstance(base, ModelMetatype) for base in bases):
            # the root type defines the defaults itself
            return super().__new__(mcs, name, bases, namespace, **kwargs)

        # ---------- ---------- ---------- ---------- ---------- ----------
        namespace = dict(namespace)

        declarations = namespace.pop('properties', None)
        prototype = namespace.pop('prototype', None)
        init = namespace.pop('init', None)
        wrap = namespace.pop('wrap', None)
        coerce = namespace.pop('coerce', None)
        auto_unwrap = namespace.pop('auto_unwrap', None)

        if prototype:
            namespace.update(prototype)

        if wrap is False or wrap is True:
            namespace['_wrapped'] = wrap

        elif wrap is not None:
            namespace['wrap'] = namespace['create'] = _as_factory(wrap)
            namespace['_wrapped'] = True

        if auto_unwrap is not None:
            namespace['_auto_unwrap'] = bool(auto_unwrap)

        if coerce is not None:
            namespace['coerce'] = _as_coercer(coerce)

        if init is not None:
            namespace['_init_hook'] = init

        table = None
        if declarations:
            base_table = next(base.properties for base in bases if isinstance(base, ModelMetatype))
            table = PropertyTable(parent=None if base_table is EMPTY_PROPERTIES else base_table)

            for property_name, declaration in declarations.items():
                table.add(to_property_descriptor(property_name, declaration, resolver))

            namespace['properties'] = table.freeze()

        cls = super().__new__(mcs, name, bases, namespace, **kwargs)

        # ---------- ---------- ---------- ---------- ---------- ----------
        if table is not None:
            for descriptor in table.own_descriptors():
                _install_accessors(cls, descriptor, namespace)

        logger.debug("Created type %s with %d properties", name, len(cls.properties))

        return cls

    def __init__(cls,
                 name: str,
                 bases: tuple[type, ...],
                 namespace: dict[str, Any],
                 resolver: Resolver | None = None,
                 **kwargs: Any) -> None:

        super().__init__(name, bases, namespace, **kwargs)


# ========== ========== ========== ========== ========== Model
class Model(metaclass=ModelMetatype):
    """
    Root model type: a wrapper around one raw record.

    Parameters
    ----------
    data : dict, optional
        The raw record. It is wrapped, not copied: every coerced value is
        written back into it. A new empty record is created when omitted.
    options : Options, list or dict, optional
        Error list and strictness used while coercing ``data``.

    Raises
    ------
    ConstructionError
        If the type is not constructable.
    InvalidValueError
        In throwing mode, if a field value cannot be coerced.
    UnrecognizedPropertyError
        In throwing mode, if ``data`` carries an undeclared key and the type
        does not allow additional properties.

    Attributes
    ----------
    data : dict
        The wrapped raw record.

    Examples
    --------
    >>> Person = Model.extend(properties={'name': str, 'age': int})
    >>> raw = {'name': 'John', 'age': '42'}
    >>> person = Person.wrap(raw)
    >>> person.get_age(), raw['age']
    (42, 42)
    >>> Person.wrap(raw) is person
    True
    """

    # ========== ========== ========== ========== ========== class attributes
    properties: PropertyTable = EMPTY_PROPERTIES
    additional_properties: bool = False
    constructable: bool = True
    primitive: bool = False

    _wrapped: bool = True
    _auto_unwrap: bool = False

    # ========== ========== ========== ========== ========== special methods
    def __init__(self, data: Any = None, options: OptionsLike = None) -> None:

        cls = type(self)

        if cls.constructable is False:
            raise ConstructionError(f"Instances of {cls.__name__} cannot be created. data: {data!r}")

        options = to_options(options)

        if cls.has_properties():

            if data is None:
                data = {}

            elif not isinstance(data, dict):
                report_invalid_value(data, options)
                data = {}

            self.data = data
            self._populate(options)

        else:
            self.data = data

        _bind(self.data, self)

        for klass in reversed(cls.__mro__):
            hook = klass.__dict__.get('_init_hook')
            if hook is not None:
                hook(self, self.data, options)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.data!r})"

    # ========== ========== ========== ========== ========== protected methods
    def _populate(self, options: Options) -> None:
        cls = type(self)
        data = self.data

        # use setters to make sure values get properly coerced
        for key, value in list(data.items()):

            if is_reserved_key(key):
                continue

            descriptor = cls.properties.get(key)

            if descriptor is not None:
                if key != descriptor.storage_key:
                    # declared by external name: move it to its storage key
                    del data[key]

                _set(self, descriptor, value, options)

            elif not cls.additional_properties:
                options.report(f'Unrecognized property: {key}', UnrecognizedPropertyError)

    def _descriptor(self, name: str) -> PropertyDescriptor:
        descriptor = type(self).properties.get(name)

        if descriptor is None:
            raise UnrecognizedPropertyError(f'Unrecognized property: {name}')

        return descriptor

    def _read(self, descriptor: PropertyDescriptor) -> Any:
        return _get(self, descriptor)

    def _write(self, descriptor: PropertyDescriptor, value: Any, options: OptionsLike = None) -> None:
        _set(self, descriptor, value, options)

    # ========== ========== ========== ========== ========== type API
    @classmethod
    def extend(cls,
               config: Mapping[str, Any] | None = None,
               resolver: Resolver | None = None,
               **kwargs: Any) -> Type[Model]:
        """
        Build a type derived from this one.

        Parameters
        ----------
        config : mapping, optional
            The declaration: reserved keys plus static metadata.
        resolver : callable, optional
            ``resolver(name) -> type | None`` for application type names.
        **kwargs
            Merged over ``config``.

        Returns
        -------
        type
            The derived type. Its class name is ``config['typename']`` or
            ``'Derived<BaseName>'``.
        """
        namespace = {**(config or {}), **kwargs}
        typename = namespace.pop('typename', None) or f'Derived{cls.__name__}'

        namespace['__qualname__'] = typename

        return ModelMetatype(typename, (cls,), namespace, resolver=resolver)

    @classmethod
    def wrap(cls, data: Any = MISSING, options: OptionsLike = None) -> Any:
        """
        Return a wrapper of ``data`` of this type.

        - an instance of this type is returned unchanged;
        - a record that already has a live wrapper of this type returns it;
        - an instance of an incompatible type is unwrapped, detached from its
          wrapper and wrapped anew;
        - types declared with ``wrap=False`` return the (coerced) raw value.

        Raises
        ------
        WrapError
            If ``data`` is a list.
        """
        if data is MISSING:
            return cls()

        if isinstance(data, cls):
            return data

        coerce = getattr(cls, 'coerce', None)
        if coerce is not None:
            options = to_options(options)
            data = coerce(data, options)

        if data is None or not cls.is_wrapped():
            return data

        if isinstance(data, Model):
            if isinstance(data, cls):
                return data

            _unbind(data)
            data = data.unwrap()

        if isinstance(data, list):
            raise WrapError(f'Wrapping a list is not allowed ({cls.__name__})')

        existing = wrapper_of(data, cls)
        if existing is not None:
            return existing

        # NOTE: construction binds the record to the new wrapper
        return cls(data, options)

    create = wrap

    @classmethod
    def attach(cls, data: dict) -> Model:
        """
        Return a wrapper of a record whose fields are already marshalled.

        The live wrapper of ``data`` is reused when there is one; otherwise a
        new wrapper is bound without coercing the fields again or running
        ``init`` hooks. Used when reading nested records back from their
        parent.
        """
        existing = wrapper_of(data, cls)
        if existing is not None:
            return existing

        model = cls.__new__(cls)
        model.data = data
        _bind(data, model)

        return model

    @classmethod
    def validate(cls, data: Any, strict: bool = False) -> Result:
        """
        Wrap ``data`` collecting diagnostics instead of raising.

        Returns
        -------
        Result
            The wrapped value and the diagnostics list.
        """
        errors: list[str] = []
        value = cls.wrap(data, Options(errors=errors, strict=strict))

        return Result(value, errors)

    @classmethod
    def is_wrapped(cls) -> bool:
        return cls._wrapped

    @classmethod
    def is_auto_unwrapped(cls) -> bool:
        return cls._auto_unwrap

    @classmethod
    def is_primitive(cls) -> bool:
        return bool(cls.primitive)

    @classmethod
    def is_compatible_with(cls, other: Any) -> bool:
        """True if ``other`` is this type or one of its ancestors."""
        return isinstance(other, type) and issubclass(cls, other)

    @classmethod
    def has_properties(cls) -> bool:
        return len(cls.properties) > 0

    @classmethod
    def has_property(cls, name: str) -> bool:
        return name in cls.properties

    @classmethod
    def get_property(cls, name: str) -> PropertyDescriptor | None:
        return cls.properties.get(name)

    @classmethod
    def get_properties(cls) -> PropertyTable:
        return cls.properties

    @classmethod
    def iter_properties(cls) -> Iterator[PropertyDescriptor]:
        """Effective descriptors, most derived level first."""
        return cls.properties.descriptors()

    @classmethod
    def for_each_property(cls, callback: Callable[[PropertyDescriptor], Any]) -> None:
        for descriptor in cls.iter_properties():
            callback(descriptor)

    @classmethod
    def prevent_construction(cls) -> None:
        cls.constructable = False

    @classmethod
    def coercion_error(cls, value: Any, options: OptionsLike = None) -> None:
        """Report ``value`` as invalid; raises in throwing mode."""
        return report_invalid_value(value, options)

    @classmethod
    def clean_record(cls, data: Any, errors: OptionsLike = None) -> Any:
        """
        Return a plain copy of ``data`` holding only persisted fields.

        Undeclared keys are kept when the type allows additional properties;
        otherwise they are dropped and, when an error list is given, reported.
        A type without declared properties returns ``data`` itself.
        """
        if not cls.has_properties():
            return data

        options = to_options(errors)

        result = {}
        for key, value in data.items():

            if is_reserved_key(key):
                continue

            descriptor = cls.properties.get(key)

            if descriptor is not None:
                if descriptor.persisted:
                    result[key] = _clean_field(descriptor, value, options)

            elif cls.additional_properties:
                result[key] = value

            elif options.collecting:
                options.errors.append(f'Unrecognized property: {key}')

        return result

    # ========== ========== ========== ========== ========== public methods
    def unwrap(self) -> Any:
        """Return the raw record (not a copy)."""
        return self.data

    def get(self, name: str) -> Any:
        """Read field ``name`` (external name or storage key)."""
        return _get(self, self._descriptor(name))

    def set(self, name: str, value: Any, options: OptionsLike = None) -> None:
        """Coerce and write field ``name``."""
        _set(self, self._descriptor(name), value, options)

    def clean(self, errors: OptionsLike = None) -> Any:
        """
        Return a plain snapshot of the record with persisted fields only.

        Nested models and arrays are cleaned recursively. ``errors`` receives
        one diagnostic per unrecognized key.
        """
        return type(self).clean_record(self.data, errors)

    def stringify(self, pretty: bool = False) -> str:
        return stringify(self, pretty)


# ========== ========== ========== ========== ========== clean and stringify
def clean(obj: Any, errors: OptionsLike = None) -> Any:
    """
    Clean any value: models, records with a live wrapper, lists of either.

    Lists are cleaned element-wise, preserving order and length. Other values
    are returned unchanged.
    """
    if isinstance(obj, (list, tuple)):
        return [clean(element, errors) for element in obj]

    if isinstance(obj, Model):
        return obj.clean(errors)

    wrapper = wrapper_of(obj)
    if wrapper is not None:
        return wrapper.clean(errors)

    return obj


def _jsonable(value: Any) -> Any:
    if isinstance(value, Model):
        value = value.clean()

    elif isinstance(value, dict):
        wrapper = wrapper_of(value)
        if wrapper is not None:
            value = wrapper.clean()

    if isinstance(value, Mapping):
        return {key: _jsonable(item) for key, item in value.items() if not is_reserved_key(key)}

    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]

    return value


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()

    if isinstance(obj, numpy.generic):
        return obj.item()

    if isinstance(obj, numpy.ndarray):
        return obj.tolist()

    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def stringify(obj: Any, pretty: bool = False) -> str:
    """
    Render ``obj`` as JSON text of its clean form.

    Nested models are cleaned, reserved-prefixed keys are omitted, datetimes
    are rendered as ISO 8601. ``pretty`` indents by four spaces; otherwise
    the output is compact.
    """
    if pretty:
        return json.dumps(_jsonable(obj), default=_json_default, indent=4)

    return json.dumps(_jsonable(obj), default=_json_default, separators=(',', ':'))
