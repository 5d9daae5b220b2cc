#  -*- coding: utf-8 -*-
"""
Resolution of property declarations into canonical type descriptors.

A declaration is what a schema author writes for one field: a model type, a
host marker such as ``str`` or ``list``, a type name such as ``'integer'`` or
``'Person[]'``, an array shorthand such as ``[Person]`` or ``[[Person]]``, or
an explicit config dict ``{'type': ..., 'items': ..., 'property': ...,
'get': ..., 'set': ..., 'persist': ...}``.

Resolution runs at type-definition time, so every failure here raises
``TypeResolutionError`` immediately; there is no error list to collect into.
"""

from __future__ import annotations

import logging

from collections.abc import Mapping

from typedmodel.errors import TypeResolutionError
from typedmodel.properties import PropertyDescriptor

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Callable, Iterator, TypeAlias


logger = logging.getLogger(__name__)

Resolver: TypeAlias = Callable[[str], 'type | None']

ARRAY_SUFFIX = '[]'

DECLARATION_KEYS = frozenset({'type', 'items', 'property', 'get', 'set', 'persist', 'doc'})


# ========== ========== ========== ========== ========== TypeRegistry
class TypeRegistry:
    """
    Name to type mapping usable as a resolver.

    A registry is callable with the resolver signature ``registry(name) ->
    type | None``, so it can be passed wherever a resolver is expected.

    Parameters
    ----------
    types : mapping of str to type, optional
        Initial registrations.

    Examples
    --------
    >>> registry = TypeRegistry()
    >>> @registry.register
    ... class Address(Model):
    ...     properties = {'city': str}
    >>> Person = Model.extend(properties={'home': 'Address'}, resolver=registry)
    """

    def __init__(self, types: Mapping[str, type] | None = None) -> None:
        self._types: dict[str, type] = {}

        for name, type_ in (types or {}).items():
            self.register(type_, name)

    def __getitem__(self, name: str) -> type:
        return self._types[name]

    def __contains__(self, reference: str | type) -> bool:
        if isinstance(reference, str):
            return reference in self._types

        return reference in self._types.values()

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def __call__(self, name: str) -> type | None:
        return self._types.get(name)

    def register(self, type_: type, name: str | None = None) -> type:
        """
        Register ``type_`` under ``name`` (its class name by default).

        Returns the type, so the method can be used as a class decorator.

        Raises
        ------
        TypeResolutionError
            If ``type_`` does not satisfy the type contract.
        """
        if not is_type(type_):
            raise TypeResolutionError(f"Cannot register {type_!r}: it does not implement the type contract")

        self._types[name or type_.__name__] = type_
        return type_

    def remove(self, name: str) -> None:
        """Remove a registration. Removing an unknown name does not raise."""
        self._types.pop(name, None)


# ========== ========== ========== ========== ========== resolution
def is_type(obj: Any) -> bool:
    """True if ``obj`` is a class implementing the type contract."""
    return (isinstance(obj, type)
            and callable(getattr(obj, 'is_wrapped', None))
            and callable(getattr(obj, 'is_auto_unwrapped', None))
            and callable(getattr(obj, 'wrap', None)))


def _parse_type(type_: Any) -> type:
    from typedmodel import primitives

    if is_type(type_):
        return type_

    resolved = primitives.host_type(type_)
    if resolved is None:
        raise TypeResolutionError(
            f"Unrecognized type: {type_!r}. Expected a model type, a primitive marker or a type name."
        )

    return resolved


def _parse_type_name(name: str, resolver: Resolver | None) -> dict[str, Any]:
    from typedmodel import primitives

    if name.endswith(ARRAY_SUFFIX):
        return {
            'type': primitives.Array,
            'items': _parse_type_name(name[:-len(ARRAY_SUFFIX)], resolver),
        }

    type_ = primitives.registry(name)

    if type_ is None and resolver is not None:
        type_ = resolver(name)

    if type_ is None:
        raise TypeResolutionError(f"Invalid type: {name!r}")

    return {'type': _parse_type(type_)}


def resolve_declaration(declaration: Any, resolver: Resolver | None = None) -> dict[str, Any]:
    """
    Resolve a declaration into its canonical config.

    Parameters
    ----------
    declaration : object
        The field declaration, in any accepted form.
    resolver : callable, optional
        ``resolver(name) -> type | None`` consulted for type names that are not
        built-in.

    Returns
    -------
    dict
        A copy of the declaration config where ``type`` is a resolved type and
        ``items`` (when present) is itself a resolved config.

    Raises
    ------
    TypeResolutionError
        On unknown type names and unrecognized declaration shapes.
    """
    from typedmodel import primitives

    if isinstance(declaration, Mapping):
        config = dict(declaration)
    else:
        config = {'type': declaration}

    type_ = config.get('type')

    if type_ is None:
        config['type'] = primitives.Object

    elif isinstance(type_, (list, tuple)):
        # short-hand notation for arrays: [], [Item], [[Item]]
        if len(type_) > 1:
            raise TypeResolutionError(
                f"Array short-hand accepts at most one element declaration, got {len(type_)}"
            )

        config['type'] = primitives.Array
        config.pop('items', None)

        if type_ and type_[0] is not None:
            config['items'] = resolve_declaration(type_[0], resolver)

    elif isinstance(type_, str):
        config.pop('items', None)
        config.update(_parse_type_name(type_, resolver))

    else:
        config['type'] = _parse_type(type_)

        if config.get('items') is not None:
            config['items'] = resolve_declaration(config['items'], resolver)

    return config


def _to_descriptor(name: str, config: dict[str, Any]) -> PropertyDescriptor:
    from typedmodel import primitives

    unknown = set(config) - DECLARATION_KEYS
    if unknown:
        raise TypeResolutionError(f"{name}: unrecognized declaration keys {sorted(unknown)}")

    type_ = config['type']

    items = None
    if config.get('items') is not None and issubclass(type_, primitives.Array):
        # elements are reported under the name of the array field
        items = _to_descriptor(name, config['items'])

    getter = config.get('get')
    setter = config.get('set')

    return PropertyDescriptor(
        name,
        type_,
        storage_key=config.get('property'),
        items=items,
        getter=getter or None,
        setter=setter or None,
        persisted=config.get('persist', True) is not False,
        readable=getter is not False,
        writable=setter is not False,
        doc=config.get('doc'),
    )


def to_property_descriptor(name: str,
                           declaration: Any,
                           resolver: Resolver | None = None) -> PropertyDescriptor:
    """
    Build the descriptor of field ``name`` from its declaration.

    The storage key defaults to ``name`` unless the declaration overrides it
    with ``property``.
    """
    config = resolve_declaration(declaration, resolver)
    descriptor = _to_descriptor(name, config)

    logger.debug("Resolved property %r to %r", name, descriptor)

    return descriptor
