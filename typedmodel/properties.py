#  -*- coding: utf-8 -*-
"""
Property descriptors and the layered property table.

A ``PropertyDescriptor`` is the immutable metadata of one declared field. A
``PropertyTable`` holds the descriptors declared at one level of a derivation
chain plus a pointer to the table of the parent type, so a derived declaration
shadows an ancestor's without removing it. ``ModelProperty`` is the attribute
descriptor installed on model classes so fields can be read and written as
plain attributes.
"""

from __future__ import annotations

from collections.abc import Mapping

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Callable, Iterator, TypeAlias, Self, TYPE_CHECKING

if TYPE_CHECKING:
    from typedmodel.model import Model


Getter: TypeAlias = Callable[['Model', 'PropertyDescriptor'], Any]
Setter: TypeAlias = Callable[['Model', 'PropertyDescriptor', Any], None]


class PropertyDescriptor:
    """
    Immutable metadata describing one declared field.

    Parameters
    ----------
    name : str
        External name, used for accessors and diagnostics.
    type : type
        The resolved type of the field.
    storage_key : str, optional
        Key of the value inside the raw record. Defaults to ``name``.
    items : PropertyDescriptor, optional
        Element descriptor, only meaningful when ``type`` is the array type.
    getter : callable, optional
        Custom ``getter(model, descriptor)`` replacing storage reads.
    setter : callable, optional
        Custom ``setter(model, descriptor, value)`` replacing storage writes.
        Coercion still runs before it is called.
    persisted : bool, default True
        Whether the field appears in ``clean()`` output.
    readable : bool, default True
        Whether a ``get_<name>`` accessor is generated.
    writable : bool, default True
        Whether a ``set_<name>`` accessor is generated.
    doc : str, optional
        Documentation of the field.
    """

    __slots__ = ('_name', '_storage_key', '_type', '_items',
                 '_getter', '_setter', '_persisted',
                 '_readable', '_writable', '_doc')

    def __init__(self,
                 name: str,
                 type: type,
                 *,
                 storage_key: str | None = None,
                 items: PropertyDescriptor | None = None,
                 getter: Getter | None = None,
                 setter: Setter | None = None,
                 persisted: bool = True,
                 readable: bool = True,
                 writable: bool = True,
                 doc: str | None = None) -> None:

        self._name: str = name
        self._storage_key: str = storage_key or name
        self._type: type = type
        self._items: PropertyDescriptor | None = items
        self._getter: Getter | None = getter
        self._setter: Setter | None = setter
        self._persisted: bool = persisted
        self._readable: bool = readable
        self._writable: bool = writable
        self._doc: str | None = doc

    def __repr__(self) -> str:
        text = f"PropertyDescriptor(name={self._name!r}, type={self._type.__name__}"

        if self._storage_key != self._name:
            text += f", storage_key={self._storage_key!r}"

        if self._items is not None:
            text += f", items={self._items!r}"

        return text + ')'

    @property
    def name(self) -> str:
        return self._name

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def type(self) -> type:
        return self._type

    @property
    def items(self) -> PropertyDescriptor | None:
        return self._items

    @property
    def getter(self) -> Getter | None:
        return self._getter

    @property
    def setter(self) -> Setter | None:
        return self._setter

    @property
    def persisted(self) -> bool:
        return self._persisted

    @property
    def readable(self) -> bool:
        return self._readable

    @property
    def writable(self) -> bool:
        return self._writable

    @property
    def doc(self) -> str | None:
        return self._doc


class PropertyTable(Mapping):
    """
    Descriptors declared at one derivation level, chained to the parent level.

    Lookup (``table[key]``) accepts either an external name or a storage key
    and walks the chain from this level toward the root, so the most derived
    declaration of a name wins. ``descriptors()`` enumerates the effective
    descriptor set: most derived level first, declaration order within a
    level, each name once.

    A table is filled while its type is being built and frozen afterwards.

    Parameters
    ----------
    parent : PropertyTable, optional
        The table of the base type.
    """

    __slots__ = ('_own', '_declared', '_parent', '_frozen')

    def __init__(self, parent: PropertyTable | None = None) -> None:
        self._own: dict[str, PropertyDescriptor] = {}
        self._declared: list[PropertyDescriptor] = []
        self._parent: PropertyTable | None = parent
        self._frozen: bool = False

    def __repr__(self) -> str:
        names = ', '.join(descriptor.name for descriptor in self.descriptors())
        return f"PropertyTable({names})"

    def __getitem__(self, key: str) -> PropertyDescriptor:
        for table in self.levels():
            if key in table._own:
                return table._own[key]

        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        seen = set()
        for table in self.levels():
            for key in table._own:
                if key not in seen:
                    seen.add(key)
                    yield key

    def __len__(self) -> int:
        return sum(1 for _ in self)

    @property
    def parent(self) -> PropertyTable | None:
        return self._parent

    def add(self, descriptor: PropertyDescriptor) -> None:
        """
        Register ``descriptor`` at this level by name and storage key.

        Raises
        ------
        RuntimeError
            If the table is frozen.
        """
        if self._frozen:
            raise RuntimeError("Cannot add properties to a frozen property table")

        self._declared.append(descriptor)
        self._own[descriptor.name] = descriptor

        if descriptor.storage_key != descriptor.name:
            self._own.setdefault(descriptor.storage_key, descriptor)

    def freeze(self) -> Self:
        self._frozen = True
        return self

    def levels(self) -> Iterator[PropertyTable]:
        """Yield this table and its ancestors, most derived first."""
        table = self
        while table is not None:
            yield table
            table = table._parent

    def own_descriptors(self) -> list[PropertyDescriptor]:
        """Descriptors declared at this level, in declaration order."""
        return list(self._declared)

    def descriptors(self) -> Iterator[PropertyDescriptor]:
        seen = set()
        for table in self.levels():
            for descriptor in table._declared:
                if descriptor.name not in seen:
                    seen.add(descriptor.name)
                    yield descriptor


EMPTY_PROPERTIES = PropertyTable().freeze()
"""Property table of types that declare no properties."""


class ModelProperty:
    """
    Attribute descriptor reading and writing one field through the pipeline.

    ``instance.name`` is equivalent to ``instance.get_name()`` and
    ``instance.name = value`` to ``instance.set_name(value)``, i.e. writes use
    throwing mode.
    """

    def __init__(self, descriptor: PropertyDescriptor) -> None:
        self.descriptor: PropertyDescriptor = descriptor
        self.name: str = descriptor.name
        self.__doc__: str | None = descriptor.doc

    def __set_name__(self, owner: type, name: str) -> None:
        self.owner: type = owner
        self.name = name

    def __get__(self, instance: Model | None, owner: type) -> Any:
        if instance is None:
            # Accessing from class, return descriptor for introspection
            return self

        if not self.descriptor.readable:
            raise AttributeError(f"unreadable attribute '{self.name}'")

        return instance._read(self.descriptor)

    def __set__(self, instance: Model, value: Any) -> None:
        if not self.descriptor.writable:
            raise AttributeError(f"can't set attribute '{self.name}' (read-only property)")

        instance._write(self.descriptor, value)

    def __delete__(self, instance: Model) -> None:
        raise AttributeError(f"can't delete attribute '{self.name}'")
