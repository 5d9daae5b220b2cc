#  -*- coding: utf-8 -*-
"""
Enumerated types.

An enumeration is a wrapping, non-constructable type whose instances are a
fixed set of singleton members. Records store the raw value of a member;
reading the field returns the member.

Examples
--------
>>> Color = Enumeration.extend(values=['red', 'green', 'blue'], typename='Color')
>>> Color.RED is Color.red is Color.wrap('red')
True
>>> Color.RED.is_red(), str(Color.RED), Color.RED.clean()
(True, 'red', 'red')

Members may carry arbitrary raw values::

    Color = Enumeration.extend(values={'red': {'hex': '#FF0000'}})
    Color.RED.value['hex']  # '#FF0000'
"""

from __future__ import annotations

import logging

from collections.abc import Mapping

from typedmodel.model import MISSING, Model, _bind
from typedmodel.options import Options, OptionsLike

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Callable


logger = logging.getLogger(__name__)


def _predicate(member: Enumeration) -> Callable[[Enumeration], bool]:

    def predicate(self: Enumeration) -> bool:
        return self is member

    predicate.__name__ = f'is_{member.name}'
    predicate.__doc__ = f"True if this is the '{member.name}' member."

    return predicate


class Enumeration(Model):
    """
    Base of enumerated types.

    Class Attributes
    ----------------
    values : list of str or mapping
        Member names, or a mapping of member name to raw value. With a list
        the raw value of each member is its name.
    auto_upper_case : bool, default False
        Upper-case member names and string input before lookup, so ``'f'``
        coerces to the member ``F``.
    """

    values: list[str] | Mapping[str, Any] | None = None
    auto_upper_case: bool = False
    constructable = False

    _members: dict[str, Enumeration] = {}

    # ========== ========== ========== ========== ========== special methods
    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        if 'values' in cls.__dict__ and cls.values is not None:
            cls._create_members()

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"<{type(self).__name__}.{self._name}: {self.data!r}>"

    # ========== ========== ========== ========== ========== members
    @classmethod
    def _create_members(cls) -> None:
        values = cls.values

        if isinstance(values, Mapping):
            pairs = list(values.items())
        else:
            pairs = [(name, None) for name in values]

        cls._members = {}

        for name, value in pairs:
            if cls.auto_upper_case:
                name = name.upper()

            member = cls.__new__(cls)
            member._name = name
            member.data = name if value is None else value
            _bind(member.data, member)

            cls._members[name] = member

            for alias in dict.fromkeys((name, name.upper())):
                if hasattr(cls, alias):
                    logger.warning("Member %r of %s collides with an existing attribute", alias, cls.__name__)
                    continue

                setattr(cls, alias, member)

            setattr(cls, f'is_{name}', _predicate(member))

        logger.debug("Created enumeration %s with members %s", cls.__name__, list(cls._members))

    @classmethod
    def members(cls) -> list[Enumeration]:
        """Members in declaration order."""
        return list(cls._members.values())

    @classmethod
    def member_named(cls, name: str) -> Enumeration | None:
        if cls.auto_upper_case:
            name = name.upper()

        return cls._members.get(name)

    @classmethod
    def member_valued(cls, value: Any) -> Enumeration | None:
        for member in cls._members.values():
            if member.data == value:
                return member

        return None

    # ========== ========== ========== ========== ========== type API
    @classmethod
    def coerce(cls, value: Any, options: Options) -> Any:
        """Map a member, a member name or a raw value to the raw value."""
        if value is None:
            return value

        if isinstance(value, cls):
            return value.data

        member = None
        if isinstance(value, str):
            member = cls.member_named(value)

        if member is None:
            member = cls.member_valued(value)

        if member is None:
            return cls.coercion_error(value, options)

        return member.data

    @classmethod
    def wrap(cls, value: Any = MISSING, options: OptionsLike = None) -> Enumeration | None:
        """Return the member singleton denoted by ``value``."""
        if value is MISSING:
            # raises ConstructionError
            return cls()

        if isinstance(value, cls):
            return value

        raw = cls.coerce(value, options)
        if raw is None:
            return raw

        return cls.member_valued(raw)

    # ========== ========== ========== ========== ========== properties
    @property
    def name(self) -> str:
        return self._name

    @property
    def value(self) -> Any:
        return self.data
