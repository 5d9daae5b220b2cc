#  -*- coding: utf-8 -*-
"""
Typedmodel: runtime type definitions over plain records.

Typedmodel lets applications declare typed schemas at runtime and use them to
read, write, validate and normalize plain Python records (``dict`` trees such
as decoded JSON) without copying them.

Key Features
------------
- **Declarative types**: class statements or ``Model.extend`` with property
  declarations in many shorthand forms (``str``, ``'integer'``, ``[Person]``,
  ``'Person[]'``, explicit configs)
- **Wrap, don't copy**: instances are views over the raw record; every write
  is coerced and stored back into it
- **Two error modes**: raise on the first bad value, or collect every
  diagnostic into a list
- **Clean output**: ``clean()``/``stringify()`` give canonical snapshots with
  persisted fields only
- **Rich terminal output**: schema and instance displays with the Rich library

Modules
-------
model
    The extension engine: ModelMetatype, Model, clean and stringify
resolution
    Declaration resolution and TypeRegistry
primitives
    Built-in String, Number, Integer, Boolean, Date, Object, Array, Function
enumeration
    Enumerated types with singleton members
display
    Rich rendering of types and instances

Examples
--------
>>> from typedmodel import Model
>>>
>>> class Address(Model):
...     properties = {'city': str, 'state': str}
>>>
>>> class Person(Model):
...     properties = {'name': str, 'age': int, 'address': Address, 'tags': [str]}
>>>
>>> raw = {'name': 'John', 'age': '42', 'address': {'city': 'Durham'}}
>>> person = Person.wrap(raw)
>>> person.age, raw['age']
(42, 42)
>>> person.address.city
'Durham'
>>> errors = []
>>> Person.wrap({'age': 'abc', 'nickname': 'J'}, errors) and errors
["age: Invalid value: 'abc'", 'Unrecognized property: nickname']
"""

import logging

from .errors import *
from .options import Options, Result
from .properties import PropertyDescriptor, PropertyTable, ModelProperty
from .resolution import TypeRegistry, resolve_declaration, to_property_descriptor
from .model import Model, ModelMetatype, is_model, unwrap, wrapper_of, clean, stringify
from .primitives import String, Number, Integer, Boolean, Date, Object, Array, Function
from .enumeration import Enumeration
from .display import DisplaySettings, SchemaDisplay, InstanceDisplay, describe, to_frame


__all__ = [
    "ModelError",
    "InvalidValueError",
    "UnrecognizedPropertyError",
    "ConstructionError",
    "WrapError",
    "TypeResolutionError",
    "ValidationError",
    "Options",
    "Result",
    "PropertyDescriptor",
    "PropertyTable",
    "ModelProperty",
    "TypeRegistry",
    "resolve_declaration",
    "to_property_descriptor",
    "Model",
    "ModelMetatype",
    "is_model",
    "unwrap",
    "wrapper_of",
    "clean",
    "stringify",
    "String",
    "Number",
    "Integer",
    "Boolean",
    "Date",
    "Object",
    "Array",
    "Function",
    "Enumeration",
    "DisplaySettings",
    "SchemaDisplay",
    "InstanceDisplay",
    "describe",
    "to_frame",
]


logging.getLogger(__name__).addHandler(logging.NullHandler())


try:
    # this will run if typedmodel is installed
    from importlib.metadata import metadata, PackageNotFoundError

    meta = metadata('typedmodel')

    __author__ = meta['Author-email']
    __license__ = meta['License']
    __version__ = meta['Version']

except PackageNotFoundError:
    # this will run during development
    import toml
    from pathlib import Path

    pyproject_filepath = Path(__file__).parent.parent / "pyproject.toml"

    with pyproject_filepath.open() as file:
        pyproject = toml.load(file)

    __version__ = pyproject["project"]["version"]
    __author__ = pyproject["project"]["authors"][0]["name"]
    __license__ = pyproject["project"]["license"]["text"]
