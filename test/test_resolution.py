#  -*- coding: utf-8 -*-
"""
Test suite for declaration resolution.

Tests cover:
- Every declaration form: types, markers, names, shorthands, configs
- Array suffixes and nested arrays
- Resolvers and TypeRegistry
- Resolution failures
"""

from __future__ import annotations

import datetime

import pytest

from typedmodel import (
    Model, TypeRegistry, TypeResolutionError,
    String, Integer, Number, Date, Object, Array,
    resolve_declaration, to_property_descriptor,
)


# ========== ========== ========== ========== Fixtures
@pytest.fixture
def item_type() -> type:
    """A small application type."""
    return Model.extend(properties={'id': 'integer'}, typename='Item')


@pytest.fixture
def registry(item_type: type) -> TypeRegistry:
    """Registry resolving the application type by name."""
    return TypeRegistry({'Item': item_type})


# ========== ========== ========== ========== Test declaration forms
class TestDeclarationForms:
    """Test resolution of the accepted declaration shapes."""

    def test_model_type(self, item_type: type) -> None:
        # model types resolve to themselves
        assert resolve_declaration(item_type) == {'type': item_type}

    def test_markers(self) -> None:
        # host markers resolve to primitives
        assert resolve_declaration(str)['type'] is String
        assert resolve_declaration(int)['type'] is Integer
        assert resolve_declaration(float)['type'] is Number
        assert resolve_declaration(datetime.datetime)['type'] is Date

    def test_none_is_object(self) -> None:
        # no type means Object
        assert resolve_declaration(None)['type'] is Object
        assert resolve_declaration({'persist': False})['type'] is Object

    def test_builtin_names(self) -> None:
        # built-in names resolve without a resolver
        assert resolve_declaration('integer')['type'] is Integer
        assert resolve_declaration('string')['type'] is String
        assert resolve_declaration('array')['type'] is Array

    def test_resolver_names(self, registry: TypeRegistry, item_type: type) -> None:
        # other names go through the resolver
        assert resolve_declaration('Item', registry)['type'] is item_type

    def test_plain_function_resolver(self, item_type: type) -> None:
        # any callable works as a resolver
        config = resolve_declaration('Item', lambda name: item_type if name == 'Item' else None)

        assert config['type'] is item_type

    def test_array_suffix(self, registry: TypeRegistry, item_type: type) -> None:
        # 'T[]' declares an array of T
        config = resolve_declaration('Item[]', registry)

        assert config == {'type': Array, 'items': {'type': item_type}}

    def test_nested_array_suffix(self) -> None:
        # suffixes nest
        config = resolve_declaration('integer[][]')

        assert config == {'type': Array, 'items': {'type': Array, 'items': {'type': Integer}}}

    def test_empty_shorthand(self) -> None:
        # [] is an untyped array
        assert resolve_declaration([]) == {'type': Array}

    def test_shorthand(self, item_type: type) -> None:
        # [T] and [[T]]
        assert resolve_declaration([item_type]) == {'type': Array, 'items': {'type': item_type}}
        assert resolve_declaration([[item_type]]) == {
            'type': Array, 'items': {'type': Array, 'items': {'type': item_type}}
        }

    def test_config(self, item_type: type) -> None:
        # config dicts keep their extra keys
        config = resolve_declaration({'type': list, 'items': item_type, 'property': '_items'})

        assert config == {'type': Array, 'items': {'type': item_type}, 'property': '_items'}

    def test_config_with_shorthand_type(self, item_type: type) -> None:
        # the type of a config may itself be a shorthand
        config = resolve_declaration({'type': [item_type], 'persist': False})

        assert config == {'type': Array, 'items': {'type': item_type}, 'persist': False}

    def test_does_not_mutate_declaration(self) -> None:
        # resolution works on a copy
        declaration = {'type': 'integer'}
        resolve_declaration(declaration)

        assert declaration == {'type': 'integer'}


# ========== ========== ========== ========== Test failures
class TestResolutionFailures:
    """Test invalid declarations."""

    def test_unknown_name(self) -> None:
        # unknown names fail
        with pytest.raises(TypeResolutionError, match='Invalid type'):
            resolve_declaration('Unknown')

    def test_resolver_returns_none(self, registry: TypeRegistry) -> None:
        # unresolved names fail
        with pytest.raises(TypeResolutionError):
            resolve_declaration('Other[]', registry)

    def test_long_shorthand(self) -> None:
        # shorthands accept a single element
        with pytest.raises(TypeResolutionError):
            resolve_declaration([str, int])

    def test_unrecognized_type(self) -> None:
        # arbitrary objects are not declarations
        with pytest.raises(TypeResolutionError):
            resolve_declaration(42)

        with pytest.raises(TypeResolutionError):
            resolve_declaration(complex)

    def test_unknown_config_keys(self) -> None:
        # unknown config keys fail at descriptor build time
        with pytest.raises(TypeResolutionError, match='unrecognized declaration keys'):
            to_property_descriptor('x', {'type': str, 'default': 1})

    def test_type_definition_fails(self) -> None:
        # failures surface when the type is built
        with pytest.raises(TypeResolutionError):
            Model.extend(properties={'friend': 'Unknown'})


# ========== ========== ========== ========== Test descriptors
class TestPropertyDescriptors:
    """Test descriptor construction from declarations."""

    def test_defaults(self) -> None:
        # storage key defaults to the name
        descriptor = to_property_descriptor('name', str)

        assert descriptor.name == 'name'
        assert descriptor.storage_key == 'name'
        assert descriptor.type is String
        assert descriptor.items is None
        assert descriptor.persisted
        assert descriptor.readable and descriptor.writable

    def test_storage_key_and_flags(self) -> None:
        # config keys map to descriptor fields
        getter = lambda model, descriptor: 1
        descriptor = to_property_descriptor('id', {
            'type': str, 'property': '_id', 'get': getter, 'set': False, 'persist': False, 'doc': 'Identifier.',
        })

        assert descriptor.storage_key == '_id'
        assert descriptor.getter is getter
        assert descriptor.setter is None
        assert not descriptor.writable
        assert not descriptor.persisted
        assert descriptor.doc == 'Identifier.'

    def test_items(self, item_type: type) -> None:
        # array descriptors carry an element descriptor named after the field
        descriptor = to_property_descriptor('things', [item_type])

        assert descriptor.type is Array
        assert descriptor.items.type is item_type
        assert descriptor.items.name == 'things'

    def test_integer_declarations(self) -> None:
        # name, type and array forms of the same declaration agree
        Something = Model.extend(properties={
            'first': 'integer',
            'second': Integer,
            'firstArray': ['integer'],
            'secondArray': [Integer],
        })

        assert Something.get_property('first').type is Integer
        assert Something.get_property('second').type is Integer
        assert Something.get_property('firstArray').type is Array
        assert Something.get_property('secondArray').type is Array
        assert Something.get_property('firstArray').items.type is Integer
        assert Something.get_property('secondArray').items.type is Integer

    def test_repr(self) -> None:
        # repr names the type
        descriptor = to_property_descriptor('id', {'type': str, 'property': '_id'})

        assert repr(descriptor) == "PropertyDescriptor(name='id', type=String, storage_key='_id')"


# ========== ========== ========== ========== Test TypeRegistry
class TestTypeRegistry:
    """Test the name to type registry."""

    def test_register_decorator(self) -> None:
        # register returns the type
        registry = TypeRegistry()

        @registry.register
        class Address(Model):
            properties = {'city': str}

        assert registry('Address') is Address
        assert registry['Address'] is Address
        assert 'Address' in registry
        assert Address in registry
        assert len(registry) == 1
        assert list(registry) == ['Address']

    def test_register_alias(self, item_type: type) -> None:
        # types can be registered under another name
        registry = TypeRegistry()
        registry.register(item_type, 'Thing')

        assert registry('Thing') is item_type
        assert registry('Item') is None

    def test_remove(self, registry: TypeRegistry) -> None:
        # removal never raises
        registry.remove('Item')
        registry.remove('Item')

        assert 'Item' not in registry

    def test_rejects_non_types(self) -> None:
        # only types implementing the contract are accepted
        with pytest.raises(TypeResolutionError):
            TypeRegistry().register(str)
