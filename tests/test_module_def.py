#!/usr/bin/env python3
"""
Unit tests for modules, bindings and the provider registry.
"""

import unittest

from plugbox import Binding, BindingType, ModuleDef, ProviderRegistry


class TestModuleDef(unittest.TestCase):
    """Test the binding DSL."""

    def test_value_and_func_bindings(self):
        def make_client(url):
            return url

        module = ModuleDef()
        module.make("url").using().value("http://localhost")
        module.make("client").using().func(make_client)

        self.assertEqual(len(module), 2)
        url, client = module.bindings
        self.assertEqual(url, Binding("url", BindingType.VALUE, "http://localhost"))
        self.assertEqual(client.binding_type, BindingType.FACTORY)
        self.assertIs(client.implementation, make_client)

    def test_value_binding_keeps_callables_as_values(self):
        module = ModuleDef()
        module.make("callback").using().value(print)

        (binding,) = module.bindings
        self.assertFalse(binding.is_factory)

    def test_adding_bindings_does_not_mutate_previous_list(self):
        module = ModuleDef()
        module.make("a").using().value(1)
        snapshot = module.bindings
        module.make("b").using().value(2)

        self.assertEqual(len(snapshot), 1)
        self.assertEqual(module.names(), {"a", "b"})

    def test_binding_str(self):
        def factory():
            return None

        self.assertEqual(str(Binding.factory("svc", factory)), "svc -> factory (factory)")
        self.assertEqual(str(Binding.value("port", 80)), "port -> 80 (value)")


class TestProviderRegistry(unittest.TestCase):
    """Test turning flat mappings into modules."""

    def test_build_classifies_entries(self):
        class Service:
            pass

        def factory():
            return 1

        module = ProviderRegistry.build({"factory": factory, "cls": Service, "value": 42, "none": None})
        types = {binding.name: binding.binding_type for binding in module}

        self.assertEqual(
            types,
            {
                "factory": BindingType.FACTORY,
                "cls": BindingType.FACTORY,
                "value": BindingType.VALUE,
                "none": BindingType.VALUE,
            },
        )

    def test_build_is_deterministic(self):
        entries = {"a": 1, "b": len, "c": "x"}
        self.assertEqual(ProviderRegistry.build(entries).bindings, ProviderRegistry.build(entries).bindings)

    def test_build_empty(self):
        self.assertEqual(len(ProviderRegistry.build({})), 0)

    def test_values_never_creates_factories(self):
        module = ProviderRegistry.values({"fn": len, "n": 1})
        self.assertTrue(all(binding.binding_type is BindingType.VALUE for binding in module))


if __name__ == "__main__":
    unittest.main()
