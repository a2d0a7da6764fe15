#!/usr/bin/env python3
"""
Unit tests for program hook discovery.
"""

import sys
import types
import unittest
from types import SimpleNamespace

from plugbox import Program, ProgramError


class TestProgram(unittest.TestCase):
    """Test wrapping objects and modules as programs."""

    def test_main_is_required(self):
        with self.assertRaises(ProgramError):
            Program(SimpleNamespace(setup=lambda: None))

    def test_hooks_must_be_callable(self):
        with self.assertRaises(ProgramError):
            Program(SimpleNamespace(main=lambda: None, setup="not callable"))

    def test_missing_hooks_are_noops(self):
        program = Program(SimpleNamespace(main=lambda: "main"))

        self.assertEqual(program.main()(), "main")
        self.assertIsNone(program.setup()())
        self.assertIsNone(program.configure()(object()))
        self.assertFalse(program.has_preconditions())
        self.assertFalse(program.has_postconditions())
        self.assertFalse(program.has_teardown())

    def test_present_hooks_are_returned_as_is(self):
        def preconditions(x):
            return x

        def postconditions(x):
            return x

        program = Program(SimpleNamespace(main=lambda: None, preconditions=preconditions, postconditions=postconditions))

        self.assertIs(program.preconditions(), preconditions)
        self.assertIs(program.postconditions(), postconditions)
        self.assertTrue(program.has_preconditions())
        self.assertTrue(program.has_postconditions())

    def test_class_instance_hooks_are_bound_methods(self):
        class Checkout:
            def main(self, cart):
                return len(cart)

            def teardown(self):
                return None

        program = Program(Checkout())

        self.assertEqual(program.main()(["a", "b"]), 2)
        self.assertTrue(program.has_teardown())

    def test_unknown_hook(self):
        program = Program(SimpleNamespace(main=lambda: None))

        with self.assertRaises(KeyError):
            program.hook("serve")

    def test_load_module_by_name(self):
        module = types.ModuleType("plugbox_test_program")
        module.main = lambda: "loaded"  # type: ignore[attr-defined]
        sys.modules[module.__name__] = module
        self.addCleanup(sys.modules.pop, module.__name__)

        program = Program.load("plugbox_test_program")

        self.assertIs(program.source, module)
        self.assertEqual(program.main()(), "loaded")


if __name__ == "__main__":
    unittest.main()
