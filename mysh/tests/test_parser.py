#!/usr/bin/env python3
"""
mysh Parser and Variable Tests

Run with: python -m pytest mysh/tests -v
"""

import unittest

from mysh.process.executor import split_pipeline
from mysh.shell.parser import CommandParser, TokenType, is_pipe
from mysh.shell.variables import VariableStore, is_assignment, split_assignment


class TestVariables(unittest.TestCase):
    """Test shell variables."""

    def test_assignment_words(self):
        self.assertEqual(split_assignment("NAME=value"), ("NAME", "value"))
        self.assertEqual(split_assignment("x=a=b"), ("x", "a=b"))
        self.assertEqual(split_assignment("x="), ("x", ""))
        self.assertFalse(is_assignment("=value"))
        self.assertFalse(is_assignment("a-b=1"))
        self.assertFalse(is_assignment("ls"))

    def test_expand(self):
        store = VariableStore({'who': 'world'})

        self.assertEqual(store.expand("hello $who"), "hello world")
        self.assertEqual(store.expand("$missing"), "")
        self.assertEqual(store.expand("cost $"), "cost $")

    def test_assign_stores_value_verbatim(self):
        """assign() keeps the text it is given; expansion is the parser's job."""
        store = VariableStore()
        self.assertTrue(store.assign("a=1"))
        self.assertTrue(store.assign("b=$a$a"))

        self.assertEqual(store.get('b'), "$a$a")
        self.assertFalse(store.assign("echo"))

    def test_scoped_restores(self):
        store = VariableStore({'x': 'outer'})

        with store.scoped():
            store.set('x', 'inner')
            store.set('y', 'new')
            self.assertEqual(store.get('x'), 'inner')

        self.assertEqual(store.get('x'), 'outer')
        self.assertNotIn('y', store)


class TestParser(unittest.TestCase):
    """Test the command line parser."""

    def setUp(self):
        self.variables = VariableStore()
        self.parser = CommandParser(self.variables)

    def test_simple_command(self):
        line = self.parser.parse("ls -la /tmp")

        self.assertEqual(line.argv, ['ls', '-la', '/tmp'])
        self.assertFalse(line.background)
        self.assertEqual(line.stage_count, 1)

    def test_blank_and_comment(self):
        self.assertIsNone(self.parser.parse(""))
        self.assertIsNone(self.parser.parse("   "))
        self.assertIsNone(self.parser.parse("# note"))

    def test_pipeline(self):
        line = self.parser.parse("cat f|wc | sort")

        self.assertEqual(line.argv, ['cat', 'f', '|', 'wc', '|', 'sort'])
        self.assertEqual(line.stage_count, 3)

    def test_background_marker(self):
        """Only a trailing & marks the line as background."""
        line = self.parser.parse("sleep 5 &")
        self.assertEqual(line.argv, ['sleep', '5'])
        self.assertTrue(line.background)

        line = self.parser.parse("sleep 5&")
        self.assertTrue(line.background)

        line = self.parser.parse("echo a & b")
        self.assertEqual(line.argv, ['echo', 'a', '&', 'b'])
        self.assertFalse(line.background)

    def test_quotes(self):
        self.variables.set('x', 'X')

        line = self.parser.parse("echo \"a b $x\" 'c | $x' d\\ e")

        self.assertEqual(line.argv, ['echo', 'a b X', 'c | $x', 'd e'])

    def test_quoted_bar_is_a_word(self):
        """A quoted '|' is an argument, not a pipe."""
        for text in ('echo "|"', "echo '|'", "echo \\|"):
            line = self.parser.parse(text)

            self.assertEqual(line.argv, ['echo', '|'])
            self.assertEqual(line.stage_count, 1)
            self.assertEqual(split_pipeline(line.argv), [['echo', '|']])

    def test_pipe_marker_splits(self):
        line = self.parser.parse('echo "|" | cat')

        self.assertTrue(is_pipe(line.argv[2]))
        self.assertFalse(is_pipe(line.argv[1]))
        self.assertEqual(split_pipeline(line.argv), [['echo', '|'], ['cat']])

    def test_assignment_expanded_once(self):
        """Unquoted values expand when parsed; single-quoted values stay literal."""
        self.variables.set('X', 'expanded')

        for text in ("A='$X'", "B=$X", "C=$X$X"):
            self.variables.assign(self.parser.parse(text).argv[0])

        self.assertEqual(self.variables.get('A'), '$X')
        self.assertEqual(self.variables.get('B'), 'expanded')
        self.assertEqual(self.variables.get('C'), 'expandedexpanded')

    def test_tokenize_types(self):
        tokens = self.parser.tokenize("a | b &")
        self.assertEqual(
            [t.type for t in tokens],
            [TokenType.WORD, TokenType.PIPE, TokenType.WORD, TokenType.BACKGROUND]
        )

    def test_expansion(self):
        self.variables.set('dir', '/tmp')

        line = self.parser.parse("ls $dir $nothing")

        self.assertEqual(line.argv, ['ls', '/tmp', ''])

    def test_history(self):
        self.parser.parse("echo one")
        self.parser.parse("")
        self.parser.parse("echo two")

        self.assertEqual(self.parser.get_history(), ["echo one", "echo two"])
        self.parser.clear_history()
        self.assertEqual(self.parser.get_history(), [])


if __name__ == '__main__':
    unittest.main(verbosity=2)
