"""
mysh Shell Module

Line parsing and shell variables. The interactive loop and builtins
live in mysh.shell.shell and mysh.shell.builtins.
"""

from .variables import VariableStore, split_assignment, is_assignment
from .parser import CommandParser, ParsedLine, Token, TokenType, Operator, PIPE, BACKGROUND, is_pipe

__all__ = [
    'VariableStore',
    'split_assignment',
    'is_assignment',
    'CommandParser',
    'ParsedLine',
    'Token',
    'TokenType',
    'PIPE',
    'BACKGROUND',
    'Operator',
    'is_pipe',
]
