"""
mysh - A small interactive shell

Runs programs and pipelines, tracks background jobs and can host a
multi-client TCP broadcast server from the prompt.
"""

__version__ = "1.0.0"
__author__ = "mysh developers"

from .shell.shell import Shell, create_shell

__all__ = [
    'Shell',
    'create_shell',
]
