"""
Command Parser Module

Turns an input line into an argument vector for the pipeline executor.

Author: mysh developers
Version: 1.0.0
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List

from .variables import VariableStore


class Operator(str):
    """
    A control operator inside an argument vector.

    Compares equal to its text, but only the parser creates one: a quoted
    word that reads ``|`` stays a plain ``str``.
    """


PIPE = Operator('|')
BACKGROUND = Operator('&')


def is_pipe(word: str) -> bool:
    """True for a pipe marker produced by the parser."""
    return isinstance(word, Operator) and word == PIPE


class TokenType(Enum):
    """Token types for command parsing."""
    WORD = "word"
    PIPE = "pipe"
    BACKGROUND = "background"


@dataclass
class Token:
    """A parsed token."""
    type: TokenType
    value: str
    quoted: bool = False  # single-quoted words are not expanded


@dataclass
class ParsedLine:
    """
    A parsed command line.

    ``argv`` keeps pipe markers in place; the executor splits on them.
    """
    argv: List[str] = field(default_factory=list)
    background: bool = False

    @property
    def stage_count(self) -> int:
        return sum(1 for word in self.argv if is_pipe(word)) + 1


class CommandParser:
    """
    Parses shell command lines.

    Handles:
    - Command and arguments
    - Pipes (|)
    - Trailing background marker (&)
    - Single and double quotes, backslash escapes
    - $NAME expansion (not inside single quotes)

    Example:
        >>> parser = CommandParser(VariableStore())
        >>> line = parser.parse("ls | wc &")
        >>> line.argv, line.background
        (['ls', '|', 'wc'], True)
    """

    def __init__(self, variables: Optional[VariableStore] = None):
        self._variables = variables if variables is not None else VariableStore()
        self._history: List[str] = []

    def parse(self, line: str) -> Optional[ParsedLine]:
        """
        Parse a command line.

        Returns:
            ParsedLine, or None for blank lines and comments
        """
        line = line.strip()

        if not line or line.startswith('#'):
            return None

        self._history.append(line)

        tokens = self.tokenize(line)
        if not tokens:
            return None

        return self._parse_tokens(tokens)

    def tokenize(self, line: str) -> List[Token]:
        """Convert a line into tokens."""
        tokens: List[Token] = []
        current = ""
        in_word = False
        single_quoted = False
        in_quote = None
        i = 0

        def flush() -> None:
            nonlocal current, in_word, single_quoted
            if in_word:
                tokens.append(Token(TokenType.WORD, current, quoted=single_quoted))
            current = ""
            in_word = False
            single_quoted = False

        while i < len(line):
            char = line[i]

            if in_quote:
                if char == in_quote:
                    in_quote = None
                elif char == '\\' and in_quote == '"' and i + 1 < len(line):
                    current += line[i + 1]
                    i += 1
                else:
                    current += char
                i += 1
                continue

            if char in ('"', "'"):
                in_quote = char
                in_word = True
                if char == "'":
                    single_quoted = True
                i += 1
                continue

            if char == '\\' and i + 1 < len(line):
                current += line[i + 1]
                in_word = True
                i += 2
                continue

            if char == PIPE:
                flush()
                tokens.append(Token(TokenType.PIPE, PIPE))
                i += 1
                continue

            if char == BACKGROUND:
                flush()
                tokens.append(Token(TokenType.BACKGROUND, BACKGROUND))
                i += 1
                continue

            if char.isspace():
                flush()
                i += 1
                continue

            current += char
            in_word = True
            i += 1

        flush()
        return tokens

    def _parse_tokens(self, tokens: List[Token]) -> ParsedLine:
        """Build the argument vector, expanding variables."""
        parsed = ParsedLine()

        if tokens[-1].type == TokenType.BACKGROUND:
            parsed.background = True
            tokens = tokens[:-1]

        for token in tokens:
            if token.type == TokenType.PIPE:
                parsed.argv.append(PIPE)
            elif token.type == TokenType.BACKGROUND:
                # only a trailing '&' is a marker
                parsed.argv.append('&')
            elif token.quoted:
                parsed.argv.append(token.value)
            else:
                parsed.argv.append(self._variables.expand(token.value))

        return parsed

    def get_history(self) -> List[str]:
        """Get command history."""
        return self._history

    def clear_history(self) -> None:
        """Clear command history."""
        self._history.clear()
