"""
Shell Variables

Name -> string mapping used for ``NAME=value`` assignments and
``$NAME`` expansion.

Author: mysh developers
Version: 1.0.0
"""

import re
from contextlib import contextmanager
from typing import Iterator, Optional

_NAME_RE = re.compile(r'[A-Za-z0-9_]+')
_REFERENCE_RE = re.compile(r'\$([A-Za-z0-9_]*)')


class VariableStore:
    """
    Shell variable table.

    Example:
        >>> store = VariableStore()
        >>> store.set('greeting', 'hi')
        >>> store.expand('$greeting there')
        'hi there'
    """

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._vars: dict[str, str] = dict(initial or {})

    def __contains__(self, name: str) -> bool:
        return name in self._vars

    def __len__(self) -> int:
        return len(self._vars)

    def get(self, name: str) -> Optional[str]:
        return self._vars.get(name)

    def set(self, name: str, value: str) -> None:
        """Assign a variable. The value is stored as given."""
        self._vars[name] = value

    def expand(self, text: str) -> str:
        """
        Replace ``$NAME`` references.

        A ``$`` that is not followed by a name is kept. Unknown names expand
        to the empty string.
        """
        def replace(match: re.Match) -> str:
            name = match.group(1)
            if not name:
                return '$'
            return self._vars.get(name, '')

        return _REFERENCE_RE.sub(replace, text)

    def assign(self, word: str) -> bool:
        """
        Apply a ``NAME=value`` word.

        The value is taken literally. Expansion belongs to the parser, which
        leaves quoted words alone, so ``A='$X'`` stores ``$X``.

        Returns:
            True if the word was an assignment and has been applied
        """
        name, value = split_assignment(word)
        if name is None:
            return False
        self.set(name, value)
        return True

    @contextmanager
    def scoped(self) -> Iterator['VariableStore']:
        """
        Work on a snapshot; the previous mapping is restored on exit.

        Used around multi-stage pipelines so that assignments made by a
        stage never leak past the pipeline.
        """
        saved = dict(self._vars)
        try:
            yield self
        finally:
            self._vars = saved


def split_assignment(word: str) -> tuple[Optional[str], str]:
    """
    Split ``NAME=value`` into its parts.

    Returns (None, '') when the word is not an assignment.
    """
    if '=' not in word:
        return None, ''
    name, _, value = word.partition('=')
    if not _NAME_RE.fullmatch(name):
        return None, ''
    return name, value


def is_assignment(word: str) -> bool:
    return split_assignment(word)[0] is not None
