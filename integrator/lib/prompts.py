"""
Operator confirmations.

Business logic asks questions through a Confirmer so that tests (and
unattended runs) can answer them without a terminal.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Confirmer(Protocol):
    """Yes/no question with a stated default."""

    def confirm(self, message: str, default: bool = True) -> bool:
        ...


def prompt_bool(message: str, default: bool = True) -> bool:
    """Prompt user for yes/no answer."""
    default_str = "Y/n" if default else "y/N"
    try:
        value = input(f"{message} [{default_str}]: ").strip().lower()
        if not value:
            return default
        return value in ("y", "yes", "true", "1")
    except EOFError:
        return default


class TerminalConfirmer:
    """Asks on stdin."""

    def confirm(self, message: str, default: bool = True) -> bool:
        return prompt_bool(message, default)


class DefaultConfirmer:
    """Takes the default answer for every question (--yes)."""

    def confirm(self, message: str, default: bool = True) -> bool:
        print(f"{message} [{'Y/n' if default else 'y/N'}]: {'y' if default else 'n'} (assumed)")
        return default
