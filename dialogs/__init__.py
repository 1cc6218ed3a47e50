"""Dialog stack runtime and the guessing game dialog."""

from .dialog_context import DialogRuntime
from .guess_dialog import GuessDialog, GuessCheck, GuessStep, as_whole_number, check_guess

__all__ = [
    'DialogRuntime',
    'GuessDialog',
    'GuessCheck',
    'GuessStep',
    'as_whole_number',
    'check_guess',
]
