"""Cooperative cancellation shared by every layer of a translation job."""

from .errors import TranslationCancelled


class CancellationToken:
    """A flag that is set once and checked at every retry and batch boundary.

    Setting it does not interrupt a backend call that is already running;
    the call finishes and the next check raises TranslationCancelled.
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Request cancellation of everything using this token."""
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise TranslationCancelled()


def check_cancelled(token: CancellationToken | None) -> None:
    """Raise TranslationCancelled if a token is given and has been set."""
    if token is not None:
        token.raise_if_cancelled()
