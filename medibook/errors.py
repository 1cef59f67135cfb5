"""Exceptions raised by the storage collaborators."""


class ConflictError(Exception):
    """The store rejected a write because it violates a uniqueness rule.

    For appointments this means another non-cancelled booking already
    holds the same (doctor, date, time).
    """


class StoreUnavailableError(Exception):
    """A directory, booking or ledger store could not be reached."""
