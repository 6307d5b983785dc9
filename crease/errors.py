"""
Failures raised by the engines. Every one is scoped to the action that
raised it; none leaves partial state behind in the store.
"""


class CreaseError(Exception):
    """Base class for scoring and tournament failures"""


class ValidationError(CreaseError, ValueError):
    """A requested action breaks a cricket or input rule. Nothing was written."""


class LockError(CreaseError):
    """Another admin holds the scoring lock for this match"""


class MatchNotFound(CreaseError, LookupError):
    pass


class TournamentNotFound(CreaseError, LookupError):
    pass


class StoreError(CreaseError):
    """The document store rejected a read or write"""
