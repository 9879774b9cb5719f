"""Exception hierarchy for the session store and the suggestion seam."""


class OntoScopeError(Exception):
    """Base class for all errors raised by the package."""


class NotFoundError(OntoScopeError):
    """A session, axis value or competency question id does not exist."""


class DuplicateError(OntoScopeError):
    """A CQ text or an axis value already exists in the session."""


class ValidationError(OntoScopeError):
    """A record failed a field-level check (empty text, bad dimension...)."""


class SuggestionError(OntoScopeError):
    """The suggestion provider failed to produce a result."""
