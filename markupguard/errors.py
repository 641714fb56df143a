"""Exception hierarchy for markupguard.

Only configuration problems are errors. Dropping tags, unwrapping tags,
stripping attributes and rejecting URLs are normal policy outcomes and never
raise.
"""


class MarkupGuardError(Exception):
    """Base exception for all markupguard errors."""
    pass


class ConfigurationError(MarkupGuardError):
    """Raised when the sanitizer cannot be set up.

    This covers a missing document builder (no injected factory and no usable
    ambient parser) and a policy file that violates the tag invariants.
    """
    pass
