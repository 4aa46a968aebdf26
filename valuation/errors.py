"""Exceptions raised at the persistence and catalog boundaries."""


class ValuationError(Exception):
    """Base class for all valuation engine errors."""


class ProfileValidationError(ValuationError):
    """A profile cannot be saved as given (e.g., it has no profile_id)."""


class ProfileDecodeError(ValuationError):
    """The persisted account blob is corrupt or schema-incompatible."""


class BackupRestoreError(ValuationError):
    """A backup document could not be restored."""


class CatalogLoadError(ValuationError):
    """The card catalog file is missing or invalid."""
