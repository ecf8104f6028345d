"""Domain errors raised by the lead reconciliation core and its data source."""


class LeadboardError(Exception):
    """Base class for lead dashboard errors."""


class FetchError(LeadboardError):
    """Listing or reading leads from the backend failed."""


class DecodeError(LeadboardError):
    """A stored payload (interactions, custom fields) could not be decoded.

    Always recovered where it is raised by substituting an empty or default value.
    """

    def __init__(self, field: str, reason: str):
        super().__init__(f"Could not decode {field}: {reason}")
        self.field = field
        self.reason = reason


class UpdateError(LeadboardError):
    """Persisting an edit failed.

    ``reconciled`` holds the lead as re-read from the backend after the failure,
    or None when the re-read failed too.
    """

    def __init__(self, message: str, reconciled=None):
        super().__init__(message)
        self.reconciled = reconciled


class LeadNotFoundError(LeadboardError):
    def __init__(self, lead_id: str):
        super().__init__(f"Lead {lead_id} not found")
        self.lead_id = lead_id


class EditInProgressError(LeadboardError):
    def __init__(self, lead_id: str):
        super().__init__(f"A save for lead {lead_id} is already in progress")
        self.lead_id = lead_id


class InteractionHistoryError(LeadboardError, ValueError):
    """An edit tried to rewrite or drop existing interaction history."""
