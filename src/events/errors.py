"""Errors raised by the integration event path."""


class AuditWriteError(Exception):
    """The audit log could not record an event.

    The audit log is the system of record, so this always reaches the
    caller.
    """


class MissingOrganizationScope(ValueError):
    """Event payload lacks an organization_id."""
