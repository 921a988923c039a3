"""
Domain errors for jobs and recurring jobs.

Each error carries the HTTP status it maps to; main.py registers a single
exception handler that turns them into JSON responses.
"""

from typing import Optional


class JobsError(Exception):
    """Base class for domain errors surfaced to API callers"""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidFrequency(JobsError):
    status_code = 422

    def __init__(self, frequency):
        super().__init__(f"Invalid frequency: {frequency!r}")
        self.frequency = frequency


class DefinitionNotFound(JobsError):
    status_code = 404

    def __init__(self, definition_id: int):
        super().__init__("Recurring job not found")
        self.definition_id = definition_id


class InstanceNotFound(JobsError):
    status_code = 404

    def __init__(self, instance_id: int):
        super().__init__("Job not found")
        self.instance_id = instance_id


class ClientNotFound(JobsError):
    status_code = 404

    def __init__(self, client_id: int):
        super().__init__("Client not found")
        self.client_id = client_id


class StoreWriteFailure(JobsError):
    """A persistence error on one record; batch callers collect these"""

    status_code = 503

    def __init__(self, operation: str, reason: str, record_id: Optional[int] = None):
        target = f" #{record_id}" if record_id is not None else ""
        super().__init__(f"Failed to {operation}{target}: {reason}")
        self.operation = operation
        self.reason = reason
        self.record_id = record_id


class VersionConflict(JobsError):
    status_code = 409

    def __init__(self, record: str, record_id: int, expected: Optional[int], actual: Optional[int]):
        super().__init__(
            f"{record} {record_id} was modified by another request "
            f"(expected version {expected}, found {actual})"
        )
        self.record_id = record_id
        self.expected = expected
        self.actual = actual


class InvalidDeleteScope(JobsError):
    status_code = 400


class InvalidStatusTransition(JobsError):
    status_code = 409


class FeatureNotAvailable(JobsError):
    status_code = 403


class InvalidSchedule(JobsError):
    status_code = 422
