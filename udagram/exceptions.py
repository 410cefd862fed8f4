"""
Error taxonomy for the image groups service.

Every error raised on purpose by the service derives from ``UdagramError`` and
carries the HTTP status code the Lambda handlers answer with.
"""
from dataclasses import dataclass
from typing import List, Optional


class UdagramError(Exception):
    """Base exception for service errors"""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def details(self) -> Optional[list]:
        return None


@dataclass(frozen=True)
class FieldError:
    field: str
    reason: str

    def to_dict(self):
        return {'field': self.field, 'reason': self.reason}


class ValidationError(UdagramError):
    """Request body does not match its schema; lists every violation"""
    status_code = 400

    def __init__(self, errors: List[FieldError], message: str = 'Invalid request body'):
        self.errors = list(errors)
        super().__init__(message)

    @property
    def fields(self) -> List[str]:
        return [error.field for error in self.errors]

    def details(self):
        return [error.to_dict() for error in self.errors]


class NotFoundError(UdagramError):
    status_code = 404


class StorageError(UdagramError):
    """A DynamoDB, S3 or SNS call failed"""
    status_code = 500


class UnresolvableEventError(UdagramError):
    """A storage event names an object that matches no image record"""

    def __init__(self, object_key: str):
        self.object_key = object_key
        super().__init__(f"No image record for object key {object_key!r}")
