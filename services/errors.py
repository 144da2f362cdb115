"""
Service Errors

Stable error kinds shared by every service so route handlers can map
failures to HTTP responses without parsing messages.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(Enum):
    VALIDATION = 'validation'
    NOT_FOUND = 'not_found'
    STATE_GUARD = 'state_guard'
    CONFLICT = 'conflict'
    INTERNAL = 'internal'


HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.STATE_GUARD: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]

    def to_dict(self):
        return {'error': self.message, 'kind': self.kind.value}

    def __str__(self):
        return self.message


def validation_error(message: str) -> ServiceError:
    return ServiceError(ErrorKind.VALIDATION, message)


def not_found(message: str) -> ServiceError:
    return ServiceError(ErrorKind.NOT_FOUND, message)


def state_guard(message: str) -> ServiceError:
    return ServiceError(ErrorKind.STATE_GUARD, message)


def conflict(message: str) -> ServiceError:
    return ServiceError(ErrorKind.CONFLICT, message)


def internal_error(message: str) -> ServiceError:
    return ServiceError(ErrorKind.INTERNAL, message)
