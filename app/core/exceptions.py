"""
Domain errors raised by services and guards.

Each error carries the HTTP status the boundary handler maps it to and a
machine-readable message code such as "ROLE_NOT_FOUND".
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class BadRequestError(AppError):
    """Validation failure or malformed identifier"""
    status_code = 400

    def __init__(self, message: str = "BAD_REQUEST"):
        super().__init__(message)


class InvalidInputError(BadRequestError):
    """Value outside a closed enumeration"""

    def __init__(self, message: str = "INVALID_INPUT"):
        super().__init__(message)


class ConflictError(BadRequestError):
    """Uniqueness constraint violated"""

    def __init__(self, message: str = "ALREADY_EXISTS"):
        super().__init__(message)


class UnauthorizedError(AppError):
    """Missing, invalid, expired or revoked credentials"""
    status_code = 401

    def __init__(self, message: str = "UNAUTHORIZED"):
        super().__init__(message)


class ForbiddenError(AppError):
    """Authenticated but lacking a role or permission"""
    status_code = 403

    def __init__(self, message: str = "FORBIDDEN"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, message: str = "NOT_FOUND"):
        super().__init__(message)
