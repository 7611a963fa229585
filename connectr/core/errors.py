"""
Domain failures raised by services.

Each carries the HTTP status the API renders it with; routers let them
propagate and the handlers in ``connectr.main`` shape the response.
"""


class ConnectrError(Exception):
    status_code = 500
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidOperationError(ConnectrError):
    status_code = 400
    kind = "invalid_operation"


class UnauthorizedError(ConnectrError):
    status_code = 401
    kind = "unauthorized"


class ForbiddenError(ConnectrError):
    status_code = 403
    kind = "forbidden"


class NotFoundError(ConnectrError):
    status_code = 404
    kind = "not_found"


class ConflictError(ConnectrError):
    status_code = 409
    kind = "conflict"
