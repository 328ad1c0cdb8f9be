"""
Error taxonomy for the train operations engine.

Every failure carries a stable ``kind`` and a human-readable message. The
HTTP layer renders them as ``{"error": kind, "detail": message}``.
"""


class TrainOpsError(Exception):
    kind = "InternalError"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"error": self.kind, "detail": self.message}


class UnauthenticatedError(TrainOpsError):
    kind = "Unauthenticated"
    status_code = 401


class ForbiddenError(TrainOpsError):
    kind = "Forbidden"
    status_code = 403


class NotFoundError(TrainOpsError):
    kind = "NotFound"
    status_code = 404


class ControllerNotFoundError(NotFoundError):
    kind = "ControllerNotFound"


class InvalidInputError(TrainOpsError):
    kind = "InvalidInput"
    status_code = 400


class ConflictError(TrainOpsError):
    kind = "Conflict"
    status_code = 409


class InvalidTransitionError(TrainOpsError):
    kind = "InvalidTransition"
    status_code = 400


class DependencyFailureError(TrainOpsError):
    kind = "DependencyFailure"
    status_code = 503
