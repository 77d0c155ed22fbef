# app/services/exceptions.py


class AccessControlError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class BadRequestError(AccessControlError):
    status_code = 400


class NotFoundError(AccessControlError):
    status_code = 404


class AccessStateError(AccessControlError):
    """El registro de accesos no permite la operación (p. ej. SALIDA sin ENTRADA abierta)."""
    status_code = 409


class StoreError(AccessControlError):
    status_code = 500
