"""Custom exceptions for the procurement application."""

class ComprasError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class ValidationError(ComprasError):
    """Raised when submitted data fails validation, before anything is written."""
    def __init__(self, message, field=None):
        super().__init__(message, 400, {'field': field} if field else None)
        self.field = field

class BusinessLogicError(ComprasError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class IllegalTransitionError(BusinessLogicError):
    """Raised when a document is asked to move to a status it cannot reach."""
    def __init__(self, document_type, current_status, new_status):
        message = f"Transición de estado no permitida para {document_type}: {current_status} → {new_status}"
        super().__init__(message, status_code=409, payload={
            'document_type': document_type,
            'from': current_status,
            'to': new_status,
        })
        self.document_type = document_type
        self.current_status = current_status
        self.new_status = new_status

class NotFoundError(ComprasError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class UnauthorizedError(ComprasError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Unauthorized access"):
        super().__init__(message, 403)

class InvalidPinError(UnauthorizedError):
    """Raised when a destructive admin operation receives the wrong PIN."""
    def __init__(self):
        super().__init__('PIN de seguridad incorrecto.')
