# dealership/services/exceptions.py

class ServiceError(Exception):
    """Clase base para errores de la capa de servicio."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class DomainValidationError(ServiceError):
    """Entrada de dominio inválida."""
    pass


class ResourceNotFoundError(ServiceError):
    """Recurso no encontrado."""
    pass


class ConflictError(ServiceError):
    """Conflicto de estado en la operación."""
    pass


class InsufficientStockError(ConflictError):
    """Lanzada cuando no hay suficiente stock para una operación."""
    pass


class InvalidStatusTransitionError(ConflictError):
    """Cambio de estado de orden no permitido."""
    pass


class PermissionDeniedError(ServiceError):
    """El usuario no puede operar sobre el recurso."""
    pass


class DuplicateResourceError(ServiceError):
    """Ya existe un recurso con el mismo valor único (email, slug, número de parte)."""
    pass
