"""Domain exception classes for the certification service.

These are raised by service-layer code and caught by controllers
to map to appropriate HTTP responses.
"""


class ValidationError(Exception):
    """Raised when issuance input is missing or inconsistent.

    ``errors`` holds one ``{"field": ..., "message": ...}`` entry per problem
    so the caller can correct the request in a single round trip.
    """

    def __init__(self, errors: list[dict[str, str]]):
        self.errors = errors
        summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        super().__init__(f"Invalid certificate data: {summary}")


class NotFoundError(Exception):
    def __init__(self, identifier: str = ""):
        self.identifier = identifier
        super().__init__(f"Certificate not found: {identifier}")


class InvalidTransitionError(Exception):
    """Raised when a certificate status change is not allowed."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition from {current} to {target}")


class RenderError(Exception):
    """Raised when a certificate document cannot be rendered from the given data."""

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = missing_fields
        super().__init__(f"Cannot render certificate, missing: {', '.join(missing_fields)}")


class CollisionError(Exception):
    """Raised when no unique certificate number/verification code could be allocated."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not allocate unique certificate codes after {attempts} attempts")


class NotCertificateHolderError(Exception):
    """Raised when a caller who is neither the holder nor staff requests a certificate."""

    def __init__(self, certificate_id: str = ""):
        self.certificate_id = certificate_id
        super().__init__(f"Not authorized to access certificate {certificate_id}")
