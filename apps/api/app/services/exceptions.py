from app.services.error_codes import ErrorCode


class ServiceError(Exception):
    default_code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        self.code = code or self.default_code.value
        self.message = message or self.code
        super().__init__(self.message)


class ValidationError(ServiceError):
    default_code = ErrorCode.VALIDATION_ERROR


class InvalidDateError(ValidationError):
    default_code = ErrorCode.INVALID_DATE


class InvalidTimeError(ValidationError):
    default_code = ErrorCode.INVALID_TIME


class InvalidEmailError(ValidationError):
    default_code = ErrorCode.INVALID_EMAIL


class UniquenessError(ServiceError):
    default_code = ErrorCode.DUPLICATE_RECORD


class ReferentialIntegrityError(ServiceError):
    default_code = ErrorCode.EVENT_REFERENCE_MISSING


class NotFoundError(ServiceError):
    default_code = ErrorCode.EVENT_NOT_FOUND


class BackendConfigurationError(ServiceError):
    default_code = ErrorCode.DATABASE_CONFIGURATION_ERROR


class ImageUploadError(ServiceError):
    default_code = ErrorCode.IMAGE_UPLOAD_FAILED


class UnexpectedError(ServiceError):
    """Wraps anything uncategorized so it renders like the other service errors."""

    default_code = ErrorCode.INTERNAL_ERROR
