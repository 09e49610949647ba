from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_DATE = "INVALID_DATE"
    INVALID_TIME = "INVALID_TIME"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_SLUG = "INVALID_SLUG"
    INVALID_EVENT_ID = "INVALID_EVENT_ID"
    INVALID_FORM_DATA = "INVALID_FORM_DATA"
    INVALID_IMAGE = "INVALID_IMAGE"

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    DUPLICATE_RECORD = "DUPLICATE_RECORD"
    EVENT_SLUG_TAKEN = "EVENT_SLUG_TAKEN"
    BOOKING_ALREADY_EXISTS = "BOOKING_ALREADY_EXISTS"
    EVENT_REFERENCE_MISSING = "EVENT_REFERENCE_MISSING"

    DATABASE_CONFIGURATION_ERROR = "DATABASE_CONFIGURATION_ERROR"
    IMAGE_UPLOAD_FAILED = "IMAGE_UPLOAD_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
