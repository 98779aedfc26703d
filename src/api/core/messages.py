"""Centralized message codes and default messages for API responses."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel


class MessageCode(str, Enum):
    """Centralized message codes for API responses."""

    # Success codes
    SUCCESS = "SUCCESS"
    PLANT_IDENTIFIED = "PLANT_IDENTIFIED"
    HEALTH_ASSESSED = "HEALTH_ASSESSED"
    QUESTION_ANSWERED = "QUESTION_ANSWERED"

    # Authentication & Authorization
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    IMAGE_PROCESSING_ERROR = "IMAGE_PROCESSING_ERROR"

    # Service Errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    IMAGE_STORAGE_FAILED = "IMAGE_STORAGE_FAILED"

    # Plant workflow errors
    IDENTIFICATION_FAILED = "IDENTIFICATION_FAILED"
    HEALTH_ASSESSMENT_FAILED = "HEALTH_ASSESSMENT_FAILED"
    CONVERSATION_FAILED = "CONVERSATION_FAILED"
    SIGNED_URL_FAILED = "SIGNED_URL_FAILED"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


# Default messages for each message code
DEFAULT_MESSAGES = {
    # Success messages
    MessageCode.SUCCESS: "Operation completed successfully",
    MessageCode.PLANT_IDENTIFIED: "Plant identified successfully",
    MessageCode.HEALTH_ASSESSED: "Plant health assessed successfully",
    MessageCode.QUESTION_ANSWERED: "Question answered successfully",
    # Authentication & Authorization
    MessageCode.UNAUTHORIZED: "Authentication required",
    MessageCode.FORBIDDEN: "Access denied",
    # Validation errors
    MessageCode.VALIDATION_ERROR: "Validation failed",
    MessageCode.INVALID_INPUT: "Invalid input provided",
    MessageCode.FILE_TOO_LARGE: "File size too large",
    MessageCode.IMAGE_PROCESSING_ERROR: "Error processing image",
    # Service Errors
    MessageCode.EXTERNAL_SERVICE_ERROR: "External service error",
    MessageCode.IMAGE_STORAGE_FAILED: "Failed to store images",
    # Plant workflow errors
    MessageCode.IDENTIFICATION_FAILED: "Plant identification failed",
    MessageCode.HEALTH_ASSESSMENT_FAILED: "Plant health assessment failed",
    MessageCode.CONVERSATION_FAILED: "Failed to answer plant question",
    MessageCode.SIGNED_URL_FAILED: "Failed to generate image URL",
    # Generic errors
    MessageCode.INTERNAL_ERROR: "Internal server error",
    MessageCode.INTERNAL_SERVER_ERROR: "Internal server error",
    MessageCode.BAD_REQUEST: "Bad request",
    MessageCode.NOT_FOUND: "Resource not found",
}

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Base API response model with consistent structure and proper typing."""

    message_code: MessageCode
    message: str
    data: T | None = None

    @classmethod
    def success(
        cls,
        message_code: MessageCode = MessageCode.SUCCESS,
        message: str | None = None,
        data: T | None = None,
    ) -> "APIResponse[T]":
        """Create a success response."""
        return cls(
            message_code=message_code,
            message=message or DEFAULT_MESSAGES.get(message_code, "Success"),
            data=data,
        )

    @classmethod
    def error(
        cls,
        message_code: MessageCode,
        message: str | None = None,
        data: T | None = None,
    ) -> "APIResponse[T]":
        """Create an error response."""
        return cls(
            message_code=message_code,
            message=message or DEFAULT_MESSAGES.get(message_code, "Error occurred"),
            data=data,
        )


def get_default_message(message_code: MessageCode) -> str:
    """Get default message for a message code."""
    return DEFAULT_MESSAGES.get(message_code, "Operation completed")
