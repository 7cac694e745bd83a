"""
Kitchen Defense - Error Codes and Exceptions.

Gameplay commands never raise: a rejected command comes back as an
ActionResult carrying one of the ErrorCode values below. Exceptions are
reserved for the data boundary (loading the static catalogs).
"""
from typing import Dict, Any, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the simulation core."""
    # General errors
    UNKNOWN = "UNKNOWN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Command rejections
    WRONG_PHASE = "WRONG_PHASE"
    GAME_OVER = "GAME_OVER"
    UNIT_NOT_FOUND = "UNIT_NOT_FOUND"
    UNIT_NOT_READY = "UNIT_NOT_READY"
    INVALID_POSITION = "INVALID_POSITION"
    TARGET_INVALID = "TARGET_INVALID"
    FIELD_FULL = "FIELD_FULL"
    RECIPE_UNAVAILABLE = "RECIPE_UNAVAILABLE"
    TARGET_REQUIRED = "TARGET_REQUIRED"

    # Data errors
    DATA_LOAD_FAILED = "DATA_LOAD_FAILED"
    UNKNOWN_ARCHETYPE = "UNKNOWN_ARCHETYPE"
    UNKNOWN_RECIPE = "UNKNOWN_RECIPE"


class GameError(Exception):
    """
    Base exception raised at the catalog boundary.

    Carries the same ErrorCode vocabulary as rejected commands, so a
    presentation layer can report both the same way. details holds the
    offending path or name; recovery_hint is shown to whoever edits the data.
    """

    def __init__(
        self,
        code: ErrorCode = ErrorCode.UNKNOWN,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        recovery_hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.recovery_hint = recovery_hint

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
                "recovery_hint": self.recovery_hint,
            }
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# =============================================================================
# Data Errors
# =============================================================================

class DataLoadError(GameError):
    """Raised when a static catalog file is missing or malformed."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            code=ErrorCode.DATA_LOAD_FAILED,
            message=f"Failed to load {path}: {reason}",
            details={"path": path},
            recovery_hint="Check the catalog file or the KD_DATA_DIR setting",
        )


class UnknownArchetypeError(GameError):
    """Raised when a roster or spawn entry names an undefined archetype."""

    def __init__(self, archetype: str):
        super().__init__(
            code=ErrorCode.UNKNOWN_ARCHETYPE,
            message=f"Unknown archetype: {archetype}",
            details={"archetype": archetype},
            recovery_hint="Add the archetype to archetypes.json",
        )


class UnknownRecipeError(GameError):
    """Raised when a recipe id is not part of the catalog."""

    def __init__(self, recipe_id: str):
        super().__init__(
            code=ErrorCode.UNKNOWN_RECIPE,
            message=f"Unknown recipe: {recipe_id}",
            details={"recipe_id": recipe_id},
        )
