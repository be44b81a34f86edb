"""
Error handling module for the UV rebuild tools.
Provides the error types raised by mesh, subdivision and atlas operations.
"""

from typing import Optional, Callable


class UVRebuildError(Exception):
    """Base exception for the UV rebuild tools."""

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or 0
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert error to dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __str__(self):
        return f"[{self.error_code}] {self.message}"


class MeshError(UVRebuildError):
    """Mesh structure and mesh file errors."""

    ERROR_CODES = {
        1001: "Mesh file not found",
        1002: "Mesh file read error",
        1003: "Mesh file write error",
        1004: "Unsupported mesh format",
        1005: "Triangle index buffer length not divisible by 3",
        1006: "Triangle index out of range",
        1007: "Vertex attribute length mismatch",
        1008: "UV count mismatch",
    }

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        file_path: Optional[str] = None,
        mesh_name: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, error_code, kwargs)
        self.file_path = file_path
        self.mesh_name = mesh_name
        if file_path:
            self.details["file_path"] = file_path
        if mesh_name:
            self.details["mesh_name"] = mesh_name


class SubdivisionError(UVRebuildError):
    """UV subdivision errors."""

    ERROR_CODES = {
        2001: "Invalid UV threshold",
        2002: "Subdivision limit exceeded",
        2003: "Subdivision produced invalid mesh",
    }

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        triangle_index: Optional[int] = None,
        depth: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, error_code, kwargs)
        self.triangle_index = triangle_index
        self.depth = depth
        if triangle_index is not None:
            self.details["triangle_index"] = triangle_index
        if depth is not None:
            self.details["depth"] = depth


class AtlasPackError(UVRebuildError):
    """Atlas packing and composition errors."""

    ERROR_CODES = {
        3001: "Image does not fit in atlas",
        3002: "Invalid image size",
        3003: "Invalid atlas size",
        3004: "Image source missing",
        3005: "Atlas write failed",
    }

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        image_index: Optional[int] = None,
        atlas_size: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, error_code, kwargs)
        self.image_index = image_index
        self.atlas_size = atlas_size
        if image_index is not None:
            self.details["image_index"] = image_index
        if atlas_size is not None:
            self.details["atlas_size"] = atlas_size


class ConfigError(UVRebuildError):
    """Configuration related errors."""

    ERROR_CODES = {
        4001: "Config file not found",
        4002: "Config parse error",
        4003: "Invalid config value",
        4004: "Missing required config",
    }


class ValidationError(UVRebuildError):
    """Invalid arguments passed to a core operation."""

    ERROR_CODES = {
        5001: "Invalid argument",
        5002: "Value out of range",
    }


class ErrorHandler:
    """Centralized error handling manager."""

    def __init__(self, logger=None):
        self.logger = logger
        self.error_history: list = []
        self.max_history = 100

    def handle(
        self,
        error: Exception,
        operation: str = "unknown",
        reraise: bool = True,
        recovery: Optional[Callable[[], None]] = None
    ) -> bool:
        """
        Handle an error with logging and optional recovery.

        Args:
            error: The exception to handle
            operation: Operation name for context
            reraise: Whether to reraise the error
            recovery: Optional recovery function

        Returns:
            True if error was recovered, False otherwise
        """
        error_info = {
            "operation": operation,
            "error": str(error),
            "type": type(error).__name__,
        }

        if isinstance(error, UVRebuildError):
            error_info.update(error.to_dict())

        self.error_history.append(error_info)
        if len(self.error_history) > self.max_history:
            self.error_history.pop(0)

        if self.logger:
            self.logger.error(
                f"Error in {operation}: {error}",
                extra={"operation": operation}
            )

        if recovery:
            try:
                recovery()
                return True
            except Exception as e:
                if self.logger:
                    self.logger.error(f"Recovery failed: {e}")

        if reraise:
            raise error

        return False

    def get_last_error(self) -> Optional[dict]:
        """Get the last error from history."""
        return self.error_history[-1] if self.error_history else None

    def clear_history(self):
        """Clear error history."""
        self.error_history.clear()
