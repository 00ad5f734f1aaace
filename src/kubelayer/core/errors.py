#!/usr/bin/env python3
"""
KUBELAYER ERRORS
----------------
Exception hierarchy shared by the document adapter, the resource
collection and the overlay engine. Every error carries a small context
dict so the CLI can render it as a structured payload.

Author: KubeLayer Team
Date: 2026-10-19
"""

from typing import Any, Dict, Mapping, Optional


class KubeLayerError(Exception):
    """Base exception for KubeLayer."""

    def __init__(self, message: str = "", *, context: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.context: Dict[str, Any] = dict(context) if context is not None else {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class FieldNotFoundError(KubeLayerError, KeyError):
    """Raised when a field path does not exist in a document."""

    def __str__(self) -> str:
        # KeyError quotes its message; keep the plain text.
        return str(self.args[0]) if self.args else ""


class InvalidFieldPathError(KubeLayerError, ValueError):
    """Raised when a field path cannot be parsed."""


class FieldTypeError(KubeLayerError, TypeError):
    """Raised when a field exists but holds an unexpected type."""


class SelectorSyntaxError(KubeLayerError, ValueError):
    """Raised for malformed label or annotation selector expressions."""


class DocumentLoadError(KubeLayerError, ValueError):
    """Raised when input text cannot be turned into resources."""


class ResourceConflictError(KubeLayerError):
    """Raised when absorbing a resource collides with the accumulated set."""


class MarshalError(KubeLayerError, ValueError):
    """Raised when a document cannot be serialized."""
