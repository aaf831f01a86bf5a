"""Handler modules for CRD resources."""

from .base import BaseHandler
from .swxfll import ReconcileResult, SwxfllHandler

__all__ = ["BaseHandler", "ReconcileResult", "SwxfllHandler"]
