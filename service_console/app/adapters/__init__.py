"""
Adapters package for the Console Service.

Contains the HTTP client wrapper for the school backend. The adapter
encapsulates:

- Base URL, timeout and request shapes
- Retry policy for reads and the circuit breaker
- Error handling that maps every failure to ``BackendError``

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .backend_client import BackendClient

__all__ = ["BackendClient"]
