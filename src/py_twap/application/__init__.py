"""Application layer: DTOs, async ports and use cases."""

from . import dto, ports, use_cases_async  # noqa: F401

__all__ = ["dto", "ports", "use_cases_async"]
