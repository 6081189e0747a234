"""
Routers package for FastAPI endpoints.

- spec_review: Specification review and requirement extraction
"""

from . import spec_review

__all__ = ["spec_review"]
