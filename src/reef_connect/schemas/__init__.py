"""Pydantic schemas for request and response payloads."""

from .identity import CallerIdentity

__all__ = ["CallerIdentity"]
