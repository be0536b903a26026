"""Core data models."""

from .claims import VerifiedClaims

__all__ = ["VerifiedClaims"]
