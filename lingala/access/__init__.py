"""Lesson access control and playback issuance."""

from .resolver import AccessDecision, AccessReason, DenialReason, resolve_access


__all__ = ["AccessDecision", "AccessReason", "DenialReason", "resolve_access"]
