"""
Template resolution domain logic.

This module handles:
- Grouping matched templates by group identity
- Selecting the unambiguous template group
- Selecting the template to invoke inside that group
- Selecting the templates to show for detailed help

All logic is pure and has no I/O dependencies.
"""

from __future__ import annotations

from .grouping import group_templates
from .models import (
    GroupResolution,
    GroupResolutionStatus,
    ResolutionInvariantError,
    ResolutionStatus,
    TemplateCandidate,
    TemplateGroup,
    TemplateResolution,
)
from .resolver import TemplateResolutionResult

__all__ = [
    "GroupResolution",
    "GroupResolutionStatus",
    "ResolutionInvariantError",
    "ResolutionStatus",
    "TemplateCandidate",
    "TemplateGroup",
    "TemplateResolution",
    "TemplateResolutionResult",
    "group_templates",
]
