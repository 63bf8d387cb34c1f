"""
Core domain layer for template-resolver.

This package contains pure decision logic with no external dependencies.
All code here should be testable without I/O operations.
"""

from __future__ import annotations

__all__ = []
