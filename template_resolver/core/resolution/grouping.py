"""
Grouping of matched templates by group identity.

Group identities are compared case-insensitively with a plain, locale
independent lower-casing. Templates without a group identity are never merged:
each one forms its own group.
"""

from __future__ import annotations

from typing import Iterable

from .models import TemplateCandidate, TemplateGroup


def group_key(group_identity: str) -> str:
    return group_identity.lower()


def group_templates(templates: Iterable[TemplateCandidate]) -> tuple[TemplateGroup, ...]:
    """
    Partition ``templates`` into template groups.

    Groups are returned in the order their first member appears in the input,
    and members keep their input order, so identical input always yields
    identical groups.
    """
    buckets: dict[object, list[TemplateCandidate]] = {}
    identities: dict[object, str] = {}
    for index, template in enumerate(templates):
        identity = template.group_identity or ""
        # Ungrouped templates get a key no grouped identity can collide with.
        key: object = group_key(identity) if identity else ("ungrouped", index)
        if key not in buckets:
            buckets[key] = []
            identities[key] = identity
        buckets[key].append(template)
    return tuple(
        TemplateGroup(group_identity=identities[key], templates=tuple(members))
        for key, members in buckets.items()
    )
