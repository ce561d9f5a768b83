"""Helpers for ``<ResourceType>/<id>`` reference strings."""

from __future__ import annotations

from .enums import ResourceType


def reference(resource_type: ResourceType, resource_id: str) -> str:
    return f"{resource_type}/{resource_id}"


def reference_id(value: str | None, resource_type: ResourceType) -> str | None:
    """Return the id part of ``value`` when it references ``resource_type``."""

    if not value:
        return None
    prefix, _, resource_id = value.partition("/")
    if prefix != resource_type or not resource_id:
        return None
    return resource_id
