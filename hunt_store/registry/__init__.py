"""
App Registry and Org document façade.

Usage:
    from hunt_store.registry import RegistryService

    registry = RegistryService(store, system.validation)
    loaded = await registry.load_org("bhhs")
"""

from .helpers import (add_hunt_to_org, add_organization, create_new_hunt,
                      create_new_org, generate_hunt_id, generate_hunt_slug,
                      slugify, update_by_date_index)
from .service import LoadedDocument, RegistryService

__all__ = [
    "RegistryService",
    "LoadedDocument",
    "add_organization",
    "add_hunt_to_org",
    "update_by_date_index",
    "create_new_org",
    "create_new_hunt",
    "generate_hunt_slug",
    "generate_hunt_id",
    "slugify",
]
