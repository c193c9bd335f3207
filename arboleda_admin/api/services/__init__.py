"""Shared services for the admin API."""

from arboleda_admin.api.services.access import (
    AccessServices,
    get_access_services,
    set_access_services,
    init_access_services,
    close_access_services,
)

__all__ = [
    "AccessServices",
    "get_access_services",
    "set_access_services",
    "init_access_services",
    "close_access_services",
]
