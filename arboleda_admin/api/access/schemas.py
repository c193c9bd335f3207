"""
Access Schemas

Pydantic models for the role catalogue.
"""

from typing import List

from pydantic import BaseModel


class RoleResponse(BaseModel):
    """Role details for permission-editing views."""

    id: str
    name: str
    description: str
    color: str
    is_base_role: bool
    permissions: List[str]
