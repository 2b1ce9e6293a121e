"""
Permission view schema.

The client uses this to hide navigation and actions; the server never
relies on it.
"""

from pydantic import BaseModel
from typing import Dict, List


class RolePermissionsResponse(BaseModel):
    role: str
    label: str
    viewable_modules: List[str]
    modules: Dict[str, Dict[str, bool]]
