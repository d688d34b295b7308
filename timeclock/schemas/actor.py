"""
Actor Schema - the acting principal as supplied by the identity provider
"""
from pydantic import BaseModel


class Actor(BaseModel):
    """Acting member: opaque code plus privilege flags"""
    code: str
    is_admin: bool = False
    is_root: bool = False  # The single distinguished administrator
