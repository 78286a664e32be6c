"""
Identity - who is acting, as supplied by the auth collaborator.
"""

from pydantic import Field

from .base import RecordModel


class Identity(RecordModel):
    """
    The current operator.

    Privilege is an explicit flag from the auth layer; the engine never
    infers it from the owner id.
    """
    owner_id: str = Field(min_length=1)
    display_name: str = ""
    is_privileged: bool = False

    @property
    def label(self) -> str:
        return self.display_name or self.owner_id
