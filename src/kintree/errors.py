"""Exceptions raised by the editing and serialization layers."""


class KinTreeError(Exception):
    """Base class for all kintree errors."""


class StructuralConflictError(KinTreeError):
    """An edit would make a person their own ancestor."""

    def __init__(self, child_id: str, parent_id: str):
        self.child_id = child_id
        self.parent_id = parent_id
        super().__init__(
            f"Making {parent_id} a parent of {child_id} would create a cycle in the family tree"
        )


class PersonNotFoundError(KinTreeError, KeyError):
    """An edit referenced a person id that is not in the snapshot."""

    def __init__(self, person_id: str):
        self.person_id = person_id
        super().__init__(person_id)

    def __str__(self) -> str:
        return f"Person ID {self.person_id} not found"


class FamilyTreeFormatError(KinTreeError, ValueError):
    """A family tree document does not have the expected shape."""
