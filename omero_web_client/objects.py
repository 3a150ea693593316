"""OMERO object types addressable through the web API."""

from enum import Enum


class OmeroObjectType(Enum):
    """Kinds of OMERO objects, with the path segment used by the JSON API."""

    PROJECT = ("project", "projects")
    DATASET = ("dataset", "datasets")
    IMAGE = ("image", "images")
    PLATE = ("plate", "plates")
    WELL = ("well", "wells")
    SCREEN = ("screen", "screens")
    ORPHANED_FOLDER = ("orphaned", "")
    UNKNOWN = ("unknown", "")

    def __init__(self, link_name: str, url_name: str) -> None:
        self.link_name = link_name
        self.url_name = url_name

    def to_url_string(self) -> str:
        return self.url_name

    @classmethod
    def from_string(cls, value: str) -> "OmeroObjectType":
        """Look up a type by enum name or link name (``image``, ``IMAGE``, ...)."""
        key = value.strip()
        for member in cls:
            if key.upper() == member.name or key.lower() == member.link_name:
                return member
        return cls.UNKNOWN

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()
