"""Package-level readers: OPC container, relationships, numbering, notes and HTML input."""

from .package_reader import ContentTypeTable, PackageReader
from .relationships import Relationship, RelationshipTable

__all__ = ["ContentTypeTable", "PackageReader", "Relationship", "RelationshipTable"]
