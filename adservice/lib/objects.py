"""
Read view of directory objects for adservice.

DirectoryObject exposes the identity and the values the operations need
(class chain, category, system flags, parent) without giving access to the
underlying handle, which the transaction ledger owns.
"""

import datetime
from typing import Any, Dict, List, Optional

from impacket.uuid import bin_to_string
from ldap3.protocol.formatters.formatters import format_sid
from ldap3.utils.ciDict import CaseInsensitiveDict

from adservice.lib.constants import (
    ATTR_NAME,
    ATTR_OBJECT_CLASS,
    ATTR_OBJECT_GUID,
    ATTR_OBJECT_SID,
    ATTR_SYSTEM_FLAGS,
    CLASS_CONTAINER,
    CLASS_DOMAIN_DNS,
    CLASS_GROUP,
    CLASS_ORGANIZATION_UNIT,
    CLASS_PERSON,
    SystemFlags,
)
from adservice.lib.ldap import DirectoryEntry, parent_of
from adservice.lib.structs import IntFlag


class CategoryTypes(IntFlag):
    """Broad kinds of directory objects the operations distinguish."""

    NONE = 0
    CONTAINER = 0x01
    DOMAIN_DNS = 0x02
    ORGANIZATION_UNIT = 0x04
    FOREIGN_SECURITY_PRINCIPAL = 0x08
    GROUP = 0x10
    PERSON = 0x20


# Objects that can hold children
ALL_CONTAINERS = CategoryTypes(
    CategoryTypes.CONTAINER | CategoryTypes.DOMAIN_DNS | CategoryTypes.ORGANIZATION_UNIT
)

# Objects whose relative name is user-chosen
ALL_RENAMEABLE = CategoryTypes(
    CategoryTypes.ORGANIZATION_UNIT | CategoryTypes.GROUP | CategoryTypes.PERSON
)

CATEGORY_BY_CLASS = {
    CLASS_CONTAINER.lower(): CategoryTypes.CONTAINER,
    "builtindomain": CategoryTypes.CONTAINER,
    CLASS_DOMAIN_DNS.lower(): CategoryTypes.DOMAIN_DNS,
    CLASS_ORGANIZATION_UNIT.lower(): CategoryTypes.ORGANIZATION_UNIT,
    "foreignsecurityprincipal": CategoryTypes.FOREIGN_SECURITY_PRINCIPAL,
    CLASS_GROUP.lower(): CategoryTypes.GROUP,
    CLASS_PERSON.lower(): CategoryTypes.PERSON,
}


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _to_int(value: Any) -> int:
    value = _first(value)
    if value is None:
        return 0
    if isinstance(value, bytes):
        value = value.decode()
    return int(value)


class DirectoryObject:
    """
    Snapshot of a directory object.

    Attributes:
        dn: Distinguished name
        name: Value of the name attribute
        guid: objectGUID as lowercase string
        sid: objectSid, for security principals
        object_classes: Class chain, most-derived last
        category: Broad kind of the object
        system_flags: systemFlags value
    """

    def __init__(
        self,
        dn: str,
        object_classes: List[str],
        attributes: Optional[Dict[str, Any]] = None,
        guid: str = "",
        sid: Optional[str] = None,
    ) -> None:
        self.dn = dn
        self.object_classes = object_classes
        self.attributes: CaseInsensitiveDict = CaseInsensitiveDict(attributes or {})
        self.guid = guid
        self.sid = sid

        self.name = _first(self.attributes.get(ATTR_NAME)) or dn.split(",")[0].split("=")[-1]
        self.system_flags = SystemFlags(_to_int(self.attributes.get(ATTR_SYSTEM_FLAGS)))

        self.category = CategoryTypes.NONE
        for class_name in reversed(object_classes):
            category = CATEGORY_BY_CLASS.get(class_name.lower())
            if category is not None:
                self.category = category
                break

    @staticmethod
    def from_entry(entry: DirectoryEntry) -> "DirectoryObject":
        """
        Build a snapshot from a handle.

        Args:
            entry: Loaded directory entry

        Returns:
            The object view of the entry
        """
        guid = ""
        raw_guid = entry.get_raw(ATTR_OBJECT_GUID)
        raw_guid = _first(raw_guid)
        if isinstance(raw_guid, bytes) and len(raw_guid) == 16:
            guid = bin_to_string(raw_guid).lower()

        sid = _first(entry.get(ATTR_OBJECT_SID))
        if isinstance(sid, bytes):
            sid = format_sid(sid)

        object_classes = entry.get(ATTR_OBJECT_CLASS, [])
        if isinstance(object_classes, str):
            object_classes = [object_classes]

        return DirectoryObject(
            entry.dn,
            list(object_classes),
            attributes=dict(entry.attributes),
            guid=guid,
            sid=sid,
        )

    @property
    def class_name(self) -> str:
        """Most-derived object class."""
        return self.object_classes[-1] if self.object_classes else ""

    @property
    def parent_dn(self) -> Optional[str]:
        """Distinguished name of the container, None for the domain root."""
        if self.category & CategoryTypes.DOMAIN_DNS:
            return None
        return parent_of(self.dn)

    @property
    def is_movable(self) -> bool:
        return not self.system_flags & SystemFlags.DOMAIN_DISALLOW_MOVE

    def has_attribute(self, name: str) -> bool:
        value = self.attributes.get(name)
        return value is not None and value != []

    def get(self, name: str, default: Any = None) -> Any:
        value = self.attributes.get(name)
        if value is None or value == []:
            return default
        return value

    def get_values(self, name: str) -> List[Any]:
        value = self.attributes.get(name)
        if value is None:
            return []
        if isinstance(value, list):
            return value
        return [value]

    def get_int(self, name: str, default: int = 0) -> int:
        value = _first(self.attributes.get(name))
        if value is None:
            return default
        if isinstance(value, datetime.datetime):
            # ldap3 renders FILETIME attributes as dates; 1601-01-01 is zero
            if value.year <= 1601:
                return 0
            epoch = datetime.datetime(1601, 1, 1, tzinfo=value.tzinfo)
            return int((value - epoch).total_seconds() * 10_000_000)
        return _to_int(value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dn": self.dn,
            "name": self.name,
            "guid": self.guid,
            "sid": self.sid,
            "Object Class": self.class_name,
            "Category": str(self.category),
        }

    def __repr__(self) -> str:
        return f"<DirectoryObject {self.dn!r} ({self.class_name})>"
