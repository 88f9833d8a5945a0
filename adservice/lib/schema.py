"""
Schema catalog for adservice.

Resolves attribute, class and extended right metadata from the schema and
configuration naming contexts. Every unit is cached under both its GUID and
its name, so a hit through either key returns the same object. Entries expire
after a configurable duration.
"""

import time
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, TypeVar

import ldap3
from impacket.uuid import bin_to_string

from adservice.lib.constants import (
    ATTR_APPLIES_TO,
    ATTR_ATTRIBUTE_SECURITY_GUID,
    ATTR_AUXILIARY_CLASS,
    ATTR_DISPLAY_NAME,
    ATTR_IS_DEFUNCT,
    ATTR_IS_SINGLE_VALUED,
    ATTR_LDAP_DISPLAY_NAME,
    ATTR_MAY_CONTAIN,
    ATTR_MUST_CONTAIN,
    ATTR_OBJECT_CLASS,
    ATTR_POSS_SUPERIORS,
    ATTR_RIGHTS_GUID,
    ATTR_SCHEMA_ID_GUID,
    ATTR_SUB_CLASS_OF,
    ATTR_SYSTEM_AUXILIARY_CLASS,
    ATTR_SYSTEM_MAY_CONTAIN,
    ATTR_SYSTEM_MUST_CONTAIN,
    ATTR_SYSTEM_POSS_SUPERIORS,
    ATTR_VALID_ACCESSES,
    CLASS_ATTRIBUTE_SCHEMA,
    CLASS_CLASS_SCHEMA,
    CLASS_CONTROL_ACCESS_RIGHT,
    CLASS_TOP,
    ActiveDirectoryRights,
)
from adservice.lib.errors import SchemaInconsistencyError, SchemaNotFoundError
from adservice.lib.ldap import LDAPConnection, LDAPEntry, get_or_filter, guid_to_filter
from adservice.lib.logger import logging

# Default lifetime of cached schema units, in seconds
DEFAULT_EXPIRY = 300

# Keep OR filters at a size every domain controller accepts
FILTER_BATCH_SIZE = 100

ATTRIBUTE_SCHEMA_ATTRIBUTES = [
    ATTR_LDAP_DISPLAY_NAME,
    ATTR_SCHEMA_ID_GUID,
    ATTR_IS_SINGLE_VALUED,
    ATTR_IS_DEFUNCT,
    ATTR_ATTRIBUTE_SECURITY_GUID,
    ATTR_OBJECT_CLASS,
]

CLASS_SCHEMA_ATTRIBUTES = [
    ATTR_LDAP_DISPLAY_NAME,
    ATTR_SCHEMA_ID_GUID,
    ATTR_IS_DEFUNCT,
    ATTR_SUB_CLASS_OF,
    ATTR_AUXILIARY_CLASS,
    ATTR_SYSTEM_AUXILIARY_CLASS,
    ATTR_MUST_CONTAIN,
    ATTR_SYSTEM_MUST_CONTAIN,
    ATTR_MAY_CONTAIN,
    ATTR_SYSTEM_MAY_CONTAIN,
    ATTR_POSS_SUPERIORS,
    ATTR_SYSTEM_POSS_SUPERIORS,
    ATTR_OBJECT_CLASS,
]

EXTENDED_RIGHT_ATTRIBUTES = [
    ATTR_DISPLAY_NAME,
    ATTR_RIGHTS_GUID,
    ATTR_APPLIES_TO,
    ATTR_VALID_ACCESSES,
]

T = TypeVar("T")


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _as_bool(value: Any) -> bool:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, bytes):
        value = value.decode()
    if isinstance(value, str):
        return value.upper() == "TRUE"
    return bool(value)


def _raw_guid(entry: LDAPEntry, name: str) -> str:
    """Read a binary GUID attribute as a lowercase canonical string, or ""."""
    raw = entry.get_raw(name)
    if isinstance(raw, list):
        raw = raw[0] if raw else None
    if not raw or len(raw) != 16:
        return ""
    return bin_to_string(raw).lower()


def _batches(values: List[str]) -> Iterable[List[str]]:
    for i in range(0, len(values), FILTER_BATCH_SIZE):
        yield values[i : i + FILTER_BATCH_SIZE]


class SchemaUnit:
    """
    A resolved schema object: either an attribute or a class definition.

    Attributes:
        name: lDAPDisplayName
        guid: schemaIDGUID as lowercase string
        is_defunct: Whether the definition was deactivated
    """

    def __init__(self, name: str, guid: str, is_defunct: bool = False) -> None:
        self.name = name
        self.guid = guid
        self.is_defunct = is_defunct

    @property
    def is_effective(self) -> bool:
        return not self.is_defunct

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name!r} ({self.guid})>"


class SchemaAttribute(SchemaUnit):
    """Attribute definition (attributeSchema)."""

    def __init__(
        self,
        name: str,
        guid: str,
        is_single_valued: bool = True,
        property_set: str = "",
        is_defunct: bool = False,
    ) -> None:
        super().__init__(name, guid, is_defunct)
        self.is_single_valued = is_single_valued
        # rightsGuid of the property set the attribute belongs to
        self.property_set = property_set

    @staticmethod
    def from_entry(entry: LDAPEntry) -> "SchemaAttribute":
        return SchemaAttribute(
            entry.get(ATTR_LDAP_DISPLAY_NAME),
            _raw_guid(entry, ATTR_SCHEMA_ID_GUID),
            is_single_valued=_as_bool(entry.get(ATTR_IS_SINGLE_VALUED, True)),
            property_set=_raw_guid(entry, ATTR_ATTRIBUTE_SECURITY_GUID),
            is_defunct=_as_bool(entry.get(ATTR_IS_DEFUNCT, False)),
        )


class SchemaClass(SchemaUnit):
    """Class definition (classSchema)."""

    def __init__(
        self,
        name: str,
        guid: str,
        sub_class_of: Optional[str] = None,
        auxiliary_classes: Optional[List[str]] = None,
        attribute_names: Optional[List[str]] = None,
        possible_superiors: Optional[List[str]] = None,
        is_defunct: bool = False,
    ) -> None:
        super().__init__(name, guid, is_defunct)
        self.sub_class_of = sub_class_of
        self.auxiliary_classes = auxiliary_classes or []
        self.attribute_names = attribute_names or []
        self.possible_superiors = possible_superiors or []

    @staticmethod
    def from_entry(entry: LDAPEntry) -> "SchemaClass":
        attribute_names: List[str] = []
        for name in (
            ATTR_MUST_CONTAIN,
            ATTR_SYSTEM_MUST_CONTAIN,
            ATTR_MAY_CONTAIN,
            ATTR_SYSTEM_MAY_CONTAIN,
        ):
            attribute_names.extend(_as_list(entry.get(name)))

        return SchemaClass(
            entry.get(ATTR_LDAP_DISPLAY_NAME),
            _raw_guid(entry, ATTR_SCHEMA_ID_GUID),
            sub_class_of=entry.get(ATTR_SUB_CLASS_OF),
            auxiliary_classes=_as_list(entry.get(ATTR_AUXILIARY_CLASS))
            + _as_list(entry.get(ATTR_SYSTEM_AUXILIARY_CLASS)),
            attribute_names=attribute_names,
            possible_superiors=_as_list(entry.get(ATTR_POSS_SUPERIORS))
            + _as_list(entry.get(ATTR_SYSTEM_POSS_SUPERIORS)),
            is_defunct=_as_bool(entry.get(ATTR_IS_DEFUNCT, False)),
        )


class ControlAccessRight:
    """
    Extended right, validated write or property set (controlAccessRight).

    Attributes:
        name: displayName
        guid: rightsGuid as lowercase string
        applies_to: GUIDs of the classes the right can be granted on
        valid_accesses: Rights the right can be granted with
    """

    def __init__(
        self,
        name: str,
        guid: str,
        applies_to: Optional[Iterable[str]] = None,
        valid_accesses: int = 0,
    ) -> None:
        self.name = name
        self.guid = guid
        self.applies_to: Set[str] = {g.lower() for g in applies_to or []}
        self.valid_accesses = ActiveDirectoryRights(valid_accesses)

    @staticmethod
    def from_entry(entry: LDAPEntry) -> "ControlAccessRight":
        return ControlAccessRight(
            entry.get(ATTR_DISPLAY_NAME),
            str(entry.get(ATTR_RIGHTS_GUID, "")).lower(),
            applies_to=[str(g) for g in _as_list(entry.get(ATTR_APPLIES_TO))],
            valid_accesses=int(entry.get(ATTR_VALID_ACCESSES, 0)),
        )

    def __repr__(self) -> str:
        return f"<ControlAccessRight {self.name!r} ({self.guid})>"


class _Cache:
    """Expiring key-value store; expired entries read as missing."""

    def __init__(self, expiry: float) -> None:
        self.expiry = expiry
        self._items: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Tuple[bool, Any]:
        item = self._items.get(key.lower())
        if item is None:
            return False, None
        stamp, value = item
        if time.monotonic() - stamp > self.expiry:
            del self._items[key.lower()]
            return False, None
        return True, value

    def set(self, key: str, value: Any) -> None:
        self._items[key.lower()] = (time.monotonic(), value)

    def clear(self) -> None:
        self._items.clear()


class SchemaCatalog:
    """
    Session-scoped cache over the directory schema and the extended rights.

    The catalog is shared by every invocation of one service; lookups that miss
    the cache query the directory and store the result under both keys.
    """

    def __init__(self, connection: LDAPConnection, expiry: float = DEFAULT_EXPIRY):
        """
        Initialize the catalog.

        Args:
            connection: Bound directory client
            expiry: Lifetime of cached entries, in seconds
        """
        self.connection = connection
        self.expiry = expiry

        self._units_by_guid = _Cache(expiry)
        self._units_by_name = _Cache(expiry)
        self._rights_by_guid = _Cache(expiry)
        self._rights_by_class = _Cache(expiry)
        self._property_sets = _Cache(expiry)
        self._children = _Cache(expiry)

    @property
    def extended_rights_path(self) -> str:
        return f"CN=Extended-Rights,{self.connection.configuration_path}"

    def clear(self) -> None:
        """Drop every cached entry."""
        for cache in (
            self._units_by_guid,
            self._units_by_name,
            self._rights_by_guid,
            self._rights_by_class,
            self._property_sets,
            self._children,
        ):
            cache.clear()

    # =====================================================================
    # Schema units
    # =====================================================================

    def _store(self, unit: SchemaUnit) -> SchemaUnit:
        # A unit already cached under either key keeps its identity
        found, existing = self._units_by_guid.get(unit.guid)
        if found and existing is not None:
            unit = existing
        self._units_by_guid.set(unit.guid, unit)
        self._units_by_name.set(unit.name, unit)
        return unit

    def _load_units(self, search_filter: str) -> List[SchemaUnit]:
        results = self.connection.search(
            search_filter,
            attributes=list(
                dict.fromkeys(ATTRIBUTE_SCHEMA_ATTRIBUTES + CLASS_SCHEMA_ATTRIBUTES)
            ),
            search_base=self.connection.schema_path,
            scope=ldap3.LEVEL,
        )

        units: List[SchemaUnit] = []
        for entry in results:
            object_classes = [c.lower() for c in _as_list(entry.get(ATTR_OBJECT_CLASS))]
            if CLASS_CLASS_SCHEMA.lower() in object_classes:
                unit: SchemaUnit = SchemaClass.from_entry(entry)
            elif CLASS_ATTRIBUTE_SCHEMA.lower() in object_classes:
                unit = SchemaAttribute.from_entry(entry)
            else:
                continue
            units.append(self._store(unit))
        return units

    def resolve_by_guid(self, guid: str) -> Optional[SchemaUnit]:
        """
        Resolve an attribute or class by its schemaIDGUID.

        Args:
            guid: GUID string, in any case

        Returns:
            The schema unit, or None if no attribute or class carries the GUID
        """
        guid = guid.lower()
        found, unit = self._units_by_guid.get(guid)
        if found:
            return unit

        units = self._load_units(f"({ATTR_SCHEMA_ID_GUID}={guid_to_filter(guid)})")
        if len(units) == 0:
            # Remember the miss; foreign GUIDs show up on every object
            self._units_by_guid.set(guid, None)
            logging.debug(f"GUID {guid!r} is not defined in the schema")
            return None
        return units[0]

    def resolve_by_name(self, name: str) -> Optional[SchemaUnit]:
        """
        Resolve an attribute or class by its lDAPDisplayName.

        Args:
            name: Display name, in any case

        Returns:
            The schema unit, or None if no attribute or class has the name
        """
        found, unit = self._units_by_name.get(name)
        if found:
            return unit

        units = self._load_units(get_or_filter(ATTR_LDAP_DISPLAY_NAME, [name]))
        if len(units) == 0:
            return None
        return units[0]

    def _resolve_names(self, names: Iterable[str]) -> Dict[str, SchemaUnit]:
        resolved: Dict[str, SchemaUnit] = {}
        missing: List[str] = []
        for name in dict.fromkeys(names):
            found, unit = self._units_by_name.get(name)
            if found and unit is not None:
                resolved[name.lower()] = unit
            else:
                missing.append(name)

        for batch in _batches(missing):
            for unit in self._load_units(get_or_filter(ATTR_LDAP_DISPLAY_NAME, batch)):
                resolved[unit.name.lower()] = unit

        return resolved

    def get_classes(self, names: Iterable[str]) -> List[SchemaClass]:
        """
        Resolve the classes of an object's class chain.

        Args:
            names: Class names, most-derived last

        Returns:
            The class definitions in the same order

        Raises:
            SchemaInconsistencyError: If a name is not a class in the schema
        """
        names = list(names)
        resolved = self._resolve_names(names)

        classes: List[SchemaClass] = []
        for name in names:
            unit = resolved.get(name.lower())
            if not isinstance(unit, SchemaClass):
                raise SchemaInconsistencyError(f"Class {name!r} is not defined in the schema")
            classes.append(unit)
        return classes

    def get_attributes(self, names: Iterable[str]) -> List[SchemaAttribute]:
        """
        Resolve attribute definitions by name.

        Raises:
            SchemaInconsistencyError: If a name is not an attribute in the schema
        """
        names = list(dict.fromkeys(names))
        resolved = self._resolve_names(names)

        attributes: List[SchemaAttribute] = []
        for name in names:
            unit = resolved.get(name.lower())
            if not isinstance(unit, SchemaAttribute):
                raise SchemaInconsistencyError(
                    f"Attribute {name!r} is not defined in the schema"
                )
            attributes.append(unit)
        return attributes

    def get_superclasses(self, classes: List[SchemaClass]) -> List[SchemaClass]:
        """Follow subClassOf from each class up to top, without duplicates."""
        seen = {c.name.lower() for c in classes}
        result: List[SchemaClass] = []
        pending = [c.sub_class_of for c in classes if c.sub_class_of]

        while pending:
            name = pending.pop()
            if name.lower() in seen:
                continue
            seen.add(name.lower())
            superclass = self.get_classes([name])[0]
            result.append(superclass)
            if superclass.sub_class_of and superclass.name.lower() != CLASS_TOP.lower():
                pending.append(superclass.sub_class_of)

        return result

    def get_auxiliary_classes(self, classes: List[SchemaClass]) -> List[SchemaClass]:
        """
        Collect the auxiliary classes declared anywhere in a class chain.

        Auxiliary classes of auxiliary classes, and their superclasses, are
        included as well.

        Args:
            classes: Class chain of an object

        Returns:
            Auxiliary classes not already part of the chain
        """
        seen = {c.name.lower() for c in classes}
        result: List[SchemaClass] = []
        pending = [name for c in classes for name in c.auxiliary_classes]

        while pending:
            names = [n for n in dict.fromkeys(pending) if n.lower() not in seen]
            pending = []
            if not names:
                break

            found = self.get_classes(names)
            for auxiliary in found:
                seen.add(auxiliary.name.lower())
                result.append(auxiliary)
                pending.extend(auxiliary.auxiliary_classes)

            for superclass in self.get_superclasses(found):
                if superclass.name.lower() not in seen:
                    seen.add(superclass.name.lower())
                    result.append(superclass)
                    pending.extend(superclass.auxiliary_classes)

        return result

    def get_children_classes(self, classes: List[SchemaClass]) -> List[SchemaClass]:
        """
        Collect the classes that may be instantiated below an object.

        Args:
            classes: Class chain of the parent object

        Returns:
            Classes whose possible superiors name any class of the chain
        """
        key = ",".join(sorted(c.name.lower() for c in classes))
        found, cached = self._children.get(key)
        if found:
            return cached

        names = [c.name for c in classes]
        search_filter = (
            f"(&({ATTR_OBJECT_CLASS}={CLASS_CLASS_SCHEMA})"
            f"(|{get_or_filter(ATTR_POSS_SUPERIORS, names)}"
            f"{get_or_filter(ATTR_SYSTEM_POSS_SUPERIORS, names)}))"
        )
        children = [
            unit for unit in self._load_units(search_filter) if isinstance(unit, SchemaClass)
        ]

        self._children.set(key, children)
        return children

    # =====================================================================
    # Extended rights
    # =====================================================================

    def _load_rights(self, search_filter: str) -> List[ControlAccessRight]:
        results = self.connection.search(
            f"(&({ATTR_OBJECT_CLASS}={CLASS_CONTROL_ACCESS_RIGHT}){search_filter})",
            attributes=EXTENDED_RIGHT_ATTRIBUTES,
            search_base=self.extended_rights_path,
            scope=ldap3.LEVEL,
        )

        rights: List[ControlAccessRight] = []
        for entry in results:
            right = ControlAccessRight.from_entry(entry)
            found, existing = self._rights_by_guid.get(right.guid)
            if found and existing is not None:
                right = existing
            self._rights_by_guid.set(right.guid, right)
            rights.append(right)
        return rights

    def resolve_extended_right(self, guid: str) -> Optional[ControlAccessRight]:
        """
        Resolve an extended right, validated write or property set by rightsGuid.

        Args:
            guid: GUID string, in any case

        Returns:
            The control access right, or None if the GUID names none
        """
        guid = guid.lower()
        found, right = self._rights_by_guid.get(guid)
        if found:
            return right

        rights = self._load_rights(get_or_filter(ATTR_RIGHTS_GUID, [guid]))
        if len(rights) == 0:
            self._rights_by_guid.set(guid, None)
            return None
        return rights[0]

    def display_name_of(self, guid: str) -> str:
        """
        Get the display name of a GUID, trying extended rights first.

        Args:
            guid: GUID string of an extended right, attribute or class

        Returns:
            The display name

        Raises:
            SchemaNotFoundError: If the GUID is defined nowhere
        """
        right = self.resolve_extended_right(guid)
        if right is not None:
            return right.name

        unit = self.resolve_by_guid(guid)
        if unit is not None:
            return unit.name

        raise SchemaNotFoundError(f"GUID {guid!r} is neither an extended right nor a schema object")

    def get_control_accesses(self, classes: List[SchemaClass]) -> List[ControlAccessRight]:
        """
        Collect the control access rights that can be granted on a class chain.

        Args:
            classes: Class chain of an object

        Returns:
            Rights whose appliesTo names any class of the chain
        """
        key = ",".join(sorted(c.guid for c in classes))
        found, cached = self._rights_by_class.get(key)
        if found:
            return cached

        rights = self._load_rights(get_or_filter(ATTR_APPLIES_TO, [c.guid for c in classes]))
        self._rights_by_class.set(key, rights)
        return rights

    def get_property_set_attributes(self, right: ControlAccessRight) -> List[SchemaAttribute]:
        """
        Collect the attributes belonging to a property set.

        Args:
            right: Control access right

        Returns:
            Attributes whose attributeSecurityGUID equals the right's GUID;
            empty for extended rights and validated writes
        """
        found, cached = self._property_sets.get(right.guid)
        if found:
            return cached

        search_filter = (
            f"(&({ATTR_OBJECT_CLASS}={CLASS_ATTRIBUTE_SCHEMA})"
            f"({ATTR_ATTRIBUTE_SECURITY_GUID}={guid_to_filter(right.guid)}))"
        )
        attributes = [
            unit for unit in self._load_units(search_filter) if isinstance(unit, SchemaAttribute)
        ]

        self._property_sets.set(right.guid, attributes)
        return attributes
