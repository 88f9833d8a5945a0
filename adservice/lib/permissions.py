"""
Access rule resolution for adservice.

Turns the access control entries of an object into a flat table mapping
attribute, class and extended right names to the rights a caller holds on
them. The table is built once per caller and object and is read-only
afterwards.

Entries scoped to a GUID are applied to the attribute, class or property set
the GUID names. Generic entries are spread over every extended right, every
attribute and every child class of the object. Within one name, denied rights
always win over allowed rights.
"""

from typing import Any, Dict, Iterable, List, Optional, Set

from adservice.lib.constants import (
    ATTRIBUTE_RIGHTS,
    CLASS_RIGHTS,
    KNOWN_RIGHTS,
    SELF_CLASS_RIGHTS,
    ActiveDirectoryRights,
)
from adservice.lib.errors import LogicError
from adservice.lib.logger import logging
from adservice.lib.schema import ControlAccessRight, SchemaCatalog, SchemaClass
from adservice.lib.security import AccessControlEntry, InheritanceScope

# Key holding the generic rights of the object as a whole
GLOBAL_KEY = ""


def is_effective(ace: AccessControlEntry, class_guids: Set[str]) -> bool:
    """
    Check whether an access control entry applies to the object holding it.

    Args:
        ace: Entry read from the object's DACL
        class_guids: schemaIDGUIDs of the object's class chain

    Returns:
        True if the entry takes part in the access check for the object

    Raises:
        LogicError: If the inheritance scope is not a known value
    """
    scope = ace.scope
    if scope is InheritanceScope.NONE:
        return not ace.is_inherited

    if scope in (InheritanceScope.SELF_AND_CHILDREN, InheritanceScope.ALL):
        effective = True
    elif scope in (InheritanceScope.CHILDREN, InheritanceScope.DESCENDENTS):
        effective = ace.is_inherited
    else:
        raise LogicError(f"Unknown inheritance scope {scope!r}")

    # Inherited entries restricted to a class only reach objects of that class
    if effective and ace.is_inherited and ace.has_inherited_object_type:
        return ace.inherited_object_type in class_guids

    return effective


class CombinedPermissions:
    """
    Allowed and denied rights per name.

    Names compare case-insensitively and unknown names hold no rights.
    """

    def __init__(self) -> None:
        self._allowed: Dict[str, int] = {}
        self._denied: Dict[str, int] = {}
        self._names: Dict[str, str] = {}

    def set(self, name: str, is_allow: bool, rights: int) -> None:
        key = name.lower()
        self._names.setdefault(key, name)
        bucket = self._allowed if is_allow else self._denied
        bucket[key] = bucket.get(key, 0) | int(rights)

    def get(self, name: str) -> ActiveDirectoryRights:
        key = name.lower()
        return ActiveDirectoryRights(
            self._allowed.get(key, 0) & ~self._denied.get(key, 0)
        )

    def names(self) -> List[str]:
        return list(self._names.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._names

    def __len__(self) -> int:
        return len(self._names)


class EffectiveRights:
    """
    Rights a set of SIDs holds on one object.

    Attributes:
        classes: Class chain of the object, most-derived last
        class_name: Name of the most-derived class
    """

    def __init__(
        self,
        catalog: SchemaCatalog,
        object_classes: List[str],
        aces: Iterable[AccessControlEntry],
        sids: Set[str],
    ) -> None:
        """
        Resolve the rights table.

        Args:
            catalog: Schema catalog to resolve GUIDs and classes with
            object_classes: objectClass values of the object, most-derived last
            aces: Access control entries of the object
            sids: SIDs the access check is evaluated with

        Raises:
            LogicError: If an entry has an unknown scope or no known rights bit
            SchemaInconsistencyError: If a class of the chain is not in the schema
        """
        self.catalog = catalog
        self.classes: List[SchemaClass] = catalog.get_classes(object_classes)
        self.class_name = self.classes[-1].name

        self._combined = CombinedPermissions()
        self._control_accesses: Optional[Dict[str, ControlAccessRight]] = None
        self._attribute_names: Optional[List[str]] = None
        self._children_names: Optional[List[str]] = None

        class_guids = {c.guid for c in self.classes}

        applicable: List[AccessControlEntry] = []
        for ace in aces:
            if ace.sid not in sids:
                continue

            if not ace.rights & KNOWN_RIGHTS:
                raise LogicError(
                    f"Access mask {int(ace.rights):#x} granted to {ace.sid!r} "
                    "carries no known right"
                )

            if not is_effective(ace, class_guids):
                logging.debug(
                    f"Skipping {ace.scope} entry for {ace.sid!r} "
                    f"(inherited: {ace.is_inherited})"
                )
                continue

            applicable.append(ace)

        for ace in applicable:
            if ace.has_object_type:
                self._apply_object_entry(ace)

        for ace in applicable:
            if not ace.has_object_type:
                self._apply_generic_entry(ace)

        logging.debug(
            f"Resolved rights on {len(self._combined)} names from "
            f"{len(applicable)} applicable entries for class {self.class_name!r}"
        )

    @property
    def control_accesses(self) -> Dict[str, ControlAccessRight]:
        if self._control_accesses is None:
            self._control_accesses = {
                right.guid: right
                for right in self.catalog.get_control_accesses(self.classes)
            }
        return self._control_accesses

    @property
    def attribute_names(self) -> List[str]:
        """Names of every non-defunct attribute the class chain may hold."""
        if self._attribute_names is None:
            classes = self.classes + self.catalog.get_auxiliary_classes(self.classes)
            names = [name for c in classes for name in c.attribute_names]
            self._attribute_names = [
                attribute.name
                for attribute in self.catalog.get_attributes(names)
                if attribute.is_effective
            ]
        return self._attribute_names

    @property
    def children_names(self) -> List[str]:
        """Names of the classes that may be created below the object."""
        if self._children_names is None:
            self._children_names = [
                c.name for c in self.catalog.get_children_classes(self.classes)
            ]
        return self._children_names

    def _apply_control_access(
        self, right: ControlAccessRight, is_allow: bool, rights: ActiveDirectoryRights
    ) -> bool:
        """Apply rights through a control access right; False if nothing was set."""
        attributes = self.catalog.get_property_set_attributes(right)
        if attributes:
            for attribute in attributes:
                self._combined.set(attribute.name, is_allow, rights)
            return True
        if rights & ActiveDirectoryRights.EXTENDED_RIGHT:
            self._combined.set(right.name, is_allow, rights)
            return True
        return False

    def _apply_object_entry(self, ace: AccessControlEntry) -> None:
        right = self.control_accesses.get(ace.object_type)
        # Validated writes share their GUID with the attribute they guard
        if right is not None and self._apply_control_access(
            right, ace.is_allow, ace.rights
        ):
            return

        unit = self.catalog.resolve_by_guid(ace.object_type)
        if unit is None:
            logging.debug(
                f"Skipping entry for {ace.sid!r}: {ace.object_type!r} "
                f"does not apply to {self.class_name!r}"
            )
            return

        self._combined.set(unit.name, ace.is_allow, ace.rights)

    def _apply_generic_entry(self, ace: AccessControlEntry) -> None:
        self._combined.set(GLOBAL_KEY, ace.is_allow, ace.rights)

        for right in self.control_accesses.values():
            masked = ace.rights & right.valid_accesses
            if masked:
                self._apply_control_access(
                    right, ace.is_allow, ActiveDirectoryRights(masked)
                )

        attribute_rights = ace.rights & ATTRIBUTE_RIGHTS
        if attribute_rights:
            for name in self.attribute_names:
                self._combined.set(name, ace.is_allow, attribute_rights)

        class_rights = ace.rights & CLASS_RIGHTS
        if not class_rights:
            return

        children_rights = class_rights & ~SELF_CLASS_RIGHTS
        if children_rights:
            for name in self.children_names:
                self._combined.set(name, ace.is_allow, children_rights)

        self_rights = class_rights & SELF_CLASS_RIGHTS
        if ace.is_inherited:
            # Rights over children of the parent are rights over this object
            if class_rights & ActiveDirectoryRights.DELETE_CHILD:
                self_rights |= ActiveDirectoryRights.DELETE
            if class_rights & ActiveDirectoryRights.LIST_CHILDREN:
                self_rights |= ActiveDirectoryRights.LIST_OBJECT
        if self_rights:
            self._combined.set(self.class_name, ace.is_allow, self_rights)

    def get(self, name: str) -> ActiveDirectoryRights:
        """
        Get the effective rights on a name.

        Args:
            name: Attribute, class or extended right name; "" for the object itself

        Returns:
            Allowed rights minus denied rights; none for unknown names
        """
        return self._combined.get(name)

    def is_allow(self, name: str, rights: int) -> bool:
        """Check whether any of the requested rights is granted on a name."""
        return bool(self.get(name) & rights)

    def names(self) -> List[str]:
        return self._combined.names()

    def to_dict(self) -> Dict[str, Any]:
        """Render the non-empty entries of the table for display."""
        output: Dict[str, Any] = {}
        for name in sorted(self.names(), key=str.lower):
            rights = self.get(name)
            if rights:
                output[name] = rights.to_str_list()
        return output
