"""
Operations showing and editing the descriptive attributes of an object.
"""

from typing import Any, Dict, Optional

from adservice.lib.certification import Certification
from adservice.lib.constants import (
    ATTR_DESCRIPTION,
    ATTR_DISPLAY_NAME,
    ATTR_GIVEN_NAME,
    ATTR_INITIALS,
    ATTR_MEMBER,
    ATTR_PWD_LAST_SET,
    ATTR_SN,
    ATTR_USER_ACCOUNT_CONTROL,
    USER_ACCOUNT_CONTROL_MASK,
    ActiveDirectoryRights,
)
from adservice.lib.logger import logging
from adservice.lib.objects import CategoryTypes, DirectoryObject
from adservice.lib.permissions import EffectiveRights
from adservice.lib.protocol import (
    InvokeCondition,
    ProtocolAttributeFlags,
    ValueDescription,
)
from adservice.methods.base import Method, MethodKind, ProbeResult

STRING_ATTRIBUTES = (
    ATTR_DESCRIPTION,
    ATTR_DISPLAY_NAME,
    ATTR_SN,
    ATTR_GIVEN_NAME,
    ATTR_INITIALS,
)

SUPPORTED_ATTRIBUTES = STRING_ATTRIBUTES + (
    ATTR_MEMBER,
    ATTR_USER_ACCOUNT_CONTROL,
    ATTR_PWD_LAST_SET,
)

# 0 forces a change at next logon, -1 stamps the current time
PWD_LAST_SET_VALUES = (0, -1)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ModifyDetailMethod(Method):
    KIND = MethodKind.MODIFY_DETAIL
    PAYLOAD = dict
    IS_SHOWED = False

    def conditions(
        self, destination: DirectoryObject, permissions: EffectiveRights
    ) -> Dict[str, InvokeCondition]:
        """
        Describe every supported attribute the invoker can read.

        Args:
            destination: Target object
            permissions: Invoker's rights on the target

        Returns:
            Capability descriptor per attribute name
        """
        valid = {name.lower() for name in permissions.attribute_names}

        conditions: Dict[str, InvokeCondition] = {}
        for name in SUPPORTED_ATTRIBUTES:
            if name.lower() not in valid:
                continue
            if not permissions.is_allow(name, ActiveDirectoryRights.READ_PROPERTY):
                continue

            is_writable = permissions.is_allow(name, ActiveDirectoryRights.WRITE_PROPERTY)

            if name == ATTR_MEMBER:
                condition = self._member_condition(destination, permissions, is_writable)
            elif name == ATTR_USER_ACCOUNT_CONTROL:
                condition = self._account_control_condition(destination, is_writable)
            elif name == ATTR_PWD_LAST_SET:
                condition = self._pwd_last_set_condition(destination, is_writable)
            else:
                condition = self._string_condition(destination, name, is_writable)

            conditions[name] = condition

        return conditions

    def _string_condition(
        self, destination: DirectoryObject, name: str, is_writable: bool
    ) -> InvokeCondition:
        flags = ProtocolAttributeFlags.NONE
        details: Dict[str, Any] = {InvokeCondition.STORED_TYPE: ValueDescription("String")}

        value = destination.get(name)
        if isinstance(value, list):
            value = value[0]
        if value is not None:
            flags |= ProtocolAttributeFlags.HASVALUE
            details[InvokeCondition.VALUE] = value

        if is_writable:
            flags |= ProtocolAttributeFlags.EDITABLE
            details[InvokeCondition.RECEIVED_TYPE] = "String"

        return InvokeCondition(flags, details)

    def _member_condition(
        self,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        is_writable: bool,
    ) -> InvokeCondition:
        members = destination.get_values(ATTR_MEMBER)
        flags = ProtocolAttributeFlags.ISARRAY
        details: Dict[str, Any] = {
            InvokeCondition.STORED_TYPE: ValueDescription(
                "String", len(members), is_array=True
            ),
            InvokeCondition.COUNT: len(members),
        }
        if members:
            flags |= ProtocolAttributeFlags.HASVALUE
            details[InvokeCondition.VALUE] = members

        if is_writable or permissions.is_allow(ATTR_MEMBER, ActiveDirectoryRights.SELF):
            flags |= ProtocolAttributeFlags.EDITABLE | ProtocolAttributeFlags.CATEGORYLIMITED
            if not is_writable:
                # Only the invoker itself may be added or removed
                flags |= ProtocolAttributeFlags.SELF
            details[InvokeCondition.RECEIVED_TYPE] = "String"
            details[InvokeCondition.CATEGORY_LIMITED] = CategoryTypes(
                CategoryTypes.GROUP | CategoryTypes.PERSON
            )

        return InvokeCondition(flags, details)

    def _account_control_condition(
        self, destination: DirectoryObject, is_writable: bool
    ) -> InvokeCondition:
        value = destination.get_int(ATTR_USER_ACCOUNT_CONTROL)
        flags = (
            ProtocolAttributeFlags.ISFLAGS
            | ProtocolAttributeFlags.COMBINE
            | ProtocolAttributeFlags.HASVALUE
        )
        details: Dict[str, Any] = {
            InvokeCondition.STORED_TYPE: ValueDescription("UserAccountControl"),
            InvokeCondition.VALUE: value & USER_ACCOUNT_CONTROL_MASK,
            InvokeCondition.FLAG_MASK: int(USER_ACCOUNT_CONTROL_MASK),
            InvokeCondition.ENUM_LIST: USER_ACCOUNT_CONTROL_MASK.to_str_list(),
            InvokeCondition.COMBINE_WITH: ATTR_USER_ACCOUNT_CONTROL,
        }
        if is_writable:
            flags |= ProtocolAttributeFlags.EDITABLE
            details[InvokeCondition.RECEIVED_TYPE] = "Int32"

        return InvokeCondition(flags, details)

    def _pwd_last_set_condition(
        self, destination: DirectoryObject, is_writable: bool
    ) -> InvokeCondition:
        flags = ProtocolAttributeFlags.ISENUM | ProtocolAttributeFlags.HASVALUE
        details: Dict[str, Any] = {
            InvokeCondition.STORED_TYPE: ValueDescription("Int64"),
            InvokeCondition.VALUE: destination.get_int(ATTR_PWD_LAST_SET),
            InvokeCondition.ENUM_LIST: [str(v) for v in PWD_LAST_SET_VALUES],
        }
        if is_writable:
            flags |= ProtocolAttributeFlags.EDITABLE
            details[InvokeCondition.RECEIVED_TYPE] = "Int64"

        return InvokeCondition(flags, details)

    def probe(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
    ) -> ProbeResult:
        conditions = self.conditions(destination, permissions)
        if not conditions:
            return None, f"No readable detail on {destination.dn!r}"

        flags = ProtocolAttributeFlags.PROPERTIES
        if any(c.has_flag(ProtocolAttributeFlags.EDITABLE) for c in conditions.values()):
            flags |= ProtocolAttributeFlags.EDITABLE

        condition = InvokeCondition(flags, {InvokeCondition.PROPERTIES: conditions})
        return condition, ""

    def _normalize(
        self,
        certification: Certification,
        destination: DirectoryObject,
        name: str,
        condition: InvokeCondition,
        value: Any,
    ) -> Optional[Any]:
        """Check one attribute of the input; None when it is not acceptable."""
        if name in STRING_ATTRIBUTES:
            return value if isinstance(value, str) else None

        if name == ATTR_MEMBER:
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                return None
            if condition.has_flag(ProtocolAttributeFlags.SELF):
                current = {v.lower() for v in destination.get_values(ATTR_MEMBER)}
                changed = current.symmetric_difference(v.lower() for v in value)
                if changed - {certification.invoker.dn.lower()}:
                    logging.debug("Only the invoker may be added to or removed from members")
                    return None
            return value

        if name == ATTR_USER_ACCOUNT_CONTROL:
            if not _is_int(value) or value & ~int(USER_ACCOUNT_CONTROL_MASK):
                return None
            current = destination.get_int(ATTR_USER_ACCOUNT_CONTROL)
            return (current & ~int(USER_ACCOUNT_CONTROL_MASK)) | value

        if name == ATTR_PWD_LAST_SET:
            if isinstance(value, str):
                try:
                    value = int(value)
                except ValueError:
                    return None
            if not _is_int(value) or value not in PWD_LAST_SET_VALUES:
                return None
            return value

        return None

    def _changes(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> Optional[Dict[str, Any]]:
        if not isinstance(payload, dict) or not payload:
            return None

        conditions = {
            name.lower(): (name, condition)
            for name, condition in self.conditions(destination, permissions).items()
        }

        changes: Dict[str, Any] = {}
        for key, value in payload.items():
            item = conditions.get(str(key).lower())
            if item is None:
                logging.debug(f"Attribute {key!r} cannot be modified")
                return None

            name, condition = item
            if not condition.has_flag(ProtocolAttributeFlags.EDITABLE):
                logging.debug(f"Attribute {name!r} is read-only for the invoker")
                return None

            normalized = self._normalize(certification, destination, name, condition, value)
            if normalized is None:
                logging.debug(f"Value {value!r} is not valid for {name!r}")
                return None

            changes[name] = normalized

        return changes

    def validate(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> bool:
        return self._changes(certification, destination, permissions, payload) is not None

    def execute(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> None:
        changes = self._changes(certification, destination, permissions, payload) or {}

        entry = certification.ledger.get_or_create(destination.dn)
        for name, value in changes.items():
            # An empty string clears the attribute
            certification.connection.set_attribute(
                entry.handle, name, value if value != "" else None
            )
        certification.ledger.mark_commit_required(entry)


class ShowDetailMethod(Method):
    """Fronts modify-detail in the operation list."""

    KIND = MethodKind.SHOW_DETAIL

    def probe(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
    ) -> ProbeResult:
        conditions = ModifyDetailMethod().conditions(destination, permissions)
        if not conditions:
            return None, f"No readable detail on {destination.dn!r}"

        condition = InvokeCondition(
            ProtocolAttributeFlags.INVOKEMETHOD | ProtocolAttributeFlags.PROPERTIES,
            {
                InvokeCondition.METHODS: [MethodKind.MODIFY_DETAIL.value],
                InvokeCondition.PROPERTIES: conditions,
            },
        )
        return condition, ""
