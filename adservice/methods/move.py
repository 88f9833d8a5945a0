"""
Operations changing where an object lives or what it is called.
"""

from typing import Any

import ldap3
from ldap3.utils.conv import escape_filter_chars
from ldap3.utils.dn import escape_rdn

from adservice.lib.certification import Certification
from adservice.lib.constants import (
    ATTR_CN,
    ATTR_NAME,
    ATTR_OU,
    ActiveDirectoryRights,
)
from adservice.lib.errors import NotFoundError
from adservice.lib.ldap import is_descendant_dn, is_same_dn
from adservice.lib.logger import logging
from adservice.lib.objects import ALL_RENAMEABLE, CategoryTypes, DirectoryObject
from adservice.lib.permissions import EffectiveRights
from adservice.lib.protocol import InvokeCondition, ProtocolAttributeFlags
from adservice.methods.base import Method, MethodKind, ProbeResult, missing_right

MOVE_RIGHTS = ActiveDirectoryRights(
    ActiveDirectoryRights.DELETE | ActiveDirectoryRights.DELETE_CHILD
)


def naming_attribute(destination: DirectoryObject) -> str:
    if destination.category & CategoryTypes.ORGANIZATION_UNIT:
        return ATTR_OU
    return ATTR_CN


class RenameMethod(Method):
    KIND = MethodKind.RENAME
    PAYLOAD = str

    def probe(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
    ) -> ProbeResult:
        if destination.parent_dn is None:
            return None, f"{destination.dn!r} has no parent container"

        if not destination.category & ALL_RENAMEABLE:
            return None, f"{destination.dn!r} cannot be renamed"

        for name in (ATTR_NAME, naming_attribute(destination)):
            if not permissions.is_allow(name, ActiveDirectoryRights.WRITE_PROPERTY):
                return None, missing_right(
                    ActiveDirectoryRights.WRITE_PROPERTY, name, destination
                )

        condition = InvokeCondition(
            ProtocolAttributeFlags.NULLDISABLE | ProtocolAttributeFlags.EDITABLE,
            {InvokeCondition.RECEIVED_TYPE: "String"},
        )
        return condition, ""

    def validate(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> bool:
        if not isinstance(payload, str) or not payload.strip():
            return False

        condition, message = self.probe(certification, destination, permissions)
        if condition is None:
            logging.debug(message)
            return False

        if payload.lower() == (destination.name or "").lower():
            logging.debug(f"{destination.dn!r} is already named {payload!r}")
            return False

        attribute = naming_attribute(destination)
        if attribute == ATTR_OU:
            collision = certification.exists(
                f"({ATTR_OU}={escape_filter_chars(payload)})",
                search_base=destination.parent_dn,
                scope=ldap3.LEVEL,
            )
        else:
            collision = certification.exists(f"({ATTR_CN}={escape_filter_chars(payload)})")

        if collision:
            logging.debug(f"An object named {payload!r} already exists")
            return False

        return True

    def execute(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> None:
        entry = certification.ledger.get_or_create(destination.dn)
        certification.connection.rename(
            entry.handle, f"{naming_attribute(destination).upper()}={escape_rdn(payload)}"
        )
        certification.ledger.mark_commit_required(entry)


class MoveMethod(Method):
    KIND = MethodKind.MOVE
    PAYLOAD = str

    def probe(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
    ) -> ProbeResult:
        if destination.parent_dn is None:
            return None, f"{destination.dn!r} has no parent container"

        if not permissions.is_allow(destination.class_name, MOVE_RIGHTS):
            return None, missing_right(MOVE_RIGHTS, destination.class_name, destination)

        if not destination.is_movable:
            return None, f"{destination.dn!r} is protected from moving"

        condition, message = RenameMethod().probe(certification, destination, permissions)
        if condition is None:
            return None, message

        condition = InvokeCondition(
            ProtocolAttributeFlags.NULLDISABLE | ProtocolAttributeFlags.EDITABLE,
            {InvokeCondition.RECEIVED_TYPE: "String"},
        )
        return condition, ""

    def validate(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> bool:
        if not isinstance(payload, str) or not payload.strip():
            return False

        condition, message = self.probe(certification, destination, permissions)
        if condition is None:
            logging.debug(message)
            return False

        if is_same_dn(payload, destination.parent_dn):
            logging.debug(f"{destination.dn!r} already lives in {payload!r}")
            return False

        if is_descendant_dn(payload, destination.dn):
            logging.debug(f"Cannot move {destination.dn!r} below itself")
            return False

        try:
            container = certification.load(payload)
        except NotFoundError:
            logging.debug(f"Destination container {payload!r} does not exist")
            return False

        if not container.category & CategoryTypes.ORGANIZATION_UNIT:
            logging.debug(f"Destination {payload!r} is not an organizational unit")
            return False

        container_permissions = certification.create_permissions(container)
        if not container_permissions.is_allow(
            destination.class_name, ActiveDirectoryRights.CREATE_CHILD
        ):
            logging.debug(
                missing_right(
                    ActiveDirectoryRights.CREATE_CHILD, destination.class_name, container
                )
            )
            return False

        return True

    def execute(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> None:
        ledger = certification.ledger
        entry = ledger.get_or_create(destination.dn)
        container = ledger.get_or_create(payload)
        certification.connection.move(entry.handle, container.handle)
        ledger.mark_commit_required(entry)
