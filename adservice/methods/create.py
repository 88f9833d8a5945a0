"""
Operations creating objects below a container.
"""

from typing import Any, List, Tuple

import ldap3
from ldap3.utils.conv import escape_filter_chars
from ldap3.utils.dn import escape_rdn

from adservice.lib.certification import Certification
from adservice.lib.constants import (
    ATTR_CN,
    ATTR_DISPLAY_NAME,
    ATTR_GIVEN_NAME,
    ATTR_INITIALS,
    ATTR_OU,
    ATTR_SAM_ACCOUNT_NAME,
    ATTR_SN,
    ATTR_UNICODE_PWD,
    ATTR_USER_ACCOUNT_CONTROL,
    CLASS_GROUP,
    CLASS_ORGANIZATION_UNIT,
    CLASS_PERSON,
    CLASS_USER,
    ActiveDirectoryRights,
    UserAccountControl,
)
from adservice.lib.ldap import encode_password
from adservice.lib.logger import logging
from adservice.lib.objects import ALL_CONTAINERS, DirectoryObject
from adservice.lib.permissions import EffectiveRights
from adservice.lib.protocol import (
    CreateGroup,
    CreateOrganizationUnit,
    CreateUser,
    InvokeCondition,
    Payload,
    ProtocolAttributeFlags,
)
from adservice.methods.base import Method, MethodKind, ProbeResult, missing_right


class CreateChildMethod(Method):
    """
    Common part of the create operations.

    RIGHTS_CLASS is the class CreateChild is checked on, OBJECT_CLASS the
    structural class of the new object and RDN_ATTRIBUTE its naming attribute.
    """

    RIGHTS_CLASS = ""
    OBJECT_CLASS = ""
    RDN_ATTRIBUTE = ATTR_CN

    def probe(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
    ) -> ProbeResult:
        if not destination.category & ALL_CONTAINERS:
            return None, f"{destination.dn!r} is not a container"

        if not permissions.is_allow(self.RIGHTS_CLASS, ActiveDirectoryRights.CREATE_CHILD):
            return None, missing_right(
                ActiveDirectoryRights.CREATE_CHILD, self.RIGHTS_CLASS, destination
            )

        condition = InvokeCondition(
            ProtocolAttributeFlags.EDITABLE | ProtocolAttributeFlags.PROPERTIES,
            {
                InvokeCondition.RECEIVED_TYPE: self.PAYLOAD.NAME,
                InvokeCondition.PROPERTIES: self.PAYLOAD.describe(),
            },
        )
        return condition, ""

    def validate(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> bool:
        if not isinstance(payload, self.PAYLOAD):
            return False

        condition, message = self.probe(certification, destination, permissions)
        if condition is None:
            logging.debug(message)
            return False

        if not payload.name or not payload.name.strip():
            logging.debug("Name of the new object is empty")
            return False

        return self.validate_payload(certification, destination, payload)

    def validate_payload(
        self, certification: Certification, destination: DirectoryObject, payload: Any
    ) -> bool:
        raise NotImplementedError

    def execute(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> None:
        ledger = certification.ledger
        parent = ledger.get_or_create(destination.dn)

        handle = certification.connection.create_child(
            parent.handle,
            f"{self.RDN_ATTRIBUTE.upper()}={escape_rdn(payload.name)}",
            self.OBJECT_CLASS,
        )
        for name, value in self.new_attributes(payload):
            certification.connection.set_attribute(handle, name, value)

        entry = ledger.register(handle)
        ledger.mark_commit_required(entry)
        ledger.mark_refresh_required(entry)

    def new_attributes(self, payload: Payload) -> List[Tuple[str, Any]]:
        return []


class CreateUserMethod(CreateChildMethod):
    KIND = MethodKind.CREATE_USER
    PAYLOAD = CreateUser
    # Users are created where persons may be created
    RIGHTS_CLASS = CLASS_PERSON
    OBJECT_CLASS = CLASS_USER

    def validate_payload(
        self, certification: Certification, destination: DirectoryObject, payload: Any
    ) -> bool:
        if not payload.account or not payload.password:
            logging.debug("Account name and password are required")
            return False

        search_filter = (
            f"(|({ATTR_CN}={escape_filter_chars(payload.name)})"
            f"({ATTR_SAM_ACCOUNT_NAME}={escape_filter_chars(payload.account)}))"
        )
        if certification.exists(search_filter):
            logging.debug(
                f"An object named {payload.name!r} or account {payload.account!r} exists"
            )
            return False

        return True

    def new_attributes(self, payload: CreateUser) -> List[Tuple[str, Any]]:
        attributes: List[Tuple[str, Any]] = [
            (ATTR_SAM_ACCOUNT_NAME, payload.account),
            (ATTR_UNICODE_PWD, encode_password(payload.password)),
            (ATTR_USER_ACCOUNT_CONTROL, int(UserAccountControl.NORMAL_ACCOUNT)),
        ]

        for name, value in (
            (ATTR_SN, payload.sn),
            (ATTR_GIVEN_NAME, payload.given_name),
            (ATTR_INITIALS, payload.initials),
        ):
            if value:
                attributes.append((name, value))

        display_name = payload.display_name
        if not display_name:
            display_name = " ".join(v for v in (payload.sn, payload.given_name) if v)
        if display_name:
            attributes.append((ATTR_DISPLAY_NAME, display_name))

        return attributes


class CreateGroupMethod(CreateChildMethod):
    KIND = MethodKind.CREATE_GROUP
    PAYLOAD = CreateGroup
    RIGHTS_CLASS = CLASS_GROUP
    OBJECT_CLASS = CLASS_GROUP

    def validate_payload(
        self, certification: Certification, destination: DirectoryObject, payload: Any
    ) -> bool:
        if certification.exists(f"({ATTR_CN}={escape_filter_chars(payload.name)})"):
            logging.debug(f"An object named {payload.name!r} exists in the domain")
            return False
        return True


class CreateOrganizationUnitMethod(CreateChildMethod):
    KIND = MethodKind.CREATE_ORGANIZATION_UNIT
    PAYLOAD = CreateOrganizationUnit
    RIGHTS_CLASS = CLASS_ORGANIZATION_UNIT
    OBJECT_CLASS = CLASS_ORGANIZATION_UNIT
    RDN_ATTRIBUTE = ATTR_OU

    def validate_payload(
        self, certification: Certification, destination: DirectoryObject, payload: Any
    ) -> bool:
        if certification.exists(
            f"({ATTR_OU}={escape_filter_chars(payload.name)})",
            search_base=destination.dn,
            scope=ldap3.LEVEL,
        ):
            logging.debug(
                f"An organizational unit named {payload.name!r} exists in {destination.dn!r}"
            )
            return False
        return True


class ShowCreatableMethod(Method):
    """Lists the create operations available on a container."""

    KIND = MethodKind.SHOW_CREATABLE
    CREATORS = (
        CreateUserMethod(),
        CreateGroupMethod(),
        CreateOrganizationUnitMethod(),
    )

    def probe(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
    ) -> ProbeResult:
        names = [
            creator.name
            for creator in self.CREATORS
            if creator.probe(certification, destination, permissions)[0] is not None
        ]
        if not names:
            return None, f"Nothing can be created under {destination.dn!r}"

        condition = InvokeCondition(
            ProtocolAttributeFlags.INVOKEMETHOD,
            {InvokeCondition.METHODS: names},
        )
        return condition, ""
