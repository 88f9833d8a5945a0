"""
Security module for parsing and interpreting Active Directory security descriptors.

This module provides:
- InheritanceScope: How far down the tree an access control entry applies
- AccessControlEntry: Immutable snapshot of one entry of a DACL
- ActiveDirectorySecurity: Parser turning a binary descriptor into entries
- Helpers computing the security identifiers relevant to an access check
"""

import enum
import re
from typing import Iterable, List, NamedTuple, Optional, Set

from impacket.ldap import ldaptypes
from impacket.uuid import bin_to_string
from ldap3.protocol.formatters.formatters import format_sid

from adservice.lib.constants import (
    EMPTY_GUID,
    SECURITY_PRINCIPAL_RIDS,
    SECURITY_PRINCIPAL_SIDS,
    SID_EVERYONE,
    SID_SELF,
    AceFlags,
    ActiveDirectoryRights,
)

# ACE types carried over from a DACL; audit and callback entries are ignored
ALLOW_ACE_TYPES = (
    ldaptypes.ACCESS_ALLOWED_ACE.ACE_TYPE,
    ldaptypes.ACCESS_ALLOWED_OBJECT_ACE.ACE_TYPE,
)
DENY_ACE_TYPES = (
    ldaptypes.ACCESS_DENIED_ACE.ACE_TYPE,
    ldaptypes.ACCESS_DENIED_OBJECT_ACE.ACE_TYPE,
)
OBJECT_ACE_TYPES = (
    ldaptypes.ACCESS_ALLOWED_OBJECT_ACE.ACE_TYPE,
    ldaptypes.ACCESS_DENIED_OBJECT_ACE.ACE_TYPE,
)

_SECURITY_PRINCIPAL_RID_PATTERN = re.compile(
    r"^S-1-5-21-.+-(" + "|".join(SECURITY_PRINCIPAL_RIDS) + r")$"
)


class InheritanceScope(enum.Enum):
    """Objects an access control entry applies to, relative to the one holding it."""

    NONE = "none"
    SELF_AND_CHILDREN = "self-and-children"
    ALL = "all"
    CHILDREN = "children"
    DESCENDENTS = "descendents"

    @staticmethod
    def from_ace_flags(flags: int) -> "InheritanceScope":
        """
        Derive the scope from the flags of an ACE header.

        Args:
            flags: AceFlags of the entry

        Returns:
            The matching inheritance scope
        """
        if not flags & AceFlags.CONTAINER_INHERIT:
            return InheritanceScope.NONE

        no_propagate = bool(flags & AceFlags.NO_PROPAGATE_INHERIT)
        inherit_only = bool(flags & AceFlags.INHERIT_ONLY)

        if no_propagate and inherit_only:
            return InheritanceScope.CHILDREN
        if no_propagate:
            return InheritanceScope.SELF_AND_CHILDREN
        if inherit_only:
            return InheritanceScope.DESCENDENTS
        return InheritanceScope.ALL

    def __str__(self) -> str:
        return self.value


class AccessControlEntry(NamedTuple):
    """
    One entry of a discretionary access control list.

    object_type and inherited_object_type are lowercase GUID strings, empty
    when the entry does not carry them.
    """

    sid: str
    is_allow: bool
    is_inherited: bool
    scope: InheritanceScope
    rights: ActiveDirectoryRights
    object_type: str = ""
    inherited_object_type: str = ""

    @property
    def has_object_type(self) -> bool:
        return bool(self.object_type) and self.object_type != EMPTY_GUID

    @property
    def has_inherited_object_type(self) -> bool:
        return (
            bool(self.inherited_object_type)
            and self.inherited_object_type != EMPTY_GUID
        )


class ActiveDirectorySecurity:
    """Parser for Active Directory security descriptors."""

    def __init__(self, security_descriptor: bytes) -> None:
        """
        Initialize a security descriptor parser.

        Args:
            security_descriptor: Binary representation of a security descriptor
        """
        self.sd = ldaptypes.SR_SECURITY_DESCRIPTOR()
        self.sd.fromString(security_descriptor)

        self.owner: Optional[str] = None
        if self.sd["OffsetOwner"] != 0:
            self.owner = format_sid(self.sd["OwnerSid"].getData())

        self.aces: List[AccessControlEntry] = []
        self._parse_aces()

    def _parse_aces(self) -> None:
        """Parse the allow and deny entries of the DACL, keeping their order."""
        if self.sd["OffsetDacl"] == 0:
            return

        for ace in self.sd["Dacl"]["Data"]:
            ace_type = ace["AceType"]
            if ace_type not in ALLOW_ACE_TYPES and ace_type not in DENY_ACE_TYPES:
                continue

            object_type = ""
            inherited_object_type = ""
            if ace_type in OBJECT_ACE_TYPES:
                if ace["Ace"].hasFlag(
                    ldaptypes.ACCESS_ALLOWED_OBJECT_ACE.ACE_OBJECT_TYPE_PRESENT
                ):
                    object_type = bin_to_string(ace["Ace"]["ObjectType"]).lower()
                if ace["Ace"].hasFlag(
                    ldaptypes.ACCESS_ALLOWED_OBJECT_ACE.ACE_INHERITED_OBJECT_TYPE_PRESENT
                ):
                    inherited_object_type = bin_to_string(
                        ace["Ace"]["InheritedObjectType"]
                    ).lower()

            self.aces.append(
                AccessControlEntry(
                    sid=format_sid(ace["Ace"]["Sid"].getData()),
                    is_allow=ace_type in ALLOW_ACE_TYPES,
                    is_inherited=bool(ace["AceFlags"] & AceFlags.INHERITED),
                    scope=InheritanceScope.from_ace_flags(ace["AceFlags"]),
                    rights=ActiveDirectoryRights(ace["Ace"]["Mask"]["Mask"]),
                    object_type=object_type,
                    inherited_object_type=inherited_object_type,
                )
            )

    def to_bytes(self) -> bytes:
        """
        Convert the security descriptor to its binary representation.

        Returns:
            Binary representation of the security descriptor
        """
        return self.sd.getData()


def get_security_sids(
    invoker_sids: Iterable[str],
    invoker_sid: Optional[str],
    destination_sid: Optional[str],
) -> Set[str]:
    """
    Compute the SIDs an access check against one object is evaluated with.

    Principal Self is added when the invoker is the object itself, Everyone
    otherwise; exactly one of them is ever present. Only the invoker's own
    SID decides this: a group the invoker belongs to is not the invoker.

    Args:
        invoker_sids: SIDs the invoker's token carries
        invoker_sid: objectSid of the invoker
        destination_sid: objectSid of the object being accessed, if any

    Returns:
        Set of SIDs to match access control entries against
    """
    sids = set(invoker_sids)
    sids.discard(SID_SELF)
    sids.discard(SID_EVERYONE)

    if destination_sid and destination_sid == invoker_sid:
        sids.add(SID_SELF)
    else:
        sids.add(SID_EVERYONE)

    return sids


def is_security_principal(sids: Iterable[str]) -> bool:
    """
    Check whether a SID set belongs to an administrative principal.

    Administrative principals are the domain administrator, Domain Admins,
    Enterprise Admins, Account Operators and Administrators.
    """
    for sid in sids:
        if sid in SECURITY_PRINCIPAL_SIDS:
            return True
        if _SECURITY_PRINCIPAL_RID_PATTERN.match(sid):
            return True
    return False
