import pytest
from impacket.ldap import ldaptypes
from impacket.uuid import string_to_bin

from adservice.lib.constants import (
    SID_EVERYONE,
    SID_SELF,
    AceFlags,
    ActiveDirectoryRights,
)
from adservice.lib.security import (
    AccessControlEntry,
    ActiveDirectorySecurity,
    InheritanceScope,
    get_security_sids,
    is_security_principal,
)

from .conftest import ALICE_SID, BOB_SID, DESCRIPTION, HELPDESK_SID, USER, sid

SE_DACL_PRESENT = 0x0004
SE_SELF_RELATIVE = 0x8000


def create_ace(sid_string: str, mask: int, flags: int = 0) -> ldaptypes.ACE:
    ace = ldaptypes.ACE()
    ace["AceType"] = ldaptypes.ACCESS_ALLOWED_ACE.ACE_TYPE
    ace["AceFlags"] = flags
    ace_data = ldaptypes.ACCESS_ALLOWED_ACE()
    ace_data["Mask"] = ldaptypes.ACCESS_MASK()
    ace_data["Mask"]["Mask"] = mask
    ace_data["Sid"] = ldaptypes.LDAP_SID()
    ace_data["Sid"].fromCanonical(sid_string)
    ace["Ace"] = ace_data
    return ace


def create_denied_ace(sid_string: str, mask: int) -> ldaptypes.ACE:
    ace = ldaptypes.ACE()
    ace["AceType"] = ldaptypes.ACCESS_DENIED_ACE.ACE_TYPE
    ace["AceFlags"] = 0
    ace_data = ldaptypes.ACCESS_DENIED_ACE()
    ace_data["Mask"] = ldaptypes.ACCESS_MASK()
    ace_data["Mask"]["Mask"] = mask
    ace_data["Sid"] = ldaptypes.LDAP_SID()
    ace_data["Sid"].fromCanonical(sid_string)
    ace["Ace"] = ace_data
    return ace


def create_object_ace(
    sid_string: str, mask: int, object_type: str, inherited_object_type: str, flags: int
) -> ldaptypes.ACE:
    ace = ldaptypes.ACE()
    ace["AceType"] = ldaptypes.ACCESS_ALLOWED_OBJECT_ACE.ACE_TYPE
    ace["AceFlags"] = flags
    ace_data = ldaptypes.ACCESS_ALLOWED_OBJECT_ACE()
    ace_data["Mask"] = ldaptypes.ACCESS_MASK()
    ace_data["Mask"]["Mask"] = mask
    ace_data["Flags"] = (
        ldaptypes.ACCESS_ALLOWED_OBJECT_ACE.ACE_OBJECT_TYPE_PRESENT
        | ldaptypes.ACCESS_ALLOWED_OBJECT_ACE.ACE_INHERITED_OBJECT_TYPE_PRESENT
    )
    ace_data["ObjectType"] = string_to_bin(object_type)
    ace_data["InheritedObjectType"] = string_to_bin(inherited_object_type)
    ace_data["Sid"] = ldaptypes.LDAP_SID()
    ace_data["Sid"].fromCanonical(sid_string)
    ace["Ace"] = ace_data
    return ace


def create_sd(aces) -> bytes:
    sd = ldaptypes.SR_SECURITY_DESCRIPTOR()
    sd["Revision"] = b"\x01"
    sd["Sbz1"] = b"\x00"
    sd["Control"] = SE_DACL_PRESENT | SE_SELF_RELATIVE
    sd["OwnerSid"] = ldaptypes.LDAP_SID()
    sd["OwnerSid"].fromCanonical("S-1-5-11")
    sd["GroupSid"] = b""
    sd["Sacl"] = b""

    if aces is None:
        sd["Dacl"] = b""
    else:
        acl = ldaptypes.ACL()
        acl["AclRevision"] = 4
        acl["Sbz1"] = 0
        acl["Sbz2"] = 0
        acl.aces = list(aces)
        sd["Dacl"] = acl

    return sd.getData()


class TestInheritanceScope:
    @pytest.mark.parametrize(
        "flags,expected",
        [
            (0, InheritanceScope.NONE),
            (AceFlags.OBJECT_INHERIT, InheritanceScope.NONE),
            (AceFlags.INHERITED, InheritanceScope.NONE),
            (AceFlags.CONTAINER_INHERIT, InheritanceScope.ALL),
            (AceFlags.CONTAINER_INHERIT | AceFlags.INHERITED, InheritanceScope.ALL),
            (
                AceFlags.CONTAINER_INHERIT | AceFlags.NO_PROPAGATE_INHERIT,
                InheritanceScope.SELF_AND_CHILDREN,
            ),
            (
                AceFlags.CONTAINER_INHERIT | AceFlags.INHERIT_ONLY,
                InheritanceScope.DESCENDENTS,
            ),
            (
                AceFlags.CONTAINER_INHERIT
                | AceFlags.NO_PROPAGATE_INHERIT
                | AceFlags.INHERIT_ONLY,
                InheritanceScope.CHILDREN,
            ),
        ],
    )
    def test_from_ace_flags(self, flags, expected):
        assert InheritanceScope.from_ace_flags(int(flags)) is expected

    def test_str(self):
        assert str(InheritanceScope.SELF_AND_CHILDREN) == "self-and-children"


class TestActiveDirectorySecurity:
    def test_parse(self):
        """Allow, object and deny entries keep their order and their fields."""
        descriptor = create_sd(
            [
                create_ace(
                    "S-1-5-11",
                    ActiveDirectoryRights.READ_PROPERTY,
                    flags=AceFlags.CONTAINER_INHERIT,
                ),
                create_object_ace(
                    HELPDESK_SID,
                    ActiveDirectoryRights.WRITE_PROPERTY,
                    DESCRIPTION,
                    USER,
                    flags=AceFlags.CONTAINER_INHERIT
                    | AceFlags.INHERIT_ONLY
                    | AceFlags.INHERITED,
                ),
                create_denied_ace(SID_EVERYONE, ActiveDirectoryRights.DELETE),
            ]
        )

        security = ActiveDirectorySecurity(descriptor)

        assert security.owner == "S-1-5-11"
        assert security.aces == [
            AccessControlEntry(
                sid="S-1-5-11",
                is_allow=True,
                is_inherited=False,
                scope=InheritanceScope.ALL,
                rights=ActiveDirectoryRights.READ_PROPERTY,
            ),
            AccessControlEntry(
                sid=HELPDESK_SID,
                is_allow=True,
                is_inherited=True,
                scope=InheritanceScope.DESCENDENTS,
                rights=ActiveDirectoryRights.WRITE_PROPERTY,
                object_type=DESCRIPTION,
                inherited_object_type=USER,
            ),
            AccessControlEntry(
                sid=SID_EVERYONE,
                is_allow=False,
                is_inherited=False,
                scope=InheritanceScope.NONE,
                rights=ActiveDirectoryRights.DELETE,
            ),
        ]

    def test_object_type_flags(self):
        security = ActiveDirectorySecurity(
            create_sd(
                [
                    create_object_ace(
                        HELPDESK_SID, ActiveDirectoryRights.WRITE_PROPERTY, DESCRIPTION, USER, 0
                    )
                ]
            )
        )
        entry = security.aces[0]
        assert entry.has_object_type
        assert entry.has_inherited_object_type

    def test_without_dacl(self):
        security = ActiveDirectorySecurity(create_sd(None))
        assert security.owner == "S-1-5-11"
        assert security.aces == []


class TestAccessControlEntry:
    def test_empty_guid_is_no_object_type(self):
        entry = AccessControlEntry(
            sid=HELPDESK_SID,
            is_allow=True,
            is_inherited=False,
            scope=InheritanceScope.NONE,
            rights=ActiveDirectoryRights.READ_PROPERTY,
            object_type="00000000-0000-0000-0000-000000000000",
        )
        assert not entry.has_object_type
        assert not entry.has_inherited_object_type


class TestSecuritySids:
    def test_self_for_own_object(self):
        sids = get_security_sids({ALICE_SID, "S-1-5-11"}, ALICE_SID, ALICE_SID)
        assert SID_SELF in sids
        assert SID_EVERYONE not in sids

    def test_everyone_for_other_object(self):
        sids = get_security_sids({ALICE_SID, "S-1-5-11"}, ALICE_SID, BOB_SID)
        assert SID_EVERYONE in sids
        assert SID_SELF not in sids

    def test_everyone_for_object_without_sid(self):
        sids = get_security_sids({ALICE_SID}, ALICE_SID, None)
        assert sids == {ALICE_SID, SID_EVERYONE}

    def test_exactly_one_of_self_and_everyone(self):
        """Stale markers in the invoker's set never leak into the result."""
        invoker = {ALICE_SID, SID_SELF, SID_EVERYONE}

        for destination in (ALICE_SID, BOB_SID, None):
            sids = get_security_sids(invoker, ALICE_SID, destination)
            assert len({SID_SELF, SID_EVERYONE} & sids) == 1

        assert invoker == {ALICE_SID, SID_SELF, SID_EVERYONE}

    def test_own_group_is_not_self(self):
        """A group the invoker belongs to is evaluated with Everyone."""
        sids = get_security_sids({ALICE_SID, HELPDESK_SID, "S-1-5-11"}, ALICE_SID, HELPDESK_SID)
        assert SID_EVERYONE in sids
        assert SID_SELF not in sids

    def test_missing_invoker_sid_is_never_self(self):
        sids = get_security_sids({"S-1-5-11"}, None, None)
        assert sids == {"S-1-5-11", SID_EVERYONE}


class TestSecurityPrincipal:
    @pytest.mark.parametrize(
        "sids,expected",
        [
            ({sid(500)}, True),
            ({sid(512)}, True),
            ({sid(519)}, True),
            ({"S-1-5-32-544"}, True),
            ({"S-1-5-32-548"}, True),
            ({sid(513), ALICE_SID, "S-1-5-11"}, False),
            ({sid(5000)}, False),
            ({sid(1500)}, False),
            ({"S-1-5-32-545"}, False),
            (set(), False),
        ],
    )
    def test_is_security_principal(self, sids, expected):
        assert is_security_principal(sids) is expected
