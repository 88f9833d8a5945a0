"""
In-memory directory used by the test suite.

FakeDirectory is an LDAPConnection whose server side lives in a dictionary:
searches run through a small LDAP filter evaluator, commits are applied to the
stored objects, and every commit, refresh and dispose is recorded so tests
can assert on them.
"""

import uuid
from typing import Any, Dict, List, Optional, Set, Tuple

import ldap3
import pytest
from impacket.uuid import string_to_bin
from ldap3.utils.ciDict import CaseInsensitiveDict

from adservice.lib.constants import ActiveDirectoryRights
from adservice.lib.errors import (
    ActionFailedError,
    LogicError,
    NameDuplicateError,
    PermissionDeniedError,
)
from adservice.lib.ldap import (
    MATCHING_RULE_IN_CHAIN,
    DirectoryEntry,
    LDAPConnection,
    LDAPEntry,
    is_descendant_dn,
    is_same_dn,
    parent_of,
)
from adservice.lib.objects import DirectoryObject
from adservice.lib.schema import SchemaCatalog
from adservice.lib.security import AccessControlEntry, InheritanceScope
from adservice.lib.target import Target
from adservice.service import ADService

DOMAIN_ROOT = "DC=corp,DC=local"
CONFIGURATION_PATH = f"CN=Configuration,{DOMAIN_ROOT}"
SCHEMA_PATH = f"CN=Schema,{CONFIGURATION_PATH}"
EXTENDED_RIGHTS_PATH = f"CN=Extended-Rights,{CONFIGURATION_PATH}"
DOMAIN_SID = "S-1-5-21-1000-2000-3000"

GUID_ATTRIBUTES = {"objectguid", "schemaidguid", "attributesecurityguid"}
MULTI_VALUED = {"objectclass", "member"}

# Class GUIDs
TOP = "bf967ab7-0de6-11d0-a285-00aa003049e2"
PERSON = "bf967aa7-0de6-11d0-a285-00aa003049e2"
ORGANIZATIONAL_PERSON = "bf967aa4-0de6-11d0-a285-00aa003049e2"
USER = "bf967aba-0de6-11d0-a285-00aa003049e2"
GROUP = "bf967a9c-0de6-11d0-a285-00aa003049e2"
ORGANIZATIONAL_UNIT = "bf967aa5-0de6-11d0-a285-00aa003049e2"
CONTAINER = "bf967a8b-0de6-11d0-a285-00aa003049e2"
DOMAIN = "19195a5a-6da0-11d0-afd3-00c04fd930c9"
DOMAIN_DNS = "19195a5b-6da0-11d0-afd3-00c04fd930c9"

# Attribute GUIDs
MEMBER = "bf9679c0-0de6-11d0-a285-00aa003049e2"
DESCRIPTION = "bf967950-0de6-11d0-a285-00aa003049e2"
SN = "bf967a41-0de6-11d0-a285-00aa003049e2"

# Control access rights
GENERAL_INFORMATION = "59ba2f42-79a2-11d0-9020-00c04fc2d3cf"
CHANGE_PASSWORD = "ab721a53-1e2f-11d0-9819-00aa0040529b"
RESET_PASSWORD = "00299570-246d-11d0-a768-00aa006e0529"
# The validated write shares its GUID with the member attribute
SELF_MEMBERSHIP = MEMBER

FOREIGN_GUID = "11111111-2222-3333-4444-555555555555"

ATTRIBUTES = [
    # name, GUID, single-valued, property set
    ("cn", "bf96793f-0de6-11d0-a285-00aa003049e2", True, ""),
    ("name", "bf967a0e-0de6-11d0-a285-00aa003049e2", True, ""),
    ("ou", "bf9679f0-0de6-11d0-a285-00aa003049e2", True, ""),
    ("objectClass", "bf9679e5-0de6-11d0-a285-00aa003049e2", False, ""),
    ("objectGUID", "bf9679e7-0de6-11d0-a285-00aa003049e2", True, ""),
    ("description", DESCRIPTION, True, ""),
    ("displayName", "bf967953-0de6-11d0-a285-00aa003049e2", True, ""),
    ("systemFlags", "e0fa1e62-9b45-11d0-afdd-00c04fd930c9", True, ""),
    ("sn", SN, True, GENERAL_INFORMATION),
    ("givenName", "f0f8ff8e-1191-11d0-a060-00aa006c33ed", True, GENERAL_INFORMATION),
    ("initials", "f0f8ff90-1191-11d0-a060-00aa006c33ed", True, GENERAL_INFORMATION),
    ("sAMAccountName", "3e0abfd0-126a-11d0-a060-00aa006c33ed", True, ""),
    ("unicodePwd", "bf9679e1-0de6-11d0-a285-00aa003049e2", True, ""),
    ("userAccountControl", "bf967a68-0de6-11d0-a285-00aa003049e2", True, ""),
    ("pwdLastSet", "bf967a0a-0de6-11d0-a285-00aa003049e2", True, ""),
    ("objectSid", "bf9679e8-0de6-11d0-a285-00aa003049e2", True, ""),
    ("primaryGroupID", "bf967a00-0de6-11d0-a285-00aa003049e2", True, ""),
    ("member", MEMBER, False, ""),
    ("oldLogonScript", "aaaaaaaa-0000-0000-0000-000000000001", True, ""),
]

DEFUNCT_ATTRIBUTES = {"oldLogonScript"}

CLASSES = [
    # name, GUID, superclass, must contain, may contain, possible superiors
    ("top", TOP, "top", ["objectClass"],
     ["name", "objectGUID", "description", "displayName", "systemFlags"], []),
    ("person", PERSON, "top", ["cn"], ["sn"],
     ["container", "organizationalUnit", "domainDNS"]),
    ("organizationalPerson", ORGANIZATIONAL_PERSON, "person", [],
     ["givenName", "initials"], ["container", "organizationalUnit"]),
    ("user", USER, "organizationalPerson", [],
     ["sAMAccountName", "unicodePwd", "userAccountControl", "pwdLastSet",
      "objectSid", "primaryGroupID", "oldLogonScript"],
     ["container", "organizationalUnit", "domainDNS"]),
    ("group", GROUP, "top", [], ["cn", "member", "sAMAccountName", "objectSid"],
     ["container", "organizationalUnit", "domainDNS"]),
    ("organizationalUnit", ORGANIZATIONAL_UNIT, "top", ["ou"], [],
     ["organizationalUnit", "domainDNS"]),
    ("container", CONTAINER, "top", ["cn"], [],
     ["container", "organizationalUnit", "domainDNS"]),
    ("domain", DOMAIN, "top", [], ["objectSid"], []),
    ("domainDNS", DOMAIN_DNS, "domain", [], [], ["domainDNS"]),
]

CONTROL_ACCESS_RIGHTS = [
    # display name, rightsGuid, appliesTo, validAccesses
    ("General Information", GENERAL_INFORMATION, [USER], 48),
    ("Change Password", CHANGE_PASSWORD, [USER], 256),
    ("Reset Password", RESET_PASSWORD, [USER], 256),
    ("Add/Remove self as member", SELF_MEMBERSHIP, [GROUP], 8),
]

CLASS_CHAINS = {
    "user": ["top", "person", "organizationalPerson", "user"],
    "group": ["top", "group"],
    "organizationalunit": ["top", "organizationalUnit"],
    "container": ["top", "container"],
}


def sid(rid: int) -> str:
    return f"{DOMAIN_SID}-{rid}"


def ace(
    trustee: str,
    rights: int,
    object_type: str = "",
    is_allow: bool = True,
    is_inherited: bool = False,
    scope: InheritanceScope = InheritanceScope.NONE,
    inherited_object_type: str = "",
) -> AccessControlEntry:
    return AccessControlEntry(
        sid=trustee,
        is_allow=is_allow,
        is_inherited=is_inherited,
        scope=scope,
        rights=ActiveDirectoryRights(rights),
        object_type=object_type,
        inherited_object_type=inherited_object_type,
    )


# =========================================================================
# Filter evaluation
# =========================================================================


def _unescape(value: str) -> bytes:
    output = bytearray()
    i = 0
    while i < len(value):
        if value[i] == "\\":
            output.append(int(value[i + 1 : i + 3], 16))
            i += 3
        else:
            output.extend(value[i].encode())
            i += 1
    return bytes(output)


def _fold(value: bytes) -> Optional[str]:
    try:
        return value.decode("utf-8").casefold()
    except UnicodeDecodeError:
        return None


def _values_equal(stored: bytes, needle: bytes) -> bool:
    if stored == needle:
        return True
    folded = _fold(stored)
    return folded is not None and folded == _fold(needle)


def _to_raw(name: str, value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if name.lower() in GUID_ATTRIBUTES and isinstance(value, str):
        return string_to_bin(value)
    if isinstance(value, bool):
        return b"TRUE" if value else b"FALSE"
    return str(value).encode("utf-8")


def _split_filter(text: str, start: int) -> Tuple[str, int]:
    """Return the parenthesised filter starting at start and the index after it."""
    depth = 0
    i = start
    while i < len(text):
        if text[i] == "(":
            depth += 1
        elif text[i] == ")":
            depth -= 1
            if depth == 0:
                return text[start + 1 : i], i + 1
        i += 1
    raise ValueError(f"Unbalanced filter {text!r}")


class FilterEvaluator:
    """Evaluates &, |, !, equality, presence and in-chain member filters."""

    def __init__(self, directory: "FakeDirectory") -> None:
        self.directory = directory

    def matches(self, search_filter: str, obj: "FakeObject") -> bool:
        inner, _ = _split_filter(search_filter, 0)
        return self._evaluate(inner, obj)

    def _evaluate(self, inner: str, obj: "FakeObject") -> bool:
        operator = inner[0]
        if operator in "&|":
            results = []
            i = 1
            while i < len(inner):
                part, i = _split_filter(inner, i)
                results.append(self._evaluate(part, obj))
            return all(results) if operator == "&" else any(results)

        if operator == "!":
            part, _ = _split_filter(inner, 1)
            return not self._evaluate(part, obj)

        attribute, value = inner.split("=", 1)

        if attribute.endswith(":"):
            name, rule, _ = attribute.split(":")
            assert rule == MATCHING_RULE_IN_CHAIN
            member_dn = _unescape(value).decode()
            return self._is_member_in_chain(obj, name, member_dn, set())

        if value == "*":
            return attribute in obj.attributes

        needle = _unescape(value)
        return any(_values_equal(stored, needle) for stored in obj.raw(attribute))

    def _is_member_in_chain(
        self, group: "FakeObject", name: str, member_dn: str, seen: Set[str]
    ) -> bool:
        if group.dn.lower() in seen:
            return False
        seen.add(group.dn.lower())

        for value in group.values(name):
            if is_same_dn(value, member_dn):
                return True
            nested = self.directory.objects.get(str(value).lower())
            if nested is not None and self._is_member_in_chain(
                nested, name, member_dn, seen
            ):
                return True
        return False


# =========================================================================
# Directory double
# =========================================================================


class FakeObject:
    def __init__(self, dn: str, attributes: Dict[str, Any]) -> None:
        self.dn = dn
        self.attributes = CaseInsensitiveDict(attributes)

    def values(self, name: str) -> List[Any]:
        value = self.attributes.get(name)
        if value is None:
            return []
        if isinstance(value, list):
            return value
        return [value]

    def raw(self, name: str) -> List[bytes]:
        return [_to_raw(name, value) for value in self.values(name)]

    def to_result(self) -> LDAPEntry:
        return LDAPEntry(
            dn=self.dn,
            attributes=dict(self.attributes),
            raw_attributes={name: self.raw(name) for name in self.attributes},
            type="searchResEntry",
        )


class FakeDirectory(LDAPConnection):
    """
    Directory client backed by an in-memory tree.

    Attributes:
        objects: Stored objects keyed by lowercase DN
        security: Access control entries per lowercase DN
        searches: Filters searched, in order
        commits: DNs committed, in order
        refreshes: (DN, attribute names) refreshed, in order
        disposed: DNs of the released handles, in order
        refused: Lowercase DNs whose commits the server refuses
    """

    def __init__(self) -> None:
        super().__init__(
            Target(
                None,
                domain="CORP.LOCAL",
                username="alice",
                password="Passw0rd!",
                remote_name="dc.corp.local",
                target_ip="10.0.0.1",
            )
        )
        self.default_path = DOMAIN_ROOT
        self.configuration_path = CONFIGURATION_PATH
        self.schema_path = SCHEMA_PATH
        self.domain = "corp.local"

        self.objects: Dict[str, FakeObject] = {}
        self.security: Dict[str, List[AccessControlEntry]] = {}
        self.evaluator = FilterEvaluator(self)

        self.searches: List[str] = []
        self.commits: List[str] = []
        self.refreshes: List[Tuple[str, Optional[List[str]]]] = []
        self.disposed: List[str] = []
        self.passwords: List[Tuple[str, str, Optional[str]]] = []
        self.refused: Set[str] = set()
        self.refuse_passwords = False

        self._seed_schema()

    # -- seeding ----------------------------------------------------------

    def add(self, dn: str, object_classes: List[str], **attributes: Any) -> FakeObject:
        rdn_attribute, rdn_value = dn.split(",")[0].split("=", 1)
        values: Dict[str, Any] = {
            "objectClass": list(object_classes),
            "name": rdn_value,
            rdn_attribute.lower(): rdn_value,
            "objectGUID": str(uuid.uuid4()),
        }
        values.update(attributes)
        obj = FakeObject(dn, values)
        self.objects[dn.lower()] = obj
        return obj

    def _seed_schema(self) -> None:
        self.add(SCHEMA_PATH, ["top", "dMD"])
        self.add(EXTENDED_RIGHTS_PATH, ["top", "container"])

        for name, guid, single_valued, property_set in ATTRIBUTES:
            attributes: Dict[str, Any] = {
                "lDAPDisplayName": name,
                "schemaIDGUID": guid,
                "isSingleValued": single_valued,
            }
            if property_set:
                attributes["attributeSecurityGUID"] = property_set
            if name in DEFUNCT_ATTRIBUTES:
                attributes["isDefunct"] = True
            self.add(f"CN={name},{SCHEMA_PATH}", ["top", "attributeSchema"], **attributes)

        for name, guid, superclass, must, may, superiors in CLASSES:
            self.add(
                f"CN={name},{SCHEMA_PATH}",
                ["top", "classSchema"],
                lDAPDisplayName=name,
                schemaIDGUID=guid,
                subClassOf=superclass,
                systemMustContain=must,
                systemMayContain=may,
                systemPossSuperiors=superiors,
            )

        for name, guid, applies_to, valid_accesses in CONTROL_ACCESS_RIGHTS:
            self.add(
                f"CN={name.replace('/', '-')},{EXTENDED_RIGHTS_PATH}",
                ["top", "controlAccessRight"],
                displayName=name,
                rightsGuid=guid,
                appliesTo=applies_to,
                validAccesses=valid_accesses,
            )

    # -- client interface -------------------------------------------------

    def connect(self) -> None:
        pass

    def close(self) -> None:
        pass

    def search(
        self,
        search_filter: str,
        attributes: Any = ldap3.ALL_ATTRIBUTES,
        search_base: Optional[str] = None,
        scope: str = ldap3.SUBTREE,
        query_sd: bool = False,
    ) -> List[LDAPEntry]:
        self.searches.append(search_filter)
        base = search_base or self.default_path
        # The configuration partition is not part of the domain partition
        in_configuration = is_descendant_dn(base, CONFIGURATION_PATH)

        results = []
        for obj in list(self.objects.values()):
            if not in_configuration and is_descendant_dn(obj.dn, CONFIGURATION_PATH):
                continue

            if scope == ldap3.BASE:
                in_scope = is_same_dn(obj.dn, base)
            elif scope == ldap3.LEVEL:
                in_scope = is_same_dn(parent_of(obj.dn), base)
            else:
                in_scope = is_descendant_dn(obj.dn, base)

            if in_scope and self.evaluator.matches(search_filter, obj):
                results.append(obj.to_result())
        return results

    def read_security_descriptor(self, handle: DirectoryEntry) -> List[AccessControlEntry]:
        key = handle.dn.lower()
        if key in self.security:
            return list(self.security[key])
        return super().read_security_descriptor(handle)

    def commit(self, handle: DirectoryEntry) -> None:
        if handle.is_disposed:
            raise LogicError(f"Entry {handle.dn!r} has already been released")

        key = handle.dn.lower()
        if key in self.refused:
            raise PermissionDeniedError(f"Modify {handle.dn!r}: insufficientAccessRights")

        if handle.is_new:
            if key in self.objects:
                raise NameDuplicateError(f"Add {handle.dn!r}: entryAlreadyExists")
            class_name = handle.changes["objectClass"][-1]
            attributes = {
                name: values if name.lower() in MULTI_VALUED else values[0]
                for name, values in handle.changes.items()
                if name.lower() != "objectclass" and values
            }
            self.add(handle.dn, CLASS_CHAINS[class_name.lower()], **attributes)
        elif len(handle.changes) > 0:
            obj = self.objects[key]
            for name, values in handle.changes.items():
                if not values:
                    obj.attributes.pop(name, None)
                elif name.lower() in MULTI_VALUED:
                    obj.attributes[name] = list(values)
                else:
                    obj.attributes[name] = values[0]

        if handle.new_rdn is not None or handle.new_superior is not None:
            new_dn = handle.target_dn()
            self._relocate(handle.dn, new_dn)
            handle.dn = new_dn

        self.commits.append(handle.dn)
        handle.clear_staged()

    def _relocate(self, old_dn: str, new_dn: str) -> None:
        for key in list(self.objects):
            obj = self.objects[key]
            if not is_descendant_dn(obj.dn, old_dn):
                continue
            suffix_length = len(old_dn)
            obj.dn = obj.dn[: len(obj.dn) - suffix_length] + new_dn
            del self.objects[key]
            self.objects[obj.dn.lower()] = obj
            if obj.dn == new_dn:
                rdn_attribute, rdn_value = new_dn.split(",")[0].split("=", 1)
                obj.attributes["name"] = rdn_value
                obj.attributes[rdn_attribute.lower()] = rdn_value

        for key, aces in list(self.security.items()):
            if is_descendant_dn(key, old_dn):
                del self.security[key]
                self.security[(key[: len(key) - len(old_dn)] + new_dn).lower()] = aces

    def refresh(
        self, handle: DirectoryEntry, attribute_names: Optional[List[str]] = None
    ) -> None:
        super().refresh(handle, attribute_names)
        self.refreshes.append((handle.dn, attribute_names))

    def dispose(self, handle: DirectoryEntry) -> None:
        super().dispose(handle)
        self.disposed.append(handle.dn)

    def change_password(
        self, handle: DirectoryEntry, old_password: str, new_password: str
    ) -> None:
        if self.refuse_passwords:
            raise ActionFailedError(f"Change password of {handle.dn!r}: constraintViolation")
        self.passwords.append((handle.dn, new_password, old_password))

    def reset_password(self, handle: DirectoryEntry, new_password: str) -> None:
        if self.refuse_passwords:
            raise ActionFailedError(f"Reset password of {handle.dn!r}: constraintViolation")
        self.passwords.append((handle.dn, new_password, None))


# =========================================================================
# Fixtures
# =========================================================================

ALICE = f"CN=Alice,OU=Staff,{DOMAIN_ROOT}"
BOB = f"CN=Bob,OU=Staff,{DOMAIN_ROOT}"
CAROL = f"CN=Carol,OU=Sales,{DOMAIN_ROOT}"
ADMINISTRATOR = f"CN=Administrator,CN=Users,{DOMAIN_ROOT}"
HELPDESK = f"CN=Helpdesk,OU=Staff,{DOMAIN_ROOT}"
DOMAIN_ADMINS = f"CN=Domain Admins,CN=Users,{DOMAIN_ROOT}"
STAFF = f"OU=Staff,{DOMAIN_ROOT}"
SUB = f"OU=Sub,OU=Staff,{DOMAIN_ROOT}"
SALES = f"OU=Sales,{DOMAIN_ROOT}"
ARCHIVE = f"OU=Archive,{DOMAIN_ROOT}"
USERS = f"CN=Users,{DOMAIN_ROOT}"

ALICE_SID = sid(1105)
BOB_SID = sid(1106)
HELPDESK_SID = sid(1200)
DOMAIN_ADMINS_SID = sid(512)

USER_CHAIN = CLASS_CHAINS["user"]


@pytest.fixture
def directory() -> FakeDirectory:
    """
    A small domain.

    Alice is a member of Helpdesk, which may create groups in OU=Staff, rename,
    move, edit and reset the password of Bob, and create any object in
    OU=Sales. Administrator is a member of Domain Admins, which holds full
    control everywhere.
    """
    d = FakeDirectory()

    d.add(DOMAIN_ROOT, ["top", "domain", "domainDNS"], objectSid=DOMAIN_SID)
    d.add(USERS, ["top", "container"], systemFlags=0x8C000000)
    d.add(STAFF, ["top", "organizationalUnit"])
    d.add(SUB, ["top", "organizationalUnit"])
    d.add(SALES, ["top", "organizationalUnit"])
    d.add(ARCHIVE, ["top", "organizationalUnit"])

    d.add(
        ALICE,
        USER_CHAIN,
        sAMAccountName="alice",
        objectSid=ALICE_SID,
        primaryGroupID=513,
        userAccountControl=0x200,
    )
    d.add(
        BOB,
        USER_CHAIN,
        sAMAccountName="bob",
        objectSid=BOB_SID,
        primaryGroupID=513,
        userAccountControl=0x200,
        pwdLastSet=0,
        sn="Builder",
        description="Sales lead",
    )
    d.add(CAROL, USER_CHAIN, sAMAccountName="carol", objectSid=sid(1107))
    d.add(
        ADMINISTRATOR,
        USER_CHAIN,
        sAMAccountName="Administrator",
        objectSid=sid(500),
        primaryGroupID=513,
    )
    d.add(
        HELPDESK,
        ["top", "group"],
        sAMAccountName="Helpdesk",
        objectSid=HELPDESK_SID,
        member=[ALICE],
    )
    d.add(
        DOMAIN_ADMINS,
        ["top", "group"],
        sAMAccountName="Domain Admins",
        objectSid=DOMAIN_ADMINS_SID,
        member=[ADMINISTRATOR],
    )

    full_control = ace(DOMAIN_ADMINS_SID, ActiveDirectoryRights.GENERIC_ALL)
    read = ace(
        "S-1-5-11",
        ActiveDirectoryRights.READ_PROPERTY | ActiveDirectoryRights.LIST_CHILDREN,
    )

    d.security[DOMAIN_ROOT.lower()] = [full_control, read]
    d.security[USERS.lower()] = [full_control, read]
    d.security[STAFF.lower()] = [
        full_control,
        read,
        ace(HELPDESK_SID, ActiveDirectoryRights.CREATE_CHILD, object_type=GROUP),
        ace(
            HELPDESK_SID,
            ActiveDirectoryRights.WRITE_PROPERTY | ActiveDirectoryRights.DELETE,
        ),
    ]
    d.security[SUB.lower()] = [
        full_control,
        read,
        ace(HELPDESK_SID, ActiveDirectoryRights.CREATE_CHILD),
    ]
    d.security[SALES.lower()] = [
        full_control,
        read,
        ace(HELPDESK_SID, ActiveDirectoryRights.CREATE_CHILD),
    ]
    d.security[ARCHIVE.lower()] = [full_control, read]
    d.security[ALICE.lower()] = [
        full_control,
        read,
        ace("S-1-5-10", ActiveDirectoryRights.EXTENDED_RIGHT, object_type=CHANGE_PASSWORD),
    ]
    d.security[BOB.lower()] = [
        full_control,
        read,
        ace(
            HELPDESK_SID,
            ActiveDirectoryRights.WRITE_PROPERTY | ActiveDirectoryRights.DELETE,
        ),
        ace(HELPDESK_SID, ActiveDirectoryRights.EXTENDED_RIGHT, object_type=RESET_PASSWORD),
        ace("S-1-5-10", ActiveDirectoryRights.EXTENDED_RIGHT, object_type=CHANGE_PASSWORD),
    ]
    d.security[CAROL.lower()] = [full_control, read]
    d.security[ADMINISTRATOR.lower()] = [full_control, read]
    d.security[HELPDESK.lower()] = [
        full_control,
        read,
        ace(HELPDESK_SID, ActiveDirectoryRights.SELF, object_type=SELF_MEMBERSHIP),
    ]
    d.security[DOMAIN_ADMINS.lower()] = [full_control, read]

    return d


@pytest.fixture
def catalog(directory: FakeDirectory) -> SchemaCatalog:
    return SchemaCatalog(directory)


def _service(directory: FakeDirectory, username: str) -> ADService:
    user = directory.get_user(username)
    assert user is not None
    return ADService(directory, DirectoryObject.from_entry(user))


@pytest.fixture
def alice(directory: FakeDirectory) -> ADService:
    return _service(directory, "alice")


@pytest.fixture
def administrator(directory: FakeDirectory) -> ADService:
    return _service(directory, "Administrator")
