"""
Constants module for adservice.

This module defines the constants used when resolving access rights against
Active Directory objects:
- Well-known security identifiers (SIDs) and relative identifiers (RIDs)
- Access control entry flags and rights masks
- Object system flags and account control flags
- Directory attribute, class and extended right names
"""

from adservice.lib.structs import IntFlag

# =========================================================================
# Security Identifiers (SIDs) and Relative Identifiers (RIDs)
# =========================================================================

# Well-known SIDs mapping to (name, object type)
# Source: https://github.com/fox-it/BloodHound.py/blob/d665959c58d881900378040e6670fa12f801ccd4/bloodhound/ad/utils.py#L36
WELLKNOWN_SIDS = {
    "S-1-0-0": ("Nobody", "USER"),
    "S-1-1-0": ("Everyone", "GROUP"),
    "S-1-3-0": ("Creator Owner", "USER"),
    "S-1-3-1": ("Creator Group", "GROUP"),
    "S-1-3-4": ("Owner Rights", "GROUP"),
    "S-1-5-7": ("Anonymous", "GROUP"),
    "S-1-5-9": ("Enterprise Domain Controllers", "GROUP"),
    "S-1-5-10": ("Principal Self", "USER"),
    "S-1-5-11": ("Authenticated Users", "GROUP"),
    "S-1-5-18": ("Local System", "USER"),
    "S-1-5-32-544": ("Administrators", "GROUP"),
    "S-1-5-32-545": ("Users", "GROUP"),
    "S-1-5-32-546": ("Guests", "GROUP"),
    "S-1-5-32-548": ("Account Operators", "GROUP"),
    "S-1-5-32-549": ("Server Operators", "GROUP"),
    "S-1-5-32-550": ("Print Operators", "GROUP"),
    "S-1-5-32-551": ("Backup Operators", "GROUP"),
    "S-1-5-32-554": ("Pre-Windows 2000 Compatible Access", "GROUP"),
    "S-1-5-32-560": ("Windows Authorization Access Group", "GROUP"),
    "S-1-5-32-561": ("Terminal Server License Servers", "GROUP"),
}

# Well-known RIDs mapping to (name, object type)
# Source: https://github.com/garrettfoster13/aced/blob/b5d1ad1b8cfb84a6420be22658beec340ef9e396/lib/sid.py#L48
WELLKNOWN_RIDS = {
    "500": ("Administrator", "USER"),
    "501": ("Guest", "USER"),
    "502": ("KRBTGT", "USER"),
    "512": ("Domain Admins", "GROUP"),
    "513": ("Domain Users", "GROUP"),
    "514": ("Domain Guests", "GROUP"),
    "515": ("Domain Computers", "GROUP"),
    "516": ("Domain Controllers", "GROUP"),
    "517": ("Cert Publishers", "GROUP"),
    "518": ("Schema Admins", "GROUP"),
    "519": ("Enterprise Admins", "GROUP"),
    "520": ("Group Policy Creator Owners", "GROUP"),
    "521": ("Read-only Domain Controllers", "GROUP"),
    "526": ("Key Admins", "GROUP"),
    "527": ("Enterprise Key Admins", "GROUP"),
}

SID_EVERYONE = "S-1-1-0"
SID_SELF = "S-1-5-10"
SID_AUTHENTICATED_USERS = "S-1-5-11"

# Principals allowed to list and modify access rules of other objects:
# the account administrator, Domain Admins and Enterprise Admins (domain relative)
SECURITY_PRINCIPAL_RIDS = ("500", "512", "519")
# BUILTIN\Account Operators and BUILTIN\Administrators
SECURITY_PRINCIPAL_SIDS = ("S-1-5-32-548", "S-1-5-32-544")

# =========================================================================
# Access control
# =========================================================================

# Active Directory rights
# Source: https://docs.microsoft.com/en-us/dotnet/api/system.directoryservices.activedirectoryrights?view=net-5.0
class ActiveDirectoryRights(IntFlag):
    """Rights applicable to Active Directory objects."""

    # Object-level rights
    CREATE_CHILD = 1
    DELETE_CHILD = 2
    LIST_CHILDREN = 4
    SELF = 8
    READ_PROPERTY = 16
    WRITE_PROPERTY = 32
    DELETE_TREE = 64
    LIST_OBJECT = 128
    EXTENDED_RIGHT = 256

    # Standard rights
    DELETE = 65536
    READ_CONTROL = 131072
    WRITE_DACL = 262144
    WRITE_OWNER = 524288
    SYNCHRONIZE = 1048576
    ACCESS_SYSTEM_SECURITY = 16777216

    # Generic rights
    GENERIC_READ = 131220
    GENERIC_WRITE = 131112
    GENERIC_EXECUTE = 131076
    GENERIC_ALL = 983551


# Every bit the resolution engine understands
KNOWN_RIGHTS = ActiveDirectoryRights(
    ActiveDirectoryRights.GENERIC_ALL
    | ActiveDirectoryRights.SYNCHRONIZE
    | ActiveDirectoryRights.ACCESS_SYSTEM_SECURITY
)

# Generic rights that apply to every attribute of the object
ATTRIBUTE_RIGHTS = ActiveDirectoryRights(
    ActiveDirectoryRights.READ_PROPERTY
    | ActiveDirectoryRights.WRITE_PROPERTY
    | ActiveDirectoryRights.SELF
)

# Generic rights that apply to classes (the object itself and its children)
CLASS_RIGHTS = ActiveDirectoryRights(
    ActiveDirectoryRights.CREATE_CHILD
    | ActiveDirectoryRights.DELETE_CHILD
    | ActiveDirectoryRights.LIST_CHILDREN
    | ActiveDirectoryRights.DELETE_TREE
    | ActiveDirectoryRights.LIST_OBJECT
    | ActiveDirectoryRights.DELETE
)

# Class rights that only ever affect the object itself
SELF_CLASS_RIGHTS = ActiveDirectoryRights(
    ActiveDirectoryRights.DELETE | ActiveDirectoryRights.LIST_OBJECT
)


# ACE header flags
# Source: https://learn.microsoft.com/en-us/windows/win32/api/winnt/ns-winnt-ace_header
class AceFlags(IntFlag):
    """Inheritance flags carried in an ACE header."""

    OBJECT_INHERIT = 0x01
    CONTAINER_INHERIT = 0x02
    NO_PROPAGATE_INHERIT = 0x04
    INHERIT_ONLY = 0x08
    INHERITED = 0x10
    SUCCESSFUL_ACCESS = 0x40
    FAILED_ACCESS = 0x80


# Object system flags
# Source: https://learn.microsoft.com/en-us/windows/win32/adschema/a-systemflags
class SystemFlags(IntFlag):
    """System flags of a directory object."""

    DOMAIN_DISALLOW_MOVE = 0x04000000
    DOMAIN_DISALLOW_RENAME = 0x08000000
    CONFIG_ALLOW_LIMITED_MOVE = 0x10000000
    CONFIG_ALLOW_MOVE = 0x20000000
    CONFIG_ALLOW_RENAME = 0x40000000
    DISALLOW_DELETE = 0x80000000


# User account control flags
# Source: https://learn.microsoft.com/en-us/troubleshoot/windows-server/active-directory/useraccountcontrol-manipulate-account-properties
class UserAccountControl(IntFlag):
    """Flags stored in the userAccountControl attribute."""

    SCRIPT = 0x0001
    ACCOUNTDISABLE = 0x0002
    HOMEDIR_REQUIRED = 0x0008
    LOCKOUT = 0x0010
    PASSWD_NOTREQD = 0x0020
    PASSWD_CANT_CHANGE = 0x0040
    ENCRYPTED_TEXT_PWD_ALLOWED = 0x0080
    NORMAL_ACCOUNT = 0x0200
    WORKSTATION_TRUST_ACCOUNT = 0x1000
    DONT_EXPIRE_PASSWORD = 0x10000
    SMARTCARD_REQUIRED = 0x40000
    TRUSTED_FOR_DELEGATION = 0x80000
    NOT_DELEGATED = 0x100000
    USE_DES_KEY_ONLY = 0x200000
    DONT_REQ_PREAUTH = 0x400000
    PASSWORD_EXPIRED = 0x800000


# Account control flags a caller may toggle through modify-detail
USER_ACCOUNT_CONTROL_MASK = UserAccountControl(
    UserAccountControl.DONT_EXPIRE_PASSWORD
    | UserAccountControl.ENCRYPTED_TEXT_PWD_ALLOWED
    | UserAccountControl.ACCOUNTDISABLE
    | UserAccountControl.SMARTCARD_REQUIRED
    | UserAccountControl.NOT_DELEGATED
    | UserAccountControl.USE_DES_KEY_ONLY
    | UserAccountControl.DONT_REQ_PREAUTH
)

# =========================================================================
# Directory names
# =========================================================================

EMPTY_GUID = "00000000-0000-0000-0000-000000000000"

# Object classes
CLASS_TOP = "top"
CLASS_PERSON = "person"
CLASS_USER = "user"
CLASS_GROUP = "group"
CLASS_ORGANIZATION_UNIT = "organizationalUnit"
CLASS_CONTAINER = "container"
CLASS_DOMAIN_DNS = "domainDNS"
CLASS_ATTRIBUTE_SCHEMA = "attributeSchema"
CLASS_CLASS_SCHEMA = "classSchema"
CLASS_CONTROL_ACCESS_RIGHT = "controlAccessRight"

# Object attributes
ATTR_DISTINGUISHED_NAME = "distinguishedName"
ATTR_NAME = "name"
ATTR_CN = "cn"
ATTR_OU = "ou"
ATTR_OBJECT_CLASS = "objectClass"
ATTR_OBJECT_GUID = "objectGUID"
ATTR_OBJECT_SID = "objectSid"
ATTR_SYSTEM_FLAGS = "systemFlags"
ATTR_SECURITY_DESCRIPTOR = "nTSecurityDescriptor"
ATTR_SAM_ACCOUNT_NAME = "sAMAccountName"
ATTR_UNICODE_PWD = "unicodePwd"
ATTR_PRIMARY_GROUP_ID = "primaryGroupID"
ATTR_DISPLAY_NAME = "displayName"
ATTR_DESCRIPTION = "description"
ATTR_SN = "sn"
ATTR_GIVEN_NAME = "givenName"
ATTR_INITIALS = "initials"
ATTR_MEMBER = "member"
ATTR_USER_ACCOUNT_CONTROL = "userAccountControl"
ATTR_PWD_LAST_SET = "pwdLastSet"

# Schema attributes
ATTR_LDAP_DISPLAY_NAME = "lDAPDisplayName"
ATTR_SCHEMA_ID_GUID = "schemaIDGUID"
ATTR_ATTRIBUTE_SECURITY_GUID = "attributeSecurityGUID"
ATTR_IS_SINGLE_VALUED = "isSingleValued"
ATTR_IS_DEFUNCT = "isDefunct"
ATTR_SUB_CLASS_OF = "subClassOf"
ATTR_AUXILIARY_CLASS = "auxiliaryClass"
ATTR_SYSTEM_AUXILIARY_CLASS = "systemAuxiliaryClass"
ATTR_MUST_CONTAIN = "mustContain"
ATTR_SYSTEM_MUST_CONTAIN = "systemMustContain"
ATTR_MAY_CONTAIN = "mayContain"
ATTR_SYSTEM_MAY_CONTAIN = "systemMayContain"
ATTR_POSS_SUPERIORS = "possSuperiors"
ATTR_SYSTEM_POSS_SUPERIORS = "systemPossSuperiors"

# Extended right attributes
ATTR_RIGHTS_GUID = "rightsGuid"
ATTR_APPLIES_TO = "appliesTo"
ATTR_VALID_ACCESSES = "validAccesses"

# Extended rights, by display name
EXTENDED_RIGHT_CHANGE_PASSWORD = "Change Password"
EXTENDED_RIGHT_RESET_PASSWORD = "Reset Password"
