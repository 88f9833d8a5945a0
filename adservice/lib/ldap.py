"""
LDAP connection and directory entry handling for adservice.

This module is the directory service client the rest of the package talks to:
- Establishing LDAP/LDAPS connections to Active Directory (NTLM or simple bind)
- Searching, and loading objects by distinguished name, GUID or SID
- Reading security descriptors
- Staging changes on entry handles and committing them
- Collecting the security identifiers of a user

Main components:
- LDAPEntry: Dictionary-like search result with attribute access methods
- DirectoryEntry: Handle on one object; changes are staged until committed
- LDAPConnection: Connection to the server implementing the client operations
"""

import ssl
from typing import Any, Dict, List, Optional, Set, Union

import ldap3
from impacket.uuid import string_to_bin
from ldap3.core.exceptions import LDAPException
from ldap3.core.results import RESULT_SUCCESS
from ldap3.protocol.microsoft import security_descriptor_control
from ldap3.utils.ciDict import CaseInsensitiveDict
from ldap3.utils.conv import escape_bytes, escape_filter_chars
from ldap3.utils.dn import to_dn

from adservice.lib.constants import (
    ATTR_OBJECT_CLASS,
    ATTR_OBJECT_GUID,
    ATTR_OBJECT_SID,
    ATTR_PRIMARY_GROUP_ID,
    ATTR_SAM_ACCOUNT_NAME,
    ATTR_SECURITY_DESCRIPTOR,
    ATTR_UNICODE_PWD,
    SID_AUTHENTICATED_USERS,
)
from adservice.lib.errors import (
    LogicError,
    NotFoundError,
    TransportError,
    translate_ldap_result,
)
from adservice.lib.logger import logging
from adservice.lib.security import AccessControlEntry, ActiveDirectorySecurity
from adservice.lib.target import Target

# LDAP_MATCHING_RULE_IN_CHAIN
MATCHING_RULE_IN_CHAIN = "1.2.840.113556.1.4.1941"

# Owner and DACL
SD_FLAGS_OWNER_DACL = 0x05


def get_or_filter(attribute: str, values: List[str], escape: bool = True) -> str:
    """
    Build a filter matching any of the given values of one attribute.

    Args:
        attribute: Attribute name to match
        values: Candidate values
        escape: Whether to escape the values (disable for pre-escaped binary values)

    Returns:
        "(|(attribute=v1)(attribute=v2)...)" or an empty string when there is
        nothing to match
    """
    if not attribute or not values:
        return ""

    parts = "".join(
        f"({attribute}={escape_filter_chars(value) if escape else value})"
        for value in values
    )
    return f"(|{parts})"


def guid_to_filter(guid: str) -> str:
    """
    Encode a GUID string as an escaped binary filter value.

    Args:
        guid: GUID in canonical string form

    Returns:
        Escaped little-endian byte string usable in a search filter
    """
    return escape_bytes(string_to_bin(guid))


def parent_of(dn: str) -> Optional[str]:
    """
    Get the distinguished name of an entry's parent.

    Args:
        dn: Distinguished name of the entry

    Returns:
        The parent DN, or None for a single-component DN
    """
    components = to_dn(dn)
    if len(components) < 2:
        return None
    return ",".join(components[1:])


def is_same_dn(first: Optional[str], second: Optional[str]) -> bool:
    """Compare two distinguished names component-wise, ignoring case."""
    if not first or not second:
        return False
    return [c.lower() for c in to_dn(first)] == [c.lower() for c in to_dn(second)]


def is_descendant_dn(dn: str, ancestor: str) -> bool:
    """Check whether dn equals ancestor or lies anywhere below it."""
    components = [c.lower() for c in to_dn(dn)]
    ancestor_components = [c.lower() for c in to_dn(ancestor)]
    if len(components) < len(ancestor_components):
        return False
    return components[len(components) - len(ancestor_components) :] == ancestor_components


class LDAPEntry(Dict[str, Any]):
    """
    Dictionary-like class representing an LDAP search result.

    This class extends the standard dictionary to provide convenient access
    to LDAP attributes and raw attribute values.
    """

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get an attribute value from the LDAP entry with support for default values.

        Args:
            key: Attribute name to retrieve
            default: Value to return if attribute is missing or empty (default: None)

        Returns:
            Attribute value if present and not empty, otherwise the default value
        """
        if key not in self.__getitem__("attributes").keys():
            return default

        item = self.__getitem__("attributes").__getitem__(key)

        if isinstance(item, list) and len(item) == 0:
            return default

        return item

    def set(self, key: str, value: Any) -> None:
        """
        Set an attribute value in the LDAP entry.

        Args:
            key: Attribute name to set
            value: Value to assign to the attribute
        """
        return self.__getitem__("attributes").__setitem__(key, value)

    def get_raw(self, key: str) -> Any:
        """
        Get the raw (unprocessed) attribute value from the LDAP entry.

        Args:
            key: Attribute name to retrieve

        Returns:
            Raw attribute value or None if not present
        """
        if key not in self.__getitem__("raw_attributes").keys():
            return None

        return self.__getitem__("raw_attributes").__getitem__(key)


class DirectoryEntry:
    """
    Handle on one directory object.

    Attribute writes, renames and moves are staged on the handle and only
    reach the server when the connection commits it. A handle created with
    ``is_new`` is added to the directory on commit.
    """

    def __init__(
        self,
        dn: str,
        attributes: Optional[Dict[str, Any]] = None,
        raw_attributes: Optional[Dict[str, Any]] = None,
        is_new: bool = False,
    ) -> None:
        self.dn = dn
        self.attributes: CaseInsensitiveDict = CaseInsensitiveDict(attributes or {})
        self.raw_attributes: CaseInsensitiveDict = CaseInsensitiveDict(
            raw_attributes or {}
        )
        self.is_new = is_new
        self.changes: CaseInsensitiveDict = CaseInsensitiveDict()
        self.new_rdn: Optional[str] = None
        self.new_superior: Optional[str] = None
        self.is_disposed = False

    @staticmethod
    def from_ldap_entry(entry: LDAPEntry) -> "DirectoryEntry":
        """Create a handle from a search result."""
        return DirectoryEntry(
            entry["dn"],
            attributes=dict(entry["attributes"]),
            raw_attributes=dict(entry["raw_attributes"]),
        )

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a loaded attribute value.

        Args:
            key: Attribute name to retrieve
            default: Value returned when the attribute is missing or empty

        Returns:
            Attribute value if present and not empty, otherwise the default value
        """
        item = self.attributes.get(key)
        if item is None or (isinstance(item, list) and len(item) == 0):
            return default
        return item

    def get_raw(self, key: str) -> Any:
        """Get the raw value list of a loaded attribute, or None."""
        return self.raw_attributes.get(key)

    @property
    def rdn(self) -> str:
        return to_dn(self.dn)[0]

    @property
    def parent_dn(self) -> Optional[str]:
        return parent_of(self.dn)

    @property
    def is_dirty(self) -> bool:
        return (
            self.is_new
            or len(self.changes) > 0
            or self.new_rdn is not None
            or self.new_superior is not None
        )

    def stage(self, name: str, value: Any) -> None:
        """
        Stage a replacement of one attribute.

        Args:
            name: Attribute name
            value: New value; a list replaces all values, None clears the attribute
        """
        if self.is_disposed:
            raise LogicError(f"Entry {self.dn!r} has already been released")

        if value is None:
            values: List[Any] = []
        elif isinstance(value, (list, tuple, set)):
            values = list(value)
        else:
            values = [value]

        self.changes[name] = values

    def stage_rename(self, rdn: str) -> None:
        if self.is_disposed:
            raise LogicError(f"Entry {self.dn!r} has already been released")
        self.new_rdn = rdn

    def stage_move(self, new_superior: str) -> None:
        if self.is_disposed:
            raise LogicError(f"Entry {self.dn!r} has already been released")
        self.new_superior = new_superior

    def target_dn(self) -> str:
        """Distinguished name the entry will have once the staged changes are committed."""
        rdn = self.new_rdn or self.rdn
        superior = self.new_superior or self.parent_dn
        return f"{rdn},{superior}" if superior else rdn

    def clear_staged(self) -> None:
        """Forget staged changes after they were committed."""
        self.is_new = False
        self.changes = CaseInsensitiveDict()
        self.new_rdn = None
        self.new_superior = None

    def load(self, attributes: Dict[str, Any], raw_attributes: Dict[str, Any]) -> None:
        """Replace the loaded attributes with freshly read values."""
        self.attributes = CaseInsensitiveDict(attributes)
        self.raw_attributes = CaseInsensitiveDict(raw_attributes)

    def __repr__(self) -> str:
        return f"<DirectoryEntry {self.dn!r}>"


class LDAPConnection:
    """
    Manages connections and operations to Active Directory via LDAP/LDAPS.

    This class handles authentication, searching and modifying objects using
    the ldap3 library, and is the directory client handed to the schema
    catalog, the transaction ledger and the operations.
    """

    def __init__(self, target: Target) -> None:
        """
        Initialize an LDAP connection with the specified target.

        Args:
            target: Target object containing connection details
        """
        self.target = target
        self.use_ssl = target.ldap_scheme == "ldaps"
        self.port = int(target.ldap_port)

        self.default_path: Optional[str] = None
        self.configuration_path: Optional[str] = None
        self.schema_path: Optional[str] = None
        self.ldap_server: Optional[ldap3.Server] = None
        self.ldap_conn: Optional[ldap3.Connection] = None
        self.domain: Optional[str] = None

        self._domain_sid: Optional[str] = None
        self._users: Dict[str, DirectoryEntry] = {}
        self._user_sids: Dict[str, Set[str]] = {}

    def connect(self) -> None:
        """
        Connect and bind to the LDAP server.

        Uses NTLM authentication unless simple bind was requested, then reads
        the naming contexts from the root DSE.

        Raises:
            TransportError: If the server cannot be reached or the bind fails
        """
        if self.target.target_ip is None:
            raise TransportError("Target IP is not set")

        user = f"{self.target.domain}\\{self.target.username}"
        user_upn = f"{self.target.username}@{self.target.domain}"

        if self.use_ssl:
            tls = ldap3.Tls(
                validate=ssl.CERT_NONE,
                version=ssl.PROTOCOL_TLS_CLIENT,
                ciphers="ALL:@SECLEVEL=0",
                ssl_options=[ssl.OP_ALL],
            )
            ldap_server = ldap3.Server(
                self.target.target_ip,
                use_ssl=True,
                port=self.port,
                get_info=ldap3.ALL,
                tls=tls,
                connect_timeout=self.target.timeout,
            )
        else:
            ldap_server = ldap3.Server(
                self.target.target_ip,
                use_ssl=False,
                port=self.port,
                get_info=ldap3.ALL,
                connect_timeout=self.target.timeout,
            )

        auth_method = "SIMPLE" if self.target.do_simple else "NTLM"
        logging.debug(f"Authenticating to LDAP server using {auth_method} authentication")

        if self.target.nthash:
            ldap_pass = f"{self.target.lmhash}:{self.target.nthash}"
        else:
            ldap_pass = self.target.password

        try:
            ldap_conn = ldap3.Connection(
                ldap_server,
                user=user_upn if self.target.do_simple else user,
                password=ldap_pass,
                authentication=ldap3.SIMPLE if self.target.do_simple else ldap3.NTLM,
                auto_referrals=False,
                receive_timeout=self.target.timeout * 10,
            )

            if not ldap_conn.bind():
                raise translate_ldap_result(
                    ldap_conn.result, f"Bind as {self.target.username!r}"
                )
        except LDAPException as e:
            raise TransportError(f"Failed to connect to {ldap_server}: {e}") from e

        logging.debug(f"Bound to {ldap_server}")

        self.ldap_conn = ldap_conn
        self.ldap_server = ldap_server

        self.default_path = self.ldap_server.info.other["defaultNamingContext"][0]
        self.configuration_path = self.ldap_server.info.other[
            "configurationNamingContext"
        ][0]
        self.schema_path = self.ldap_server.info.other["schemaNamingContext"][0]

        logging.debug(f"Default path: {self.default_path}")
        logging.debug(f"Configuration path: {self.configuration_path}")
        logging.debug(f"Schema path: {self.schema_path}")

        self.domain = self.ldap_server.info.other["ldapServiceName"][0].split("@")[-1]

    def close(self) -> None:
        """Unbind from the server."""
        if self.ldap_conn is not None:
            self.ldap_conn.unbind()
            self.ldap_conn = None

    def _connection(self) -> ldap3.Connection:
        if self.ldap_conn is None:
            raise TransportError("LDAP connection is not established")
        return self.ldap_conn

    def _check_result(self, context: str) -> None:
        result = self._connection().result
        if result["result"] != RESULT_SUCCESS:
            raise translate_ldap_result(result, context)

    # =====================================================================
    # Searching and loading
    # =====================================================================

    def search(
        self,
        search_filter: str,
        attributes: Union[str, List[str]] = ldap3.ALL_ATTRIBUTES,
        search_base: Optional[str] = None,
        scope: str = ldap3.SUBTREE,
        query_sd: bool = False,
    ) -> List[LDAPEntry]:
        """
        Search the directory with the given filter and return matching entries.

        Args:
            search_filter: LDAP search filter string
            attributes: List of attributes to retrieve or ldap3.ALL_ATTRIBUTES
            search_base: Base DN for the search, defaults to the domain root
            scope: ldap3.BASE, ldap3.LEVEL or ldap3.SUBTREE
            query_sd: Whether to request the owner and DACL of the security descriptor

        Returns:
            List of matching LDAP entries

        Raises:
            TransportError: If the connection is not established or the search fails
        """
        if search_base is None:
            search_base = self.default_path

        controls = (
            security_descriptor_control(sdflags=SD_FLAGS_OWNER_DACL) if query_sd else None
        )

        connection = self._connection()

        try:
            results = connection.extend.standard.paged_search(
                search_base=search_base,
                search_filter=search_filter,
                search_scope=scope,
                attributes=attributes,
                controls=controls,
                paged_size=200,
                generator=False,
            )
        except LDAPException as e:
            raise TransportError(f"LDAP search {search_filter!r} failed: {e}") from e

        if connection.result["result"] != RESULT_SUCCESS:
            error = translate_ldap_result(
                connection.result, f"LDAP search {search_filter!r}"
            )
            # A missing search base means nothing matched
            if isinstance(error, NotFoundError):
                return []
            raise error

        return [
            LDAPEntry(**entry)
            for entry in results
            if entry["type"] == "searchResEntry"
        ]

    def get_by_dn(
        self, dn: str, attributes: Union[str, List[str]] = ldap3.ALL_ATTRIBUTES
    ) -> DirectoryEntry:
        """
        Load one object by distinguished name.

        Args:
            dn: Distinguished name of the object
            attributes: Attributes to load

        Returns:
            Handle on the object

        Raises:
            NotFoundError: If no object has this distinguished name
        """
        results = self.search(
            "(objectClass=*)", attributes=attributes, search_base=dn, scope=ldap3.BASE
        )
        if len(results) != 1:
            raise NotFoundError(f"Object {dn!r} was not found")
        return DirectoryEntry.from_ldap_entry(results[0])

    def get_by_guid(self, guid: str) -> DirectoryEntry:
        """
        Load one object by its objectGUID.

        Args:
            guid: GUID in canonical string form

        Returns:
            Handle on the object

        Raises:
            NotFoundError: If no object has this GUID
        """
        results = self.search(f"({ATTR_OBJECT_GUID}={guid_to_filter(guid)})")
        if len(results) != 1:
            raise NotFoundError(f"Object with GUID {guid!r} was not found")
        return DirectoryEntry.from_ldap_entry(results[0])

    def get_by_sid(self, sid: str) -> Optional[DirectoryEntry]:
        """
        Load one object by its objectSid.

        Args:
            sid: Security identifier

        Returns:
            Handle on the object, or None if no object carries this SID
        """
        results = self.search(f"({ATTR_OBJECT_SID}={escape_filter_chars(sid)})")
        if len(results) != 1:
            return None
        return DirectoryEntry.from_ldap_entry(results[0])

    def read_attributes(self, handle: DirectoryEntry) -> Dict[str, Any]:
        """Return the loaded attributes of a handle as a plain dictionary."""
        return dict(handle.attributes)

    def read_security_descriptor(
        self, handle: DirectoryEntry
    ) -> List[AccessControlEntry]:
        """
        Read and parse the DACL of an object.

        Args:
            handle: Handle on the object

        Returns:
            The access control entries of the object, in descriptor order

        Raises:
            NotFoundError: If the object vanished
        """
        results = self.search(
            "(objectClass=*)",
            attributes=[ATTR_SECURITY_DESCRIPTOR],
            search_base=handle.dn,
            scope=ldap3.BASE,
            query_sd=True,
        )
        if len(results) != 1:
            raise NotFoundError(f"Object {handle.dn!r} was not found")

        descriptor = results[0].get_raw(ATTR_SECURITY_DESCRIPTOR)
        if not descriptor:
            logging.warning(f"No security descriptor could be read for {handle.dn!r}")
            return []

        return ActiveDirectorySecurity(descriptor[0]).aces

    # =====================================================================
    # Staging and committing changes
    # =====================================================================

    def create_child(
        self, parent: DirectoryEntry, rdn: str, class_name: str
    ) -> DirectoryEntry:
        """
        Stage a new child object.

        Args:
            parent: Handle on the container
            rdn: Relative distinguished name of the child, such as "CN=Sales"
            class_name: Structural object class of the child

        Returns:
            Handle on the new object, added to the directory on commit
        """
        entry = DirectoryEntry(f"{rdn},{parent.dn}", is_new=True)
        entry.stage(ATTR_OBJECT_CLASS, class_name)
        return entry

    def set_attribute(self, handle: DirectoryEntry, name: str, value: Any) -> None:
        handle.stage(name, value)

    def move(self, handle: DirectoryEntry, new_parent: DirectoryEntry) -> None:
        handle.stage_move(new_parent.dn)

    def rename(self, handle: DirectoryEntry, rdn: str) -> None:
        handle.stage_rename(rdn)

    def commit(self, handle: DirectoryEntry) -> None:
        """
        Send the staged changes of a handle to the server.

        Args:
            handle: Handle with staged changes

        Raises:
            PermissionDeniedError: If the server refuses the change
            NameDuplicateError: If a new object collides with an existing one
            TransportError: On any other failure
        """
        if handle.is_disposed:
            raise LogicError(f"Entry {handle.dn!r} has already been released")

        connection = self._connection()

        if handle.is_new:
            attributes = {
                name: values
                for name, values in handle.changes.items()
                if name.lower() != ATTR_OBJECT_CLASS.lower()
            }
            logging.debug(f"Adding {handle.dn!r}")
            connection.add(
                handle.dn, handle.changes[ATTR_OBJECT_CLASS], attributes
            )
            self._check_result(f"Add {handle.dn!r}")
        elif len(handle.changes) > 0:
            modifications = {
                name: [(ldap3.MODIFY_REPLACE, values)]
                for name, values in handle.changes.items()
            }
            logging.debug(
                f"Modifying {', '.join(handle.changes.keys())} of {handle.dn!r}"
            )
            connection.modify(handle.dn, modifications)
            self._check_result(f"Modify {handle.dn!r}")

        if handle.new_rdn is not None or handle.new_superior is not None:
            new_dn = handle.target_dn()
            logging.debug(f"Moving {handle.dn!r} to {new_dn!r}")
            connection.modify_dn(
                handle.dn,
                handle.new_rdn or handle.rdn,
                delete_old_dn=True,
                new_superior=handle.new_superior,
            )
            self._check_result(f"Move {handle.dn!r}")
            handle.dn = new_dn

        handle.clear_staged()

    def refresh(
        self, handle: DirectoryEntry, attribute_names: Optional[List[str]] = None
    ) -> None:
        """
        Re-read the attributes of a handle from the server.

        Args:
            handle: Handle to refresh
            attribute_names: Attributes to read; all attributes when omitted
        """
        if handle.is_disposed:
            raise LogicError(f"Entry {handle.dn!r} has already been released")

        fresh = self.get_by_dn(
            handle.dn,
            attributes=attribute_names if attribute_names else ldap3.ALL_ATTRIBUTES,
        )
        if attribute_names:
            attributes = dict(handle.attributes)
            attributes.update(fresh.attributes)
            raw_attributes = dict(handle.raw_attributes)
            raw_attributes.update(fresh.raw_attributes)
            handle.load(attributes, raw_attributes)
        else:
            handle.load(dict(fresh.attributes), dict(fresh.raw_attributes))

    def dispose(self, handle: DirectoryEntry) -> None:
        """
        Release a handle.

        Raises:
            LogicError: If the handle was already released
        """
        if handle.is_disposed:
            raise LogicError(f"Entry {handle.dn!r} has already been released")
        handle.clear_staged()
        handle.is_disposed = True

    def change_password(
        self, handle: DirectoryEntry, old_password: str, new_password: str
    ) -> None:
        """
        Change the password of an account, proving knowledge of the old one.

        Raises:
            ActionFailedError: If the server rejects the change
        """
        connection = self._connection()
        logging.debug(f"Changing password of {handle.dn!r}")
        connection.modify(
            handle.dn,
            {
                ATTR_UNICODE_PWD: [
                    (ldap3.MODIFY_DELETE, [encode_password(old_password)]),
                    (ldap3.MODIFY_ADD, [encode_password(new_password)]),
                ]
            },
        )
        self._check_result(f"Change password of {handle.dn!r}")

    def reset_password(self, handle: DirectoryEntry, new_password: str) -> None:
        """
        Set the password of an account without knowing the old one.

        Raises:
            ActionFailedError: If the server rejects the new password
        """
        connection = self._connection()
        logging.debug(f"Resetting password of {handle.dn!r}")
        connection.modify(
            handle.dn,
            {ATTR_UNICODE_PWD: [(ldap3.MODIFY_REPLACE, [encode_password(new_password)])]},
        )
        self._check_result(f"Reset password of {handle.dn!r}")

    # =====================================================================
    # Users and security identifiers
    # =====================================================================

    def get_user(self, username: str) -> Optional[DirectoryEntry]:
        """
        Find a user by sAMAccountName.

        Args:
            username: Username to search for (sAMAccountName)

        Returns:
            User entry or None if not found
        """
        sanitized_username = username.lower().strip()
        if sanitized_username in self._users:
            return self._users[sanitized_username]

        results = self.search(
            f"({ATTR_SAM_ACCOUNT_NAME}={escape_filter_chars(username)})"
        )
        if len(results) != 1:
            logging.error(f"Could not find user {username!r}")
            return None

        user = DirectoryEntry.from_ldap_entry(results[0])
        self._users[sanitized_username] = user
        return user

    @property
    def domain_sid(self) -> Optional[str]:
        """
        Get the domain's security identifier (SID).

        Returns:
            Domain SID or None if not found
        """
        if self._domain_sid is not None:
            return self._domain_sid

        results = self.search(
            "(objectClass=domain)",
            attributes=[ATTR_OBJECT_SID],
        )

        if len(results) != 1:
            return None

        self._domain_sid = results[0].get(ATTR_OBJECT_SID)
        return self._domain_sid

    def get_user_sids(self, user: Any) -> Set[str]:
        """
        Get all SIDs a user's token carries, including nested groups.

        The set holds the user's own SID, Authenticated Users, the primary
        group and every group the user is a transitive member of. Everyone and
        Principal Self are not included: which of them applies depends on the
        object being accessed.

        Args:
            user: Handle or snapshot of the user object, exposing dn and get()

        Returns:
            Set of SIDs the user holds

        Raises:
            TransportError: If the group membership search fails
        """
        key = user.dn.lower()
        if key in self._user_sids:
            return self._user_sids[key]

        sids: Set[str] = {SID_AUTHENTICATED_USERS}

        object_sid = user.get(ATTR_OBJECT_SID)
        if object_sid:
            sids.add(object_sid)

        primary_group_id = user.get(ATTR_PRIMARY_GROUP_ID)
        domain_sid = self.domain_sid
        if primary_group_id is not None and domain_sid:
            sids.add(f"{domain_sid}-{primary_group_id}")

        # Never cache a set without the nested groups
        try:
            groups = self.search(
                f"(member:{MATCHING_RULE_IN_CHAIN}:={escape_filter_chars(user.dn)})",
                attributes=[ATTR_OBJECT_SID],
            )
        except TransportError as e:
            logging.warning(f"Failed to get group memberships of {user.dn!r}: {e}")
            logging.warning("Try increasing -timeout parameter value")
            raise

        for group in groups:
            sid = group.get(ATTR_OBJECT_SID)
            if sid is not None:
                sids.add(sid)

        self._user_sids[key] = sids

        logging.debug(f"User {user.dn!r} has {len(sids)} SIDs:")
        for sid in sids:
            logging.debug(f"  {sid}")

        return sids


def encode_password(password: str) -> bytes:
    """Encode a password the way unicodePwd expects it."""
    return f'"{password}"'.encode("utf-16-le")

