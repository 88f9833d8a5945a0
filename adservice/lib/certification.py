"""
Per-invocation context for adservice operations.

A Certification bundles everything one protocol invocation needs: the directory
client, the shared schema catalog, the invoker and its SIDs, and a transaction
ledger owning every handle touched during the invocation. Rights are always
resolved from scratch inside a Certification; nothing is reused across
invocations.
"""

from typing import Dict, List, Optional, Set, Union

import ldap3

from adservice.lib.constants import (
    ATTR_DISTINGUISHED_NAME,
    ATTR_SAM_ACCOUNT_NAME,
    WELLKNOWN_RIDS,
    WELLKNOWN_SIDS,
)
from adservice.lib.ldap import LDAPConnection
from adservice.lib.ledger import TransactionLedger
from adservice.lib.logger import logging
from adservice.lib.objects import DirectoryObject
from adservice.lib.permissions import EffectiveRights
from adservice.lib.protocol import AccessRuleProtocol
from adservice.lib.schema import SchemaCatalog
from adservice.lib.security import get_security_sids, is_security_principal


class Certification:
    """
    Context of one invocation.

    Use it as a context manager: leaving the block disposes the ledger and
    with it every handle the invocation acquired.
    """

    def __init__(
        self,
        connection: LDAPConnection,
        catalog: SchemaCatalog,
        invoker: DirectoryObject,
        invoker_sids: Set[str],
    ) -> None:
        self.connection = connection
        self.catalog = catalog
        self.invoker = invoker
        self.invoker_sids = set(invoker_sids)
        self.ledger = TransactionLedger(connection)

        self._trustee_names: Dict[str, str] = {}

    def __enter__(self) -> "Certification":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.ledger.dispose()

    @property
    def domain_root(self) -> str:
        return self.connection.default_path

    @property
    def is_security_principal(self) -> bool:
        return is_security_principal(self.invoker_sids)

    def load(self, target: Union[str, DirectoryObject]) -> DirectoryObject:
        """
        Read the current state of an object through the ledger.

        Args:
            target: Distinguished name or an earlier snapshot of the object

        Returns:
            A fresh snapshot

        Raises:
            NotFoundError: If the object does not exist
        """
        dn = target.dn if isinstance(target, DirectoryObject) else target
        return DirectoryObject.from_entry(self.ledger.get_or_create(dn).handle)

    def exists(
        self,
        search_filter: str,
        search_base: Optional[str] = None,
        scope: str = ldap3.SUBTREE,
    ) -> bool:
        """Check whether any object below search_base matches the filter."""
        results = self.connection.search(
            search_filter,
            attributes=[ATTR_DISTINGUISHED_NAME],
            search_base=search_base or self.domain_root,
            scope=scope,
        )
        return len(results) > 0

    def security_sids(self, destination: DirectoryObject) -> Set[str]:
        return get_security_sids(self.invoker_sids, self.invoker.sid, destination.sid)

    def create_permissions(self, destination: DirectoryObject) -> EffectiveRights:
        """
        Resolve the invoker's rights on an object.

        Args:
            destination: Object to resolve rights on

        Returns:
            The effective rights table
        """
        handle = self.ledger.get_or_create(destination.dn).handle
        aces = self.connection.read_security_descriptor(handle)
        return EffectiveRights(
            self.catalog,
            destination.object_classes,
            aces,
            self.security_sids(destination),
        )

    def lookup_trustee_name(self, sid: str) -> str:
        """
        Get a readable name for a SID.

        Args:
            sid: Security identifier

        Returns:
            The well-known or account name, or the SID itself when unknown
        """
        if sid in self._trustee_names:
            return self._trustee_names[sid]

        if sid in WELLKNOWN_SIDS:
            name = WELLKNOWN_SIDS[sid][0]
        else:
            rid = sid.split("-")[-1]
            entry = self.connection.get_by_sid(sid)
            if entry is not None:
                name = entry.get(ATTR_SAM_ACCOUNT_NAME) or entry.dn
                self.connection.dispose(entry)
            elif rid in WELLKNOWN_RIDS and sid.startswith("S-1-5-21-"):
                name = WELLKNOWN_RIDS[rid][0]
            else:
                logging.debug(f"Could not resolve trustee {sid!r}")
                name = sid

        self._trustee_names[sid] = name
        return name

    def create_access_rules(
        self, destination: DirectoryObject
    ) -> Optional[List[AccessRuleProtocol]]:
        """
        List the access control entries of an object for display.

        Args:
            destination: Object whose DACL is listed

        Returns:
            The entries in descriptor order, or None when the invoker may not
            list access rules

        Raises:
            SchemaNotFoundError: If an entry names a GUID defined nowhere
        """
        if not self.is_security_principal:
            return None

        handle = self.ledger.get_or_create(destination.dn).handle
        rules: List[AccessRuleProtocol] = []
        for ace in self.connection.read_security_descriptor(handle):
            rules.append(
                AccessRuleProtocol(
                    trustee=ace.sid,
                    trustee_name=self.lookup_trustee_name(ace.sid),
                    is_allow=ace.is_allow,
                    is_inherited=ace.is_inherited,
                    scope=str(ace.scope),
                    rights=ace.rights.to_str_list(),
                    object_type=ace.object_type if ace.has_object_type else "",
                    object_type_name=(
                        self.catalog.display_name_of(ace.object_type)
                        if ace.has_object_type
                        else ""
                    ),
                    inherited_object_type=(
                        ace.inherited_object_type
                        if ace.has_inherited_object_type
                        else ""
                    ),
                    inherited_object_type_name=(
                        self.catalog.display_name_of(ace.inherited_object_type)
                        if ace.has_inherited_object_type
                        else ""
                    ),
                )
            )
        return rules
