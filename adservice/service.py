"""
Public protocol surface of adservice.

ADService answers, for the bound user against one directory object, which
operations are available, whether an input is acceptable, and performs the
operation. Every call runs in its own Certification: rights are resolved
from scratch and every handle acquired is released before the call returns.
"""

from typing import Any, Dict, Optional, Set, Union

from adservice.lib.certification import Certification
from adservice.lib.errors import NotFoundError
from adservice.lib.ldap import LDAPConnection
from adservice.lib.logger import logging
from adservice.lib.objects import DirectoryObject
from adservice.lib.permissions import EffectiveRights
from adservice.lib.protocol import InvokeCondition, decode_payload
from adservice.lib.schema import DEFAULT_EXPIRY, SchemaCatalog
from adservice.lib.target import Target
from adservice.methods import METHODS, get_method

TargetLike = Union[str, DirectoryObject]


class ADService:
    """
    Operations of one bound user.

    Attributes:
        connection: Directory client
        invoker: The bound user
        catalog: Schema catalog shared by every call
    """

    def __init__(
        self,
        connection: LDAPConnection,
        invoker: DirectoryObject,
        catalog: Optional[SchemaCatalog] = None,
    ) -> None:
        self.connection = connection
        self.invoker = invoker
        self.catalog = catalog or SchemaCatalog(connection)
        self._invoker_sids: Optional[Set[str]] = None

    @staticmethod
    def login(target: Target, expiry: float = DEFAULT_EXPIRY) -> "ADService":
        """
        Bind to the directory and resolve the invoker.

        Args:
            target: Connection configuration
            expiry: Lifetime of cached schema entries, in seconds

        Returns:
            A service acting as the bound user

        Raises:
            ArgumentError: If the target lacks a host or credentials
            TransportError: If the server cannot be reached or the bind fails
            NotFoundError: If the bound user has no account object
        """
        target.validate()

        connection = LDAPConnection(target)
        connection.connect()

        user = connection.get_user(target.username)
        if user is None:
            raise NotFoundError(f"User {target.username!r} was not found")

        logging.debug(f"Logged in as {user.dn!r}")
        return ADService(
            connection,
            DirectoryObject.from_entry(user),
            catalog=SchemaCatalog(connection, expiry=expiry),
        )

    @property
    def invoker_sids(self) -> Set[str]:
        if self._invoker_sids is None:
            self._invoker_sids = self.connection.get_user_sids(self.invoker)
        return self._invoker_sids

    def close(self) -> None:
        self.connection.close()

    def _certification(self) -> Certification:
        return Certification(self.connection, self.catalog, self.invoker, self.invoker_sids)

    def effective_rights(self, target: TargetLike) -> EffectiveRights:
        """
        Resolve the invoker's rights on an object.

        Args:
            target: Distinguished name or snapshot of the object

        Returns:
            The effective rights table
        """
        with self._certification() as certification:
            destination = certification.load(target)
            return certification.create_permissions(destination)

    def list_available_operations(
        self, target: TargetLike, payload: Any = None
    ) -> Dict[str, InvokeCondition]:
        """
        Probe every listed operation against an object.

        Args:
            target: Distinguished name or snapshot of the object
            payload: Accepted for symmetry with the other calls; probes do not
                depend on input

        Returns:
            Capability descriptor per available operation name
        """
        with self._certification() as certification:
            destination = certification.load(target)
            permissions = certification.create_permissions(destination)

            available: Dict[str, InvokeCondition] = {}
            for method in METHODS.values():
                if not method.IS_SHOWED:
                    continue

                condition, message = method.probe(certification, destination, permissions)
                if condition is None:
                    logging.debug(f"{method.name} is unavailable: {message}")
                    continue

                available[method.name] = condition

            return available

    def get_operation_capability(
        self, name: str, target: TargetLike, payload: Any = None
    ) -> Optional[InvokeCondition]:
        """
        Probe one operation, listed or not.

        Args:
            name: Operation name
            target: Distinguished name or snapshot of the object
            payload: Accepted for symmetry with the other calls

        Returns:
            The capability descriptor, or None when the operation is unavailable

        Raises:
            ArgumentError: If no operation has this name
        """
        method = get_method(name)

        with self._certification() as certification:
            destination = certification.load(target)
            permissions = certification.create_permissions(destination)

            condition, message = method.probe(certification, destination, permissions)
            if condition is None:
                logging.debug(f"{method.name} is unavailable: {message}")
            return condition

    def validate_operation(self, name: str, target: TargetLike, payload: Any) -> bool:
        """
        Check an input for an operation.

        Raises:
            ArgumentError: If no operation has this name or the payload
                cannot be decoded
        """
        method = get_method(name)
        decoded = decode_payload(method.PAYLOAD, payload)

        with self._certification() as certification:
            destination = certification.load(target)
            permissions = certification.create_permissions(destination)
            return method.validate(certification, destination, permissions, decoded)

    def invoke_operation(
        self, name: str, target: TargetLike, payload: Any
    ) -> Dict[str, DirectoryObject]:
        """
        Validate and perform an operation.

        Args:
            name: Operation name
            target: Distinguished name or snapshot of the object
            payload: Operation input, as JSON text or decoded value

        Returns:
            The objects the operation changed, keyed by distinguished name;
            empty when the input was refused

        Raises:
            ArgumentError: If no operation has this name or the payload
                cannot be decoded
        """
        method = get_method(name)
        decoded = decode_payload(method.PAYLOAD, payload)

        with self._certification() as certification:
            destination = certification.load(target)
            permissions = certification.create_permissions(destination)

            if not method.validate(certification, destination, permissions, decoded):
                logging.debug(f"{method.name} refused its input for {destination.dn!r}")
                return {}

            method.execute(certification, destination, permissions, decoded)

            return {
                dn: DirectoryObject.from_entry(handle)
                for dn, handle in certification.ledger.drain().items()
            }
