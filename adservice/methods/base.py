"""
Base class of adservice operations.

Every operation answers three questions against a per-invocation context, the
target object and the invoker's effective rights on it:
- probe: could the operation succeed, and what input does it expect?
- validate: is this concrete input acceptable?
- execute: stage the changes in the transaction ledger

Probe and validate report refusals through their return values; they never
raise for missing rights or bad input.
"""

import enum
from typing import Any, Optional, Tuple

from adservice.lib.certification import Certification
from adservice.lib.constants import ActiveDirectoryRights
from adservice.lib.objects import DirectoryObject
from adservice.lib.permissions import EffectiveRights
from adservice.lib.protocol import InvokeCondition, PayloadKind

ProbeResult = Tuple[Optional[InvokeCondition], str]


class MethodKind(str, enum.Enum):
    CREATE_USER = "create-user"
    CREATE_GROUP = "create-group"
    CREATE_ORGANIZATION_UNIT = "create-organization-unit"
    MOVE = "move"
    RENAME = "rename"
    MODIFY_SECURITY = "modify-security"
    SHOW_SECURITY = "show-security"
    SHOW_DETAIL = "show-detail"
    MODIFY_DETAIL = "modify-detail"
    SHOW_CREATABLE = "show-creatable"
    CHANGE_PASSWORD = "change-password"
    RESET_PASSWORD = "reset-password"

    def __str__(self) -> str:
        return self.value


class Method:
    """
    One operation of the protocol.

    Subclasses set KIND, PAYLOAD (the decoded input type, None for operations
    without input) and IS_SHOWED (whether the operation is listed).
    """

    KIND: MethodKind
    PAYLOAD: Optional[PayloadKind] = None
    IS_SHOWED = True

    @property
    def name(self) -> str:
        return self.KIND.value

    def probe(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
    ) -> ProbeResult:
        """
        Check whether the operation is available on the destination.

        Args:
            certification: Invocation context
            destination: Target object
            permissions: Invoker's effective rights on the target

        Returns:
            The capability descriptor, or None with the reason it is unavailable
        """
        raise NotImplementedError

    def validate(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> bool:
        """Check concrete input; operations without input never validate."""
        return False

    def execute(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> None:
        """Stage the operation's changes in the ledger."""
        pass

    def __repr__(self) -> str:
        return f"<Method {self.name!r}>"


def missing_right(
    right: ActiveDirectoryRights, name: str, destination: DirectoryObject
) -> str:
    """Describe a right the invoker lacks."""
    return f"Missing {right} right on {name!r} at {destination.dn!r}"
