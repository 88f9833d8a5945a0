"""
Password operations on user accounts.

Both operations reach the server immediately through the directory client;
the ledger only refreshes the account afterwards.
"""

from typing import Any

from adservice.lib.certification import Certification
from adservice.lib.constants import (
    EXTENDED_RIGHT_CHANGE_PASSWORD,
    EXTENDED_RIGHT_RESET_PASSWORD,
    ActiveDirectoryRights,
)
from adservice.lib.logger import logging
from adservice.lib.objects import CategoryTypes, DirectoryObject
from adservice.lib.permissions import EffectiveRights
from adservice.lib.protocol import (
    ChangePassword,
    InvokeCondition,
    ProtocolAttributeFlags,
)
from adservice.methods.base import Method, MethodKind, ProbeResult, missing_right


class PasswordMethod(Method):
    EXTENDED_RIGHT = ""

    def probe(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
    ) -> ProbeResult:
        if not destination.category & CategoryTypes.PERSON:
            return None, f"{destination.dn!r} is not a user account"

        if not permissions.is_allow(
            self.EXTENDED_RIGHT, ActiveDirectoryRights.EXTENDED_RIGHT
        ):
            return None, missing_right(
                ActiveDirectoryRights.EXTENDED_RIGHT, self.EXTENDED_RIGHT, destination
            )

        received_type = self.PAYLOAD.NAME if self.PAYLOAD is ChangePassword else "String"
        condition = InvokeCondition(
            ProtocolAttributeFlags.NULLDISABLE | ProtocolAttributeFlags.EDITABLE,
            {InvokeCondition.RECEIVED_TYPE: received_type},
        )
        return condition, ""

    def check(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
    ) -> bool:
        condition, message = self.probe(certification, destination, permissions)
        if condition is None:
            logging.debug(message)
            return False
        return True


class ChangePasswordMethod(PasswordMethod):
    KIND = MethodKind.CHANGE_PASSWORD
    PAYLOAD = ChangePassword
    EXTENDED_RIGHT = EXTENDED_RIGHT_CHANGE_PASSWORD

    def validate(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> bool:
        if not isinstance(payload, ChangePassword):
            return False
        if not payload.old_password or not payload.new_password:
            return False
        return self.check(certification, destination, permissions)

    def execute(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> None:
        entry = certification.ledger.get_or_create(destination.dn)
        certification.connection.change_password(
            entry.handle, payload.old_password, payload.new_password
        )
        certification.ledger.mark_refresh_required(entry)


class ResetPasswordMethod(PasswordMethod):
    KIND = MethodKind.RESET_PASSWORD
    PAYLOAD = str
    EXTENDED_RIGHT = EXTENDED_RIGHT_RESET_PASSWORD

    def validate(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> bool:
        if not isinstance(payload, str) or not payload:
            return False
        return self.check(certification, destination, permissions)

    def execute(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
        payload: Any,
    ) -> None:
        entry = certification.ledger.get_or_create(destination.dn)
        certification.connection.reset_password(entry.handle, payload)
        certification.ledger.mark_refresh_required(entry)
