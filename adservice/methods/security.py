"""
Operations exposing the access control list of an object.

Only administrative principals may list access rules. Editing them is not
supported yet: modify-security describes the rules it would edit but never
validates, so it is left out of the operation listing.
"""

from adservice.lib.certification import Certification
from adservice.lib.objects import DirectoryObject
from adservice.lib.permissions import EffectiveRights
from adservice.lib.protocol import (
    InvokeCondition,
    ProtocolAttributeFlags,
    ValueDescription,
)
from adservice.methods.base import Method, MethodKind, ProbeResult


class SecurityMethod(Method):
    def probe(
        self,
        certification: Certification,
        destination: DirectoryObject,
        permissions: EffectiveRights,
    ) -> ProbeResult:
        rules = certification.create_access_rules(destination)
        if rules is None:
            return None, (
                f"{certification.invoker.dn!r} may not list the access rules "
                f"of {destination.dn!r}"
            )

        condition = InvokeCondition(
            ProtocolAttributeFlags.HASVALUE | ProtocolAttributeFlags.INVOKEMETHOD,
            {
                InvokeCondition.STORED_TYPE: ValueDescription(
                    "AccessRuleProtocol", len(rules), is_array=True
                ),
                InvokeCondition.VALUE: rules,
                InvokeCondition.METHODS: [MethodKind.MODIFY_SECURITY.value],
            },
        )
        return condition, ""


class ShowSecurityMethod(SecurityMethod):
    KIND = MethodKind.SHOW_SECURITY


class ModifySecurityMethod(SecurityMethod):
    KIND = MethodKind.MODIFY_SECURITY
    IS_SHOWED = False
