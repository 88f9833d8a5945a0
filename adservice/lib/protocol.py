"""
Protocol types for adservice operations.

This module provides:
- ProtocolAttributeFlags: Bits describing a value or an input an operation expects
- InvokeCondition: Capability descriptor returned by an operation's probe
- ValueDescription, PropertyDescription: Type descriptions used inside descriptors
- AccessRuleProtocol: Access control entry as shown to callers
- Payload types and the codec decoding raw input into them
"""

import json
from typing import Any, Dict, List, Optional, Tuple, Type, Union

from adservice.lib.errors import ArgumentError
from adservice.lib.structs import IntFlag


class ProtocolAttributeFlags(IntFlag):
    NONE = 0
    ISENUM = 0x100
    ISFLAGS = 0x200
    HASVALUE = 0x1000
    COMBINE = 0x2000
    ISARRAY = 0x4000
    PROPERTIES = 0x10000
    ELEMENTS = 0x20000
    NULLDISABLE = 0x02000000
    CATEGORYLIMITED = 0x04000000
    SELF = 0x10000000
    EDITABLE = 0x40000000
    INVOKEMETHOD = 0x80000000


class ValueDescription:
    """Type of a stored or received value."""

    def __init__(self, value_type: str, count: int = 1, is_array: bool = False) -> None:
        self.value_type = value_type
        self.count = count
        self.is_array = is_array

    def to_dict(self) -> Dict[str, Any]:
        return {"Type": self.value_type, "Count": self.count, "IsArray": self.is_array}

    def __repr__(self) -> str:
        return f"<ValueDescription {self.value_type!r}>"


class PropertyDescription:
    """One named field of a structured input."""

    def __init__(self, name: str, value_type: str = "String", is_required: bool = True):
        self.name = name
        self.value_type = value_type
        self.is_required = is_required

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Name": self.name,
            "Type": self.value_type,
            "Required": self.is_required,
        }


class AccessRuleProtocol:
    """
    One access control entry of an object, resolved to display names.
    """

    def __init__(
        self,
        trustee: str,
        trustee_name: str,
        is_allow: bool,
        is_inherited: bool,
        scope: str,
        rights: List[str],
        object_type: str = "",
        object_type_name: str = "",
        inherited_object_type: str = "",
        inherited_object_type_name: str = "",
    ) -> None:
        self.trustee = trustee
        self.trustee_name = trustee_name
        self.is_allow = is_allow
        self.is_inherited = is_inherited
        self.scope = scope
        self.rights = rights
        self.object_type = object_type
        self.object_type_name = object_type_name
        self.inherited_object_type = inherited_object_type
        self.inherited_object_type_name = inherited_object_type_name

    def to_dict(self) -> Dict[str, Any]:
        output: Dict[str, Any] = {
            "Trustee": self.trustee,
            "Trustee Name": self.trustee_name,
            "Access Type": "Allow" if self.is_allow else "Deny",
            "Inherited": self.is_inherited,
            "Inheritance": self.scope,
            "Rights": self.rights,
        }
        if self.object_type:
            output["Object Type"] = self.object_type_name or self.object_type
        if self.inherited_object_type:
            output["Inherited Object Type"] = (
                self.inherited_object_type_name or self.inherited_object_type
            )
        return output


class InvokeCondition:
    """
    What an operation expects from its caller, or None when it is unavailable.

    Details are keyed by the constants of this class.
    """

    CATEGORY_LIMITED = "CategoryLimited"
    PROPERTIES = "Properties"
    ELEMENTS = "Elements"
    VALUE = "Value"
    COUNT = "Count"
    ENUM_LIST = "EnumList"
    FLAG_MASK = "FlagMask"
    COMBINE_WITH = "CombineWith"
    STORED_TYPE = "StoredType"
    RECEIVED_TYPE = "ReceivedType"
    METHODS = "Methods"

    KEYS = (
        CATEGORY_LIMITED,
        PROPERTIES,
        ELEMENTS,
        VALUE,
        COUNT,
        ENUM_LIST,
        FLAG_MASK,
        COMBINE_WITH,
        STORED_TYPE,
        RECEIVED_TYPE,
        METHODS,
    )

    def __init__(
        self,
        flags: ProtocolAttributeFlags = ProtocolAttributeFlags.NONE,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        for key in details:
            if key not in self.KEYS:
                raise ArgumentError(f"Unknown invoke condition key {key!r}")

        self.flags = ProtocolAttributeFlags(flags)
        self.details = details

    def get(self, key: str, default: Any = None) -> Any:
        return self.details.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self.details

    def has_flag(self, flag: ProtocolAttributeFlags) -> bool:
        return bool(self.flags & flag)

    def to_dict(self) -> Dict[str, Any]:
        output: Dict[str, Any] = {"Flags": self.flags.to_str_list()}
        for key, value in self.details.items():
            output[key] = _render(value)
        return output

    def __repr__(self) -> str:
        return f"<InvokeCondition {self.flags}>"


def _render(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, IntFlag):
        return value.to_str_list()
    if isinstance(value, dict):
        return {k: _render(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_render(v) for v in value]
    return value


# =========================================================================
# Payloads
# =========================================================================


class Payload:
    """
    Structured operation input.

    FIELDS maps each attribute to its JSON key and whether it is required.
    """

    NAME = ""
    FIELDS: Tuple[Tuple[str, str, bool], ...] = ()

    def __init__(self, **kwargs: Any) -> None:
        for attribute, _, _ in self.FIELDS:
            setattr(self, attribute, kwargs.get(attribute))

    @classmethod
    def describe(cls) -> List[PropertyDescription]:
        return [
            PropertyDescription(key, "String", required) for _, key, required in cls.FIELDS
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attribute) for attribute, key, _ in self.FIELDS}


class CreateUser(Payload):
    NAME = "CreateUser"
    FIELDS = (
        ("name", "name", True),
        ("account", "account", True),
        ("password", "password", True),
        ("sn", "sn", False),
        ("given_name", "givenName", False),
        ("initials", "initials", False),
        ("display_name", "displayName", False),
    )


class CreateGroup(Payload):
    NAME = "CreateGroup"
    FIELDS = (("name", "name", True),)


class CreateOrganizationUnit(Payload):
    NAME = "CreateOrganizationUnit"
    FIELDS = (("name", "name", True),)


class ChangePassword(Payload):
    NAME = "ChangePassword"
    FIELDS = (
        ("old_password", "from", True),
        ("new_password", "to", True),
    )


PayloadKind = Union[Type[Payload], Type[str], Type[dict]]


def _load(token: Any) -> Any:
    if not isinstance(token, (str, bytes)):
        return token
    try:
        return json.loads(token)
    except ValueError:
        return None


def decode_payload(kind: Optional[PayloadKind], token: Any) -> Any:
    """
    Decode raw operation input into the type an operation expects.

    Args:
        kind: Payload class, str or dict; None for operations without input
        token: JSON text, an already decoded value, or None

    Returns:
        An instance of kind, or None when kind is None

    Raises:
        ArgumentError: If the token does not have the expected shape
    """
    if kind is None:
        return None

    if token is None:
        raise ArgumentError("Operation requires a payload")

    if kind is str:
        if isinstance(token, bytes):
            token = token.decode()
        if isinstance(token, str):
            # A JSON string literal is accepted as well as plain text
            value = _load(token) if token.startswith('"') else token
            if isinstance(value, str):
                return value
        raise ArgumentError(f"Expected a string payload, got {token!r}")

    value = _load(token)
    if not isinstance(value, dict):
        raise ArgumentError(f"Expected a JSON object payload, got {token!r}")

    if kind is dict:
        return value

    kwargs: Dict[str, Any] = {}
    for attribute, key, required in kind.FIELDS:
        field = value.get(key)
        if field is None:
            if required:
                raise ArgumentError(f"{kind.NAME} payload is missing {key!r}")
            continue
        if not isinstance(field, str):
            raise ArgumentError(f"{kind.NAME} field {key!r} must be a string")
        kwargs[attribute] = field

    unknown = set(value) - {key for _, key, _ in kind.FIELDS}
    if unknown:
        raise ArgumentError(
            f"{kind.NAME} payload has unknown fields: {', '.join(sorted(unknown))}"
        )

    return kind(**kwargs)
