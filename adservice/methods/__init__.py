"""
Registry of the operations adservice can invoke.
"""

from typing import Dict, Union

from adservice.lib.errors import ArgumentError
from adservice.methods.base import Method, MethodKind
from adservice.methods.create import (
    CreateGroupMethod,
    CreateOrganizationUnitMethod,
    CreateUserMethod,
    ShowCreatableMethod,
)
from adservice.methods.detail import ModifyDetailMethod, ShowDetailMethod
from adservice.methods.move import MoveMethod, RenameMethod
from adservice.methods.password import ChangePasswordMethod, ResetPasswordMethod
from adservice.methods.security import ModifySecurityMethod, ShowSecurityMethod

METHODS: Dict[MethodKind, Method] = {
    method.KIND: method
    for method in (
        CreateUserMethod(),
        CreateGroupMethod(),
        CreateOrganizationUnitMethod(),
        MoveMethod(),
        RenameMethod(),
        ModifySecurityMethod(),
        ShowSecurityMethod(),
        ShowDetailMethod(),
        ModifyDetailMethod(),
        ShowCreatableMethod(),
        ChangePasswordMethod(),
        ResetPasswordMethod(),
    )
}


def get_method(name: Union[str, MethodKind]) -> Method:
    """
    Look an operation up by name.

    Raises:
        ArgumentError: If no operation has this name
    """
    try:
        kind = MethodKind(name)
    except ValueError:
        raise ArgumentError(f"Unknown operation {name!r}") from None
    return METHODS[kind]


__all__ = ["METHODS", "Method", "MethodKind", "get_method"]
