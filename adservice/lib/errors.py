"""
Error types and error code translation for adservice.

Faults that indicate broken directory metadata, broken internal logic or a
failing directory server are raised as typed exceptions carrying an
``ErrorCode``. Authorization refusals are never raised: operations report
them as an unavailable capability or a failed validation instead.

Functions:
    translate_error_code: Convert a Windows error code to a readable message
    translate_ldap_result: Convert an ldap3 result dictionary to a typed error
    handle_error: Report the current exception according to verbosity
"""

import enum
import re
import traceback
from typing import Any, Dict, Optional, Tuple

from impacket import system_errors
from ldap3.core.results import (
    RESULT_CONSTRAINT_VIOLATION,
    RESULT_ENTRY_ALREADY_EXISTS,
    RESULT_INSUFFICIENT_ACCESS_RIGHTS,
    RESULT_INVALID_CREDENTIALS,
    RESULT_NO_SUCH_OBJECT,
    RESULT_UNWILLING_TO_PERFORM,
)

from adservice.lib.logger import is_verbose, logging


class ErrorCode(enum.IntEnum):
    """Error codes reported to callers of the protocol surface."""

    NONE_ERROR = 0
    SERVER_ERROR = 1
    LOGIC_ERROR = 2
    DATA_ERROR = 3
    ACCOUNT_DISABLE = 4
    ACCOUNT_LOCKED = 5
    ACCOUNT_EXPIRED = 6
    ACCOUNT_INCORRECT = 7
    PASSWORD_EXPIRED = 8
    PASSWORD_INCORRECT = 9
    PASSWORD_LOGON_RESET = 10
    REJECT_LOGIN_AT_WORKSTATION = 11
    REJECT_LOGIN_AT_TIME = 12
    NAME_DUPLICATE = 13
    ARG_DATA_ERROR = 14
    OBJECT_NOTFOUND = 15
    PERMISSION_DENIED = 16
    ACTION_FAILURE = 17


class ADServiceError(Exception):
    """Base class for every fault raised by adservice."""

    code = ErrorCode.SERVER_ERROR

    def __init__(self, message: str, code: Optional[ErrorCode] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return f"{self.message} ({self.code.name})"


class LogicError(ADServiceError):
    """Internal logic reached a state it was not built for."""

    code = ErrorCode.LOGIC_ERROR


class SchemaInconsistencyError(LogicError):
    """Directory metadata that must exist could not be resolved."""

    code = ErrorCode.SERVER_ERROR


class NotFoundError(ADServiceError):
    """A referenced directory object does not exist."""

    code = ErrorCode.OBJECT_NOTFOUND


class SchemaNotFoundError(SchemaInconsistencyError, NotFoundError):
    """A GUID resolved to neither an extended right nor a schema unit."""

    code = ErrorCode.SERVER_ERROR


class TransportError(ADServiceError):
    """The directory server could not be reached or refused the request."""

    code = ErrorCode.SERVER_ERROR


class ArgumentError(ADServiceError):
    """Malformed input rejected before any directory I/O."""

    code = ErrorCode.ARG_DATA_ERROR


class PermissionDeniedError(ADServiceError):
    """The directory server refused a change for lack of rights."""

    code = ErrorCode.PERMISSION_DENIED


class NameDuplicateError(ADServiceError):
    """An object with the same name already exists."""

    code = ErrorCode.NAME_DUPLICATE


class ActionFailedError(ADServiceError):
    """The directory server rejected an action such as a password change."""

    code = ErrorCode.ACTION_FAILURE


# Sub-codes reported as "data XXX," in the diagnostic message of a failed bind
# Source: https://ldapwiki.com/wiki/Wiki.jsp?page=Common%20Active%20Directory%20Bind%20Errors
BIND_ERROR_CODES: Dict[int, ErrorCode] = {
    0x525: ErrorCode.ACCOUNT_INCORRECT,
    0x52E: ErrorCode.PASSWORD_INCORRECT,
    0x530: ErrorCode.REJECT_LOGIN_AT_TIME,
    0x531: ErrorCode.REJECT_LOGIN_AT_WORKSTATION,
    0x532: ErrorCode.PASSWORD_EXPIRED,
    0x533: ErrorCode.ACCOUNT_DISABLE,
    0x701: ErrorCode.ACCOUNT_EXPIRED,
    0x773: ErrorCode.PASSWORD_LOGON_RESET,
    0x775: ErrorCode.ACCOUNT_LOCKED,
}

_DATA_CODE_PATTERN = re.compile(r"data ([0-9a-fA-F]+),")


def translate_error_code(error_code: int) -> str:
    """
    Translate a Windows system error code to a human-readable string.

    Args:
        error_code: Windows system error code

    Returns:
        Formatted error message with code, short description, and detailed explanation

    Example:
        >>> translate_error_code(0x52e)
        'code: 0x52e - ERROR_LOGON_FAILURE - The user name or password is incorrect.'
    """
    masked_code = error_code & 0xFFFFFFFF

    if masked_code in system_errors.ERROR_MESSAGES:
        error_tuple: Tuple[str, str] = system_errors.ERROR_MESSAGES[masked_code]
        error_short, error_detail = error_tuple
        return f"code: 0x{masked_code:x} - {error_short} - {error_detail}"
    else:
        return f"unknown error code: 0x{masked_code:x}"


def get_data_code(message: str) -> Optional[int]:
    """
    Extract the "data XXX," sub-code from an Active Directory diagnostic message.

    Args:
        message: Diagnostic message returned by the server

    Returns:
        The sub-code, or None if the message carries none
    """
    match = _DATA_CODE_PATTERN.search(message or "")
    if match is None:
        return None
    return int(match.group(1), 16)


def translate_ldap_result(result: Dict[str, Any], context: str = "") -> ADServiceError:
    """
    Convert a failed ldap3 result into a typed error.

    Args:
        result: ldap3 result dictionary ("result", "description", "message")
        context: Object or action the request was about, used in the message

    Returns:
        The typed error to raise
    """
    result_code = result.get("result")
    server_message = result.get("message") or ""
    description = result.get("description") or "unknown"

    prefix = f"{context}: " if context else ""
    message = f"{prefix}{description} {server_message}".strip()

    if result_code == RESULT_INVALID_CREDENTIALS:
        data_code = get_data_code(server_message)
        if data_code is not None:
            code = BIND_ERROR_CODES.get(data_code, ErrorCode.SERVER_ERROR)
            return TransportError(
                f"{prefix}{translate_error_code(data_code)}", code
            )
        return TransportError(message, ErrorCode.ACCOUNT_INCORRECT)

    if result_code == RESULT_NO_SUCH_OBJECT:
        return NotFoundError(message)

    if result_code in (RESULT_INSUFFICIENT_ACCESS_RIGHTS, RESULT_UNWILLING_TO_PERFORM):
        return PermissionDeniedError(message)

    if result_code == RESULT_ENTRY_ALREADY_EXISTS:
        return NameDuplicateError(message)

    if result_code == RESULT_CONSTRAINT_VIOLATION:
        return ActionFailedError(message)

    return TransportError(message)


def handle_error(is_warning: bool = False) -> None:
    """
    Report the exception being handled.

    Prints the full traceback when verbose output is enabled, otherwise
    hints at the -debug switch.
    """
    if is_verbose():
        traceback.print_exc()
    else:
        msg = "Use -debug to print a stacktrace"
        if is_warning:
            logging.warning(msg)
        else:
            logging.error(msg)
