"""
Operation module for adservice.

This module exposes the four operation calls of the service on the command
line:
- list: every operation available on an object, with its capability
- show: the capability of one operation, listed or not
- validate: whether an input would be accepted, without writing
- invoke: validate and perform, printing the changed objects
"""

import argparse
import json
from typing import Any, Dict, Optional

from adservice.lib.formatting import pretty_print
from adservice.lib.logger import logging
from adservice.lib.schema import DEFAULT_EXPIRY
from adservice.lib.target import Target
from adservice.service import ADService


class Operation:
    """
    Command line front of ADService operations.
    """

    def __init__(
        self,
        target: Target,
        object_dn: Optional[str] = None,
        name: Optional[str] = None,
        payload: Optional[str] = None,
        json: bool = False,
        schema_expiry: float = DEFAULT_EXPIRY,
        service: Optional[ADService] = None,
        **kwargs,  # type: ignore
    ):
        """
        Initialize the command with target, operation and output options.

        Args:
            target: Connection configuration
            object_dn: Object to operate on; the domain root when omitted
            name: Operation name
            payload: Operation input as JSON text or plain string
            json: Print JSON instead of text
            schema_expiry: Lifetime of cached schema lookups in seconds
            service: Existing service to reuse
            **kwargs: Additional arguments
        """
        self.target = target
        self.object_dn = object_dn
        self.name = name
        self.payload = payload
        self.json = json
        self.schema_expiry = schema_expiry
        self._service = service
        self.kwargs = kwargs

    @property
    def service(self) -> ADService:
        if self._service is not None:
            return self._service

        self._service = ADService.login(self.target, expiry=self.schema_expiry)
        return self._service

    @property
    def destination(self) -> str:
        return self.object_dn or self.service.connection.default_path or ""

    def output(self, data: Dict[str, Any]) -> None:
        if self.json:
            print(json.dumps(data, indent=2))
        else:
            pretty_print(data)

    def _require_name(self) -> bool:
        if not self.name:
            logging.error("An operation name (-name) is required for this action")
            return False
        return True

    def list(self) -> bool:
        """
        Print every operation available on the object.

        Returns:
            True when at least one operation is available
        """
        available = self.service.list_available_operations(self.destination)
        if not available:
            logging.warning(f"No operation is available on {self.destination!r}")
            return False

        logging.info(f"Found {len(available)} operations on {self.destination!r}")
        self.output({name: condition.to_dict() for name, condition in available.items()})
        return True

    def show(self) -> bool:
        """
        Print the capability of one operation.

        Returns:
            True when the operation is available
        """
        if not self._require_name():
            return False

        condition = self.service.get_operation_capability(self.name, self.destination)
        if condition is None:
            logging.warning(f"{self.name} is not available on {self.destination!r}")
            return False

        self.output({self.name: condition.to_dict()})
        return True

    def validate(self) -> bool:
        """
        Check the input of one operation without writing.

        Returns:
            True when the input would be accepted
        """
        if not self._require_name():
            return False

        is_valid = self.service.validate_operation(
            self.name, self.destination, self.payload
        )
        if is_valid:
            logging.info(f"Input accepted by {self.name}")
        else:
            logging.warning(f"Input refused by {self.name}")
        return is_valid

    def invoke(self) -> bool:
        """
        Perform one operation and print the objects it changed.

        Returns:
            True when the input was accepted and the changes were written
        """
        if not self._require_name():
            return False

        changed = self.service.invoke_operation(
            self.name, self.destination, self.payload
        )
        if not changed:
            logging.warning(f"Input refused by {self.name}; nothing was written")
            return False

        logging.info(f"Successfully invoked {self.name} on {self.destination!r}")
        self.output({dn: obj.to_dict() for dn, obj in changed.items()})
        return True


def entry(options: argparse.Namespace) -> None:
    """
    Entry point for the 'operation' command.

    Args:
        options: Command line options
    """
    target = Target.from_options(options)
    options.__delattr__("target")

    operation = Operation(target, **vars(options))

    actions = {
        "list": operation.list,
        "show": operation.show,
        "validate": operation.validate,
        "invoke": operation.invoke,
    }

    if options.operation_action not in actions:
        logging.error(f"Unknown action: {options.operation_action}")
        logging.info(f"Available actions: {', '.join(actions.keys())}")
        return

    try:
        result = actions[options.operation_action]()
    finally:
        if operation._service is not None:
            operation._service.close()

    if result is False:
        import sys

        sys.exit(1)
