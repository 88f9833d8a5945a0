"""
Effective rights module for adservice.

This module prints the rights the bound user holds on one directory object,
keyed by attribute, child class or extended right name. The entry named
"(Global)" carries the rights granted on the object as a whole.
"""

import argparse
import json
from typing import Optional

from adservice.lib.formatting import pretty_print
from adservice.lib.logger import logging
from adservice.lib.schema import DEFAULT_EXPIRY
from adservice.lib.target import Target
from adservice.service import ADService


class Rights:
    """
    Resolve and print effective rights.
    """

    def __init__(
        self,
        target: Target,
        object_dn: Optional[str] = None,
        json: bool = False,
        schema_expiry: float = DEFAULT_EXPIRY,
        service: Optional[ADService] = None,
        **kwargs,  # type: ignore
    ):
        """
        Initialize the command with target and output options.

        Args:
            target: Connection configuration
            object_dn: Object to inspect; the domain root when omitted
            json: Print JSON instead of text
            schema_expiry: Lifetime of cached schema lookups in seconds
            service: Existing service to reuse
            **kwargs: Additional arguments
        """
        self.target = target
        self.object_dn = object_dn
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

    def run(self) -> bool:
        """
        Print the rights table of the requested object.

        Returns:
            True if the rights could be resolved, False otherwise
        """
        object_dn = self.object_dn or self.service.connection.default_path
        if not object_dn:
            logging.error("No object given and the domain root is unknown")
            return False

        logging.info(f"Resolving effective rights on {object_dn!r}")
        rights = self.service.effective_rights(object_dn)

        output = rights.to_dict()
        if not output:
            logging.warning(f"No rights granted on {object_dn!r}")

        if self.json:
            print(json.dumps(output, indent=2))
        else:
            pretty_print(output)

        return True


def entry(options: argparse.Namespace) -> None:
    """
    Entry point for the 'rights' command.

    Args:
        options: Command line options
    """
    target = Target.from_options(options)
    options.__delattr__("target")

    rights = Rights(target, **vars(options))
    try:
        result = rights.run()
    finally:
        if rights._service is not None:
            rights._service.close()

    if result is False:
        import sys

        sys.exit(1)
