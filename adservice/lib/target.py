"""
Connection configuration for adservice.

A Target names the domain controller to bind to and the account to bind as.
Library callers build one directly; the CLI builds one from its options with
Target.from_options. Host names go through DnsResolver, which asks the
configured nameserver first and the system resolver second.
"""

import argparse
import socket
from typing import Dict, Optional, Tuple

from dns.resolver import Resolver

from adservice.lib.errors import ArgumentError, handle_error
from adservice.lib.logger import logging

LDAP_PORTS = {"ldap": 389, "ldaps": 636}


def split_principal(principal: Optional[str]) -> Tuple[str, str]:
    """
    Split user@domain into its parts.

    The domain is upper-cased. A principal without '@' has no domain; a user
    name containing '@' keeps everything before the last one.
    """
    if not principal:
        return "", ""

    username, separator, domain = principal.rpartition("@")
    if not separator:
        return principal, ""
    return username, domain.upper()


def split_hashes(hashes: Optional[str]) -> Tuple[str, str]:
    """
    Split [lmhash:]nthash.

    Returns:
        (lmhash, nthash); a missing LM hash repeats the NT hash
    """
    if not hashes:
        return "", ""

    lmhash, _, nthash = hashes.rpartition(":")
    return lmhash or nthash, nthash


class Target:
    """
    Domain controller and credentials of one session.

    Attributes:
        remote_name: Host name (or address) of the domain controller
        target_ip: Address the LDAP connection is opened to
        username: sAMAccountName of the invoker
        domain: NetBIOS or DNS name of the domain, upper-cased
        password: Clear-text password, if any
        lmhash, nthash: NTLM hashes, if any
        do_simple: Bind with SIMPLE instead of NTLM
        ldap_scheme: 'ldap' or 'ldaps'
        ldap_port: Port, derived from the scheme when omitted
    """

    def __init__(
        self,
        resolver: Optional["DnsResolver"],
        domain: str = "",
        username: str = "",
        password: Optional[str] = None,
        remote_name: str = "",
        lmhash: str = "",
        nthash: str = "",
        do_simple: bool = False,
        dc_ip: Optional[str] = None,
        dc_host: Optional[str] = None,
        target_ip: Optional[str] = None,
        timeout: int = 10,
        ldap_scheme: str = "ldaps",
        ldap_port: Optional[int] = None,
    ) -> None:
        if ldap_scheme not in LDAP_PORTS:
            raise ArgumentError(f"Unknown LDAP scheme {ldap_scheme!r}")

        self.resolver = resolver
        self.domain = domain
        self.username = username
        self.password = password
        self.remote_name = remote_name
        self.lmhash = lmhash
        self.nthash = nthash
        self.do_simple = do_simple
        self.dc_ip = dc_ip
        self.dc_host = dc_host
        self.target_ip = target_ip
        self.timeout = timeout
        self.ldap_scheme = ldap_scheme
        self.ldap_port = ldap_port or LDAP_PORTS[ldap_scheme]

    @staticmethod
    def from_options(options: argparse.Namespace) -> "Target":
        """
        Build a Target from the shared connection options.

        The domain controller is taken from -target, then -target-ip, then
        -dc-host, then -dc-ip, and finally the domain part of -username. Its
        address is resolved unless -target-ip is given.

        Args:
            options: Parsed command line

        Returns:
            The configured target

        Raises:
            ArgumentError: If no domain controller can be determined
        """
        username, domain = split_principal(getattr(options, "username", None))
        lmhash, nthash = split_hashes(getattr(options, "hashes", None))

        password = getattr(options, "password", None)
        if not password and username and not nthash and not getattr(options, "no_pass", False):
            from getpass import getpass

            password = getpass("Password:")

        dc_ip = getattr(options, "dc_ip", None)
        dc_host = getattr(options, "dc_host", None) or domain or None
        target_ip = getattr(options, "target_ip", None)

        candidates = (
            getattr(options, "target", None),
            target_ip,
            dc_host,
            dc_ip,
        )
        remote_name = next((name for name in candidates if name), None)
        if remote_name is None:
            raise ArgumentError("Could not find a domain controller in the options")

        if is_ip(remote_name):
            target_ip = target_ip or remote_name
            dc_ip = dc_ip or remote_name

        resolver = DnsResolver.create(
            ns=getattr(options, "ns", None) or dc_ip,
            dns_tcp=getattr(options, "dns_tcp", False),
        )
        if target_ip is None:
            target_ip = resolver.resolve(remote_name)

        logging.debug(f"Domain controller: {remote_name!r} ({target_ip!r})")
        logging.debug(f"Account: {username!r} in {domain!r}")

        return Target(
            resolver,
            domain=domain,
            username=username,
            password=password,
            remote_name=remote_name,
            lmhash=lmhash,
            nthash=nthash,
            do_simple=getattr(options, "do_simple", False),
            dc_ip=dc_ip,
            dc_host=dc_host,
            target_ip=target_ip,
            timeout=getattr(options, "timeout", 10),
            ldap_scheme=getattr(options, "ldap_scheme", "ldaps"),
            ldap_port=getattr(options, "ldap_port", None),
        )

    def validate(self) -> None:
        """
        Reject a target that cannot possibly bind.

        Raises:
            ArgumentError: If the host, the username or the secret is empty
        """
        if not (self.target_ip or self.remote_name):
            raise ArgumentError("Target host name is empty")

        if not self.username:
            raise ArgumentError("Username is empty")

        if not self.password and not self.nthash:
            raise ArgumentError(f"No password or hash given for {self.username!r}")

    @property
    def url(self) -> str:
        return f"{self.ldap_scheme}://{self.target_ip or self.remote_name}:{self.ldap_port}"

    def __repr__(self) -> str:
        return (
            f"<Target {self.username!r}@{self.domain!r} "
            f"at {self.url!r} ({'SIMPLE' if self.do_simple else 'NTLM'})>"
        )


class DnsResolver:
    """Resolves domain controller names, remembering each answer."""

    def __init__(self) -> None:
        self.resolver = Resolver()
        self.use_tcp = False
        self.mappings: Dict[str, str] = {}

    @staticmethod
    def create(ns: Optional[str] = None, dns_tcp: bool = False) -> "DnsResolver":
        resolver = DnsResolver()
        # One nameserver only: a dead secondary would fail the whole query
        if ns is not None:
            resolver.resolver.nameservers = [ns]
        resolver.use_tcp = dns_tcp
        return resolver

    def resolve(self, hostname: str) -> str:
        """
        Resolve a host name to an IPv4 address.

        Args:
            hostname: Name to resolve

        Returns:
            The address, or the name itself when neither DNS nor the system
            resolver knows it
        """
        if is_ip(hostname):
            return hostname

        if hostname in self.mappings:
            return self.mappings[hostname]

        address = None
        try:
            answers = self.resolver.resolve(hostname, tcp=self.use_tcp)
            if answers:
                address = str(answers[0])
        except Exception as e:
            logging.warning(f"DNS lookup of {hostname!r} failed: {e}")
            handle_error(True)

        if address is None:
            try:
                address = socket.gethostbyname(hostname)
            except OSError:
                logging.warning(f"Could not resolve {hostname!r}")
                return hostname

        logging.debug(f"Resolved {hostname!r} to {address!r}")
        self.mappings[hostname] = address
        return address


def is_ip(hostname: Optional[str]) -> bool:
    """Check whether a host name is an IPv4 address."""
    if not hostname:
        return False
    try:
        _ = socket.inet_aton(hostname)
        return True
    except OSError:
        return False
