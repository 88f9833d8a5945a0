"""
Connection options shared by every adservice command.

The options map one-to-one onto Target.from_options and the schema cache
lifetime of ADService.login.
"""

import argparse


def add_argument_group(parser: argparse.ArgumentParser) -> None:
    """
    Add the domain controller, credential and LDAP options to a command.

    Args:
        parser: Sub-command parser
    """
    dc_group = parser.add_argument_group("domain controller options")
    _ = dc_group.add_argument(
        "-target",
        action="store",
        metavar="dns/ip address",
        help="Domain controller to bind to. Defaults to -dc-host, then -dc-ip",
    )
    _ = dc_group.add_argument(
        "-dc-host",
        action="store",
        metavar="hostname",
        help="Host name of the domain controller. Defaults to the domain of -username",
    )
    _ = dc_group.add_argument(
        "-dc-ip",
        action="store",
        metavar="ip address",
        help="Address of the domain controller, also used as nameserver",
    )
    _ = dc_group.add_argument(
        "-target-ip",
        action="store",
        metavar="ip address",
        help="Address to connect to, skipping name resolution",
    )
    _ = dc_group.add_argument(
        "-ns",
        action="store",
        metavar="ip address",
        help="Nameserver used to resolve the domain controller",
    )
    _ = dc_group.add_argument(
        "-dns-tcp", action="store_true", help="Query the nameserver over TCP"
    )
    _ = dc_group.add_argument(
        "-timeout",
        action="store",
        metavar="seconds",
        type=int,
        default=10,
        help="Connect timeout (default: 10)",
    )

    auth_group = parser.add_argument_group("authentication options")
    _ = auth_group.add_argument(
        "-u",
        "-username",
        metavar="username@domain",
        dest="username",
        action="store",
        help="Account to act as. Every operation is checked against its rights",
    )
    _ = auth_group.add_argument(
        "-p",
        "-password",
        metavar="password",
        dest="password",
        action="store",
        help="Password of the account",
    )
    _ = auth_group.add_argument(
        "-hashes",
        action="store",
        metavar="[lmhash:]nthash",
        help="NTLM hash of the account, instead of a password",
    )
    _ = auth_group.add_argument(
        "-no-pass",
        action="store_true",
        help="Do not prompt for a missing password",
    )

    ldap_group = parser.add_argument_group("ldap options")
    _ = ldap_group.add_argument(
        "-ldap-scheme",
        action="store",
        choices=["ldap", "ldaps"],
        default="ldaps",
        help="Connection scheme (default: ldaps)",
    )
    _ = ldap_group.add_argument(
        "-ldap-port",
        action="store",
        metavar="port",
        type=int,
        help="Port (default: 636 for ldaps, 389 for ldap)",
    )
    _ = ldap_group.add_argument(
        "-ldap-simple-auth",
        action="store_true",
        dest="do_simple",
        help="Bind with SIMPLE instead of NTLM",
    )
    _ = ldap_group.add_argument(
        "-schema-expiry",
        action="store",
        metavar="seconds",
        type=float,
        default=300,
        help="Lifetime of cached schema lookups (default: 300)",
    )
