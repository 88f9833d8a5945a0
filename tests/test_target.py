import pytest

from adservice.lib.errors import ArgumentError
from adservice.lib.target import Target, is_ip, split_hashes, split_principal


class TestOptionParsing:
    @pytest.mark.parametrize(
        "principal,expected",
        [
            ("alice@corp.local", ("alice", "CORP.LOCAL")),
            ("alice", ("alice", "")),
            ("svc@web@corp.local", ("svc@web", "CORP.LOCAL")),
            (None, ("", "")),
        ],
    )
    def test_split_principal(self, principal, expected):
        assert split_principal(principal) == expected

    @pytest.mark.parametrize(
        "hashes,expected",
        [
            ("aad3b435b51404eeaad3b435b51404ee:31d6cfe0d16ae931b73c59d7e0c089c0",
             ("aad3b435b51404eeaad3b435b51404ee", "31d6cfe0d16ae931b73c59d7e0c089c0")),
            (":31d6cfe0d16ae931b73c59d7e0c089c0",
             ("31d6cfe0d16ae931b73c59d7e0c089c0", "31d6cfe0d16ae931b73c59d7e0c089c0")),
            ("31d6cfe0d16ae931b73c59d7e0c089c0",
             ("31d6cfe0d16ae931b73c59d7e0c089c0", "31d6cfe0d16ae931b73c59d7e0c089c0")),
            (None, ("", "")),
        ],
    )
    def test_split_hashes(self, hashes, expected):
        assert split_hashes(hashes) == expected

    def test_is_ip(self):
        assert is_ip("10.0.0.1")
        assert not is_ip("dc.corp.local")
        assert not is_ip(None)


class TestTarget:
    def test_default_ports(self):
        assert Target(None, ldap_scheme="ldap").ldap_port == 389
        assert Target(None).ldap_port == 636
        assert Target(None, ldap_port=3269).ldap_port == 3269

    def test_unknown_scheme(self):
        with pytest.raises(ArgumentError):
            Target(None, ldap_scheme="ftp")

    def test_validate(self):
        Target(None, username="alice", password="x", remote_name="dc").validate()
        Target(None, username="alice", nthash="31d6", target_ip="10.0.0.1").validate()

    @pytest.mark.parametrize(
        "arguments",
        [
            {"username": "alice", "password": "x"},
            {"password": "x", "remote_name": "dc"},
            {"username": "alice", "remote_name": "dc"},
        ],
    )
    def test_validate_rejects(self, arguments):
        """Missing host, user or secret is rejected before connecting."""
        with pytest.raises(ArgumentError):
            Target(None, **arguments).validate()

    def test_repr_hides_secrets(self):
        target = Target(None, username="alice", password="Passw0rd!", target_ip="10.0.0.1")
        assert "Passw0rd!" not in repr(target)
        assert "ldaps://10.0.0.1:636" in repr(target)
