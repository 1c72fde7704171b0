# mypy: disable-error-code="attr-defined"
# type: ignore
"""
End to end scenarios using python-ldap-faker.

python-ldap-faker simulates a directory server behind ``ldap.initialize``, so
these exercise Session, Connection, authentication, search and mutations
together without a real server.
"""

import unittest
from unittest.mock import patch

from django.conf import settings
from ldap_faker.unittest import LDAPFakerMixin

from ldapsession.auth import Credentials
from ldapsession.exceptions import BindFailed, OperationFailed
from ldapsession.search import Scope
from ldapsession.session import Session

# Configure Django settings before anything reads them
if not settings.configured:
    settings.configure(
        LDAP_SERVERS={
            "default": {
                "url": "ldap://localhost:389",
                "user": "cn=admin,dc=example,dc=com",
                "password": "password",
                "use_starttls": False,
                "tls_verify": "never",
                "timeout": 15,
                "sizelimit": 1000,
                "follow_referrals": False,
            },
        }
    )

ADMIN = "cn=admin,dc=example,dc=com"
USERS = "ou=users,dc=example,dc=com"


class TestSessionWithFaker(LDAPFakerMixin, unittest.TestCase):

    ldap_modules = ["ldapsession"]

    @classmethod
    def setUpClass(cls):
        super().setUpClass()
        cls.test_objects = [
            (
                ADMIN,
                {
                    "cn": [b"admin"],
                    "userPassword": [b"password"],
                    "objectclass": [b"simpleSecurityObject", b"organizationalRole", b"top"],
                },
            ),
            (
                USERS,
                {"ou": [b"users"], "objectclass": [b"organizationalUnit", b"top"]},
            ),
            (
                "uid=alice,ou=users,dc=example,dc=com",
                {
                    "uid": [b"alice"],
                    "cn": [b"Alice Johnson"],
                    "sn": [b"Johnson"],
                    "mail": [b"alice@example.com", b"ajohnson@example.com"],
                    "userPassword": [b"password"],
                    "objectclass": [b"posixAccount", b"top"],
                },
            ),
            (
                "uid=bob,ou=users,dc=example,dc=com",
                {
                    "uid": [b"bob"],
                    "cn": [b"Bob Smith"],
                    "sn": [b"Smith"],
                    "userPassword": [b"password"],
                    "objectclass": [b"posixAccount", b"top"],
                },
            ),
        ]

    def setUp(self):
        super().setUp()
        self.settings_patcher = patch(
            "django.conf.settings.LDAP_SERVERS",
            {
                "default": {
                    "url": "ldap://localhost:389",
                    "user": ADMIN,
                    "password": "password",
                    "timeout": 15,
                    "sizelimit": 1000,
                    "follow_referrals": False,
                },
            },
        )
        self.settings_patcher.start()
        # Clear the fake directory before each test
        self.server_factory.default.raw_objects.clear()
        self.server_factory.default.objects.clear()
        for dn, attrs in self.test_objects:
            self.server_factory.default.register_object((dn, attrs))

    def tearDown(self):
        self.settings_patcher.stop()
        super().tearDown()

    def open_admin(self):
        session = Session.open(
            "ldap://localhost:389", Credentials.simple(ADMIN, "password")
        )
        self.addCleanup(session.close)
        return session

    def test_admin_bind(self):
        session = self.open_admin()
        self.assertTrue(session.bound)

    def test_wrong_password(self):
        with self.assertRaises(BindFailed) as cm:
            Session.open("ldap://localhost:389", Credentials.simple(ADMIN, "wrong"))
        self.assertEqual(cm.exception.message, "Invalid credentials")

    def test_subtree_search(self):
        session = self.open_admin()
        result_set = session.search(
            USERS, "(objectclass=posixAccount)", Scope.SUBTREE, ["uid", "mail"]
        )
        self.assertEqual(result_set.result.code, 0)
        self.assertEqual(
            sorted(entry.dn for entry in result_set.entries),
            [
                "uid=alice,ou=users,dc=example,dc=com",
                "uid=bob,ou=users,dc=example,dc=com",
            ],
        )
        alice = session.search_dict(
            "uid=alice,ou=users,dc=example,dc=com", attributes=["mail"]
        )
        self.assertEqual(
            alice["uid=alice,ou=users,dc=example,dc=com"]["mail"],
            ["alice@example.com", "ajohnson@example.com"],
        )

    def test_add_then_delete(self):
        session = self.open_admin()
        dn = "uid=snoozer,ou=users,dc=example,dc=com"
        session.add(
            dn,
            {
                "objectclass": ["posixAccount", "top"],
                "uid": ["snoozer"],
                "cn": ["Snoozer"],
            },
        )
        found = session.search_dict(USERS, "(uid=snoozer)", Scope.SUBTREE)
        self.assertIn(dn, found)
        session.delete(dn)
        found = session.search_dict(USERS, "(uid=snoozer)", Scope.SUBTREE)
        self.assertEqual(found, {})

    def test_modify(self):
        session = self.open_admin()
        dn = "uid=bob,ou=users,dc=example,dc=com"
        session.modify(dn, {"sn": ["Smithers"]})
        self.assertEqual(session.search_dict(dn, attributes=["sn"])[dn]["sn"], "Smithers")

    def test_delete_missing_entry(self):
        session = self.open_admin()
        with self.assertRaises(OperationFailed):
            session.delete("uid=nobody,ou=users,dc=example,dc=com")

    def test_async_add_then_delete(self):
        session = self.open_admin()
        dn = "uid=snoozer,ou=users,dc=example,dc=com"
        seen = []
        session.add_async(
            dn,
            {"objectclass": ["posixAccount", "top"], "uid": ["snoozer"]},
            completion=lambda result, error: seen.append(("add", error)),
        )
        session.delete_async(
            dn, completion=lambda result, error: seen.append(("delete", error))
        ).result(timeout=5)
        self.assertEqual(seen, [("add", None), ("delete", None)])

    def test_from_settings(self):
        session = Session.from_settings("default")
        self.addCleanup(session.close)
        self.assertTrue(session.bound)
        self.assertEqual(session.sizelimit, 1000)
