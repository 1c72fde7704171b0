"""
Tests for reading server definitions from Django settings.
"""

import unittest
from types import SimpleNamespace
from unittest.mock import patch

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from ldapsession.auth import Mechanism
from ldapsession.conf import (
    connection_options,
    credentials_from_config,
    get_server_config,
)

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


SERVERS = {
    "simple": {
        "url": "ldap://localhost:389",
        "user": "cn=admin,dc=example,dc=com",
        "password": "password",
        "timeout": 15,
        "sizelimit": 1000,
        "follow_referrals": False,
        "tls_ca_certfile": None,
        "codepage": "gb2312",
    },
    "kerberos": {
        "url": "ldaps://ad.example.com",
        "sasl": {"mechanism": "GSS-SPNEGO", "authname": "someone", "realm": "EXAMPLE.COM"},
    },
    "anonymous": {"url": "ldap://localhost:389"},
    "broken_sasl": {"url": "ldap://localhost:389", "sasl": "GSSAPI"},
    "no_url": {"user": "cn=admin,dc=example,dc=com"},
}


class TestGetServerConfig(unittest.TestCase):

    def setUp(self):
        patcher = patch("django.conf.settings.LDAP_SERVERS", SERVERS)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_lookup(self):
        self.assertEqual(get_server_config("simple")["url"], "ldap://localhost:389")

    def test_missing_key(self):
        with self.assertRaises(ImproperlyConfigured):
            get_server_config("nowhere")

    def test_missing_url(self):
        with self.assertRaises(ImproperlyConfigured):
            get_server_config("no_url")

    def test_missing_setting(self):
        with patch("ldapsession.conf.settings", SimpleNamespace()):
            with self.assertRaises(ImproperlyConfigured):
                get_server_config("simple")


class TestCredentialsFromConfig(unittest.TestCase):

    def test_simple(self):
        credentials = credentials_from_config(SERVERS["simple"])
        self.assertIs(credentials.mechanism, Mechanism.SIMPLE)
        self.assertEqual(credentials.binddn, "cn=admin,dc=example,dc=com")
        self.assertEqual(credentials.password, "password")

    def test_sasl(self):
        credentials = credentials_from_config(SERVERS["kerberos"])
        self.assertIs(credentials.mechanism, Mechanism.SPNEGO)
        self.assertEqual(credentials.authname, "someone")
        self.assertEqual(credentials.realm, "EXAMPLE.COM")

    def test_anonymous(self):
        self.assertIsNone(credentials_from_config(SERVERS["anonymous"]))

    def test_sasl_must_be_a_dict(self):
        with self.assertRaises(ImproperlyConfigured):
            credentials_from_config(SERVERS["broken_sasl"])


class TestConnectionOptions(unittest.TestCase):

    def test_only_set_options_are_passed(self):
        self.assertEqual(
            connection_options(SERVERS["simple"]),
            {"timeout": 15, "sizelimit": 1000, "follow_referrals": False},
        )
