"""
Tests for Connection, with ldap.initialize patched out.
"""

import unittest
from unittest.mock import Mock, call, patch

import ldap

from ldapsession.connection import Connection
from ldapsession.exceptions import ConnectFailed


class TestConnectionOpen(unittest.TestCase):

    def setUp(self):
        self.handle = Mock()
        patcher = patch("ldapsession.ldap.initialize", return_value=self.handle)
        self.initialize = patcher.start()
        self.addCleanup(patcher.stop)

    def test_open(self):
        connection = Connection.open("ldap://localhost:389")
        self.initialize.assert_called_once_with("ldap://localhost:389")
        self.handle.set_option.assert_called_once_with(ldap.OPT_PROTOCOL_VERSION, 3)
        self.assertIs(connection.handle, self.handle)
        self.assertFalse(connection.closed)

    def test_options(self):
        Connection.open(
            "ldap://localhost:389",
            timeout=15,
            sizelimit=1000,
            follow_referrals=False,
            tls_verify="never",
        )
        self.handle.set_option.assert_has_calls(
            [
                call(ldap.OPT_TIMEOUT, 15.0),
                call(ldap.OPT_SIZELIMIT, 1000),
                call(ldap.OPT_REFERRALS, 0),
                call(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_NEVER),
                call(ldap.OPT_X_TLS_NEWCTX, 0),
            ]
        )

    def test_zero_timeout_means_none(self):
        Connection.open("ldap://localhost:389", timeout=0)
        self.handle.set_option.assert_any_call(ldap.OPT_TIMEOUT, -1)

    def test_initialize_failure(self):
        self.initialize.side_effect = ldap.LDAPError(
            {"result": -1, "desc": "Bad parameter to an ldap routine"}
        )
        with self.assertRaises(ConnectFailed) as cm:
            Connection.open("bogus://")
        self.assertEqual(cm.exception.message, "Bad parameter to an ldap routine")

    def test_bad_tls_verify(self):
        with self.assertRaises(ValueError):
            Connection.open("ldaps://localhost", tls_verify="sometimes")
        self.handle.unbind_s.assert_called_once_with()

    def test_missing_tls_file(self):
        with self.assertRaises(OSError):
            Connection.open("ldaps://localhost", tls_ca_certfile="/no/such/ca.pem")
        self.handle.unbind_s.assert_called_once_with()

    def test_refused_option_closes(self):
        self.handle.set_option.side_effect = [
            None,
            ldap.PARAM_ERROR({"result": -9, "desc": "Bad parameter to an ldap routine"}),
        ]
        with self.assertRaises(ConnectFailed):
            Connection.open("ldap://localhost", timeout=15)
        self.handle.unbind_s.assert_called_once_with()

    def test_starttls_failure_closes(self):
        self.handle.start_tls_s.side_effect = ldap.CONNECT_ERROR(
            {"result": -11, "desc": "Connect error"}
        )
        with self.assertRaises(ConnectFailed):
            Connection.open("ldap://localhost", use_starttls=True)
        self.handle.unbind_s.assert_called_once_with()


class TestConnection(unittest.TestCase):

    def setUp(self):
        self.handle = Mock()
        self.connection = Connection(self.handle, "ldap://localhost:389")

    def test_timeout(self):
        self.handle.get_option.return_value = -1
        self.assertEqual(self.connection.timeout, 0)
        self.handle.get_option.return_value = 30.0
        self.assertEqual(self.connection.timeout, 30)

    def test_sizelimit(self):
        self.connection.sizelimit = 500
        self.handle.set_option.assert_called_once_with(ldap.OPT_SIZELIMIT, 500)
        self.handle.get_option.return_value = 500
        self.assertEqual(self.connection.sizelimit, 500)

    def test_close_is_idempotent(self):
        self.connection.close()
        self.connection.close()
        self.handle.unbind_s.assert_called_once_with()
        self.assertTrue(self.connection.closed)

    def test_closed_handle(self):
        self.connection.close()
        with self.assertRaises(ConnectFailed):
            self.connection.handle

    def test_close_ignores_unbind_failure(self):
        self.handle.unbind_s.side_effect = ldap.SERVER_DOWN(
            {"result": -1, "desc": "Can't contact LDAP server"}
        )
        self.connection.close()
        self.assertTrue(self.connection.closed)
