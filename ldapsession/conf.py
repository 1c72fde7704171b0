"""
Reading server definitions from Django settings.

Servers are described in ``settings.LDAP_SERVERS``, keyed by name::

    LDAP_SERVERS = {
        "default": {
            "url": "ldap://localhost:389",
            "user": "cn=admin,dc=example,dc=com",
            "password": "password",
            "codepage": None,
            "timeout": 15,
            "sizelimit": 1000,
            "follow_referrals": False,
            "use_starttls": False,
            "tls_verify": "never",
        },
        "kerberos": {
            "url": "ldaps://ad.example.com",
            "sasl": {"mechanism": "GSSAPI", "authname": "someone"},
        },
    }

A server uses either ``user``/``password`` for a simple bind, or a ``sasl``
dictionary (``mechanism``, ``authname``, ``user``, ``password``, ``realm``)
for a SASL interactive bind.  With neither, the session stays anonymous.
"""

from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .auth import Credentials

#: Keys of a server definition that are passed to
#: :py:meth:`ldapsession.connection.Connection.open`
CONNECTION_OPTIONS = (
    "protocol_version",
    "timeout",
    "sizelimit",
    "network_timeout",
    "follow_referrals",
    "tls_verify",
    "tls_ca_certfile",
    "tls_certfile",
    "tls_keyfile",
    "use_starttls",
)


def get_server_config(name: str = "default") -> dict[str, Any]:
    """
    Look up server ``name`` in ``settings.LDAP_SERVERS``.

    Args:
        name: the server's key

    Raises:
        ImproperlyConfigured: the setting, the key, or its ``url`` is missing

    Returns:
        The server definition.

    """
    try:
        servers = settings.LDAP_SERVERS
    except AttributeError as e:
        msg = "settings.LDAP_SERVERS does not exist!"
        raise ImproperlyConfigured(msg) from e
    try:
        config = servers[name]
    except KeyError as e:
        msg = f"settings.LDAP_SERVERS has no key '{name}'"
        raise ImproperlyConfigured(msg) from e
    if not config.get("url"):
        msg = f"settings.LDAP_SERVERS['{name}'] has no 'url' key"
        raise ImproperlyConfigured(msg)
    return config


def connection_options(config: dict[str, Any]) -> dict[str, Any]:
    return {key: config[key] for key in CONNECTION_OPTIONS if config.get(key) is not None}


def credentials_from_config(config: dict[str, Any]) -> Credentials | None:
    """
    Build the :py:class:`~ldapsession.auth.Credentials` a server definition
    describes.

    Args:
        config: a server definition from ``settings.LDAP_SERVERS``

    Raises:
        ImproperlyConfigured: ``sasl`` is present but is not a dictionary

    Returns:
        The credentials, or ``None`` for an anonymous session.

    """
    if "sasl" in config:
        sasl = config["sasl"]
        if not isinstance(sasl, dict):
            msg = "The 'sasl' key of an LDAP server definition must be a dict"
            raise ImproperlyConfigured(msg)
        return Credentials.sasl(
            authname=sasl.get("authname", ""),
            user=sasl.get("user", ""),
            password=sasl.get("password", ""),
            realm=sasl.get("realm", ""),
            mechanism=sasl.get("mechanism", "GSSAPI"),
            binddn=config.get("user") or "",
        )
    if config.get("user"):
        return Credentials.simple(config["user"], config.get("password") or "")
    return None
