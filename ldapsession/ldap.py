# Every module in this package reaches python-ldap through this shim so the
# tests can swap ``ldapsession.ldap.initialize`` for python-ldap-faker's
# version without touching the real ``ldap`` module.
import ldap
import ldap.dn
import ldap.sasl
from ldap import *  # noqa: F403
from ldap import dn, sasl  # noqa: F401

__version__ = ldap.__version__
