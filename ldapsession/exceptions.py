"""
Exceptions raised by the LDAP session engine.

Every failing operation surfaces one of the classes below.  The message is the
canonical English description python-ldap attaches to the protocol status
(the ``desc`` key of an :py:class:`ldap.LDAPError`), so callers never have to
interpret raw numeric codes themselves.
"""

from typing import Any


def ldap_error_details(exc: BaseException) -> dict[str, Any]:
    """
    Return the detail dictionary python-ldap attaches to its exceptions.

    Args:
        exc: an exception raised by python-ldap

    Returns:
        The detail dictionary, or an empty one if ``exc`` carries none.

    """
    if exc.args and isinstance(exc.args[0], dict):
        return exc.args[0]
    return {}


class LdapSessionError(Exception):
    """
    Base class for everything the session engine raises.

    Args:
        message: human readable description of the failure

    Keyword Args:
        code: the LDAP result code, if the failure came from the library
        info: the diagnostic message sent by the server, if any

    """

    def __init__(self, message: str, code: int | None = None, info: str = "") -> None:
        super().__init__(message)
        #: Human readable description of the failure
        self.message: str = message
        #: The LDAP result code, or ``None`` for failures detected locally
        self.code: int | None = code
        #: The server's diagnostic message
        self.info: str = info

    @classmethod
    def from_ldap_error(cls, exc: BaseException) -> "LdapSessionError":
        """
        Translate an :py:class:`ldap.LDAPError` into one of our exceptions.

        Args:
            exc: the exception raised by python-ldap

        Returns:
            An instance of ``cls`` carrying the library's description, code and
            diagnostic message.

        """
        details = ldap_error_details(exc)
        message = details.get("desc") or str(exc) or exc.__class__.__name__
        info = details.get("info", "")
        if isinstance(info, bytes):
            info = info.decode("utf-8", "replace")
        return cls(message, code=details.get("result"), info=str(info))

    def __str__(self) -> str:
        if self.info:
            return f"{self.message}: {self.info}"
        return self.message


class ConnectFailed(LdapSessionError):
    """The connection could not be initialized, or is already closed."""


class BindFailed(LdapSessionError):
    """A simple or SASL bind was refused, or the mechanism is unsupported."""


class SearchFailed(LdapSessionError):
    """A search could not be submitted or returned no message chain."""


class OperationFailed(LdapSessionError):
    """An add, modify, delete or rename was refused by the server."""


class EncodingFailed(LdapSessionError):
    """A codepage converter could not be built or could not encode a value."""
