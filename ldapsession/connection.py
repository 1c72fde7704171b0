# mypy: disable-error-code="attr-defined"
"""
A single directory-server connection.

:py:class:`Connection` owns one python-ldap ``LDAPObject`` for its whole
life: it is created by :py:meth:`Connection.open`, configured through the
library's option interface, and released by :py:meth:`Connection.close`.
Nothing outside the owning session touches the handle directly.
"""

import logging
from pathlib import Path
from typing import Any

from ldapsession import ldap

from .exceptions import ConnectFailed

logger = logging.getLogger(__name__)


def _check_file(path: str, label: str) -> None:
    """
    Make sure a TLS file named in our configuration exists and is a file.

    Args:
        path: the path to check
        label: what the file is, for the error message

    Raises:
        OSError: ``path`` does not exist or is not a regular file

    """
    filename = Path(path)
    if not filename.exists():
        msg = f"{label} file does not exist: {path}"
        raise OSError(msg)
    if not filename.is_file():
        msg = f"{label} file is not a file: {path}"
        raise OSError(msg)


class Connection:
    """
    Wraps one python-ldap connection handle.

    Use :py:meth:`open` rather than calling the constructor directly.

    Args:
        handle: an ``ldap.ldapobject.LDAPObject``
        url: the LDAP URL the handle was initialized with

    """

    def __init__(self, handle: Any, url: str) -> None:
        self._handle: Any = handle
        #: The LDAP URL we were opened with
        self.url: str = url

    @classmethod
    def open(  # noqa: PLR0912, PLR0913
        cls,
        url: str,
        protocol_version: int = ldap.VERSION3,
        timeout: int | None = None,
        sizelimit: int | None = None,
        network_timeout: float | None = None,
        follow_referrals: bool | None = None,
        tls_verify: str | None = None,
        tls_ca_certfile: str | None = None,
        tls_certfile: str | None = None,
        tls_keyfile: str | None = None,
        use_starttls: bool = False,
    ) -> "Connection":
        """
        Initialize a new connection handle for ``url``.

        Only :py:func:`ldap.initialize` and option calls happen here; the
        library does not talk to the server until the first operation, unless
        ``use_starttls`` asks us to negotiate TLS straight away.

        Options left as ``None`` keep the library defaults.

        Args:
            url: ``ldap://host[:port]`` or ``ldaps://host[:port]``

        Keyword Args:
            protocol_version: LDAP protocol version
            timeout: operation timeout in seconds, ``0`` for none
            sizelimit: maximum entries per search, ``0`` for the server default
            network_timeout: connect timeout in seconds
            follow_referrals: whether the library chases referrals itself
            tls_verify: ``"never"`` or ``"always"``
            tls_ca_certfile: path to a CA certificate bundle
            tls_certfile: path to a client certificate
            tls_keyfile: path to the client certificate's key
            use_starttls: issue a StartTLS extended operation after opening

        Raises:
            ConnectFailed: the library refused to initialize the handle or to
                set an option, or StartTLS failed
            ValueError: ``tls_verify`` is not one of the known values
            OSError: one of the TLS files is missing or not a file

        Returns:
            An open :py:class:`Connection`.

        """
        try:
            handle = ldap.initialize(url)
            handle.set_option(ldap.OPT_PROTOCOL_VERSION, protocol_version)
        except ldap.LDAPError as exc:
            logger.warning("connection.open.failed url=%s", url)
            raise ConnectFailed.from_ldap_error(exc) from exc
        connection = cls(handle, url)
        try:
            if timeout is not None:
                connection.timeout = timeout
            if sizelimit is not None:
                connection.sizelimit = sizelimit
            if network_timeout is not None:
                handle.set_option(ldap.OPT_NETWORK_TIMEOUT, float(network_timeout))
            if follow_referrals is not None:
                handle.set_option(ldap.OPT_REFERRALS, 1 if follow_referrals else 0)
            tls_configured = False
            if tls_verify is not None:
                if tls_verify == "never":
                    handle.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_NEVER)
                elif tls_verify == "always":
                    handle.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_DEMAND)
                else:
                    msg = f"Invalid tls_verify value: {tls_verify}"
                    raise ValueError(msg)
                tls_configured = True
            if tls_ca_certfile:
                _check_file(tls_ca_certfile, "CA Certificate")
                handle.set_option(ldap.OPT_X_TLS_CACERTFILE, tls_ca_certfile)
                tls_configured = True
            if tls_certfile:
                _check_file(tls_certfile, "TLS Certificate")
                handle.set_option(ldap.OPT_X_TLS_CERTFILE, tls_certfile)
                tls_configured = True
            if tls_keyfile:
                _check_file(tls_keyfile, "TLS Key")
                handle.set_option(ldap.OPT_X_TLS_KEYFILE, tls_keyfile)
                tls_configured = True
            if tls_configured:
                # The TLS options above only take effect in a fresh TLS context
                handle.set_option(ldap.OPT_X_TLS_NEWCTX, 0)
        except ldap.LDAPError as exc:
            connection.close()
            raise ConnectFailed.from_ldap_error(exc) from exc
        except (ValueError, OSError):
            connection.close()
            raise
        if use_starttls:
            try:
                handle.start_tls_s()
            except ldap.LDAPError as exc:
                connection.close()
                raise ConnectFailed.from_ldap_error(exc) from exc
        logger.debug("connection.open url=%s version=%s", url, protocol_version)
        return connection

    @property
    def handle(self) -> Any:
        """
        The underlying python-ldap connection object.

        Raises:
            ConnectFailed: the connection has been closed

        """
        if self._handle is None:
            msg = "Connection is closed"
            raise ConnectFailed(msg)
        return self._handle

    @property
    def closed(self) -> bool:
        return self._handle is None

    @property
    def timeout(self) -> int:
        """
        The operation timeout in seconds; ``0`` means no timeout.

        Reads and writes go straight to the library's ``OPT_TIMEOUT``.
        """
        value = self.handle.get_option(ldap.OPT_TIMEOUT)
        if value is None or value < 0:
            return 0
        return int(value)

    @timeout.setter
    def timeout(self, seconds: int) -> None:
        # python-ldap spells "no timeout" as -1
        self.handle.set_option(ldap.OPT_TIMEOUT, float(seconds) if seconds > 0 else -1)

    @property
    def sizelimit(self) -> int:
        """
        The maximum number of entries a search may return; ``0`` leaves it to
        the server.

        Reads and writes go straight to the library's ``OPT_SIZELIMIT``.
        """
        value = self.handle.get_option(ldap.OPT_SIZELIMIT)
        return int(value or 0)

    @sizelimit.setter
    def sizelimit(self, limit: int) -> None:
        self.handle.set_option(ldap.OPT_SIZELIMIT, int(limit))

    def close(self) -> None:
        """
        Unbind and release the handle.

        Safe to call more than once, and safe to call on a connection that was
        never bound.
        """
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        try:
            handle.unbind_s()
        except ldap.LDAPError as exc:
            # The handle is gone either way; the server may already have
            # dropped us.
            logger.debug("connection.close.unbind_failed url=%s error=%s", self.url, exc)
        logger.debug("connection.close url=%s", self.url)
