# mypy: disable-error-code="attr-defined"
"""
The public face of the engine: one :py:class:`Session` per directory
connection.

Every operation comes in two flavours.  The blocking one returns its result
or raises; the ``*_async`` one returns a :py:class:`concurrent.futures.Future`
straight away and, if given a ``completion`` callable, calls
``completion(result, error)`` when the operation finishes.  Both flavours run
on the session's :py:class:`~ldapsession.worker.SerialWorker`, so the
operations of one session never overlap and run in the order they were
requested.

Example::

    with Session.open("ldap://localhost", Credentials.simple(dn, password)) as session:
        people = session.search_dict(
            "ou=people,dc=example,dc=com",
            "(objectclass=person)",
            scope=Scope.SUBTREE,
            attributes=["cn", "mail"],
            sort=[SortKey("cn")],
        )
"""

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import Future
from typing import Any

from ldap_filter import Filter

from ldapsession import ldap

from .auth import Credentials, authenticate
from .conf import connection_options, credentials_from_config, get_server_config
from .connection import Connection
from .decoder import MessageDecoder
from .exceptions import BindFailed, ConnectFailed
from .mutations import ModOp, MutationEngine
from .results import ResultSet
from .search import DEFAULT_FILTER, Scope, SearchEngine, SortSpec
from .transcoder import Transcoder
from .typing import AttributeMap, Completion, DictView
from .worker import SerialWorker

logger = logging.getLogger(__name__)


class Session:
    """
    An LDAP session: one connection, its authentication state and the worker
    that serializes its operations.

    Use :py:meth:`open` or :py:meth:`from_settings` rather than calling the
    constructor directly.

    Args:
        connection: the connection to run operations over

    Keyword Args:
        transcoder: converts values between UTF-8 and the server's codepage

    """

    def __init__(self, connection: Connection, transcoder: Transcoder | None = None) -> None:
        self.connection = connection
        self.transcoder: Transcoder = transcoder or Transcoder()
        self.decoder = MessageDecoder(self.transcoder)
        self.searcher = SearchEngine(connection, self.decoder)
        self.mutator = MutationEngine(connection, self.transcoder)
        self.worker = SerialWorker()
        #: Whether the last bind on this session succeeded
        self.bound: bool = False
        self._closed: bool = False

    @classmethod
    def open(
        cls,
        url: str = "ldaps://localhost",
        credentials: Credentials | None = None,
        codepage: str | None = None,
        protocol_version: int = ldap.VERSION3,
        **options: Any,
    ) -> "Session":
        """
        Open a session, binding immediately if ``credentials`` are given.

        Keyword Args:
            url: ``ldap://host[:port]`` or ``ldaps://host[:port]``
            credentials: who to bind as; ``None`` leaves the session anonymous
            codepage: the server's character set, if it is not UTF-8
            protocol_version: LDAP protocol version
            **options: passed on to :py:meth:`Connection.open`

        Raises:
            EncodingFailed: ``codepage`` names an unknown character set
            ConnectFailed: the connection could not be initialized
            BindFailed: the bind was refused; the connection is closed again

        Returns:
            The open session.

        """
        transcoder = Transcoder(codepage)
        connection = Connection.open(url, protocol_version=protocol_version, **options)
        session = cls(connection, transcoder)
        if credentials is not None:
            try:
                session.login(credentials)
            except BindFailed:
                session.close()
                raise
        logger.info("session.open url=%s bound=%s", url, session.bound)
        return session

    @classmethod
    def from_settings(cls, name: str = "default") -> "Session":
        """
        Open a session to the server ``settings.LDAP_SERVERS[name]``.

        Raises:
            ImproperlyConfigured: the server definition is missing or invalid

        Returns:
            The open session.

        """
        config = get_server_config(name)
        return cls.open(
            config["url"],
            credentials=credentials_from_config(config),
            codepage=config.get("codepage"),
            **connection_options(config),
        )

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def _call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """
        Run ``func`` on the worker and wait for it.

        When we are already on the worker thread (inside a completion handler)
        ``func`` runs directly; waiting on the worker there would never return.
        """
        if self._closed:
            msg = "Session is closed"
            raise ConnectFailed(msg)
        if self.worker.in_worker():
            return func(*args, **kwargs)
        return self._submit(func, *args, **kwargs).result()

    def _submit(
        self,
        func: Callable[..., Any],
        *args: Any,
        completion: Completion | None = None,
        **kwargs: Any,
    ) -> Future:
        if self._closed:
            msg = "Session is closed"
            raise ConnectFailed(msg)
        try:
            return self.worker.submit(func, *args, completion=completion, **kwargs)
        except RuntimeError as exc:
            # close() shut the worker down after the check above
            msg = "Session is closed"
            raise ConnectFailed(msg) from exc

    # ----------------------
    # Authentication
    # ----------------------

    def _login(self, credentials: Credentials) -> bool:
        self.bound = False
        authenticate(self.connection, credentials)
        self.bound = True
        return True

    def login(self, credentials: Credentials) -> bool:
        """
        Bind with ``credentials``: a simple bind or a SASL interactive bind,
        depending on their mechanism.

        A failed bind leaves the session unauthenticated but open; nothing is
        retried.

        Raises:
            BindFailed: the mechanism is unsupported or the server refused

        Returns:
            ``True``.

        """
        return self._call(self._login, credentials)

    def login_async(
        self, credentials: Credentials, completion: Completion | None = None
    ) -> Future:
        return self._submit(self._login, credentials, completion=completion)

    def bind_simple(self, dn: str, password: str) -> bool:
        """
        Simple bind as ``dn``.

        Raises:
            BindFailed: the server refused the bind

        """
        return self.login(Credentials.simple(dn, password))

    # ----------------------
    # Searching
    # ----------------------

    def search(
        self,
        base: str = "",
        searchfilter: "str | Filter | None" = DEFAULT_FILTER,
        scope: Scope | int = Scope.BASE,
        attributes: Iterable[str] | None = None,
        sort: SortSpec = None,
    ) -> ResultSet:
        """
        Search the directory.

        Keyword Args:
            base: the search base
            searchfilter: a filter string or :py:class:`ldap_filter.Filter`
            scope: how far below ``base`` to look
            attributes: an attribute name, or the names to return; all of them
                if empty
            sort: sort keys for a server-side sort control

        Raises:
            SearchFailed: the search could not be sent or returned nothing

        Returns:
            The decoded entries, references and final result.

        """
        return self._call(
            self.searcher.search, base, searchfilter, scope, attributes, sort
        )

    def search_dict(
        self,
        base: str = "",
        searchfilter: "str | Filter | None" = DEFAULT_FILTER,
        scope: Scope | int = Scope.BASE,
        attributes: Iterable[str] | None = None,
        sort: SortSpec = None,
    ) -> DictView:
        """
        Like :py:meth:`search`, but return ``{dn: {attribute: value}}``
        directly.
        """
        return self.search(base, searchfilter, scope, attributes, sort).as_dict()

    def search_async(  # noqa: PLR0913
        self,
        base: str = "",
        searchfilter: "str | Filter | None" = DEFAULT_FILTER,
        scope: Scope | int = Scope.BASE,
        attributes: Iterable[str] | None = None,
        sort: SortSpec = None,
        completion: Completion | None = None,
    ) -> Future:
        return self._submit(
            self.searcher.search,
            base,
            searchfilter,
            scope,
            attributes,
            sort,
            completion=completion,
        )

    # ----------------------
    # Mutations
    # ----------------------

    def add(self, dn: str, attributes: AttributeMap) -> None:
        """
        Create the entry ``dn``.

        Raises:
            OperationFailed: the server refused the add

        """
        self._call(self.mutator.add, dn, attributes)

    def add_async(
        self, dn: str, attributes: AttributeMap, completion: Completion | None = None
    ) -> Future:
        return self._submit(self.mutator.add, dn, attributes, completion=completion)

    def modify(self, dn: str, attributes: AttributeMap, op: ModOp = ModOp.REPLACE) -> None:
        """
        Change attributes of ``dn`` in one request.

        Raises:
            OperationFailed: the server refused the modification

        """
        self._call(self.mutator.modify, dn, attributes, op)

    def modify_async(
        self,
        dn: str,
        attributes: AttributeMap,
        op: ModOp = ModOp.REPLACE,
        completion: Completion | None = None,
    ) -> Future:
        return self._submit(
            self.mutator.modify, dn, attributes, op, completion=completion
        )

    def delete(self, dn: str) -> None:
        """
        Delete the entry ``dn``.

        Raises:
            OperationFailed: the server refused the delete

        """
        self._call(self.mutator.delete, dn)

    def delete_async(self, dn: str, completion: Completion | None = None) -> Future:
        return self._submit(self.mutator.delete, dn, completion=completion)

    def rename(self, dn: str, new_dn: str) -> None:
        """
        Rename ``dn`` to ``new_dn``.

        Raises:
            OperationFailed: the server refused the rename

        """
        self._call(self.mutator.rename, dn, new_dn)

    def rename_async(
        self, dn: str, new_dn: str, completion: Completion | None = None
    ) -> Future:
        return self._submit(self.mutator.rename, dn, new_dn, completion=completion)

    # ----------------------
    # Options and teardown
    # ----------------------

    @property
    def timeout(self) -> int:
        """Operation timeout in seconds; ``0`` means wait forever."""
        return self.connection.timeout

    @timeout.setter
    def timeout(self, seconds: int) -> None:
        self.connection.timeout = seconds

    @property
    def sizelimit(self) -> int:
        """Maximum entries per search; ``0`` means the server's limit."""
        return self.connection.sizelimit

    @sizelimit.setter
    def sizelimit(self, limit: int) -> None:
        self.connection.sizelimit = limit

    def close(self) -> None:
        """
        Finish the queued operations, then unbind and release the connection.

        Closing twice is harmless.
        """
        if self._closed:
            return
        self._closed = True
        # From a completion handler the worker is busy running us
        self.worker.shutdown(wait=not self.worker.in_worker())
        self.connection.close()
        self.bound = False
        logger.info("session.close url=%s", self.connection.url)
