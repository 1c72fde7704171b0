# mypy: disable-error-code="attr-defined"
"""
Building, running and decoding searches.
"""

import enum
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from ldap_filter import Filter

from ldapsession import ldap

from .connection import Connection
from .controls import ServerSideSortControl, SortKey, SortOrder, sorting_string
from .decoder import ENTRY, REFERENCE, RESULT, MessageDecoder
from .exceptions import SearchFailed, ldap_error_details
from .results import ResultSet
from .typing import RawMessage

logger = logging.getLogger(__name__)

#: Matches every entry
DEFAULT_FILTER = "(objectclass=*)"

#: Sort keys, or an already serialized sort control string
SortSpec = str | Sequence[SortKey | tuple[str, SortOrder]] | None


class Scope(enum.IntEnum):
    """How far below the search base to look."""

    BASE = ldap.SCOPE_BASE
    SINGLE_LEVEL = ldap.SCOPE_ONELEVEL
    SUBTREE = ldap.SCOPE_SUBTREE
    #: the whole subtree, minus the base entry itself
    CHILDREN = ldap.SCOPE_SUBORDINATE


def filter_string(searchfilter: "str | Filter | None") -> str:
    """
    Render a search filter.

    Args:
        searchfilter: a filter string, an :py:class:`ldap_filter.Filter`, or
            ``None`` for :py:data:`DEFAULT_FILTER`

    Returns:
        The filter as a string.

    """
    if searchfilter is None or searchfilter == "":
        return DEFAULT_FILTER
    if isinstance(searchfilter, str):
        return searchfilter
    return searchfilter.to_string()


def build_sort_control(sort: SortSpec) -> ServerSideSortControl | None:
    """
    Build the server-side sort control for ``sort``.

    Args:
        sort: sort keys or a sort control string

    Raises:
        ValueError: the sort string contains an empty key

    Returns:
        The control, or ``None`` if there is nothing to sort by.

    """
    if not sort:
        return None
    control_string = sort if isinstance(sort, str) else sorting_string(sort)
    if not control_string.strip():
        return None
    return ServerSideSortControl.from_sorting_string(control_string)


class SearchEngine:
    """
    Runs searches over one connection and decodes their message chains.

    Args:
        connection: the connection to search through
        decoder: turns message chains into result sets

    """

    def __init__(self, connection: Connection, decoder: MessageDecoder) -> None:
        self.connection = connection
        self.decoder = decoder

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

        A non-zero status in the server's final result does not raise: it is
        decoded into :py:attr:`ResultSet.result`, alongside whatever entries
        arrived before it.

        Keyword Args:
            base: the search base; ``""`` is the server's default naming context
            searchfilter: the search filter
            scope: how far below ``base`` to look
            attributes: an attribute name, or the names to return; all of them
                if empty
            sort: sort keys for a server-side sort control

        Raises:
            SearchFailed: the search could not be sent, or no results came back

        Returns:
            The decoded :py:class:`ResultSet`.

        """
        filterstr = filter_string(searchfilter)
        scope = Scope(scope)
        try:
            control = build_sort_control(sort)
        except ValueError as exc:
            raise SearchFailed(str(exc)) from exc
        if isinstance(attributes, str):
            attributes = [attributes]
        # None asks for every attribute; [] would ask for none at all
        attrlist = list(attributes) if attributes else None
        handle = self.connection.handle
        try:
            msgid = handle.search_ext(
                base,
                int(scope),
                filterstr=filterstr,
                attrlist=attrlist,
                serverctrls=[control] if control else None,
            )
        except ldap.LDAPError as exc:
            error = SearchFailed.from_ldap_error(exc)
            logger.warning(
                "search.failed base=%s filter=%s code=%s", base, filterstr, error.code
            )
            raise error from exc
        chain = self._collect(handle, msgid)
        result_set = self.decoder.decode(chain)
        logger.debug(
            "search.done base=%s filter=%s scope=%s entries=%d references=%d",
            base,
            filterstr,
            scope.name,
            len(result_set.entries),
            len(result_set.references),
        )
        return result_set

    def _collect(self, handle: Any, msgid: int) -> list[RawMessage]:
        """
        Read every message for ``msgid`` off the connection.

        Args:
            handle: the python-ldap connection object
            msgid: the id returned by ``search_ext``

        Raises:
            SearchFailed: the library failed before the server's final result
                arrived

        Returns:
            The raw message chain, ending with the final result.

        """
        chain: list[RawMessage] = []
        while True:
            try:
                rtype, rdata, _, _ = handle.result3(msgid, all=0)
            except ldap.LDAPError as exc:
                details = ldap_error_details(exc)
                if details.get("msgtype") == RESULT:
                    # The server answered; its status belongs in the result set
                    chain.append((RESULT, details))
                    return chain
                raise SearchFailed.from_ldap_error(exc) from exc
            if rtype is None:
                msg = "Timed out waiting for search results"
                raise SearchFailed(msg)
            for dn, payload in rdata or []:
                if isinstance(payload, dict):
                    chain.append((ENTRY, (dn, payload)))
                else:
                    chain.append((REFERENCE, (dn, payload)))
            if rtype == RESULT:
                chain.append((RESULT, {"result": 0, "desc": "Success"}))
                return chain
