# mypy: disable-error-code="attr-defined"
"""
Turning a raw message chain into a :py:class:`~ldapsession.results.ResultSet`.

The search engine collects the messages python-ldap returns for one search
into a list of ``(msgtype, payload)`` pairs:

* ``RES_SEARCH_ENTRY``: payload is ``(dn, {attribute: [bytes, ...]})``
* ``RES_SEARCH_REFERENCE``: payload is ``(None, [uri, ...])``
* ``RES_SEARCH_RESULT``: payload is python-ldap's result dictionary
  (``result``, ``desc``, ``info``, ``matched`` and optionally ``referrals``)

:py:class:`MessageDecoder` walks that list once, in order, decoding every
string through the session's :py:class:`~ldapsession.transcoder.Transcoder`.
A node that cannot be parsed is replaced by an empty value object rather than
aborting the rest of the chain.
"""

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from ldapsession import ldap

from .results import Attribute, Entry, Node, OperationResult, Reference, ResultSet
from .transcoder import Transcoder
from .typing import RawMessage

logger = logging.getLogger(__name__)

ENTRY = ldap.RES_SEARCH_ENTRY
REFERENCE = ldap.RES_SEARCH_REFERENCE
RESULT = ldap.RES_SEARCH_RESULT


class MessageDecoder:
    """
    Decodes message chains.

    Keyword Args:
        transcoder: converts raw values to strings; a UTF-8 one by default

    """

    def __init__(self, transcoder: Transcoder | None = None) -> None:
        self.transcoder: Transcoder = transcoder or Transcoder()

    def iter_decode(self, chain: Iterable[RawMessage]) -> Iterator[Node]:
        """
        Yield one decoded node per message, in chain order.

        Args:
            chain: the raw ``(msgtype, payload)`` messages

        Yields:
            :py:class:`Entry`, :py:class:`Reference` or :py:class:`OperationResult`

        """
        for msgtype, payload in chain:
            if msgtype == ENTRY:
                yield self.decode_entry(payload)
            elif msgtype == REFERENCE:
                yield self.decode_reference(payload)
            elif msgtype == RESULT:
                yield self.decode_result(payload)
            else:
                logger.debug("decoder.skip msgtype=%s", msgtype)

    def decode(self, chain: Iterable[RawMessage]) -> ResultSet:
        return ResultSet.from_nodes(self.iter_decode(chain))

    def decode_entry(self, payload: Any) -> Entry:
        try:
            dn, attrs = payload
        except (TypeError, ValueError):
            logger.debug("decoder.entry.unreadable payload=%r", payload)
            return Entry()
        if dn is None or not isinstance(dn, str | bytes):
            logger.debug("decoder.entry.no_dn")
            return Entry()
        # Keep the server's attribute order, and merge repeated names
        values: dict[str, list[str]] = {}
        for name, raw_values in (attrs or {}).items():
            decoded = values.setdefault(self.transcoder.decode(name), [])
            for raw in raw_values or []:
                decoded.append(self.transcoder.decode(raw, len(raw)))
        return Entry(
            dn=self.transcoder.decode(dn),
            attributes=tuple(
                Attribute(name, tuple(vals)) for name, vals in values.items()
            ),
        )

    def decode_reference(self, payload: Any) -> Reference:
        # python-ldap hands references over as (None, [uri, ...])
        uris = payload
        if isinstance(payload, tuple) and payload and payload[0] is None:
            uris = payload[1] if len(payload) > 1 else []
        if isinstance(uris, str | bytes):
            uris = [uris]
        try:
            return Reference(tuple(self.transcoder.decode(uri) for uri in uris or []))
        except TypeError:
            logger.debug("decoder.reference.unreadable payload=%r", payload)
            return Reference()

    def decode_result(self, payload: Any) -> OperationResult:
        try:
            code = int(payload.get("result", 0))
            message = self.transcoder.decode(payload.get("info") or b"")
            matched = self.transcoder.decode(payload.get("matched") or b"")
            referrals = tuple(
                self.transcoder.decode(uri) for uri in payload.get("referrals") or []
            )
        except (AttributeError, TypeError, ValueError):
            logger.debug("decoder.result.unparseable payload=%r", payload)
            return OperationResult()
        return OperationResult(
            code=code, message=message, matched=matched, referrals=referrals
        )
