# mypy: disable-error-code="attr-defined"
"""
Adding, modifying, deleting and renaming entries.
"""

import enum
import logging
from dataclasses import dataclass

from ldapsession import ldap

from .connection import Connection
from .exceptions import OperationFailed
from .transcoder import Transcoder
from .typing import AddModlist, AttributeMap, ModifyModlist

logger = logging.getLogger(__name__)


class ModOp(enum.IntEnum):
    """What a :py:class:`Modification` does to its attribute."""

    ADD = ldap.MOD_ADD
    DELETE = ldap.MOD_DELETE
    REPLACE = ldap.MOD_REPLACE


@dataclass(frozen=True)
class Modification:
    """
    One attribute change: an operation, an attribute name and its values,
    already encoded for the server.
    """

    op: ModOp
    name: str
    values: tuple[bytes, ...] = ()

    def as_add(self) -> tuple[str, list[bytes]]:
        return (self.name, list(self.values))

    def as_modify(self) -> tuple[int, str, list[bytes] | None]:
        # A DELETE without values removes the whole attribute
        if self.op is ModOp.DELETE and not self.values:
            return (int(self.op), self.name, None)
        return (int(self.op), self.name, list(self.values))


class Modlist:
    """
    Builds python-ldap modlists from ``{attribute: [value, ...]}`` maps.

    Keyword Args:
        transcoder: encodes each value for the server

    """

    def __init__(self, transcoder: Transcoder | None = None) -> None:
        self.transcoder: Transcoder = transcoder or Transcoder()

    def modifications(
        self, attributes: AttributeMap, op: ModOp = ModOp.REPLACE
    ) -> list[Modification]:
        """
        Build one :py:class:`Modification` per attribute.

        Args:
            attributes: attribute names mapped to their values, in order

        Keyword Args:
            op: the operation for every attribute

        Raises:
            EncodingFailed: a value cannot be encoded in the server's codepage

        Returns:
            The modifications.

        """
        modifications = []
        for name, values in attributes.items():
            if isinstance(values, str | bytes):
                values = [values]
            modifications.append(
                Modification(
                    op, name, tuple(self.transcoder.encode(value) for value in values)
                )
            )
        return modifications

    def add(self, attributes: AttributeMap) -> AddModlist:
        return [m.as_add() for m in self.modifications(attributes, ModOp.ADD)]

    def modify(self, attributes: AttributeMap, op: ModOp = ModOp.REPLACE) -> ModifyModlist:
        return [m.as_modify() for m in self.modifications(attributes, op)]


class MutationEngine:
    """
    Sends add, modify, delete and rename requests over one connection.

    Args:
        connection: the connection to write through

    Keyword Args:
        transcoder: encodes attribute values for the server

    """

    def __init__(self, connection: Connection, transcoder: Transcoder | None = None) -> None:
        self.connection = connection
        self.modlist = Modlist(transcoder)

    def _fail(self, action: str, dn: str, exc: BaseException) -> OperationFailed:
        error = OperationFailed.from_ldap_error(exc)
        logger.warning("mutation.%s.failed dn=%s code=%s", action, dn, error.code)
        return error

    def add(self, dn: str, attributes: AttributeMap) -> None:
        """
        Create the entry ``dn``.

        Args:
            dn: the new entry's DN
            attributes: its attributes, ``objectClass`` included

        Raises:
            OperationFailed: the server refused the add

        """
        modlist = self.modlist.add(attributes)
        try:
            self.connection.handle.add_s(dn, modlist)
        except ldap.LDAPError as exc:
            raise self._fail("add", dn, exc) from exc
        logger.info("mutation.add dn=%s attributes=%d", dn, len(modlist))

    def modify(
        self, dn: str, attributes: AttributeMap, op: ModOp = ModOp.REPLACE
    ) -> None:
        """
        Change attributes of the entry ``dn`` in a single request.

        Args:
            dn: the entry to change
            attributes: the attributes to change and their values.  With
                :py:attr:`ModOp.DELETE`, an empty value list removes the whole
                attribute.

        Keyword Args:
            op: :py:attr:`ModOp.ADD`, :py:attr:`ModOp.REPLACE` or
                :py:attr:`ModOp.DELETE`

        Raises:
            OperationFailed: the server refused the modification

        """
        modlist = self.modlist.modify(attributes, ModOp(op))
        if not modlist:
            logger.debug("mutation.modify.no-changes dn=%s", dn)
            return
        try:
            self.connection.handle.modify_s(dn, modlist)
        except ldap.LDAPError as exc:
            raise self._fail("modify", dn, exc) from exc
        logger.info("mutation.modify dn=%s op=%s attributes=%d", dn, ModOp(op).name, len(modlist))

    def delete(self, dn: str) -> None:
        """
        Delete the entry ``dn``.

        Raises:
            OperationFailed: the server refused the delete

        """
        try:
            self.connection.handle.delete_s(dn)
        except ldap.LDAPError as exc:
            raise self._fail("delete", dn, exc) from exc
        logger.info("mutation.delete dn=%s", dn)

    def rename(self, dn: str, new_dn: str) -> None:
        """
        Rename ``dn`` to ``new_dn``, moving it if the parent changes.

        Args:
            dn: the entry's current DN
            new_dn: the DN it should have

        Raises:
            OperationFailed: either DN is malformed, or the server refused
                the rename

        """
        try:
            new_rdns = ldap.dn.str2dn(new_dn)
            old_parent = ldap.dn.dn2str(ldap.dn.str2dn(dn)[1:])
        except ldap.DECODING_ERROR as exc:
            raise self._fail("rename", dn, exc) from exc
        newrdn = ldap.dn.dn2str(new_rdns[:1])
        new_parent = ldap.dn.dn2str(new_rdns[1:])
        newsuperior = None
        if old_parent.lower() != new_parent.lower():
            newsuperior = new_parent
        try:
            self.connection.handle.rename_s(dn, newrdn, newsuperior)
        except ldap.LDAPError as exc:
            raise self._fail("rename", dn, exc) from exc
        logger.info("mutation.rename dn=%s new_dn=%s", dn, new_dn)
