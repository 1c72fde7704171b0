"""
Server-side sorting (RFC 2891).

Sort keys are written the way OpenLDAP's ``ldap_create_sort_keylist`` reads
them: a space separated list of ``[-]attribute[:orderingRule]`` tokens, where
a leading ``-`` means descending.  :py:func:`sorting_string` produces that
string from :py:class:`SortKey` values, and :py:class:`ServerSideSortControl`
turns it into the BER-encoded request control.
"""

import enum
from collections.abc import Iterable
from typing import ClassVar, NamedTuple

from ldap.controls import LDAPControl
from pyasn1.codec.ber import encoder  # type: ignore[import]
from pyasn1.type import namedtype, tag, univ  # type: ignore[import]


class SortOrder(enum.Enum):
    ASC = "asc"
    DESC = "desc"


class SortKey(NamedTuple):
    """
    One sort key: an attribute name and a direction.

    Plain ``(field, order)`` tuples are accepted wherever a :py:class:`SortKey`
    is.
    """

    field: str
    order: SortOrder = SortOrder.ASC
    #: optional ordering rule OID or name, e.g. ``"caseIgnoreOrderingMatch"``
    ordering_rule: str | None = None

    @property
    def token(self) -> str:
        token = self.field if self.order is SortOrder.ASC else f"-{self.field}"
        if self.ordering_rule:
            token = f"{token}:{self.ordering_rule}"
        return token

    @classmethod
    def parse(cls, token: str) -> "SortKey":
        """
        Parse one ``[-]attribute[:orderingRule]`` token.

        Args:
            token: the token to parse

        Raises:
            ValueError: the token names no attribute

        Returns:
            The parsed :py:class:`SortKey`.

        """
        order = SortOrder.ASC
        if token.startswith("-"):
            order = SortOrder.DESC
            token = token[1:]
        field, _, rule = token.partition(":")
        if not field:
            msg = f"Sort key names no attribute: {token!r}"
            raise ValueError(msg)
        return cls(field, order, rule or None)


def sorting_string(keys: Iterable[SortKey | tuple[str, SortOrder]] = ()) -> str:
    """
    Serialize sort keys into a sort control string.

    Example:
        >>> sorting_string([("displayName", SortOrder.DESC), ("initials", SortOrder.ASC)])
        '-displayName initials'

    Args:
        keys: the sort keys, most significant first

    Returns:
        The space separated control string; empty if there are no keys.

    """
    return " ".join(SortKey(*key).token for key in keys)


def parse_sorting_string(value: str) -> list[SortKey]:
    """
    The inverse of :py:func:`sorting_string`.

    Args:
        value: a sort control string such as ``"-displayName initials"``

    Returns:
        The sort keys, in order.

    """
    return [SortKey.parse(token) for token in value.split()]


# -----------------------
# BER encoding
# -----------------------


class BerSortKey(univ.Sequence):
    """
    SortKey ::= SEQUENCE {
        attributeType   AttributeDescription,
        orderingRule    [0] MatchingRuleId OPTIONAL,
        reverseOrder    [1] BOOLEAN DEFAULT FALSE }
    """

    componentType: ClassVar[namedtype.NamedTypes] = namedtype.NamedTypes(  # noqa: N815
        namedtype.NamedType("attributeType", univ.OctetString()),
        namedtype.OptionalNamedType(
            "orderingRule",
            univ.OctetString().subtype(
                implicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatSimple, 0)
            ),
        ),
        namedtype.DefaultedNamedType(
            "reverseOrder",
            univ.Boolean(False).subtype(  # noqa: FBT003
                implicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatSimple, 1)
            ),
        ),
    )


class BerSortKeyList(univ.SequenceOf):
    """SortKeyList ::= SEQUENCE OF SortKey"""

    componentType: ClassVar[BerSortKey] = BerSortKey()  # noqa: N815


def build_sort_control_value(keys: Iterable[SortKey]) -> bytes:
    """
    BER-encode a list of sort keys as a server-side sort control value.

    Args:
        keys: the sort keys, most significant first

    Returns:
        The encoded control value, or ``b""`` if there are no keys.

    """
    keys = list(keys)
    if not keys:
        return b""
    sort_key_list = BerSortKeyList()
    for key in keys:
        sort_key = BerSortKey()
        sort_key.setComponentByName(
            "attributeType", univ.OctetString(key.field.encode("utf-8"))
        )
        if key.ordering_rule:
            sort_key.setComponentByName(
                "orderingRule",
                univ.OctetString(key.ordering_rule.encode("utf-8")).subtype(
                    implicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatSimple, 0)
                ),
            )
        if key.order is SortOrder.DESC:
            sort_key.setComponentByName(
                "reverseOrder",
                univ.Boolean(True).subtype(  # noqa: FBT003
                    implicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatSimple, 1)
                ),
            )
        sort_key_list.append(sort_key)
    return encoder.encode(sort_key_list)


class ServerSideSortControl(LDAPControl):
    """
    The Server-Side Sort request control (OID 1.2.840.113556.1.4.473).

    Keyword Args:
        criticality: whether the server must refuse the search if it cannot sort
        sort_keys: the sort keys, most significant first

    """

    control_type = "1.2.840.113556.1.4.473"

    def __init__(
        self,
        criticality: bool = False,
        sort_keys: Iterable[SortKey] | None = None,
    ) -> None:
        #: The sort keys this control was built from
        self.sort_keys: list[SortKey] = list(sort_keys or [])
        super().__init__(
            self.control_type, criticality, build_sort_control_value(self.sort_keys)
        )

    @classmethod
    def from_sorting_string(
        cls, value: str, criticality: bool = False
    ) -> "ServerSideSortControl":
        return cls(criticality=criticality, sort_keys=parse_sorting_string(value))
