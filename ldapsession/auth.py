# mypy: disable-error-code="attr-defined"
"""
Binding a :py:class:`~ldapsession.connection.Connection` to an identity.

Two flavours are supported:

* a simple bind with a DN and a password, and
* a SASL interactive bind, where the SASL library asks for credential fields
  one at a time (authentication name, proxy user, password, realm) and we
  answer from a :py:class:`Credentials` value.

The SASL mechanisms themselves (GSSAPI, GSS-SPNEGO, DIGEST-MD5) are run by the
SASL library behind python-ldap; we only answer its questions.
"""

import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from ldapsession import ldap

from .connection import Connection
from .exceptions import BindFailed

logger = logging.getLogger(__name__)

#: Interact ids, as defined by ``sasl.h``
CB_LIST_END = 0
CB_USER = ldap.sasl.CB_USER
CB_AUTHNAME = ldap.sasl.CB_AUTHNAME
CB_PASS = ldap.sasl.CB_PASS
CB_ECHOPROMPT = ldap.sasl.CB_ECHOPROMPT
CB_NOECHOPROMPT = ldap.sasl.CB_NOECHOPROMPT
CB_GETREALM = ldap.sasl.CB_GETREALM

#: Which :py:class:`Credentials` field answers which interact id
INTERACT_FIELDS: dict[int, str] = {
    CB_AUTHNAME: "authname",
    CB_USER: "user",
    CB_PASS: "password",
    CB_GETREALM: "realm",
}
#: Free-form prompts; we always answer these with an empty string
PROMPTS: frozenset[int] = frozenset({CB_ECHOPROMPT, CB_NOECHOPROMPT})


class Mechanism(enum.Enum):
    """
    Authentication mechanisms.  The values are the mechanism names sent on the
    wire; :py:attr:`SIMPLE` is not a SASL mechanism and sends nothing.
    """

    SIMPLE = ""
    GSSAPI = "GSSAPI"
    SPNEGO = "GSS-SPNEGO"
    DIGEST = "DIGEST-MD5"
    OTHER = "UNSUPPORTED"

    @classmethod
    def from_string(cls, value: "str | Mechanism | None") -> "Mechanism":
        """
        Look up a mechanism by wire name or by member name.

        Anything we do not recognize maps to :py:attr:`OTHER`, which is refused
        at bind time.

        Args:
            value: ``"DIGEST-MD5"``, ``"DIGEST"``, ``"simple"``, ...

        Returns:
            The matching :py:class:`Mechanism`.

        """
        if isinstance(value, Mechanism):
            return value
        if not value:
            return cls.SIMPLE
        for member in cls:
            if value.upper() in (member.value, member.name):
                return member
        return cls.OTHER


@dataclass(frozen=True)
class Credentials:
    """
    Who to bind as.  Build one with :py:meth:`simple` or :py:meth:`sasl`.

    Keyword Args:
        binddn: the DN for a simple bind, e.g. ``"cn=admin,dc=example,dc=com"``
        authname: the SASL authentication name, usually a short lowercase user
            name
        user: the SASL proxy authorization identity, e.g. ``"dn:cn=someone,..."``
        password: the password
        realm: the SASL realm
        mechanism: the mechanism to bind with

    """

    binddn: str = ""
    authname: str = ""
    user: str = ""
    password: str = field(default="", repr=False)
    realm: str = ""
    mechanism: Mechanism = Mechanism.SIMPLE

    @classmethod
    def simple(cls, binddn: str = "", password: str = "") -> "Credentials":
        return cls(binddn=binddn, password=password, mechanism=Mechanism.SIMPLE)

    @classmethod
    def sasl(  # noqa: PLR0913
        cls,
        authname: str = "",
        user: str = "",
        password: str = "",
        realm: str = "",
        mechanism: Mechanism | str = Mechanism.GSSAPI,
        binddn: str = "",
    ) -> "Credentials":
        """
        Credentials for a SASL interactive bind.

        ``binddn`` only matters if ``mechanism`` turns out to be
        :py:attr:`Mechanism.SIMPLE`, in which case a simple bind is done with it
        instead.
        """
        return cls(
            binddn=binddn,
            authname=authname,
            user=user,
            password=password,
            realm=realm,
            mechanism=Mechanism.from_string(mechanism),
        )

    @property
    def is_simple(self) -> bool:
        return self.mechanism is Mechanism.SIMPLE


@dataclass
class InteractItem:
    """
    One question in a round of a SASL interactive bind.

    The SASL library fills in ``id``, ``challenge``, ``prompt`` and
    ``defresult``; we fill in ``result`` and ``length``.
    """

    id: int
    challenge: str = ""
    prompt: str = ""
    defresult: str = ""
    result: bytes | None = None
    #: byte length of :py:attr:`result`, not its character count
    length: int = 0


class SaslInteraction(ldap.sasl.sasl):
    """
    Answers the SASL library's questions from a :py:class:`Credentials` value.

    python-ldap calls :py:meth:`callback` once per interact item while
    :py:meth:`ldap.ldapobject.LDAPObject.sasl_interactive_bind_s` is running.
    Every non-empty answer is kept in :py:attr:`arena` until
    :py:func:`bind_sasl` calls :py:meth:`release` after the bind is over.

    Args:
        credentials: the credentials to answer with

    """

    def __init__(self, credentials: Credentials) -> None:
        super().__init__({}, credentials.mechanism.value)
        self.credentials: Credentials = credentials
        #: Answers handed to the SASL library during the current bind
        self.arena: list[bytes] = []

    def default_for(self, cb_id: int) -> str | None:
        """
        Return the answer for interact id ``cb_id``.

        Args:
            cb_id: one of the ``CB_*`` constants

        Returns:
            The matching credentials field, ``""`` for prompts, or ``None`` for
            :py:data:`CB_LIST_END` and ids we do not know.

        """
        if cb_id in INTERACT_FIELDS:
            return getattr(self.credentials, INTERACT_FIELDS[cb_id])
        if cb_id in PROMPTS:
            return ""
        return None

    def respond(self, items: Iterable[InteractItem]) -> int:
        """
        Answer one round of interact items, in order.

        The round stops at :py:data:`CB_LIST_END`, or at the first id we do not
        know, which is left untouched.

        Args:
            items: the interact items for this round

        Returns:
            ``0``, the SASL success status.

        """
        for item in items:
            answer = self.default_for(item.id)
            if answer is None:
                return 0
            if answer:
                buf = answer.encode("utf-8")
                self.arena.append(buf)
                item.result = buf
                item.length = len(buf)
            else:
                item.length = 0
        return 0

    def callback(self, cb_id: int, challenge: str, prompt: str, defresult: str) -> bytes:
        item = InteractItem(cb_id, challenge or "", prompt or "", defresult or "")
        self.respond([item, InteractItem(CB_LIST_END)])
        return item.result or b""

    def release(self) -> None:
        """Drop every answer handed out during this bind."""
        self.arena.clear()


def bind_simple(connection: Connection, dn: str, password: str) -> None:
    """
    Perform a simple bind.

    Args:
        connection: the connection to bind
        dn: the DN to bind as
        password: its password

    Raises:
        BindFailed: the server refused the bind

    """
    try:
        connection.handle.simple_bind_s(dn, password)
    except ldap.LDAPError as exc:
        error = BindFailed.from_ldap_error(exc)
        logger.warning("auth.bind.failed dn=%s code=%s", dn, error.code)
        raise error from exc
    logger.info("auth.bind.success dn=%s", dn)


def bind_sasl(connection: Connection, credentials: Credentials) -> None:
    """
    Bind with ``credentials``.

    :py:attr:`Mechanism.SIMPLE` credentials are sent as a simple bind with
    their ``binddn`` and ``password``: there is no interactive equivalent of a
    simple bind.  :py:attr:`Mechanism.OTHER` is refused without talking to
    the server.

    Args:
        connection: the connection to bind
        credentials: who to bind as

    Raises:
        BindFailed: the mechanism is unsupported, or the server refused the bind

    """
    if credentials.mechanism is Mechanism.OTHER:
        msg = "UNSUPPORTED MECHANISMS"
        raise BindFailed(msg)
    if credentials.is_simple:
        bind_simple(connection, credentials.binddn, credentials.password)
        return
    interaction = SaslInteraction(credentials)
    try:
        connection.handle.sasl_interactive_bind_s(
            credentials.binddn, interaction, sasl_flags=ldap.SASL_QUIET
        )
    except ldap.LDAPError as exc:
        error = BindFailed.from_ldap_error(exc)
        logger.warning(
            "auth.sasl.failed mechanism=%s authname=%s code=%s",
            credentials.mechanism.value,
            credentials.authname,
            error.code,
        )
        raise error from exc
    finally:
        interaction.release()
    logger.info(
        "auth.sasl.success mechanism=%s authname=%s",
        credentials.mechanism.value,
        credentials.authname,
    )


def authenticate(connection: Connection, credentials: Credentials) -> None:
    """
    Bind ``connection`` as ``credentials``, simple or SASL as they ask.

    Raises:
        BindFailed: the mechanism is unsupported, or the server refused the bind

    """
    if credentials.is_simple:
        bind_simple(connection, credentials.binddn, credentials.password)
    else:
        bind_sasl(connection, credentials)
