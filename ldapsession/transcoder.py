"""
Codepage conversion between the directory server and UTF-8.

Some directories (mostly older Active Directory deployments in East Asia)
store attribute values in a legacy codepage such as GB2312 or BIG5.  A
:py:class:`Transcoder` converts outgoing values into that codepage and
incoming values back into Python strings.  Without a codepage it just
validates UTF-8.
"""

import codecs
import logging

from .exceptions import EncodingFailed

logger = logging.getLogger(__name__)


def convert(data: bytes, from_encoding: str, to_encoding: str) -> bytes:
    """
    Re-encode ``data`` from one character set to another.

    Args:
        data: the bytes to convert
        from_encoding: the codec ``data`` is currently encoded in
        to_encoding: the codec to convert to

    Raises:
        UnicodeError: ``data`` is not valid in ``from_encoding`` or cannot be
            represented in ``to_encoding``
        LookupError: one of the codecs does not exist

    Returns:
        The converted bytes.

    """
    return codecs.decode(data, from_encoding).encode(to_encoding)


class Transcoder:
    """
    Converts values between the server's codepage and UTF-8, in both directions.

    Keyword Args:
        codepage: the server's character set, e.g. ``"GB2312"``.  ``None`` or
            any UTF-8 alias means no conversion is needed.

    Raises:
        EncodingFailed: ``codepage`` is not a codec Python knows about

    """

    def __init__(self, codepage: str | None = None) -> None:
        #: The normalized codec name, or ``None`` when the server speaks UTF-8
        self.codepage: str | None = None
        if codepage:
            try:
                info = codecs.lookup(codepage)
            except LookupError as exc:
                msg = f"Unsupported codepage: {codepage}"
                raise EncodingFailed(msg) from exc
            if info.name != "utf-8":
                self.codepage = info.name

    def __repr__(self) -> str:
        return f"Transcoder(codepage={self.codepage!r})"

    def encode(self, value: str | bytes) -> bytes:
        """
        Convert a value into the bytes the server expects.

        Args:
            value: a string, or UTF-8 bytes

        Raises:
            EncodingFailed: ``value`` cannot be represented in our codepage

        Returns:
            The value encoded in the server's codepage.

        """
        data = value.encode("utf-8") if isinstance(value, str) else bytes(value)
        if self.codepage is None:
            return data
        try:
            return convert(data, "utf-8", self.codepage)
        except UnicodeError as exc:
            msg = f"Value cannot be encoded as {self.codepage}"
            raise EncodingFailed(msg) from exc

    def decode(self, data: bytes | str | None, length: int | None = None) -> str:
        """
        Convert a counted server value into a string.

        The value is cut at ``length`` bytes, never at an embedded NUL, so
        binary values survive intact.  Anything that does not decode cleanly
        comes back as an empty string.

        Args:
            data: the raw value.  Strings are returned unchanged, since
                python-ldap already decodes DNs and URIs itself.

        Keyword Args:
            length: number of bytes of ``data`` to use; all of them if ``None``

        Returns:
            The decoded string.

        """
        if data is None:
            return ""
        if isinstance(data, str):
            return data
        buf = bytes(data[:length]) if length is not None else bytes(data)
        try:
            if self.codepage is None:
                return buf.decode("utf-8")
            return convert(buf, self.codepage, "utf-8").decode("utf-8")
        except UnicodeError:
            logger.debug(
                "transcoder.decode.invalid codepage=%s length=%d",
                self.codepage or "utf-8",
                len(buf),
            )
            return ""
