"""
Type aliases shared by the session engine.

These describe the raw shapes python-ldap hands us (or expects from us), as
opposed to the decoded value objects in :py:mod:`ldapsession.results`.
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any

#: One node of a message chain: ``(msgtype, payload)``
RawMessage = tuple[int, Any]
AddModlist = list[tuple[str, list[bytes]]]
ModifyModlist = list[tuple[int, str, list[bytes] | None]]
#: Caller-facing attribute map for add and modify
AttributeMap = Mapping[str, Sequence[str]]
#: ``{dn: {attribute: value | [values]}}``
DictView = dict[str, dict[str, str | list[str]]]
#: ``completion(result, error)`` for the asynchronous calls
Completion = Callable[[Any, BaseException | None], None]
