"""
Decoded search results.

A :py:class:`ResultSet` is the decoded form of one message chain.  It keeps
entries, references and final results in the order the server sent them;
:py:meth:`ResultSet.as_dict` is a convenience projection keyed by DN.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .typing import DictView


@dataclass(frozen=True)
class Attribute:
    """An attribute name and its decoded values, in server order."""

    name: str
    values: tuple[str, ...] = ()

    @property
    def value(self) -> str | list[str]:
        """A single value as a scalar, anything else as a list."""
        if len(self.values) == 1:
            return self.values[0]
        return list(self.values)


@dataclass(frozen=True)
class Entry:
    """
    A directory entry.

    ``dn`` is empty, and there are no attributes, when the entry's DN could
    not be read.
    """

    dn: str = ""
    attributes: tuple[Attribute, ...] = ()

    def __getitem__(self, name: str) -> Attribute:
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return any(attribute.name == name for attribute in self.attributes)

    def get(self, name: str, default: Attribute | None = None) -> Attribute | None:
        try:
            return self[name]
        except KeyError:
            return default

    def as_dict(self) -> dict[str, str | list[str]]:
        return {attribute.name: attribute.value for attribute in self.attributes}


@dataclass(frozen=True)
class Reference:
    """A search continuation reference: where else to look."""

    uris: tuple[str, ...] = ()


@dataclass(frozen=True)
class OperationResult:
    """
    The final status of an operation.

    A default instance (code ``0``, everything empty) is also what a result
    message that could not be parsed decodes to, so the absence of an error
    here does not prove the operation succeeded.
    """

    code: int = 0
    #: the server's diagnostic message
    message: str = ""
    #: the part of the requested DN the server could match
    matched: str = ""
    referrals: tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.code == 0


Node = Entry | Reference | OperationResult


@dataclass(frozen=True)
class ResultSet:
    """
    Everything decoded from one message chain.

    Iterating a :py:class:`ResultSet` yields its entries, references and
    results interleaved in the order the server sent them.
    """

    nodes: tuple[Node, ...] = ()
    entries: tuple[Entry, ...] = field(init=False)
    references: tuple[Reference, ...] = field(init=False)
    results: tuple[OperationResult, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "entries", tuple(n for n in self.nodes if isinstance(n, Entry))
        )
        object.__setattr__(
            self, "references", tuple(n for n in self.nodes if isinstance(n, Reference))
        )
        object.__setattr__(
            self,
            "results",
            tuple(n for n in self.nodes if isinstance(n, OperationResult)),
        )

    @classmethod
    def from_nodes(cls, nodes: Iterable[Node]) -> "ResultSet":
        return cls(tuple(nodes))

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def result(self) -> OperationResult | None:
        """The last result in the chain, normally the only one."""
        return self.results[-1] if self.results else None

    def as_dict(self) -> DictView:
        """
        Project the entries onto ``{dn: {attribute: value | [values]}}``.

        Single-valued attributes collapse to a scalar.  If two entries share a
        DN, the later one wins.
        """
        return {entry.dn: entry.as_dict() for entry in self.entries}

    @property
    def dictionary(self) -> DictView:
        return self.as_dict()
