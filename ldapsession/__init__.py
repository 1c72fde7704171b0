from .auth import Credentials, Mechanism
from .controls import SortKey, SortOrder
from .exceptions import (
    BindFailed,
    ConnectFailed,
    EncodingFailed,
    LdapSessionError,
    OperationFailed,
    SearchFailed,
)
from .mutations import ModOp
from .results import Attribute, Entry, OperationResult, Reference, ResultSet
from .search import Scope
from .session import Session
from .transcoder import Transcoder

__version__ = "1.0.0"

__all__ = [
    "Attribute",
    "BindFailed",
    "ConnectFailed",
    "Credentials",
    "EncodingFailed",
    "Entry",
    "LdapSessionError",
    "Mechanism",
    "ModOp",
    "OperationFailed",
    "OperationResult",
    "Reference",
    "ResultSet",
    "Scope",
    "SearchFailed",
    "Session",
    "SortKey",
    "SortOrder",
    "Transcoder",
]
