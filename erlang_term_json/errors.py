from enum import Enum
from typing import Union


class ErrorKind(Enum):
    READ_ERROR = "ReadError"
    NOT_IMPLEMENTED = "NotImplemented"
    INVALID_LIST_TERM = "InvalidListTerm"
    NOT_ERLANG_BINARY = "NotErlangBinary"
    NOT_UTF8_ATOM = "NotUtf8Atom"
    TOO_DEEPLY_NESTED = "TooDeeplyNested"

    def __str__(self) -> str:
        return self.value


class DecodeError(Exception):
    def __init__(self, kind: ErrorKind, cause: Union[BaseException, None] = None):
        super().__init__(kind.value)
        self.kind = kind
        self.cause = cause

    def __repr__(self) -> str:
        return f"DecodeError({self.kind.value!r})"
