from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, Optional, Union

Detail = Union[str, int]


class ErrorCode(IntEnum):
    INVALID_ENCLOSURE_RULE = 1
    UNSUPPORTED_ENCODING = 2
    ERROR_WHILE_SAVING_TO_FILE = 3


class CSVWriterError(Exception):
    """Base error raised by the writer. Carries a numeric code and optional details."""

    code: ErrorCode

    def __init__(self, message: str, code: ErrorCode, details: Optional[Dict[str, Detail]] = None):
        super().__init__(message)
        self.message = message
        self.code = ErrorCode(code)
        self.details: Dict[str, Detail] = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": int(self.code),
            "kind": self.code.name.lower(),
            "details": dict(self.details),
        }


class InvalidEnclosureRule(CSVWriterError):
    def __init__(self, rule: Any):
        super().__init__(
            "Invalid enclosure rule.",
            ErrorCode.INVALID_ENCLOSURE_RULE,
            {"rule": repr(rule)},
        )


class UnsupportedEncoding(CSVWriterError):
    def __init__(self, encoding: Any):
        super().__init__(
            f"Unsupported encoding: {encoding}",
            ErrorCode.UNSUPPORTED_ENCODING,
            {"encoding": str(encoding)},
        )
        self.encoding = encoding


class FlushFailed(CSVWriterError):
    """Raised by add_line() when the automatic flush to the output file fails."""

    def __init__(self, path: Any):
        super().__init__(
            f"Error while saving to the file to clear the buffer. File: {path}",
            ErrorCode.ERROR_WHILE_SAVING_TO_FILE,
            {"path": str(path)},
        )
        self.path = path
