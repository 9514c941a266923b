"""Error sanitisation — strips user-specific absolute paths before errors are persisted."""

import re

from pydantic import BaseModel, ConfigDict

_POSIX_HOME_PATTERN = re.compile(r"/(?:home|Users|root|tmp)(?:/[^\s'\":]*)?")
_WINDOWS_PATH_PATTERN = re.compile(r"[A-Za-z]:\\[^\s'\":]*")
_REDACTED = "[PATH]"


class SanitizedError(BaseModel):
    """Serializable description of an exception, safe to write to results files."""

    model_config = ConfigDict(frozen=True)

    message: str
    type: str


def sanitize_message(message: str) -> str:
    """Replace absolute home, root and temp paths in message with a placeholder."""
    redacted = _WINDOWS_PATH_PATTERN.sub(_REDACTED, message)
    return _POSIX_HOME_PATTERN.sub(_REDACTED, redacted)


def sanitize_error(exc: BaseException) -> SanitizedError:
    return SanitizedError(
        message=sanitize_message(str(exc) or exc.__class__.__name__),
        type=exc.__class__.__name__,
    )
