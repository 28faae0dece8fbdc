"""
Credential file loader.

File format:
    alice = secret
    bob=pw=with=equals      # value keeps everything after the first '='
    line without separator  # ignored
    carol =                 # empty value, ignored

Design:
    - Parsing is a pure function over text so it can be tested without files.
    - Reading is the only failure point; malformed lines never raise.
    - Duplicate keys: the last occurrence wins.
"""

from typing import Dict

SEPARATOR = "="


class CredentialFileError(Exception):
    """The credential file could not be read or decoded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


def parse_credentials(text: str) -> Dict[str, str]:
    """
    Parse credential file content into a username -> password mapping.

    Args:
        text (str): Full file content.

    Returns:
        Dict[str, str]: Entries whose trimmed value is non-empty, keyed by the
        trimmed text before the first '='.

    LLM Prompt Example:
        "Show how to parse a key=value file leniently, skipping bad lines
        instead of failing the whole load."
    """
    credentials: Dict[str, str] = {}
    for row in text.rstrip("\r").split("\n"):
        if SEPARATOR not in row:
            continue
        key, value = row.split(SEPARATOR, 1)
        value = value.strip()
        if value:
            credentials[key.strip()] = value
    return credentials


def load_credentials(path: str) -> Dict[str, str]:
    """
    Read and parse the credential file at ``path``.

    Raises:
        CredentialFileError: If the file is missing, unreadable or not UTF-8.
    """
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            text = f.read()
    except OSError as exc:
        raise CredentialFileError(path, exc.strerror or str(exc)) from exc
    except UnicodeDecodeError as exc:
        raise CredentialFileError(path, f"not valid UTF-8 ({exc.reason})") from exc
    return parse_credentials(text)
