"""
Parameter path addressing for scenario documents

A parameter path is a dot-delimited address into a nested dict/list
document with optional list indices, e.g. ``character.style.all[0]`` or
``run[1].input``.
"""

import re
import logging
from typing import Any, Dict, List, Union

logger = logging.getLogger(__name__)

PathToken = Union[str, int]

_SEGMENT = r"[^.\[\]]+"
_PATH_RE = re.compile(rf"(?:{_SEGMENT}|\[\d+\])(?:\.{_SEGMENT}|\[\d+\])*")
_TOKEN_RE = re.compile(rf"({_SEGMENT})|\[(\d+)\]")

_MISSING = object()


def parse_parameter_path(path: str) -> List[PathToken]:
    """
    Split a parameter path into keys (str) and list indices (int)

    Raises:
        ValueError: If the path is empty or malformed
    """
    if not isinstance(path, str) or not path:
        raise ValueError("Parameter path must be a non-empty string")
    if not _PATH_RE.fullmatch(path):
        raise ValueError(f"Malformed parameter path: {path!r}")

    tokens: List[PathToken] = []
    for key, index in _TOKEN_RE.findall(path):
        tokens.append(int(index) if index else key)
    return tokens


def get_value_at_path(document: Any, path: str, default: Any = None) -> Any:
    """Read the value addressed by path, or default if any step is absent"""
    current = document
    for token in parse_parameter_path(path):
        if isinstance(token, int):
            if not isinstance(current, list) or token >= len(current):
                return default
        elif not isinstance(current, dict) or token not in current:
            return default
        current = current[token]
    return current


def validate_parameter_path(document: Any, path: str) -> bool:
    """Check that a parameter path resolves to a value in the document"""
    try:
        return get_value_at_path(document, path, _MISSING) is not _MISSING
    except ValueError:
        return False


def _ensure_slot(container: Any, token: PathToken) -> None:
    if isinstance(token, int):
        if not isinstance(container, list):
            raise TypeError(f"Cannot index {type(container).__name__} with [{token}]")
        if len(container) <= token:
            container.extend([None] * (token + 1 - len(container)))
    elif not isinstance(container, dict):
        raise TypeError(f"Cannot set key '{token}' on {type(container).__name__}")


def _descend(container: Any, token: PathToken, next_token: PathToken) -> Any:
    _ensure_slot(container, token)
    expected = list if isinstance(next_token, int) else dict

    child = container[token] if isinstance(token, int) else container.get(token)
    if child is None:
        child = expected()
        container[token] = child
    elif not isinstance(child, expected):
        raise TypeError(
            f"Cannot descend into {type(child).__name__} at '{token}' (expected {expected.__name__})"
        )
    return child


def set_value_at_path(document: Any, path: str, value: Any) -> None:
    """
    Set the value addressed by path in place

    Missing intermediate dicts and lists are created; lists are padded with
    None up to the addressed index.
    """
    tokens = parse_parameter_path(path)
    current = document
    for token, next_token in zip(tokens, tokens[1:]):
        current = _descend(current, token, next_token)

    last = tokens[-1]
    _ensure_slot(current, last)
    current[last] = value


def get_available_parameter_paths(document: Any, prefix: str = "") -> List[str]:
    """Every addressable path in a document, parents before children"""
    paths: List[str] = []

    if isinstance(document, list):
        for index, item in enumerate(document):
            path = f"{prefix}[{index}]"
            paths.append(path)
            if isinstance(item, (dict, list)):
                paths.extend(get_available_parameter_paths(item, path))
    elif isinstance(document, dict):
        for key, item in document.items():
            path = f"{prefix}.{key}" if prefix else str(key)
            paths.append(path)
            if isinstance(item, (dict, list)):
                paths.extend(get_available_parameter_paths(item, path))

    return paths
