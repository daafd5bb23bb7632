"""
JSONPath-style queries over parsed JSON documents.

Supported syntax::

    $                 whole document
    $.store.book      child by name (also $['store']["book"])
    $.book[0]         index, negative indexes count from the end
    $.book[*] $.*     every child
    $.book[1:3]       slice with optional step ([::2])
    $.book[0,2]       union of indexes or quoted names
    $..author         recursive descent

A query without any wildcard, slice, union or recursive step is
*definite*: it selects at most one value and a missing key is an error.
Any other query collects every match into a list.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union


class PathQueryError(ValueError):
    """Raised for malformed queries or a definite path that does not exist."""
    pass


Selector = Union[str, int, slice, None]


@dataclass(frozen=True)
class PathStep:
    """One query step; ``selectors`` is a tuple of names/indexes/slices, ``None`` means wildcard."""
    selectors: Tuple[Selector, ...]
    recursive: bool = False

    @property
    def definite(self) -> bool:
        if self.recursive or len(self.selectors) != 1:
            return False
        return isinstance(self.selectors[0], (str, int))


def parse_query(query: str) -> List[PathStep]:
    """Split a query into steps."""
    text = (query or "").strip() or "$"
    if not text.startswith("$"):
        text = "$" + ("" if text[0] in ".[" else ".") + text

    steps: List[PathStep] = []
    pos = 1
    length = len(text)

    while pos < length:
        ch = text[pos]
        if text.startswith("..", pos):
            pos += 2
            if pos < length and text[pos] == "[":
                selectors, pos = _read_bracket(text, pos)
            else:
                selectors, pos = _read_dotted(text, pos)
            steps.append(PathStep(selectors, recursive=True))
        elif ch == ".":
            selectors, pos = _read_dotted(text, pos + 1)
            steps.append(PathStep(selectors))
        elif ch == "[":
            selectors, pos = _read_bracket(text, pos)
            steps.append(PathStep(selectors))
        else:
            raise PathQueryError(f"Unexpected character {ch!r} at offset {pos} in {query!r}")

    return steps


def _read_dotted(text: str, pos: int) -> Tuple[Tuple[Selector, ...], int]:
    end = pos
    while end < len(text) and text[end] not in ".[":
        end += 1
    name = text[pos:end].strip()
    if not name:
        raise PathQueryError(f"Empty name at offset {pos} in {text!r}")
    return ((None,) if name == "*" else (name,)), end


def _read_bracket(text: str, pos: int) -> Tuple[Tuple[Selector, ...], int]:
    # pos points at '['
    selectors: List[Selector] = []
    buf: List[str] = []
    quote: Optional[str] = None
    i = pos + 1

    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\" and i + 1 < len(text):
                buf.append(text[i + 1])
                i += 2
                continue
            if ch == quote:
                selectors.append("".join(buf))
                buf = []
                quote = None
            else:
                buf.append(ch)
        elif ch in "'\"":
            quote = ch
        elif ch in ",]":
            token = "".join(buf).strip()
            if token:
                selectors.append(_parse_bracket_token(token, text))
            buf = []
            if ch == "]":
                if not selectors:
                    raise PathQueryError(f"Empty brackets at offset {pos} in {text!r}")
                return tuple(selectors), i + 1
        else:
            buf.append(ch)
        i += 1

    raise PathQueryError(f"Unterminated bracket at offset {pos} in {text!r}")


def _parse_bracket_token(token: str, text: str) -> Selector:
    if token == "*":
        return None
    try:
        if ":" in token:
            parts = [int(p) if p.strip() else None for p in token.split(":")]
            if len(parts) > 3 or (len(parts) == 3 and parts[2] == 0):
                raise ValueError(token)
            return slice(*parts)
        return int(token)
    except ValueError:
        raise PathQueryError(f"Invalid selector {token!r} in {text!r}")


def _children(node: Any) -> List[Any]:
    if isinstance(node, dict):
        return list(node.values())
    if isinstance(node, list):
        return list(node)
    return []


def _select(node: Any, selector: Selector) -> List[Any]:
    if selector is None:
        return _children(node)
    if isinstance(selector, str):
        if isinstance(node, dict) and selector in node:
            return [node[selector]]
        return []
    if isinstance(node, list):
        if isinstance(selector, slice):
            return node[selector]
        if -len(node) <= selector < len(node):
            return [node[selector]]
    return []


def _descendants(node: Any) -> List[Any]:
    found = [node]
    for child in _children(node):
        found.extend(_descendants(child))
    return found


def evaluate(document: Any, query: str) -> Any:
    """
    Evaluate ``query`` against a parsed JSON document.

    Returns:
        The selected value for a definite query, otherwise a list of all
        matches in document order

    Raises:
        PathQueryError: Malformed query, or a definite path that is missing
    """
    steps = parse_query(query)
    definite = all(step.definite for step in steps)

    nodes = [document]
    for step in steps:
        sources = [d for n in nodes for d in _descendants(n)] if step.recursive else nodes
        nodes = [
            match
            for source in sources
            for selector in step.selectors
            for match in _select(source, selector)
        ]
        if definite and not nodes:
            raise PathQueryError(f"No results for path {query!r}")

    if definite:
        return nodes[0]
    return nodes
