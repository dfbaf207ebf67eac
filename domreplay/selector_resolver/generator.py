"""
Builds ranked selector descriptors from element snapshots.

Generation is pure: every fact it needs (ids, match counts, sibling indices)
was captured in the page by the snapshot script, so the ranking can be
computed and tested without a browser.
"""
import logging
from typing import List, Optional

from . import config as sr_config
from .types import ElementSnapshot, PathSegment, SelectorDescriptor

logger = logging.getLogger(__name__)


def css_escape(value: str) -> str:
    """Escapes an identifier for use in a CSS selector (CSSOM ``CSS.escape`` rules)."""
    result: List[str] = []
    length = len(value)
    for i, char in enumerate(value):
        code = ord(char)
        if code == 0:
            result.append("\ufffd")
        elif (0x1 <= code <= 0x1F) or code == 0x7F \
                or (i == 0 and "0" <= char <= "9") \
                or (i == 1 and "0" <= char <= "9" and value[0] == "-"):
            result.append(f"\\{code:x} ")
        elif i == 0 and char == "-" and length == 1:
            result.append("\\-")
        elif code >= 0x80 or char in "-_" or char.isascii() and char.isalnum():
            result.append(char)
        else:
            result.append("\\" + char)
    return "".join(result)


def css_string(value: str) -> str:
    """Quotes a value as a CSS string literal for attribute selectors."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\a ")
    return f'"{escaped}"'


def id_selector(element_id: str) -> str:
    return f"#{css_escape(element_id)}"


def attribute_selector(name: str, value: str) -> str:
    return f"[{name}={css_string(value)}]"


def class_selector(classes: List[str]) -> Optional[str]:
    names = [c for c in classes if c]
    if not names:
        return None
    return "." + ".".join(css_escape(c) for c in names)


def structural_path(path: List[PathSegment]) -> Optional[str]:
    """Walks from the element up to the root, stopping at the nearest ancestor whose id resolves to it."""
    parts: List[str] = []
    for segment in reversed(path):
        if segment.id and segment.id_resolves:
            parts.insert(0, id_selector(segment.id))
            break
        part = segment.tag
        if segment.same_tag_count > 1:
            part += f":nth-of-type({segment.index})"
        parts.insert(0, part)
    if not parts:
        return None
    return " > ".join(parts)


def absolute_xpath(path: List[PathSegment]) -> str:
    """Positional path with a 1-based same-tag index at every level."""
    return "//" + "/".join(f"{segment.tag}[{segment.index}]" for segment in path)


def generate_descriptor(snapshot: ElementSnapshot) -> SelectorDescriptor:
    """
    Produces the ranked candidate list for one element.

    Order: #id, data-testid/data-id, compound class, structural path, and
    always last the absolute positional XPath. Each candidate before the last
    is kept only if it identified exactly this element when captured.
    """
    # The snapshot script always reports at least the element itself.
    path = snapshot.path or [PathSegment(tag=snapshot.tag)]

    candidates: List[str] = []

    if snapshot.id and snapshot.id_resolves:
        candidates.append(id_selector(snapshot.id))

    # data-id is only consulted when the element carries no data-testid at all
    if snapshot.test_id is not None:
        if snapshot.test_id_matches == 1:
            candidates.append(attribute_selector(sr_config.TEST_ID_ATTRIBUTE, snapshot.test_id))
    elif snapshot.data_id is not None and snapshot.data_id_matches == 1:
        candidates.append(attribute_selector(sr_config.DATA_ID_ATTRIBUTE, snapshot.data_id))

    compound = class_selector(snapshot.classes)
    if compound and snapshot.class_matches == 1:
        candidates.append(compound)

    css_path = structural_path(path)
    if css_path:
        candidates.append(css_path)

    xpath = absolute_xpath(path)
    ordered: List[str] = []
    for candidate in candidates:
        if candidate not in ordered and candidate != xpath:
            ordered.append(candidate)
    ordered.append(xpath)

    logger.debug(f"Generated {len(ordered)} selector candidates for <{snapshot.tag}>: {ordered}")
    return SelectorDescriptor(primary=ordered[0], fallbacks=ordered[1:])
