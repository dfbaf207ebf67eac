# __init__.py for selector_resolver module

from .resolver import SelectorResolver
from .generator import generate_descriptor, css_escape
from .types import SelectorDescriptor, ElementSnapshot, PathSegment, is_xpath
from .exceptions import (
    SelectorResolverError,
    InvalidSelectorError,
    ElementNotFoundError,
    VisibilityTimeoutError,
)

__all__ = [
    "SelectorResolver",
    "generate_descriptor",
    "css_escape",
    "SelectorDescriptor",
    "ElementSnapshot",
    "PathSegment",
    "is_xpath",
    "SelectorResolverError",
    "InvalidSelectorError",
    "ElementNotFoundError",
    "VisibilityTimeoutError",
]
