# __init__.py for page_driver module

from .document import PageDocument, origin_of, same_location
from .exceptions import PageDriverError, DispatchError

__all__ = ["PageDocument", "origin_of", "same_location", "PageDriverError", "DispatchError"]
