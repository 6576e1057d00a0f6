# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
#
# Wrappers around native handles. A wrapper only references the handle;
# the runtime keeps the reference count, so there is no __del__ here.
# Use retain/release explicitly or a with-block, which releases on
# every exit path.
from oclbind.errors import (
    check_call,
    info_outcomes,
    release_outcomes,
    retain_outcomes,
)
from oclbind.native import (
    REFCOUNTED_TYPES,
    address_of,
    handle_from_address,
    library,
)
from oclbind.query import get_info

import logging

logger = logging.getLogger(__name__)


class Wrapper:
    # Set by subclasses.
    cl_type = None
    invalid_code = None
    info_fun = None
    # Further statuses the info getter reports for misuse.
    info_fatal = ()

    def __init__(self, handle):
        self.handle = handle

    @classmethod
    def from_address(cls, addr):
        return cls(handle_from_address(cls.cl_type, addr))

    @property
    def address(self):
        return address_of(self.handle)

    def get_info(self, attr, *args):
        fun = getattr(library(), self.info_fun)
        table = info_outcomes(self.invalid_code, *self.info_fatal)
        return get_info(fun, table, attr, self.handle, *args)

    def __eq__(self, other):
        return type(self) is type(other) and self.address == other.address

    def __hash__(self):
        return hash((type(self), self.address))

    def __repr__(self):
        return f"<{type(self).__name__} 0x{self.address:x}>"


class RefCounted(Wrapper):
    """Handle with a reference count kept by the runtime. ``create``
    returns an object with count 1 that must be released once."""
    refcount_info = None

    def retain(self):
        name, _ = REFCOUNTED_TYPES[self.cl_type]
        fun = getattr(library(), name)
        check_call(fun, retain_outcomes(self.invalid_code), self.handle)

    def release(self):
        # Statuses other than an invalid handle are ignored, since
        # release runs during cleanup where they can't be acted upon.
        _, name = REFCOUNTED_TYPES[self.cl_type]
        fun = getattr(library(), name)
        table = release_outcomes(self.invalid_code)
        code = check_call(fun, table, self.handle)
        if code is not None:
            logger.debug("Release of %r reported %s", self, code.name)

    @property
    def reference_count(self):
        return self.get_info(self.refcount_info)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.release()
