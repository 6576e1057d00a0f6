# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
#
# Names:
#   * el_type - ctypes type of one element
#   * count - number of elements
#   * nbytes - number of bytes
from collections import namedtuple
from ctypes import Array, addressof, sizeof
from oclbind.enums import ErrorCode, MemFlags, MemInfo
from oclbind.errors import (
    RESOURCES,
    OutOfDeviceMemoryError,
    ProgrammerError,
    check_last,
    outcomes,
    require,
)
from oclbind.handles import RefCounted
from oclbind.native import cl_mem, library

import logging
import numpy as np

logger = logging.getLogger(__name__)

CREATE_BUFFER = {
    **outcomes(
        [
            ErrorCode.CL_INVALID_CONTEXT,
            ErrorCode.CL_INVALID_PROPERTY,
            ErrorCode.CL_INVALID_VALUE,
            ErrorCode.CL_INVALID_HOST_PTR,
        ],
        # Zero or too large sizes. Whether zero is allowed is up to the
        # runtime, so it belongs with the allocation failures.
        CL_INVALID_BUFFER_SIZE=OutOfDeviceMemoryError,
        CL_MEM_OBJECT_ALLOCATION_FAILURE=OutOfDeviceMemoryError,
    ),
    **RESOURCES
}


class HostArray(namedtuple("HostArray", ["ptr", "count", "el_type", "owner"])):
    """A contiguous host region: address, element count, element type
    and the object owning the memory."""

    @property
    def nbytes(self):
        return self.count * sizeof(self.el_type)


def host_array(data, writable=False):
    """Views ctypes arrays and C-contiguous numpy arrays as host
    regions."""
    if isinstance(data, Array):
        return HostArray(addressof(data), len(data), data._type_, data)
    if isinstance(data, np.ndarray):
        require(data.flags.c_contiguous, "host array must be C-contiguous")
        require(
            not writable or data.flags.writeable,
            "host array must be writable"
        )
        try:
            el_type = np.ctypeslib.as_ctypes_type(data.dtype)
        except NotImplementedError as e:
            # float16 and complex have no ctypes counterpart.
            raise ProgrammerError(
                f"unsupported host dtype: {data.dtype}"
            ) from e
        return HostArray(data.ctypes.data, data.size, el_type, data)
    raise ProgrammerError(f"unsupported host data: {type(data).__name__}")


class Buffer(RefCounted):
    """Device memory holding ``count`` elements of ``el_type``."""
    cl_type = cl_mem
    invalid_code = ErrorCode.CL_INVALID_MEM_OBJECT
    info_fun = "clGetMemObjectInfo"
    refcount_info = MemInfo.CL_MEM_REFERENCE_COUNT

    def __init__(self, handle, el_type, count):
        super().__init__(handle)
        self.el_type = el_type
        self.count = count

    @classmethod
    def create(cls, context, flags, count, el_type):
        return cls._create(context, flags, count, el_type, None)

    @classmethod
    def create_with_data(cls, context, flags, data, el_type=None):
        """Creates a buffer initialized with a copy of ``data``. The
        host data is only read during the call."""
        host = host_array(data)
        el_type = el_type or host.el_type
        require(
            sizeof(el_type) == sizeof(host.el_type),
            f"host elements are {sizeof(host.el_type)} bytes, "
            f"{el_type.__name__} is {sizeof(el_type)}"
        )
        flags = MemFlags(flags) | MemFlags.CL_MEM_COPY_HOST_PTR
        return cls._create(context, flags, host.count, el_type, host.ptr)

    @classmethod
    def _create(cls, context, flags, count, el_type, host_ptr):
        nbytes = count * sizeof(el_type)
        handle = check_last(
            library().clCreateBuffer,
            CREATE_BUFFER,
            context.handle,
            int(flags),
            nbytes,
            host_ptr,
        )
        buf = cls(handle, el_type, count)
        logger.debug("Created %r (%d bytes)", buf, nbytes)
        return buf

    @property
    def nbytes(self):
        return self.count * sizeof(self.el_type)

    @property
    def flags(self):
        return self.get_info(MemInfo.CL_MEM_FLAGS)

    def byte_range(self, offset, count):
        """Byte offset and byte length of ``count`` elements starting at
        element ``offset``. All element to byte conversions go through
        here."""
        require(
            0 <= offset and 0 <= count and offset + count <= self.count,
            f"elements {offset}..{offset + count} outside buffer "
            f"of {self.count}"
        )
        el_size = sizeof(self.el_type)
        return offset * el_size, count * el_size

    def check_host(self, host):
        require(
            sizeof(host.el_type) == sizeof(self.el_type),
            f"host elements are {sizeof(host.el_type)} bytes, "
            f"buffer elements {sizeof(self.el_type)}"
        )

    def __len__(self):
        return self.count

    def __repr__(self):
        return (
            f"<Buffer 0x{self.address:x} "
            f"{self.el_type.__name__}[{self.count}]>"
        )


create_buffer = Buffer.create
create_buffer_with_data = Buffer.create_with_data
