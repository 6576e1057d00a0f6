# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
#
# Level 0: ctypes typedefs, prototypes and loading of the OpenCL
# library. Nothing here classifies errors; every function returns the
# raw status code.
from collections import namedtuple
from contextlib import contextmanager
from ctypes import *
from ctypes.util import find_library

import logging
import os

logger = logging.getLogger(__name__)

LIBRARY_ENV = "OCLBIND_LIBRARY"
DEFAULT_LIBRARY = "libOpenCL.so"

########################################################################
# ctypes utilities
########################################################################
class Opaque(Structure):
    pass


def OPAQUE_POINTER(name="opaque"):
    class Cls(Opaque):
        pass

    Cls.__name__ = name
    ptr = POINTER(Cls)
    return ptr


def address_of(handle):
    """Integer address of an opaque handle, 0 for NULL."""
    return cast(handle, c_void_p).value or 0


def handle_from_address(tp, addr):
    return cast(c_void_p(addr), tp)


########################################################################
# Typedefs
########################################################################

# Opaque pointers
cl_platform_id = OPAQUE_POINTER("cl_platform_id")
cl_device_id = OPAQUE_POINTER("cl_device_id")
cl_context = OPAQUE_POINTER("cl_context")
cl_command_queue = OPAQUE_POINTER("cl_command_queue")
cl_mem = OPAQUE_POINTER("cl_mem")
cl_program = OPAQUE_POINTER("cl_program")
cl_kernel = OPAQUE_POINTER("cl_kernel")
cl_event = OPAQUE_POINTER("cl_event")

# Basic types
cl_char = c_int8
cl_uchar = c_uint8
cl_short = c_int16
cl_ushort = c_uint16
cl_int = c_int32
cl_uint = c_uint32
cl_long = c_int64
cl_ulong = c_uint64
cl_float = c_float
cl_double = c_double
cl_bitfield = cl_ulong


class cl_bool(cl_uint):
    pass


class cl_version(cl_uint):
    pass



# Enum and bitfield typedefs. They are distinct classes so that info
# results can be mapped to the right Python type.
class cl_build_status(cl_int):
    pass


class cl_command_execution_status(cl_int):
    pass


class cl_command_queue_properties(cl_bitfield):
    pass


class cl_command_type(cl_uint):
    pass


class cl_device_type(cl_bitfield):
    pass


class cl_mem_flags(cl_bitfield):
    pass


cl_context_properties = c_ssize_t
cl_properties = cl_ulong
cl_queue_properties = cl_properties

CL_NAME_VERSION_MAX_NAME_SIZE = 64

# Property list keys
CL_CONTEXT_PLATFORM = 0x1084
CL_QUEUE_PROPERTIES = 0x1093

CL_FALSE = 0
CL_TRUE = 1

########################################################################
# Records
########################################################################
Version = namedtuple("Version", ["major", "minor", "patch"])


def decode_version(val):
    # 10 bits major, 10 bits minor, 12 bits patch
    return Version(val >> 22, (val >> 12) & 0x3FF, val & 0xFFF)


def encode_version(major, minor, patch=0):
    return (major << 22) | (minor << 12) | patch


class NameVersion(Structure):
    """Same layout as cl_name_version."""
    _fields_ = [
        ("version", cl_uint),
        ("name_raw", c_char * CL_NAME_VERSION_MAX_NAME_SIZE),
    ]

    @property
    def name(self):
        # Reading a char array field stops at the first NUL.
        return self.name_raw.decode("utf-8", errors="replace")

    @property
    def numeric_version(self):
        return decode_version(self.version)

    def __repr__(self):
        major, minor, patch = self.numeric_version
        return f"NameVersion({self.name!r}, {major}.{minor}.{patch})"

########################################################################
# Prototypes
########################################################################
WAIT_LIST = [cl_uint, POINTER(cl_event), POINTER(cl_event)]

PROTOTYPES = {
    # Platform and device
    "clGetPlatformIDs": (cl_int, [
        cl_uint, POINTER(cl_platform_id), POINTER(cl_uint)
    ]),
    "clGetDeviceIDs": (cl_int, [
        cl_platform_id, cl_device_type, cl_uint,
        POINTER(cl_device_id), POINTER(cl_uint)
    ]),

    # Context
    "clCreateContext": (cl_context, [
        POINTER(cl_context_properties), cl_uint, POINTER(cl_device_id),
        c_void_p, c_void_p, POINTER(cl_int)
    ]),

    # Command queue
    "clCreateCommandQueueWithProperties": (cl_command_queue, [
        cl_context, cl_device_id, POINTER(cl_queue_properties),
        POINTER(cl_int)
    ]),
    "clFlush": (cl_int, [cl_command_queue]),
    "clFinish": (cl_int, [cl_command_queue]),
    "clEnqueueNDRangeKernel": (cl_int, [
        cl_command_queue, cl_kernel, cl_uint,
        POINTER(c_size_t), POINTER(c_size_t), POINTER(c_size_t)
    ] + WAIT_LIST),
    "clEnqueueReadBuffer": (cl_int, [
        cl_command_queue, cl_mem, cl_bool, c_size_t, c_size_t, c_void_p
    ] + WAIT_LIST),
    "clEnqueueWriteBuffer": (cl_int, [
        cl_command_queue, cl_mem, cl_bool, c_size_t, c_size_t, c_void_p
    ] + WAIT_LIST),
    "clEnqueueFillBuffer": (cl_int, [
        cl_command_queue, cl_mem, c_void_p, c_size_t, c_size_t, c_size_t
    ] + WAIT_LIST),

    # Program
    "clCreateProgramWithSource": (cl_program, [
        cl_context, cl_uint, POINTER(c_char_p), POINTER(c_size_t),
        POINTER(cl_int)
    ]),
    "clCreateProgramWithIL": (cl_program, [
        cl_context, c_void_p, c_size_t, POINTER(cl_int)
    ]),
    "clBuildProgram": (cl_int, [
        cl_program, cl_uint, POINTER(cl_device_id), c_char_p,
        c_void_p, c_void_p
    ]),

    # Kernel
    "clCreateKernel": (cl_kernel, [cl_program, c_char_p, POINTER(cl_int)]),
    "clSetKernelArg": (cl_int, [cl_kernel, cl_uint, c_size_t, c_void_p]),

    # Memory
    "clCreateBuffer": (cl_mem, [
        cl_context, cl_mem_flags, c_size_t, c_void_p, POINTER(cl_int)
    ]),

    # Event
    "clWaitForEvents": (cl_int, [cl_uint, POINTER(cl_event)]),
}

# Retain and release functions all look the same.
REFCOUNTED_TYPES = {
    cl_context: ("clRetainContext", "clReleaseContext"),
    cl_command_queue: ("clRetainCommandQueue", "clReleaseCommandQueue"),
    cl_program: ("clRetainProgram", "clReleaseProgram"),
    cl_kernel: ("clRetainKernel", "clReleaseKernel"),
    cl_mem: ("clRetainMemObject", "clReleaseMemObject"),
    cl_event: ("clRetainEvent", "clReleaseEvent"),
}
for cl_type, names in REFCOUNTED_TYPES.items():
    for name in names:
        PROTOTYPES[name] = (cl_int, [cl_type])

# So do the info getters, apart from their leading arguments.
INFO_GETTERS = {
    "clGetPlatformInfo": [cl_platform_id, cl_uint],
    "clGetDeviceInfo": [cl_device_id, cl_uint],
    "clGetContextInfo": [cl_context, cl_uint],
    "clGetCommandQueueInfo": [cl_command_queue, cl_uint],
    "clGetProgramInfo": [cl_program, cl_uint],
    "clGetProgramBuildInfo": [cl_program, cl_device_id, cl_uint],
    "clGetKernelInfo": [cl_kernel, cl_uint],
    "clGetMemObjectInfo": [cl_mem, cl_uint],
    "clGetEventInfo": [cl_event, cl_uint],
    "clGetEventProfilingInfo": [cl_event, cl_uint],
}
for name, args in INFO_GETTERS.items():
    PROTOTYPES[name] = (cl_int, args + [c_size_t, c_void_p, POINTER(c_size_t)])


########################################################################
# Loading
########################################################################
def library_name():
    name = os.environ.get(LIBRARY_ENV)
    if name:
        return name
    return find_library("OpenCL") or DEFAULT_LIBRARY


def load_library(name=None):
    name = name or library_name()
    logger.debug("Loading OpenCL library %s", name)
    so = cdll.LoadLibrary(name)
    for fun_name, (restype, argtypes) in PROTOTYPES.items():
        fun = getattr(so, fun_name)
        fun.restype = restype
        fun.argtypes = argtypes
    return so


_library = None


def library():
    """The object whose attributes are the OpenCL entry points, loading
    the shared library on first use."""
    global _library
    if _library is None:
        _library = load_library()
    return _library


def set_library(lib):
    global _library
    prev = _library
    _library = lib
    return prev


@contextmanager
def use_library(lib):
    prev = set_library(lib)
    try:
        yield lib
    finally:
        set_library(prev)
