# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
#
# Programs are built from OpenCL C source or an intermediate language
# such as SPIR-V. Kernels are entry points of built programs.
from collections import namedtuple
from ctypes import (
    Array,
    Structure,
    Union,
    _SimpleCData,
    byref,
    c_char_p,
    c_size_t,
    create_string_buffer,
    sizeof,
)
from oclbind.context import device_array
from oclbind.enums import ErrorCode, KernelInfo, ProgramBuildInfo, ProgramInfo
from oclbind.errors import (
    RESOURCES,
    BuildProgramFailureError,
    CompilerNotAvailableError,
    InvalidILError,
    InvalidKernelDefinitionError,
    InvalidKernelNameError,
    InvalidOperationError,
    ProgrammerError,
    check_call,
    check_last,
    info_outcomes,
    outcomes,
    require,
)
from oclbind.handles import RefCounted
from oclbind.native import cl_kernel, cl_program, library
from oclbind.query import get_info

import logging

logger = logging.getLogger(__name__)

CREATE_WITH_SOURCE = {
    **outcomes([ErrorCode.CL_INVALID_CONTEXT, ErrorCode.CL_INVALID_VALUE]),
    **RESOURCES
}

CREATE_WITH_IL = {
    **outcomes(
        [ErrorCode.CL_INVALID_CONTEXT],
        CL_INVALID_OPERATION=InvalidOperationError,
        # NULL or empty IL is checked before the call, so this can only
        # mean malformed IL.
        CL_INVALID_VALUE=InvalidILError,
    ),
    **RESOURCES
}

BUILD_PROGRAM = {
    **outcomes(
        [
            ErrorCode.CL_INVALID_PROGRAM,
            ErrorCode.CL_INVALID_VALUE,
            ErrorCode.CL_INVALID_DEVICE,
            ErrorCode.CL_INVALID_BINARY,
            ErrorCode.CL_INVALID_BUILD_OPTIONS,
            ErrorCode.CL_INVALID_OPERATION,
        ],
        CL_COMPILER_NOT_AVAILABLE=CompilerNotAvailableError,
        CL_BUILD_PROGRAM_FAILURE=BuildProgramFailureError,
    ),
    **RESOURCES
}

GET_BUILD_INFO = info_outcomes(
    ErrorCode.CL_INVALID_DEVICE, ErrorCode.CL_INVALID_PROGRAM
)

CREATE_KERNEL = {
    **outcomes(
        [
            ErrorCode.CL_INVALID_PROGRAM,
            ErrorCode.CL_INVALID_PROGRAM_EXECUTABLE,
            ErrorCode.CL_INVALID_VALUE,
        ],
        CL_INVALID_KERNEL_NAME=InvalidKernelNameError,
        CL_INVALID_KERNEL_DEFINITION=InvalidKernelDefinitionError,
    ),
    **RESOURCES
}

# The runtime checks the argument against the kernel's signature. A
# mismatch is a bug in the calling code.
SET_KERNEL_ARG = {
    **outcomes([
        ErrorCode.CL_INVALID_KERNEL,
        ErrorCode.CL_INVALID_ARG_INDEX,
        ErrorCode.CL_INVALID_ARG_VALUE,
        ErrorCode.CL_INVALID_MEM_OBJECT,
        ErrorCode.CL_INVALID_SAMPLER,
        ErrorCode.CL_INVALID_DEVICE_QUEUE,
        ErrorCode.CL_INVALID_ARG_SIZE,
        ErrorCode.CL_MAX_SIZE_RESTRICTION_EXCEEDED,
    ]),
    **RESOURCES
}


def encode(s):
    return s.encode("utf-8") if isinstance(s, str) else bytes(s)


class Program(RefCounted):
    cl_type = cl_program
    invalid_code = ErrorCode.CL_INVALID_PROGRAM
    info_fun = "clGetProgramInfo"
    info_fatal = (ErrorCode.CL_INVALID_PROGRAM_EXECUTABLE,)
    refcount_info = ProgramInfo.CL_PROGRAM_REFERENCE_COUNT

    @classmethod
    def create_with_source(cls, context, source):
        return cls.create_with_sources(context, [source])

    @classmethod
    def create_with_sources(cls, context, fragments):
        """Every fragment is passed with its length, so they may
        contain NUL characters."""
        fragments = [encode(f) for f in fragments]
        n = len(fragments)
        require(n > 0, "no source fragments")
        strings = (c_char_p * n)(*fragments)
        lengths = (c_size_t * n)(*[len(f) for f in fragments])
        handle = check_last(
            library().clCreateProgramWithSource,
            CREATE_WITH_SOURCE,
            context.handle,
            n,
            strings,
            lengths,
        )
        return cls(handle)

    @classmethod
    def create_with_il(cls, context, il):
        il = bytes(il)
        require(len(il) > 0, "empty intermediate language")
        buf = create_string_buffer(il, len(il))
        handle = check_last(
            library().clCreateProgramWithIL,
            CREATE_WITH_IL,
            context.handle,
            buf,
            len(il),
        )
        return cls(handle)

    def build(self, devices=None, options=""):
        """Compiles and links the program for ``devices``, or for all
        devices of its context if None. On BuildProgramFailureError the
        log is available from get_build_log."""
        if devices is None:
            n, devs = 0, None
        else:
            devices = list(devices)
            n, devs = len(devices), device_array(devices)
        opts = encode(options)
        try:
            check_call(
                library().clBuildProgram,
                BUILD_PROGRAM,
                self.handle,
                n,
                devs,
                opts,
                None,
                None,
            )
        except BuildProgramFailureError:
            logger.warning("Building %r with options %r failed", self, options)
            raise

    def get_build_info(self, device, attr):
        return get_info(
            library().clGetProgramBuildInfo,
            GET_BUILD_INFO,
            attr,
            self.handle,
            device.handle,
        )

    def get_build_log(self, device):
        return self.get_build_info(device, ProgramBuildInfo.CL_PROGRAM_BUILD_LOG)

    def get_build_status(self, device):
        return self.get_build_info(
            device, ProgramBuildInfo.CL_PROGRAM_BUILD_STATUS
        )

    def get_kernel_names(self):
        names = self.get_info(ProgramInfo.CL_PROGRAM_KERNEL_NAMES)
        return [n for n in names.split(";") if n]


LocalMemory = namedtuple("LocalMemory", ["nbytes"])
LocalMemory.__doc__ = "Size of a __local kernel argument."

CTYPES_VALUES = (_SimpleCData, Structure, Union, Array)


def kernel_arg(value):
    """Size and pointer of the raw representation of a kernel argument.
    """
    if isinstance(value, LocalMemory):
        return value.nbytes, None
    if isinstance(value, RefCounted):
        return sizeof(value.cl_type), byref(value.handle)
    if isinstance(value, CTYPES_VALUES):
        return sizeof(value), byref(value)
    # A plain int or float does not say how many bytes it should be.
    raise ProgrammerError(
        f"kernel argument {value!r} must be a ctypes value, "
        "a memory object or LocalMemory"
    )


class Kernel(RefCounted):
    cl_type = cl_kernel
    invalid_code = ErrorCode.CL_INVALID_KERNEL
    info_fun = "clGetKernelInfo"
    refcount_info = KernelInfo.CL_KERNEL_REFERENCE_COUNT

    @classmethod
    def create(cls, program, name):
        handle = check_last(
            library().clCreateKernel,
            CREATE_KERNEL,
            program.handle,
            encode(name),
        )
        return cls(handle)

    @property
    def function_name(self):
        return self.get_info(KernelInfo.CL_KERNEL_FUNCTION_NAME)

    @property
    def num_args(self):
        return self.get_info(KernelInfo.CL_KERNEL_NUM_ARGS)

    def set_arg(self, index, value):
        """Copies the raw bytes of ``value`` into argument slot
        ``index``."""
        size, ptr = kernel_arg(value)
        check_call(
            library().clSetKernelArg, SET_KERNEL_ARG,
            self.handle, index, size, ptr
        )

    def set_args(self, *values):
        for i, value in enumerate(values):
            self.set_arg(i, value)


create_program_with_source = Program.create_with_source
create_program_with_sources = Program.create_with_sources
create_program_with_il = Program.create_with_il
create_kernel = Kernel.create
