# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
#
# Typical use:
#
#     import oclbind as cl
#
#     platform = cl.get_platforms()[0]
#     device = platform.get_devices()[0]
#     with cl.Context.create([device], platform) as ctx:
#         ...
from oclbind.buffer import (
    Buffer,
    HostArray,
    create_buffer,
    create_buffer_with_data,
    host_array,
)
from oclbind.context import Context, create_context
from oclbind.enums import (
    ALL_DEVICE_TYPES,
    BuildStatus,
    CommandExecutionStatus,
    CommandQueueInfo,
    CommandQueueProperties,
    CommandType,
    ContextInfo,
    DeviceInfo,
    DeviceType,
    ErrorCode,
    EventInfo,
    KernelInfo,
    MemFlags,
    MemInfo,
    PlatformInfo,
    ProfilingInfo,
    ProgramBuildInfo,
    ProgramInfo,
)
from oclbind.errors import (
    AllocationError,
    BuildProgramFailureError,
    CompilerNotAvailableError,
    DeviceNotAvailableError,
    ExecStatusError,
    InvalidILError,
    InvalidKernelDefinitionError,
    InvalidKernelNameError,
    InvalidOperationError,
    OpenCLError,
    Outcome,
    OutOfDeviceMemoryError,
    OutOfMemoryError,
    OutOfResourcesError,
    ProgrammerError,
    UndocumentedStatusError,
)
from oclbind.event import Event, wait_for_events
from oclbind.native import (
    NameVersion,
    Version,
    cl_char,
    cl_double,
    cl_float,
    cl_int,
    cl_long,
    cl_short,
    cl_uchar,
    cl_uint,
    cl_ulong,
    cl_ushort,
)
from oclbind.platform import Device, Platform, get_platforms
from oclbind.program import (
    Kernel,
    LocalMemory,
    Program,
    create_kernel,
    create_program_with_il,
    create_program_with_source,
    create_program_with_sources,
)
from oclbind.queue import CommandQueue, create_command_queue
