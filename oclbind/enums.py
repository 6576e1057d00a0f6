# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
#
# Level 1: Pythonic enumerations and bitfields. Values are the numeric
# values of the OpenCL headers.
from ctypes import POINTER, c_char_p, c_size_t, c_void_p
from enum import Enum, IntEnum, IntFlag
from oclbind.native import (
    NameVersion,
    cl_bool,
    cl_build_status,
    cl_command_execution_status,
    cl_command_queue,
    cl_command_queue_properties,
    cl_command_type,
    cl_context,
    cl_context_properties,
    cl_device_id,
    cl_device_type,
    cl_mem_flags,
    cl_platform_id,
    cl_program,
    cl_uint,
    cl_ulong,
    cl_version,
    decode_version,
)


class InfoEnum(Enum):
    """Info selector whose members also carry the ctypes type of the
    value the runtime returns for them."""
    def __new__(cls, val, tp):
        obj = object.__new__(cls)
        obj._value_ = val
        obj.type = tp
        return obj


class ErrorCode(IntEnum):
    CL_SUCCESS = 0
    CL_DEVICE_NOT_FOUND = -1
    CL_DEVICE_NOT_AVAILABLE = -2
    CL_COMPILER_NOT_AVAILABLE = -3
    CL_MEM_OBJECT_ALLOCATION_FAILURE = -4
    CL_OUT_OF_RESOURCES = -5
    CL_OUT_OF_HOST_MEMORY = -6
    CL_PROFILING_INFO_NOT_AVAILABLE = -7
    CL_MEM_COPY_OVERLAP = -8
    CL_IMAGE_FORMAT_MISMATCH = -9
    CL_IMAGE_FORMAT_NOT_SUPPORTED = -10
    CL_BUILD_PROGRAM_FAILURE = -11
    CL_MAP_FAILURE = -12
    CL_MISALIGNED_SUB_BUFFER_OFFSET = -13
    CL_EXEC_STATUS_ERROR_FOR_EVENTS_IN_WAIT_LIST = -14
    CL_COMPILE_PROGRAM_FAILURE = -15
    CL_LINKER_NOT_AVAILABLE = -16
    CL_LINK_PROGRAM_FAILURE = -17
    CL_DEVICE_PARTITION_FAILED = -18
    CL_KERNEL_ARG_INFO_NOT_AVAILABLE = -19
    CL_INVALID_VALUE = -30
    CL_INVALID_DEVICE_TYPE = -31
    CL_INVALID_PLATFORM = -32
    CL_INVALID_DEVICE = -33
    CL_INVALID_CONTEXT = -34
    CL_INVALID_QUEUE_PROPERTIES = -35
    CL_INVALID_COMMAND_QUEUE = -36
    CL_INVALID_HOST_PTR = -37
    CL_INVALID_MEM_OBJECT = -38
    CL_INVALID_IMAGE_FORMAT_DESCRIPTOR = -39
    CL_INVALID_IMAGE_SIZE = -40
    CL_INVALID_SAMPLER = -41
    CL_INVALID_BINARY = -42
    CL_INVALID_BUILD_OPTIONS = -43
    CL_INVALID_PROGRAM = -44
    CL_INVALID_PROGRAM_EXECUTABLE = -45
    CL_INVALID_KERNEL_NAME = -46
    CL_INVALID_KERNEL_DEFINITION = -47
    CL_INVALID_KERNEL = -48
    CL_INVALID_ARG_INDEX = -49
    CL_INVALID_ARG_VALUE = -50
    CL_INVALID_ARG_SIZE = -51
    CL_INVALID_KERNEL_ARGS = -52
    CL_INVALID_WORK_DIMENSION = -53
    CL_INVALID_WORK_GROUP_SIZE = -54
    CL_INVALID_WORK_ITEM_SIZE = -55
    CL_INVALID_GLOBAL_OFFSET = -56
    CL_INVALID_EVENT_WAIT_LIST = -57
    CL_INVALID_EVENT = -58
    CL_INVALID_OPERATION = -59
    CL_INVALID_GL_OBJECT = -60
    CL_INVALID_BUFFER_SIZE = -61
    CL_INVALID_MIP_LEVEL = -62
    CL_INVALID_GLOBAL_WORK_SIZE = -63
    CL_INVALID_PROPERTY = -64
    CL_INVALID_IMAGE_DESCRIPTOR = -65
    CL_INVALID_COMPILER_OPTIONS = -66
    CL_INVALID_LINKER_OPTIONS = -67
    CL_INVALID_DEVICE_PARTITION_COUNT = -68
    CL_INVALID_PIPE_SIZE = -69
    CL_INVALID_DEVICE_QUEUE = -70
    CL_INVALID_SPEC_ID = -71
    CL_MAX_SIZE_RESTRICTION_EXCEEDED = -72
    # cl_khr_icd: the ICD loader found no vendor platforms.
    CL_PLATFORM_NOT_FOUND_KHR = -1001


########################################################################
# Bitfields. IntFlag keeps bits it has no name for, so values read
# from the runtime round-trip unchanged.
########################################################################
class DeviceType(IntFlag):
    CL_DEVICE_TYPE_DEFAULT = 1 << 0
    CL_DEVICE_TYPE_CPU = 1 << 1
    CL_DEVICE_TYPE_GPU = 1 << 2
    CL_DEVICE_TYPE_ACCELERATOR = 1 << 3
    CL_DEVICE_TYPE_CUSTOM = 1 << 4


ALL_DEVICE_TYPES = (
    DeviceType.CL_DEVICE_TYPE_CPU
    | DeviceType.CL_DEVICE_TYPE_GPU
    | DeviceType.CL_DEVICE_TYPE_ACCELERATOR
)


class CommandQueueProperties(IntFlag):
    CL_QUEUE_OUT_OF_ORDER_EXEC_MODE_ENABLE = 1 << 0
    CL_QUEUE_PROFILING_ENABLE = 1 << 1
    CL_QUEUE_ON_DEVICE = 1 << 2
    CL_QUEUE_ON_DEVICE_DEFAULT = 1 << 3


class MemFlags(IntFlag):
    CL_MEM_READ_WRITE = 1 << 0
    CL_MEM_WRITE_ONLY = 1 << 1
    CL_MEM_READ_ONLY = 1 << 2
    CL_MEM_USE_HOST_PTR = 1 << 3
    CL_MEM_ALLOC_HOST_PTR = 1 << 4
    CL_MEM_COPY_HOST_PTR = 1 << 5
    # Bit 6 is reserved.
    CL_MEM_HOST_WRITE_ONLY = 1 << 7
    CL_MEM_HOST_READ_ONLY = 1 << 8
    CL_MEM_HOST_NO_ACCESS = 1 << 9
    CL_MEM_SVM_FINE_GRAIN_BUFFER = 1 << 10
    CL_MEM_SVM_ATOMICS = 1 << 11
    CL_MEM_KERNEL_READ_AND_WRITE = 1 << 12


########################################################################
# Plain enumerations
########################################################################
class BuildStatus(IntEnum):
    CL_BUILD_SUCCESS = 0
    CL_BUILD_NONE = -1
    CL_BUILD_ERROR = -2
    CL_BUILD_IN_PROGRESS = -3


class CommandExecutionStatus(IntEnum):
    CL_COMPLETE = 0x0
    CL_RUNNING = 0x1
    CL_SUBMITTED = 0x2
    CL_QUEUED = 0x3


class CommandType(IntEnum):
    CL_COMMAND_NDRANGE_KERNEL = 0x11F0
    CL_COMMAND_TASK = 0x11F1
    CL_COMMAND_NATIVE_KERNEL = 0x11F2
    CL_COMMAND_READ_BUFFER = 0x11F3
    CL_COMMAND_WRITE_BUFFER = 0x11F4
    CL_COMMAND_COPY_BUFFER = 0x11F5
    CL_COMMAND_MARKER = 0x11FE
    CL_COMMAND_USER = 0x1204
    CL_COMMAND_FILL_BUFFER = 0x1207


########################################################################
# Info selectors
########################################################################
class PlatformInfo(InfoEnum):
    CL_PLATFORM_PROFILE = 0x0900, c_char_p
    CL_PLATFORM_VERSION = 0x0901, c_char_p
    CL_PLATFORM_NAME = 0x0902, c_char_p
    CL_PLATFORM_VENDOR = 0x0903, c_char_p
    CL_PLATFORM_EXTENSIONS = 0x0904, c_char_p
    CL_PLATFORM_NUMERIC_VERSION = 0x0906, cl_version


class DeviceInfo(InfoEnum):
    CL_DEVICE_TYPE = 0x1000, cl_device_type
    CL_DEVICE_VENDOR_ID = 0x1001, cl_uint
    CL_DEVICE_MAX_COMPUTE_UNITS = 0x1002, cl_uint
    CL_DEVICE_MAX_WORK_ITEM_DIMENSIONS = 0x1003, cl_uint
    CL_DEVICE_MAX_WORK_GROUP_SIZE = 0x1004, c_size_t
    CL_DEVICE_MAX_WORK_ITEM_SIZES = 0x1005, POINTER(c_size_t)
    CL_DEVICE_MAX_CLOCK_FREQUENCY = 0x100C, cl_uint
    CL_DEVICE_ADDRESS_BITS = 0x100D, cl_uint
    CL_DEVICE_MAX_MEM_ALLOC_SIZE = 0x1010, cl_ulong
    CL_DEVICE_GLOBAL_MEM_SIZE = 0x101F, cl_ulong
    CL_DEVICE_LOCAL_MEM_SIZE = 0x1023, cl_ulong
    CL_DEVICE_PROFILING_TIMER_RESOLUTION = 0x1025, c_size_t
    CL_DEVICE_AVAILABLE = 0x1027, cl_bool
    CL_DEVICE_COMPILER_AVAILABLE = 0x1028, cl_bool
    CL_DEVICE_NAME = 0x102B, c_char_p
    CL_DEVICE_VENDOR = 0x102C, c_char_p
    CL_DRIVER_VERSION = 0x102D, c_char_p
    CL_DEVICE_PROFILE = 0x102E, c_char_p
    CL_DEVICE_VERSION = 0x102F, c_char_p
    CL_DEVICE_EXTENSIONS = 0x1030, c_char_p
    CL_DEVICE_PLATFORM = 0x1031, cl_platform_id
    CL_DEVICE_IL_VERSION = 0x105B, c_char_p
    CL_DEVICE_NUMERIC_VERSION = 0x105E, cl_version
    CL_DEVICE_ILS_WITH_VERSION = 0x1061, POINTER(NameVersion)


class ContextInfo(InfoEnum):
    CL_CONTEXT_REFERENCE_COUNT = 0x1080, cl_uint
    CL_CONTEXT_DEVICES = 0x1081, POINTER(cl_device_id)
    CL_CONTEXT_PROPERTIES = 0x1082, POINTER(cl_context_properties)
    CL_CONTEXT_NUM_DEVICES = 0x1083, cl_uint


class CommandQueueInfo(InfoEnum):
    CL_QUEUE_CONTEXT = 0x1090, cl_context
    CL_QUEUE_DEVICE = 0x1091, cl_device_id
    CL_QUEUE_REFERENCE_COUNT = 0x1092, cl_uint
    CL_QUEUE_PROPERTIES = 0x1093, cl_command_queue_properties


class MemInfo(InfoEnum):
    CL_MEM_FLAGS = 0x1101, cl_mem_flags
    CL_MEM_SIZE = 0x1102, c_size_t
    CL_MEM_HOST_PTR = 0x1103, c_void_p
    CL_MEM_REFERENCE_COUNT = 0x1105, cl_uint
    CL_MEM_CONTEXT = 0x1106, cl_context


class ProgramInfo(InfoEnum):
    CL_PROGRAM_REFERENCE_COUNT = 0x1160, cl_uint
    CL_PROGRAM_CONTEXT = 0x1161, cl_context
    CL_PROGRAM_NUM_DEVICES = 0x1162, cl_uint
    CL_PROGRAM_DEVICES = 0x1163, POINTER(cl_device_id)
    CL_PROGRAM_SOURCE = 0x1164, c_char_p
    CL_PROGRAM_NUM_KERNELS = 0x1167, c_size_t
    CL_PROGRAM_KERNEL_NAMES = 0x1168, c_char_p


class ProgramBuildInfo(InfoEnum):
    CL_PROGRAM_BUILD_STATUS = 0x1181, cl_build_status
    CL_PROGRAM_BUILD_OPTIONS = 0x1182, c_char_p
    CL_PROGRAM_BUILD_LOG = 0x1183, c_char_p


class KernelInfo(InfoEnum):
    CL_KERNEL_FUNCTION_NAME = 0x1190, c_char_p
    CL_KERNEL_NUM_ARGS = 0x1191, cl_uint
    CL_KERNEL_REFERENCE_COUNT = 0x1192, cl_uint
    CL_KERNEL_CONTEXT = 0x1193, cl_context
    CL_KERNEL_PROGRAM = 0x1194, cl_program


class EventInfo(InfoEnum):
    CL_EVENT_COMMAND_QUEUE = 0x11D0, cl_command_queue
    CL_EVENT_COMMAND_TYPE = 0x11D1, cl_command_type
    CL_EVENT_REFERENCE_COUNT = 0x11D2, cl_uint
    CL_EVENT_COMMAND_EXECUTION_STATUS = 0x11D3, cl_command_execution_status
    CL_EVENT_CONTEXT = 0x11D4, cl_context


class ProfilingInfo(InfoEnum):
    CL_PROFILING_COMMAND_QUEUED = 0x1280, cl_ulong
    CL_PROFILING_COMMAND_SUBMIT = 0x1281, cl_ulong
    CL_PROFILING_COMMAND_START = 0x1282, cl_ulong
    CL_PROFILING_COMMAND_END = 0x1283, cl_ulong
    CL_PROFILING_COMMAND_COMPLETE = 0x1284, cl_ulong


def _execution_status(val):
    # Negative values are error codes of abnormally terminated commands.
    if val < 0:
        return ErrorCode(val) if val in ErrorCode._value2member_map_ else val
    return CommandExecutionStatus(val)


cl_type_to_python_type = {
    cl_bool: bool,
    cl_build_status: BuildStatus,
    cl_command_execution_status: _execution_status,
    cl_command_queue_properties: CommandQueueProperties,
    cl_command_type: CommandType,
    cl_device_type: DeviceType,
    cl_mem_flags: MemFlags,
    cl_version: decode_version,
}
