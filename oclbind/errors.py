# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
#
# Classification of OpenCL status codes. Every wrapped entry point has
# an outcome table listing the statuses its documentation mentions.
# Statuses map to one of:
#
#   * Outcome.FATAL - the caller broke a precondition. ProgrammerError
#     is raised; it is not an OpenCLError and no code in this package
#     catches it.
#   * Outcome.IGNORED - the status is handed back to the call site.
#   * an OpenCLError subclass - a recoverable error, raised.
#
# A status missing from the table is API drift and raises
# UndocumentedStatusError.
from ctypes import byref
from enum import Enum
from oclbind.enums import ErrorCode
from oclbind.native import cl_int

import logging

logger = logging.getLogger(__name__)


class ProgrammerError(AssertionError):
    """Violated precondition. Fix the calling code, don't catch this."""


class UndocumentedStatusError(RuntimeError):
    """The runtime returned a status the binding does not know for the
    call, meaning the binding and the runtime are out of sync."""
    def __init__(self, function, status):
        super().__init__(f"{function} returned undocumented status {status}")
        self.function = function
        self.status = status


class OpenCLError(Exception):
    def __init__(self, code, function=None):
        msg = f"{code.name} ({code.value})"
        if function:
            msg = f"{function}: {msg}"
        super().__init__(msg)
        self.code = code
        self.function = function


class AllocationError(OpenCLError):
    pass


class OutOfMemoryError(AllocationError, MemoryError):
    """Out of host memory, in the runtime or in this package."""


class OutOfDeviceMemoryError(AllocationError):
    pass


class OutOfResourcesError(AllocationError):
    pass


class DeviceNotAvailableError(OpenCLError):
    pass


class CompilerNotAvailableError(OpenCLError):
    pass


class BuildProgramFailureError(OpenCLError):
    pass


class InvalidKernelNameError(OpenCLError):
    pass


class InvalidKernelDefinitionError(OpenCLError):
    pass


class InvalidILError(OpenCLError):
    pass


class InvalidOperationError(OpenCLError):
    pass


class ExecStatusError(OpenCLError):
    """A waited-for event terminated abnormally. ``event`` and
    ``status`` describe the first such event in the wait list."""
    def __init__(self, code, function=None, event=None, status=None):
        super().__init__(code, function)
        self.event = event
        self.status = status


class Outcome(Enum):
    FATAL = "fatal"
    IGNORED = "ignored"


FATAL = Outcome.FATAL
IGNORED = Outcome.IGNORED


def outcomes(fatal=(), **kw):
    """Builds an outcome table. ``fatal`` lists the statuses that are
    programmer errors, keyword arguments map status names to outcomes.
    """
    table = {code: FATAL for code in fatal}
    for name, outcome in kw.items():
        table[ErrorCode[name]] = outcome
    return table


# Statuses almost every entry point can return.
RESOURCES = outcomes(
    CL_OUT_OF_RESOURCES=OutOfResourcesError,
    CL_OUT_OF_HOST_MEMORY=OutOfMemoryError,
)


def retain_outcomes(invalid):
    return {invalid: FATAL, **RESOURCES}


def release_outcomes(invalid):
    return outcomes(
        [invalid],
        CL_OUT_OF_RESOURCES=IGNORED,
        CL_OUT_OF_HOST_MEMORY=IGNORED,
    )


def info_outcomes(*invalid):
    return {
        **outcomes([ErrorCode.CL_INVALID_VALUE, *invalid]),
        **RESOURCES
    }


def check(function, status, table):
    """Classifies ``status`` returned by ``function``. Returns None on
    success and the ErrorCode for ignored statuses."""
    if status == ErrorCode.CL_SUCCESS:
        return None
    try:
        code = ErrorCode(status)
    except ValueError:
        code = None
    outcome = table.get(code)
    if outcome is None:
        logger.error("%s returned undocumented status %s", function, status)
        raise UndocumentedStatusError(function, code or status)
    if outcome is FATAL:
        raise ProgrammerError(f"{function}: {code.name} ({code.value})")
    if outcome is IGNORED:
        logger.debug("%s: ignoring %s", function, code.name)
        return code
    raise outcome(code, function)


def check_call(fun, table, *args):
    return check(fun.__name__, fun(*args), table)


def check_last(fun, table, *args):
    """Calls a function whose last parameter is an errcode_ret
    pointer."""
    err = cl_int()
    ret = fun(*args, byref(err))
    check(fun.__name__, err.value, table)
    return ret


def require(cond, msg):
    """Local precondition, checked before calling into the runtime."""
    if not cond:
        raise ProgrammerError(msg)
