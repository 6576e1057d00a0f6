# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
#
# Events are the only ordering mechanism between commands of different
# queues, or within an out-of-order queue. An event can only wait for
# events that already exist, so the dependency graph has no cycles.
from oclbind.enums import (
    CommandExecutionStatus,
    ErrorCode,
    EventInfo,
    ProfilingInfo,
)
from oclbind.errors import (
    RESOURCES,
    ExecStatusError,
    check_call,
    outcomes,
    require,
)
from oclbind.handles import RefCounted
from oclbind.native import cl_event, cl_ulong, library
from oclbind.query import query_value

WAIT_FOR_EVENTS = {
    **outcomes(
        [
            ErrorCode.CL_INVALID_VALUE,
            ErrorCode.CL_INVALID_CONTEXT,
            ErrorCode.CL_INVALID_EVENT,
        ],
        CL_EXEC_STATUS_ERROR_FOR_EVENTS_IN_WAIT_LIST=ExecStatusError,
    ),
    **RESOURCES
}

GET_PROFILING_INFO = {
    **outcomes([
        ErrorCode.CL_PROFILING_INFO_NOT_AVAILABLE,
        ErrorCode.CL_INVALID_VALUE,
        ErrorCode.CL_INVALID_EVENT,
    ]),
    **RESOURCES
}


def wait_list_args(events):
    """Count and array arguments of a wait list. Empty lists are passed
    as NULL."""
    events = list(events)
    if not events:
        return 0, None
    return len(events), (cl_event * len(events))(*[e.handle for e in events])


def wait_for_events(events):
    """Blocks until all events are complete. If any of them terminated
    abnormally, ExecStatusError names the first one."""
    events = list(events)
    require(len(events) > 0, "nothing to wait for")
    n, arr = wait_list_args(events)
    try:
        check_call(library().clWaitForEvents, WAIT_FOR_EVENTS, n, arr)
    except ExecStatusError as e:
        for ev in events:
            status = ev.status
            if status < 0:
                e.event = ev
                e.status = status
                break
        raise


class Event(RefCounted):
    cl_type = cl_event
    invalid_code = ErrorCode.CL_INVALID_EVENT
    info_fun = "clGetEventInfo"
    refcount_info = EventInfo.CL_EVENT_REFERENCE_COUNT

    def __init__(self, handle, host=None):
        super().__init__(handle)
        # Host memory a pending transfer reads from or writes to.
        self.host = host

    def release(self):
        super().release()
        self.host = None

    @property
    def status(self):
        """CommandExecutionStatus, or a negative error code if the
        command terminated abnormally."""
        return self.get_info(EventInfo.CL_EVENT_COMMAND_EXECUTION_STATUS)

    @property
    def is_complete(self):
        return self.status == CommandExecutionStatus.CL_COMPLETE

    @property
    def command_type(self):
        return self.get_info(EventInfo.CL_EVENT_COMMAND_TYPE)

    def wait(self):
        wait_for_events([self])

    # Profiling. Only available for commands of queues created with
    # CL_QUEUE_PROFILING_ENABLE that have completed.
    def get_profiling_info(self, attr):
        val = query_value(
            library().clGetEventProfilingInfo,
            GET_PROFILING_INFO,
            cl_ulong,
            self.handle,
            attr.value,
        )
        return val.value

    def command_queued_time(self):
        return self.get_profiling_info(ProfilingInfo.CL_PROFILING_COMMAND_QUEUED)

    def command_submit_time(self):
        return self.get_profiling_info(ProfilingInfo.CL_PROFILING_COMMAND_SUBMIT)

    def command_start_time(self):
        return self.get_profiling_info(ProfilingInfo.CL_PROFILING_COMMAND_START)

    def command_end_time(self):
        return self.get_profiling_info(ProfilingInfo.CL_PROFILING_COMMAND_END)

    def command_complete_time(self):
        return self.get_profiling_info(
            ProfilingInfo.CL_PROFILING_COMMAND_COMPLETE
        )
