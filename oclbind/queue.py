# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
#
# Command queues and the commands enqueued on them. Every enqueue
# returns an Event; offsets and counts are in buffer elements.
from ctypes import _SimpleCData, byref, c_size_t, sizeof
from oclbind.buffer import host_array
from oclbind.enums import CommandQueueInfo, CommandQueueProperties, ErrorCode
from oclbind.errors import (
    RESOURCES,
    ExecStatusError,
    InvalidOperationError,
    OutOfDeviceMemoryError,
    check_call,
    check_last,
    outcomes,
    require,
)
from oclbind.event import Event, wait_list_args
from oclbind.handles import RefCounted
from oclbind.native import (
    CL_FALSE,
    CL_QUEUE_PROPERTIES,
    CL_TRUE,
    cl_command_queue,
    cl_event,
    cl_queue_properties,
    library,
)
from oclbind.platform import Device

import logging

logger = logging.getLogger(__name__)

MAX_WORK_DIMS = 3

CREATE_QUEUE = {
    **outcomes([
        ErrorCode.CL_INVALID_CONTEXT,
        ErrorCode.CL_INVALID_DEVICE,
        ErrorCode.CL_INVALID_VALUE,
        ErrorCode.CL_INVALID_QUEUE_PROPERTIES,
    ]),
    **RESOURCES
}

FINISH = {
    **outcomes([ErrorCode.CL_INVALID_COMMAND_QUEUE]),
    **RESOURCES
}

ENQUEUE_ND_RANGE_KERNEL = {
    **outcomes(
        [
            ErrorCode.CL_INVALID_PROGRAM_EXECUTABLE,
            ErrorCode.CL_INVALID_COMMAND_QUEUE,
            ErrorCode.CL_INVALID_KERNEL,
            ErrorCode.CL_INVALID_CONTEXT,
            ErrorCode.CL_INVALID_KERNEL_ARGS,
            ErrorCode.CL_INVALID_WORK_DIMENSION,
            ErrorCode.CL_INVALID_GLOBAL_WORK_SIZE,
            ErrorCode.CL_INVALID_GLOBAL_OFFSET,
            ErrorCode.CL_INVALID_WORK_GROUP_SIZE,
            ErrorCode.CL_INVALID_WORK_ITEM_SIZE,
            ErrorCode.CL_MISALIGNED_SUB_BUFFER_OFFSET,
            ErrorCode.CL_INVALID_IMAGE_SIZE,
            ErrorCode.CL_IMAGE_FORMAT_NOT_SUPPORTED,
            ErrorCode.CL_INVALID_EVENT_WAIT_LIST,
            ErrorCode.CL_INVALID_OPERATION,
        ],
        CL_MEM_OBJECT_ALLOCATION_FAILURE=OutOfDeviceMemoryError,
    ),
    **RESOURCES
}

# Shared by reads, writes and fills. A blocking transfer whose wait
# list contains a failed event reports that instead of running.
ENQUEUE_TRANSFER = {
    **outcomes(
        [
            ErrorCode.CL_INVALID_COMMAND_QUEUE,
            ErrorCode.CL_INVALID_CONTEXT,
            ErrorCode.CL_INVALID_MEM_OBJECT,
            ErrorCode.CL_INVALID_VALUE,
            ErrorCode.CL_INVALID_EVENT_WAIT_LIST,
            ErrorCode.CL_MISALIGNED_SUB_BUFFER_OFFSET,
        ],
        CL_EXEC_STATUS_ERROR_FOR_EVENTS_IN_WAIT_LIST=ExecStatusError,
        CL_INVALID_OPERATION=InvalidOperationError,
        CL_MEM_OBJECT_ALLOCATION_FAILURE=OutOfDeviceMemoryError,
    ),
    **RESOURCES
}


def work_sizes(vals):
    if vals is None:
        return None
    return (c_size_t * len(vals))(*vals)


class CommandQueue(RefCounted):
    cl_type = cl_command_queue
    invalid_code = ErrorCode.CL_INVALID_COMMAND_QUEUE
    info_fun = "clGetCommandQueueInfo"
    refcount_info = CommandQueueInfo.CL_QUEUE_REFERENCE_COUNT

    @classmethod
    def create(cls, context, device, properties=0):
        props = (cl_queue_properties * 3)(
            CL_QUEUE_PROPERTIES, int(properties), 0
        )
        handle = check_last(
            library().clCreateCommandQueueWithProperties,
            CREATE_QUEUE,
            context.handle,
            device.handle,
            props,
        )
        queue = cls(handle)
        logger.debug(
            "Created %r on %r with %s", queue, device,
            CommandQueueProperties(properties)
        )
        return queue

    @property
    def properties(self):
        return self.get_info(CommandQueueInfo.CL_QUEUE_PROPERTIES)

    @property
    def device(self):
        return Device(self.get_info(CommandQueueInfo.CL_QUEUE_DEVICE))

    def flush(self):
        """Submits all queued commands to the device without waiting."""
        check_call(library().clFlush, FINISH, self.handle)

    def finish(self):
        """Blocks until all queued commands are complete."""
        check_call(library().clFinish, FINISH, self.handle)

    def enqueue_nd_range_kernel(
        self,
        kernel,
        global_work_offset,
        global_work_size,
        local_work_size=None,
        wait_list=(),
    ):
        """Launches ``kernel`` over a 1 to 3 dimensional index space.
        ``global_work_offset`` and ``local_work_size`` may be None. If
        given, they must have as many dimensions as
        ``global_work_size``."""
        n_dims = len(global_work_size)
        require(
            1 <= n_dims <= MAX_WORK_DIMS,
            f"{n_dims} work dimensions, must be 1 to {MAX_WORK_DIMS}"
        )
        for name, sizes in [
            ("global_work_offset", global_work_offset),
            ("local_work_size", local_work_size),
        ]:
            require(
                sizes is None or len(sizes) == n_dims,
                f"{name} must have {n_dims} dimension(s)"
            )
        n_events, events = wait_list_args(wait_list)
        ev = cl_event()
        check_call(
            library().clEnqueueNDRangeKernel,
            ENQUEUE_ND_RANGE_KERNEL,
            self.handle,
            kernel.handle,
            n_dims,
            work_sizes(global_work_offset),
            work_sizes(global_work_size),
            work_sizes(local_work_size),
            n_events,
            events,
            byref(ev),
        )
        return Event(ev)

    def enqueue_read_buffer(
        self, buffer, blocking, offset, data, wait_list=()
    ):
        """Reads ``len(data)`` elements starting at element ``offset``
        into ``data``, which must be writable."""
        host = host_array(data, writable=True)
        return self._transfer(
            library().clEnqueueReadBuffer,
            buffer, blocking, offset, host, wait_list
        )

    def enqueue_write_buffer(
        self, buffer, blocking, offset, data, wait_list=()
    ):
        """Writes all elements of ``data`` starting at element
        ``offset``. A non-blocking write reads ``data`` until the event
        completes."""
        host = host_array(data)
        return self._transfer(
            library().clEnqueueWriteBuffer,
            buffer, blocking, offset, host, wait_list
        )

    def _transfer(self, fun, buffer, blocking, offset, host, wait_list):
        buffer.check_host(host)
        byte_offset, nbytes = buffer.byte_range(offset, host.count)
        n_events, events = wait_list_args(wait_list)
        ev = cl_event()
        check_call(
            fun,
            ENQUEUE_TRANSFER,
            self.handle,
            buffer.handle,
            CL_TRUE if blocking else CL_FALSE,
            byte_offset,
            nbytes,
            host.ptr,
            n_events,
            events,
            byref(ev),
        )
        # The runtime accesses host memory until the command completes.
        return Event(ev, host=None if blocking else host.owner)

    def enqueue_fill_buffer(self, buffer, pattern, offset, count, wait_list=()):
        """Sets ``count`` elements starting at element ``offset`` to
        ``pattern``, a value of the buffer's element type."""
        if not isinstance(pattern, _SimpleCData):
            pattern = buffer.el_type(pattern)
        require(
            sizeof(pattern) == sizeof(buffer.el_type),
            f"pattern is {sizeof(pattern)} bytes, "
            f"buffer elements {sizeof(buffer.el_type)}"
        )
        byte_offset, nbytes = buffer.byte_range(offset, count)
        n_events, events = wait_list_args(wait_list)
        ev = cl_event()
        check_call(
            library().clEnqueueFillBuffer,
            ENQUEUE_TRANSFER,
            self.handle,
            buffer.handle,
            byref(pattern),
            sizeof(pattern),
            byte_offset,
            nbytes,
            n_events,
            events,
            byref(ev),
        )
        return Event(ev)


create_command_queue = CommandQueue.create
