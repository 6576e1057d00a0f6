# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
from oclbind.enums import ContextInfo, ErrorCode
from oclbind.errors import (
    RESOURCES,
    DeviceNotAvailableError,
    check_last,
    outcomes,
    require,
)
from oclbind.handles import RefCounted
from oclbind.native import (
    CL_CONTEXT_PLATFORM,
    cl_context,
    cl_context_properties,
    cl_device_id,
    library,
)
from oclbind.platform import Device

import logging

logger = logging.getLogger(__name__)

CREATE_CONTEXT = {
    **outcomes(
        [
            ErrorCode.CL_INVALID_PLATFORM,
            ErrorCode.CL_INVALID_PROPERTY,
            ErrorCode.CL_INVALID_VALUE,
            ErrorCode.CL_INVALID_DEVICE,
        ],
        CL_DEVICE_NOT_AVAILABLE=DeviceNotAvailableError,
    ),
    **RESOURCES
}


def device_array(devices):
    return (cl_device_id * len(devices))(*[d.handle for d in devices])


class Context(RefCounted):
    cl_type = cl_context
    invalid_code = ErrorCode.CL_INVALID_CONTEXT
    info_fun = "clGetContextInfo"
    refcount_info = ContextInfo.CL_CONTEXT_REFERENCE_COUNT

    @classmethod
    def create(cls, devices, platform=None):
        """Creates a context spanning ``devices``, optionally pinned to
        ``platform``."""
        devices = list(devices)
        require(len(devices) > 0, "a context needs at least one device")

        # Zero-terminated key/value list
        props = []
        if platform is not None:
            props.extend([CL_CONTEXT_PLATFORM, platform.address])
        props.append(0)
        cl_props = (cl_context_properties * len(props))(*props)

        handle = check_last(
            library().clCreateContext,
            CREATE_CONTEXT,
            cl_props,
            len(devices),
            device_array(devices),
            None,
            None,
        )
        ctx = cls(handle)
        logger.debug("Created %r for %d device(s)", ctx, len(devices))
        return ctx

    @property
    def devices(self):
        return [Device(h) for h in self.get_info(ContextInfo.CL_CONTEXT_DEVICES)]


create_context = Context.create
