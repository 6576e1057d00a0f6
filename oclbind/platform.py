# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
#
# Platform and device discovery. Neither platforms nor root devices are
# reference counted, so their wrappers have no retain/release.
from oclbind.enums import (
    ALL_DEVICE_TYPES,
    DeviceInfo,
    ErrorCode,
    PlatformInfo,
)
from oclbind.errors import IGNORED, RESOURCES, OutOfMemoryError, outcomes
from oclbind.handles import Wrapper
from oclbind.native import Version, cl_device_id, cl_platform_id, library
from oclbind.query import enumerate_ids

import re

GET_PLATFORM_IDS = outcomes(
    [ErrorCode.CL_INVALID_VALUE],
    CL_OUT_OF_HOST_MEMORY=OutOfMemoryError,
    CL_PLATFORM_NOT_FOUND_KHR=IGNORED,
)

GET_DEVICE_IDS = {
    **outcomes(
        [
            ErrorCode.CL_INVALID_PLATFORM,
            ErrorCode.CL_INVALID_DEVICE_TYPE,
            ErrorCode.CL_INVALID_VALUE,
        ],
        CL_DEVICE_NOT_FOUND=IGNORED,
    ),
    **RESOURCES
}

# Selectors older runtimes reject with CL_INVALID_VALUE, which would be
# a programmer error.
MIN_VERSIONS = {
    PlatformInfo.CL_PLATFORM_NUMERIC_VERSION: (3, 0),
    DeviceInfo.CL_DEVICE_IL_VERSION: (2, 1),
    DeviceInfo.CL_DEVICE_NUMERIC_VERSION: (3, 0),
    DeviceInfo.CL_DEVICE_ILS_WITH_VERSION: (3, 0),
}


def parse_version(s):
    """Parses "OpenCL <major>.<minor> <rest>" version strings."""
    m = re.match(r"OpenCL (\d+)\.(\d+)", s)
    if not m:
        return Version(0, 0, 0)
    return Version(int(m.group(1)), int(m.group(2)), 0)


def get_platforms():
    """All platforms of the runtime, possibly none."""
    ids = enumerate_ids(
        library().clGetPlatformIDs, GET_PLATFORM_IDS, cl_platform_id
    )
    return [Platform(h) for h in ids]


class Discovered(Wrapper):
    version_info = None

    @property
    def version(self):
        return parse_version(self.get_info(self.version_info))

    def get_details(self):
        """Every info selector the reported OpenCL version supports."""
        major, minor, _ = self.version
        return {
            attr: self.get_info(attr)
            for attr in type(self.version_info)
            if MIN_VERSIONS.get(attr, (0, 0)) <= (major, minor)
        }


class Platform(Discovered):
    cl_type = cl_platform_id
    invalid_code = ErrorCode.CL_INVALID_PLATFORM
    info_fun = "clGetPlatformInfo"
    version_info = PlatformInfo.CL_PLATFORM_VERSION

    @property
    def name(self):
        return self.get_info(PlatformInfo.CL_PLATFORM_NAME)

    def get_devices(self, device_type=ALL_DEVICE_TYPES):
        """Devices of the given type(s). A platform without matching
        devices gives an empty list, not an error."""
        ids = enumerate_ids(
            library().clGetDeviceIDs,
            GET_DEVICE_IDS,
            cl_device_id,
            self.handle,
            int(device_type),
        )
        return [Device(h) for h in ids]


class Device(Discovered):
    cl_type = cl_device_id
    invalid_code = ErrorCode.CL_INVALID_DEVICE
    info_fun = "clGetDeviceInfo"
    version_info = DeviceInfo.CL_DEVICE_VERSION

    @property
    def name(self):
        return self.get_info(DeviceInfo.CL_DEVICE_NAME)

    @property
    def type(self):
        return self.get_info(DeviceInfo.CL_DEVICE_TYPE)

    @property
    def max_compute_units(self):
        return self.get_info(DeviceInfo.CL_DEVICE_MAX_COMPUTE_UNITS)

    @property
    def platform(self):
        return Platform(self.get_info(DeviceInfo.CL_DEVICE_PLATFORM))

    def get_ils_with_version(self):
        """Intermediate languages the device accepts, as NameVersion
        records."""
        return self.get_info(DeviceInfo.CL_DEVICE_ILS_WITH_VERSION)
