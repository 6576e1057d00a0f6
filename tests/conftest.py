# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
from oclbind.native import use_library
from oclbind.testing import MockDeviceInfo, MockRuntime
from mock_kernels import copy, saxpy

import oclbind as cl
import pytest

def pytest_addoption(parser):
    parser.addoption(
        "--platform-index",
        action="store",
        default=0,
        help="Platform index for tests"
    )

@pytest.fixture
def platform_index(request):
    return int(request.config.getoption("--platform-index"))

@pytest.fixture
def mock():
    """A runtime with a GPU platform and a CPU platform."""
    mock = MockRuntime()
    mock.add_platform_with_devices("Mock GPU Platform", [
        MockDeviceInfo(name="Mock GPU 0"),
        MockDeviceInfo(name="Mock GPU 1"),
    ])
    mock.add_platform_with_devices("Mock CPU Platform", [
        MockDeviceInfo(
            name="Mock CPU",
            type=cl.DeviceType.CL_DEVICE_TYPE_CPU,
            version=(2, 0),
            ils=()
        ),
    ], version=(2, 0))
    mock.register_kernel("saxpy", saxpy)
    mock.register_kernel("copy", copy)
    with use_library(mock):
        yield mock

@pytest.fixture
def platform(mock, platform_index):
    return cl.get_platforms()[platform_index]

@pytest.fixture
def device(platform):
    return platform.get_devices()[0]

@pytest.fixture
def context(platform, device):
    with cl.Context.create([device], platform) as ctx:
        yield ctx

@pytest.fixture
def queue(context, device):
    with cl.CommandQueue.create(context, device) as q:
        yield q

@pytest.fixture
def profiling_queue(context, device):
    props = cl.CommandQueueProperties.CL_QUEUE_PROFILING_ENABLE
    with cl.CommandQueue.create(context, device, props) as q:
        yield q
