# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
from ctypes import sizeof
from oclbind.native import (
    LIBRARY_ENV,
    PROTOTYPES,
    NameVersion,
    Version,
    decode_version,
    encode_version,
    library,
    library_name,
    load_library,
    use_library,
)
from oclbind.testing import MockRuntime
from pytest import raises

ENTRY_POINTS = """
clGetPlatformIDs clGetPlatformInfo clGetDeviceIDs clGetDeviceInfo
clCreateContext clRetainContext clReleaseContext clGetContextInfo
clCreateCommandQueueWithProperties clRetainCommandQueue
clReleaseCommandQueue clGetCommandQueueInfo clFlush clFinish
clCreateProgramWithSource clCreateProgramWithIL clRetainProgram
clReleaseProgram clBuildProgram clGetProgramInfo clGetProgramBuildInfo
clCreateKernel clRetainKernel clReleaseKernel clSetKernelArg
clGetKernelInfo clCreateBuffer clRetainMemObject clReleaseMemObject
clGetMemObjectInfo clEnqueueNDRangeKernel clEnqueueReadBuffer
clEnqueueWriteBuffer clEnqueueFillBuffer clWaitForEvents clRetainEvent
clReleaseEvent clGetEventInfo clGetEventProfilingInfo
""".split()

def test_prototypes():
    assert set(PROTOTYPES) == set(ENTRY_POINTS)

def test_mock_has_all_entry_points():
    for name in PROTOTYPES:
        assert callable(getattr(MockRuntime(), name))
        assert getattr(MockRuntime(), name).__name__ == name

def test_library_name_from_env(monkeypatch):
    monkeypatch.setenv(LIBRARY_ENV, "libVendorOpenCL.so.1")
    assert library_name() == "libVendorOpenCL.so.1"

def test_load_missing_library():
    with raises(OSError):
        load_library("/nonexistent/libOpenCL.so")

def test_use_library_restores(mock):
    other = MockRuntime()
    with use_library(other):
        assert library() is other
    assert library() is mock

def test_version_packing():
    assert encode_version(3, 0) == 3 << 22
    assert decode_version(encode_version(2, 1, 7)) == Version(2, 1, 7)
    assert decode_version(0xFFFFFFFF) == Version(1023, 1023, 4095)

def test_name_version_layout():
    assert sizeof(NameVersion) == 68
    nv = NameVersion(encode_version(1, 2), b"SPIR-V")
    assert nv.name == "SPIR-V"
    assert nv.numeric_version == Version(1, 2, 0)
