# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
from oclbind.testing.mock_runtime import (
    SPIRV_MAGIC,
    Launch,
    MockDeviceInfo,
    MockRuntime,
)

__all__ = ["SPIRV_MAGIC", "Launch", "MockDeviceInfo", "MockRuntime"]
