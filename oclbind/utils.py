# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
#
# Pretty printing of info dicts.
from enum import Enum
from humanize import naturalsize
from oclbind.enums import DeviceInfo, MemInfo
from oclbind.native import NameVersion, Version, address_of
from os import get_terminal_size
from sys import stdout
from textwrap import TextWrapper

KEY_LEN = 40
INDENT_STR = " " * 4

BYTE_INFOS = {
    DeviceInfo.CL_DEVICE_MAX_MEM_ALLOC_SIZE,
    DeviceInfo.CL_DEVICE_LOCAL_MEM_SIZE,
    DeviceInfo.CL_DEVICE_GLOBAL_MEM_SIZE,
    MemInfo.CL_MEM_SIZE,
}


def format_value(key, val):
    if key in BYTE_INFOS:
        return naturalsize(val, binary=True)
    if isinstance(val, Enum):
        return val.name or str(val.value)
    if hasattr(type(val), "contents"):
        return "0x%x" % address_of(val)
    if isinstance(val, Version):
        return "%d.%d.%d" % val
    if isinstance(val, list):
        if val and isinstance(val[0], NameVersion):
            return ", ".join(
                "%s %d.%d.%d" % (nv.name, *nv.numeric_version) for nv in val
            )
        return ", ".join(str(v) for v in val)
    return val


def pp_enum_val(wrapper, key, val):
    val = format_value(key, val)
    if isinstance(val, str) and "\n" in val:
        val = val.strip()
        val = val.split("\n")
    else:
        val = [val]

    base_fmt = f"%-{KEY_LEN}s: %s"
    s = base_fmt % (key.name, val[0])
    print(wrapper.fill(s))
    more_pf = " " * (KEY_LEN + 2)
    for line in val[1:]:
        print(f"{more_pf}{line}")


def pp_dict(wrapper, d):
    for key, val in d.items():
        pp_enum_val(wrapper, key, val)
    print()


def terminal_wrapper():
    cols = get_terminal_size()[0] if stdout.isatty() else 72
    return TextWrapper(width=cols - 4, subsequent_indent=INDENT_STR)
