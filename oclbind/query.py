# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
#
# The "size then data" protocol used for everything of variable
# length: info strings, lists, build logs.
from ctypes import (
    POINTER,
    byref,
    c_byte,
    c_char,
    c_char_p,
    c_size_t,
    cast,
    sizeof,
)
from oclbind.enums import ErrorCode, cl_type_to_python_type
from oclbind.errors import OutOfMemoryError, check, require
from oclbind.native import (
    Opaque,
    cl_uint,
)


def allocate(el_tp, n):
    # Host allocation failures are reported like the runtime's own.
    try:
        return (el_tp * n)()
    except MemoryError as e:
        raise OutOfMemoryError(ErrorCode.CL_OUT_OF_HOST_MEMORY) from e


def query_size(fun, table, *args):
    n = c_size_t()
    check(fun.__name__, fun(*args, 0, None, byref(n)), table)
    return n.value


def query_into(fun, table, args, size, dest):
    """Second half of the protocol: fills ``dest`` with ``size`` bytes.
    Too small destinations are rejected before calling the runtime."""
    require(
        dest is not None and sizeof(dest) >= size,
        f"{fun.__name__}: destination smaller than {size} bytes"
    )
    check(fun.__name__, fun(*args, size, dest, None), table)
    return dest


def query(fun, table, *args):
    """Runs both calls with the same identifying arguments and returns
    a byte array exactly as long as the size the runtime reported."""
    size = query_size(fun, table, *args)
    buf = allocate(c_byte, size)
    return query_into(fun, table, args, size, buf)


def query_value(fun, table, tp, *args):
    """Fixed-size results skip the size request."""
    val = tp()
    check(fun.__name__, fun(*args, sizeof(tp), byref(val), None), table)
    return val


def enumerate_ids(fun, table, el_tp, *args):
    """Count-then-fill enumeration of platform and device ids. Returns
    an empty list when there is nothing to enumerate."""
    n = cl_uint()
    ignored = check(fun.__name__, fun(*args, 0, None, byref(n)), table)
    if ignored is not None or n.value == 0:
        return []
    buf = allocate(el_tp, n.value)
    if check(fun.__name__, fun(*args, n.value, buf, None), table) is not None:
        return []
    return list(buf)


def decode_string(buf):
    if len(buf) == 0:
        return ""
    raw = bytes(cast(buf, POINTER(c_char * len(buf))).contents)
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def decode_records(rec_tp, buf):
    n = len(buf) // sizeof(rec_tp)
    return list(cast(buf, POINTER(rec_tp * n)).contents)


def cl_info_to_py(tp, buf):
    if tp == c_char_p:
        return decode_string(buf)
    if hasattr(tp, "contents"):
        to_type = tp._type_
        if issubclass(to_type, Opaque):
            return tp.from_buffer(buf)
        return decode_records(to_type, buf)
    val = tp.from_buffer(buf).value
    py_tp = cl_type_to_python_type.get(tp)
    return py_tp(val) if py_tp else val


def get_info(fun, table, attr, *args):
    """Queries and decodes one info selector."""
    buf = query(fun, table, *(args + (attr.value,)))
    return cl_info_to_py(attr.type, buf)


