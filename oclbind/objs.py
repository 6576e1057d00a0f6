# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
#
# Names:
#   * s - Session
#   * bname - buffer name
#   * qname - queue name
#   * pname - program name
#   * gl_work, lo_work - Global and local work
from oclbind.buffer import Buffer
from oclbind.context import Context
from oclbind.enums import ALL_DEVICE_TYPES, MemFlags
from oclbind.errors import BuildProgramFailureError
from oclbind.event import wait_for_events
from oclbind.platform import get_platforms
from oclbind.program import Kernel, Program
from oclbind.queue import CommandQueue
from oclbind.utils import INDENT_STR, pp_dict, terminal_wrapper

import logging

logger = logging.getLogger(__name__)


def pp_dict_with_header(header, wrap, d):
    print(f"== {header} ==")
    pp_dict(wrap, d)


def select_device(platform_query=None, device_query=None):
    """First platform and device whose names contain the given
    substrings. Returns None if there is none."""
    for platform in get_platforms():
        if platform_query and platform_query not in platform.name:
            continue
        for device in platform.get_devices(ALL_DEVICE_TYPES):
            if device_query and device_query not in device.name:
                continue
            return platform, device
    return None


class Session:
    """Owns a context on one device and every object registered with
    it. Everything is released in reverse order of creation on exit,
    also when an exception is raised."""

    @classmethod
    def from_queries(cls, platform_query=None, device_query=None):
        found = select_device(platform_query, device_query)
        if found is None:
            raise LookupError(
                f"no device matching platform {platform_query!r} "
                f"and device {device_query!r}"
            )
        return cls(*found)

    def __init__(self, platform, device):
        self.platform = platform
        self.device = device
        self.context = Context.create([device], platform)
        self.queues = {}
        self.buffers = {}
        self.programs = {}
        self.kernels = {}
        self.events = []
        # Everything to release, context first.
        self.owned = [self.context]

    def own(self, obj):
        self.owned.append(obj)
        return obj

    # Registering
    def register_queue(self, name, properties=0):
        q = CommandQueue.create(self.context, self.device, properties)
        self.queues[name] = self.own(q)
        return q

    def register_buffer(self, name, flags, count, el_type):
        buf = Buffer.create(self.context, flags, count, el_type)
        self.buffers[name] = self.own(buf)
        return buf

    def register_buffer_with_data(self, name, flags, data):
        buf = Buffer.create_with_data(self.context, flags, data)
        self.buffers[name] = self.own(buf)
        return buf

    def register_input_buffer(self, name, data):
        return self.register_buffer_with_data(
            name, MemFlags.CL_MEM_READ_ONLY, data
        )

    def register_event(self, ev):
        self.events.append(self.own(ev))
        return ev

    def register_program(self, pname, source, options=""):
        """Builds ``source`` and creates all of its kernels. On build
        failure the log is logged before the error propagates."""
        prog = self.own(Program.create_with_source(self.context, source))
        self.programs[pname] = prog
        try:
            prog.build([self.device], options)
        except BuildProgramFailureError:
            log = prog.get_build_log(self.device)
            logger.error("Build log of %s:\n%s", pname, log)
            raise
        self.kernels[pname] = {
            name: self.own(Kernel.create(prog, name))
            for name in prog.get_kernel_names()
        }
        return prog

    # IO
    def write_buffer(self, qname, bname, data, wait_list=()):
        q = self.queues[qname]
        ev = q.enqueue_write_buffer(
            self.buffers[bname], False, 0, data, wait_list
        )
        return self.register_event(ev)

    def read_buffer(self, qname, bname, data, wait_list=()):
        q = self.queues[qname]
        ev = q.enqueue_read_buffer(
            self.buffers[bname], False, 0, data, wait_list
        )
        return self.register_event(ev)

    # Kernel interaction
    def set_kernel_args(self, pname, kname, args):
        """Strings name registered buffers, other values are passed
        unchanged."""
        kern = self.kernels[pname][kname]
        vals = [self.buffers[a] if isinstance(a, str) else a for a in args]
        kern.set_args(*vals)

    def run_kernel(self, qname, pname, kname, gl_work, lo_work, args,
                   wait_list=()):
        self.set_kernel_args(pname, kname, args)
        q = self.queues[qname]
        kern = self.kernels[pname][kname]
        ev = q.enqueue_nd_range_kernel(kern, None, gl_work, lo_work, wait_list)
        return self.register_event(ev)

    def wait(self):
        if self.events:
            wait_for_events(self.events)

    # Release everything
    def finish_and_release(self):
        try:
            for queue in self.queues.values():
                queue.flush()
                queue.finish()
        finally:
            for obj in reversed(self.owned):
                obj.release()
            logger.debug("Released %d objects", len(self.owned))
            self.owned = []
            self.queues = {}
            self.buffers = {}
            self.programs = {}
            self.kernels = {}
            self.events = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.finish_and_release()

    # Printing
    def print(self):
        wrap = terminal_wrapper()
        wrap.subsequent_indent = wrap.initial_indent + INDENT_STR

        data = [
            ("Platform", self.platform.get_details()),
            ("Device", self.device.get_details()),
        ]
        for name, buf in self.buffers.items():
            data.append((f"Buffer: {name}", {
                key: buf.get_info(key) for key in type(buf.refcount_info)
            }))
        for header, d in data:
            pp_dict_with_header(header, wrap, d)
