# Copyright (C) 2024-2025 Björn A. Lindqvist <bjourne@gmail.com>
from oclbind.enums import ALL_DEVICE_TYPES, CommandQueueProperties, MemFlags
from oclbind.errors import BuildProgramFailureError, OpenCLError
from oclbind.event import wait_for_events
from oclbind.objs import Session, select_device
from oclbind.platform import get_platforms
from oclbind.program import Kernel, Program
from oclbind.utils import INDENT_STR, pp_dict, terminal_wrapper
from pathlib import Path

import click
import logging
import numpy as np
import oclbind as cl

logger = logging.getLogger(__name__)

SAXPY_SOURCE = """\
kernel void saxpy(global float* y, global const float* x, const float a) {
    const size_t gid = get_global_id(0);
    y[gid] += x[gid] * a;
}
"""


def format_opts(includes, defines):
    includes = [f"-I {ip}" for ip in includes]
    defines = [f"-D {kv}" for kv in defines]
    opts = ["-cl-std=CL3.0"] + includes + defines
    return " ".join(opts)


def abort(fmt, *args):
    logger.error(fmt, *args)
    raise SystemExit(1)


def platforms_or_abort():
    try:
        return get_platforms()
    except OSError as e:
        abort("failed to load the OpenCL library: %s", e)


def select_or_abort(platform, device):
    platforms = platforms_or_abort()
    logger.info("%d opencl platform(s) available", len(platforms))
    if not platforms:
        abort("no opencl platforms available")
    found = select_device(platform, device)
    if found is None:
        abort("failed to select platform and device")
    plat, dev = found
    logger.info("selected platform '%s' and device '%s'", plat.name, dev.name)
    return plat, dev


@click.group(
    invoke_without_command = True,
    no_args_is_help=True
)
@click.option(
    "-v", "--verbose", is_flag = True,
    help = "Log debug messages"
)
@click.pass_context
@click.version_option(package_name = "oclbind")
def cli(ctx, verbose):
    assert ctx
    logging.basicConfig(
        level = logging.DEBUG if verbose else logging.INFO,
        format = "%(levelname)s %(name)s: %(message)s"
    )


@cli.command()
def list_platforms():
    """
    List OpenCL platform details.
    """
    wrapper = terminal_wrapper()
    platforms = platforms_or_abort()
    logger.info("%d opencl platform(s) available", len(platforms))
    try:
        for platform in platforms:
            wrapper.initial_indent = ""
            wrapper.subsequent_indent = wrapper.initial_indent + INDENT_STR
            pp_dict(wrapper, platform.get_details())
            wrapper.initial_indent = INDENT_STR
            wrapper.subsequent_indent = wrapper.initial_indent + INDENT_STR
            for device in platform.get_devices(ALL_DEVICE_TYPES):
                pp_dict(wrapper, device.get_details())
    except OpenCLError as e:
        abort("%s", e)


@cli.command()
@click.argument(
    "filename",
    type = click.Path(exists = True, dir_okay = False)
)
@click.option(
    "-p", "--platform", default = None,
    help = "Substring of the platform name"
)
@click.option(
    "-d", "--device", default = None,
    help = "Substring of the device name"
)
@click.option(
    "-I", "includes",
    type = click.Path(exists = True, file_okay = False, dir_okay = True),
    multiple = True,
    help = "Include path",
    default = ()
)
@click.option(
    "-D", "defines",
    multiple = True,
    help = "Definition",
    default = ()
)
def build_program(filename, platform, device, includes, defines):
    """Build the OpenCL C program in FILENAME and list its kernels.
    """
    path = Path(filename)
    plat, dev = select_or_abort(platform, device)
    print(f"OpenCL program: {path}")
    print(f"Device        : {dev.name}")

    source = path.read_text(encoding = "utf-8")
    try:
        with cl.Context.create([dev], plat) as ctx, \
             Program.create_with_source(ctx, source) as prog:
            try:
                prog.build([dev], format_opts(includes, defines))
            except BuildProgramFailureError:
                abort("failed to compile %s:\n%s", path, prog.get_build_log(dev))
            for name in prog.get_kernel_names():
                with Kernel.create(prog, name) as kernel:
                    print(f"{INDENT_STR}{name} ({kernel.num_args} args)")
    except OpenCLError as e:
        abort("%s", e)


@cli.command(context_settings = dict(show_default = True))
@click.option(
    "-p", "--platform", default = None,
    help = "Substring of the platform name. By default, uses the first "
    "platform that has any devices available."
)
@click.option(
    "-d", "--device", default = None,
    help = "Substring of the device name. By default, uses the first "
    "device of the platform."
)
@click.option(
    "-n", "--size", default = 1024 * 1024,
    help = "Number of elements"
)
def saxpy(platform, device, size):
    """
    Compute y += a * x on the device and check the result.
    """
    plat, dev = select_or_abort(platform, device)
    rng = np.random.default_rng(0)
    y = rng.random(size, dtype = np.float32)
    x = rng.random(size, dtype = np.float32)
    a = np.float32(10)
    results = np.empty_like(y)

    props = CommandQueueProperties.CL_QUEUE_PROFILING_ENABLE
    try:
        with Session(plat, dev) as s:
            s.register_queue("main", props)
            logger.info("compiling kernel...")
            s.register_program("main", SAXPY_SOURCE, "-cl-std=CL3.0")
            s.register_buffer_with_data("y", MemFlags.CL_MEM_READ_WRITE, y)
            s.register_input_buffer("x", x)

            logger.info("launching kernel...")
            saxpy_ev = s.run_kernel(
                "main", "main", "saxpy", [size], None,
                ["y", "x", cl.cl_float(a)]
            )
            read_ev = s.read_buffer("main", "y", results, [saxpy_ev])
            wait_for_events([read_ev])
            nanos = saxpy_ev.command_end_time() - saxpy_ev.command_start_time()
            logger.info("kernel took %.3f ms", nanos * 1.0e-6)
    except OpenCLError as e:
        abort("%s", e)

    logger.info("checking results...")
    expected = y + x * a
    # Two operations of 0.5 ulp each, on host and device.
    max_error = np.finfo(np.float32).eps * 2 * 2
    bad = np.flatnonzero(~np.isclose(results, expected, rtol = max_error, atol = 0))
    if len(bad):
        i = bad[0]
        abort(
            "invalid result at index %d: expected = %s, actual = %s",
            i, expected[i], results[i]
        )
    logger.info("ok")


def main():
    cli(obj={})

if __name__ == "__main__":
    main()
