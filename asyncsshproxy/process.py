# Copyright (c) 2022 by Ron Frederick <ronf@timeheart.net> and others.
#
# This program and the accompanying materials are made available under
# the terms of the Eclipse Public License v2.0 which accompanies this
# distribution and is available at:
#
#     http://www.eclipse.org/legal/epl-2.0/
#
# This program may also be made available under the following secondary
# licenses when the conditions for such availability set forth in the
# Eclipse Public License v2.0 are satisfied:
#
#    GNU General Public License, Version 2.0, or any later versions of
#    that license
#
# SPDX-License-Identifier: EPL-2.0 OR GPL-2.0-or-later
#
# Contributors:
#     Ron Frederick - initial implementation, API, and documentation

"""SSH client subprocess handlers"""

import asyncio
import os

from contextlib import contextmanager
from functools import partial


class SSHProcessHandler:
    """Base class for handlers of SSH client subprocess events

       The process supervisor delivers every event on the SSH client's
       pipes to exactly one handler at a time. The handler can be
       replaced with :meth:`SSHProxyProcess.set_handler`, which is how
       a running client is handed from connection setup to the
       connection object the caller receives.

    """

    def process_started(self, process):
        """Handle the SSH client being started"""

    def data_received(self, data):
        """Handle data the SSH client wrote to stdout"""

    def stdout_closed(self, exc):
        """Handle the SSH client's stdout being closed"""

    def error_received(self, data):
        """Handle data the SSH client wrote to stderr"""

    def stderr_closed(self):
        """Handle the SSH client's stderr being closed"""

    def stdin_closed(self, exc):
        """Handle the SSH client's stdin being closed"""

    def pause_writing(self):
        """Handle a request to pause writing to the SSH client"""

    def resume_writing(self):
        """Handle a request to resume writing to the SSH client"""

    def process_exited(self, exit_status):
        """Handle the SSH client exiting"""

    def process_closed(self):
        """Handle the SSH client exiting with all of its pipes closed"""


class SSHProxyProcess(asyncio.SubprocessProtocol):
    """SSH client subprocess forwarding a connection"""

    def __init__(self, loop, handler):
        self._handler = handler
        self._transport = None
        self._stdin = None
        self._stdout = None
        self._closed = loop.create_future()

    def set_handler(self, handler):
        """Set the handler which receives events from this process"""

        self._handler = handler

    @property
    def pid(self):
        """The process id of the SSH client"""

        return self._transport.get_pid()

    @property
    def returncode(self):
        """The exit status of the SSH client, or `None` if still running

           A negative value indicates the SSH client was terminated
           by the signal of that number.

        """

        return self._transport.get_returncode()

    @property
    def stdout_transport(self):
        """The pipe transport reading from the SSH client's stdout"""

        return self._stdout

    def get_extra_info(self, name, default=None):
        """Return extra information associated with this process"""

        return self._transport.get_extra_info(name, default)

    def connection_made(self, transport):
        """Handle startup of the subprocess"""

        self._transport = transport
        self._stdin = transport.get_pipe_transport(0)
        self._stdout = transport.get_pipe_transport(1)
        self._handler.process_started(self)

    def pipe_data_received(self, fd, data):
        """Handle data received from the subprocess"""

        if fd == 1:
            self._handler.data_received(data)
        else:
            self._handler.error_received(data)

    def pipe_connection_lost(self, fd, exc):
        """Handle when a pipe to the subprocess is closed"""

        if fd == 0:
            self._handler.stdin_closed(exc)
        elif fd == 1:
            self._handler.stdout_closed(exc)
        else:
            self._handler.stderr_closed()

    def pause_writing(self):
        """Pause writing to the subprocess"""

        self._handler.pause_writing()

    def resume_writing(self):
        """Resume writing to the subprocess"""

        self._handler.resume_writing()

    def process_exited(self):
        """Handle the subprocess exiting"""

        self._handler.process_exited(self.returncode)

    def connection_lost(self, exc):
        """Handle the subprocess exiting with all of its pipes closed"""

        if not self._closed.done():
            self._closed.set_result(None)

        self._handler.process_closed()

    def is_closing(self):
        """Return whether the subprocess transport is closing or not"""

        return self._transport.is_closing()

    def write(self, data):
        """Write data to the subprocess's stdin"""

        self._stdin.write(data)

    def write_eof(self):
        """Close the subprocess's stdin after writing buffered data"""

        self._stdin.write_eof()

    def can_write_eof(self):
        """Return whether the stdin pipe supports :meth:`write_eof`"""

        return self._stdin.can_write_eof()

    def get_write_buffer_size(self):
        """Return the current size of the stdin pipe's output buffer"""

        return self._stdin.get_write_buffer_size()

    def kill(self):
        """Kill the subprocess and close all of its pipes

           This method does nothing if the process was already killed.
           If the process has already exited, only its pipes are closed.

        """

        if self._transport is None or self._transport.is_closing():
            return

        if self._transport.get_returncode() is None:
            try:
                self._transport.kill()
            except ProcessLookupError: # pragma: no cover
                pass

        self._transport.close()

    async def wait_closed(self):
        """Wait for the subprocess to exit and its pipes to close"""

        await asyncio.shield(self._closed)


@contextmanager
def password_pipe(password):
    """Return the read end of a pipe holding a password

       The password is written to the pipe followed by a newline and
       the write end is closed, so the process reading it sees EOF
       after the password. The read end is closed when the context
       exits. If the password is `None`, `None` is returned and no
       pipe is created.

    """

    if password is None:
        yield None
        return

    read_fd, write_fd = os.pipe()

    try:
        try:
            os.write(write_fd, password.encode('utf-8') + b'\n')
        finally:
            os.close(write_fd)

        yield read_fd
    finally:
        os.close(read_fd)


async def spawn_process(loop, argv, handler, pass_fds=()):
    """Start an SSH client with its stdio connected to pipes

       The SSH client is started in a new session, with stdin, stdout,
       and stderr connected to pipes. All file descriptors of this
       process other than those in `pass_fds` are closed in the child,
       so the client never holds on to sockets or files opened here.

       :raises: :exc:`OSError` if the executable can't be started

    """

    pipe = asyncio.subprocess.PIPE

    _, process = await loop.subprocess_exec(
        partial(SSHProxyProcess, loop, handler), *argv, stdin=pipe,
        stdout=pipe, stderr=pipe, close_fds=True, pass_fds=pass_fds,
        start_new_session=True)

    return process
