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

"""SSH proxy connection establishment"""

import asyncio

from .command import build_command, format_command
from .connection import SSHProxyConnection
from .misc import DiedError, RejectedError, SpawnError
from .process import SSHProcessHandler, password_pipe, spawn_process


class Connected:
    """The forwarded channel is assumed to be open"""

    def __init__(self, conn):
        self.conn = conn

    def result(self):
        """Return the open connection"""

        return self.conn

    def discard(self):
        """Close a connection the caller will never receive"""

        self.conn.close()


class Failed:
    """The SSH client failed to open the forwarded channel"""

    def __init__(self, exc):
        self.exc = exc

    def result(self):
        """Raise the reason for the failure"""

        raise self.exc

    def discard(self):
        """Nothing to release after a failure"""


class Cancelled(Failed):
    """The caller stopped waiting for the forwarded channel"""


class SSHProxyTunnel(SSHProcessHandler):
    """Establishment of a connection through an SSH client

       A tunnel starts an SSH client to forward one connection and
       settles exactly once, on the first of the following events:

         * the client exits, reported as :exc:`DiedError`, or as
           :exc:`RejectedError` if it wrote anything to stderr
         * the client writes to stderr and then goes quiet for
           `error_delay` seconds, reported as :exc:`RejectedError`
         * the client stays quiet for `ready_delay` seconds after
           starting, or data arrives from the destination, which
           returns an :class:`SSHProxyConnection`
         * the caller cancels the connect, which raises
           :exc:`asyncio.CancelledError`

       The SSH client gives no positive signal that forwarding is
       working, so readiness is inferred from silence. A failure the
       client reports after `ready_delay` shows up as EOF on the
       returned connection.

       On every outcome except a successful connect the SSH client is
       killed and its pipes closed. Events after settlement are
       ignored.

    """

    def __init__(self, loop, proxy, request, options, logger):
        self._loop = loop
        self._proxy = proxy
        self._request = request
        self._options = options
        self._logger = logger

        self._process = None
        self._command = None
        self._waiter = loop.create_future()
        self._outcome = None
        self._timer = None

        self._recv_buf = []
        self._eof_received = False
        self._stderr_buf = []
        self._stderr_closed = False
        self._exit_status = None

    @property
    def destination(self):
        """The ``host:port`` this tunnel connects to"""

        return str(self._request)

    async def open(self):
        """Start the SSH client and wait for the tunnel to settle"""

        try:
            await self._start()
            outcome = await self._waiter
        except asyncio.CancelledError:
            if not self._settle(Cancelled(asyncio.CancelledError(
                    'Connection to %s cancelled while waiting for SSH '
                    'client' % self.destination))):
                self._outcome.discard()
                raise

            outcome = self._outcome

        return outcome.result()

    async def _start(self):
        """Start the SSH client"""

        with password_pipe(self._proxy.password) as password_fd:
            argv = build_command(self._proxy, self._request,
                                 self._options, password_fd)
            pass_fds = () if password_fd is None else (password_fd,)

            self._command = format_command(argv)
            self._logger.debug1('Starting SSH client: %s', self._command)

            try:
                await spawn_process(self._loop, argv, self, pass_fds)
            except OSError as exc:
                self._settle(Failed(SpawnError(self.destination, exc)))
                return

        self._logger.debug1('SSH client started, pid %d', self._process.pid)

        if self._outcome is None and not self._stderr_buf:
            self._set_timer(self._options.ready_delay, self._ready)

    def _set_timer(self, delay, callback):
        """Replace the pending timer with a new one"""

        self._cancel_timer()
        self._timer = self._loop.call_later(delay, callback)

    def _cancel_timer(self):
        """Cancel the pending timer, if any"""

        if self._timer:
            self._timer.cancel()
            self._timer = None

    def _ready(self):
        """Hand the SSH client over to a new connection"""

        conn = SSHProxyConnection(self._loop, self._process, self._proxy,
                                  self._request, self._command, self._logger,
                                  self._recv_buf, self._eof_received)

        self._settle(Connected(conn))

    def _fail(self):
        """Report the SSH client's stderr output, or that it died"""

        stderr = b''.join(self._stderr_buf)
        stderr = stderr.decode('utf-8', errors='replace').strip()

        if stderr:
            exc = RejectedError(self.destination, stderr)
        else:
            exc = DiedError(self.destination, self._exit_status)

        self._settle(Failed(exc))

    def _settle(self, outcome):
        """Settle the tunnel with its one and only outcome

           Returns whether this call settled the tunnel. Once settled,
           later calls do nothing.

        """

        if self._outcome is not None:
            self._logger.debug2('Ignoring %s of settled connection',
                                type(outcome).__name__.lower())
            return False

        self._outcome = outcome
        self._cancel_timer()

        if isinstance(outcome, Connected):
            self._logger.info('Connected to %s',
                              (self._request.host, self._request.port))
        elif isinstance(outcome, Failed):
            self._logger.info('%s', outcome.exc)

            if self._process:
                self._process.kill()
        else:
            raise TypeError('Invalid tunnel outcome: %r' % outcome)

        if not self._waiter.done():
            self._waiter.set_result(outcome)

        return True

    def process_started(self, process):
        """Take ownership of the started SSH client"""

        self._process = process

    def data_received(self, data):
        """Collect data from the destination until connected"""

        self._recv_buf.append(data)

        if self._outcome is None and not self._stderr_buf:
            self._logger.debug1('Data received before ready delay')
            self._ready()

    def stdout_closed(self, exc):
        """Remember if the destination closed before connecting"""

        self._eof_received = True

    def error_received(self, data):
        """Collect diagnostics written by the SSH client"""

        if self._outcome is not None:
            self._logger.debug2('Ignoring SSH client output: %s',
                                data.strip())
            return

        self._logger.debug2('SSH client output: %s', data.strip())

        self._stderr_buf.append(data)
        self._set_timer(self._options.error_delay, self._fail)

    def stderr_closed(self):
        """Settle on exit once no more stderr output can arrive"""

        self._stderr_closed = True

        if self._outcome is None and self._exit_status is not None:
            self._fail()

    def process_exited(self, exit_status):
        """Handle the SSH client exiting before connecting"""

        self._exit_status = exit_status

        if self._outcome is not None:
            return

        self._logger.debug1('SSH client exited with status %s', exit_status)

        if self._stderr_closed:
            self._fail()
        else:
            self._set_timer(self._options.error_delay, self._fail)

    def process_closed(self):
        """Settle once the SSH client has exited with pipes closed"""

        if self._outcome is None:
            self._fail()
