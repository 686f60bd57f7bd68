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

"""SSH proxy connection"""

import asyncio

from .constants import DEFAULT_READ_LIMIT
from .process import SSHProcessHandler


class SSHProxyConnection(SSHProcessHandler):
    """Connection forwarded through an SSH proxy

       This class wraps the stdin and stdout pipes of an SSH client
       forwarding a TCP connection as a single bidirectional byte
       stream. Bytes written are sent to the destination by the SSH
       client and bytes read come from the destination, unchanged.

       Closing the connection closes both pipes and kills the SSH
       client. Instances are returned by :meth:`connect()
       <SSHProcessConnector.connect>` and should not be created
       directly.

    """

    def __init__(self, loop, process, proxy, request, command, logger,
                 recv_buf=(), eof_received=False, limit=DEFAULT_READ_LIMIT):
        self._loop = loop
        self._process = process
        self._proxy = proxy
        self._request = request
        self._command = command
        self._logger = logger

        self._reader = asyncio.StreamReader(limit=limit)
        self._reader.set_transport(process.stdout_transport)

        self._write_paused = False
        self._drain_waiters = []
        self._stdin_open = True
        self._eof_written = False
        self._exc = None
        self._eof_received = False
        self._closed = False

        for data in recv_buf:
            self._reader.feed_data(data)

        if eof_received:
            self._feed_eof()

        process.set_handler(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.close()
        await self.wait_closed()

    def __aiter__(self):
        """Allow the connection to be an async iterator over lines"""

        return self

    async def __anext__(self):
        """Return one line at a time when used as an async iterator"""

        line = await self.readline()

        if line:
            return line
        else:
            raise StopAsyncIteration

    @property
    def logger(self):
        """A logger associated with this connection"""

        return self._logger

    def get_extra_info(self, name, default=None):
        """Return additional information about this connection

           This method returns extra information about the connection.
           The following names are supported:

             ============= ==========================================
             Name          Value
             ============= ==========================================
             pid           process id of the SSH client
             returncode    exit status of the SSH client, or `None`
             proxy         :class:`ProxyTarget` of the proxy server
             destination   ``host:port`` the connection forwards to
             command       SSH client command line, shell-quoted
             ============= ==========================================

           Other names are looked up on the subprocess transport.

        """

        if name == 'pid':
            return self._process.pid
        elif name == 'returncode':
            return self._process.returncode
        elif name == 'proxy':
            return self._proxy
        elif name == 'destination':
            return str(self._request)
        elif name == 'command':
            return self._command
        else:
            return self._process.get_extra_info(name, default)

    def is_readable(self):
        """Return whether data can still be read from this connection"""

        return not self._closed and not self._reader.at_eof()

    def is_writable(self):
        """Return whether data can still be written to this connection"""

        return not self._closed and self._stdin_open and \
            not self._eof_written

    def is_closing(self):
        """Return whether this connection is closing or closed"""

        return self._closed

    def at_eof(self):
        """Return whether the destination has closed its side and all
           of its data has been read"""

        return self._reader.at_eof()

    async def read(self, n=-1):
        """Read up to `n` bytes, or until EOF if `n` is -1"""

        return await self._reader.read(n)

    async def readline(self):
        """Read one line, ending in ``b'\\n'``

           If EOF is received before ``b'\\n'`` is found, the partial
           line is returned.

        """

        return await self._reader.readline()

    async def readuntil(self, separator=b'\n'):
        """Read data until `separator` is found

           If EOF is received before a match occurs, an
           :exc:`IncompleteReadError <asyncio.IncompleteReadError>`
           is raised.

        """

        return await self._reader.readuntil(separator)

    async def readexactly(self, n):
        """Read exactly `n` bytes"""

        return await self._reader.readexactly(n)

    def write(self, data):
        """Write data to the destination

           :raises: :exc:`BrokenPipeError` if the connection is no
                    longer writable

        """

        if not self.is_writable():
            raise BrokenPipeError('Connection to %s is not writable' %
                                  self._request)

        self._process.write(data)

    def writelines(self, list_of_data):
        """Write a list of data buffers to the destination"""

        self.write(b''.join(list_of_data))

    def can_write_eof(self):
        """Return whether the connection supports :meth:`write_eof`"""

        return self.is_writable() and self._process.can_write_eof()

    def write_eof(self):
        """Close the write side of the connection

           The SSH client forwards the EOF to the destination. Data
           can still be read until the destination closes its side.

        """

        if self.is_writable():
            self._eof_written = True
            self._process.write_eof()

    async def drain(self):
        """Wait until the write buffer to the SSH client is flushed"""

        while self._write_paused and not self._closed and self._stdin_open:
            waiter = self._loop.create_future()
            self._drain_waiters.append(waiter)

            try:
                await waiter
            finally:
                self._drain_waiters.remove(waiter)

        if self._closed or not self._stdin_open:
            exc = self._exc

            if not exc and self._write_paused:
                exc = BrokenPipeError()

            if exc:
                raise exc

    def _unblock_drain(self):
        """Signal that more data can be written on the connection"""

        for waiter in self._drain_waiters:
            if not waiter.done(): # pragma: no branch
                waiter.set_result(None)

    def close(self):
        """Close this connection and kill the SSH client"""

        if not self._closed:
            self._closed = True
            self._logger.info('Closing connection to %s',
                              (self._request.host, self._request.port))

            self._feed_eof()
            self._process.kill()
            self._unblock_drain()

    async def wait_closed(self):
        """Wait for the SSH client to exit after closing"""

        await self._process.wait_closed()

    def _feed_eof(self):
        """Mark the end of data from the destination"""

        if not self._eof_received:
            self._eof_received = True
            self._reader.feed_eof()

    def data_received(self, data):
        """Handle data from the destination"""

        if not self._eof_received:
            self._reader.feed_data(data)

    def stdout_closed(self, exc):
        """Handle the destination closing its side of the connection"""

        if exc:
            self._reader.set_exception(exc)
        else:
            self._feed_eof()

    def error_received(self, data):
        """Log SSH client stderr output received after connecting"""

        self._logger.debug2('Ignoring SSH client output: %s', data.strip())

    def stdin_closed(self, exc):
        """Handle the write side of the connection being closed"""

        self._stdin_open = False
        self._exc = exc
        self._unblock_drain()

    def pause_writing(self):
        """Pause writing to the destination"""

        self._write_paused = True

    def resume_writing(self):
        """Resume writing to the destination"""

        self._write_paused = False
        self._unblock_drain()

    def process_exited(self, exit_status):
        """Handle the SSH client exiting while connected"""

        self._logger.debug1('SSH client exited with status %s', exit_status)

    def process_closed(self):
        """Handle the SSH client exiting with all pipes closed"""

        self._stdin_open = False
        self._feed_eof()
        self._unblock_drain()
