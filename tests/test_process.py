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

"""Unit tests for running SSH client subprocesses"""

import json
import os
import socket
import sys
import unittest

from asyncsshproxy.process import SSHProcessHandler
from asyncsshproxy.process import password_pipe, spawn_process

from .util import AsyncTestCase, asynctest, proc_fd_available
from .util import wait_for_exit


_LIST_FDS = '''
import json, os
fds = {}
for fd in os.listdir('/proc/self/fd'):
    try:
        fds[fd] = os.readlink('/proc/self/fd/' + fd)
    except OSError:
        pass
print(json.dumps(fds))
'''

_READ_FD = '''
import os, sys
print(os.read(int(sys.argv[1]), 1024).decode(), end='')
'''


class _Handler(SSHProcessHandler):
    """Process handler which records the events it receives"""

    def __init__(self, loop):
        self.process = None
        self.stdout = b''
        self.stderr = b''
        self.exit_status = None
        self.events = []
        self.closed = loop.create_future()

    def process_started(self, process):
        self.process = process
        self.events.append('started')

    def data_received(self, data):
        self.stdout += data

    def error_received(self, data):
        self.stderr += data

    def stdout_closed(self, exc):
        self.events.append('stdout_closed')

    def stderr_closed(self):
        self.events.append('stderr_closed')

    def process_exited(self, exit_status):
        self.exit_status = exit_status
        self.events.append('exited')

    def process_closed(self):
        self.events.append('closed')
        self.closed.set_result(None)


class _TestProcess(AsyncTestCase):
    """Unit tests for SSH client subprocesses"""

    async def _run(self, code, *args, pass_fds=()):
        """Run Python code in a subprocess and wait for it to finish"""

        handler = _Handler(self.loop)

        process = await spawn_process(self.loop,
                                      [sys.executable, '-c', code] +
                                      list(args), handler, pass_fds)

        self.assertIs(handler.process, process)

        await handler.closed
        process.kill()

        return handler

    @asynctest
    async def test_output(self):
        """Test collecting stdout, stderr, and exit status"""

        handler = await self._run('import sys\n'
                                  'sys.stdout.write("out")\n'
                                  'sys.stderr.write("err")\n'
                                  'sys.exit(3)')

        self.assertEqual(handler.stdout, b'out')
        self.assertEqual(handler.stderr, b'err')
        self.assertEqual(handler.exit_status, 3)
        self.assertEqual(handler.events[0], 'started')
        self.assertEqual(handler.events[-1], 'closed')
        self.assertIn('stderr_closed', handler.events)

    @asynctest
    async def test_stdin(self):
        """Test writing to the subprocess's stdin"""

        handler = _Handler(self.loop)

        process = await spawn_process(
            self.loop, [sys.executable, '-c',
                        'import sys; sys.stdout.write(sys.stdin.read())'],
            handler)

        self.assertTrue(process.can_write_eof())

        process.write(b'hello')
        process.write_eof()

        await handler.closed
        process.kill()

        self.assertEqual(handler.stdout, b'hello')
        self.assertEqual(process.returncode, 0)

    @asynctest
    async def test_missing_executable(self):
        """Test starting an executable which doesn't exist"""

        with self.assertRaises(FileNotFoundError):
            await spawn_process(self.loop, ['./does-not-exist'],
                                SSHProcessHandler())

    @asynctest
    async def test_kill(self):
        """Test killing a running subprocess"""

        handler = _Handler(self.loop)

        process = await spawn_process(
            self.loop, [sys.executable, '-c', 'import time; time.sleep(60)'],
            handler)

        pid = process.pid

        process.kill()
        process.kill()

        await process.wait_closed()

        self.assertTrue(process.is_closing())
        self.assertLess(process.returncode, 0)
        self.assertTrue(await wait_for_exit(pid))

    @asynctest
    async def test_kill_after_exit(self):
        """Test that killing an exited subprocess only closes it"""

        handler = await self._run('pass')

        self.assertEqual(handler.process.returncode, 0)
        self.assertTrue(handler.process.is_closing())

        handler.process.kill()

    @asynctest
    async def test_password_pipe(self):
        """Test passing a password to a subprocess through a pipe"""

        with password_pipe('s3cr3t') as fd:
            handler = await self._run(_READ_FD, str(fd), pass_fds=(fd,))

        self.assertEqual(handler.stdout, b's3cr3t\n')

        with self.assertRaises(OSError):
            os.fstat(fd)

    def test_no_password_pipe(self):
        """Test that no pipe is created without a password"""

        with password_pipe(None) as fd:
            self.assertIsNone(fd)

    @unittest.skipUnless(proc_fd_available, '/proc/self/fd not available')
    @asynctest
    async def test_no_inherited_fds(self):
        """Test that open sockets aren't inherited by the subprocess"""

        with socket.socket() as sock:
            sock.bind(('127.0.0.1', 0))
            sock.listen()

            handler = await self._run(_LIST_FDS)

        fds = json.loads(handler.stdout.decode())

        self.assertEqual(sorted(int(fd) for fd in fds
                                if not fds[fd].startswith('/proc/')),
                         [0, 1, 2])
        self.assertFalse(any(target.startswith('socket:')
                             for fd, target in fds.items() if int(fd) > 2))
