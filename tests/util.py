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

"""Utility functions for unit tests"""

import asyncio
import functools
import os
import tempfile
import time
import unittest


# pylint: disable=unused-import

try:
    import uvloop
    uvloop_available = True
except ImportError: # pragma: no cover
    uvloop_available = False

# pylint: enable=unused-import


proc_fd_available = os.path.isdir('/proc/self/fd')


def asynctest(coro):
    """Decorator for async tests, for use with AsyncTestCase"""

    @functools.wraps(coro)
    def async_wrapper(self, *args, **kwargs):
        """Run a coroutine and wait for it to finish"""

        return self.loop.run_until_complete(coro(self, *args, **kwargs))

    return async_wrapper


def process_running(pid):
    """Return whether a process is still running or not yet reaped"""

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    else:
        return True


async def wait_for_exit(pid, timeout=5):
    """Wait for a process to exit and be reaped, returning success"""

    deadline = time.monotonic() + timeout

    while process_running(pid):
        if time.monotonic() > deadline: # pragma: no cover
            return False

        await asyncio.sleep(0.05)

    return True


async def wait_for_file(filename, timeout=5):
    """Wait for a file to be written, returning its contents"""

    deadline = time.monotonic() + timeout

    while True:
        try:
            with open(filename) as f:
                data = f.read()
        except FileNotFoundError:
            data = ''

        if data.endswith('\n'):
            return data

        if time.monotonic() > deadline: # pragma: no cover
            raise AssertionError('Timed out waiting for %s' % filename)

        await asyncio.sleep(0.05)


class TempDirTestCase(unittest.TestCase):
    """Unit test class which operates in a temporary directory"""

    _tempdir = None
    _orig_dir = None

    @classmethod
    def setUpClass(cls):
        """Create temporary directory and set it as current directory"""

        cls._tempdir = tempfile.TemporaryDirectory()
        cls._orig_dir = os.getcwd()
        os.chdir(cls._tempdir.name)

    @classmethod
    def tearDownClass(cls):
        """Clean up temporary directory"""

        os.chdir(cls._orig_dir)
        cls._tempdir.cleanup()


class AsyncTestCase(TempDirTestCase):
    """Unit test class which supports tests using asyncio"""

    loop = None

    @classmethod
    def setUpClass(cls):
        """Set up event loop to run async tests and run async class setup"""

        super().setUpClass()

        if uvloop_available and os.environ.get('USE_UVLOOP'): # pragma: no cover
            cls.loop = uvloop.new_event_loop()
        else:
            cls.loop = asyncio.new_event_loop()

        asyncio.set_event_loop(cls.loop)

        try:
            cls.loop.run_until_complete(cls.asyncSetUpClass())
        except AttributeError:
            pass

    @classmethod
    def tearDownClass(cls):
        """Run async class teardown and close event loop"""

        try:
            cls.loop.run_until_complete(cls.asyncTearDownClass())
        except AttributeError:
            pass

        cls.loop.close()
        asyncio.set_event_loop(None)

        super().tearDownClass()

    def setUp(self):
        """Run async setup if any"""

        try:
            self.loop.run_until_complete(self.asyncSetUp())
        except AttributeError:
            pass

    def tearDown(self):
        """Run async teardown if any"""

        try:
            self.loop.run_until_complete(self.asyncTearDown())
        except AttributeError:
            pass
