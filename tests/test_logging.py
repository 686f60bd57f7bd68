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

"""Unit tests for SSH proxy logging API"""

import asyncsshproxy

from asyncsshproxy.logging import logger

from .ssh_stub import ProxyTestCase
from .util import asynctest


class _TestLogging(ProxyTestCase):
    """Unit tests for SSH proxy logging API"""

    def tearDown(self):
        """Restore default log levels"""

        asyncsshproxy.set_log_level('WARNING')
        asyncsshproxy.set_debug_level(1)

        super().tearDown()

    def test_logging(self):
        """Test SSH proxy logging"""

        asyncsshproxy.set_log_level('INFO')

        with self.assertLogs(level='INFO') as log:
            logger.info('Test')

        self.assertEqual(len(log.records), 1)
        self.assertEqual(log.records[0].msg, 'Test')

    def test_debug_levels(self):
        """Test log debug levels"""

        asyncsshproxy.set_log_level('DEBUG')

        for debug_level in range(1, 3):
            with self.subTest(debug_level=debug_level):
                asyncsshproxy.set_debug_level(debug_level)

                with self.assertLogs(level='DEBUG') as log:
                    logger.debug1('DEBUG')
                    logger.debug2('DEBUG')

                self.assertEqual(len(log.records), debug_level)

                for record in log.records:
                    self.assertEqual(record.msg, record.levelname)

    def test_invalid_debug_level(self):
        """Test setting an invalid debug level"""

        for debug_level in (0, 3):
            with self.subTest(debug_level=debug_level):
                with self.assertRaises(ValueError):
                    asyncsshproxy.set_debug_level(debug_level)

    def test_child_context(self):
        """Test adding context to a child logger"""

        asyncsshproxy.set_log_level('INFO')

        child = logger.get_child(context='conn=1').get_child(context='x=2')

        with self.assertLogs(level='INFO') as log:
            child.info('Test')

        self.assertEqual(log.records[0].msg, '[conn=1, x=2] Test')

    def test_host_port_args(self):
        """Test formatting of host and port log arguments"""

        asyncsshproxy.set_log_level('INFO')

        with self.assertLogs(level='INFO') as log:
            logger.info('%s', ('example.com', 80))
            logger.info('%s', ('', 80))
            logger.info('%s', b'bytes')
            logger.info('%s', ['a', 'b'])

        self.assertEqual([record.getMessage() for record in log.records],
                         ['example.com, port 80', 'port 80', 'bytes', 'a b'])

    @asynctest
    async def test_connect_logging(self):
        """Test that a connect failure is logged without the password"""

        asyncsshproxy.set_log_level('DEBUG')
        asyncsshproxy.set_debug_level(2)

        with self.assertLogs('asyncsshproxy', level='DEBUG') as log:
            with self.assertRaises(asyncsshproxy.RejectedError):
                await self.connect('reject.test:80',
                                   proxy='alice:hunter2@proxy.test')

        messages = [record.getMessage() for record in log.records]

        self.assertTrue(all(msg.startswith('[conn=') for msg in messages))
        self.assertTrue(any('Starting SSH client: ' in msg
                            for msg in messages))
        self.assertTrue(any('Connection to reject.test:80 rejected' in msg
                            for msg in messages))
        self.assertFalse(any('hunter2' in msg for msg in messages))

