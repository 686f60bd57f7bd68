#!/usr/bin/env python3.6
#
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

# To run this program, the system SSH client must be able to log in to
# the proxy host without prompting, using keys from an SSH agent or
# the user's default key files.

import asyncio, asyncsshproxy, sys

async def run_client() -> None:
    async with await asyncsshproxy.connect('localhost',
                                           'www.google.com:80') as conn:
        # Connections send and receive bytes
        conn.write(b'HEAD / HTTP/1.0\r\n\r\n')
        conn.write_eof()

        # We use sys.stdout.buffer here because we're writing bytes
        response = await conn.read()
        sys.stdout.buffer.write(response)

try:
    asyncio.get_event_loop().run_until_complete(run_client())
except (OSError, asyncsshproxy.Error) as exc:
    sys.exit('SSH proxy connection failed: ' + str(exc))
