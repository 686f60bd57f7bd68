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
# the proxy host without prompting. The proxy locator may include a
# password, in which case the sshpass utility must be installed. Debug
# logging shows the SSH client command line, with the password hidden.

import asyncio, asyncsshproxy, logging, sys

logging.basicConfig(level='DEBUG')
asyncsshproxy.set_debug_level(2)

async def fetch(connector, host: str) -> None:
    conn = await asyncio.wait_for(connector.connect(host + ':80'), 10)

    async with conn:
        conn.write(b'HEAD / HTTP/1.0\r\nHost: ' + host.encode() + b'\r\n\r\n')

        async for line in conn:
            if not line.strip():
                break

            print(host + ': ' + line.decode('utf-8', 'replace').rstrip())

async def run_client() -> None:
    connector = asyncsshproxy.SSHProcessConnector(
        sys.argv[1] if len(sys.argv) > 1 else 'localhost',
        ssh_options={'ConnectTimeout': '5'}, ready_delay='1s')

    await asyncio.gather(*(fetch(connector, host) for host in
                           ('www.google.com', 'www.python.org')))

try:
    asyncio.get_event_loop().run_until_complete(run_client())
except (OSError, asyncio.TimeoutError, asyncsshproxy.Error) as exc:
    sys.exit('SSH proxy connection failed: ' + str(exc))
