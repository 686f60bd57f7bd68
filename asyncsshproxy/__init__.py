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

"""Asyncio TCP connections tunneled through the system SSH client"""

from .version import __author__, __author_email__, __url__, __version__

from .connection import SSHProxyConnection

from .connector import SSHProcessConnector, SSHProxyOptions
from .connector import connect, open_connection

from .logging import logger, set_debug_level, set_log_level

from .misc import Error, InvalidLocator, InvalidDestination
from .misc import ConnectError, SpawnError, DiedError, RejectedError

from .target import ProxyTarget, ConnectRequest
from .target import parse_proxy_target, parse_destination
