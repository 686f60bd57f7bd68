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

"""SSH proxy connector"""

import asyncio
import itertools

from pathlib import PurePath

from .constants import DEFAULT_SSH_PATH, DEFAULT_SSHPASS_PATH
from .constants import DEFAULT_READY_DELAY, DEFAULT_ERROR_DELAY
from .logging import logger
from .misc import Options, parse_time_interval
from .target import parse_destination, parse_proxy_target
from .tunnel import SSHProxyTunnel


_conn_ids = itertools.count()


def _parse_delay(value, name):
    """Parse a delay given as seconds or as a time interval string"""

    if isinstance(value, str):
        value = parse_time_interval(value)

    if isinstance(value, bool) or not isinstance(value, (int, float)) or \
            value < 0:
        raise ValueError('Invalid %s: %r' % (name, value))

    return value


class SSHProxyOptions(Options):
    """SSH proxy connector options

       :param ssh_path: (optional)
           The SSH client executable to run, defaulting to ``ssh``
           found on the search path.
       :param sshpass_path: (optional)
           The password helper executable to run when the proxy
           locator contains a password, defaulting to ``sshpass``
           found on the search path.
       :param config_file: (optional)
           An OpenSSH config file to pass to the SSH client in place
           of the user's default config.
       :param ssh_options: (optional)
           Additional OpenSSH options to pass to the SSH client, as
           a dict of option names and values or a list of strings of
           the form ``'Name=value'``.
       :param ready_delay: (optional)
           The time the SSH client must run without writing to stderr
           before the forwarded connection is assumed to be open,
           defaulting to 2 seconds.
       :param error_delay: (optional)
           The time to keep collecting SSH client stderr output after
           the last output is received before reporting it as a
           rejection, defaulting to 0.25 seconds.
       :type ssh_path: `str` or `PurePath`
       :type sshpass_path: `str` or `PurePath`
       :type config_file: `str` or `PurePath`
       :type ssh_options: `dict` or `list` of `str`
       :type ready_delay: `int`, `float`, or `str`
       :type error_delay: `int`, `float`, or `str`

    """

    # pylint: disable=arguments-differ
    def prepare(self, ssh_path=DEFAULT_SSH_PATH,
                sshpass_path=DEFAULT_SSHPASS_PATH, config_file=None,
                ssh_options=(), ready_delay=DEFAULT_READY_DELAY,
                error_delay=DEFAULT_ERROR_DELAY):
        """Prepare SSH proxy connector options"""

        self.ssh_path = str(ssh_path)
        self.sshpass_path = str(sshpass_path)

        if isinstance(config_file, PurePath):
            config_file = str(config_file)

        self.config_file = config_file

        if isinstance(ssh_options, dict):
            ssh_options = dict(ssh_options)
        elif isinstance(ssh_options, str):
            ssh_options = (ssh_options,)
        else:
            ssh_options = tuple(ssh_options)

        self.ssh_options = ssh_options

        self.ready_delay = _parse_delay(ready_delay, 'ready delay')
        self.error_delay = _parse_delay(error_delay, 'error delay')


class SSHProcessConnector:
    """Connector for TCP connections forwarded by an SSH client

       This class opens TCP connections through an SSH proxy server
       by running the system SSH client with stdio forwarding. It
       can be passed to any code which needs to open byte stream
       connections, so those connections are tunneled through the
       proxy without changes to the protocol running over them.

       The destination host name is resolved by the proxy server. To
       add a timeout, wrap calls to :meth:`connect` in
       :func:`asyncio.wait_for`.

       :param proxy:
           The SSH proxy server, as a string of the form
           ``[ssh://][user[:password]@]host[:port]`` with special
           characters in the user and password percent-encoded, or as
           a :class:`ProxyTarget`. If a password is given, the
           ``sshpass`` helper is used to log in. Otherwise, the SSH
           client logs in with keys or an agent and never prompts.
       :param options: (optional)
           Options to use when starting SSH clients. If specified,
           additional keyword arguments are applied on top of these
           options. See :class:`SSHProxyOptions` for the options
           which can be set.
       :type proxy: `str` or :class:`ProxyTarget`
       :type options: :class:`SSHProxyOptions`

       :raises: :exc:`InvalidLocator` if the proxy can't be parsed

    """

    def __init__(self, proxy, *, options=None, **kwargs):
        self._proxy = parse_proxy_target(proxy)
        self._options = SSHProxyOptions(options, **kwargs)

    def __repr__(self):
        return '%s(%r)' % (type(self).__name__, str(self._proxy))

    @property
    def proxy(self):
        """The SSH proxy server connections are made through"""

        return self._proxy

    @property
    def options(self):
        """The options used when starting SSH clients"""

        return self._options

    async def connect(self, destination):
        """Open a connection to a destination through the proxy

           This method is a coroutine which starts an SSH client to
           forward a connection to the destination and returns an
           :class:`SSHProxyConnection` once forwarding is assumed to
           be working. Each call starts its own SSH client.

           If the caller cancels this coroutine before it returns, the
           SSH client is killed and :exc:`asyncio.CancelledError` is
           raised with a message naming the destination.

           :param destination:
               The destination to connect to, as a string of the form
               ``[tcp://]host:port``
           :type destination: `str`

           :returns: :class:`SSHProxyConnection`

           :raises: | :exc:`InvalidDestination` if the destination
                      can't be parsed
                    | :exc:`SpawnError` if the SSH client can't be
                      started
                    | :exc:`DiedError` if the SSH client exits without
                      reporting an error
                    | :exc:`RejectedError` if the SSH client reports
                      an error

        """

        request = parse_destination(destination)

        conn_logger = logger.get_child(context='conn=%d' % next(_conn_ids))
        conn_logger.info('Connecting to %s via %s',
                         (request.host, request.port), str(self._proxy))

        tunnel = SSHProxyTunnel(asyncio.get_event_loop(), self._proxy,
                                request, self._options, conn_logger)

        return await tunnel.open()


async def open_connection(proxy, destination, *, options=None, **kwargs):
    """Open a single connection through an SSH proxy

       This function is a coroutine which creates an
       :class:`SSHProcessConnector` for `proxy` and opens a connection
       to `destination` with it. See :class:`SSHProcessConnector` for
       the arguments accepted.

       :returns: :class:`SSHProxyConnection`

    """

    connector = SSHProcessConnector(proxy, options=options, **kwargs)

    return await connector.connect(destination)


connect = open_connection
