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

"""Miscellaneous utility classes and functions"""

import re


_unit_pattern = re.compile(r'([A-Za-z])')
_time_units = {'': 1, 's': 1, 'm': 60, 'h': 60*60,
               'd': 24*60*60, 'w': 7*24*60*60}


def _parse_units(value, suffixes, label):
    """Parse a series of integers followed by unit suffixes"""

    matches = _unit_pattern.split(value)

    if matches[-1]:
        matches.append('')
    else:
        matches.pop()

    try:
        return sum(float(matches[i]) * suffixes[matches[i+1].lower()]
                   for i in range(0, len(matches), 2))
    except KeyError:
        raise ValueError('Invalid ' + label) from None


def parse_time_interval(value):
    """Parse a time interval with optional s, m, h, d, or w suffixes"""

    return _parse_units(value, _time_units, 'time interval')


class Options:
    """Container for configuration options"""

    def __init__(self, options=None, **kwargs):
        if options:
            if not isinstance(options, type(self)):
                raise TypeError('Invalid %s, got %s' %
                                (type(self).__name__, type(options).__name__))

            self.kwargs = options.kwargs.copy()
        else:
            self.kwargs = {}

        self.kwargs.update(kwargs)
        self.prepare(**self.kwargs)

    def prepare(self):
        """Pre-process configuration options"""

    def update(self, kwargs):
        """Update options based on keyword parameters passed in"""

        self.kwargs.update(kwargs)
        self.prepare(**self.kwargs)


class Error(Exception):
    """General SSH proxy error"""

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


class InvalidLocator(Error, ValueError):
    """Invalid SSH proxy locator

       This exception is raised when an SSH proxy locator can't be
       decoded as ``[ssh://][user[:password]@]host[:port]``. It is
       raised when the connector is constructed, before any SSH
       client is started.

       :param reason:
           A human-readable reason for the failure
       :type reason: `str`

    """


class InvalidDestination(Error, ValueError):
    """Invalid connection destination

       This exception is raised when the destination passed to
       :meth:`connect() <SSHProcessConnector.connect>` isn't of the
       form ``[tcp://]host:port``. No SSH client is started.

       :param reason:
           A human-readable reason for the failure
       :type reason: `str`

    """


class ConnectError(Error, OSError):
    """SSH proxy connection error

       This is the base class of errors reported when a connection
       through the SSH proxy can't be established. The SSH client
       started for the attempt has been killed by the time this is
       raised.

       :param destination:
           The ``host:port`` the connection was requested to
       :param reason:
           A human-readable reason for the failure, naming the
           destination
       :type destination: `str`
       :type reason: `str`

    """

    def __init__(self, destination, reason):
        super().__init__(reason)
        self.destination = destination


class SpawnError(ConnectError):
    """SSH client could not be started

       This exception is raised when the SSH client or password helper
       executable is missing or fails to start.

    """

    def __init__(self, destination, exc):
        super().__init__(destination, 'Connection to %s failed because SSH '
                         'client could not be started: %s' %
                         (destination, exc.strerror or exc))
        self.errno = exc.errno


class DiedError(ConnectError):
    """SSH client exited early

       This exception is raised when the SSH client exits before the
       forwarded channel is open without reporting why.

       :param exit_status:
           The exit status of the SSH client, negative if it was
           terminated by a signal
       :type exit_status: `int` or `None`

    """

    def __init__(self, destination, exit_status=None):
        super().__init__(destination, 'Connection to %s failed because '
                         'SSH client died' % destination)
        self.exit_status = exit_status


class RejectedError(ConnectError):
    """SSH client reported an error

       This exception is raised when the SSH client writes diagnostics
       to its stderr before the forwarded channel is open, such as
       an authentication failure or a remote connect failure.

       :param stderr:
           The trimmed diagnostic output of the SSH client
       :type stderr: `str`

    """

    def __init__(self, destination, stderr):
        super().__init__(destination, 'Connection to %s rejected: %s' %
                         (destination, stderr))
        self.stderr = stderr
