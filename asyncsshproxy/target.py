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

"""SSH proxy locator and connection destination parsing"""

from collections import namedtuple
from urllib.parse import unquote, urlsplit

from .constants import DEFAULT_PORT
from .misc import InvalidDestination, InvalidLocator


def _format_host_port(host, port):
    """Return a host and port as a string, bracketing IPv6 addresses"""

    if ':' in host:
        host = '[' + host + ']'

    return '%s:%d' % (host, port)


def _split_uri(uri, scheme, exc_class, label):
    """Split a URI with an optional scheme into its components"""

    if not isinstance(uri, str) or not uri:
        raise exc_class('Empty %s' % label)

    if '://' not in uri:
        uri = scheme + '://' + uri

    try:
        parts = urlsplit(uri)
        port = parts.port
    except ValueError as exc:
        raise exc_class('Invalid %s: %s' % (label, exc)) from None

    if parts.scheme != scheme:
        raise exc_class('Invalid %s: unsupported scheme %s' %
                        (label, parts.scheme))

    if parts.path or parts.query or parts.fragment:
        raise exc_class('Invalid %s: unexpected path or query' % label)

    if not parts.hostname:
        raise exc_class('Invalid %s: missing host' % label)

    if port == 0:
        raise exc_class('Invalid %s: port out of range' % label)

    return parts, port


class ProxyTarget(namedtuple('_ProxyTarget',
                             'host, port, username, password')):
    """SSH proxy server to tunnel connections through

       The password, if any, is never included in the string form
       or repr of the target.

    """

    __slots__ = ()

    def __new__(cls, host, port=DEFAULT_PORT, username=None, password=None):
        return super().__new__(cls, host, port, username, password)

    def __repr__(self):
        password = None if self.password is None else '***'

        return '%s(host=%r, port=%r, username=%r, password=%r)' % \
            (type(self).__name__, self.host, self.port,
             self.username, password)

    def __str__(self):
        if self.port == DEFAULT_PORT:
            return self.login

        user = self.username + '@' if self.username else ''
        return user + _format_host_port(self.host, self.port)

    @property
    def login(self):
        """The ``[user@]host`` argument passed to the SSH client"""

        return self.username + '@' + self.host if self.username \
            else self.host


class ConnectRequest(namedtuple('_ConnectRequest', 'host, port')):
    """A destination to connect to through the SSH proxy

       The host is passed to the proxy server unresolved.

    """

    __slots__ = ()

    def __str__(self):
        return _format_host_port(self.host, self.port)


def parse_proxy_target(locator):
    """Parse an SSH proxy locator

       This function parses a string of the form
       ``[ssh://][user[:password]@]host[:port]`` into a
       :class:`ProxyTarget`. Special characters in the user and
       password must be percent-encoded. If the port is not
       specified, the default SSH port of 22 is used.

       A :class:`ProxyTarget` passed in is returned unchanged.

       :param locator:
           The proxy locator to parse
       :type locator: `str` or :class:`ProxyTarget`

       :returns: :class:`ProxyTarget`

       :raises: :exc:`InvalidLocator` if the locator is malformed

    """

    if isinstance(locator, ProxyTarget):
        return locator

    parts, port = _split_uri(locator, 'ssh', InvalidLocator, 'SSH proxy')

    host = parts.hostname
    username = unquote(parts.username) if parts.username else None
    password = unquote(parts.password) if parts.password is not None \
        else None

    # Values starting with a dash would be taken as SSH client options
    if host.startswith('-') or (username and username.startswith('-')):
        raise InvalidLocator('Invalid SSH proxy: user and host must not '
                             'start with a dash')

    if password is not None and password.startswith('-'):
        raise InvalidLocator('Invalid SSH proxy: password must not '
                             'start with a dash')

    return ProxyTarget(host, port or DEFAULT_PORT, username, password)


def parse_destination(destination):
    """Parse a connection destination

       This function parses a string of the form ``[tcp://]host:port``
       into a :class:`ConnectRequest`. IPv6 addresses must be enclosed
       in square brackets. The host name is passed to the proxy server
       unresolved.

       :raises: :exc:`InvalidDestination` if the destination is malformed

    """

    parts, port = _split_uri(destination, 'tcp', InvalidDestination,
                             'destination')

    if parts.username is not None or parts.password is not None:
        raise InvalidDestination('Invalid destination: unexpected user')

    if port is None:
        raise InvalidDestination('Invalid destination: missing port')

    return ConnectRequest(parts.hostname, port)
