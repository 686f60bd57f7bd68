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

"""SSH client command line construction"""

import shlex

from .constants import DEFAULT_PORT


def _format_ssh_options(ssh_options):
    """Return extra SSH client options as a list of -o arguments"""

    if isinstance(ssh_options, dict):
        ssh_options = ('%s=%s' % (key, value)
                       for key, value in ssh_options.items())

    args = []

    for option in ssh_options:
        args.extend(('-o', option))

    return args


def build_command(proxy, request, options, password_fd=None):
    """Build the command line to forward a connection through a proxy

       The returned argument list runs the SSH client in non-interactive
       mode, without a pseudo-terminal, forwarding the requested
       destination over its own stdin and stdout.

       If the proxy has a password set, the SSH client is run under
       the password helper, which reads the password from the pipe
       passed in as `password_fd` rather than from the command line.

    """

    argv = [options.ssh_path, '-T']

    if proxy.password is None:
        argv.extend(('-o', 'BatchMode=yes'))
    else:
        if password_fd is None:
            raise ValueError('A password pipe is required for '
                             'password authentication')

        argv.extend(('-o', 'NumberOfPasswordPrompts=1'))

    argv.extend(('-o', 'LogLevel=ERROR', '-o', 'ClearAllForwardings=yes'))

    if options.config_file:
        argv.extend(('-F', str(options.config_file)))

    argv.extend(_format_ssh_options(options.ssh_options))

    if proxy.port != DEFAULT_PORT:
        argv.extend(('-p', str(proxy.port)))

    argv.extend(('-W', str(request), '--', proxy.login))

    if proxy.password is not None:
        argv = [options.sshpass_path, '-d', str(password_fd)] + argv

    return argv


def format_command(argv):
    """Return a command line as a shell-quoted string for logging"""

    return ' '.join(shlex.quote(arg) for arg in argv)
