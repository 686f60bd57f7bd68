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

"""SSH proxy connector constants"""

# pylint: disable=bad-whitespace

# Default port of the SSH proxy server
DEFAULT_PORT                        = 22

# Default executables used to reach the proxy server
DEFAULT_SSH_PATH                    = 'ssh'
DEFAULT_SSHPASS_PATH                = 'sshpass'

# Quiet period after spawning the SSH client before the forwarded
# channel is assumed to be open
DEFAULT_READY_DELAY                 = 2.0

# Idle period on the SSH client's stderr before its output is reported
# as a rejection
DEFAULT_ERROR_DELAY                 = 0.25

# Read buffer limit on the forwarded stream
DEFAULT_READ_LIMIT                  = 64*1024
