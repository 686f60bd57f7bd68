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

"""Logging functions"""

import logging


class _ProxyLogger(logging.LoggerAdapter):
    """Adapter to add context to SSH proxy log messages"""

    _debug_level = 1
    _pkg_logger = logging.getLogger(__package__)

    def __init__(self, parent=_pkg_logger, child=None, context=''):
        self._context = context
        self._logger = parent.getChild(child) if child else parent

        super().__init__(self._logger, {})

    def _extend_context(self, context):
        """Extend context provided by this logger"""

        if context:
            if self._context:
                context = self._context + ', ' + context
        else:
            context = self._context

        return context

    def get_child(self, child=None, context=None):
        """Return child logger with optional added context"""

        return type(self)(self._logger, child, self._extend_context(context))

    def log(self, level, msg, *args, **kwargs):
        """Log a message to the underlying logger"""

        def _text(arg):
            """Convert a log argument to text"""

            if isinstance(arg, list):
                arg = ' '.join(arg)

            if isinstance(arg, tuple):
                host, port = arg

                if host:
                    return '%s, port %d' % (host, port) if port else host
                else:
                    return 'port %d' % port
            elif isinstance(arg, bytes):
                arg = arg.decode('utf-8', errors='replace')

            return arg

        args = [_text(arg) for arg in args]

        return super().log(level, msg, *args, **kwargs)

    def process(self, msg, kwargs):
        """Add context to log message"""

        extra = kwargs.get('extra', {})

        context = self._extend_context(extra.get('context'))
        context = '[' + context + '] ' if context else ''

        return context + msg, kwargs

    @classmethod
    def set_debug_level(cls, level):
        """Set SSH proxy debug log level"""

        if level < 1 or level > 2:
            raise ValueError('Debug log level must be between 1 and 2')

        cls._debug_level = level

    def debug1(self, msg, *args, **kwargs):
        """Write a level 1 debug log message"""

        self.debug(msg, *args, **kwargs)

    def debug2(self, msg, *args, **kwargs):
        """Write a level 2 debug log message"""

        if self._debug_level >= 2:
            self.debug(msg, *args, **kwargs)


def set_log_level(level):
    """Set the SSH proxy log level

       This function sets the log level of the SSH proxy logger. It
       defaults to `'NOTSET`', meaning that it will track the debug
       level set on the root Python logger.

       For additional control over the level of debug logging, see the
       function :func:`set_debug_level` for additional information.

       :param level:
           The log level to set, as defined by the `logging` module
       :type level: `int` or `str`

    """

    logger.setLevel(level)


def set_debug_level(level):
    """Set the SSH proxy debug log level

       This function sets the level of debugging logging done by the
       SSH proxy logger, from the following options:

           ===== ==============================================
           Level Description
           ===== ==============================================
           1     Minimal debug logging
           2     Full debug logging, including SSH client stderr
           ===== ==============================================

       The debug level defaults to level 1 (minimal debug logging).

       .. note:: For this setting to have any effect, the effective log
                 level of the SSH proxy logger must be set to DEBUG.

       :param level:
           The debug level to set, as defined above.
       :type level: `int`

    """

    logger.set_debug_level(level)


logger = _ProxyLogger()
