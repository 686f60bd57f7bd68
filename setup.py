#!/usr/bin/env python3.6

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

from os import path
from setuptools import setup

base_dir = path.abspath(path.dirname(__file__))

with open(path.join(base_dir, 'asyncsshproxy', 'version.py')) as version:
    exec(version.read())

setup(name = 'asyncsshproxy',
      version = __version__,
      author = __author__,
      author_email = __author_email__,
      url = __url__,
      license = 'Eclipse Public License v2.0',
      description = 'Asyncio TCP connections tunneled through the '
                    'system SSH client',
      long_description = 'This package opens TCP connections through an '
                         'SSH proxy server by running the system SSH '
                         'client with stdio forwarding, exposing each '
                         'connection as an asyncio stream.',
      platforms = 'Any',
      python_requires = '>= 3.6',
      install_requires = [],
      extras_require = {
          'uvloop':  ['uvloop >= 0.9.1'],
          'test':    ['pytest', 'uvloop >= 0.9.1']
      },
      packages = ['asyncsshproxy'],
      scripts = [],
      test_suite = 'tests',
      classifiers = [
          'Development Status :: 4 - Beta',
          'Environment :: Console',
          'Intended Audience :: Developers',
          'License :: OSI Approved',
          'Operating System :: POSIX',
          'Programming Language :: Python :: 3.6',
          'Programming Language :: Python :: 3.7',
          'Programming Language :: Python :: 3.8',
          'Programming Language :: Python :: 3.9',
          'Programming Language :: Python :: 3.10',
          'Topic :: Internet',
          'Topic :: Software Development :: Libraries :: Python Modules',
          'Topic :: System :: Networking'])
