# coding: utf-8
# pylint: disable=C0301,R0904,W0221

# Copyright 2015 by Leipzig University Library, http://ub.uni-leipzig.de
#                   The Finc Authors, http://finc.info
#                   Martin Czygan, <martin.czygan@uni-leipzig.de>
#
# This file is part of some open source application.
#
# Some open source application is free software: you can redistribute
# it and/or modify it under the terms of the GNU General Public
# License as published by the Free Software Foundation, either
# version 3 of the License, or (at your option) any later version.
#
# Some open source application is distributed in the hope that it will
# be useful, but WITHOUT ANY WARRANTY; without even the implied warranty
# of MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with Foobar.  If not, see <http://www.gnu.org/licenses/>.
#
# @license GPL-3.0+ <http://spdx.org/licenses/GPL-3.0+>

"""
Configuration handling, ini format. Command line flags take precedence.

[span]

batch-size = 25000
workers = 8
ignore-errors = false
verbose = false
hspec = DE-15:/path/to/DE-15.xml, DE-14:/path/to/DE-14.xml
members = /path/to/members.ldj
"""

import logging
import os
from configparser import ConfigParser

logger = logging.getLogger('span')

DEFAULT_BATCH_SIZE = 25000


class Config(ConfigParser):
    """
    Access to ini file.
    """
    _instance = None

    # most specific path last
    _config_paths = [
        '/etc/span/span.ini',
        os.path.join(os.path.expanduser('~'), '.config/span/span.ini'),
    ]

    @classmethod
    def add_config_path(cls, path):
        """ Append config path. """
        cls._config_paths.append(path)
        cls.instance().reload()

    @classmethod
    def instance(cls, *args, **kwargs):
        """ Singleton getter """
        if cls._instance is None:
            cls._instance = cls(*args, **kwargs)
            _ = cls._instance.reload()

        return cls._instance

    def reload(self):
        """ Reload configuration. """
        read = self.read(self._config_paths)
        if read:
            logger.debug('read configuration from %s', ', '.join(read))
        return read

    def batch_size(self):
        return self.getint('span', 'batch-size', fallback=DEFAULT_BATCH_SIZE)

    def workers(self):
        return self.getint('span', 'workers', fallback=os.cpu_count() or 1)

    def ignore_errors(self):
        return self.getboolean('span', 'ignore-errors', fallback=False)

    def verbose(self):
        return self.getboolean('span', 'verbose', fallback=False)

    def hspec(self):
        return self.get('span', 'hspec', fallback='')

    def members(self):
        return self.get('span', 'members', fallback='')
