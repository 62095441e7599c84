# coding: utf-8
# pylint: disable=C301,C0103,W0201

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
Timing for setup steps and pipeline runs. Usage:

    @timed
    def load(self):
        ...

    with Timer() as timer:
        processor.run()
    logger.info('took %0.2fs', timer.elapsed_s)

Just logs the output.
"""

import functools
import logging
from timeit import default_timer

logger = logging.getLogger('span')


class Timer(object):
    """ A timer as a context manager, measures wall clock time. """

    def __init__(self):
        self.timer = default_timer
        self.start = self.end = None
        self.elapsed_s = 0.0

    def __enter__(self):
        self.start = self.timer()
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.end = self.timer()
        self.elapsed_s = self.end - self.start

    def rate(self, count):
        """ Items per second. """
        if self.elapsed_s <= 0:
            return 0.0
        return count / self.elapsed_s


def timed(method):
    """ A @timed decorator, logs elapsed time at debug level. """
    @functools.wraps(method)
    def _timed(*args, **kwargs):
        with Timer() as timer:
            result = method(*args, **kwargs)
        logger.debug('[%s] %0.5f', method.__qualname__, timer.elapsed_s)
        return result
    return _timed
