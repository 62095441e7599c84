# coding: utf-8
# pylint: disable=F0401,C0111,W0232,E1101,E1103,C0301,C0103,W0614,W0401,E0202

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
Various utilities.
"""

import datetime
import io
import json
import logging

logger = logging.getLogger('span')

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(verbose=False):
    """
    Log to stderr, debug messages only if verbose. Does nothing, if logging
    is already set up, e.g. in a forked worker process.
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


class SetEncoder(json.JSONEncoder):
    """
    Helper to encode python sets into JSON lists, sorted, so output is stable.

    So you can write something like this:

        json.dumps({"things": set([1, 2, 3])}, cls=SetEncoder)

    Timedeltas are written as number of days, datetimes in ISO format.
    """

    def default(self, obj):
        """
        Decorate call to standard implementation.
        """
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        if isinstance(obj, datetime.timedelta):
            return obj.days
        if isinstance(obj, datetime.datetime):
            return obj.isoformat()
        return json.JSONEncoder.default(self, obj)


def load_set(fileobj, func=lambda v: v):
    """
    Given a filename or file object, load each non-empty line into a set.
    Surrounding whitespace is removed.
    """
    if isinstance(fileobj, str):
        with io.open(fileobj, encoding='utf-8') as handle:
            return load_set(handle, func=func)

    s = set()
    for line in fileobj:
        if isinstance(line, bytes):
            line = line.decode('utf-8')
        line = line.strip()
        if not line:
            continue
        s.add(func(line))
    return s


def open_maybe_binary(source, mode='rb'):
    """
    Return a (handle, should_close) pair for a filename or file object.
    """
    if isinstance(source, str):
        return io.open(source, mode), True
    return source, False
