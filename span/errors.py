# coding: utf-8
# pylint: disable=C0111

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
Errors raised while reading holdings and converting records.

Delay errors are raised loudly, while malformed ISSNs in holdings files are
dropped without notice. Holdings parse errors are collected, record errors
are handled per run (skip or abort).
"""


class MalformedDelay(ValueError):
    """ A moving wall expression like '-1Y' could not be parsed. """


class UnknownFormat(MalformedDelay):
    pass


class UnknownUnit(MalformedDelay):
    pass


class DelayMismatch(ValueError):
    """ Start and end delay of an entitlement differ. """


class HoldingsParseErrors(Exception):
    """
    Collects errors from parsing a holdings file. The partially parsed value
    (if any) is available as `result`, so callers can decide to carry on.
    """

    def __init__(self, errors, result=None, filename=None):
        self.errors = list(errors)
        self.result = result
        self.filename = filename
        super(HoldingsParseErrors, self).__init__(
            '%d errors in holdings file%s' % (len(self.errors), ' %s' % filename if filename else ''))

    @property
    def count(self):
        return len(self.errors)


class RecordTransformError(Exception):
    """ A single input record could not be converted. """


class SkipRecord(Exception):
    """
    Raised by a source, if a record should not be part of the output. Not an
    error.
    """

    def __init__(self, reason):
        self.reason = reason
        super(SkipRecord, self).__init__('[skip] %s' % reason)
