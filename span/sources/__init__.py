# coding: utf-8
# pylint: disable=C0301

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
Sources convert a single line of input into an intermediate schema record.

A converter takes a string and returns an IntermediateSchema. It raises
RecordTransformError, if the line cannot be converted and SkipRecord, if the
record should be left out. Converters are looked up by name, so only the name
needs to be passed to worker processes.
"""

from span.sources import crossref, intermediate

SOURCES = {
    'crossref': crossref.convert,
    'is': intermediate.convert,
}


def get_converter(name):
    """
    Return the converter function for a source name.
    """
    try:
        return SOURCES[name]
    except KeyError:
        raise ValueError('unknown source: %s, available: %s' % (name, ', '.join(sorted(SOURCES))))
