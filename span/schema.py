# coding: utf-8
# pylint: disable=C0103,C0301,R0903

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
The intermediate schema, a normalized record shape all sources get converted
into. Field names follow the finc conventions, e.g.

    {
      "finc.format": "ElectronicArticle",
      "finc.record_id": "ai-49-aHR0cDovL2R4LmRvaS5vcmcvMTAuMTAxNi9qLm51cnguMjAwNi4wNS4wMjU",
      "finc.source_id": "49",
      "rft.atitle": "An Analysis of Correlations Among 4 Outcome Scales",
      "rft.issn": ["1234-5678"],
      "rft.date": "2010-05-01",
      "rft.volume": "10",
      "rft.issue": "5",
      "x.labels": ["DE-15"]
    }

Fields unknown to the model are kept, so records already in intermediate
schema survive tagging unchanged.
"""

import functools
from typing import List

import ujson
from dateutil import parser as dateparser
from pydantic import BaseModel, ConfigDict, Field

from span.holdings import combine_datum


@functools.lru_cache(maxsize=4096)
def parse_year(date):
    if not date:
        return ''
    try:
        return '%d' % dateparser.parse(date).year
    except (ValueError, OverflowError):
        return ''


class Author(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='allow')

    name: str = Field(default='', alias='rft.au')
    first: str = Field(default='', alias='rft.aufirst')
    last: str = Field(default='', alias='rft.aulast')


class IntermediateSchema(BaseModel):
    """
    A single normalized record.
    """
    model_config = ConfigDict(populate_by_name=True, extra='allow')

    record_id: str = Field(default='', alias='finc.record_id')
    source_id: str = Field(default='', alias='finc.source_id')
    format: str = Field(default='', alias='finc.format')
    mega_collection: List[str] = Field(default_factory=list, alias='finc.mega_collection')
    article_title: str = Field(default='', alias='rft.atitle')
    journal_title: str = Field(default='', alias='rft.jtitle')
    issn: List[str] = Field(default_factory=list, alias='rft.issn')
    eissn: List[str] = Field(default_factory=list, alias='rft.eissn')
    date: str = Field(default='', alias='rft.date')
    volume: str = Field(default='', alias='rft.volume')
    issue: str = Field(default='', alias='rft.issue')
    start_page: str = Field(default='', alias='rft.spage')
    end_page: str = Field(default='', alias='rft.epage')
    publishers: List[str] = Field(default_factory=list, alias='rft.pub')
    doi: str = ''
    url: List[str] = Field(default_factory=list)
    authors: List[Author] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list, alias='x.labels')

    @classmethod
    def from_json(cls, s):
        return cls.model_validate(ujson.loads(s))

    def to_json(self):
        """
        Serialize with the finc field names.
        """
        return ujson.dumps(self.model_dump(by_alias=True), ensure_ascii=False,
                           escape_forward_slashes=False)

    @property
    def year(self):
        """
        Publication year as string or empty string, if the date is missing or
        cannot be parsed.
        """
        return parse_year(self.date)

    def datum(self):
        """
        Position of this record, comparable to license ranges.
        """
        return combine_datum(self.year, self.volume, self.issue, '')

    def issns(self):
        return self.issn + self.eissn

    def set_tags(self, isils):
        self.labels = sorted(isils)
