# coding: utf-8
# pylint: disable=F0401,C0111,W0232,E1101,E1103,C0301,C0103,W0614,W0401,E0202

# Copyright 2023 by Leipzig University Library, http://ub.uni-leipzig.de
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
Helper for label attachment configurations.

A filter configuration lists, for each ISIL, the filters to apply:

    {
      "DE-15": [
        {"holdings": "/path/to/DE-15.xml"},
        {"source": "49"}
      ],
      "DE-14": [
        {"list": "/path/to/issn.list"}
      ],
      "DE-Ch1": [
        {"list": ["1234-5678", "8765-4321"]}
      ],
      "DE-Gla1": [
        {"any": {}}
      ]
    }

Each entry must name exactly one filter. Lists can be given inline or as a
path to a file with one value per line.
"""

import io
import json
import logging
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, RootModel, model_validator

from span.benchmark import timed
from span.errors import HoldingsParseErrors
from span.filters import Any, HoldingsFilter, ISILTagger, ListFilter, SourceFilter

logger = logging.getLogger('span')


class FilterSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='forbid')

    any_: Optional[dict] = Field(default=None, alias='any')
    source: Optional[Union[str, int]] = None
    list_: Optional[Union[str, List[str]]] = Field(default=None, alias='list')
    holdings: Optional[str] = None

    @model_validator(mode='after')
    def exactly_one(self):
        given = [v for v in (self.any_, self.source, self.list_, self.holdings) if v is not None]
        if len(given) != 1:
            raise ValueError('exactly one filter per entry required, got %d' % len(given))
        return self


class FilterConfig(RootModel[Dict[str, List[FilterSpec]]]):
    """
    ISIL to filter specifications.
    """

    def isils(self):
        return sorted(self.root.keys())


def load_filterconfig(config):
    """
    Load a configuration from a filename, file object or dictionary.
    """
    if isinstance(config, str):
        with io.open(config, encoding='utf-8') as handle:
            config = json.load(handle)
    elif hasattr(config, 'read'):
        config = json.load(config)
    return FilterConfig.model_validate(config)


@timed
def load_tagger(config, strict=False, ref=None):
    """
    Build an ISILTagger from a filter configuration. Holdings files with errors
    are used with what could be parsed, unless `strict` is set. Each holdings
    file is parsed only once, even if it is used by more than one ISIL.
    """
    fc = config if isinstance(config, FilterConfig) else load_filterconfig(config)
    tagger, cache = ISILTagger(), {}

    for isil, specs in fc.root.items():
        tagger.setdefault(isil, [])
        for spec in specs:
            if spec.any_ is not None:
                tagger.add(isil, Any())
            elif spec.source is not None:
                tagger.add(isil, SourceFilter(spec.source))
            elif spec.list_ is not None:
                if isinstance(spec.list_, list):
                    tagger.add(isil, ListFilter(spec.list_))
                else:
                    tagger.add(isil, ListFilter.from_file(spec.list_))
            elif spec.holdings is not None:
                if spec.holdings not in cache:
                    try:
                        cache[spec.holdings] = HoldingsFilter.from_file(spec.holdings, ref=ref)
                    except HoldingsParseErrors as err:
                        if strict:
                            raise
                        logger.warning('%s: %s, using %d ISSN', isil, err, len(err.result.table))
                        cache[spec.holdings] = err.result
                tagger.add(isil, cache[spec.holdings])

    logger.debug('tagger with %d ISIL ready', len(tagger))
    return tagger
