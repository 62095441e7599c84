# coding: utf-8
# pylint: disable=C0103,W0232,C0301,W0703

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
Run a conversion as part of a luigi workflow.

    $ luigi --module span.task SpanConvert --input-file works.ldj \
        --output-file is.ldj --filterconfig filterconfig.json --local-scheduler

Workers and batch size default to the values in span.ini.
"""

import io
import logging

import luigi

from span.configuration import Config
from span.filterconfig import load_tagger
from span.filters import ISILTagger
from span.pipeline import BatchProcessor, Options

config = Config.instance()


class SpanConvert(luigi.Task):
    """
    Convert and tag a newline delimited JSON file.
    """
    input_file = luigi.Parameter(description='newline delimited JSON')
    output_file = luigi.Parameter(description='where to write the intermediate schema')
    source = luigi.Parameter(default='crossref', description='input format, crossref or is')
    filterconfig = luigi.Parameter(default='', description='path to filter configuration')
    ignore_errors = luigi.BoolParameter(default=False, significant=False)
    num_workers = luigi.IntParameter(default=config.workers(), significant=False)
    batch_size = luigi.IntParameter(default=config.batch_size(), significant=False)

    @property
    def logger(self):
        return logging.getLogger('span')

    def run(self):
        tagger = load_tagger(self.filterconfig) if self.filterconfig else ISILTagger()
        options = Options(tagger=tagger,
                          source=self.source,
                          ignore_errors=self.ignore_errors,
                          num_workers=self.num_workers,
                          batch_size=self.batch_size)
        with io.open(self.input_file, encoding='utf-8') as reader:
            with self.output().open('w') as output:
                stats = BatchProcessor(options).run(reader, output)
        self.logger.info('%s: %s lines, %s records', self.task_id, stats['lines'], stats['written'])

    def output(self):
        return luigi.LocalTarget(path=self.output_file)
