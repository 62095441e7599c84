# coding: utf-8
# pylint: disable=C0103,C0301,R0902,R0913,W0703

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
Batched processing of newline delimited JSON.

The reader groups lines into batches, since it is more effective to send one
batch to a worker than many single lines. Worker processes convert, tag and
serialize each record and send the result to a single collector thread, which
writes to the output stream.

    reader --batches--> N workers --docs--> collector --> output

Order of output records is not guaranteed with more than one worker.

    processor = BatchProcessor(Options(tagger=tagger, source='crossref'))
    stats = processor.run(sys.stdin, sys.stdout)

A conversion error stops the run, unless `ignore_errors` is set.
"""

import collections
import logging
import multiprocessing
import os
import queue
import threading

from span.benchmark import Timer
from span.configuration import DEFAULT_BATCH_SIZE
from span.errors import RecordTransformError, SkipRecord
from span.filters import ISILTagger
from span.sources import crossref, get_converter
from span.utils import configure_logging

logger = logging.getLogger('span')

IDLE, READING, DRAINING, DONE = 'idle', 'reading', 'draining', 'done'

# Closes a queue for its consumer.
STOP = None

# Seconds to wait on a full queue, before checking on the other side.
PUT_TIMEOUT = 1.0


class Failure(object):
    """
    Sent from a worker to the collector, when a record could not be
    converted and errors are not ignored.
    """

    def __init__(self, message):
        self.message = message


class Options(object):
    """
    Options for a pipeline run. Everything in here is passed to the worker
    processes once and only read afterwards.
    """

    def __init__(self, tagger=None, source='is', ignore_errors=False, verbose=False,
                 num_workers=None, batch_size=DEFAULT_BATCH_SIZE, members=None):
        self.tagger = tagger if tagger is not None else ISILTagger()
        self.source = source
        self.ignore_errors = ignore_errors
        self.verbose = verbose
        self.num_workers = num_workers if num_workers is not None else (os.cpu_count() or 1)
        self.batch_size = batch_size
        self.members = dict(members or {})

        if self.num_workers < 1:
            raise ValueError('number of workers must be positive, got %s' % self.num_workers)
        if self.batch_size < 1:
            raise ValueError('batch size must be positive, got %s' % self.batch_size)
        get_converter(self.source)


def convert_lines(lines, options, convert=None):
    """
    Convert, tag and serialize lines, in order. Yields one JSON string per
    record. Skipped records are left out. If a record cannot be converted, it
    is left out as well with `ignore_errors`, otherwise RecordTransformError
    is raised.
    """
    if convert is None:
        convert = get_converter(options.source)
    for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            record = convert(line)
        except SkipRecord as err:
            logger.debug('%s', err)
            continue
        except RecordTransformError as err:
            if options.verbose:
                logger.warning('%s', err)
            if options.ignore_errors:
                continue
            raise
        record.set_tags(options.tagger.tags(record))
        yield record.to_json()


def worker(batches, docs, options, failed):
    """
    Receive batches of lines, convert them and send the results to docs. After
    a failure anywhere, batches are only drained, so the reader never blocks.
    """
    configure_logging(verbose=options.verbose)
    crossref.set_member_names(options.members)
    convert = get_converter(options.source)

    for batch in iter(batches.get, STOP):
        if failed.is_set():
            continue
        try:
            for doc in convert_lines(batch, options, convert=convert):
                docs.put(doc)
        except RecordTransformError as err:
            failed.set()
            docs.put(Failure(str(err)))
        except Exception:
            failed.set()
            raise


class BatchProcessor(object):
    """
    Runs the pipeline for one input stream, state goes from idle over
    reading and draining to done.
    """

    def __init__(self, options, context=None):
        self.options = options
        self.context = context or multiprocessing.get_context()
        self.state = IDLE
        self.stats = collections.Counter()

    def _put(self, q, item, consumers):
        """
        Put an item on a bounded queue, fail if no consumer is left.
        """
        while True:
            try:
                q.put(item, timeout=PUT_TIMEOUT)
                return
            except queue.Full:
                if not any(c.is_alive() for c in consumers):
                    raise RuntimeError('all workers exited unexpectedly')

    def _collect(self, docs, output, failed, problems):
        """
        Write docs to output until STOP. On any write error, keep draining, so
        workers do not block, and report the error at the end of the run.
        """
        broken = False
        for item in iter(docs.get, STOP):
            if isinstance(item, Failure):
                problems.append(RecordTransformError(item.message))
                continue
            if broken:
                continue
            try:
                output.write(item)
                output.write('\n')
                self.stats['written'] += 1
            except Exception as err:
                problems.append(err)
                failed.set()
                broken = True
        if not broken:
            try:
                output.flush()
            except Exception as err:
                problems.append(err)

    def run(self, reader, output):
        """
        Read lines from reader, write converted records to output. Returns a
        counter with the number of lines read and records written.
        """
        if self.state != IDLE:
            raise RuntimeError('processor already used, state is %s' % self.state)

        n = self.options.num_workers
        batches = self.context.Queue(maxsize=2 * n)
        docs = self.context.Queue(maxsize=4 * n * min(self.options.batch_size, 1000))
        failed = self.context.Event()
        problems = []

        workers = []
        for _ in range(n):
            p = self.context.Process(target=worker, args=(batches, docs, self.options, failed))
            p.daemon = True
            p.start()
            workers.append(p)

        collector = threading.Thread(target=self._collect, args=(docs, output, failed, problems))
        collector.daemon = True
        collector.start()

        with Timer() as timer:
            self.state = READING
            try:
                batch = []
                for line in reader:
                    self.stats['lines'] += 1
                    batch.append(line)
                    if len(batch) == self.options.batch_size:
                        self._put(batches, batch, workers)
                        batch = []
                        if failed.is_set():
                            break
                self._put(batches, batch, workers)
            finally:
                self.state = DRAINING
                for _ in workers:
                    self._put(batches, STOP, workers)
                for p in workers:
                    p.join()
                docs.put(STOP)
                collector.join()
                self.state = DONE

        logger.debug('%d lines, %d records in %0.2fs (%0.1f lines/s)', self.stats['lines'],
                     self.stats['written'], timer.elapsed_s, timer.rate(self.stats['lines']))

        if problems:
            raise problems[0]
        crashed = [p.exitcode for p in workers if p.exitcode != 0]
        if crashed:
            raise RuntimeError('%d worker(s) failed with exit codes %s' % (len(crashed), crashed))
        return self.stats
