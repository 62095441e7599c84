import datetime
import io
import json

from span.benchmark import Timer, timed
from span.configuration import DEFAULT_BATCH_SIZE, Config
from span.utils import SetEncoder, load_set, open_maybe_binary


def test_set_encoder_dumps():
    assert json.dumps({'x': {2, 0, 1}}, cls=SetEncoder) == '{"x": [0, 1, 2]}'
    assert json.dumps({'x': frozenset(['b', 'a'])}, cls=SetEncoder) == '{"x": ["a", "b"]}'
    assert json.dumps(datetime.timedelta(days=-30), cls=SetEncoder) == '-30'
    assert json.dumps(datetime.datetime(2020, 1, 1), cls=SetEncoder) == '"2020-01-01T00:00:00"'


def test_load_set(tmpdir):
    assert load_set(io.StringIO(u"")) == set()
    assert load_set(io.StringIO(u"1\n1\n1\n")) == {"1"}
    assert load_set(io.StringIO(u"1\n    \n2\n")) == {"1", "2"}
    assert load_set(io.StringIO(u"1\n2\n3\n"), func=int) == {1, 2, 3}
    assert load_set(io.BytesIO(b"1\n2\n")) == {"1", "2"}

    path = tmpdir.join('values')
    path.write('1\n2\n')
    assert load_set(str(path)) == {"1", "2"}


def test_open_maybe_binary(tmpdir):
    path = tmpdir.join('file')
    path.write('x')
    handle, should_close = open_maybe_binary(str(path))
    assert should_close
    assert handle.read() == b'x'
    handle.close()

    f = io.BytesIO(b'y')
    assert open_maybe_binary(f) == (f, False)


def test_timer():
    with Timer() as timer:
        pass
    assert timer.elapsed_s >= 0
    assert Timer().rate(10) == 0.0


def test_timed():
    @timed
    def add(a, b):
        return a + b
    assert add(1, 2) == 3
    assert add.__name__ == 'add'


def test_config(tmpdir):
    path = tmpdir.join('span.ini')
    path.write('[span]\nbatch-size = 10\nworkers = 3\nignore-errors = yes\n')
    config = Config()
    assert config.batch_size() == DEFAULT_BATCH_SIZE
    assert config.hspec() == ''
    config.read([str(path)])
    assert config.batch_size() == 10
    assert config.workers() == 3
    assert config.ignore_errors() is True
    assert config.verbose() is False
    assert config.members() == ''
