import contextlib
import gzip
import logging
from pathlib import Path

import pytest

from souvenir import KeyedMemoizer
from souvenir.utils import logcfg
from souvenir.utils.logged import Logged


@contextlib.contextmanager
def applied_logging(**kwargs):
    root = logging.getLogger()
    package_logger = logging.getLogger('souvenir')
    saved_handlers, saved_root_level, saved_package_level = root.handlers[:], root.level, package_logger.level
    logcfg.apply(**kwargs)
    installed = [handler for handler in root.handlers if handler not in saved_handlers]
    try:
        yield installed
    finally:
        for handler in installed:
            root.removeHandler(handler)
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_root_level)
        package_logger.setLevel(saved_package_level)


def test_console_config_has_no_file_handlers() -> None:
    config = logcfg.build_config()
    assert set(config['handlers']) == {'stdout', 'stderr'}
    assert config['root']['handlers'] == ['stdout', 'stderr']
    assert 'souvenir' in config['loggers']


def test_level_filters() -> None:
    def record(level: int) -> logging.LogRecord:
        return logging.LogRecord('souvenir', level, __file__, 1, 'message', None, None)

    assert logcfg.InfoFilter().filter(record(logging.DEBUG))
    assert logcfg.InfoFilter().filter(record(logging.INFO))
    assert not logcfg.InfoFilter().filter(record(logging.WARNING))
    assert logcfg.ErrorFilter().filter(record(logging.ERROR))
    assert not logcfg.ErrorFilter().filter(record(logging.INFO))


def test_apply_writes_log_files(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    logs_dir = tmp_path / 'nested' / 'log'
    with applied_logging(log_to_file=True, logs_dir=logs_dir) as installed:
        assert len(installed) == 4
        logging.getLogger('souvenir').setLevel(logging.DEBUG)

        memory = KeyedMemoizer(lambda x: x + 1, log_tag='increment')
        memory.resolve(1)
        logging.getLogger('souvenir.test').warning('something odd')

    assert 'miss for 1' in capsys.readouterr().out
    app_log = (logs_dir / 'app.log').read_text(encoding='utf-8')
    err_log = (logs_dir / 'err.log').read_text(encoding='utf-8')
    assert '[increment] miss for 1, 1 cached' in app_log
    assert 'something odd' in app_log
    assert 'something odd' in err_log
    assert 'increment' not in err_log


def test_rollover_compresses(tmp_path: Path) -> None:
    handler = logcfg.CompressingRotatingFileHandler(tmp_path / 'app.log', maxBytes=64, encoding='utf-8')
    handler.setFormatter(logging.Formatter('%(message)s'))
    try:
        for i in range(10):
            handler.emit(logging.LogRecord('souvenir', logging.INFO, __file__, 1, f'line {i:02d} ' * 4, None, None))
    finally:
        handler.close()

    archives = list(tmp_path.glob('app-*.log.gz'))
    assert archives
    archived_text = b''.join(gzip.decompress(path.read_bytes()) for path in archives).decode('utf-8')
    assert 'line 00' in archived_text
    assert (tmp_path / 'app.log').exists()


def test_logged_escapes_newlines(caplog: pytest.LogCaptureFixture) -> None:
    class Worker(Logged):
        pass

    worker = Worker('w1')
    with caplog.at_level(logging.INFO, logger='souvenir'):
        worker.warning('two\nlines')
        worker.log_tag = None
        worker.warning('untagged')
    assert [record.getMessage() for record in caplog.records] == ['[w1] two\\nlines', 'untagged']
    assert worker.logger.name == 'souvenir.test_logged_escapes_newlines.<locals>.Worker'
