#!/usr/bin/env python3
"""
日志管理测试

测试内容:
1. 从 YAML 和环境变量加载日志配置
2. 文件处理器写入带上下文的日志
3. 格式化器的彩色输出不污染记录
"""

import logging
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from async_socks5.logger import (
    ContextFilter, LogConfig, LogFormatter, LoggerManager, add_context, clear_context,
)


@pytest.fixture
def manager():
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield LoggerManager()
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    LoggerManager().context_filter = None


def test_singleton():
    assert LoggerManager() is LoggerManager()


def test_load_config_from_file(tmp_path, monkeypatch):
    monkeypatch.delenv('LOG_LEVEL', raising=False)
    monkeypatch.setenv('LOG_ENABLE_FILE', 'true')
    path = tmp_path / 'config.yaml'
    path.write_text(
        "logging:\n"
        "  level: DEBUG\n"
        "  log_file: socks.log\n"
        "  enable_console: false\n",
        encoding='utf-8',
    )
    config = LoggerManager().load_config_from_file(str(path))
    assert config.level == 'DEBUG'
    assert config.log_file == 'socks.log'
    assert config.enable_console is False
    assert config.enable_file is True


def test_load_config_missing_file(tmp_path, monkeypatch):
    monkeypatch.setenv('LOG_LEVEL', 'WARNING')
    config = LoggerManager().load_config_from_file(str(tmp_path / 'missing.yaml'))
    assert config.level == 'WARNING'
    assert config.context_fields == ['proxy', 'target']


def test_file_handler_with_context(manager, tmp_path):
    manager.initialize(LogConfig(
        level='DEBUG',
        log_dir=str(tmp_path / 'logs'),
        enable_console=False,
        enable_file=True,
    ))
    add_context(proxy='127.0.0.1:9050', target='example.com:80')
    logging.getLogger('async-socks5-client').info("隧道已建立")
    clear_context()
    logging.getLogger('async-socks5-client').info("第二条")

    for handler in logging.getLogger().handlers:
        handler.flush()
    content = (tmp_path / 'logs' / 'async-socks5.log').read_text(encoding='utf-8')
    assert 'proxy=127.0.0.1:9050 | target=example.com:80' in content
    assert '隧道已建立' in content
    assert 'proxy=- | target=-' in content


def test_formatter_color_restores_levelname():
    formatter = LogFormatter(fmt='%(levelname)s %(context)s %(message)s', use_color=True)
    record = logging.LogRecord('x', logging.ERROR, __file__, 1, 'boom', None, None)
    output = formatter.format(record)
    assert '\033[31mERROR\033[0m' in output
    assert output.endswith('- boom')
    assert record.levelname == 'ERROR'


def test_context_filter():
    context_filter = ContextFilter(['proxy'])
    context_filter.add_context(proxy='p:1', ignored='x')
    record = logging.LogRecord('x', logging.INFO, __file__, 1, 'msg', None, None)
    assert context_filter.filter(record)
    assert record.context == 'proxy=p:1'
