#!/usr/bin/env python3
"""
配置加载测试
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from async_socks5 import Credentials
from async_socks5.config import ClientConfig, load_config


def test_defaults():
    config = ClientConfig()
    assert config.proxy_host == '127.0.0.1'
    assert config.proxy_port == 1080
    assert config.remote_dns is True
    assert config.credentials is None


def test_load_config(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text(
        "client:\n"
        "  proxy_host: 10.0.0.5\n"
        "  proxy_port: 9050\n"
        "  username: user\n"
        "  password: pass\n"
        "  remote_dns: false\n"
        "  timeout: 5\n",
        encoding='utf-8',
    )
    config = ClientConfig.from_dict(load_config(str(path)))
    assert config.proxy_host == '10.0.0.5'
    assert config.proxy_port == 9050
    assert config.remote_dns is False
    assert config.timeout == 5.0
    assert config.credentials == Credentials('user', 'pass')


def test_load_empty_config(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text('', encoding='utf-8')
    assert load_config(str(path)) == {}
    assert ClientConfig.from_dict({}) == ClientConfig()


def test_load_missing_config(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / 'missing.yaml'))


def test_unknown_keys_ignored():
    config = ClientConfig.from_dict({'client': {'proxy_port': 1081, 'colour': 'blue'}})
    assert config.proxy_port == 1081


def test_invalid_port():
    with pytest.raises(ValueError):
        ClientConfig(proxy_port=70000)


def test_invalid_timeout():
    with pytest.raises(ValueError):
        ClientConfig(timeout=0)


def test_logger_name():
    from async_socks5.config import logger
    assert logger.name == 'async-socks5-config'


def test_partial_credentials():
    """只配置用户名时不使用认证"""
    assert ClientConfig(username='user').credentials is None
