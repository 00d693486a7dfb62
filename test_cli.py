#!/usr/bin/env python3
"""
命令行工具测试
"""

import asyncio
import logging
import os
import socket
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from async_socks5.cli import build_request, fetch, main
from async_socks5.config import ClientConfig
from scripted_peer import serve_socks5


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def _closed_port() -> int:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(('127.0.0.1', 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


def test_build_request():
    assert build_request('example.com', '/ip') == (
        b'GET /ip HTTP/1.1\r\nHost: example.com\r\nConnection: close\r\n\r\n'
    )


def test_fetch_through_local_proxy():
    async def run():
        server = await asyncio.start_server(serve_socks5, '127.0.0.1', 0)
        port = server.sockets[0].getsockname()[1]
        async with server:
            config = ClientConfig(proxy_port=port, timeout=5)
            return await fetch(config, 'http://example.com/index.html?q=1')

    assert asyncio.run(run()) == b'HTTP/1.0 200 OK\r\n\r\nhello'


def test_fetch_rejects_non_http():
    with pytest.raises(ValueError):
        asyncio.run(fetch(ClientConfig(), 'ftp://example.com/'))


def test_main_proxy_unreachable(tmp_path, restore_logging):
    """代理不可达时返回 1"""
    code = main([
        '--config', str(tmp_path / 'missing.yaml'),
        '--proxy', '127.0.0.1',
        '--proxy-port', str(_closed_port()),
        'http://example.com/',
    ])
    assert code == 1


def test_main_invalid_credentials(tmp_path, restore_logging):
    code = main([
        '--config', str(tmp_path / 'missing.yaml'),
        '--username', 'u' * 300,
        '--password', 'p',
        'http://example.com/',
    ])
    assert code == 1


def test_main_proxy_port_out_of_range(tmp_path, restore_logging):
    """命令行端口同样经过配置校验"""
    code = main([
        '--config', str(tmp_path / 'missing.yaml'),
        '--proxy-port', '70000',
        'http://example.com/',
    ])
    assert code == 1


def test_main_zero_timeout_rejected(tmp_path, restore_logging):
    code = main([
        '--config', str(tmp_path / 'missing.yaml'),
        '--timeout', '0',
        'http://example.com/',
    ])
    assert code == 1
