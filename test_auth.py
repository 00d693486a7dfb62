#!/usr/bin/env python3
"""
用户名/密码认证测试

测试内容:
1. 凭据构造校验
2. 认证成功、状态非零、应答截断
"""

import asyncio
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from async_socks5 import Credentials, authenticate
from async_socks5.errors import AuthenticationFailed, InvalidCredentials
from scripted_peer import scripted_stream


def test_credentials_encoding():
    creds = Credentials('user', 'pässword')
    assert creds.username == b'user'
    assert creds.password == 'pässword'.encode('utf-8')
    assert Credentials(b'raw', b'bytes').username == b'raw'


@pytest.mark.parametrize('username, password', [
    ('', 'pass'),
    ('user', ''),
    ('u' * 256, 'pass'),
    ('user', b'p' * 256),
    (None, 'pass'),
])
def test_credentials_validation(username, password):
    """长度为 0 或超过 255 字节的凭据在构造时被拒绝"""
    with pytest.raises(InvalidCredentials):
        Credentials(username, password)


def test_credentials_boundaries():
    Credentials('u', 'p')
    Credentials('u' * 255, 'p' * 255)


def test_credentials_repr_hides_password():
    assert 'secret' not in repr(Credentials('user', 'secret'))


def test_credentials_coerce():
    assert Credentials.coerce(None) is None
    creds = Credentials('a', 'b')
    assert Credentials.coerce(creds) is creds
    assert Credentials.coerce(('a', 'b')) == creds
    with pytest.raises(InvalidCredentials):
        Credentials.coerce(('only-one',))


def test_authenticate_success():
    async def run():
        stream, writer = scripted_stream(b'\x01\x00')
        await authenticate(stream, Credentials('user', 'pass'))
        assert writer.data == b'\x01\x04user\x04pass'

    asyncio.run(run())


def test_authenticate_ignores_reply_version():
    """只根据状态字节判断，部分服务器在版本字节回 0x05"""
    async def run():
        stream, _ = scripted_stream(b'\x05\x00')
        await authenticate(stream, Credentials('user', 'pass'))

    asyncio.run(run())


def test_authenticate_rejected():
    async def run():
        stream, _ = scripted_stream(b'\x01\x01')
        with pytest.raises(AuthenticationFailed):
            await authenticate(stream, Credentials('user', 'wrong'))

    asyncio.run(run())


@pytest.mark.parametrize('script', [b'', b'\x01'])
def test_authenticate_truncated_reply(script):
    """收到 2 字节之前连接关闭也是认证失败"""
    async def run():
        stream, _ = scripted_stream(script)
        with pytest.raises(AuthenticationFailed):
            await authenticate(stream, Credentials('user', 'pass'))

    asyncio.run(run())
