#!/usr/bin/env python3
"""
握手状态机测试

测试内容:
1. 固定的方法提供策略
2. 纯状态转换函数
3. Handshake.run() 的状态推进和失败状态
"""

import asyncio
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from async_socks5 import (
    AuthMethod, Credentials, DomainAddr, Handshake, HandshakeState, IPv4Addr,
    MethodSelection, offered_methods, state_after_method,
)
from async_socks5.errors import (
    AuthenticationFailed, NoAcceptableAuthMethod, ProtocolError, ServerReplyError,
)
from scripted_peer import scripted_stream

SUCCESS_REPLY = b'\x05\x00\x00\x01\x00\x00\x00\x00\x00\x00'
CREDS = Credentials('user', 'pass')


def test_offered_methods():
    """无凭据只提供 NO_AUTH，有凭据提供 NO_AUTH 和 USERNAME_PASSWORD"""
    assert offered_methods(None) == [AuthMethod.NO_AUTH]
    assert offered_methods(CREDS) == [AuthMethod.NO_AUTH, AuthMethod.USERNAME_PASSWORD]


def test_state_after_method():
    both = offered_methods(CREDS)
    assert state_after_method(MethodSelection(0x00), both) == HandshakeState.SENDING_REQUEST
    assert state_after_method(MethodSelection(0x02), both) == HandshakeState.AUTHENTICATING


def test_state_after_method_no_acceptable():
    with pytest.raises(NoAcceptableAuthMethod):
        state_after_method(MethodSelection(0xFF), offered_methods(None))


@pytest.mark.parametrize('method', [0x01, 0x03, 0x80])
def test_state_after_method_unknown(method):
    with pytest.raises(ProtocolError):
        state_after_method(MethodSelection(method), offered_methods(CREDS))


def test_state_after_method_not_offered():
    """服务器要求用户名/密码认证，但客户端没有提供凭据"""
    with pytest.raises(AuthenticationFailed):
        state_after_method(MethodSelection(0x02), offered_methods(None))


def test_state_after_method_unknown_method():
    """服务器选择了客户端没有提供的其他方法"""
    with pytest.raises(ProtocolError):
        state_after_method(MethodSelection(0x03), offered_methods(None))


def test_run_no_auth():
    async def run():
        stream, writer = scripted_stream(b'\x05\x00' + SUCCESS_REPLY)
        handshake = Handshake(stream, IPv4Addr('203.0.113.1', 80))
        assert handshake.state == HandshakeState.START
        bound = await handshake.run()
        assert bound == IPv4Addr('0.0.0.0', 0)
        assert handshake.state == HandshakeState.ESTABLISHED
        assert writer.writes == [
            b'\x05\x01\x00',
            b'\x05\x01\x00\x01\xcb\x00\x71\x01\x00\x50',
        ]

    asyncio.run(run())


def test_run_with_auth():
    async def run():
        stream, writer = scripted_stream(b'\x05\x02' + b'\x01\x00' + SUCCESS_REPLY)
        handshake = Handshake(stream, DomainAddr('example.com', 80), CREDS)
        await handshake.run()
        assert writer.writes[0] == b'\x05\x02\x00\x02'
        assert writer.writes[1] == b'\x01\x04user\x04pass'
        assert handshake.state == HandshakeState.ESTABLISHED

    asyncio.run(run())


def test_run_no_auth_selected_with_credentials():
    """提供了凭据但服务器选择无认证时跳过认证"""
    async def run():
        stream, writer = scripted_stream(b'\x05\x00' + SUCCESS_REPLY)
        await Handshake(stream, DomainAddr('example.com', 80), CREDS).run()
        assert len(writer.writes) == 2

    asyncio.run(run())


def test_run_version_mismatch():
    async def run():
        stream, writer = scripted_stream(b'\x04\x00' + SUCCESS_REPLY)
        handshake = Handshake(stream, DomainAddr('example.com', 80))
        with pytest.raises(ProtocolError):
            await handshake.run()
        assert handshake.state == HandshakeState.FAILED
        assert len(writer.writes) == 1

    asyncio.run(run())


def test_run_auth_failed():
    """认证失败后不发送连接请求"""
    async def run():
        stream, writer = scripted_stream(b'\x05\x02\x01\x01')
        handshake = Handshake(stream, DomainAddr('example.com', 80), CREDS)
        with pytest.raises(AuthenticationFailed):
            await handshake.run()
        assert handshake.state == HandshakeState.FAILED
        assert len(writer.writes) == 2

    asyncio.run(run())


def test_run_reply_error_keeps_bound_address():
    async def run():
        stream, _ = scripted_stream(b'\x05\x00' + b'\x05\x04\x00\x01\x0a\x00\x00\x01\x04\x38')
        with pytest.raises(ServerReplyError) as excinfo:
            await Handshake(stream, DomainAddr('example.com', 80)).run()
        assert excinfo.value.bound_address == IPv4Addr('10.0.0.1', 1080)

    asyncio.run(run())


def test_run_only_once():
    async def run():
        stream, _ = scripted_stream(b'\x05\x00' + SUCCESS_REPLY)
        handshake = Handshake(stream, DomainAddr('example.com', 80))
        await handshake.run()
        with pytest.raises(RuntimeError):
            await handshake.run()

    asyncio.run(run())
