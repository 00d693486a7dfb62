"""
SOCKS5 客户端 - 握手引擎

握手是一条严格线性的流水线，没有回到之前状态的路径:

    START -> AWAITING_METHOD -> [AUTHENTICATING] -> SENDING_REQUEST
          -> AWAITING_REPLY -> ESTABLISHED

任何一步失败都进入 FAILED 并立即把错误抛给调用方。
状态转换的判断由纯函数 state_after_method() 完成，便于在没有网络的
情况下单独测试；Handshake.run() 负责按顺序执行读写。
"""

import logging
from enum import Enum
from typing import List, Optional

from .address import Address
from .auth import Credentials, authenticate
from .core import AuthMethod, ReplyStatus
from .errors import (
    AuthenticationFailed, NoAcceptableAuthMethod, ProtocolError, ServerReplyError, Socks5Error,
)
from .messages import ConnectRequest, Greeting, MethodSelection, read_reply
from .stream import ByteStream

logger = logging.getLogger('async-socks5-handshake')


class HandshakeState(Enum):
    """握手状态"""
    START = 'start'
    AWAITING_METHOD = 'awaiting_method'
    AUTHENTICATING = 'authenticating'
    SENDING_REQUEST = 'sending_request'
    AWAITING_REPLY = 'awaiting_reply'
    ESTABLISHED = 'established'
    FAILED = 'failed'


def offered_methods(credentials: Optional[Credentials]) -> List[int]:
    """
    客户端提供的认证方法

    没有凭据时只提供 NO_AUTH，有凭据时提供 NO_AUTH 和 USERNAME_PASSWORD。
    """
    if credentials is None:
        return [AuthMethod.NO_AUTH]
    return [AuthMethod.NO_AUTH, AuthMethod.USERNAME_PASSWORD]


def state_after_method(selection: MethodSelection, offered: List[int]) -> HandshakeState:
    """
    根据服务器选择的方法决定下一个状态

    Args:
        selection: 解析后的方法选择应答
        offered: 客户端在问候中提供的方法

    Returns:
        HandshakeState: AUTHENTICATING 或 SENDING_REQUEST

    Raises:
        NoAcceptableAuthMethod: 服务器返回 0xFF
        AuthenticationFailed: 服务器要求用户名/密码认证，但没有提供凭据
        ProtocolError: 服务器选择了未知的方法
    """
    method = selection.method
    if method == AuthMethod.NO_ACCEPTABLE:
        raise NoAcceptableAuthMethod()
    if method == AuthMethod.USERNAME_PASSWORD:
        if method not in offered:
            raise AuthenticationFailed("服务器要求用户名/密码认证，但没有提供凭据")
        return HandshakeState.AUTHENTICATING
    if method not in offered:
        raise ProtocolError(f"服务器选择了未提供的认证方法: 0x{method:02x}")
    return HandshakeState.SENDING_REQUEST


class Handshake:
    """
    单次 SOCKS5 握手

    握手期间独占传入的流，一个实例只能运行一次。

    Attributes:
        stream: 已连接到代理服务器的字节流
        target: CONNECT 的目标地址
        credentials: 可选的用户凭据
        state: 当前状态
    """

    def __init__(self, stream: ByteStream, target: Address,
                 credentials: Optional[Credentials] = None):
        self.stream = stream
        self.target = target
        self.credentials = credentials
        self.state = HandshakeState.START

    def _transition(self, new_state: HandshakeState):
        logger.debug(f"握手状态: {self.state.value} -> {new_state.value}")
        self.state = new_state

    async def run(self) -> Address:
        """
        执行完整握手

        Returns:
            Address: 服务器应答中的绑定地址

        Raises:
            RuntimeError: 握手已经运行过
            Socks5Error: 任何协商失败
        """
        if self.state != HandshakeState.START:
            raise RuntimeError(f"握手已经运行过: state={self.state.value}")

        try:
            return await self._run()
        except Socks5Error as e:
            logger.warning(f"握手失败 ({self.state.value}): {e}")
            self.state = HandshakeState.FAILED
            raise
        except BaseException:
            self.state = HandshakeState.FAILED
            raise

    async def _run(self) -> Address:
        offered = offered_methods(self.credentials)
        await self.stream.write_all(Greeting(tuple(offered)).serialize())
        self._transition(HandshakeState.AWAITING_METHOD)

        selection, _ = MethodSelection.deserialize(await self.stream.read_exactly(2))
        next_state = state_after_method(selection, offered)

        if next_state == HandshakeState.AUTHENTICATING:
            self._transition(HandshakeState.AUTHENTICATING)
            await authenticate(self.stream, self.credentials)

        self._transition(HandshakeState.SENDING_REQUEST)
        await self.stream.write_all(ConnectRequest(self.target).serialize())
        self._transition(HandshakeState.AWAITING_REPLY)

        reply = await read_reply(self.stream)
        if reply.rep != ReplyStatus.SUCCEEDED:
            raise ServerReplyError(reply.rep, reply.bound_address)

        self._transition(HandshakeState.ESTABLISHED)
        return reply.bound_address
