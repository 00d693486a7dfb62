"""
SOCKS5 客户端 - 用户名/密码认证模块 (RFC 1929)

只有当服务器在方法选择中选中 USERNAME_PASSWORD 时，握手引擎才会调用
authenticate()。每次握手最多调用一次，失败不重试。
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .core import MAX_FIELD_LENGTH
from .errors import AuthenticationFailed, InvalidCredentials, TransportError
from .messages import AuthReply, AuthRequest
from .stream import ByteStream

logger = logging.getLogger('async-socks5-auth')


def _to_bytes(value: Union[str, bytes], field: str) -> bytes:
    if isinstance(value, str):
        value = value.encode('utf-8')
    elif not isinstance(value, (bytes, bytearray)):
        raise InvalidCredentials(f"{field}必须是 str 或 bytes")
    if not 1 <= len(value) <= MAX_FIELD_LENGTH:
        raise InvalidCredentials(f"{field}长度必须在 1-{MAX_FIELD_LENGTH} 字节之间: {len(value)}")
    return bytes(value)


@dataclass(frozen=True)
class Credentials:
    """
    用户名和密码

    str 按 UTF-8 编码。编码后长度为 0 或超过 255 字节时在构造时抛出
    InvalidCredentials，避免发出服务器可能含糊拒绝的协商。

    Attributes:
        username: 用户名字节
        password: 密码字节
    """
    username: bytes
    password: bytes

    def __post_init__(self):
        object.__setattr__(self, 'username', _to_bytes(self.username, "用户名"))
        object.__setattr__(self, 'password', _to_bytes(self.password, "密码"))

    @classmethod
    def coerce(cls, credentials) -> Optional['Credentials']:
        """接受 None、Credentials 或 (username, password) 元组"""
        if credentials is None or isinstance(credentials, cls):
            return credentials
        try:
            username, password = credentials
        except (TypeError, ValueError) as e:
            raise InvalidCredentials("凭据必须是 (username, password) 元组") from e
        return cls(username, password)

    def to_request(self) -> AuthRequest:
        return AuthRequest(self.username, self.password)

    def __repr__(self):
        return f"Credentials(username={self.username!r}, password=***)"


CredentialsLike = Union[Credentials, Tuple[Union[str, bytes], Union[str, bytes]]]


async def authenticate(stream: ByteStream, credentials: Credentials) -> None:
    """
    执行用户名/密码子协商

    写入认证请求，读取恰好 2 字节的应答，状态字节为 0x00 时成功。

    Args:
        stream: 已完成方法协商的字节流
        credentials: 用户凭据

    Raises:
        AuthenticationFailed: 状态非零，或连接在收到 2 字节之前关闭
        TransportError: 写入失败
    """
    logger.debug(f"发送认证请求: username={credentials.username!r}")
    await stream.write_all(credentials.to_request().serialize())

    try:
        data = await stream.read_exactly(2)
    except TransportError as e:
        logger.warning(f"认证应答不完整: {e}")
        raise AuthenticationFailed("认证应答不完整") from e

    reply, _ = AuthReply.deserialize(data)
    if not reply.success:
        logger.warning(f"认证失败: status=0x{reply.status:02x}")
        raise AuthenticationFailed(f"认证失败: status=0x{reply.status:02x}")

    logger.debug("认证成功")
