"""
async-socks5 客户端包

本包提供 SOCKS5 (RFC 1928) 客户端握手的异步实现，包括：
- 协议常量和枚举
- 地址模型（IPv4 / IPv6 / 域名）
- 消息编解码
- 用户名/密码认证 (RFC 1929)
- 握手状态机
- connect / connect_with_domain 两个入口

使用示例：
    from async_socks5 import connect_with_domain

    reader, writer = await asyncio.open_connection('127.0.0.1', 9050)
    tunnel = await connect_with_domain((reader, writer), 'example.com', 443)

    # 带认证
    tunnel = await connect_with_domain(stream, 'example.com', 443, ('user', 'pass'))
"""

from .core import (
    # 协议常量
    SOCKS_VERSION,
    AUTH_VERSION,

    # 枚举
    AuthMethod,
    Command,
    AddressType,
    ReplyStatus,
)
from .errors import (
    Socks5Error,
    ProtocolError,
    NoAcceptableAuthMethod,
    AuthenticationFailed,
    ServerReplyError,
    TransportError,
    InvalidAddress,
    InvalidCredentials,
)
from .address import Address, IPv4Addr, IPv6Addr, DomainAddr
from .messages import (
    Greeting,
    MethodSelection,
    AuthRequest,
    AuthReply,
    ConnectRequest,
    Reply,
    read_reply,
)
from .stream import ByteStream, AsyncioByteStream, open_stream
from .auth import Credentials, authenticate
from .handshake import Handshake, HandshakeState, offered_methods, state_after_method
from .client import Tunnel, Socks5Client, connect, connect_with_domain

__version__ = '1.0.0'
