"""
SOCKS5 客户端 - 消息编解码模块
在结构化消息和字节缓冲区之间做逐位精确的转换 (RFC 1928 §3-6, RFC 1929)。

版本: 1.0.0

消息格式（除特别说明外均为客户端 -> 服务器）:

问候:
┌─────┬──────────┬────────────┐
│ VER │ NMETHODS │  METHODS   │
│  1  │    1     │ 1 到 255   │
└─────┴──────────┴────────────┘

方法选择（服务器 -> 客户端）:
┌─────┬────────┐
│ VER │ METHOD │
│  1  │   1    │
└─────┴────────┘

用户名/密码认证请求与应答（服务器 -> 客户端）:
┌─────┬──────┬──────────┬──────┬──────────┐  ┌─────┬────────┐
│ VER │ ULEN │  UNAME   │ PLEN │  PASSWD  │  │ VER │ STATUS │
│  1  │  1   │ 1 到 255 │  1   │ 1 到 255 │  │  1  │   1    │
└─────┴──────┴──────────┴──────┴──────────┘  └─────┴────────┘

连接请求与应答（服务器 -> 客户端）:
┌─────┬─────┬─────┬──────┬──────────┬──────────┐
│ VER │ CMD │ RSV │ ATYP │   ADDR   │   PORT   │
│  1  │  1  │  1  │  1   │   可变   │    2     │
└─────┴─────┴─────┴──────┴──────────┴──────────┘
应答中 CMD 的位置是 REP。

所有多字节字段使用大端序（网络字节序）。
deserialize() 返回 (消息, 剩余字节)，数据不足时抛出 ProtocolError，
不会越过缓冲区末尾读取。
"""

import logging
import struct
from dataclasses import dataclass
from typing import Optional, Tuple

from .address import Address
from .core import (
    AUTH_VERSION, MAX_FIELD_LENGTH, RESERVED, SOCKS_VERSION,
    AddressType, Command, ReplyStatus,
)
from .errors import ProtocolError
from .stream import ByteStream

logger = logging.getLogger('async-socks5-protocol')


def _require(data: bytes, size: int, what: str):
    if len(data) < size:
        logger.error(f"数据不足以解析{what}: {len(data)} 字节，需要 {size} 字节")
        raise ProtocolError(f"数据不足以解析{what}")


def _check_version(version: int, what: str):
    if version != SOCKS_VERSION:
        logger.error(f"{what}版本号错误: 0x{version:02x}, 预期: 0x{SOCKS_VERSION:02x}")
        raise ProtocolError(f"{what}版本号错误: 0x{version:02x}")


# ============================================================================
# 认证方法协商
# ============================================================================

@dataclass(frozen=True)
class Greeting:
    """
    客户端问候消息，列出客户端支持的认证方法

    Attributes:
        methods: 认证方法字节元组（1-255 个）
    """
    methods: Tuple[int, ...]

    def serialize(self) -> bytes:
        """
        序列化问候消息

        Returns:
            bytes: [0x05, NMETHODS, METHODS...]

        Raises:
            ValueError: 方法数量不在 1-255 之间
        """
        if not 1 <= len(self.methods) <= MAX_FIELD_LENGTH:
            raise ValueError(f"认证方法数量必须在 1-{MAX_FIELD_LENGTH} 之间: {len(self.methods)}")
        logger.debug(f"序列化问候: methods={[hex(m) for m in self.methods]}")
        return struct.pack('>BB', SOCKS_VERSION, len(self.methods)) + bytes(self.methods)

    @classmethod
    def deserialize(cls, data: bytes) -> Tuple['Greeting', bytes]:
        _require(data, 2, "问候头部")
        version, nmethods = data[0], data[1]
        _check_version(version, "问候")
        _require(data, 2 + nmethods, "认证方法列表")
        return cls(tuple(data[2:2 + nmethods])), data[2 + nmethods:]


@dataclass(frozen=True)
class MethodSelection:
    """服务器选择的认证方法（原始字节，可能不是 AuthMethod 成员）"""
    method: int

    def serialize(self) -> bytes:
        return struct.pack('>BB', SOCKS_VERSION, self.method)

    @classmethod
    def deserialize(cls, data: bytes) -> Tuple['MethodSelection', bytes]:
        """
        解析方法选择应答

        Raises:
            ProtocolError: 数据不足或版本号不是 0x05
        """
        _require(data, 2, "方法选择")
        _check_version(data[0], "方法选择")
        logger.debug(f"解析方法选择: method=0x{data[1]:02x}")
        return cls(data[1]), data[2:]


# ============================================================================
# 用户名/密码子协商 (RFC 1929)
# ============================================================================

@dataclass(frozen=True)
class AuthRequest:
    """
    用户名/密码认证请求

    编码后的长度恰好为 3 + ULEN + PLEN。
    """
    username: bytes
    password: bytes

    def serialize(self) -> bytes:
        """
        序列化认证请求

        Raises:
            ValueError: 用户名或密码超过 255 字节
        """
        if len(self.username) > MAX_FIELD_LENGTH or len(self.password) > MAX_FIELD_LENGTH:
            raise ValueError(f"用户名和密码不能超过 {MAX_FIELD_LENGTH} 字节")
        logger.debug(f"序列化认证请求: ulen={len(self.username)}, plen={len(self.password)}")
        return (
            struct.pack('>BB', AUTH_VERSION, len(self.username)) + self.username
            + struct.pack('>B', len(self.password)) + self.password
        )

    @classmethod
    def deserialize(cls, data: bytes) -> Tuple['AuthRequest', bytes]:
        _require(data, 2, "认证请求头部")
        if data[0] != AUTH_VERSION:
            logger.error(f"认证子协商版本号错误: 0x{data[0]:02x}, 预期: 0x{AUTH_VERSION:02x}")
            raise ProtocolError(f"认证子协商版本号错误: 0x{data[0]:02x}")
        ulen = data[1]
        _require(data, 3 + ulen, "用户名")
        plen = data[2 + ulen]
        total = 3 + ulen + plen
        _require(data, total, "密码")
        return cls(data[2:2 + ulen], data[3 + ulen:total]), data[total:]

    def __repr__(self):
        return f"AuthRequest(username={self.username!r}, password=***)"


@dataclass(frozen=True)
class AuthReply:
    """
    认证应答

    只根据状态字节判断成功与否，不检查版本字节。
    """
    version: int
    status: int

    @property
    def success(self) -> bool:
        return self.status == 0x00

    def serialize(self) -> bytes:
        return struct.pack('>BB', self.version, self.status)

    @classmethod
    def deserialize(cls, data: bytes) -> Tuple['AuthReply', bytes]:
        _require(data, 2, "认证应答")
        return cls(data[0], data[1]), data[2:]


# ============================================================================
# 连接请求与应答
# ============================================================================

@dataclass(frozen=True)
class ConnectRequest:
    """CONNECT 请求，目标可以是 IP 地址或由代理解析的域名"""
    address: Address

    def serialize(self) -> bytes:
        logger.debug(f"序列化 CONNECT 请求: target={self.address}")
        return struct.pack('>BBB', SOCKS_VERSION, Command.CONNECT, RESERVED) + self.address.encode()

    @classmethod
    def deserialize(cls, data: bytes) -> Tuple['ConnectRequest', bytes]:
        _require(data, 4, "请求头部")
        _check_version(data[0], "请求")
        if data[1] != Command.CONNECT:
            logger.error(f"不支持的命令: 0x{data[1]:02x}")
            raise ProtocolError(f"不支持的命令: 0x{data[1]:02x}")
        address, remaining = Address.decode(data[3], data[4:])
        return cls(address), remaining


@dataclass(frozen=True)
class Reply:
    """
    服务器对 CONNECT 请求的应答

    Attributes:
        rep: 原始 REP 字节
        bound_address: 服务器绑定的地址（通常是代理自己的地址，仅供参考）
    """
    rep: int
    bound_address: Address

    @property
    def status(self) -> Optional[ReplyStatus]:
        return ReplyStatus.lookup(self.rep)

    @property
    def succeeded(self) -> bool:
        return self.rep == ReplyStatus.SUCCEEDED

    def serialize(self) -> bytes:
        return struct.pack('>BBB', SOCKS_VERSION, self.rep, RESERVED) + self.bound_address.encode()

    @classmethod
    def deserialize(cls, data: bytes) -> Tuple['Reply', bytes]:
        """
        解析应答

        非零 REP 不在这里当作错误处理，由握手引擎决定。

        Raises:
            ProtocolError: 数据不足、版本号错误或地址类型不支持
        """
        _require(data, 4, "应答头部")
        _check_version(data[0], "应答")
        address, remaining = Address.decode(data[3], data[4:])
        logger.debug(f"解析应答: rep=0x{data[1]:02x}, bound={address}")
        return cls(data[1], address), remaining


async def read_reply(stream: ByteStream) -> Reply:
    """
    从流中读取一个完整的应答

    先读取固定的 3 字节前缀并检查版本号，再读取 ATYP，
    然后只读取该地址类型需要的字节数。未知 ATYP 在继续读取之前就失败。

    Args:
        stream: 已连接的字节流

    Returns:
        Reply: 解析出的应答

    Raises:
        ProtocolError: 版本号错误或地址类型不支持
        TransportError: 连接在应答完整之前关闭
    """
    prefix = await stream.read_exactly(3)
    _check_version(prefix[0], "应答")

    atyp = (await stream.read_exactly(1))[0]
    if atyp == AddressType.DOMAIN:
        head = await stream.read_exactly(1)
        rest = await stream.read_exactly(Address.encoded_length(atyp, head[0]) - 1)
        body = head + rest
    else:
        body = await stream.read_exactly(Address.encoded_length(atyp))

    reply, _ = Reply.deserialize(prefix + bytes([atyp]) + body)
    return reply
