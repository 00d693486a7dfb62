"""
SOCKS5 客户端 - 地址模型模块

SOCKS5 的地址是三种类型的标签联合:

┌──────┬──────────────────────────────┬──────────┐
│ ATYP │          地址主体            │   端口   │
│ 1字节│ IPv4: 4 字节                 │  2 字节  │
│      │ 域名: 1 字节长度 + 域名       │ (大端序) │
│      │ IPv6: 16 字节                │          │
└──────┴──────────────────────────────┴──────────┘

使用示例:
    addr = DomainAddr('example.com', 443)
    data = addr.encode()
    addr2, remaining = Address.decode(data[0], data[1:])
"""

import ipaddress
import logging
import struct
from dataclasses import dataclass
from typing import Tuple

from .core import AddressType, MAX_FIELD_LENGTH, MAX_PORT
from .errors import InvalidAddress, ProtocolError

logger = logging.getLogger('async-socks5-address')

IPV4_LENGTH = 4
IPV6_LENGTH = 16
PORT_LENGTH = 2


def _check_port(port) -> int:
    if isinstance(port, bool) or not isinstance(port, int):
        raise InvalidAddress(f"端口必须是整数: {port!r}")
    if not 0 <= port <= MAX_PORT:
        raise InvalidAddress(f"端口超出范围 0-{MAX_PORT}: {port}")
    return port


class Address:
    """
    SOCKS5 地址基类

    具体类型为 IPv4Addr、IPv6Addr 和 DomainAddr，构造后不可变。
    子类提供 atyp 类属性和 _encode_body() 方法。
    """

    atyp: AddressType

    def encode(self) -> bytes:
        """
        序列化为 ATYP + 地址主体 + 端口

        对于已构造成功的地址，该方法不会失败。

        Returns:
            bytes: 序列化后的地址字节
        """
        return struct.pack('>B', self.atyp) + self._encode_body() + struct.pack('>H', self.port)

    def _encode_body(self) -> bytes:
        raise NotImplementedError

    @staticmethod
    def encoded_length(atyp: int, length_byte: int = 0) -> int:
        """
        计算 ATYP 之后还需要读取的字节数（包括端口）

        Args:
            atyp: 地址类型字节
            length_byte: 域名类型的长度字节，其它类型忽略

        Returns:
            int: ATYP 之后的字节数

        Raises:
            ProtocolError: 不支持的地址类型
        """
        kind = AddressType.lookup(atyp)
        if kind == AddressType.IPV4:
            return IPV4_LENGTH + PORT_LENGTH
        if kind == AddressType.IPV6:
            return IPV6_LENGTH + PORT_LENGTH
        if kind == AddressType.DOMAIN:
            return 1 + length_byte + PORT_LENGTH
        logger.error(f"不支持的地址类型: 0x{atyp:02x}")
        raise ProtocolError(f"不支持的地址类型: 0x{atyp:02x}")

    @staticmethod
    def decode(atyp: int, data: bytes) -> Tuple['Address', bytes]:
        """
        从 ATYP 之后的字节解析地址

        Args:
            atyp: 地址类型字节
            data: 紧跟 ATYP 的字节数据

        Returns:
            Tuple[Address, bytes]: (解析出的地址, 剩余的字节数据)

        Raises:
            ProtocolError: 地址类型不支持、数据被截断或域名不是合法 UTF-8
        """
        if atyp == AddressType.DOMAIN and not data:
            logger.error("地址数据不足: 缺少域名长度字节")
            raise ProtocolError("地址数据被截断")
        length_byte = data[0] if atyp == AddressType.DOMAIN else 0
        total = Address.encoded_length(atyp, length_byte)
        if len(data) < total:
            logger.error(f"地址数据不足: {len(data)} 字节，需要 {total} 字节")
            raise ProtocolError("地址数据被截断")

        port = struct.unpack('>H', data[total - PORT_LENGTH:total])[0]
        if atyp == AddressType.IPV4:
            address = IPv4Addr(ipaddress.IPv4Address(data[:IPV4_LENGTH]), port)
        elif atyp == AddressType.IPV6:
            address = IPv6Addr(ipaddress.IPv6Address(data[:IPV6_LENGTH]), port)
        else:
            try:
                name = data[1:1 + length_byte].decode('utf-8')
            except UnicodeDecodeError as e:
                raise ProtocolError(f"域名不是合法的 UTF-8: {e}") from e
            address = DomainAddr(name, port)

        logger.debug(f"解析地址: {address}")
        return address, data[total:]

    @staticmethod
    def from_socket_address(sockaddr) -> 'Address':
        """
        从已解析的套接字地址构造 IPv4Addr 或 IPv6Addr

        Args:
            sockaddr: (host, port) 或 IPv6 的 (host, port, flowinfo, scope_id)，
                也可以直接传入 IPv4Addr / IPv6Addr

        Returns:
            Address: IP 类型的地址

        Raises:
            InvalidAddress: host 不是 IP 地址
        """
        if isinstance(sockaddr, (IPv4Addr, IPv6Addr)):
            return sockaddr
        if isinstance(sockaddr, DomainAddr):
            raise InvalidAddress(f"需要已解析的 IP 地址，而不是域名: {sockaddr.host}")
        try:
            host, port = sockaddr[0], sockaddr[1]
        except (TypeError, IndexError) as e:
            raise InvalidAddress(f"无效的套接字地址: {sockaddr!r}") from e
        try:
            ip = ipaddress.ip_address(host)
        except ValueError as e:
            raise InvalidAddress(f"需要已解析的 IP 地址: {host!r}") from e
        if ip.version == 4:
            return IPv4Addr(ip, port)
        return IPv6Addr(ip, port)

    @staticmethod
    def parse(host: str, port: int) -> 'Address':
        """IP 字面量构造 IP 地址，其它情况构造 DomainAddr"""
        try:
            ip = ipaddress.ip_address(host)
        except ValueError:
            return DomainAddr(host, port)
        if ip.version == 4:
            return IPv4Addr(ip, port)
        return IPv6Addr(ip, port)


@dataclass(frozen=True)
class IPv4Addr(Address):
    """IPv4 地址和端口"""
    host: ipaddress.IPv4Address
    port: int

    atyp = AddressType.IPV4

    def __post_init__(self):
        try:
            object.__setattr__(self, 'host', ipaddress.IPv4Address(self.host))
        except ValueError as e:
            raise InvalidAddress(f"无效的 IPv4 地址: {self.host!r}") from e
        _check_port(self.port)

    def _encode_body(self) -> bytes:
        return self.host.packed

    def __str__(self):
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class IPv6Addr(Address):
    """IPv6 地址和端口"""
    host: ipaddress.IPv6Address
    port: int

    atyp = AddressType.IPV6

    def __post_init__(self):
        try:
            object.__setattr__(self, 'host', ipaddress.IPv6Address(self.host))
        except ValueError as e:
            raise InvalidAddress(f"无效的 IPv6 地址: {self.host!r}") from e
        _check_port(self.port)

    def _encode_body(self) -> bytes:
        return self.host.packed

    def __str__(self):
        return f"[{self.host}]:{self.port}"


@dataclass(frozen=True)
class DomainAddr(Address):
    """
    域名和端口，由代理服务器负责解析

    域名按 UTF-8 编码后不得超过 255 字节，否则在构造时抛出 InvalidAddress，
    不会等到对端拒绝。
    """
    host: str
    port: int

    atyp = AddressType.DOMAIN

    def __post_init__(self):
        if not isinstance(self.host, str):
            raise InvalidAddress(f"域名必须是字符串: {self.host!r}")
        length = len(self.host.encode('utf-8'))
        if length > MAX_FIELD_LENGTH:
            raise InvalidAddress(f"域名过长: {length} 字节，最多 {MAX_FIELD_LENGTH} 字节")
        _check_port(self.port)

    def _encode_body(self) -> bytes:
        name = self.host.encode('utf-8')
        return struct.pack('>B', len(name)) + name

    def __str__(self):
        return f"{self.host}:{self.port}"
