"""
SOCKS5 客户端 - 客户端入口模块

两个入口:
- connect(): 目标是已解析的 IP 套接字地址
- connect_with_domain(): 目标是域名，由代理服务器解析

两者在调用期间独占传入的流，成功后把同一个流包装成 Tunnel 交还调用方。
失败时流保持打开，由调用方负责关闭。

使用示例:
    reader, writer = await asyncio.open_connection('127.0.0.1', 9050)
    tunnel = await connect_with_domain((reader, writer), 'icanhazip.com', 80)
    await tunnel.write(b'GET / HTTP/1.1\\r\\nHost: icanhazip.com\\r\\n\\r\\n')
"""

import logging
from typing import Optional

from .address import Address, DomainAddr
from .auth import Credentials, CredentialsLike
from .handshake import Handshake
from .stream import ByteStream, as_byte_stream, open_stream

logger = logging.getLogger('async-socks5-client')


class Tunnel:
    """
    已建立的隧道

    隧道没有独立的生命周期：它就是握手时传入的那个流，关闭流即结束隧道。

    Attributes:
        stream: 底层字节流（与调用方传入的是同一个对象）
        bound_address: 服务器应答中的绑定地址，仅供参考
    """

    def __init__(self, stream: ByteStream, bound_address: Address):
        self.stream = stream
        self.bound_address = bound_address

    async def read(self, n: int = -1) -> bytes:
        return await self.stream.read(n)

    async def read_exactly(self, n: int) -> bytes:
        return await self.stream.read_exactly(n)

    async def write(self, data: bytes) -> None:
        await self.stream.write_all(data)

    def close(self) -> None:
        self.stream.close()

    async def wait_closed(self) -> None:
        await self.stream.wait_closed()

    def __repr__(self):
        return f"Tunnel(bound_address={self.bound_address})"


async def _negotiate(stream, target: Address, credentials: Optional[CredentialsLike]) -> Tunnel:
    byte_stream = as_byte_stream(stream)
    handshake = Handshake(byte_stream, target, Credentials.coerce(credentials))
    bound_address = await handshake.run()
    logger.info(f"隧道已建立: target={target}, bound={bound_address}")
    return Tunnel(byte_stream, bound_address)


async def connect(stream, target, credentials: Optional[CredentialsLike] = None) -> Tunnel:
    """
    通过代理连接到已解析的 IP 地址

    Args:
        stream: 已连接到代理的 ByteStream 或 (StreamReader, StreamWriter)
        target: (host, port) 套接字地址，或 IPv4Addr / IPv6Addr
        credentials: 可选的凭据，Credentials 或 (username, password)

    Returns:
        Tunnel: 已建立的隧道

    Raises:
        InvalidAddress: target 不是 IP 地址
        Socks5Error: 协商失败
    """
    address = Address.from_socket_address(target)
    return await _negotiate(stream, address, credentials)


async def connect_with_domain(stream, domain: str, port: int,
                              credentials: Optional[CredentialsLike] = None) -> Tunnel:
    """
    通过代理连接到域名，DNS 解析在代理服务器上完成

    域名超过 255 字节时在任何 I/O 之前抛出 InvalidAddress。

    Args:
        stream: 已连接到代理的 ByteStream 或 (StreamReader, StreamWriter)
        domain: 目标域名
        port: 目标端口
        credentials: 可选的凭据

    Returns:
        Tunnel: 已建立的隧道
    """
    address = DomainAddr(domain, port)
    return await _negotiate(stream, address, credentials)


class Socks5Client:
    """
    SOCKS5 客户端

    connect / connect_with_domain 与模块级函数相同；
    open_connection 额外负责打开到代理的 TCP 连接。
    """

    connect = staticmethod(connect)
    connect_with_domain = staticmethod(connect_with_domain)

    @staticmethod
    async def open_connection(proxy_host: str, proxy_port: int, host: str, port: int,
                              credentials: Optional[CredentialsLike] = None,
                              remote_dns: bool = True) -> Tunnel:
        """
        打开到代理的连接并完成握手

        remote_dns 为 True 时，非 IP 的 host 交给代理解析；
        为 False 时 host 必须已经是 IP 地址。协商失败时关闭本方法打开的连接。

        Args:
            proxy_host: 代理地址
            proxy_port: 代理端口
            host: 目标主机
            port: 目标端口
            credentials: 可选的凭据
            remote_dns: 是否由代理解析域名

        Returns:
            Tunnel: 已建立的隧道
        """
        if remote_dns:
            target = Address.parse(host, port)
        else:
            target = Address.from_socket_address((host, port))
        creds = Credentials.coerce(credentials)

        stream = await open_stream(proxy_host, proxy_port)
        try:
            return await _negotiate(stream, target, creds)
        except BaseException:
            stream.close()
            await stream.wait_closed()
            raise
