"""
SOCKS5 客户端 - 字节流能力接口

握手引擎只依赖一个抽象的双向字节流：可挂起的读和可挂起的写。
本库从不自己打开代理连接以外的套接字，调用方提供已连接到代理的流。

AsyncioByteStream 是 asyncio StreamReader/StreamWriter 的适配器，
其它运行时可以实现自己的 ByteStream 子类。
"""

import asyncio
import logging
from abc import ABC, abstractmethod

from .errors import TransportError

logger = logging.getLogger('async-socks5-stream')


class ByteStream(ABC):
    """
    双向字节流接口

    每次读写都是一个挂起点。实现必须把底层读写失败和连接意外关闭
    报告为 TransportError。
    """

    @abstractmethod
    async def read_exactly(self, n: int) -> bytes:
        """读取恰好 n 个字节，不足时抛出 TransportError"""

    @abstractmethod
    async def read(self, n: int = -1) -> bytes:
        """读取最多 n 个字节，EOF 时返回 b''"""

    @abstractmethod
    async def write_all(self, data: bytes) -> None:
        """写入全部数据并等待缓冲区排空"""

    @abstractmethod
    def close(self) -> None:
        """关闭底层连接"""

    async def wait_closed(self) -> None:
        """等待连接关闭完成"""


class AsyncioByteStream(ByteStream):
    """
    asyncio 流适配器

    Attributes:
        reader: 异步流读取器
        writer: 异步流写入器
    """

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer

    async def read_exactly(self, n: int) -> bytes:
        try:
            return await self.reader.readexactly(n)
        except asyncio.IncompleteReadError as e:
            logger.debug(f"连接意外关闭: 需要 {n} 字节，仅收到 {len(e.partial)} 字节")
            raise TransportError(f"连接意外关闭: 需要 {n} 字节，仅收到 {len(e.partial)} 字节") from e
        except OSError as e:
            raise TransportError(f"读取失败: {e}") from e

    async def read(self, n: int = -1) -> bytes:
        try:
            return await self.reader.read(n)
        except OSError as e:
            raise TransportError(f"读取失败: {e}") from e

    async def write_all(self, data: bytes) -> None:
        try:
            self.writer.write(data)
            await self.writer.drain()
        except OSError as e:
            raise TransportError(f"写入失败: {e}") from e

    def close(self) -> None:
        self.writer.close()

    async def wait_closed(self) -> None:
        try:
            await self.writer.wait_closed()
        except OSError as e:
            logger.debug(f"关闭连接时出错: {e}")


def as_byte_stream(stream) -> ByteStream:
    """
    把调用方传入的流统一为 ByteStream

    Args:
        stream: ByteStream 实例或 (StreamReader, StreamWriter) 元组

    Returns:
        ByteStream: 可供握手引擎使用的流
    """
    if isinstance(stream, ByteStream):
        return stream
    if isinstance(stream, tuple) and len(stream) == 2:
        reader, writer = stream
        return AsyncioByteStream(reader, writer)
    raise TypeError(f"不支持的流类型: {type(stream).__name__}")


async def open_stream(host: str, port: int) -> AsyncioByteStream:
    """
    打开到代理服务器的 TCP 连接

    Args:
        host: 代理地址
        port: 代理端口

    Returns:
        AsyncioByteStream: 已连接的流

    Raises:
        TransportError: 连接失败
    """
    logger.debug(f"连接代理服务器: {host}:{port}")
    try:
        reader, writer = await asyncio.open_connection(host, port)
    except OSError as e:
        raise TransportError(f"无法连接到代理服务器 {host}:{port}: {e}") from e
    return AsyncioByteStream(reader, writer)
