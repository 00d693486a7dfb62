"""
测试辅助 - 脚本化的 SOCKS5 对端

scripted_stream() 用真实的 asyncio.StreamReader 装入服务器要发送的全部字节，
再配一个记录所有写入的写入器，这样握手经过的是真正的 AsyncioByteStream。
必须在运行中的事件循环里调用。
"""

import asyncio

from async_socks5.stream import AsyncioByteStream


class RecordingWriter:
    """记录写入数据的 StreamWriter 替身"""

    def __init__(self):
        self.writes = []
        self.closed = False

    def write(self, data):
        if self.closed:
            raise ConnectionResetError("写入已关闭的连接")
        self.writes.append(bytes(data))

    async def drain(self):
        pass

    def close(self):
        self.closed = True

    def is_closing(self):
        return self.closed

    async def wait_closed(self):
        pass

    @property
    def data(self) -> bytes:
        return b''.join(self.writes)


def scripted_stream(script: bytes):
    """
    创建脚本化的流

    Args:
        script: 服务器依次发送的全部字节

    Returns:
        (AsyncioByteStream, RecordingWriter)
    """
    reader = asyncio.StreamReader()
    reader.feed_data(script)
    reader.feed_eof()
    writer = RecordingWriter()
    return AsyncioByteStream(reader, writer), writer


async def serve_socks5(reader: asyncio.StreamReader, writer: asyncio.StreamWriter,
                       reply: bytes = b'\x05\x00\x00\x01\x00\x00\x00\x00\x00\x00',
                       body: bytes = b'HTTP/1.0 200 OK\r\n\r\nhello'):
    """
    最小的 SOCKS5 服务器处理函数，只接受无认证的 CONNECT

    收到 HTTP 请求头后回复 body 并关闭连接。
    """
    try:
        header = await reader.readexactly(2)
        await reader.readexactly(header[1])
        writer.write(b'\x05\x00')
        await writer.drain()

        request = await reader.readexactly(4)
        atyp = request[3]
        if atyp == 0x01:
            await reader.readexactly(4 + 2)
        elif atyp == 0x04:
            await reader.readexactly(16 + 2)
        else:
            length = (await reader.readexactly(1))[0]
            await reader.readexactly(length + 2)
        writer.write(reply)
        await writer.drain()
        if reply[1] != 0x00:
            return

        await reader.readuntil(b'\r\n\r\n')
        writer.write(body)
        await writer.drain()
    except (asyncio.IncompleteReadError, ConnectionError):
        pass
    finally:
        writer.close()
