"""
SOCKS5 客户端错误类型

所有错误都继承自 Socks5Error，调用方可以一次捕获全部握手失败。
每个错误对当前握手都是终止性的，库内部不会重试。
"""

from typing import Optional

from .core import REPLY_DESCRIPTIONS, ReplyStatus


class Socks5Error(Exception):
    """SOCKS5 错误基类"""


class ProtocolError(Socks5Error):
    """对端违反协议：版本号错误、未知地址类型、消息被截断等"""


class NoAcceptableAuthMethod(Socks5Error):
    """服务器拒绝了客户端提供的全部认证方法（0xFF）"""

    def __init__(self, message: str = "服务器拒绝了所有提供的认证方法"):
        super().__init__(message)


class AuthenticationFailed(Socks5Error):
    """用户名/密码认证失败，或认证应答不完整"""


class ServerReplyError(Socks5Error):
    """
    服务器对 CONNECT 请求返回了非零的 REP

    Attributes:
        code: 原始 REP 字节
        status: 对应的 ReplyStatus，未分配的值为 None
        bound_address: 应答中携带的绑定地址（可能为 None）
    """

    def __init__(self, code: int, bound_address=None):
        self.code = code
        self.status: Optional[ReplyStatus] = ReplyStatus.lookup(code)
        self.bound_address = bound_address
        if self.status is not None:
            description = REPLY_DESCRIPTIONS[self.status]
        else:
            description = f"未知的应答状态 0x{code:02x}"
        super().__init__(f"SOCKS5 连接失败: {description}")


class TransportError(Socks5Error):
    """
    底层字节流读写失败（包括连接意外关闭）

    原始异常通过 __cause__ 保留，不做重新解释。
    """


class InvalidAddress(Socks5Error, ValueError):
    """构造地址时参数非法：域名过长、端口越界、目标不是 IP 地址"""


class InvalidCredentials(Socks5Error, ValueError):
    """用户名或密码长度不在 1-255 字节之间"""
