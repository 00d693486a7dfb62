"""
SOCKS5 客户端 - 核心协议常量模块
定义 SOCKS5 (RFC 1928) 与用户名/密码认证 (RFC 1929) 使用的常量和枚举。

版本: 1.0.0

功能概述:
本模块是协议栈的最底层，地址模型、消息编解码、认证和握手模块都依赖
这里的定义。本模块不依赖包内其它任何模块。

主要内容:
1. 协议版本号常量
2. 认证方法枚举
3. 命令枚举（仅实现 CONNECT）
4. 地址类型枚举
5. 应答状态枚举
"""

from enum import IntEnum
from typing import Optional


# ============================================================================
# 协议常量
# ============================================================================

SOCKS_VERSION = 0x05
AUTH_VERSION = 0x01  # RFC 1929 子协商版本
RESERVED = 0x00
MAX_FIELD_LENGTH = 255  # 单字节长度字段的上限
MAX_PORT = 65535


# ============================================================================
# 枚举
# ============================================================================

class AuthMethod(IntEnum):
    """
    认证方法枚举

    客户端只会提供 NO_AUTH 和 USERNAME_PASSWORD 两种方法，
    NO_ACCEPTABLE 只出现在服务器的方法选择应答中。
    """
    NO_AUTH = 0x00
    USERNAME_PASSWORD = 0x02
    NO_ACCEPTABLE = 0xFF


class Command(IntEnum):
    """请求命令（BIND 和 UDP ASSOCIATE 不支持）"""
    CONNECT = 0x01


class AddressType(IntEnum):
    """
    地址类型（ATYP）

    - IPV4: 后跟 4 字节地址
    - DOMAIN: 后跟 1 字节长度和域名
    - IPV6: 后跟 16 字节地址
    """
    IPV4 = 0x01
    DOMAIN = 0x03
    IPV6 = 0x04

    @classmethod
    def lookup(cls, value: int) -> Optional['AddressType']:
        """按字节值查找地址类型，未知值返回 None"""
        try:
            return cls(value)
        except ValueError:
            return None


class ReplyStatus(IntEnum):
    """
    服务器应答状态（REP 字段）

    0x09-0xFF 未分配，lookup() 对这些值返回 None，
    调用方保留原始字节而不是猜测一个枚举成员。
    """
    SUCCEEDED = 0x00
    GENERAL_FAILURE = 0x01
    NOT_ALLOWED = 0x02
    NETWORK_UNREACHABLE = 0x03
    HOST_UNREACHABLE = 0x04
    CONNECTION_REFUSED = 0x05
    TTL_EXPIRED = 0x06
    COMMAND_NOT_SUPPORTED = 0x07
    ADDRESS_TYPE_NOT_SUPPORTED = 0x08

    @classmethod
    def lookup(cls, value: int) -> Optional['ReplyStatus']:
        """按字节值查找应答状态，未知值返回 None"""
        try:
            return cls(value)
        except ValueError:
            return None


# 应答状态的可读描述，用于错误消息
REPLY_DESCRIPTIONS = {
    ReplyStatus.SUCCEEDED: "成功",
    ReplyStatus.GENERAL_FAILURE: "SOCKS 服务器一般性故障",
    ReplyStatus.NOT_ALLOWED: "规则集不允许该连接",
    ReplyStatus.NETWORK_UNREACHABLE: "网络不可达",
    ReplyStatus.HOST_UNREACHABLE: "主机不可达",
    ReplyStatus.CONNECTION_REFUSED: "连接被拒绝",
    ReplyStatus.TTL_EXPIRED: "TTL 已过期",
    ReplyStatus.COMMAND_NOT_SUPPORTED: "不支持的命令",
    ReplyStatus.ADDRESS_TYPE_NOT_SUPPORTED: "不支持的地址类型",
}
