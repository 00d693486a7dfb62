"""
SOCKS5 客户端 - 配置管理模块
加载 YAML 格式的客户端配置。

配置文件格式（config.yaml）:

    client:
      proxy_host: 127.0.0.1
      proxy_port: 9050
      username: user
      password: pass
      remote_dns: true
      timeout: 30

    logging:
      level: INFO
"""

import logging
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml

from .auth import Credentials
from .core import MAX_PORT

logger = logging.getLogger('async-socks5-config')


@dataclass
class ClientConfig:
    """
    客户端配置数据类

    Attributes:
        proxy_host: 代理服务器地址（默认: "127.0.0.1"）
        proxy_port: 代理服务器端口（默认: 1080，Tor 使用 9050）
        username: 用户名（可选）
        password: 密码（可选）
        remote_dns: 是否由代理解析域名（默认: True）
        timeout: 整个握手的超时时间（秒，默认: 30）
    """
    proxy_host: str = "127.0.0.1"
    proxy_port: int = 1080
    username: Optional[str] = None
    password: Optional[str] = None
    remote_dns: bool = True
    timeout: float = 30.0

    def __post_init__(self):
        self.proxy_port = int(self.proxy_port)
        if not 0 < self.proxy_port <= MAX_PORT:
            raise ValueError(f"代理端口超出范围: {self.proxy_port}")
        self.timeout = float(self.timeout)
        if self.timeout <= 0:
            raise ValueError(f"超时时间必须大于 0: {self.timeout}")

    @property
    def credentials(self) -> Optional[Credentials]:
        """用户名和密码都配置时返回 Credentials，否则返回 None"""
        if self.username and self.password:
            return Credentials(self.username, self.password)
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ClientConfig':
        """
        从配置字典的 client 段创建配置，忽略未知键

        Args:
            data: load_config() 返回的字典

        Returns:
            ClientConfig: 客户端配置
        """
        client_conf = data.get('client') or {}
        known = {f.name for f in fields(cls)}
        unknown = set(client_conf) - known
        if unknown:
            logger.warning(f"忽略未知的配置项: {', '.join(sorted(unknown))}")
        return cls(**{k: v for k, v in client_conf.items() if k in known})


def load_config(path: str) -> dict:
    """
    从 YAML 文件加载配置

    Args:
        path: 配置文件路径

    Returns:
        配置字典，空文件返回 {}

    Raises:
        FileNotFoundError: 文件不存在
    """
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}
