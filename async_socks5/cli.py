#!/usr/bin/env python3
"""
SOCKS5 客户端命令行工具

通过 SOCKS5 代理发送一个 HTTP GET 请求并打印响应，用于检查代理是否可用。

使用方法:
    async-socks5 --proxy 127.0.0.1 --proxy-port 9050 http://icanhazip.com/
    async-socks5 -c config.yaml -u user -p pass http://icanhazip.com/
    async-socks5 --local-dns http://icanhazip.com/
"""

import argparse
import asyncio
import logging
import socket
import sys
from dataclasses import replace
from urllib.parse import urlsplit

from .client import Socks5Client, Tunnel
from .config import ClientConfig, load_config
from .errors import Socks5Error
from .logger import LoggerManager, add_context

logger = logging.getLogger('async-socks5-cli')


def build_request(host: str, path: str) -> bytes:
    """构造 HTTP/1.1 GET 请求"""
    return (
        f"GET {path} HTTP/1.1\r\n"
        f"Host: {host}\r\n"
        f"Connection: close\r\n\r\n"
    ).encode('ascii')


async def resolve_locally(host: str, port: int) -> str:
    """在本地解析主机名，返回第一个地址"""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    if not infos:
        raise OSError(f"无法解析主机: {host}")
    return infos[0][4][0]


async def fetch(config: ClientConfig, url: str) -> bytes:
    """
    通过代理获取 URL 内容

    握手整体受 config.timeout 限制；本库核心不设超时。

    Args:
        config: 客户端配置
        url: http:// URL

    Returns:
        bytes: 完整的 HTTP 响应
    """
    parts = urlsplit(url)
    if parts.scheme != 'http' or not parts.hostname:
        raise ValueError(f"只支持 http:// URL: {url}")
    host = parts.hostname
    port = parts.port or 80
    path = parts.path or '/'
    if parts.query:
        path = f"{path}?{parts.query}"

    target_host = host
    if not config.remote_dns:
        target_host = await resolve_locally(host, port)
        logger.info(f"本地解析: {host} -> {target_host}")

    tunnel: Tunnel = await asyncio.wait_for(
        Socks5Client.open_connection(
            config.proxy_host, config.proxy_port, target_host, port,
            credentials=config.credentials,
            remote_dns=config.remote_dns,
        ),
        timeout=config.timeout,
    )

    try:
        await tunnel.write(build_request(host, path))
        chunks = []
        while True:
            data = await tunnel.read(65536)
            if not data:
                break
            chunks.append(data)
        return b''.join(chunks)
    finally:
        tunnel.close()
        await tunnel.wait_closed()


def main(argv=None):
    """
    主函数 - 解析命令行参数并发送请求

    命令行参数优先于配置文件。

    Returns:
        int: 退出码，成功为 0
    """
    parser = argparse.ArgumentParser(description='通过 SOCKS5 代理发送 HTTP 请求')
    parser.add_argument('url', help='要获取的 http:// URL')
    parser.add_argument('--config', '-c', default='config.yaml', help='配置文件路径')
    parser.add_argument('--proxy', default=None, help='代理服务器地址')
    parser.add_argument('--proxy-port', type=int, default=None, help='代理服务器端口')
    parser.add_argument('--username', '-u', default=None, help='认证用户名')
    parser.add_argument('--password', '-p', default=None, help='认证密码')
    parser.add_argument('--local-dns', action='store_true', help='在本地解析目标域名')
    parser.add_argument('--timeout', type=float, default=None, help='握手超时（秒）')
    parser.add_argument('--debug', '-d', action='store_true', help='启用调试模式')
    args = parser.parse_args(argv)

    manager = LoggerManager()
    manager.initialize(config_file=args.config)
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        for handler in logging.getLogger().handlers:
            handler.setLevel(logging.DEBUG)

    try:
        config_data = load_config(args.config)
        logger.debug(f"配置文件加载成功: {args.config}")
    except FileNotFoundError:
        logger.debug(f"配置文件 {args.config} 未找到，使用默认配置")
        config_data = {}

    try:
        overrides = {
            'proxy_host': args.proxy,
            'proxy_port': args.proxy_port,
            'username': args.username,
            'password': args.password,
            'timeout': args.timeout,
        }
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if args.local_dns:
            overrides['remote_dns'] = False
        # replace() 重新执行 __post_init__ 校验
        config = replace(ClientConfig.from_dict(config_data), **overrides)
        credentials = config.credentials
    except ValueError as e:
        logger.error(f"配置无效: {e}")
        return 1

    add_context(proxy=f"{config.proxy_host}:{config.proxy_port}", target=args.url)
    logger.info(f"代理={config.proxy_host}:{config.proxy_port}, "
                f"认证={'是' if credentials else '否'}, 远程解析={config.remote_dns}")

    try:
        response = asyncio.run(fetch(config, args.url))
    except asyncio.TimeoutError:
        logger.error(f"握手超时 ({config.timeout}s)")
        return 1
    except (Socks5Error, OSError, ValueError) as e:
        logger.error(f"请求失败: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("收到键盘中断信号")
        return 0

    sys.stdout.write(response.decode('utf-8', errors='replace'))
    sys.stdout.flush()
    return 0


if __name__ == '__main__':
    sys.exit(main())
