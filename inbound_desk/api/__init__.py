# inbound_desk/api/__init__.py
"""
API package bootstrap.

- no re-exports here
- routers are mounted by `inbound_desk/router_mount.py`
"""

__all__ = []
