"""
Worker threads for drive inspection
"""

from .disk_info_worker import DiskInfoWorker

__all__ = ['DiskInfoWorker']
