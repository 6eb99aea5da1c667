"""
Drive inspection services
"""

from .interfaces import IDiskInfoService, IMediaTypeService
from .disk_info_service import DiskInfoService

__all__ = ['IDiskInfoService', 'IMediaTypeService', 'DiskInfoService']
