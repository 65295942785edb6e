"""
Bridge records and CLIP v2 resource identity
"""

from .models import Bridge, ResourceType, extract_data_list

__all__ = ['Bridge', 'ResourceType', 'extract_data_list']
