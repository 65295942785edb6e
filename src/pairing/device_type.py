"""
Device type string registered in the bridge whitelist
"""

import sys
from typing import Optional

# The bridge accepts at most 20 characters for the app name and 19 for the device
MAX_APP_NAME = 20
MAX_DEVICE_NAME = 19


def platform_device_name(platform: Optional[str] = None) -> str:
    platform = platform or sys.platform
    if platform.startswith('linux'):
        return 'linux'
    if platform == 'android':
        return 'android'
    if platform == 'ios':
        return 'iPhone'
    if platform == 'darwin':
        return 'mac'
    if platform in ('win32', 'cygwin'):
        return 'pc'
    if platform == 'emscripten':
        return 'web'
    return 'device'


def device_type(app_name: str, platform: Optional[str] = None) -> str:
    """e.g. 'HueLink#linux'"""
    return f"{app_name[:MAX_APP_NAME]}#{platform_device_name(platform)[:MAX_DEVICE_NAME]}"
