"""
Naming convention for persisted Hue Link state
The store itself lives outside this project; these paths are what it is expected to use
"""

import os

TOP = 'hue_link'
BRIDGES = 'bridges'
REMOTE_TOKENS = 'rt'


def bridges_sub_path() -> str:
    """Sub path holding one record per paired bridge"""
    return f"{TOP}{os.sep}{BRIDGES}{os.sep}"


def remote_tokens_sub_path() -> str:
    """Sub path holding remote token sets"""
    return f"{TOP}{os.sep}{REMOTE_TOKENS}{os.sep}"
