"""
PassVault Modules
"""

from .crypto import *
from .strength import *
from .password_generator import *
from .record_format import *
from .health import *
from .validation import *
from .store import *
from .ui import *
