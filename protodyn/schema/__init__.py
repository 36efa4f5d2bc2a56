"""Schema compilation and message type registry."""

from .compiler import SCHEMA_EXTENSION as SCHEMA_EXTENSION
from .compiler import Compiler as Compiler
from .registry import Registry as Registry
