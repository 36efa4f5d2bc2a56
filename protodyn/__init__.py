"""Protodyn - Runtime-compiled Protocol Buffers messages without generated code."""

from importlib.metadata import PackageNotFoundError, version

from .dynamic import MessageHandle as MessageHandle
from .errors import *
from .schema import Compiler as Compiler
from .schema import Registry as Registry

try:
    __version__ = version("protodyn")
except PackageNotFoundError:
    __version__ = "(local)"
