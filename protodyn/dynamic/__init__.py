"""Dynamic protobuf messages driven by runtime descriptors."""

from .coercion import COERCIONS as COERCIONS
from .coercion import Coercion as Coercion
from .coercion import coerce as coerce
from .message import MessageHandle as MessageHandle
from .message import new_message as new_message
from .types import *
