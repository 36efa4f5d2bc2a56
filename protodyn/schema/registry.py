"""Registry of dynamic message handles compiled from schema files."""

import logging
import os
from collections.abc import Iterator, Sequence

from google.protobuf.descriptor import FileDescriptor

from ..dynamic import MessageHandle
from ..errors import CompileError, DuplicateNameError, NotFoundError
from .compiler import SCHEMA_EXTENSION, Compiler, PathLike

logger = logging.getLogger(__name__)


def _raise(err: OSError) -> None:
    raise err


class Registry:
    """Compiles schemas and keeps one message handle per message type name.

    Handles are keyed by the message's short name ("Person", not
    "example.Person"). The two loading styles treat a name that is already
    registered differently:

    - load() replaces the previous handle.
    - load_all() and load_directory() raise DuplicateNameError.

    Bulk loads are not atomic. Handles registered before an error stay
    registered.

    Example:
        registry = Registry(import_paths=["protos"])
        person = registry.load("person.proto", "Person")
        person.set_field("age", 30)

        registry.load_directory("protos")
        order = registry.get("Order")
    """

    def __init__(
        self,
        import_paths: Sequence[PathLike] = (".",),
        *,
        compiler: Compiler | None = None,
    ) -> None:
        self.compiler = compiler if compiler is not None else Compiler(import_paths)
        self.messages: dict[str, MessageHandle] = {}

    def __len__(self) -> int:
        return len(self.messages)

    def __contains__(self, message_type: object) -> bool:
        return message_type in self.messages

    def __iter__(self) -> Iterator[MessageHandle]:
        return iter(self.messages.values())

    def names(self) -> list[str]:
        """Return the registered message type names."""
        return list(self.messages)

    def _compile(self, schema_path: PathLike) -> list[FileDescriptor]:
        files = self.compiler.compile(schema_path)
        if not files:
            raise CompileError(f"no files parsed in proto file: {os.fspath(schema_path)}")
        return files

    def load(self, schema_path: PathLike, message_type: str) -> MessageHandle:
        """Compile a schema and register a handle for one of its message types.

        Only top-level messages of the schema file itself are searched, not
        those of the files it imports. A handle already registered under the
        same name is replaced.

        Raises:
            CompileError: The schema does not compile.
            NotFoundError: The schema declares no such message type.
        """
        files = self._compile(schema_path)

        descriptor = files[0].message_types_by_name.get(message_type)
        if descriptor is None:
            raise NotFoundError(
                f"message type '{message_type}' not found in proto file '{os.fspath(schema_path)}'"
            )

        handle = MessageHandle(descriptor)
        self.messages[message_type] = handle
        logger.debug("Registered %s from %s", descriptor.full_name, files[0].name)
        return handle

    def load_all(self, schema_path: PathLike) -> list[MessageHandle]:
        """Compile a schema and register a handle for every message type in it.

        Returns:
            The handles registered by this call, in declaration order.

        Raises:
            CompileError: The schema does not compile.
            DuplicateNameError: A message type name is already registered.
                Handles registered earlier in the call are kept.
        """
        loaded: list[MessageHandle] = []

        for file in self._compile(schema_path):
            for name, descriptor in file.message_types_by_name.items():
                if name in self.messages:
                    existing = self.messages[name]
                    raise DuplicateNameError(
                        f"duplicate message type '{name}' in '{file.name}', "
                        f"already registered from '{existing.descriptor.file.name}'"
                    )

                handle = MessageHandle(descriptor)
                self.messages[name] = handle
                loaded.append(handle)
                logger.debug("Registered %s from %s", descriptor.full_name, file.name)

        return loaded

    def load_directory(self, folder_path: PathLike) -> list[MessageHandle]:
        """Register every message type of every schema file below a folder.

        The compiler's import paths are replaced with the working directory
        and folder_path. Files are visited directory by directory, entries in
        name order, and the walk stops at the first error.

        Returns:
            The handles registered by this call.

        Raises:
            OSError: The folder cannot be read.
            CompileError: A schema file does not compile.
            DuplicateNameError: A message type name is already registered.
        """
        folder = os.fspath(folder_path)
        self.compiler.import_paths = [".", folder]

        loaded: list[MessageHandle] = []
        for root, dirs, files in os.walk(folder, onerror=_raise):
            dirs.sort()
            for name in sorted(files):
                if not name.endswith(SCHEMA_EXTENSION):
                    continue
                path = os.path.join(root, name)
                logger.debug("Loading %s", path)
                loaded.extend(self.load_all(path))

        return loaded

    def get(self, message_type: str) -> MessageHandle:
        """Return the handle registered for a message type name."""
        handle = self.messages.get(message_type)
        if handle is None:
            raise NotFoundError(f"message type '{message_type}' not registered")
        return handle
