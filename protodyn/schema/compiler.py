"""Schema compilation through protoc from grpcio-tools."""

import contextlib
import logging
import os
import sys
import tempfile
from collections.abc import Iterator, Sequence
from importlib import resources

from google.protobuf import descriptor_pb2, descriptor_pool
from google.protobuf.descriptor import FileDescriptor
from grpc_tools import protoc

from ..errors import CompileError

logger = logging.getLogger(__name__)

SCHEMA_EXTENSION = ".proto"

PathLike = str | os.PathLike[str]


def well_known_types_path() -> str:
    """Return the directory holding the bundled google/protobuf/*.proto files."""
    return str(resources.files("grpc_tools") / "_proto")


@contextlib.contextmanager
def _capture_stderr() -> Iterator[list[str]]:
    # protoc writes diagnostics straight to file descriptor 2.
    output: list[str] = []
    sys.stderr.flush()
    with tempfile.TemporaryFile() as sink:
        saved = os.dup(2)
        os.dup2(sink.fileno(), 2)
        try:
            yield output
        finally:
            os.dup2(saved, 2)
            os.close(saved)
            sink.seek(0)
            output.append(sink.read().decode("utf-8", errors="replace"))


def _is_within(path: str, root: str) -> bool:
    return path.startswith(root.rstrip(os.sep) + os.sep)


class Compiler:
    """Compiles .proto sources into file descriptors.

    Sources and their imports are resolved against import_paths, in order.
    Every compilation gets its own DescriptorPool, so compiling the same or
    overlapping schemas twice never conflicts.
    """

    def __init__(self, import_paths: Sequence[PathLike] = (".",)) -> None:
        self.import_paths: list[str] = [os.fspath(path) for path in import_paths]

    def __repr__(self) -> str:
        return f"Compiler(import_paths={self.import_paths!r})"

    def resolve(self, source: PathLike) -> tuple[str, str | None]:
        """Map a source to its name inside the import paths.

        Args:
            source: A path relative to one of the import paths, or a file
                path (absolute or relative to the working directory).

        Returns:
            Tuple of (virtual name, extra import path). The extra import path
            is set when a file lies outside every import path; it is searched
            before the import paths.
        """
        source = os.fspath(source)

        if os.path.isfile(source):
            full = os.path.abspath(source)
            for path in self.import_paths:
                root = os.path.abspath(path)
                if _is_within(full, root):
                    return os.path.relpath(full, root).replace(os.sep, "/"), None
            return os.path.basename(full), os.path.dirname(full)

        for path in self.import_paths:
            if os.path.isfile(os.path.join(path, source)):
                return os.path.normpath(source).replace(os.sep, "/"), None

        raise CompileError(
            f"schema source '{source}' not found in import paths {self.import_paths}"
        )

    def compile(self, *sources: PathLike) -> list[FileDescriptor]:
        """Compile schema sources.

        Returns:
            One file descriptor per requested source, in order. Files pulled
            in through imports are loaded into the same pool but not returned.

        Raises:
            CompileError: A source is missing or protoc rejects it.
        """
        if not sources:
            raise CompileError("no schema sources given")

        names: list[str] = []
        extra_paths: list[str] = []
        for source in sources:
            name, extra_path = self.resolve(source)
            names.append(name)
            if extra_path is not None and extra_path not in extra_paths:
                extra_paths.append(extra_path)

        # A file outside the import paths must win over a same-named file inside them.
        proto_paths = [*extra_paths, *self.import_paths, well_known_types_path()]

        file_set = self._run_protoc(names, proto_paths)
        if not file_set.file:
            raise CompileError(f"no files parsed in proto file: {', '.join(names)}")

        pool = descriptor_pool.DescriptorPool()
        for file_proto in file_set.file:
            pool.AddSerializedFile(file_proto.SerializeToString())

        files = [pool.FindFileByName(name) for name in names]
        logger.debug("Compiled %s (%d files in pool)", ", ".join(names), len(file_set.file))
        return files

    def _run_protoc(
        self, names: list[str], proto_paths: list[str]
    ) -> descriptor_pb2.FileDescriptorSet:
        with tempfile.TemporaryDirectory(prefix="protodyn-") as tmp:
            out_file = os.path.join(tmp, "descriptors.pb")
            args = [
                "protoc",
                "--include_imports",
                f"--descriptor_set_out={out_file}",
                *(f"--proto_path={path}" for path in proto_paths),
                *names,
            ]

            with _capture_stderr() as stderr:
                status = protoc.main(args)

            if status != 0:
                detail = stderr[0].strip() or f"protoc exited with status {status}"
                raise CompileError(f"failed to compile proto file {', '.join(names)}: {detail}")

            with open(out_file, "rb") as f:
                return descriptor_pb2.FileDescriptorSet.FromString(f.read())
