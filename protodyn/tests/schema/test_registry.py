"""Tests for the message type registry."""

# pylint: disable=redefined-outer-name,expression-not-assigned

import os

import pytest

from protodyn.errors import CompileError, DuplicateNameError, NotFoundError
from protodyn.schema import Compiler, Registry

FILE_DIR = os.path.dirname(os.path.realpath(__file__))


@pytest.fixture
def registry():
    return Registry([FILE_DIR])


def describe_load():
    def loads_person_round_trip(expect, registry):
        person = registry.load("person.proto", "Person")
        person.set_field("age", 30)
        person.set_field("name", "Ada")
        data = person.encode()

        decoded = registry.load("person.proto", "Person")
        decoded.decode(data)
        expect(decoded.get_field("age")) == 30
        expect(decoded.get_field("name")) == "Ada"

    def registers_the_handle(expect, registry):
        person = registry.load("person.proto", "Person")
        expect(registry.get("Person")) == person
        expect("Person" in registry) == True
        expect("Address" in registry) == False
        expect(registry.names()) == ["Person"]

    def overwrites_previous_handle(expect, registry):
        first = registry.load("person.proto", "Person")
        first.set_field("age", 1)
        second = registry.load("person.proto", "Person")
        expect(second is first) == False
        expect(registry.get("Person")) == second
        expect(second.get_field("age")) == 0
        expect(len(registry)) == 1

    def loads_paths_outside_import_paths(expect, tmp_path, registry, write_schema):
        write_schema(tmp_path / "solo.proto", "Solo")
        handle = registry.load(tmp_path / "solo.proto", "Solo")
        expect(handle.full_name) == "Solo"

    def loads_outside_file_shadowed_by_import_paths(expect, tmp_path, registry, write_schema):
        write_schema(tmp_path / "person.proto", "Person")
        handle = registry.load(tmp_path / "person.proto", "Person")
        expect(handle.full_name) == "Person"
        expect([field.name for field in handle.descriptor.fields]) == ["id"]

    def fails_for_unknown_message(expect, registry):
        with pytest.raises(NotFoundError) as exinfo:
            registry.load("person.proto", "Nobody")
        expect(str(exinfo.value)) == "message type 'Nobody' not found in proto file 'person.proto'"
        expect(len(registry)) == 0

    def ignores_messages_from_imports(tmp_path, write_schema):
        write_schema(tmp_path / "base.proto", "Base")
        write_schema(tmp_path / "user.proto", "User", imports=["base.proto"])
        registry = Registry([tmp_path])
        registry.load("user.proto", "User")
        with pytest.raises(NotFoundError):
            registry.load("user.proto", "Base")

    def fails_for_missing_schema(registry):
        with pytest.raises(CompileError):
            registry.load("absent.proto", "Person")

    def fails_for_invalid_schema(tmp_path):
        (tmp_path / "broken.proto").write_text("message {")
        with pytest.raises(CompileError):
            Registry([tmp_path]).load("broken.proto", "Broken")


def describe_load_all():
    def registers_every_message(expect, registry):
        handles = registry.load_all("person.proto")
        expect(sorted(handle.name for handle in handles)) == ["Address", "Person"]
        expect(sorted(registry.names())) == ["Address", "Person"]
        expect(registry.get("Address").full_name) == "example.Address"

    def fails_on_duplicate_names(expect, tmp_path, write_schema):
        write_schema(tmp_path / "one.proto", "Shared")
        write_schema(tmp_path / "two.proto", "Shared")
        registry = Registry([tmp_path])

        first = registry.load_all("one.proto")[0]
        with pytest.raises(DuplicateNameError) as exinfo:
            registry.load_all("two.proto")
        expect(str(exinfo.value)).includes("duplicate message type 'Shared' in 'two.proto'")
        expect(str(exinfo.value)).includes("already registered from 'one.proto'")
        expect(registry.get("Shared")) == first

    def fails_when_loaded_twice(registry):
        registry.load_all("person.proto")
        with pytest.raises(DuplicateNameError):
            registry.load_all("person.proto")

    def fails_after_single_load_of_same_name(registry):
        registry.load("person.proto", "Person")
        with pytest.raises(DuplicateNameError):
            registry.load_all("person.proto")


def describe_load_directory():
    def registers_every_schema_recursively(expect, tmp_path, write_schema):
        write_schema(tmp_path / "a.proto", "Alpha")
        write_schema(tmp_path / "nested" / "b.proto", "Beta", "Gamma")
        (tmp_path / "notes.txt").write_text("message Ignored {}")

        registry = Registry()
        handles = registry.load_directory(tmp_path)
        expect([handle.name for handle in handles][0]) == "Alpha"
        expect(sorted(registry.names())) == ["Alpha", "Beta", "Gamma"]
        expect(registry.get("Beta").descriptor.file.name) == "nested/b.proto"

    def replaces_import_paths(expect, tmp_path, write_schema):
        write_schema(tmp_path / "a.proto", "Alpha")
        compiler = Compiler(["/first", "/second"])
        registry = Registry(compiler=compiler)

        registry.load_directory(tmp_path)
        expect(compiler.import_paths) == [".", str(tmp_path)]

        other = tmp_path / "other"
        other.mkdir()
        registry.load_directory(other)
        expect(compiler.import_paths) == [".", str(other)]

    def resolves_imports_against_the_folder(expect, tmp_path, write_schema):
        write_schema(tmp_path / "common" / "base.proto", "Base")
        write_schema(tmp_path / "user.proto", "User", imports=["common/base.proto"])

        registry = Registry()
        registry.load_directory(tmp_path)
        expect(sorted(registry.names())) == ["Base", "User"]

    def fails_on_duplicates_and_keeps_earlier_handles(expect, tmp_path, write_schema):
        write_schema(tmp_path / "a.proto", "Shared")
        write_schema(tmp_path / "b.proto", "Other")
        write_schema(tmp_path / "c.proto", "Shared")
        write_schema(tmp_path / "d.proto", "Never")

        registry = Registry()
        with pytest.raises(DuplicateNameError):
            registry.load_directory(tmp_path)

        expect(registry.get("Shared").descriptor.file.name) == "a.proto"
        expect(registry.get("Other").name) == "Other"
        expect("Never" in registry) == False

    def stops_at_compile_errors(expect, tmp_path, write_schema):
        write_schema(tmp_path / "a.proto", "Alpha")
        (tmp_path / "b.proto").write_text("not a schema")
        write_schema(tmp_path / "c.proto", "Gamma")

        registry = Registry()
        with pytest.raises(CompileError):
            registry.load_directory(tmp_path)

        expect(registry.names()) == ["Alpha"]

    def fails_for_missing_folder(tmp_path):
        with pytest.raises(OSError):
            Registry().load_directory(tmp_path / "absent")


def describe_get():
    def fails_on_empty_registry(expect):
        with pytest.raises(NotFoundError) as exinfo:
            Registry().get("Nonexistent")
        expect(str(exinfo.value)) == "message type 'Nonexistent' not registered"

    def iterates_handles(expect, registry):
        registry.load_all("person.proto")
        expect(sorted(handle.full_name for handle in registry)) == [
            "example.Address",
            "example.Person",
        ]
