import pytest
from google.protobuf import descriptor_pb2

from protoc_gen_setters.errors import MalformedDescriptorError
from protoc_gen_setters.models import Cardinality, Kind
from protoc_gen_setters.parser.descriptor_loader import DescriptorLoader

from protos import (
    FDP,
    REPEATED,
    load,
    make_enum,
    make_field,
    make_file,
    make_message,
    sample_file,
)


class TestFileLoading:
    def test_go_package_and_prefix(self):
        loader = load([sample_file()])
        go_file = loader.get_file("example/sample.proto")

        assert go_file.go_import_path == "example.com/example"
        assert go_file.go_package_name == "example"
        assert go_file.generated_filename_prefix == "example.com/example/sample"
        assert go_file.generate is True

    def test_source_relative_prefix(self):
        loader = load([sample_file()], parameter="paths=source_relative")
        go_file = loader.get_file("example/sample.proto")
        assert go_file.generated_filename_prefix == "example/sample"

    def test_import_path_override(self):
        loader = load([sample_file()], parameter="Mexample/sample.proto=github.com/acme/api/v1")
        go_file = loader.get_file("example/sample.proto")
        assert go_file.go_import_path == "github.com/acme/api/v1"
        assert go_file.go_package_name == "v1"

    def test_without_go_package(self):
        fd = make_file("orders/order.proto", "acme.orders", messages=[make_message("Order")])
        go_file = load([fd]).get_file("orders/order.proto")
        assert go_file.go_import_path == "orders"
        assert go_file.go_package_name == "orders"

    def test_dependencies_are_not_generated(self):
        dep = make_file("other.proto", "other", messages=[make_message("Foo")])
        main = make_file("main.proto", "main", messages=[make_message("Bar")], dependencies=["other.proto"])
        loader = load([dep, main])
        assert loader.get_file("other.proto").generate is False
        assert loader.get_file("main.proto").generate is True

    def test_missing_file_to_generate(self):
        loader = DescriptorLoader([sample_file()], ["nope.proto"])
        with pytest.raises(MalformedDescriptorError, match="nope.proto"):
            loader.load()


class TestMessageTree:
    def test_fields_and_oneofs(self):
        go_file = load([sample_file()]).get_file("example/sample.proto")
        sample = go_file.messages[0]

        assert sample.full_name == "example.Sample"
        assert sample.go_ident.go_name == "Sample"
        assert [f.go_name for f in sample.fields] == ["Name", "Tags", "Attrs", "A", "B"]
        assert sample.fields[0].kind == Kind.STRING
        assert sample.fields[1].cardinality == Cardinality.REPEATED

        choice = sample.oneofs[0]
        assert choice.go_name == "Choice"
        assert [f.name for f in choice.fields] == ["a", "b"]
        assert sample.fields[3].oneof is choice
        assert sample.fields[3].go_ident.go_name == "Sample_A"

    def test_map_field(self):
        sample = load([sample_file()]).get_file("example/sample.proto").messages[0]
        attrs = sample.fields[2]

        assert attrs.is_map()
        assert not attrs.is_list()
        assert attrs.map_key().name == "key"
        assert attrs.map_value().name == "value"
        assert sample.messages[0].is_map_entry

    def test_list_field(self):
        sample = load([sample_file()]).get_file("example/sample.proto").messages[0]
        assert sample.fields[1].is_list()
        assert not sample.fields[1].is_map()

    def test_nested_message_names(self):
        outer = make_message(
            "Outer",
            fields=[make_field("inner", 1, FDP.TYPE_MESSAGE, type_name=".pkg.Outer.Inner")],
            nested=[make_message("Inner", fields=[make_field("v", 1, FDP.TYPE_STRING)])],
        )
        go_file = load([make_file("a.proto", "pkg", messages=[outer])]).get_file("a.proto")
        inner = go_file.messages[0].messages[0]

        assert inner.full_name == "pkg.Outer.Inner"
        assert inner.go_ident.go_name == "Outer_Inner"
        assert go_file.messages[0].fields[0].message is inner

    def test_relative_type_name(self):
        outer = make_message(
            "Outer",
            fields=[make_field("inner", 1, FDP.TYPE_MESSAGE, type_name="Inner")],
            nested=[make_message("Inner")],
        )
        go_file = load([make_file("a.proto", "pkg", messages=[outer])]).get_file("a.proto")
        assert go_file.messages[0].fields[0].message.full_name == "pkg.Outer.Inner"

    def test_cross_file_enum(self):
        dep = make_file("other.proto", "other", enums=[make_enum("Status")],
                        go_package="example.com/other;otherpb")
        msg = make_message("Bar", fields=[make_field("status", 1, FDP.TYPE_ENUM, type_name=".other.Status")])
        main = make_file("main.proto", "main", messages=[msg], dependencies=["other.proto"])
        field = load([dep, main]).get_file("main.proto").messages[0].fields[0]

        assert field.enum.full_name == "other.Status"
        assert field.enum.go_ident.go_import_path == "example.com/other"

    def test_unresolved_reference(self):
        msg = make_message("Bar", fields=[make_field("foo", 1, FDP.TYPE_MESSAGE, type_name=".missing.Foo")])
        with pytest.raises(MalformedDescriptorError, match=r"main.Bar.foo"):
            load([make_file("main.proto", "main", messages=[msg])])

    def test_weak_flag(self):
        foo = make_message("Foo")
        msg = make_message("Bar", fields=[
            make_field("legacy", 1, FDP.TYPE_MESSAGE, type_name=".main.Foo", weak=True),
        ])
        go_file = load([make_file("main.proto", "main", messages=[foo, msg], syntax="proto2")]).get_file("main.proto")
        assert go_file.messages[1].fields[0].is_weak


class TestGoNameConflicts:
    def test_reserved_method_names(self):
        msg = make_message("M", fields=[
            make_field("descriptor", 1, FDP.TYPE_STRING),
            make_field("reset", 2, FDP.TYPE_STRING),
        ])
        fields = load([make_file("m.proto", "p", messages=[msg])]).get_file("m.proto").messages[0].fields
        assert fields[0].go_name == "Descriptor_"
        assert fields[1].go_name == "Reset_"

    def test_getter_conflict(self):
        msg = make_message("M", fields=[
            make_field("name", 1, FDP.TYPE_STRING),
            make_field("get_name", 2, FDP.TYPE_STRING),
        ])
        fields = load([make_file("m.proto", "p", messages=[msg])]).get_file("m.proto").messages[0].fields
        assert fields[0].go_name == "Name"
        assert fields[1].go_name == "GetName_"

    def test_oneof_wrapper_conflicts_with_nested_type(self):
        msg = make_message(
            "M",
            fields=[make_field("a", 1, FDP.TYPE_STRING, oneof_index=0)],
            nested=[make_message("A")],
            oneofs=["kind"],
        )
        m = load([make_file("m.proto", "p", messages=[msg])]).get_file("m.proto").messages[0]
        assert m.messages[0].go_ident.go_name == "M_A"
        assert m.fields[0].go_ident.go_name == "M_A_"


class TestPresence:
    def _field(self, field, syntax, oneofs=()):
        msg = make_message("M", fields=[field], oneofs=oneofs)
        return load([make_file("m.proto", "p", messages=[msg], syntax=syntax)]).get_file("m.proto").messages[0].fields[0]

    def test_proto3_scalar_has_no_presence(self):
        field = self._field(make_field("n", 1, FDP.TYPE_INT32), "proto3")
        assert not field.has_presence
        assert not field.has_optional_keyword

    def test_proto3_optional(self):
        field = self._field(
            make_field("n", 1, FDP.TYPE_INT32, oneof_index=0, proto3_optional=True),
            "proto3",
            oneofs=["_n"],
        )
        assert field.has_presence
        assert field.has_optional_keyword
        assert field.oneof is not None

    def test_proto3_oneof_member(self):
        field = self._field(make_field("n", 1, FDP.TYPE_INT32, oneof_index=0), "proto3", oneofs=["choice"])
        assert field.has_presence
        assert not field.has_optional_keyword

    def test_proto2_optional(self):
        field = self._field(make_field("n", 1, FDP.TYPE_INT32), "proto2")
        assert field.has_presence
        assert field.has_optional_keyword

    def test_repeated_never_has_presence(self):
        field = self._field(make_field("n", 1, FDP.TYPE_INT32, label=REPEATED), "proto2")
        assert not field.has_presence

    def test_editions_default_is_explicit(self):
        field = self._field(make_field("n", 1, FDP.TYPE_INT32), "editions")
        assert field.has_presence

    def test_editions_implicit_feature(self):
        msg = make_message("M", fields=[make_field("n", 1, FDP.TYPE_INT32)])
        fd = make_file("m.proto", "p", messages=[msg], syntax="editions")
        fd.options.features.field_presence = descriptor_pb2.FeatureSet.IMPLICIT
        field = load([fd]).get_file("m.proto").messages[0].fields[0]
        assert not field.has_presence


class TestImportPathOverrides:
    def test_override_with_explicit_package_name(self):
        fd = make_file("p/m.proto", "p", messages=[make_message("M")])
        go_file = load([fd], parameter="Mp/m.proto=example.com/p;ppb").get_file("p/m.proto")

        assert go_file.go_import_path == "example.com/p"
        assert go_file.go_package_name == "ppb"
        assert go_file.generated_filename_prefix == "example.com/p/m"
