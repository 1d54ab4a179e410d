"""Tests for Rust item parser."""

import pytest

from serde_option.generator import parse, parse_type
from serde_option.generator.errors import DiagnosticKind, ExpansionError, ValidationError
from serde_option.generator.types import (
    ArgKind,
    FieldStyle,
    OpaqueType,
    ParenType,
    PathType,
    ReferenceType,
    RustEnum,
    RustOtherItem,
    RustStruct,
    TupleType,
)


def describe_parse_struct():
    def parses_named_struct(expect):
        item = parse(
            """
            struct Point {
                x: i32,
                pub y: Option<i32>,
            }
        """
        )
        expect(isinstance(item, RustStruct)) == True
        expect(item.name) == "Point"
        expect(item.style) == FieldStyle.NAMED
        expect(len(item.fields)) == 2
        expect(item.fields[0].name) == "x"
        expect(item.fields[0].visibility) == ""
        expect(item.fields[1].name) == "y"
        expect(item.fields[1].visibility) == "pub "

    def parses_tuple_struct(expect):
        item = parse("pub struct Pair(pub u8, Option<u16>);")
        expect(item.style) == FieldStyle.TUPLE
        expect(item.visibility) == "pub "
        expect([f.name for f in item.fields]) == [None, None]
        expect(item.fields[0].visibility) == "pub "

    def parses_unit_struct(expect):
        item = parse("struct Marker;")
        expect(item.style) == FieldStyle.UNIT
        expect(item.fields) == []

    def parses_empty_struct(expect):
        item = parse("struct Empty {}")
        expect(item.style) == FieldStyle.NAMED
        expect(item.fields) == []

    def keeps_generics_and_where_clause_verbatim(expect):
        item = parse(
            """
            struct Wrapper<'a, T: Clone + 'a, const N: usize = 4>
            where
                T: Default,
            {
                value: &'a [T; N],
            }
        """
        )
        expect(item.generics) == "<'a, T: Clone + 'a, const N: usize = 4>"
        expect(item.where_clause.startswith("where")) == True
        expect("T: Default" in item.where_clause) == True

    def parses_restricted_visibility(expect):
        item = parse("pub(crate) struct Scoped { pub(super) a: u8 }")
        expect(item.visibility) == "pub(crate) "
        expect(item.fields[0].visibility) == "pub(super) "

    def parses_raw_identifiers(expect):
        item = parse("struct Keywords { r#type: Option<u8> }")
        expect(item.fields[0].name) == "r#type"

    def records_field_positions(expect):
        item = parse("struct Point {\n    x: i32,\n    y: i32,\n}")
        expect(item.fields[0].span.line) == 2
        expect(item.fields[1].span.line) == 3


def describe_parse_attributes():
    def parses_item_and_field_attributes(expect):
        item = parse(
            """
            #[derive(Serialize, Deserialize)]
            struct Config {
                #[nullable]
                #[serde(rename = "x", default)]
                a: Option<u8>,
            }
        """
        )
        expect(len(item.attributes)) == 1
        expect(item.attributes[0].path) == "derive"
        expect(item.attributes[0].text) == "#[derive(Serialize, Deserialize)]"
        expect(item.attributes[0].tokens) == "(Serialize, Deserialize)"

        attrs = item.fields[0].attributes
        expect([a.path for a in attrs]) == ["nullable", "serde"]
        expect(attrs[0].tokens) == None
        expect(attrs[1].metas) == ["rename", "default"]

    def collects_nested_meta_paths(expect):
        item = parse(
            """
            struct Config {
                #[serde(default = "make", with = "a::b", skip_serializing_if = "Option::is_none")]
                a: Option<u8>,
            }
        """
        )
        expect(item.fields[0].attributes[0].metas) == ["default", "with", "skip_serializing_if"]

    def ignores_commas_inside_groups(expect):
        item = parse(
            """
            struct Config {
                #[serde(bound(serialize = "T: Serialize", deserialize = "T: Deserialize"), skip)]
                a: Option<u8>,
            }
        """
        )
        expect(item.fields[0].attributes[0].metas) == ["bound", "skip"]

    def parses_path_attributes(expect):
        item = parse("#[serde_option::serde_option]\nstruct A;")
        expect(item.attributes[0].path) == "serde_option::serde_option"

    def parses_key_value_attributes(expect):
        item = parse('#[doc = "Some docs"]\nstruct A;')
        expect(item.attributes[0].path) == "doc"
        expect(item.attributes[0].tokens) == '= "Some docs"'

    def keeps_doc_comments(expect):
        item = parse(
            """
            /// Outer docs.
            struct A {
                /// Field docs.
                a: u8,
            }
        """
        )
        expect(item.attributes[0].path) == "doc"
        expect(item.attributes[0].text) == "/// Outer docs."
        expect(item.fields[0].attributes[0].text) == "/// Field docs."

    def drops_plain_comments(expect):
        item = parse(
            """
            // Not kept.
            struct A {
                /* Not kept either. */
                a: u8, // Trailing.
            }
        """
        )
        expect(item.attributes) == []
        expect(item.fields[0].attributes) == []


def describe_parse_enum():
    def parses_all_variant_styles(expect):
        item = parse(
            """
            pub enum Shape {
                Circle { radius: Option<f64> },
                Line(u8, u8),
                #[serde(rename = "none")]
                Nothing,
            }
        """
        )
        expect(isinstance(item, RustEnum)) == True
        expect(item.name) == "Shape"
        expect([v.name for v in item.variants]) == ["Circle", "Line", "Nothing"]
        expect([v.style for v in item.variants]) == [
            FieldStyle.NAMED,
            FieldStyle.TUPLE,
            FieldStyle.UNIT,
        ]
        expect(item.variants[0].fields[0].name) == "radius"
        expect(len(item.variants[1].fields)) == 2
        expect(item.variants[2].attributes[0].path) == "serde"

    def parses_discriminants(expect):
        item = parse("enum Level { Low = 1, High = 1 << 4 }")
        expect(item.variants[0].discriminant) == "1"
        expect(item.variants[1].discriminant) == "1 << 4"

    def parses_empty_enum(expect):
        item = parse("enum Never {}")
        expect(item.variants) == []


def describe_parse_other_items():
    @pytest.mark.parametrize(
        "source, keyword",
        [
            ("fn invalid() {}", "fn"),
            ("type Alias = Option<u8>;", "type"),
            ("union Bits { a: u8, b: i8 }", "union"),
            ("trait Marker {}", "trait"),
            ("impl Foo {}", "impl"),
            ("const VALUE: u8 = 1;", "const"),
        ],
    )
    def recognises_item_keyword(expect, source, keyword):
        item = parse(f"#[serde_option]\n{source}")
        expect(isinstance(item, RustOtherItem)) == True
        expect(item.keyword) == keyword
        expect(item.attributes[0].path) == "serde_option"


def describe_parse_errors():
    def rejects_statements(expect):
        with pytest.raises(ExpansionError) as exc_info:
            parse("let value = 5;")
        expect(len(exc_info.value)) == 1
        diagnostic = exc_info.value.diagnostics[0]
        expect(diagnostic.kind) == DiagnosticKind.INVALID_SYNTAX
        expect(diagnostic.message.startswith("Expected a struct or enum definition")) == True

    def rejects_unterminated_struct(expect):
        with pytest.raises(ExpansionError) as exc_info:
            parse("struct Broken { a: u8,")
        expect(exc_info.value.diagnostics[0].kind) == DiagnosticKind.INVALID_SYNTAX

    def rejects_missing_field_type(expect):
        with pytest.raises(ExpansionError):
            parse("struct Broken { a }")


def describe_parse_type():
    def parses_option(expect):
        ty = parse_type("Option<u8>")
        expect(isinstance(ty, PathType)) == True
        segment = ty.path.segments[0]
        expect(segment.ident) == "Option"
        expect(len(segment.arguments)) == 1
        expect(segment.arguments[0].kind) == ArgKind.TYPE
        expect(segment.arguments[0].type.path.segments[0].ident) == "u8"

    def parses_absolute_path(expect):
        ty = parse_type("::std::option::Option<u8>")
        expect(ty.path.leading_colon) == True
        expect([s.ident for s in ty.path.segments]) == ["std", "option", "Option"]

    def distinguishes_missing_and_empty_arguments(expect):
        expect(parse_type("Option").path.segments[0].arguments) == None
        expect(parse_type("Option<>").path.segments[0].arguments) == []

    def parses_generic_argument_kinds(expect):
        ty = parse_type("Thing<'a, u8, 4, Item = u16, Other: Clone>")
        kinds = [a.kind for a in ty.path.segments[0].arguments]
        expect(kinds) == [
            ArgKind.LIFETIME,
            ArgKind.TYPE,
            ArgKind.CONST,
            ArgKind.BINDING,
            ArgKind.CONSTRAINT,
        ]

    def parses_parenthesized_sugar(expect):
        segment = parse_type("Fn(u8, u16) -> bool").path.segments[0]
        expect(segment.arguments) == None
        expect(len(segment.inputs)) == 2
        expect(segment.output.path.segments[0].ident) == "bool"

    def parses_qualified_self(expect):
        ty = parse_type("<Option<u8> as IntoIterator>::Item")
        expect(ty.qself.type.path.segments[0].ident) == "Option"
        expect(ty.qself.as_trait.segments[0].ident) == "IntoIterator"
        expect(ty.path.segments[0].ident) == "Item"

    def parses_parens_and_tuples(expect):
        expect(isinstance(parse_type("(u8)"), ParenType)) == True
        expect(isinstance(parse_type("(u8,)"), TupleType)) == True
        expect(parse_type("()").elems) == []

    def parses_references(expect):
        ty = parse_type("&'a mut Option<u8>")
        expect(isinstance(ty, ReferenceType)) == True
        expect(ty.lifetime) == "'a"
        expect(ty.mutable) == True

    def keeps_trait_objects_verbatim(expect):
        ty = parse_type("dyn Fn(u8) -> u8 + Send")
        expect(isinstance(ty, OpaqueType)) == True
        expect(ty.text) == "dyn Fn(u8) -> u8 + Send"

    def rejects_more_than_one_type(expect):
        with pytest.raises(ValidationError) as exc_info:
            parse_type("u8, u16")
        expect(str(exc_info.value)) == "Expected a single type: u8, u16"
