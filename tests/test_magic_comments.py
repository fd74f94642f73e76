from typegen.services.magic_comments import (
    extract_kysely_expression,
    extract_ts_expression,
    extract_type_expression,
    extract_zod_expression,
    has_ignore_directive,
    has_magic_comment,
    has_table_ignore_directive,
    parse_magic_comments,
)


def test_extracts_nested_balanced_expression() -> None:
    comment = "@zod(z.object({ a: z.array(z.string()) }))"

    assert extract_zod_expression(comment) == "z.object({ a: z.array(z.string()) })"


def test_generic_brackets_are_balanced() -> None:
    comment = "@ts(Record<string, Array<number>>) trailing text"

    assert extract_ts_expression(comment) == "Record<string, Array<number>>"


def test_unbalanced_directive_is_absent() -> None:
    assert extract_ts_expression("@ts({ a: string") is None
    assert extract_zod_expression("no directive here") is None


def test_only_first_occurrence_is_used() -> None:
    comment = "@ts(string) @ts(number)"

    assert extract_ts_expression(comment) == "string"


def test_text_around_directive_is_ignored() -> None:
    comment = "User settings @kysely(ColumnType<Date, string, never>) see docs"

    assert extract_kysely_expression(comment) == "ColumnType<Date, string, never>"
    assert extract_type_expression(comment, "@zod(") is None


def test_ignore_directives() -> None:
    assert has_ignore_directive("internal column @ignore")
    assert has_ignore_directive("@@ignore")
    assert has_table_ignore_directive("legacy table @@ignore")
    assert not has_table_ignore_directive("@ignore")
    assert not has_ignore_directive("nothing to see")


def test_parse_magic_comments_returns_all_captures() -> None:
    comments = parse_magic_comments("@zod(z.string().email()) @ts(Email)")

    assert comments.zod == "z.string().email()"
    assert comments.ts == "Email"
    assert comments.kysely is None
    assert has_magic_comment("@kysely(Json)")
    assert not has_magic_comment("plain comment")
