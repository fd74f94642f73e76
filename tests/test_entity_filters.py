from typegen.services.entity_filters import filter_entities, is_regex_entry

NAMES = ["audit_log", "posts", "tmp_import", "users"]


def test_no_filters_keeps_everything() -> None:
    assert filter_entities(NAMES) == NAMES


def test_include_list_restricts_names() -> None:
    assert filter_entities(NAMES, included=["users", "missing"]) == ["users"]


def test_exact_and_regex_ignores() -> None:
    assert filter_entities(NAMES, ignored=["posts", "/^tmp_/"]) == ["audit_log", "users"]
    assert filter_entities(NAMES, ignored=["/log$/"]) == ["posts", "tmp_import", "users"]


def test_ignore_applies_after_include() -> None:
    assert filter_entities(NAMES, included=["users", "posts"], ignored=["/^u/"]) == ["posts"]


def test_regex_entry_detection() -> None:
    assert is_regex_entry("/^a/")
    assert not is_regex_entry("/")
    assert not is_regex_entry("users")
