import pytest

from devsync.utils.slugs import generate_slug, slug_candidates, slug_format_error
from devsync.utils.tags import normalize_tag, normalize_tags, parse_tags


def test_normalize_tag_strips_hash_and_case():
    assert normalize_tag("  #Python ") == "python"
    assert normalize_tag("##DevOps") == "devops"
    assert normalize_tag("") == ""
    assert normalize_tag(None) == ""


def test_normalize_tags_dedupes_keeping_order():
    assert normalize_tags(["Python", "#python", " ", "SQL", None]) == ["python", "sql"]


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, []),
        ("", []),
        ("python, #SQL ,  ,docker", ["python", "sql", "docker"]),
        ('["React", "react", "#Hooks"]', ["react", "hooks"]),
        ("[not json", ["[not json"]),
        (["A", "b"], ["a", "b"]),
    ],
)
def test_parse_tags_variants(raw, expected):
    assert parse_tags(raw) == expected


@pytest.mark.parametrize(
    "name,slug",
    [
        ("Acme Corp", "acme-corp"),
        ("  Hello,   World!  ", "hello-world"),
        ("a -- b", "a-b"),
        ("Team #42", "team-42"),
        ("!!!", ""),
        ("-Edge-", "edge"),
    ],
)
def test_generate_slug(name, slug):
    assert generate_slug(name) == slug


def test_slug_candidates_appends_numeric_suffixes():
    assert list(slug_candidates("acme", attempts=4)) == ["acme", "acme-2", "acme-3", "acme-4"]


def test_slug_format_error():
    assert slug_format_error("acme-2") is None
    assert slug_format_error("a") == "Slug must be at least 2 characters"
    assert slug_format_error("Acme") == "Slug can only contain lowercase letters, numbers, and hyphens"
    assert slug_format_error(None) == "Slug must be at least 2 characters"
