"""Slug derivation used for articles, categories and tags."""
import pytest

from app.slug import slugify


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Hello World", "hello-world"),
        ("  Leading and trailing  ", "leading-and-trailing"),
        ("Go 1.22 Release!", "go-1-22-release"),
        ("Crème Brûlée", "creme-brulee"),
        ("a---b___c", "a-b-c"),
        ("--already-a-slug--", "already-a-slug"),
    ],
)
def test_slugify(text, expected):
    assert slugify(text) == expected


def test_slugify_is_idempotent():
    once = slugify("Ünïcode & Punctuation: a Test")
    assert slugify(once) == once


def test_slugify_without_ascii_alphanumerics_is_empty():
    assert slugify("!!! ???") == ""
    assert slugify("日本語") == ""
