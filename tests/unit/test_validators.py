"""Unit tests for form validators."""

import pytest

from portfolio.core.results import ErrorKind
from portfolio.core.validators import (
    parse_technologies,
    validate_article,
    validate_auth,
    validate_comment,
    validate_project,
)
from tests.helpers import article_form, project_form


class TestCommentValidator:

    @pytest.mark.parametrize("name", ["Jo", "x" * 50])
    def test_name_length_boundaries_accepted(self, name):
        result = validate_comment({"author_name": name, "content": "Hello!"})
        assert result.ok
        assert result.value.author_name == name

    @pytest.mark.parametrize("name", ["J", "x" * 51])
    def test_name_length_outside_rejected(self, name):
        result = validate_comment({"author_name": name, "content": "Hello!"})
        assert not result.ok
        assert [e.field for e in result.errors] == ["author_name"]

    @pytest.mark.parametrize("content", ["", "abcd", "x" * 1001])
    def test_content_length_outside_rejected(self, content):
        result = validate_comment({"author_name": "Jo", "content": content})
        assert not result.ok
        assert [e.field for e in result.errors] == ["content"]

    @pytest.mark.parametrize("content", ["abcde", "x" * 1000])
    def test_content_length_boundaries_accepted(self, content):
        assert validate_comment({"author_name": "Jo", "content": content}).ok

    def test_values_are_trimmed_before_length_check(self):
        result = validate_comment({"author_name": "  Jo  ", "content": "  Hello!  "})
        assert result.ok
        assert result.value.author_name == "Jo"
        assert result.value.content == "Hello!"

        padded = validate_comment({"author_name": " J ", "content": "   abcd   "})
        assert not padded.ok
        assert len(padded.errors) == 2

    def test_two_invalid_fields_give_two_errors_in_field_order(self):
        result = validate_comment({"author_name": "J", "content": "Hi"})
        assert not result.ok
        assert result.kind == ErrorKind.VALIDATION
        assert [e.field for e in result.errors] == ["author_name", "content"]


class TestProjectValidator:

    def test_technologies_text_is_split_and_trimmed(self):
        result = validate_project(project_form(technologies="React, TypeScript, "))
        assert result.ok
        assert result.value.technologies == ["React", "TypeScript"]

    def test_technologies_list_is_accepted(self):
        result = validate_project(project_form(technologies=[" Python ", "", "FastAPI"]))
        assert result.value.technologies == ["Python", "FastAPI"]

    @pytest.mark.parametrize("technologies", ["", " , ,", []])
    def test_technologies_must_not_be_empty(self, technologies):
        result = validate_project(project_form(technologies=technologies))
        assert not result.ok
        assert result.field_errors()["technologies"] == "Add at least one technology"

    def test_empty_urls_become_none(self):
        result = validate_project(project_form(demo_url="", repo_url="  "))
        assert result.value.demo_url is None
        assert result.value.repo_url is None

    def test_malformed_url_rejected(self):
        result = validate_project(project_form(demo_url="not a url"))
        assert result.field_errors() == {"demo_url": "Invalid URL"}

    def test_url_kept_as_entered(self):
        result = validate_project(project_form(demo_url="https://example.com"))
        assert result.value.demo_url == "https://example.com"

    def test_defaults(self):
        result = validate_project({"title": "T", "description": "D", "technologies": "Go"})
        assert result.ok
        assert result.value.sort_order == 0
        assert result.value.is_published is True
        assert result.value.icon == "📁"

    @pytest.mark.parametrize("field,value", [
        ("title", ""),
        ("title", "x" * 101),
        ("description", ""),
        ("description", "x" * 501),
        ("icon", ""),
        ("sort_order", -1),
    ])
    def test_field_constraints(self, field, value):
        result = validate_project(project_form(**{field: value}))
        assert not result.ok
        assert list(result.field_errors()) == [field]


class TestArticleValidator:

    def test_valid_article(self):
        result = validate_article(article_form())
        assert result.ok
        assert result.value.category == "Backend"

    def test_default_category_and_read_time(self):
        result = validate_article({"title": "T", "excerpt": "E"})
        assert result.value.category == "Geral"
        assert result.value.read_time == "5 min"

    def test_category_outside_enumeration_rejected(self):
        result = validate_article(article_form(category="Cooking"))
        assert list(result.field_errors()) == ["category"]

    @pytest.mark.parametrize("field,value", [
        ("title", "x" * 201),
        ("excerpt", ""),
        ("excerpt", "x" * 501),
        ("read_time", ""),
        ("url", "nope"),
        ("sort_order", -3),
    ])
    def test_field_constraints(self, field, value):
        result = validate_article(article_form(**{field: value}))
        assert list(result.field_errors()) == [field]

    def test_empty_content_becomes_none(self):
        assert validate_article(article_form(content="")).value.content is None


class TestAuthValidator:

    def test_valid_credentials(self):
        assert validate_auth({"email": "owner@example.com", "password": "123456"}).ok

    def test_invalid_email_and_short_password(self):
        result = validate_auth({"email": "owner", "password": "12345"})
        assert [e.field for e in result.errors] == ["email", "password"]


def test_parse_technologies_preserves_order():
    assert parse_technologies("b, a,, c ") == ["b", "a", "c"]
