"""Path normalization, canonical identity and grouping."""

import pytest

from engine.canonical import canonical_key, canonicalize, group_endpoints, group_prefix
from extractors.models import Parameter, Response
from extractors.paths import normalize_path, path_param_names, placeholder_template


class TestNormalizePath:
    """Every dialect ends up in the braced form."""

    @pytest.mark.parametrize("raw, expected", [
        ("/users/:id", "/users/{id}"),
        ("/users/:id?", "/users/{id}"),
        ("/files/*path", "/files/{path}"),
        ("/users/{id:int}", "/users/{id}"),
        ("/users/{id?}", "/users/{id}"),
        ("/users/<int:id>", "/users/{id}"),
        ("^articles/(?P<year>[0-9]{4})/$", "/articles/{year}"),
        ("/^posts/$", "/posts"),
        ("/api/users/[id]", "/api/users/{id}"),
        ("/docs/[...slug]", "/docs/{slug}"),
        ("/posts(.:format)", "/posts"),
        ("users//list/", "/users/list"),
        ("/search?q=1", "/search"),
        ("", "/"),
        ("/", "/"),
    ])
    def test_dialects(self, raw, expected):
        assert normalize_path(raw) == expected

    def test_idempotent(self):
        once = normalize_path("/orgs/:org/repos/<repo>/")
        assert normalize_path(once) == once

    def test_placeholder_template(self):
        assert placeholder_template("/users/{id}/posts/{post_id}") == "/users/{}/posts/{}"

    def test_param_names_in_order(self):
        assert path_param_names("/a/{x}/b/{y}") == ["x", "y"]


class TestCanonicalize:
    """Deduplication by (method, template, source file)."""

    def test_placeholder_names_do_not_matter(self, make_endpoint):
        a = make_endpoint("GET", "/users/{id}")
        b = make_endpoint("get", "/users/{user_id}")
        assert canonical_key(a) == canonical_key(b) == ("GET", "/users/{}", "src/app.js")

    def test_first_in_file_order_wins(self, make_endpoint):
        later = make_endpoint("GET", "/users/{user_id}", offset=200, handler_name="second")
        earlier = make_endpoint("GET", "/users/{id}", offset=10, handler_name="first")
        result = canonicalize([later, earlier])
        assert [e.handler_name for e in result] == ["first"]

    def test_different_files_are_distinct(self, make_endpoint):
        a = make_endpoint("GET", "/users", source_file="src/a.js")
        b = make_endpoint("GET", "/users", source_file="src/b.js")
        assert len(canonicalize([a, b])) == 2

    def test_different_methods_are_distinct(self, make_endpoint):
        assert len(canonicalize([make_endpoint("GET"), make_endpoint("POST")])) == 2

    def test_drop_keeps_survivor_untouched(self, make_endpoint):
        first = make_endpoint("GET", "/users", offset=0)
        second = make_endpoint("GET", "/users", offset=50,
                               parameters=[Parameter(name="page", location="query")])
        result = canonicalize([first, second])
        assert result == [first]
        assert first.parameters == []

    def test_merge_unions_contract(self, make_endpoint):
        first = make_endpoint(
            "GET", "/users", offset=0,
            parameters=[Parameter(name="page", location="query")],
            responses=[Response(status_code=200)],
            middleware=["auth"],
        )
        second = make_endpoint(
            "GET", "/users", offset=50,
            parameters=[Parameter(name="page", location="query"), Parameter(name="limit", location="query")],
            responses=[Response(status_code=404), Response(status_code=200)],
            middleware=["auth", "cache"],
            description="List users",
            auth="jwt",
        )
        result = canonicalize([second, first], merge=True)

        assert result == [first]
        assert [p.name for p in first.parameters] == ["page", "limit"]
        assert [r.status_code for r in first.responses] == [200, 404]
        assert first.middleware == ["auth", "cache"]
        assert first.description == "List users"
        assert first.auth == "jwt"

    def test_output_order_is_file_then_offset(self, make_endpoint):
        endpoints = [
            make_endpoint("GET", "/b", source_file="src/b.js", offset=0),
            make_endpoint("GET", "/a2", source_file="src/a.js", offset=90),
            make_endpoint("GET", "/a1", source_file="src/a.js", offset=5),
        ]
        assert [e.path for e in canonicalize(endpoints)] == ["/a1", "/a2", "/b"]


class TestGrouping:
    """Groups keyed by the first literal segment."""

    @pytest.mark.parametrize("path, expected", [
        ("/users/{id}", "/users"),
        ("/{tenant}/orders", "/orders"),
        ("/", "/"),
        ("/{id}", "/"),
    ])
    def test_group_prefix(self, path, expected):
        assert group_prefix(path) == expected

    def test_groups_sorted_and_partitioned(self, make_endpoint):
        endpoints = [
            make_endpoint("POST", "/users"),
            make_endpoint("GET", "/orders/{id}"),
            make_endpoint("GET", "/users/{id}"),
            make_endpoint("GET", "/users"),
        ]
        groups = group_endpoints(endpoints)

        assert [g.prefix for g in groups] == ["/orders", "/users"]
        assert [e.label for e in groups[1].endpoints] == ["GET /users", "POST /users", "GET /users/{id}"]
        assert sum(len(g.endpoints) for g in groups) == len(endpoints)
        assert groups[1].to_dict()["count"] == 3
