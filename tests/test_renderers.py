"""OpenAPI, Postman, cURL, SDK and mock rendering."""

import yaml

import pytest

from contract import path_parameters
from extractors.models import Parameter, RequestBody, Response
from renderers import (
    placeholder_value,
    render_curl,
    render_mock,
    render_openapi,
    render_postman,
    render_sdk_snippets,
    to_yaml,
)
from renderers.openapi import generate_operation_id
from renderers.postman import postman_path
from renderers.values import SAMPLE_ID, SAMPLE_TIMESTAMP


@pytest.fixture
def endpoints(make_endpoint):
    return [
        make_endpoint(
            "GET", "/users/{id}", auth="jwt",
            parameters=path_parameters("/users/{id}"),
            responses=[Response(status_code=200, schema_ref="User")],
        ),
        make_endpoint("GET", "/users/{id}", source_file="src/legacy.js", handler_name="legacy"),
        make_endpoint(
            "POST", "/users", auth="jwt",
            request_body=RequestBody(schema_ref="CreateUserDto"),
            responses=[Response(status_code=201)],
        ),
        make_endpoint("GET", "/health"),
    ]


class TestOpenApi:
    """Document structure and uniqueness."""

    def test_method_path_pairs(self, endpoints):
        document = render_openapi(endpoints, title="shop")
        pairs = {(method, path) for path, item in document["paths"].items() for method in item}
        assert pairs == {("get", "/users/{id}"), ("post", "/users"), ("get", "/health")}
        assert document["openapi"] == "3.0.3"

    def test_duplicate_keeps_first(self, endpoints):
        operation = render_openapi(endpoints)["paths"]["/users/{id}"]["get"]
        assert operation["security"] == [{"jwt": []}]
        assert operation["parameters"] == [
            {"name": "id", "in": "path", "required": True, "schema": {"type": "integer"}, "description": "Id identifier"},
        ]

    def test_referenced_schemas_are_registered(self, endpoints):
        components = render_openapi(endpoints)["components"]
        assert list(components["schemas"]) == ["CreateUserDto", "User"]

    def test_security_schemes_only_for_used_kinds(self, endpoints, make_endpoint):
        assert list(render_openapi(endpoints)["components"]["securitySchemes"]) == ["jwt"]
        public = render_openapi([make_endpoint("GET", "/health")])
        assert "securitySchemes" not in public["components"]

    def test_operation_ids_are_unique(self, make_endpoint):
        document = render_openapi([make_endpoint("GET", "/users.list"), make_endpoint("GET", "/users-list")])
        ids = [item["get"]["operationId"] for item in document["paths"].values()]
        assert ids == ["get_userslist", "get_userslist_2"]

    @pytest.mark.parametrize("path, method, expected", [
        ("/users/{id}", "GET", "get_users_id"),
        ("/", "post", "post_root"),
    ])
    def test_generate_operation_id(self, path, method, expected):
        assert generate_operation_id(path, method) == expected

    def test_default_response(self, make_endpoint):
        operation = render_openapi([make_endpoint("DELETE", "/users")])["paths"]["/users"]["delete"]
        assert operation["responses"] == {"200": {"description": "OK"}}
        assert operation["tags"] == ["users"]

    def test_yaml_round_trip(self, endpoints):
        document = render_openapi(endpoints)
        assert yaml.safe_load(to_yaml(document)) == document


class TestPostman:
    """Collection v2.1 layout."""

    def test_postman_path(self):
        assert postman_path("/users/{id}/posts") == ["users", ":id", "posts"]

    def test_folders_by_first_segment(self, endpoints):
        collection = render_postman(endpoints, name="shop")
        assert collection["info"]["name"] == "shop API"
        assert [f["name"] for f in collection["item"]] == ["users", "health"]
        assert len(collection["item"][0]["item"]) == 3

    def test_request_headers_and_body(self, make_endpoint):
        endpoint = make_endpoint(
            "POST", "/users/{id}/avatar", auth="jwt",
            parameters=path_parameters("/users/{id}/avatar") + [
                Parameter(name="file", type="file", location="body"),
            ],
            request_body=RequestBody(content_type="multipart/form-data"),
        )
        request = render_postman([endpoint])["item"][0]["item"][0]["request"]

        assert request["header"] == [
            {"key": "Content-Type", "value": "multipart/form-data"},
            {"key": "Authorization", "value": "Bearer {{token}}"},
        ]
        assert request["url"]["raw"] == "{{baseUrl}}/users/:id/avatar"
        assert request["url"]["variable"] == [{"key": "id", "value": ""}]
        assert request["body"]["mode"] == "formdata"
        assert request["body"]["formdata"][0]["type"] == "file"


class TestCurl:
    """Command lines."""

    def test_get_with_query_and_api_key(self, make_endpoint):
        endpoint = make_endpoint("GET", "/users", auth="apikey",
                                 parameters=[Parameter(name="page", location="query")])
        assert render_curl(endpoint) == (
            "curl \\\n"
            "  -H 'X-API-Key: YOUR_API_KEY' \\\n"
            "  'http://localhost:3000/users?page=value'"
        )

    def test_post_json_body(self, make_endpoint):
        endpoint = make_endpoint(
            "POST", "/users",
            parameters=[Parameter(name="name", location="body")],
            request_body=RequestBody(),
        )
        command = render_curl(endpoint, base_url="https://api.test/")
        assert command.startswith("curl \\\n  -X POST \\\n  -H 'Content-Type: application/json'")
        assert '"name": "<string>"' in command
        assert command.endswith("'https://api.test/users'")

    def test_multipart_fields(self, make_endpoint):
        endpoint = make_endpoint(
            "POST", "/upload",
            parameters=[Parameter(name="doc", type="file", location="body")],
            request_body=RequestBody(content_type="multipart/form-data"),
        )
        command = render_curl(endpoint)
        assert "-F 'doc=@/path/to/file'" in command
        assert "Content-Type" not in command


class TestSdkSnippets:
    """Per-language client snippets."""

    def test_languages(self, make_endpoint):
        snippets = render_sdk_snippets(make_endpoint("GET", "/users"))
        assert list(snippets) == ["typescript", "javascript", "python", "curl"]

    def test_path_params_become_template_variables(self, make_endpoint):
        snippets = render_sdk_snippets(make_endpoint("GET", "/users/{id}", auth="jwt"))
        assert "`https://api.example.com/users/${id}`" in snippets["typescript"]
        assert 'f"https://api.example.com/users/{id}"' in snippets["python"]
        assert "'Authorization': 'Bearer YOUR_TOKEN'" in snippets["javascript"]

    def test_python_body(self, make_endpoint):
        endpoint = make_endpoint(
            "POST", "/users",
            parameters=[Parameter(name="email", location="body")],
            request_body=RequestBody(),
        )
        python = render_sdk_snippets(endpoint)["python"]
        assert "requests.request(" in python
        assert "json={'email': 'user@example.com'}," in python
        assert "Authorization" not in python


class TestMock:
    """Request and response payloads."""

    def test_collection_get_is_paginated(self, make_endpoint):
        mock = render_mock(make_endpoint("GET", "/users"))
        response = mock["response_example"]

        assert mock["request_example"] is None
        assert response["pagination"] == {"page": 1, "limit": 10, "total": 100, "totalPages": 10}
        assert response["data"][0]["id"] == SAMPLE_ID
        assert response["data"][0]["email"] == "john@example.com"

    def test_item_envelope(self, make_endpoint):
        response = render_mock(make_endpoint("GET", "/orders/{id}"))["response_example"]
        assert response["success"] is True
        assert response["data"]["status"] == "pending"
        assert response["data"]["createdAt"] == SAMPLE_TIMESTAMP

    def test_request_example(self, make_endpoint):
        generic = render_mock(make_endpoint("POST", "/widgets", request_body=RequestBody()))
        assert generic["request_example"] == {"name": "New widget", "description": "Description for widget"}

        declared = render_mock(make_endpoint("POST", "/widgets", request_body=RequestBody(example={"a": 1})))
        assert declared["request_example"] == {"a": 1}

    @pytest.mark.parametrize("type_name, name, expected", [
        ("string", "email", "user@example.com"),
        ("string", "userId", SAMPLE_ID),
        ("integer", "count", 10),
        ("integer", "age", 42),
        ("array", "tags", []),
        ("date", "when", SAMPLE_TIMESTAMP),
    ])
    def test_placeholder_value(self, type_name, name, expected):
        assert placeholder_value(type_name, name) == expected
