"""Framework extractors: raw route discovery per language."""

import textwrap

import pytest

from extractors import (
    ExtractorRegistry,
    GoExtractor,
    GraphQLExtractor,
    GrpcExtractor,
    JavaExtractor,
    JavaScriptExtractor,
    Language,
    NextJsExtractor,
    PythonExtractor,
    WebSocketExtractor,
    combine_routes,
    normalize_path,
    split_arguments,
)
from extractors.base import annotation_start
from extractors.python import route_api_views


def _src(text: str) -> str:
    return textwrap.dedent(text).lstrip("\n")


def _pairs(matches):
    return [(m.method, m.raw_path) for m in matches]


class TestHelpers:
    """Shared text helpers."""

    @pytest.mark.parametrize("base, route, expected", [
        ("/api/v1", "/items/{id}", "/api/v1/items/{id}"),
        ("api/", "", "/api"),
        ("", "users", "/users"),
        ("", "", "/"),
        ("/api", "~/health", "/health"),
    ])
    def test_combine_routes(self, base, route, expected):
        assert combine_routes(base, route) == expected

    def test_split_arguments_respects_nesting(self):
        args = split_arguments("'/orders', auth, validate({ a: 1, b: [2, 3] }), createOrder) trailing")
        assert args == ["'/orders'", "auth", "validate({ a: 1, b: [2, 3] })", "createOrder"]

    def test_split_arguments_ignores_commas_in_strings(self):
        assert split_arguments("'a,b', c)") == ["'a,b'", "c"]

    def test_annotation_start_stops_at_previous_statement(self):
        content = "init();\n@UseGuards(AuthGuard)\n@Get('me')\n"
        assert annotation_start(content, content.index("@Get")) == content.index("@UseGuards")

    def test_annotation_start_stops_at_blank_line(self):
        content = "    return items\n\n@app.post('/items')\n"
        assert annotation_start(content, content.index("@app")) == content.index("@app")

    def test_annotation_start_respects_lower(self):
        content = "@A\n@B\n@Get\n"
        assert annotation_start(content, content.index("@Get"), lower=2) == 2


class TestJavaScript:
    """Express-style chains, mounts and NestJS controllers."""

    def setup_method(self):
        self.extractor = JavaScriptExtractor()

    def test_express_routes_and_handlers(self):
        content = _src("""
            const express = require('express');
            const router = express.Router();
            router.get('/users', listUsers);
            router.post('/orders', auth, validate, createOrder);
            router.delete('/users/:id', async (req, res) => res.sendStatus(204));
        """)
        matches = self.extractor.scan(content, "src/routes.js")

        assert _pairs(matches) == [
            ("GET", "/users"),
            ("POST", "/orders"),
            ("DELETE", "/users/:id"),
        ]
        assert [m.handler for m in matches] == ["listUsers", "createOrder", "deleteHandler"]
        assert all(m.framework == "express" for m in matches)
        assert matches[0].language is Language.JAVASCRIPT

    def test_typescript_file_language(self):
        matches = self.extractor.scan("app.get('/ping', ping);\n", "src/server.ts")
        assert matches[0].language is Language.TYPESCRIPT

    def test_framework_refined_from_imports(self):
        content = "import Koa from 'koa';\nrouter.get('/items', list);\n"
        assert self.extractor.scan(content, "src/a.js")[0].framework == "koa"

    def test_router_mount_prefix(self):
        content = _src("""
            const users = express.Router();
            users.get('/:id', getUser);
            app.use('/api/users', users);
        """)
        matches = self.extractor.scan(content, "src/app.js")
        assert ("GET", "/api/users/:id") in _pairs(matches)
        assert matches[0].metadata["mount_prefix"] == "/api/users"

    def test_nest_controller_prefix(self):
        content = _src("""
            @Controller('cats')
            export class CatsController {
              @Get(':id')
              findOne(@Param('id') id: string) {}

              @Post()
              async create(@Body() dto: CreateCatDto) {}
            }
        """)
        matches = self.extractor.scan(content, "src/cats.controller.ts")
        assert _pairs(matches) == [("GET", "/cats/:id"), ("POST", "/cats")]
        assert [m.handler for m in matches] == ["findOne", "create"]
        assert all(m.framework == "nestjs" for m in matches)

    def test_trpc_procedures(self):
        content = _src("""
            export const appRouter = router({
              list: publicProcedure.input(z.object({ q: z.string() })).query(() => []),
              create: protectedProcedure.mutation(() => null),
            });
        """)
        matches = self.extractor.scan(content, "src/trpc.ts")
        assert ("GET", "/trpc/list") in _pairs(matches)
        assert ("POST", "/trpc/create") in _pairs(matches)


class TestNextJs:
    """File-system routing."""

    def setup_method(self):
        self.extractor = NextJsExtractor()

    def test_app_router_dynamic_segment(self):
        content = _src("""
            export async function GET(req, { params }) {}
            export async function DELETE(req, { params }) {}
        """)
        matches = self.extractor.scan(content, "app/api/users/[id]/route.ts")
        assert sorted(_pairs(matches)) == [("DELETE", "/api/users/:id"), ("GET", "/api/users/:id")]
        assert normalize_path(matches[0].raw_path) == "/api/users/{id}"

    def test_route_groups_and_catch_all(self):
        assert self.extractor.route_for("src/app/api/(admin)/files/[...slug]/route.ts") == (
            "/api/files/:slug*", "app")

    def test_pages_router_default_export(self):
        content = _src("""
            export default function handler(req, res) {
              if (req.method === 'POST') { return res.status(201).json({}) }
              if (req.method === 'GET') { return res.json([]) }
            }
        """)
        matches = self.extractor.scan(content, "pages/api/posts/index.js")
        assert sorted(_pairs(matches)) == [("GET", "/api/posts"), ("POST", "/api/posts")]
        assert matches[0].handler == "handler"

    def test_non_api_files_are_rejected(self):
        assert not self.extractor.accepts("app/dashboard/page.tsx")
        assert not self.extractor.accepts("app/api/users/types.d.ts")
        assert self.extractor.accepts("app/api/users/route.ts")


class TestJava:
    """Spring, JAX-RS and servlet annotations."""

    def setup_method(self):
        self.extractor = JavaExtractor()

    def test_spring_class_prefix(self):
        content = _src("""
            @RestController
            @RequestMapping("/api/v1")
            public class ItemController {

                @GetMapping("/items/{id}")
                public Item getItem(@PathVariable Long id) {
                    return service.find(id);
                }

                @RequestMapping(value = "/items", method = RequestMethod.POST)
                public Item create(@RequestBody Item item) {
                    return item;
                }
            }
        """)
        matches = self.extractor.scan(content, "src/main/java/ItemController.java")
        assert _pairs(matches) == [("GET", "/api/v1/items/{id}"), ("POST", "/api/v1/items")]
        assert [m.handler for m in matches] == ["getItem", "create"]
        assert matches[0].metadata["class"] == "ItemController"

    def test_jaxrs_paths(self):
        content = _src("""
            @Path("/orders")
            public class OrderResource {
                @GET
                @Path("/{id}")
                public Order get(@PathParam("id") String id) { return null; }
            }
        """)
        matches = self.extractor.scan(content, "src/OrderResource.java")
        assert _pairs(matches) == [("GET", "/orders/{id}")]
        assert matches[0].framework == "jaxrs"

    def test_servlet(self):
        content = _src("""
            @WebServlet("/legacy")
            public class LegacyServlet extends HttpServlet {
                protected void doGet(HttpServletRequest req, HttpServletResponse resp) {}
                protected void doPost(HttpServletRequest req, HttpServletResponse resp) {}
            }
        """)
        matches = self.extractor.scan(content, "src/LegacyServlet.java")
        assert _pairs(matches) == [("GET", "/legacy"), ("POST", "/legacy")]


class TestPython:
    """Decorators, prefixed routers and URLconfs."""

    def setup_method(self):
        self.extractor = PythonExtractor()

    def test_fastapi_router_prefix(self):
        content = _src("""
            from fastapi import APIRouter

            router = APIRouter(prefix="/items")

            @router.get("/{item_id}")
            async def read_item(item_id: int, q: str = None):
                return {}
        """)
        matches = self.extractor.scan(content, "app/items.py")
        assert _pairs(matches) == [("GET", "/items/{item_id}")]
        assert matches[0].handler == "read_item"
        assert matches[0].framework == "fastapi"

    def test_flask_methods_list(self):
        content = _src("""
            from flask import Flask
            app = Flask(__name__)

            @app.route("/login", methods=["GET", "POST"])
            def login():
                pass
        """)
        matches = self.extractor.scan(content, "app/views.py")
        assert sorted(_pairs(matches)) == [("GET", "/login"), ("POST", "/login")]
        assert {m.framework for m in matches} == {"flask"}

    def test_django_urlconf_skips_include(self):
        content = _src("""
            from django.urls import include, path
            urlpatterns = [
                path("articles/<int:year>/", views.year_archive),
                path("api/", include("api.urls")),
            ]
        """)
        matches = self.extractor.scan(content, "site/urls.py")
        assert _pairs(matches) == [("GET", "/articles/<int:year>/")]
        assert normalize_path(matches[0].raw_path) == "/articles/{year}"

    def test_django_regex_route_drops_anchor(self):
        content = _src(r"""
            urlpatterns = [
                re_path(r'^posts/(?P<slug>[-\w]+)/$', views.post),
            ]
        """)
        matches = self.extractor.scan(content, "blog/urls.py")
        assert _pairs(matches) == [("GET", r"/posts/(?P<slug>[-\w]+)/$")]
        assert normalize_path(matches[0].raw_path) == "/posts/{slug}"

    def test_api_view_takes_urlconf_path(self):
        views = _src("""
            @api_view(['GET', 'POST'])
            def snippet_list(request):
                pass

            @api_view(['DELETE'])
            def orphan(request, pk):
                pass
        """)
        urls = _src("""
            urlpatterns = [
                path('snippets/', views.snippet_list),
            ]
        """)
        raw = self.extractor.scan(urls, "app/urls.py") + self.extractor.scan(views, "app/views.py")
        routed = route_api_views(raw)

        assert sorted((m.source_file, m.method, m.raw_path) for m in routed) == [
            ("app/views.py", "DELETE", "/orphan"),
            ("app/views.py", "GET", "/snippets/"),
            ("app/views.py", "POST", "/snippets/"),
        ]
        orphan = next(m for m in routed if m.handler == "orphan")
        assert orphan.metadata["inferred_path"]


class TestGo:
    """Gin groups and net/http registrations."""

    def setup_method(self):
        self.extractor = GoExtractor()

    def test_gin_group_prefix(self):
        content = _src("""
            r := gin.Default()
            v1 := r.Group("/api/v1")
            v1.GET("/users/:id", getUser)
            r.POST("/login", login)
        """)
        matches = self.extractor.scan(content, "main.go")
        assert sorted(_pairs(matches)) == [("GET", "/api/v1/users/:id"), ("POST", "/login")]
        assert {m.handler for m in matches} == {"getUser", "login"}

    def test_go122_method_pattern(self):
        matches = self.extractor.scan('mux.HandleFunc("DELETE /items/{id}", deleteItem)\n', "main.go")
        assert _pairs(matches) == [("DELETE", "/items/{id}")]

    def test_gorilla_methods_chain(self):
        content = 'import "github.com/gorilla/mux"\nr.HandleFunc("/books", books).Methods("GET", "POST")\n'
        matches = self.extractor.scan(content, "main.go")
        assert _pairs(matches) == [("GET", "/books"), ("POST", "/books")]
        assert {m.framework for m in matches} == {"gorilla"}


class TestProtocols:
    """GraphQL schemas and gRPC services."""

    def test_graphql_root_fields(self):
        content = _src("""
            type Query {
              user(id: ID!): User
              users: [User!]!
            }
            type Mutation {
              createUser(name: String!, age: Int): User
            }
        """)
        matches = GraphQLExtractor().scan(content, "schema.graphql")
        assert _pairs(matches) == [
            ("POST", "/graphql/user"),
            ("POST", "/graphql/users"),
            ("POST", "/graphql/createUser"),
        ]
        assert matches[0].metadata["kind"] == "graphql"

    def test_grpc_service(self):
        content = _src("""
            syntax = "proto3";
            package shop.v1;
            service Catalog {
              // Look up one product
              rpc GetProduct(GetProductRequest) returns (Product);
              rpc Watch(WatchRequest) returns (stream Product);
            }
        """)
        matches = GrpcExtractor().scan(content, "proto/catalog.proto")
        assert _pairs(matches) == [
            ("POST", "/shop.v1.Catalog/GetProduct"),
            ("POST", "/shop.v1.Catalog/Watch"),
        ]
        assert matches[0].metadata["description"] == "Look up one product"
        assert "Streaming" in matches[1].metadata["tags"]

    def test_websocket_events_and_server(self):
        content = _src("""
            const wss = new WebSocketServer({ server, path: '/live' });
            io.on('connection', (socket) => {
              socket.on('chat', onChat);
              socket.on('disconnect', bye);
            });
        """)
        matches = WebSocketExtractor().scan(content, "src/realtime.js")
        assert sorted(_pairs(matches)) == [("GET", "/live"), ("GET", "/socket.io/chat")]
        assert {m.metadata["kind"] for m in matches} == {"websocket"}


class TestRegistry:
    """Framework tag lookup."""

    def test_known_tag_selects_its_extractors(self):
        registry = ExtractorRegistry(include_protocols=False)
        selected = registry.for_framework("spring")
        assert [type(e) for e in selected] == [JavaExtractor]
        assert not registry.is_fallback("spring")

    def test_unknown_tag_falls_back_to_all(self):
        registry = ExtractorRegistry()
        selected = registry.for_framework("unknown")
        assert registry.is_fallback("unknown")
        assert len(selected) == len(registry.extractors) + len(registry.protocols)

    def test_protocols_can_be_disabled(self):
        registry = ExtractorRegistry(include_protocols=False)
        assert not any(isinstance(e, GraphQLExtractor) for e in registry.for_framework("express"))
