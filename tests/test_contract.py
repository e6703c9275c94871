"""Contract mining: parameters, bodies, responses and route metadata."""

import textwrap

import pytest

from analytics import analyze_security
from contract import (
    ContractMiner,
    PathParameterExtractor,
    StatusCodeAnalyzer,
    describe,
    detect_api_version,
    detect_auth,
    extract_cache,
    extract_docs,
    extract_middleware,
    extract_rate_limit,
    extract_validation,
    json_type,
    recognizer_for,
    to_int,
)
from extractors.base import Language


def _src(text: str) -> str:
    return textwrap.dedent(text).lstrip("\n")


class TestPathParameters:
    """Template placeholders in every dialect."""

    @pytest.mark.parametrize("route, expected", [
        ("/users/{user_id:int}", [("user_id", "integer")]),
        ("/users/<int:year>/<slug>", [("year", "integer"), ("slug", "string")]),
        ("/orders/:orderId/items/:name", [("orderId", "integer"), ("name", "string")]),
        ("^articles/(?P<pk>[0-9]+)/$", [("pk", "string")]),
        ("/files/{uuid}", [("uuid", "string")]),
    ])
    def test_dialects(self, route, expected):
        params = PathParameterExtractor.extract(route)
        assert [(p.name, p.type) for p in params] == expected
        assert all(p.required and p.location == "path" for p in params)

    def test_duplicates_collapse(self):
        assert [p.name for p in PathParameterExtractor.extract("/a/{id}/b/{id}")] == ["id"]

    def test_descriptions(self):
        user_id, = PathParameterExtractor.extract("/users/{user_id}")
        assert user_id.description == "User Id identifier"


class TestRecognizers:
    """Per-language forward-window recognizers."""

    def test_python_signature(self):
        window = "async def read_item(item_id: int, q: str = None):\n    return {'id': item_id}\n"
        recognizer = recognizer_for(Language.PYTHON, "fastapi")
        contract = recognizer.func(window, "GET", ["item_id"], "fastapi")

        by_name = {p.name: p for p in contract.parameters}
        assert by_name["item_id"].location == "path"
        assert by_name["item_id"].type == "integer"
        assert by_name["item_id"].required
        assert by_name["q"].location == "query"
        assert not by_name["q"].required
        assert [r.status_code for r in contract.responses] == [200]

    def test_python_body_model(self):
        window = "def create_item(item: ItemCreate, db: Session = Depends(get_db)):\n    pass\n"
        contract = recognizer_for(Language.PYTHON, "fastapi").func(window, "POST", [], "fastapi")
        assert contract.request_body.schema_ref == "ItemCreate"
        assert contract.request_body.required
        assert contract.parameters == []

    def test_flask_request_access(self):
        window = _src("""
            def search():
                term = request.args.get("term")
                token = request.headers.get("X-Token")
                return jsonify(results), 206
        """)
        contract = recognizer_for(Language.PYTHON, "flask").func(window, "GET", [], "flask")
        assert {(p.name, p.location) for p in contract.parameters} == {("term", "query"), ("X-Token", "header")}
        assert {r.status_code for r in contract.responses} == {200, 206}

    def test_typescript_body_and_query(self):
        window = _src("""
            async (req, res) => {
              const { page, limit = 10 } = req.query;
              const order = req.body;
              res.status(201).json(order);
            }
        """)
        contract = recognizer_for(Language.TYPESCRIPT, "express").func(window, "POST", [], "express")
        assert [p.name for p in contract.parameters] == ["page", "limit"]
        assert contract.request_body.content_type == "application/json"
        assert [r.status_code for r in contract.responses] == [201]

    def test_spring_annotations(self):
        window = _src("""
            @GetMapping("/items/{id}")
            public ResponseEntity<Item> getItem(@PathVariable Long id, @RequestParam(required = false) String sort) {
        """)
        contract = recognizer_for(Language.JAVA, "spring").func(window, "GET", ["id"], "spring")
        by_name = {p.name: p for p in contract.parameters}
        assert (by_name["id"].location, by_name["id"].type) == ("path", "integer")
        assert (by_name["sort"].location, by_name["sort"].required) == ("query", False)
        assert contract.responses[0].schema_ref == "Item"

    def test_legacy_java_frameworks_get_their_own_recognizer(self):
        assert recognizer_for(Language.JAVA, "servlet").name == "legacy_java"
        assert recognizer_for(Language.JAVA, "spring").name == "java"
        assert recognizer_for(Language.GRAPHQL, "graphql").name == "generic"

    @pytest.mark.parametrize("annotation, expected", [
        ("int", "integer"),
        ("Optional[int]", "integer"),
        ("List[str]", "array"),
        ("Dict[str, int]", "object"),
        ("UploadFile", "file"),
        ("BigDecimal", "number"),
        ("UserDto", "object"),
        ("", "string"),
    ])
    def test_json_type(self, annotation, expected):
        assert json_type(annotation) == expected


class TestStatusCodes:
    """Explicit status codes in handler code."""

    def test_extract_from_code(self):
        code = _src("""
            if (!user) return res.status(404).json({});
            raise HTTPException(status_code=409, detail="taken")
            return jsonify(item), 201
            w.WriteHeader(http.StatusAccepted)
        """)
        assert StatusCodeAnalyzer.extract_from_code(code) == {404, 409, 201, 202}

    def test_out_of_range_codes_ignored(self):
        assert StatusCodeAnalyzer.extract_from_code("status: 999") == set()

    def test_describe(self):
        assert describe(404) == "Not Found"
        assert describe(299) == "HTTP 299"

    def test_default_codes_for_method(self):
        assert StatusCodeAnalyzer.default_codes_for_method("post") == [201, 400, 401, 403, 409, 422, 500]
        assert StatusCodeAnalyzer.default_codes_for_method("TRACE") == [200, 400, 500]


class TestRouteMetadata:
    """Auth, middleware, validation and directive recognizers."""

    @pytest.mark.parametrize("window, expected", [
        ("router.get('/me', verifyJWT, me)", "jwt"),
        ("const token = req.headers.Authorization", "bearer"),
        ("if (req.headers['x-api-key'] !== KEY)", "apikey"),
        ("@login_required\ndef view(): pass", "session"),
        ("passport.authenticate('oauth2')", "oauth"),
        ("app.use(BasicAuth(users))", "basic"),
        ("router.get('/public', list)", "none"),
    ])
    def test_detect_auth(self, window, expected):
        assert detect_auth(window) == expected

    def test_first_auth_marker_wins(self):
        assert detect_auth("@PreAuthorize(\"hasRole('ADMIN')\") // jwt filter") == "session"

    def test_route_call_middleware(self):
        content = "router.post('/orders', auth, validate, createOrder);\n"
        assert extract_middleware(content, 0) == ["auth", "validate"]

    def test_no_middleware_for_path_and_handler_only(self):
        assert extract_middleware("router.get('/orders', listOrders);\n", 0) == []

    def test_decorator_middleware(self):
        content = _src("""
            @UseGuards(AuthGuard)
            @Get(':id')
            findOne() {}
        """)
        offset = content.index("@Get")
        assert extract_middleware(content, offset) == ["Guards: AuthGuard"]

    def test_middleware_window_respects_lower_bound(self):
        content = "@UseGuards(AdminGuard)\n@Get('a')\na() {}\n@Get('b')\nb() {}\n"
        offset = content.index("@Get('b')")
        lower = content.index("@Get('a')") + 1
        assert extract_middleware(content, offset, lower) == []

    def test_validation_express_validator(self):
        validation = extract_validation("body('email').isEmail(), body('age').isInt()")
        assert validation.library == "express-validator"
        assert [(r.field, r.rule) for r in validation.rules] == [("email", "isEmail"), ("age", "isInt")]

    def test_validation_zod_schema(self):
        validation = extract_validation("const parsed = CreateUserSchema.safeParse(req.body)")
        assert validation.library == "zod"
        assert validation.schema == "CreateUserSchema"

    def test_no_validation(self):
        assert extract_validation("res.json(users)") is None

    def test_express_rate_limit(self):
        content = "const limiter = rateLimit({ windowMs: 15 * 60 * 1000, max: 100 });\n"
        limit = extract_rate_limit(content)
        assert (limit.limit, limit.window) == (100, "900s")

    @pytest.mark.parametrize("content, expected", [
        ('@limiter.limit("5/minute")', (5, "minute")),
        ("@Throttle(10, 60)", (10, "60s")),
    ])
    def test_other_rate_limits(self, content, expected):
        limit = extract_rate_limit(content)
        assert (limit.limit, limit.window) == expected

    def test_no_rate_limit(self):
        assert extract_rate_limit("router.get('/x', h)") is None

    def test_cache_control_header(self):
        cache = extract_cache("res.set('Cache-Control', 'public, max-age=300');")
        assert (cache.ttl, cache.strategy) == (300, "public")

    def test_cacheable_annotation(self):
        assert extract_cache('@Cacheable("products")').tags == ["products"]

    @pytest.mark.parametrize("path, window, expected", [
        ("/api/v2/users", "", "v2"),
        ("/users", '@ApiVersion("3")', "3"),
        ("/users", "", None),
    ])
    def test_api_version(self, path, window, expected):
        assert detect_api_version(path, window) == expected

    @pytest.mark.parametrize("value, expected", [
        ("1_000", 1000),
        (" 42 ", 42),
        ("MAX", None),
        (None, None),
    ])
    def test_to_int(self, value, expected):
        assert to_int(value) == expected


class TestDocs:
    """Descriptions, summaries, tags and deprecation."""

    def test_jsdoc(self):
        content = _src("""
            /**
             * List all users
             * @summary Users index
             * @tags users, admin
             * @deprecated
             */
            router.get('/users', list);
        """)
        docs = extract_docs(content, content.index("router.get"))
        assert docs.description == "List all users"
        assert docs.summary == "Users index"
        assert docs.tags == ["users", "admin"]
        assert docs.deprecated

    def test_python_docstring(self):
        content = _src('''
            @app.get("/health", tags=["ops"])
            def health():
                """Liveness probe.

                Always returns ok.
                """
                return {"ok": True}
        ''')
        docs = extract_docs(content, 0)
        assert docs.description == "Liveness probe."
        assert docs.tags == ["ops"]
        assert not docs.deprecated

    def test_line_comment_above_route(self):
        content = "// Fetch one order\nrouter.get('/orders/:id', getOrder);\n"
        docs = extract_docs(content, content.index("router"))
        assert docs.description == "Fetch one order"

    def test_lint_comments_are_noise(self):
        content = "// eslint-disable-next-line\nrouter.get('/orders', list);\n"
        assert extract_docs(content, content.index("router")).description is None


class TestContractMiner:
    """End-to-end mining of one raw match."""

    def setup_method(self):
        self.miner = ContractMiner()

    def test_path_params_reconciled_with_template(self, make_raw):
        content = "export async function GET(req, { params }) {\n  return NextResponse.json({})\n}\n"
        raw = make_raw("GET", "/api/users/:id", source_file="app/api/users/[id]/route.ts",
                       framework="nextjs", language=Language.TYPESCRIPT, handler="GET")
        endpoint = self.miner.mine(raw, content)

        assert endpoint.path == "/api/users/{id}"
        assert endpoint.language == "TypeScript"
        assert [(p.name, p.type, p.required, p.location) for p in endpoint.parameters] == [
            ("id", "integer", True, "path"),
        ]
        assert endpoint.is_async

    def test_express_route(self, make_raw):
        content = _src("""
            const limiter = rateLimit({ windowMs: 15 * 60 * 1000, max: 100 });
            router.post('/orders', auth, validate, async (req, res) => {
              const order = req.body;
              res.status(201).json(order);
            });
        """)
        raw = make_raw("POST", "/orders", offset=content.index("router.post"))
        endpoint = self.miner.mine(raw, content)

        assert endpoint.middleware == ["auth", "validate"]
        assert endpoint.request_body is not None
        assert [r.status_code for r in endpoint.responses] == [201]
        assert endpoint.rate_limit.limit == 100
        assert endpoint.line_number == 2

    def test_default_response(self, make_raw):
        endpoint = self.miner.mine(make_raw(), "router.get('/users', list);\n")
        assert [(r.status_code, r.description) for r in endpoint.responses] == [(200, "OK")]
        assert endpoint.auth == "none"

    def test_window_bounded_by_next_route(self, make_raw):
        content = _src("""
            router.get('/public', list);
            router.get('/private', verifyJWT, secret);
        """)
        first = make_raw("GET", "/public", offset=0)
        endpoint = self.miner.mine(first, content, upper=content.index("router.get('/private'"))
        assert endpoint.auth == "none"

    def test_previous_handler_body_does_not_leak(self, make_raw):
        content = _src("""
            router.get('/me', (req, res) => {
              const user = jwt.verify(req.cookies.token, SECRET);
              res.json(user);
            });
            router.delete('/public/items/:id', (req, res) => {
              res.sendStatus(204);
            });
        """)
        me_at = content.index("router.get")
        delete_at = content.index("router.delete")

        me = self.miner.mine(make_raw("GET", "/me", offset=me_at), content, upper=delete_at)
        delete = self.miner.mine(make_raw("DELETE", "/public/items/:id", offset=delete_at), content, lower=me_at)

        assert me.auth == "jwt"
        assert delete.auth == "none"
        assert any(i.message == "Mutation endpoint without authentication"
                   for i in analyze_security(delete, content, None).issues)

    def test_previous_signature_dependencies_do_not_leak(self, make_raw):
        content = _src("""
            @router.get("/items/{item_id}")
            def read_item(item_id: int, db: Session = Depends(get_db)):
                return db.get(item_id)


            @router.post("/items")
            def create_item(item: ItemCreate):
                return item
        """)
        read_at = content.index("@router.get")
        create_at = content.index("@router.post")
        python = dict(source_file="app/items.py", framework="fastapi", language=Language.PYTHON)

        read = self.miner.mine(make_raw("GET", "/items/{item_id}", offset=read_at, **python), content,
                               upper=create_at)
        create = self.miner.mine(make_raw("POST", "/items", offset=create_at, **python), content,
                                 lower=read_at)

        assert read.middleware == ["Depends: get_db"]
        assert create.middleware == []

    def test_query_shadowed_by_path_name_dropped(self, make_raw):
        content = "router.get('/users/:id', (req, res) => res.json(req.query.id));\n"
        endpoint = self.miner.mine(make_raw("GET", "/users/:id"), content)
        assert [(p.name, p.location) for p in endpoint.parameters] == [("id", "path")]

    def test_declared_protocol_contract(self, make_raw):
        raw = make_raw(
            "POST", "/graphql/user", source_file="schema.graphql", framework="graphql",
            language=Language.GRAPHQL, handler="user",
            metadata={
                "kind": "graphql",
                "tags": ["GraphQL", "Query"],
                "description": "GraphQL Query: user",
                "parameters": [{"name": "id", "type": "string", "required": True, "location": "body"}],
                "request_body": {"content_type": "application/json", "schema_ref": "userRequest"},
                "responses": [{"status_code": 200, "content_type": "application/json", "schema_ref": "User"}],
            },
        )
        endpoint = self.miner.mine(raw, "type Query {\n  user(id: ID!): User\n}\n")
        assert endpoint.kind == "graphql"
        assert endpoint.tags == ["GraphQL", "Query"]
        assert endpoint.request_body.schema_ref == "userRequest"
        assert endpoint.responses[0].schema_ref == "User"
        assert endpoint.params_in("body")[0].required

    def test_failing_recognizer_is_isolated(self, make_raw, monkeypatch):
        def boom(window):
            raise RuntimeError("broken recognizer")

        monkeypatch.setattr("contract.miner.detect_auth", boom)
        content = "router.post('/orders', auth, createOrder);\n"
        endpoint = self.miner.mine(make_raw("POST", "/orders"), content)
        assert endpoint.auth == "none"
        assert endpoint.middleware == ["auth"]
