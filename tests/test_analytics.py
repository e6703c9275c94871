"""Per-endpoint analytics passes, the pipeline and scan statistics."""

import textwrap

import pytest

from analytics import (
    AnalyticsBundle,
    AnalyticsPipeline,
    DependencyReport,
    Latency,
    Severity,
    SuiteIndex,
    analyze_change_risk,
    analyze_complexity,
    analyze_consistency,
    analyze_coverage,
    analyze_dependencies,
    analyze_documentation,
    analyze_naming,
    analyze_performance,
    analyze_security,
    build_stats,
    calculate_health,
    detect_similar,
    generate_usage_hints,
    link_dependencies,
    similarity_score,
    tested_module,
)
from analytics.consistency import classify_format
from analytics.pipeline import handler_bounds
from contract import path_parameters
from extractors.models import (
    CacheDirective,
    Parameter,
    RateLimit,
    RequestBody,
    Response,
)


def _src(text: str) -> str:
    return textwrap.dedent(text).lstrip("\n")


class TestSecurity:
    """Missing controls and risky code patterns."""

    def test_eval_in_get_handler(self, make_endpoint):
        content = _src("""
            router.get('/run', (req, res) => {
              const out = eval(req.query.code);
              res.json({ out });
            });
        """)
        report = analyze_security(make_endpoint("GET", "/run"), content)

        assert [(i.severity, i.message) for i in report.issues] == [
            (Severity.CRITICAL, "Use of eval() or Function constructor"),
        ]
        assert report.count(Severity.CRITICAL) == 1
        assert not report.has_auth

    def test_unprotected_post(self, make_endpoint):
        content = "router.post('/orders', (req, res) => res.json(req.body));\n"
        endpoint = make_endpoint("POST", "/orders", request_body=RequestBody())
        messages = [i.message for i in analyze_security(endpoint, content).issues]
        assert messages == [
            "Mutation endpoint without authentication",
            "POST endpoint without rate limiting",
            "Request body without validation",
        ]

    def test_protected_post_is_clean(self, make_endpoint):
        content = "router.post('/orders', auth, (req, res) => { const o = schema.parse(req.body); });\n"
        endpoint = make_endpoint(
            "POST", "/orders", auth="jwt", rate_limit=RateLimit(limit=10), request_body=RequestBody(),
        )
        report = analyze_security(endpoint, content)
        assert report.issues == []
        assert report.has_input_validation

    def test_window_stops_at_upper_bound(self, make_endpoint):
        content = "router.get('/a', list);\nrouter.get('/b', (req, res) => eval(x));\n"
        report = analyze_security(make_endpoint("GET", "/a"), content, upper=content.index("router.get('/b'"))
        assert report.issues == []

    @pytest.mark.parametrize("snippet, severity", [
        ("db.query('SELECT * FROM users WHERE id=' + id)", Severity.CRITICAL),
        ("const password = 'hunter22'", Severity.CRITICAL),
        ("el.innerHTML = input", Severity.HIGH),
        ("app.use(cors())", Severity.MEDIUM),
        ("await fetch('http://example.com/x')", Severity.LOW),
    ])
    def test_code_rules(self, make_endpoint, snippet, severity):
        report = analyze_security(make_endpoint("GET", "/x"), snippet)
        assert [i.severity for i in report.issues] == [severity]


class TestSimilarity:
    """Weighted path / method / parameter overlap."""

    def test_collection_and_item(self, make_endpoint):
        users = make_endpoint("GET", "/users")
        user = make_endpoint("GET", "/users/{id}", parameters=path_parameters("/users/{id}"))
        assert similarity_score(users, user) == 55
        assert similarity_score(user, users) == 55

    def test_identical_shape(self, make_endpoint):
        a = make_endpoint("GET", "/users/{id}", parameters=path_parameters("/users/{id}"))
        b = make_endpoint("GET", "/users/{user_id}", parameters=path_parameters("/users/{user_id}"))
        assert similarity_score(a, b) == 100

    def test_detect_similar_ranks_and_flags(self, make_endpoint):
        target = make_endpoint("GET", "/users/{id}", parameters=path_parameters("/users/{id}"))
        twin = make_endpoint("GET", "/users/{uid}", source_file="src/b.js",
                             parameters=path_parameters("/users/{uid}"))
        collection = make_endpoint("GET", "/users")
        unrelated = make_endpoint("POST", "/billing/invoices")

        report = detect_similar(target, [target, collection, twin, unrelated])

        assert [(s.path, s.score) for s in report.similar_endpoints] == [
            ("/users/{uid}", 100), ("/users", 55),
        ]
        assert report.potential_duplicate
        assert report.best_score == 100

    def test_threshold(self, make_endpoint):
        users = make_endpoint("GET", "/users")
        user = make_endpoint("GET", "/users/{id}", parameters=path_parameters("/users/{id}"))
        assert detect_similar(users, [users, user], threshold=60).similar_endpoints == []


class TestNaming:
    """REST naming deductions."""

    @pytest.mark.parametrize("path, score", [
        ("/api/v1/users", 100),
        ("/listings", 100),
        ("/addresses", 100),
        ("/updates", 100),
        ("/getaways", 100),
        ("/update-user", 85),
        ("/users/{userId}", 100),
        ("/user/{id}", 95),
        ("/getUsers", 75),
        ("/users.json", 95),
        ("/a/b/c/d/e/f", 85),
    ])
    def test_scores(self, make_endpoint, path, score):
        assert analyze_naming(make_endpoint("GET", path)).score == score

    def test_restful_flags(self, make_endpoint):
        assert analyze_naming(make_endpoint("GET", "/users/{id}")).follows_restful
        report = analyze_naming(make_endpoint("GET", "/getUsers"))
        assert not report.follows_restful
        assert report.uses_camel_case

    def test_mixed_case_styles(self, make_endpoint):
        report = analyze_naming(make_endpoint("GET", "/user-groups/member_roles"))
        assert report.uses_kebab_case and report.uses_snake_case
        assert "Mixed case styles in URL (use one style consistently)" in report.issues


class TestDocumentation:
    """Doc markers and mined descriptions."""

    def test_fully_documented(self, make_endpoint):
        content = _src("""
            /**
             * Fetch a user
             * @param id user id
             * @returns the user
             * @example GET /users/1
             */
            router.get('/users/:id', getUser);
        """)
        endpoint = make_endpoint("GET", "/users/{id}", offset=content.index("router"))
        report = analyze_documentation(endpoint, content)
        assert report.score == 100

    def test_derived_descriptions_do_not_count(self, make_endpoint):
        endpoint = make_endpoint(
            "GET", "/users/{id}",
            parameters=path_parameters("/users/{id}"),
            responses=[Response(status_code=200, description="OK")],
        )
        assert analyze_documentation(endpoint, "router.get('/users/:id', getUser);\n").score == 0

    def test_mined_contract_counts(self, make_endpoint):
        endpoint = make_endpoint(
            "POST", "/users",
            description="Create a user",
            parameters=[Parameter(name="invite", location="query", description="Invite code")],
            responses=[Response(status_code=201, description="The created user")],
            request_body=RequestBody(example={"name": "Ada"}),
        )
        report = analyze_documentation(endpoint, "")
        assert (report.has_description, report.has_param_docs, report.has_response_docs, report.has_examples) == (
            True, True, True, True,
        )


class TestComplexityAndPerformance:
    """Pattern-count passes over the handler window."""

    def test_complexity_factors(self, make_endpoint):
        content = _src("""
            router.post('/upload', auth, async (req, res) => {
              const rows = await prisma.file.findMany();
              await fetch('https://cdn.example.com/sync');
              res.json(rows);
            });
        """)
        endpoint = make_endpoint(
            "POST", "/upload", auth="jwt", middleware=["auth"],
            request_body=RequestBody(content_type="multipart/form-data"),
        )
        report = analyze_complexity(endpoint, content)
        assert report.score == 8
        assert report.factors == [
            "Has request body", "File upload", "Requires authentication", "Has middleware",
            "Database access", "External API calls",
        ]

    def test_trivial_handler(self, make_endpoint):
        report = analyze_complexity(make_endpoint(), "router.get('/users', list);\n")
        assert (report.score, report.factors, report.cyclomatic_approx) == (1, [], 1)

    def test_paginated_cached_handler(self, make_endpoint):
        content = _src("""
            router.get('/users', async (req, res) => {
              const page = parseInt(req.params.page);
              const cached = await redis.get(`users:${page}`);
              res.json(cached);
            });
        """)
        report = analyze_performance(make_endpoint(), content)
        assert report.has_caching and report.has_pagination
        assert report.estimated_latency == Latency.LOW

    def test_outbound_call_is_high_latency(self, make_endpoint):
        report = analyze_performance(make_endpoint(), "const r = await axios.get(url);")
        assert report.estimated_latency == Latency.HIGH

    def test_mined_cache_directive(self, make_endpoint):
        endpoint = make_endpoint(cache=CacheDirective(ttl=60))
        assert analyze_performance(endpoint, "").has_caching


class TestConsistency:
    """Response format, error handling and versioning style."""

    def test_structured_json_handler(self, make_endpoint):
        content = _src("""
            router.get('/v2/orders', async (req, res) => {
              try {
                res.json(await load());
              } catch (e) {
                throw new NotFoundError('missing');
              }
            });
        """)
        report = analyze_consistency(make_endpoint("GET", "/v2/orders"), content)
        assert (report.response_format, report.error_handling, report.versioning_style) == (
            "json", "consistent", "path",
        )

    def test_header_versioning(self, make_endpoint):
        content = "router.get('/orders', (req, res) => { const v = req.get('Accept-Version'); });"
        report = analyze_consistency(make_endpoint("GET", "/orders"), content)
        assert report.versioning_style == "header"
        assert report.error_handling == "unknown"

    @pytest.mark.parametrize("window, expected", [
        ("res.json(x)", "json"),
        ("res.render('page')", "html"),
        ("res.json(x); res.render('page')", "mixed"),
        ("return 1", "unknown"),
    ])
    def test_classify_format(self, window, expected):
        assert classify_format(window) == expected


class TestHealth:
    """Weighted blend of the sub-scores."""

    def test_default_weights(self, make_endpoint):
        endpoint = make_endpoint("GET", "/users")
        endpoint.analytics = AnalyticsBundle()
        health = calculate_health(endpoint)
        assert (health.security, health.documentation, health.performance, health.naming) == (100, 0, 80, 100)
        assert health.overall == 71

    def test_unprotected_post_penalized(self, make_endpoint):
        endpoint = make_endpoint("POST", "/users", request_body=RequestBody())
        endpoint.analytics = AnalyticsBundle()
        assert calculate_health(endpoint).security == 40

    def test_custom_weights(self, make_endpoint):
        endpoint = make_endpoint("POST", "/users")
        endpoint.analytics = AnalyticsBundle()
        weights = {"security": 1.0, "documentation": 0.0, "performance": 0.0, "naming": 0.0}
        health = calculate_health(endpoint, weights)
        assert health.overall == health.security == 60


class TestUsageHints:
    """Headers, expected errors and practices for callers."""

    def test_authenticated_write_with_path_param(self, make_endpoint):
        endpoint = make_endpoint(
            "POST", "/users/{id}", auth="jwt",
            responses=[Response(status_code=201), Response(status_code=418, description="I'm a teapot")],
            rate_limit=RateLimit(limit=100, window="900s"),
        )
        hints = generate_usage_hints(endpoint)

        assert [(h.name, h.value) for h in hints.recommended_headers] == [
            ("Content-Type", "application/json"),
            ("Authorization", "Bearer <your_token>"),
        ]
        assert [e.code for e in hints.common_errors] == [401, 403, 400, 422, 404, 409, 418]
        assert hints.common_errors[-1].solution == "Returned explicitly by the handler"
        assert "Rate limit: 100 requests per 900s; throttle your calls" in hints.best_practices

    def test_public_collection(self, make_endpoint):
        hints = generate_usage_hints(make_endpoint("GET", "/users"))
        assert hints.common_errors == []
        assert hints.best_practices == ["Use cache headers to avoid refetching unchanged data"]


class TestDependencies:
    """Internal call edges and external hosts."""

    def test_calls_and_external_hosts(self, make_endpoint):
        content = _src("""
            router.get('/dashboard', async (req, res) => {
              const user = await fetch(`/api/users/${req.user.id}`);
              const weather = await axios.get('https://api.weather.com/v1/today');
              const local = await fetch('http://localhost:4000/ping');
              res.json({ user, weather, local });
            });
        """)
        report = analyze_dependencies(make_endpoint("GET", "/dashboard"), content)
        assert report.calls_endpoints == ["/api/users/{param}"]
        assert report.external_apis == ["api.weather.com"]

    def test_link_reverse_edges(self, make_endpoint):
        dashboard = make_endpoint("GET", "/dashboard")
        dashboard.analytics = AnalyticsBundle(dependencies=DependencyReport(calls_endpoints=["/api/users/{param}"]))
        user = make_endpoint("GET", "/api/users/{id}")
        user.analytics = AnalyticsBundle()
        remove = make_endpoint("DELETE", "/api/users/{id}")
        remove.analytics = AnalyticsBundle()

        link_dependencies([dashboard, user, remove])

        assert user.analytics.dependencies.called_by_endpoints == ["GET /dashboard"]
        assert remove.analytics.dependencies.called_by_endpoints == ["GET /dashboard"]
        assert dashboard.analytics.dependencies.called_by_endpoints == []


class TestChangeRisk:
    """Risk level from size, coupling and resource criticality."""

    def test_delete_on_shared_resource(self, make_endpoint):
        target = make_endpoint("DELETE", "/users/{id}")
        others = [make_endpoint("GET", "/users"), make_endpoint("POST", "/users"), make_endpoint("GET", "/users/{id}")]
        report = analyze_change_risk(target, [target] + others)

        assert report.level == "medium"
        assert report.breaking_change_risk
        assert report.dependent_endpoints == ["GET /users", "POST /users", "GET /users/{id}"]

    def test_isolated_endpoint(self, make_endpoint):
        target = make_endpoint("GET", "/health")
        report = analyze_change_risk(target, [target])
        assert (report.level, report.breaking_change_risk, report.dependent_endpoints) == ("low", False, [])


class TestCoverage:
    """Test suites found for the handler's source file."""

    @pytest.mark.parametrize("filename, expected", [
        ("users.test.ts", "users"),
        ("users.controller.spec.js", "users.controller"),
        ("test_orders.py", "orders"),
        ("orders_test.go", "orders"),
        ("users_spec.rb", "users"),
        ("UserControllerTest.java", "usercontroller"),
        ("TestOrderService.java", "orderservice"),
        ("users.ts", None),
        ("conftest.py", None),
    ])
    def test_tested_module(self, filename, expected):
        assert tested_module(filename) == expected

    def test_project_index(self, make_project):
        root = make_project({
            "src/routes/users.js": "",
            "tests/users.test.js": "",
            "tests/integration/api.test.js": "",
            "cypress/e2e/login.cy.js": "",
            "node_modules/pkg/orders.test.js": "",
        })
        index = SuiteIndex.scan(root)

        assert index.unit == {"users": "tests/users.test.js", "api": "tests/integration/api.test.js"}
        assert index.has_integration
        assert index.has_e2e

    def test_nest_e2e_spec_file(self, make_project):
        index = SuiteIndex.scan(make_project({"test/app.e2e-spec.ts": ""}))
        assert index.has_e2e
        assert index.unit == {}

    def test_endpoint_report(self, make_endpoint):
        index = SuiteIndex(unit={"users": "tests/users.test.js"}, has_e2e=True)
        report = analyze_coverage(make_endpoint(source_file="src/routes/users.js"), index)

        assert (report.has_unit_test, report.has_integration_test, report.has_e2e_test) == (True, False, True)
        assert report.test_file_path == "tests/users.test.js"
        assert not analyze_coverage(make_endpoint(source_file="src/orders.js"), index).has_unit_test

    def test_missing_root(self, tmp_path):
        assert SuiteIndex.scan(str(tmp_path / "nope")) == SuiteIndex()


class TestPipeline:
    """All passes attached per endpoint, bounded per handler."""

    CONTENT = _src("""
        router.get('/users', (req, res) => res.json([]));
        router.get('/users/:id', (req, res) => {
          const out = eval(req.query.expr);
          res.json(out);
        });
    """)

    def _endpoints(self, make_endpoint):
        return [
            make_endpoint("GET", "/users", offset=0),
            make_endpoint("GET", "/users/{id}", offset=self.CONTENT.index("router.get('/users/:id'"),
                          parameters=path_parameters("/users/{id}")),
        ]

    def test_handler_bounds(self, make_endpoint):
        first, second = self._endpoints(make_endpoint)
        other = make_endpoint("GET", "/x", source_file="src/other.js", offset=5)
        bounds = handler_bounds([first, second, other])
        assert bounds[id(first)] == second.offset
        assert bounds[id(second)] is None
        assert bounds[id(other)] is None

    def test_run_attaches_bundles(self, make_endpoint):
        endpoints = self._endpoints(make_endpoint)
        AnalyticsPipeline().run(endpoints, {"src/app.js": self.CONTENT})

        first, second = endpoints
        assert first.analytics.security.issues == []
        assert second.analytics.security.count(Severity.CRITICAL) == 1
        assert first.analytics.similarity.best_score == 55
        assert 0 <= second.analytics.health.overall <= 100
        assert second.analytics.usage_hints.common_errors[0].code == 404

    def test_failing_pass_keeps_default(self, make_endpoint, monkeypatch):
        def boom(endpoint):
            raise ValueError("naming exploded")

        monkeypatch.setattr("analytics.pipeline.analyze_naming", boom)
        pipeline = AnalyticsPipeline()
        endpoints = pipeline.run(self._endpoints(make_endpoint), {"src/app.js": self.CONTENT})

        assert pipeline.failures == 2
        assert all(ep.analytics.naming.score == 100 for ep in endpoints)
        assert all(ep.analytics.health.overall > 0 for ep in endpoints)

    def test_build_stats(self, make_endpoint):
        endpoints = AnalyticsPipeline().run(self._endpoints(make_endpoint), {"src/app.js": self.CONTENT})
        stats = build_stats(endpoints, elapsed_ms=12)

        assert stats["total"] == 2
        assert stats["by_method"] == {"GET": 2}
        assert stats["types"]["rest"] == 2
        assert stats["security"]["issues_by_severity"]["critical"] == 1
        assert stats["security"]["endpoints_without_auth"] == 2
        assert sum(stats["health"]["distribution"].values()) == 2
        assert stats["similarity"]["similar_pairs"] == [
            {"endpoint1": "GET /users", "endpoint2": "GET /users/{id}", "score": 55},
        ]
        assert stats["analysis_time_ms"] == 12

    def test_build_stats_empty(self):
        stats = build_stats([])
        assert stats["total"] == 0
        assert stats["health"]["average"] == 0
        assert stats["complexity"]["average"] == 0
        assert stats["test_coverage"]["unit_coverage_rate"] == 0

    def test_coverage_from_root(self, make_endpoint, make_project):
        root = make_project({"src/app.js": self.CONTENT, "src/app.test.js": ""})
        endpoints = AnalyticsPipeline().run(self._endpoints(make_endpoint), {"src/app.js": self.CONTENT}, root)

        assert all(ep.analytics.test_coverage.test_file_path == "src/app.test.js" for ep in endpoints)
        stats = build_stats(endpoints)
        assert stats["test_coverage"]["with_unit_tests"] == 2
        assert stats["test_coverage"]["unit_coverage_rate"] == 100.0
