"""
Test Suite for the Polyglot Endpoint Scanner
============================================

Test Structure:
    - test_detector.py: Framework detection from manifests
    - test_walker.py: Tree walking, exclusions and the content cache
    - test_extractors.py: Per-framework route extraction
    - test_contract.py: Contract mining recognizers
    - test_canonical.py: Path normalization, dedup and grouping
    - test_analytics.py: Analytics passes and scan statistics
    - test_renderers.py: OpenAPI, Postman, cURL, SDK and mock output
    - test_engine.py: End-to-end extract() scenarios
    - test_config.py: ScannerConfig loading
    - test_cli.py: Command-line front end

Fixture projects are written to tmp_path by the make_project fixture.
"""
