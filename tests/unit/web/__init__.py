"""Unit tests for TenderCalc web route modules.

Structure:
    tests/unit/web/
    ├── test_dependencies.py         # Error translation
    ├── test_routes_matches.py       # Match routes
    └── test_routes_assessment.py    # Assessment routes

Testing pattern:
    - Use FastAPI's TestClient for route testing
    - Override get_repositories with in-memory repositories
    - Test request/response validation and error mapping
"""
