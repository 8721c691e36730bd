"""SmartNotify Test Suite

Test organization:
- unit/: Unit tests for individual modules
  - analysis/: Tie-break ranking, behavior profiling, insights
  - delivery/: Timing recommendations and the delivery gate
  - content/: Content personalization
  - storage/: Key-value store and profile cache
  - history/: SQLite and REST history stores
  - engine/: NotificationEngine entry points, config, CLI

Running tests:
    # All tests
    pytest

    # Specific module
    pytest tests/unit/delivery/
"""
