"""
Unit tests for startup configuration checks
"""

from utils.config_validator import (validate_route_config, validate_cold_chain_config,
                                    check_production_readiness)


class TestConfigValidator:

    def test_route_config_ok(self):
        valid, issues = validate_route_config({'ORS_API_KEY': 'k', 'ROUTE_LOOKUP_TIMEOUT': 5,
                                               'ROUTE_LOOKUP_BUDGET': 20, 'ROUTE_SAMPLE_EVERY': 10})
        assert valid is True
        assert issues == []

    def test_route_budget_below_timeout(self):
        valid, issues = validate_route_config({'ORS_API_KEY': 'k', 'ROUTE_LOOKUP_TIMEOUT': 5,
                                               'ROUTE_LOOKUP_BUDGET': 2})
        assert valid is False
        assert any('ROUTE_LOOKUP_BUDGET' in issue for issue in issues)

    def test_inverted_cold_chain_band(self):
        valid, issues = validate_cold_chain_config({
            'COLD_CHAIN_TEMPERATURE': (30, 26),
            'COLD_CHAIN_HUMIDITY': (50, 60),
            'COLD_CHAIN_ETHYLENE': (2, 9),
        })
        assert valid is False
        assert len(issues) == 1

    def test_readiness_of_test_app(self, app):
        status = check_production_readiness(app.config)

        assert status['route_lookup_configured'] is True
        assert status['cold_chain_configured'] is True
        assert status['push_enabled'] is False
