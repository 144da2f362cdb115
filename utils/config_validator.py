"""
Startup configuration validation
Checks the settings the external collaborators and the cold-chain bands rely on
"""
import os
import logging
from typing import Dict, List, Tuple, Any, Mapping

logger = logging.getLogger(__name__)

def validate_route_config(config: Mapping[str, Any]) -> Tuple[bool, List[str]]:
    """
    Validate route lookup configuration.

    Returns:
        tuple: (is_valid: bool, issues: List[str])
    """
    issues = []

    if not config.get('ORS_API_KEY'):
        issues.append("Missing ORS_API_KEY - route districts will fall back to Nominatim endpoints only")

    timeout = config.get('ROUTE_LOOKUP_TIMEOUT', 0)
    budget = config.get('ROUTE_LOOKUP_BUDGET', 0)
    if timeout <= 0:
        issues.append("ROUTE_LOOKUP_TIMEOUT must be positive")
    if budget < timeout:
        issues.append("ROUTE_LOOKUP_BUDGET should be at least ROUTE_LOOKUP_TIMEOUT")
    if config.get('ROUTE_SAMPLE_EVERY', 1) < 1:
        issues.append("ROUTE_SAMPLE_EVERY must be at least 1")

    return len(issues) == 0, issues

def validate_cold_chain_config(config: Mapping[str, Any]) -> Tuple[bool, List[str]]:
    issues = []
    for key in ('COLD_CHAIN_TEMPERATURE', 'COLD_CHAIN_HUMIDITY', 'COLD_CHAIN_ETHYLENE'):
        bands = config.get(key)
        if not bands or len(bands) != 2:
            issues.append(f"{key} must be an (ok, warning) pair")
        elif bands[0] > bands[1]:
            issues.append(f"{key} ok limit {bands[0]} is above warning limit {bands[1]}")
    return len(issues) == 0, issues

def validate_flask_config(config: Mapping[str, Any]) -> Tuple[bool, List[str]]:
    """
    Validate Flask configuration for production.

    Returns:
        tuple: (is_valid: bool, issues: List[str])
    """
    issues = []

    if not os.getenv('DATABASE_URL') and not config.get('TESTING'):
        issues.append("DATABASE_URL not set - using local SQLite database")

    debug_mode = os.getenv('DEBUG', 'False').lower()
    if debug_mode in ('true', '1', 'yes'):
        issues.append("DEBUG mode is enabled - should be disabled in production")

    return len(issues) == 0, issues

def check_production_readiness(config: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Check every configuration group and log the outcome.

    Returns:
        dict: Status information including issues
    """
    route_valid, route_issues = validate_route_config(config)
    cold_chain_valid, cold_chain_issues = validate_cold_chain_config(config)
    flask_valid, flask_issues = validate_flask_config(config)

    all_issues = route_issues + cold_chain_issues + flask_issues
    result = {
        'production_ready': len(all_issues) == 0,
        'route_lookup_configured': route_valid,
        'cold_chain_configured': cold_chain_valid,
        'flask_configured': flask_valid,
        'push_enabled': bool(config.get('PUSH_NOTIFICATIONS_ENABLED')),
        'issues': all_issues,
    }

    if result['production_ready']:
        logger.info("CONFIG: Production readiness check PASSED")
    else:
        logger.warning(f"CONFIG: Production readiness check FAILED - Issues: {len(all_issues)}")
        for issue in all_issues:
            logger.warning(f"CONFIG: Issue - {issue}")

    return result

def get_config_status(config: Mapping[str, Any]) -> str:
    """
    Get a human-readable status of the configuration.

    Returns:
        str: Configuration status message
    """
    status = check_production_readiness(config)

    if status['production_ready']:
        return "configuration is production-ready"
    return f"configuration has {len(status['issues'])} issues"
