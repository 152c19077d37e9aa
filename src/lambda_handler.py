"""
AWS Lambda handler for the Odds Relay.

This module provides the HTTP entry point (API Gateway proxy integration) that
returns the formatted odds array, with CORS headers, CloudWatch metrics and
structured logging.
"""

import asyncio
import json
from typing import Any

from aws_lambda_powertools import Metrics
from aws_lambda_powertools.metrics import MetricUnit

from src.odds.config import ConfigurationError, load_config
from src.odds.odds_service import OddsService
from src.utils.logger import get_logger, relay_logger

logger = get_logger()
metrics = Metrics(namespace="OddsRelay", service="odds-relay")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@relay_logger.inject_context
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    AWS Lambda handler returning the formatted odds for the configured league.

    Args:
        event: API Gateway proxy event (REST or HTTP API payload)
        context: Lambda context object

    Returns:
        API Gateway proxy response dict
    """
    # CORS preflight needs no configuration
    if _get_http_method(event) == "OPTIONS":
        return {"statusCode": 200, "headers": dict(CORS_HEADERS), "body": ""}

    try:
        # Load configuration from environment variables
        config = load_config()

        # Log configuration
        logger.info(
            "Odds relay configuration",
            extra={
                "league_id": config.league_id,
                "request_timeout": config.request_timeout,
            },
        )

        # Run fetch, normalize and project
        service = OddsService.from_config(config)
        matches = asyncio.run(service.get_formatted_matches(config.league_id))

        # Emit CloudWatch metrics
        metrics.add_metric(
            name="MatchesReturned", unit=MetricUnit.Count, value=len(matches)
        )

        # Return the array itself, not an envelope
        return _json_response(200, [match.to_json_dict() for match in matches])

    except ConfigurationError as e:
        logger.error(
            "Missing or invalid configuration",
            extra={"error": str(e), "error_type": type(e).__name__},
        )
        metrics.add_metric(name="ConfigurationErrors", unit=MetricUnit.Count, value=1)

        return _json_response(
            500,
            {
                "error": "Configuration Error",
                "message": (
                    f"{e}. Required API URLs (ODDS_PARENT_URL, PROXY_URL) must be "
                    "configured in the function's environment variables."
                ),
            },
        )

    except Exception as e:
        logger.exception("Unexpected error in Lambda handler")
        metrics.add_metric(name="LambdaErrors", unit=MetricUnit.Count, value=1)

        return _json_response(
            500,
            {
                "error": "Internal Server Error",
                "message": str(e)
                or "An unexpected error occurred during execution. Please check logs for details.",
            },
        )


def _get_http_method(event: dict[str, Any]) -> str:
    """
    Read the HTTP method from a REST (v1) or HTTP API (v2) event.

    Args:
        event: API Gateway proxy event

    Returns:
        Upper-cased method, "GET" when absent
    """
    method = event.get("httpMethod") or (
        event.get("requestContext", {}).get("http", {}).get("method")
    )
    return (method or "GET").upper()


def _json_response(status_code: int, body: Any) -> dict[str, Any]:
    """
    Build a JSON proxy response with CORS headers.

    Args:
        status_code: HTTP status code
        body: JSON-serializable body, pretty-printed

    Returns:
        API Gateway proxy response dict
    """
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json", **CORS_HEADERS},
        "body": json.dumps(body, indent=2, ensure_ascii=False),
    }


# For local testing
if __name__ == "__main__":

    class MockContext:
        function_name = "odds-relay-test"
        memory_limit_in_mb = 128
        invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:odds-relay-test"
        aws_request_id = "test-request-id"

    result = lambda_handler({"httpMethod": "GET"}, MockContext())
    print(json.dumps(result, indent=2))
