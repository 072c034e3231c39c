"""Main Lambda handler for Featured Feed."""

import json
import os
from datetime import UTC, datetime
from typing import Any

import boto3

from .config import Config
from .features import FeatureList
from .logging_config import create_execution_logger, setup_structured_logging

# Setup structured logging
setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))

CONTENT_TYPES = {
    "atom": "application/atom+xml; charset=utf-8",
    "html": "text/html; charset=utf-8",
}


class RequestError(ValueError):
    """Raised for a request the handler cannot serve."""


def parse_request(event: dict[str, Any], default_max: int) -> tuple[str, int]:
    """Read output format and HTML truncation from a Lambda event.

    Args:
        event: Lambda event data (API Gateway proxy format)
        default_max: Truncation used when the request does not set ``max``

    Returns:
        Tuple of (output format, max features)

    Raises:
        RequestError: If ``format`` is unknown or ``max`` is not an integer
    """
    params = (event or {}).get("queryStringParameters") or {}

    output_format = (params.get("format") or "atom").lower()
    if output_format not in CONTENT_TYPES:
        raise RequestError(f"Unsupported format: {output_format}")

    max_features = params.get("max")
    if max_features is None or max_features == "":
        return output_format, default_max
    try:
        return output_format, int(max_features)
    except (TypeError, ValueError) as e:
        raise RequestError(f"Invalid max value: {max_features}") from e


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Render the featured items as an Atom feed or an HTML snippet.

    Args:
        event: Lambda event data
        context: Lambda context object

    Returns:
        Response dictionary with status, headers and body
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("main", execution_id)

    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        lambda_function_name=getattr(context, "function_name", "unknown"),
    )

    metrics = {
        "items_total": 0,
        "items_published": 0,
        "items_rendered": 0,
        "items_skipped": 0,
        "errors": [],
    }
    aws_region = "us-east-1"

    try:
        config = Config(execution_id=execution_id)
        aws_region = config.aws_region
        output_format, max_features = parse_request(event, config.max_features)
        main_logger.info(
            f"Rendering {output_format}",
            output_format=output_format,
            max_features=max_features,
        )

        features = FeatureList(
            config.get_feed_config(),
            config.get_items(),
            execution_id=execution_id,
        )

        if output_format == "atom":
            body = features.to_atom()
        else:
            body = features.to_html(max_features)

        metrics["items_total"] = len(features.items) + config.skipped
        metrics["items_published"] = features.published
        metrics["items_rendered"] = features.rendered
        metrics["items_skipped"] = features.skipped + config.skipped

        main_logger.log_metrics(metrics)
        send_cloudwatch_metrics(metrics, aws_region, execution_id)
        main_logger.log_execution_end(success=True, metrics=metrics)

        return {
            "statusCode": 200,
            "headers": {"Content-Type": CONTENT_TYPES[output_format]},
            "body": body,
        }

    except RequestError as e:
        error_msg = str(e)
        main_logger.warning(f"Bad request: {error_msg}", error=error_msg)
        metrics["errors"].append(error_msg)
        send_cloudwatch_metrics(metrics, aws_region, execution_id)
        main_logger.log_execution_end(success=False, metrics=metrics, error=error_msg)

        return _error_response(400, error_msg, execution_id)

    except Exception as e:
        error_msg = f"Critical error in Lambda handler: {str(e)}"
        main_logger.error(error_msg, error=str(e))
        metrics["errors"].append(error_msg)
        send_cloudwatch_metrics(metrics, aws_region, execution_id)
        main_logger.log_execution_end(success=False, metrics=metrics, error=error_msg)

        return _error_response(500, error_msg, execution_id)


def _error_response(status_code: int, error_msg: str, execution_id: str) -> dict:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(
            {
                "message": "Featured feed rendering failed",
                "execution_id": execution_id,
                "error": error_msg,
            }
        ),
    }


def send_cloudwatch_metrics(
    metrics: dict[str, Any], aws_region: str, execution_id: str
) -> None:
    """
    Send custom metrics to CloudWatch.

    Args:
        metrics: Dictionary containing render metrics
        aws_region: AWS region for CloudWatch client
        execution_id: Execution ID for logging context
    """
    metrics_logger = create_execution_logger("cloudwatch_metrics", execution_id)

    try:
        metrics_logger.info("Sending metrics to CloudWatch", metrics=metrics)
        cloudwatch = boto3.client("cloudwatch", region_name=aws_region)

        total_errors = len(metrics["errors"])
        execution_success = total_errors == 0
        dimensions = [{"Name": "ExecutionId", "Value": execution_id}]
        status_dimensions = [
            {"Name": "Status", "Value": "Success" if execution_success else "Failure"}
        ]

        metric_data = [
            {
                "MetricName": "ItemsTotal",
                "Value": metrics["items_total"],
                "Unit": "Count",
                "Dimensions": dimensions,
            },
            {
                "MetricName": "ItemsPublished",
                "Value": metrics["items_published"],
                "Unit": "Count",
                "Dimensions": dimensions,
            },
            {
                "MetricName": "ItemsScheduled",
                "Value": max(
                    metrics["items_total"]
                    - metrics["items_published"]
                    - metrics["items_skipped"],
                    0,
                ),
                "Unit": "Count",
                "Dimensions": dimensions,
            },
            {
                "MetricName": "ItemsRendered",
                "Value": metrics["items_rendered"],
                "Unit": "Count",
                "Dimensions": dimensions,
            },
            {
                "MetricName": "ItemsSkipped",
                "Value": metrics["items_skipped"],
                "Unit": "Count",
                "Dimensions": dimensions,
            },
            {
                "MetricName": "Errors",
                "Value": total_errors,
                "Unit": "Count",
                "Dimensions": dimensions,
            },
            {
                "MetricName": "ExecutionSuccess",
                "Value": 1 if execution_success else 0,
                "Unit": "Count",
                "Dimensions": status_dimensions,
            },
            {
                "MetricName": "ExecutionFailure",
                "Value": 0 if execution_success else 1,
                "Unit": "Count",
                "Dimensions": status_dimensions,
            },
        ]

        cloudwatch.put_metric_data(Namespace="Featured-Feed", MetricData=metric_data)

        metrics_logger.info(
            "Successfully sent metrics to CloudWatch",
            metrics_sent=len(metric_data),
            namespace="Featured-Feed",
            execution_success=execution_success,
        )

    except Exception as e:
        metrics_logger.error(f"Failed to send CloudWatch metrics: {e}", error=str(e))
        # Don't raise - metrics failure shouldn't break the response
