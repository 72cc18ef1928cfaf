# src/metric_widget_cli/adapters/aws/cloudwatch_adapter.py
"""
AWS CloudWatch adapter: widget images, alarms and metric listings.

Every function takes an already-built client so callers decide which
account and credentials it belongs to.
"""

from botocore.exceptions import BotoCoreError, ClientError

from metric_widget_cli.adapters.aws.session import describe_client_error
from metric_widget_cli.config import IMAGE_FORMAT
from metric_widget_cli.core.exceptions import FetchError
from metric_widget_cli.core.models import AccountDescriptor, AlarmDetails


def fetch_metric_widget_image(client, metric_widget: str, output_format: str = IMAGE_FORMAT) -> bytes:
    """
    Calls GetMetricWidgetImage and returns the rendered image bytes.
    API Reference: https://docs.aws.amazon.com/AmazonCloudWatch/latest/APIReference/API_GetMetricWidgetImage.html
    """
    try:
        resp = client.get_metric_widget_image(MetricWidget=metric_widget, OutputFormat=output_format)
    except ClientError as e:
        raise FetchError(f"GetMetricWidgetImage failed: {describe_client_error(e)}") from e
    except BotoCoreError as e:
        raise FetchError(f"GetMetricWidgetImage failed: {e}") from e

    image = resp.get("MetricWidgetImage")
    if not image:
        raise FetchError("GetMetricWidgetImage returned no image")
    return image


def fetch_alarms(client) -> list[dict]:
    """Returns every metric alarm in the client's account and region."""
    try:
        paginator = client.get_paginator("describe_alarms")
        alarms = []
        for page in paginator.paginate():
            alarms.extend(page.get("MetricAlarms", []))
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code")
        if code == "AccessDenied":
            raise FetchError("Missing permission: cloudwatch:DescribeAlarms") from e
        raise FetchError(f"DescribeAlarms failed: {describe_client_error(e)}") from e
    except BotoCoreError as e:
        raise FetchError(f"DescribeAlarms failed: {e}") from e
    return alarms


def to_alarm_details(account: AccountDescriptor, alarm: dict) -> AlarmDetails:
    return AlarmDetails(
        program_name=account.namespace,
        alarm_name=alarm.get("AlarmName", ""),
        alarm_arn=alarm.get("AlarmArn", ""),
        alarm_description=alarm.get("AlarmDescription", ""),
        dimensions=[d.get("Name", "") for d in alarm.get("Dimensions", [])],
        actions_enabled=alarm.get("ActionsEnabled", False),
        period=alarm.get("Period", 0),
        threshold=alarm.get("Threshold", 0.0),
        comparison_operator=alarm.get("ComparisonOperator", "Unknown"),
        treat_missing_data=alarm.get("TreatMissingData", ""),
        # Metric-math alarms carry no Statistic.
        statistic=alarm.get("Statistic", alarm.get("ExtendedStatistic", "")),
    )


def fetch_metrics(client, namespace: str | None = None) -> list[dict]:
    """Lists metrics visible to the client, optionally limited to one namespace."""
    kwargs = {"Namespace": namespace} if namespace else {}
    try:
        paginator = client.get_paginator("list_metrics")
        metrics = []
        for page in paginator.paginate(**kwargs):
            metrics.extend(page.get("Metrics", []))
    except ClientError as e:
        raise FetchError(f"ListMetrics failed: {describe_client_error(e)}") from e
    except BotoCoreError as e:
        raise FetchError(f"ListMetrics failed: {e}") from e
    return metrics
