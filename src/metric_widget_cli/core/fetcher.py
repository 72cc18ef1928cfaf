# src/metric_widget_cli/core/fetcher.py
"""
Per-account loops behind the `images` and `alarms` commands.

Accounts are processed one at a time, in file order. A CloudWatch or disk
failure for one account is recorded and the loop moves on; a broken
template stops the run, since every account would fail the same way.
"""

import json
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from metric_widget_cli.adapters.aws.cloudwatch_adapter import (
    fetch_alarms,
    fetch_metric_widget_image,
    to_alarm_details,
)
from metric_widget_cli.config import ALARMS_FILENAME
from metric_widget_cli.core.accounts import filter_accounts
from metric_widget_cli.core.exceptions import FetchError, MetricWidgetError, WriteError
from metric_widget_cli.core.models import (
    AccountDescriptor,
    AlarmDetails,
    FetchOptions,
    FetchReport,
    FetchResult,
)
from metric_widget_cli.core.templating import render_widget
from metric_widget_cli.utils.utility import image_filename

logger = logging.getLogger(__name__)

# (account, region) -> boto3 CloudWatch client
ClientFactory = Callable[[AccountDescriptor, str], object]
# (label, done, total)
ProgressCallback = Callable[[str, int, int], None]


def _client_for(client_factory: ClientFactory, account: AccountDescriptor, region: str):
    try:
        return client_factory(account, region)
    except (ClientError, BotoCoreError) as e:
        raise FetchError(f"Unable to create CloudWatch client for {account.account_id} in {region}: {e}") from e


def write_bytes(path: Path, data: bytes) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise WriteError(f"Error writing {path}: {e}") from e
    return path


def fetch_image(
    account: AccountDescriptor,
    template: dict,
    options: FetchOptions,
    client_factory: ClientFactory,
    now: Optional[datetime] = None,
) -> Path:
    """Renders, fetches and saves the widget image for a single account."""
    region = options.region or account.region
    metric_widget = render_widget(template, account, options, now=now)
    client = _client_for(client_factory, account, region)
    image = fetch_metric_widget_image(client, metric_widget)
    path = Path(options.output_dir) / image_filename(account, options.title, region)
    return write_bytes(path, image)


def fetch_images(
    accounts: list[AccountDescriptor],
    template: dict,
    options: FetchOptions,
    client_factory: ClientFactory,
    now: Optional[datetime] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> FetchReport:
    """
    Fetches one widget image per account matching `options.pattern`.

    Args:
        accounts:          Accounts in file order.
        template:          Parsed widget template (see core.templating).
        options:           Period, window, title, region override and output directory.
        client_factory:    Returns a CloudWatch client for (account, region).
        now:               Reference time for the query window; shared by all accounts.
        progress_callback: Optional callable(label, done, total) invoked before each account.

    Returns:
        A FetchReport with one FetchResult per selected account, in order.

    Raises:
        TemplateError: the template cannot be rendered. Nothing further is fetched.
    """
    now = now or datetime.now(timezone.utc)
    selected = filter_accounts(accounts, options.pattern)
    report = FetchReport()

    for i, account in enumerate(selected):
        label = f"{account.namespace} {account.account_id} {options.region or account.region}"
        if progress_callback:
            progress_callback(label, i + 1, len(selected))

        try:
            path = fetch_image(account, template, options, client_factory, now=now)
        except (FetchError, WriteError) as e:
            logger.error("%s: %s", label, e)
            report.results.append(FetchResult(account=account, error=e))
            continue

        logger.info("Saved metric image %s", path)
        report.results.append(FetchResult(account=account, path=path))

    return report


def collect_alarms(
    accounts: list[AccountDescriptor],
    client_factory: ClientFactory,
    pattern: Optional[str] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> tuple[list[AlarmDetails], FetchReport]:
    """Describes the alarms of every matching account. Failed accounts are reported, not raised."""
    selected = filter_accounts(accounts, pattern)
    details: list[AlarmDetails] = []
    report = FetchReport()

    for i, account in enumerate(selected):
        if progress_callback:
            progress_callback(f"{account.namespace} {account.account_id} {account.region}", i + 1, len(selected))
        try:
            client = _client_for(client_factory, account, account.region)
            alarms = fetch_alarms(client)
        except MetricWidgetError as e:
            logger.error("Failed describe alarms for %s: %s", account.account_id, e)
            report.results.append(FetchResult(account=account, error=e))
            continue

        details.extend(to_alarm_details(account, alarm) for alarm in alarms)
        report.results.append(FetchResult(account=account))

    return details, report


def save_alarms(details: list[AlarmDetails], output_dir) -> Path:
    path = Path(output_dir) / ALARMS_FILENAME
    content = json.dumps([asdict(d) for d in details], indent=2, default=str)
    return write_bytes(path, content.encode("utf-8"))
