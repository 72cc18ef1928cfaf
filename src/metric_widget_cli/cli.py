# src/metric_widget_cli/cli.py
"""
CLI for repetitive CloudWatch tasks across many AWS accounts, using click and rich.

    metric-widget config accounts.toml
    metric-widget images --period 3600 --pattern ItemDPP -s 4320H ./examples/traffic.json accounts.toml
    metric-widget alarms accounts.toml
    metric-widget show --region us-west-2
"""

import logging
import sys
from pathlib import Path

import click
import questionary
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.theme import Theme

from . import config
from .adapters.aws.cloudwatch_adapter import fetch_metrics
from .adapters.aws.session import CloudWatchClientFactory, cloudwatch_client
from .core.accounts import filter_accounts, load_accounts
from .core.durations import parse_duration
from .core.exceptions import ConfigError, FetchError, MetricWidgetError, TemplateError
from .core.fetcher import collect_alarms, fetch_images, save_alarms
from .core.models import FetchOptions, FetchReport
from .core.templating import load_template
from .utils.formatters import accounts_table, format_as_json, format_as_text, report_table


custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
})

console = Console(theme=custom_theme)
err_console = Console(theme=custom_theme, stderr=True)


class DurationType(click.ParamType):
    """Click parameter for offsets like '4320H'."""

    name = "duration"

    def convert(self, value, param, ctx):
        if not isinstance(value, str):
            return value
        try:
            return parse_duration(value)
        except ConfigError as e:
            self.fail(str(e), param, ctx)


DURATION = DurationType()


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    # botocore is very chatty at DEBUG.
    logging.getLogger("botocore").setLevel(logging.WARNING)


def fail(message: str) -> None:
    err_console.print(f"[error]Error:[/] {escape(message)}")
    sys.exit(1)


def print_report(report: FetchReport, title: str) -> None:
    if report.results:
        console.print(report_table(report, title=title))
    console.print(
        f"\n[success]{len(report.succeeded)} succeeded[/], "
        f"[{'error' if report.failed else 'info'}]{len(report.failed)} failed[/] "
        f"of {len(report.results)} account(s)."
    )


def make_progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging, including templated widgets.")
@click.option(
    "--role-name",
    default=config.ROLE_NAME,
    help="IAM role to assume in each account when the account has no role_arn.",
)
@click.pass_context
def cli(ctx, verbose, role_name):
    """Dev CLI for repetitive CloudWatch tasks across AWS accounts."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj.setdefault("client_factory", CloudWatchClientFactory(role_name=role_name))


@cli.command("config")
@click.argument("config_path", type=click.Path(dir_okay=False))
@click.option("--pattern", "-f", help="Only keep accounts whose namespace contains this text.")
@click.option("--format", "fmt", type=click.Choice(["text", "json", "table"]), default="text", help="Output format.")
def config_command(config_path, pattern, fmt):
    """Validate and display the accounts config file."""
    try:
        accounts = load_accounts(config_path)
    except ConfigError as e:
        fail(str(e))

    accounts = filter_accounts(accounts, pattern)
    if fmt == "json":
        click.echo(format_as_json(accounts))
    elif fmt == "table":
        console.print(accounts_table(accounts, title=f"Accounts ({len(accounts)})"))
    elif accounts:
        click.echo(format_as_text(accounts))


@cli.command()
@click.argument("template_path", required=False, type=click.Path(dir_okay=False))
@click.argument("config_path", required=False, type=click.Path(dir_okay=False))
@click.option("--period", "-p", type=click.IntRange(min=1), default=config.DEFAULT_PERIOD, show_default=True,
              help="Statistic period in seconds.")
@click.option("--start-time", "-s", "start", type=DURATION, default=config.DEFAULT_START, show_default=True,
              help="How far back the graph starts, e.g. 4320H.")
@click.option("--end-time", "-e", "end", type=DURATION, default=config.DEFAULT_END, show_default=True,
              help="How far back the graph ends, e.g. 0H for now.")
@click.option("--pattern", "-f", help="Only fetch accounts whose namespace contains this text.")
@click.option("--title", default=config.DEFAULT_TITLE, show_default=True, help="Title to identify the downloaded image.")
@click.option("--region", "-r", help="Override every account's region (e.g. us-east-1).")
@click.option("--output-path", "-o", type=click.Path(file_okay=False), default=config.OUTPUT_DIR, show_default=True,
              help="Directory the images are saved to.")
@click.option("--strict", is_flag=True, help="Exit with status 1 if any account fails.")
@click.option("--interactive", "-i", is_flag=True, help="Prompt for the template, accounts file and options.")
@click.pass_context
def images(ctx, template_path, config_path, period, start, end, pattern, title, region, output_path, strict, interactive):
    """Download metric widget images from CloudWatch for every account."""
    if interactive:
        template_path, config_path, period, start, end, pattern = run_interactive_prompts()
        if template_path is None or config_path is None:
            console.print("\n[warning]Operation cancelled.[/]")
            return

    if not template_path or not config_path:
        raise click.UsageError("TEMPLATE_PATH and CONFIG_PATH are required unless --interactive is used.")

    try:
        accounts = load_accounts(config_path)
        template = load_template(template_path)
    except (ConfigError, TemplateError) as e:
        fail(str(e))

    options = FetchOptions(
        period=period,
        start_offset=start,
        end_offset=end,
        pattern=pattern,
        title=title,
        region=region,
        output_dir=Path(output_path),
    )

    selected = filter_accounts(accounts, pattern)
    if pattern:
        console.print(f"[info]{len(selected)} of {len(accounts)} account(s) match pattern {escape(repr(pattern))}.[/]")
    if not selected:
        console.print("[warning]No accounts to fetch.[/]")
        return

    try:
        with make_progress() as progress:
            task = progress.add_task("Fetching", total=len(selected))

            def progress_update(label, done, total):
                progress.update(task, description=label, completed=done - 1)

            report = fetch_images(
                accounts,
                template,
                options,
                client_factory=ctx.obj["client_factory"],
                progress_callback=progress_update,
            )
    except TemplateError as e:
        fail(str(e))

    print_report(report, title="Metric Images")
    if strict and report.has_failures:
        sys.exit(1)


@cli.command()
@click.argument("config_path", type=click.Path(dir_okay=False))
@click.option("--pattern", "-f", help="Only describe accounts whose namespace contains this text.")
@click.option("--output-path", "-o", type=click.Path(file_okay=False), default=config.OUTPUT_DIR, show_default=True,
              help=f"Directory {config.ALARMS_FILENAME} is saved to.")
@click.pass_context
def alarms(ctx, config_path, pattern, output_path):
    """Describe CloudWatch alarms for all accounts and save them as JSON."""
    try:
        accounts = load_accounts(config_path)
    except ConfigError as e:
        fail(str(e))

    with make_progress() as progress:
        task = progress.add_task("Describing alarms", total=len(filter_accounts(accounts, pattern)))

        def progress_update(label, done, total):
            progress.update(task, description=label, completed=done - 1)

        details, report = collect_alarms(
            accounts,
            client_factory=ctx.obj["client_factory"],
            pattern=pattern,
            progress_callback=progress_update,
        )

    print_report(report, title="Describe Alarms")
    try:
        path = save_alarms(details, output_path)
    except MetricWidgetError as e:
        fail(str(e))
    console.print(f"[success]Saved {len(details)} alarm(s) to {escape(str(path))}[/]")


@cli.command()
@click.option("--region", "-r", default=config.DEFAULT_REGION, show_default=True, help="AWS region to list metrics in.")
@click.option("--namespace", "-n", help="Only list metrics in this namespace.")
def show(region, namespace):
    """Show the metrics available in a region."""
    try:
        metrics = fetch_metrics(cloudwatch_client(region), namespace=namespace)
    except FetchError as e:
        fail(str(e))

    for metric in metrics:
        console.print(f"Namespace: {metric.get('Namespace', '')}", markup=False)
        console.print(f"Name:      {metric.get('MetricName', '')}", markup=False)
        dimensions = metric.get("Dimensions", [])
        if dimensions:
            console.print("Dimensions:")
            for d in dimensions:
                console.print(f"  Name:  {d.get('Name', '')}", markup=False)
                console.print(f"  Value: {d.get('Value', '')}", markup=False)
        console.print()

    console.print(f"[info]Found {len(metrics)} metrics.[/]")


def run_interactive_prompts():
    """Wraps questionary prompts for interactive `images` runs."""
    console.print(Panel.fit("[bold white]Metric widget images[/]", border_style="blue"))

    template_path = questionary.path("Widget template (JSON):").ask()
    config_path = questionary.path("Accounts file (TOML):", default="accounts.toml").ask()
    period = questionary.text(
        "Period (seconds):",
        default=str(config.DEFAULT_PERIOD),
        validate=lambda v: v.isdigit() and int(v) > 0 or "Enter a positive number of seconds",
    ).ask()
    start = questionary.text("Start offset (e.g. 4320H):", default=config.DEFAULT_START).ask()
    end = questionary.text("End offset (e.g. 0H):", default=config.DEFAULT_END).ask()
    pattern = questionary.text("Namespace pattern (leave blank for all accounts):").ask()

    if any(x is None for x in [template_path, config_path, period, start, end]):
        return None, None, None, None, None, None

    try:
        start_offset = parse_duration(start)
        end_offset = parse_duration(end)
    except ConfigError as e:
        raise click.BadParameter(str(e)) from e

    return template_path, config_path, int(period), start_offset, end_offset, pattern or None


def main():
    cli()


if __name__ == "__main__":
    main()
