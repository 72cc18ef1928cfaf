import json
from dataclasses import asdict

from rich.markup import escape
from rich.table import Table

from metric_widget_cli.core.models import AccountDescriptor, FetchReport


def format_account(account: AccountDescriptor) -> str:
    line = f"namespace={account.namespace} account_id={account.account_id} region={account.region}"
    if account.role_arn:
        line += f" role_arn={account.role_arn}"
    return line


def format_as_text(accounts: list[AccountDescriptor]) -> str:
    """One account per line, in file order."""
    return "\n".join(format_account(acc) for acc in accounts)


def format_as_json(accounts: list[AccountDescriptor]) -> str:
    rows = []
    for acc in accounts:
        row = asdict(acc)
        if row["role_arn"] is None:
            del row["role_arn"]
        rows.append(row)
    return json.dumps(rows, indent=2)


def accounts_table(accounts: list[AccountDescriptor], title: str = "Accounts") -> Table:
    table = Table(title=title, box=None, padding=(0, 2))
    table.add_column("#", justify="right", style="dim")
    table.add_column("Namespace", style="cyan")
    table.add_column("Account ID")
    table.add_column("Region")
    table.add_column("Role ARN", style="dim")

    for i, acc in enumerate(accounts, start=1):
        table.add_row(str(i), acc.namespace, acc.account_id, acc.region, acc.role_arn or "")
    return table


def report_table(report: FetchReport, title: str = "Results") -> Table:
    """Per-account outcome table shown after `images` and `alarms`."""
    table = Table(title=title, box=None, padding=(0, 2))
    table.add_column("Namespace", style="cyan")
    table.add_column("Account ID")
    table.add_column("Region")
    table.add_column("Status", justify="center")
    table.add_column("Detail")

    for r in report.results:
        if r.ok:
            status, detail = "[success]OK[/]", escape(str(r.path or ""))
        else:
            status, detail = "[error]FAILED[/]", escape(str(r.error))
        table.add_row(r.account.namespace, r.account.account_id, r.account.region, status, detail)
    return table
