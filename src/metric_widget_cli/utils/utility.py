import re

from metric_widget_cli.config import IMAGE_FORMAT
from metric_widget_cli.core.models import AccountDescriptor

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def safe_filename_part(text: str) -> str:
    """Replaces characters that don't belong in a file name with underscores."""
    return _UNSAFE_CHARS.sub("_", text)


def image_filename(account: AccountDescriptor, title: str, region: str | None = None, fmt: str = IMAGE_FORMAT) -> str:
    """Deterministic name like 'ItemDPP-metric-111111111111-us-east-1.png'."""
    parts = [account.namespace, title, account.account_id, region or account.region]
    return "-".join(safe_filename_part(p) for p in parts) + f".{fmt.lower()}"
