"""
lexscan config show command - Display the resolved pipeline configuration.
"""

import json
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from infra.config import OCRConfigManager


def cmd_config_show(args):
    """Show resolved configuration (file + environment + defaults)."""
    manager = OCRConfigManager(Path(args.config) if args.config else None)

    try:
        config = manager.load()
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}")
        sys.exit(1)

    data = config.model_dump(mode='json')
    credentials = data['recognition'].get('credentials_file')
    data['recognition']['credentials_file'] = _mask_path(credentials)

    if args.json:
        print(json.dumps(data, indent=2, default=str))
        return

    source = manager.config_path if manager.exists() else "(no file, defaults + environment)"

    table = Table(title=f"lexscan configuration - {source}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for key, value in _flatten(data):
        display = "(not set)" if value is None else str(value)
        table.add_row(key, display)

    Console().print(table)


def _flatten(data: dict, prefix: str = ""):
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            yield from _flatten(value, prefix=f"{name}.")
        else:
            yield name, value


def _mask_path(value: Optional[str]) -> Optional[str]:
    """Mask a credentials path for display (keeps the file name)."""
    if not value:
        return None
    name = Path(value).name
    return f".../{name}" if name != value else "****"
