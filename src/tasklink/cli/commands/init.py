"""Init command handlers."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import questionary

from tasklink import ConfigError, scaffold_config, write_config
from tasklink.auth.resolvers import TOKEN_ENV_VAR


def _validate_tag(value: str) -> bool | str:
    tag = value.strip()
    if not tag.startswith("#") or len(tag) < 2 or any(ch.isspace() for ch in tag):
        return "Use a single tag like #tracked"
    return True


def run_init(args: argparse.Namespace) -> int:
    """Run the init wizard or defaults mode."""
    output = Path(args.output)

    if output.exists():
        if args.defaults:
            print(f"error: {output} already exists (use a different --output path)", file=sys.stderr)
            return 2
        try:
            if not questionary.confirm(f"{output} already exists. Overwrite?", default=False).ask():
                print("Aborted.")
                return 2
        except KeyboardInterrupt:
            print("\nAborted.")
            return 2

    if args.defaults:
        return run_init_defaults(output)
    return run_init_interactive(output)


def run_init_defaults(output: Path) -> int:
    """Generate config with defaults, no prompts."""
    try:
        config = scaffold_config(include_defaults=True)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 3

    write_config(config, output)
    print(f"Config written to {output}")
    print(f"\nExport {TOKEN_ENV_VAR} with your Todoist API token, then run:")
    print(f"  tasklink sync --config {output} <notes>")
    return 0


def run_init_interactive(output: Path) -> int:
    """Run the interactive wizard using questionary."""
    try:
        auth = questionary.select(
            "Authentication strategy:",
            choices=[
                questionary.Choice(f"Environment variable ({TOKEN_ENV_VAR})", value="env"),
                questionary.Choice("Static token stored in the config file", value="token"),
            ],
            default="env",
        ).ask()
        if auth is None:
            raise KeyboardInterrupt
        token: str | None = None
        if auth == "token":
            token = questionary.password(
                "Todoist API token:",
                validate=lambda v: len(v.strip()) > 0 or "Token is required for static token auth",
            ).ask()
            if token is None:
                raise KeyboardInterrupt
            token = token.strip()

        tracked_tag = questionary.text(
            "Tag that marks a checklist line for creation in Todoist:",
            default="#tracked",
            validate=_validate_tag,
        ).ask()
        if tracked_tag is None:
            raise KeyboardInterrupt

        tag_prefix = questionary.text(
            "Prefix for project and label tags:",
            default="#todoist",
            validate=_validate_tag,
        ).ask()
        if tag_prefix is None:
            raise KeyboardInterrupt

        data_path = questionary.text("Pending state file:", default=".tasklink/data.json").ask()
        if data_path is None:
            raise KeyboardInterrupt
    except KeyboardInterrupt:
        print("\nAborted.")
        return 2

    try:
        config = scaffold_config(
            auth=auth,
            token=token,
            tracked_tag=tracked_tag.strip(),
            tag_prefix=tag_prefix.strip(),
            data_path=data_path.strip() or ".tasklink/data.json",
        )
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 3

    write_config(config, output)
    print(f"Config written to {output}")
    return 0
