"""
Config CLI commands.
"""

from cli.config.init import cmd_config_init
from cli.config.show import cmd_config_show


def setup_parser(subparsers):
    """Setup config command parser."""
    # lexscan config ...
    config_parser = subparsers.add_parser(
        'config',
        help='Manage pipeline configuration'
    )
    config_subparsers = config_parser.add_subparsers(
        dest='config_command',
        help='Config command'
    )
    config_subparsers.required = True

    # lexscan config show
    show_parser = config_subparsers.add_parser(
        'show',
        help='Show resolved configuration'
    )
    show_parser.add_argument(
        '--config',
        help='Config file (default: ~/.config/lexscan/config.yaml)'
    )
    show_parser.add_argument(
        '--json',
        action='store_true',
        help='Output as JSON'
    )
    show_parser.set_defaults(func=cmd_config_show)

    # lexscan config init
    init_parser = config_subparsers.add_parser(
        'init',
        help='Write a starter config file'
    )
    init_parser.add_argument(
        '--config',
        help='Config file to create (default: ~/.config/lexscan/config.yaml)'
    )
    init_parser.add_argument(
        '--force',
        action='store_true',
        help='Overwrite an existing config file'
    )
    init_parser.add_argument(
        '--from-env',
        action='store_true',
        help='Seed values from environment variables (DPI, DOC_AI_PROCESSOR, ...)'
    )
    init_parser.set_defaults(func=cmd_config_init)


__all__ = [
    'setup_parser',
    'cmd_config_show',
    'cmd_config_init',
]
