import argparse

from dotenv import load_dotenv

import cli.config
import cli.extract


def create_parser():
    parser = argparse.ArgumentParser(
        prog='lexscan',
        description='lexscan - OCR scanned legal documents into text',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Configuration
  lexscan config show                     # Resolved config (credentials masked)
  lexscan config show --json

  # Extraction
  lexscan extract act.pdf                 # Writes act.txt beside the PDF
  lexscan extract act.pdf --markers       # Prefix pages with ===== PAGE n =====
  lexscan extract act.pdf -o out/act.txt --force
  lexscan extract act.pdf --dpi 400 --recognize-workers 4
"""
    )

    subparsers = parser.add_subparsers(dest='command', help='Command namespace')
    subparsers.required = True

    cli.config.setup_parser(subparsers)
    cli.extract.setup_parser(subparsers)

    return parser


def main(argv=None):
    load_dotenv()
    parser = create_parser()
    args = parser.parse_args(argv)
    args.func(args)
